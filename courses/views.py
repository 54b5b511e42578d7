"""
Course Catalogue Views

Endpoints
---------
- GET    /api/courses/                 → published courses (public)
- POST   /api/courses/                 → create a draft course, caller becomes instructor
- GET    /api/courses/instructor/      → all courses of the authenticated instructor
- GET    /api/courses/<id>/            → course detail (drafts only for instructor and admins)
- PUT    /api/courses/<id>/            → instructor or admin edits the course
- DELETE /api/courses/<id>/            → instructor or admin deletes a course without payments
- GET    /api/courses/enrollments/     → enrollments of the authenticated user
- POST   /api/courses/<id>/submit/     → instructor submits a course for approval
- POST   /api/courses/<id>/review/     → admin approves or rejects, body {"approve": bool}

Author: EduPlatform Development Team
Version: 1.0.0
"""

import logging

from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import IsOwnerOrAdmin, IsPlatformAdmin, is_platform_admin
from .models import Course, CourseStateError, Enrollment
from .serializers import CourseReviewSerializer, CourseSerializer, EnrollmentSerializer

logger = logging.getLogger(__name__)


class PublishedCourseListView(generics.ListCreateAPIView):
    serializer_class = CourseSerializer
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]

    def get_queryset(self):
        qs = Course.objects.filter(status=Course.Status.PUBLISHED).select_related(
            "instructor"
        )
        level = self.request.query_params.get("level")
        if level:
            qs = qs.filter(level=level)
        return qs.order_by("-published_at")

    def perform_create(self, serializer):
        course = serializer.save(instructor=self.request.user, status=Course.Status.DRAFT)
        logger.info("Course %s created by user %s.", course.pk, self.request.user.id)


class InstructorCourseListView(generics.ListAPIView):
    """Every course of the logged-in instructor, whatever its status."""

    serializer_class = CourseSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Course.objects.filter(instructor=self.request.user).select_related(
            "instructor"
        )


class CourseDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = CourseSerializer
    owner_attribute = "instructor_id"

    def get_permissions(self):
        if self.request.method in permissions.SAFE_METHODS:
            return [permissions.AllowAny()]
        return [IsOwnerOrAdmin()]

    def get_queryset(self):
        qs = Course.objects.select_related("instructor")
        user = self.request.user
        if is_platform_admin(user):
            return qs
        visible = Q(status=Course.Status.PUBLISHED)
        if user.is_authenticated:
            visible |= Q(instructor=user)
        return qs.filter(visible)

    def perform_update(self, serializer):
        course = serializer.save()
        logger.info("Course %s updated by user %s.", course.pk, self.request.user.id)

    def destroy(self, request, *args, **kwargs):
        course = self.get_object()
        # Payments reference the course and are never deleted
        if course.payments.exists():
            return Response(
                {"error": "Courses with payments cannot be deleted."},
                status=status.HTTP_409_CONFLICT,
            )
        course.delete()
        logger.info("Course %s deleted by user %s.", kwargs.get("pk"), request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class MyEnrollmentListView(generics.ListAPIView):
    """Enrollments of the logged-in student."""

    serializer_class = EnrollmentSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Enrollment.objects.filter(student=self.request.user).select_related(
            "course"
        )


class CourseSubmitView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        if course.instructor_id != request.user.id and not is_platform_admin(request.user):
            return Response(
                {"error": "Only the course instructor can submit this course."},
                status=status.HTTP_403_FORBIDDEN,
            )
        try:
            course.submit_for_approval()
        except CourseStateError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_409_CONFLICT)

        logger.info("Course %s submitted for approval by user %s.", course.pk, request.user.id)
        return Response(CourseSerializer(course).data, status=status.HTTP_200_OK)


class CourseReviewView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, pk):
        course = get_object_or_404(Course, pk=pk)
        serializer = CourseReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            if serializer.validated_data["approve"]:
                course.approve()
            else:
                course.reject()
        except CourseStateError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_409_CONFLICT)

        logger.info("Course %s reviewed by admin %s: %s.", course.pk, request.user.id, course.status)
        return Response(CourseSerializer(course).data, status=status.HTTP_200_OK)
