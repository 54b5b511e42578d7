from django.urls import path
from .views import (
    CourseDetailView,
    CourseReviewView,
    CourseSubmitView,
    InstructorCourseListView,
    MyEnrollmentListView,
    PublishedCourseListView,
)

app_name = "courses"

urlpatterns = [
    path("", PublishedCourseListView.as_view(), name="course-list"),
    path("instructor/", InstructorCourseListView.as_view(), name="instructor-courses"),
    path("enrollments/", MyEnrollmentListView.as_view(), name="my-enrollments"),
    path("<uuid:pk>/", CourseDetailView.as_view(), name="course-detail"),
    path("<uuid:pk>/submit/", CourseSubmitView.as_view(), name="course-submit"),
    path("<uuid:pk>/review/", CourseReviewView.as_view(), name="course-review"),
]
