from django.conf import settings
from rest_framework import serializers

from .models import Course, Enrollment


class CourseSerializer(serializers.ModelSerializer):
    instructorId = serializers.IntegerField(source="instructor_id", read_only=True)
    instructorName = serializers.SerializerMethodField()
    totalEnrollments = serializers.IntegerField(source="total_enrollments", read_only=True)
    publishedAt = serializers.DateTimeField(source="published_at", read_only=True)

    class Meta:
        model = Course
        fields = [
            "id",
            "title",
            "description",
            "price",
            "currency",
            "level",
            "status",
            "instructorId",
            "instructorName",
            "totalEnrollments",
            "publishedAt",
        ]
        read_only_fields = ["status"]

    def validate_currency(self, value: str) -> str:
        code = value.strip().upper()
        if code not in settings.SUPPORTED_CURRENCIES:
            raise serializers.ValidationError(f"Unsupported currency: {code}.")
        return code

    def get_instructorName(self, obj) -> str:
        return obj.instructor.get_full_name() or obj.instructor.get_username()


class EnrollmentSerializer(serializers.ModelSerializer):
    courseId = serializers.UUIDField(source="course_id", read_only=True)
    courseTitle = serializers.CharField(source="course.title", read_only=True)
    studentId = serializers.IntegerField(source="student_id", read_only=True)
    isCompleted = serializers.BooleanField(source="is_completed", read_only=True)
    progressPercentage = serializers.IntegerField(source="progress_percentage", read_only=True)
    enrolledAt = serializers.DateTimeField(source="enrolled_at", read_only=True)
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "courseId",
            "courseTitle",
            "studentId",
            "isCompleted",
            "progressPercentage",
            "enrolledAt",
            "completedAt",
        ]


class CourseReviewSerializer(serializers.Serializer):
    approve = serializers.BooleanField()
