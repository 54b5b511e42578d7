"""
Courses Application Configuration

Django application configuration for the course catalogue (courses and
enrollments). Connects the enrollment signal handlers at startup.

Author: EduPlatform Development Team
Version: 1.0.0
"""

from django.apps import AppConfig


class CoursesConfig(AppConfig):
    """
    Configuration class for the courses Django application.

    Attributes:
        default_auto_field: Default primary key field type for models
        name: Application name for Django registration
        verbose_name: Human-readable application name for admin interface
    """

    default_auto_field: str = "django.db.models.BigAutoField"
    name: str = "courses"
    verbose_name: str = "Courses"

    def ready(self) -> None:
        # Register the post_save handler that keeps enrollment counters in sync
        from . import signals  # noqa: F401
