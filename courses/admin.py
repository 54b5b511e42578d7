"""
Courses Django Admin Configuration

Admin views for the course catalogue. Course approval can be done in bulk
through admin actions that go through the same lifecycle methods as the API.

Author: EduPlatform Development Team
Version: 1.0.0
"""

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from .models import Course, CourseStateError, Enrollment


class EnrollmentInline(admin.TabularInline):
    """Read-only list of the students enrolled in a course."""

    model = Enrollment
    extra = 0
    fields = ("student", "progress_percentage", "is_completed", "enrolled_at")
    readonly_fields = ("student", "enrolled_at")
    can_delete = False


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "instructor",
        "price",
        "currency",
        "level",
        "status",
        "total_enrollments",
    )
    list_filter = ("status", "level", "currency")
    search_fields = ("title", "description", "instructor__username")
    readonly_fields = ("total_enrollments", "created_at", "published_at")
    inlines = [EnrollmentInline]
    actions = ["approve_courses", "reject_courses"]

    fieldsets = (
        (_("Basic Information"), {"fields": ("title", "description", "instructor", "level")}),
        (_("Pricing"), {"fields": ("price", "currency")}),
        (
            _("Lifecycle"),
            {"fields": ("status", "published_at", "total_enrollments", "created_at")},
        ),
    )

    def _apply(self, request: HttpRequest, queryset: QuerySet, transition: str) -> None:
        done = 0
        for course in queryset:
            try:
                getattr(course, transition)()
                done += 1
            except CourseStateError as exc:
                self.message_user(request, f"{course}: {exc}", level=messages.WARNING)
        if done:
            self.message_user(request, _("%d course(s) updated.") % done)

    @admin.action(description=_("Approve selected courses"))
    def approve_courses(self, request: HttpRequest, queryset: QuerySet) -> None:
        self._apply(request, queryset, "approve")

    @admin.action(description=_("Reject selected courses"))
    def reject_courses(self, request: HttpRequest, queryset: QuerySet) -> None:
        self._apply(request, queryset, "reject")


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = (
        "student",
        "course",
        "progress_percentage",
        "is_completed",
        "enrolled_at",
    )
    list_filter = ("is_completed", "course")
    search_fields = ("student__username", "student__email", "course__title")
    list_select_related = ("student", "course")
    readonly_fields = ("payment", "enrolled_at", "completed_at")
