"""
Course Catalogue Models

This module defines the models of the course catalogue: courses offered by
instructors and the enrollments that grant students access to them.

Models:
- Course: A purchasable course with an approval lifecycle
- Enrollment: A student's access to a course, created once the course is paid

Features:
- Course lifecycle Draft → PendingApproval → Published / Rejected
- One enrollment per (course, student), enforced by the database
- Progress tracking with automatic completion at 100%

Author: EduPlatform Development Team
Version: 1.0.0
"""

import uuid

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class CourseStateError(Exception):
    """Raised when a course lifecycle transition is not allowed."""


class Course(models.Model):
    """
    A course published by an instructor.

    Only published courses can be purchased. Instructors submit a draft
    (or a rejected course) for approval; admins approve or reject it.

    Attributes:
        title: Course title
        instructor: User who owns and teaches the course
        price: List price in ``currency``
        level: Difficulty level
        status: Lifecycle status
        total_enrollments: Denormalized enrollment counter

    Example:
        >>> course = Course.objects.create(title="Django", instructor=user, price=49)
        >>> course.submit_for_approval()
        >>> course.approve()
        >>> course.is_purchasable  # True
    """

    class Level(models.TextChoices):
        BEGINNER = "Beginner", _("Beginner")
        INTERMEDIATE = "Intermediate", _("Intermediate")
        ADVANCED = "Advanced", _("Advanced")

    class Status(models.TextChoices):
        DRAFT = "Draft", _("Draft")
        PENDING_APPROVAL = "PendingApproval", _("Pending Approval")
        PUBLISHED = "Published", _("Published")
        REJECTED = "Rejected", _("Rejected")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(
        max_length=200,
        verbose_name=_("Course Title"),
    )
    description = models.TextField(
        blank=True,
        verbose_name=_("Description"),
    )
    instructor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="taught_courses",
        verbose_name=_("Instructor"),
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        verbose_name=_("Price"),
    )
    currency = models.CharField(
        max_length=3,
        default=settings.DEFAULT_CURRENCY,
        verbose_name=_("Currency"),
        help_text=_("ISO 4217 currency code, e.g. USD"),
    )
    level = models.CharField(
        max_length=20,
        choices=Level.choices,
        default=Level.BEGINNER,
        verbose_name=_("Level"),
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
        verbose_name=_("Status"),
    )
    total_enrollments = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Total Enrollments"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    published_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Course")
        verbose_name_plural = _("Courses")
        ordering = ["-created_at"]
        db_table = "courses_course"

    def __str__(self) -> str:
        return self.title

    @property
    def is_purchasable(self) -> bool:
        return self.status == self.Status.PUBLISHED

    def _transition(self, allowed_from, target) -> None:
        if self.status not in allowed_from:
            raise CourseStateError(
                f"Cannot move course from {self.status} to {target}."
            )
        self.status = target
        update_fields = ["status"]
        if target == self.Status.PUBLISHED:
            self.published_at = timezone.now()
            update_fields.append("published_at")
        self.save(update_fields=update_fields)

    def submit_for_approval(self) -> None:
        """Draft or Rejected → PendingApproval."""
        self._transition(
            (self.Status.DRAFT, self.Status.REJECTED), self.Status.PENDING_APPROVAL
        )

    def approve(self) -> None:
        """PendingApproval → Published."""
        self._transition((self.Status.PENDING_APPROVAL,), self.Status.PUBLISHED)

    def reject(self) -> None:
        """PendingApproval → Rejected."""
        self._transition((self.Status.PENDING_APPROVAL,), self.Status.REJECTED)


class Enrollment(models.Model):
    """
    Grants a student access to a course.

    Enrollments are created by the payment workflow when a payment for the
    course succeeds. The unique constraint on (course, student) guarantees
    that a course is never granted twice, even under concurrent settlement.

    Attributes:
        course: The enrolled course
        student: The enrolled user
        payment: Payment that settled this enrollment, if any
        progress_percentage: 0-100
        is_completed: Set when progress reaches 100
    """

    course = models.ForeignKey(
        Course,
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name=_("Course"),
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="enrollments",
        verbose_name=_("Student"),
    )
    payment = models.ForeignKey(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="enrollments",
        verbose_name=_("Payment"),
        help_text=_("Payment that settled this enrollment"),
    )
    is_completed = models.BooleanField(default=False)
    progress_percentage = models.PositiveSmallIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        verbose_name=_("Progress (%)"),
    )
    enrolled_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _("Enrollment")
        verbose_name_plural = _("Enrollments")
        ordering = ["-enrolled_at"]
        db_table = "courses_enrollment"
        constraints = [
            models.UniqueConstraint(
                fields=["course", "student"],
                name="unique_enrollment_per_course_student",
            )
        ]

    def __str__(self) -> str:
        return f"{self.student} → {self.course}"

    def update_progress(self, percentage: int) -> None:
        """Store progress; reaching 100 marks the enrollment completed."""
        if not 0 <= percentage <= 100:
            raise ValueError("Progress must be between 0 and 100.")
        self.progress_percentage = percentage
        if percentage == 100 and not self.is_completed:
            self.is_completed = True
            self.completed_at = timezone.now()
        self.save(update_fields=["progress_percentage", "is_completed", "completed_at"])
