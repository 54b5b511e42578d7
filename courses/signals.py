"""
Enrollment signal handlers.

Keeps ``Course.total_enrollments`` in sync with the enrollment table. The
counter is incremented with an ``F()`` expression so concurrent
enrollments never overwrite each other.
"""

import logging

from django.db.models import F
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Course, Enrollment

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Enrollment)
def on_enrollment_created(sender, instance: Enrollment, created: bool, **kwargs):
    if not created:
        return

    Course.objects.filter(pk=instance.course_id).update(
        total_enrollments=F("total_enrollments") + 1
    )
    logger.info(
        "Enrolled student %s into course %s.", instance.student_id, instance.course_id
    )
