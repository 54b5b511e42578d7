"""
Payments AppConfig
==================

Django application configuration for `core.payments`. The app label is
"payments", so models are referenced as `payments.Payment`.

Author: EduPlatform Development Team
Date: 2025-09-03
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """
    App configuration for the `core.payments` package.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "core.payments"
    label = "payments"
    verbose_name = "Payments"
