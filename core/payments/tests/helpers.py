"""
Shared fixtures for the payment tests.
"""

import hashlib
import hmac
import json
import time
from decimal import Decimal
from types import SimpleNamespace

from django.contrib.auth.models import User

from courses.models import Course

WEBHOOK_SECRET = "whsec_test_secret"


def create_student(username="student", **extra):
    return User.objects.create_user(
        username=username, password="testPassword", email=f"{username}@test.com", **extra
    )


def create_admin(username="admin"):
    return User.objects.create_user(
        username=username, password="testPassword", email=f"{username}@test.com", is_staff=True
    )


def create_course(instructor=None, status=Course.Status.PUBLISHED, **extra):
    if instructor is None:
        instructor = User.objects.create_user(username=f"instructor-{Course.objects.count()}")
    defaults = {
        "title": "Django for Professionals",
        "price": Decimal("49.99"),
        "currency": "USD",
        "status": status,
    }
    defaults.update(extra)
    return Course.objects.create(instructor=instructor, **defaults)


def fake_intent(intent_id="pi_test_123", status="requires_payment_method"):
    return SimpleNamespace(id=intent_id, client_secret=f"{intent_id}_secret_abc", status=status)


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    """Build a Stripe-Signature header value for ``payload``."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type, data_object, event_id="evt_test_1") -> str:
    return json.dumps(
        {
            "id": event_id,
            "object": "event",
            "type": event_type,
            "data": {"object": data_object},
        }
    )
