"""
URL configuration for the EduPlatform backend.

- /admin/           Django admin (jazzmin theme)
- /api/token/       JWT obtain / refresh
- /api/courses/     Course catalogue and enrollments
- /api/...          Payments, bank transfers, webhooks, invoices
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/courses/", include("courses.urls")),
    path("api/", include("core.payments.urls")),
]
