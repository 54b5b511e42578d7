from rest_framework.permissions import BasePermission

ADMIN_GROUP = "Admin"

# ------------------------------------------------------------
# Helper: A user counts as platform admin when flagged as staff
# or when they belong to the "Admin" group.
# ------------------------------------------------------------


def is_platform_admin(user) -> bool:
    """Returns True if the user may act as platform administrator."""
    if not user or not user.is_authenticated:
        return False
    return user.is_staff or user.groups.filter(name=ADMIN_GROUP).exists()


class IsPlatformAdmin(BasePermission):
    """Only admins (is_staff OR member of the Admin group)."""

    message = "Administrator privileges are required."

    def has_permission(self, request, view):
        return is_platform_admin(request.user)


class IsOwnerOrAdmin(BasePermission):
    """
    Object access for the owning student or for admins.

    The view may set ``owner_attribute`` (dotted path, default
    ``student_id``) to point at the owner id on the checked object, e.g.
    ``payment.student_id`` for bank transfers and invoices.
    """

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated)

    def has_object_permission(self, request, view, obj):
        if is_platform_admin(request.user):
            return True

        owner_id = obj
        for part in getattr(view, "owner_attribute", "student_id").split("."):
            owner_id = getattr(owner_id, part, None)
        # Unbound records (no student yet) are not visible to other students
        return owner_id is not None and owner_id == request.user.id
