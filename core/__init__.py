"""
Core package - EduPlatform

Shared building blocks used by more than one app: the payments app
(``core.payments``) and the role checks in ``core.permissions``.
"""
