"""Role groups and permission checks."""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from app.core.exceptions import PermissionDeniedError

SYSTEM_ADMIN = "system_admin"
SUPER_ADMIN = "super_admin"
ADMIN = "admin"
OWNER = "owner"
MANAGER = "manager"
EDITOR = "editor"
WRITER = "writer"

SYSTEM_ADMIN_ROLES = frozenset({SYSTEM_ADMIN, SUPER_ADMIN})
USER_ADMIN_ROLES = SYSTEM_ADMIN_ROLES | {ADMIN, OWNER}
CONTENT_MANAGER_ROLES = frozenset({ADMIN, MANAGER, EDITOR})
PUBLISHER_ROLES = CONTENT_MANAGER_ROLES | SYSTEM_ADMIN_ROLES
PLATFORM_DELETE_ROLES = SYSTEM_ADMIN_ROLES | {ADMIN, MANAGER}

# Ordered from least to most privileged.
ASSIGNABLE_ROLES = [WRITER, EDITOR, MANAGER, ADMIN, OWNER]

_ELEVATED_ASSIGNABLE = frozenset({ADMIN, OWNER})


def is_system_admin(user: Any) -> bool:
    return getattr(user, "role", None) in SYSTEM_ADMIN_ROLES


def has_role(user: Any, allowed: Collection[str]) -> bool:
    return getattr(user, "role", None) in allowed


def require_role(
    user: Any,
    allowed: Collection[str],
    message: str = "Insufficient permissions",
) -> None:
    """Raise ``PermissionDeniedError`` unless the user's role is in ``allowed``."""
    if not has_role(user, allowed):
        raise PermissionDeniedError(message)


def can_assign_role(actor_role: str | None, role: str) -> bool:
    """Whether ``actor_role`` may grant ``role`` to another user."""
    if role not in ASSIGNABLE_ROLES:
        return False
    if actor_role in SYSTEM_ADMIN_ROLES:
        return True
    return role not in _ELEVATED_ASSIGNABLE

