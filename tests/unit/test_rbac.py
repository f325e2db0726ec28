"""Unit tests for role groups and permission checks."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.core.exceptions import PermissionDeniedError
from app.services.rbac import (
    CONTENT_MANAGER_ROLES,
    PUBLISHER_ROLES,
    USER_ADMIN_ROLES,
    can_assign_role,
    has_role,
    is_system_admin,
    require_role,
)


def _user(role: str) -> SimpleNamespace:
    return SimpleNamespace(id="user-1", org_id="org-1", role=role)


@pytest.mark.parametrize("role", ["system_admin", "super_admin"])
def test_system_admin_roles_are_recognized(role: str) -> None:
    assert is_system_admin(_user(role))


def test_org_admin_is_not_system_admin() -> None:
    assert not is_system_admin(_user("admin"))
    assert not is_system_admin(SimpleNamespace())


def test_role_groups_match_expected_membership() -> None:
    assert USER_ADMIN_ROLES == {"system_admin", "super_admin", "admin", "owner"}
    assert CONTENT_MANAGER_ROLES == {"admin", "manager", "editor"}
    assert PUBLISHER_ROLES == {"admin", "manager", "editor", "system_admin", "super_admin"}


def test_owner_cannot_review_content() -> None:
    assert not has_role(_user("owner"), CONTENT_MANAGER_ROLES)


def test_require_role_raises_permission_denied_with_message() -> None:
    with pytest.raises(PermissionDeniedError) as exc_info:
        require_role(_user("writer"), PUBLISHER_ROLES, "Only editors can publish")

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Only editors can publish"


def test_require_role_passes_for_allowed_role() -> None:
    require_role(_user("editor"), PUBLISHER_ROLES)


def test_org_admin_cannot_assign_elevated_roles() -> None:
    assert can_assign_role("admin", "editor")
    assert can_assign_role("owner", "manager")
    assert not can_assign_role("admin", "admin")
    assert not can_assign_role("owner", "owner")


def test_system_admin_can_assign_any_assignable_role() -> None:
    for role in ("writer", "editor", "manager", "admin", "owner"):
        assert can_assign_role("system_admin", role)


def test_unknown_role_is_never_assignable() -> None:
    assert not can_assign_role("system_admin", "system_admin")
    assert not can_assign_role("system_admin", "root")
