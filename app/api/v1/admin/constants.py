"""Constants for organization and user administration routes."""

ORGANIZATION_NOT_FOUND_DETAIL = "Organization not found"
USER_NOT_FOUND_DETAIL = "User not found"
SYSTEM_ADMIN_REQUIRED_DETAIL = "Only system administrators can manage organizations"
USER_ADMIN_REQUIRED_DETAIL = "Insufficient permissions to manage users"
ELEVATED_ROLE_DETAIL = "Only system administrators can assign admin or owner roles"
ORG_ID_REQUIRED_DETAIL = "org_id is required when creating users as a system administrator"
EMAIL_TAKEN_DETAIL = "A user with this email already exists"


def duplicate_slug_detail(slug: str) -> str:
    return f'An organization with slug "{slug}" already exists'


def invalid_role_detail(roles: list[str]) -> str:
    return f"Invalid role. Must be one of: {', '.join(roles)}"
