"""Constants for authentication routes."""

INVALID_CREDENTIALS_DETAIL = "Invalid email or password"
INACTIVE_USER_DETAIL = "User account is deactivated"
EMAIL_TAKEN_DETAIL = "User with this email already exists"
INVALID_REFRESH_DETAIL = "Invalid refresh token"

OWNER_ROLE = "owner"
