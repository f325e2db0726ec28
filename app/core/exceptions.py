"""Custom exception classes for the application."""

from typing import Any


class BlogWriterError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Authentication Errors
class AuthenticationError(BlogWriterError):
    """Authentication failed."""

    status_code = 401


class InvalidTokenError(AuthenticationError):
    """Invalid or expired token."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


# Tenancy Errors
class OrganizationNotFoundError(BlogWriterError):
    """Organization not found."""

    status_code = 404

    def __init__(self, org_id: str | None = None) -> None:
        super().__init__("Organization not found", {"org_id": org_id} if org_id else None)


class PermissionDeniedError(BlogWriterError):
    """Caller's role does not allow the operation."""

    status_code = 403

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message)


class ResourceNotFoundError(BlogWriterError):
    """Org-scoped row not found."""

    status_code = 404

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        self.resource = resource
        super().__init__(
            f"{resource} not found",
            {"id": resource_id} if resource_id else None,
        )


# Lifecycle Errors
class InvalidStatusTransitionError(BlogWriterError):
    """Requested status is not reachable from the current status."""

    status_code = 400

    def __init__(self, entity: str, current_status: str, requested_status: str) -> None:
        self.entity = entity
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Invalid status transition: {current_status} → {requested_status}",
            {"current_status": current_status, "requested_status": requested_status},
        )


class WorkflowPhaseError(BlogWriterError):
    """A workflow phase could not be applied to the draft."""

    status_code = 400


# External API Errors
class ExternalAPIError(BlogWriterError):
    """Error calling external API."""

    status_code = 502

    def __init__(
        self,
        api_name: str,
        message: str,
        upstream_status: int | None = None,
    ) -> None:
        self.api_name = api_name
        self.upstream_status = upstream_status
        super().__init__(
            f"{api_name} API error: {message}",
            {"upstream_status": upstream_status} if upstream_status else None,
        )


class RateLimitExceededError(ExternalAPIError):
    """Rate limit exceeded for external API."""

    status_code = 429

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "Rate limit exceeded", upstream_status=429)


class APIKeyMissingError(ExternalAPIError):
    """API key not configured."""

    status_code = 503

    def __init__(self, api_name: str) -> None:
        super().__init__(api_name, "API key not configured")


class IntegrationNotConfiguredError(BlogWriterError):
    """Org has no usable integration of the requested type."""

    status_code = 400

