"""Reusable API dependencies shared across v1 routes."""

from app.api.v1.dependencies.org_access import get_org_row

__all__ = ["get_org_row"]
