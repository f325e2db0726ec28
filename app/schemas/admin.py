"""Schemas for organization and user administration."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, EmailStr, Field


class OrganizationCreate(BaseModel):
    """Schema for creating an organization."""

    name: str = Field(min_length=1, max_length=255)
    slug: str | None = None
    subscription_tier: str = "free"
    api_quota_monthly: int = Field(default=10000, ge=0)
    settings: dict[str, Any] = Field(default_factory=dict)


class OrganizationUpdate(BaseModel):
    """Schema for updating an organization."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = None
    subscription_tier: str | None = None
    api_quota_monthly: int | None = Field(default=None, ge=0)
    settings: dict[str, Any] | None = None


class OrganizationResponse(BaseModel):
    """Schema for organization response."""

    id: str
    name: str
    slug: str
    subscription_tier: str
    api_quota_monthly: int
    api_quota_used: int
    settings: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrganizationEnvelope(BaseModel):
    success: bool = True
    data: OrganizationResponse


class OrganizationListResponse(BaseModel):
    success: bool = True
    data: list[OrganizationResponse]


class AdminUserCreate(BaseModel):
    """Schema for creating a user on behalf of an organization."""

    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    full_name: str
    role: str
    org_id: str | None = None
    permissions: dict[str, Any] = Field(default_factory=dict)


class AdminUserUpdate(BaseModel):
    """Schema for updating a user."""

    role: str | None = None
    full_name: str | None = None
    is_active: bool | None = None
    permissions: dict[str, Any] | None = None


class AdminUserResponse(BaseModel):
    """Schema for an administered user."""

    id: str
    org_id: str
    email: str
    full_name: str | None
    role: str
    permissions: dict[str, Any]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AdminUserEnvelope(BaseModel):
    success: bool = True
    data: AdminUserResponse


class AdminUserListResponse(BaseModel):
    success: bool = True
    data: list[AdminUserResponse]
