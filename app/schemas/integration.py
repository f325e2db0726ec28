"""Integration schemas. Config secrets are write-only."""

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field

IntegrationType = Literal["webflow", "wordpress", "shopify", "cloudinary", "blog_writer"]
IntegrationStatus = Literal["active", "inactive", "error", "pending"]


class FieldMapping(BaseModel):
    """Maps a blog field onto a CMS collection field."""

    blog_field: str
    target_field: str


class IntegrationCreate(BaseModel):
    """Schema for connecting an integration."""

    type: IntegrationType
    name: str = Field(min_length=1, max_length=255)
    status: IntegrationStatus = "active"
    config: dict[str, Any] = Field(default_factory=dict)
    field_mappings: list[FieldMapping] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class IntegrationUpdate(BaseModel):
    """Schema for updating an integration; config keys are merged."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    status: IntegrationStatus | None = None
    config: dict[str, Any] | None = None
    field_mappings: list[FieldMapping] | None = None
    health_status: str | None = None
    metadata: dict[str, Any] | None = None


class IntegrationResponse(BaseModel):
    """Schema for integration response without config values."""

    id: str
    org_id: str
    type: str
    name: str
    status: str
    config_keys: list[str]
    field_mappings: list[dict[str, Any]]
    health_status: str | None
    last_sync: datetime | None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
    )
    created_at: datetime
    updated_at: datetime


class IntegrationListResponse(BaseModel):
    integrations: list[IntegrationResponse]
