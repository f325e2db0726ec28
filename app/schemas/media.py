"""Media library schemas."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field


class MediaAssetResponse(BaseModel):
    """Schema for a media library entry."""

    id: str
    org_id: str
    uploaded_by: str | None
    file_name: str
    file_url: str
    file_type: str | None
    file_size: int | None
    provider: str
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
    )
    created_at: datetime

    model_config = {"from_attributes": True}


class MediaListResponse(BaseModel):
    items: list[MediaAssetResponse]
    total: int
    limit: int
    offset: int


class MediaUploadResponse(BaseModel):
    success: bool = True
    asset: MediaAssetResponse


class MediaSyncResponse(BaseModel):
    success: bool = True
    synced: int
    updated: int
    skipped: int
    total: int


class CloudinaryTestResponse(BaseModel):
    success: bool
    cloud_name: str
    message: str


class CloudinaryCredentialsUpdate(BaseModel):
    cloud_name: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    api_secret: str = Field(min_length=1)
