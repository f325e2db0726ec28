"""Content preset schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class PresetCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    word_count: int | None = Field(default=None, gt=0)
    tone: str | None = None
    quality_level: str | None = None
    template_type: str | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    is_default: bool = False


class PresetUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    word_count: int | None = Field(default=None, gt=0)
    tone: str | None = None
    quality_level: str | None = None
    template_type: str | None = None
    settings: dict[str, Any] | None = None
    is_default: bool | None = None


class PresetResponse(BaseModel):
    """Schema for a saved generation preset."""

    id: str
    org_id: str
    name: str
    description: str | None
    word_count: int | None
    tone: str | None
    quality_level: str | None
    template_type: str | None
    settings: dict[str, Any]
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PresetListResponse(BaseModel):
    presets: list[PresetResponse]
