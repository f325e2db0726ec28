"""Workflow phase request and response schemas."""

from typing import Any

from pydantic import BaseModel, Field


class ContentPhaseRequest(BaseModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    excerpt: str | None = None
    word_count: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ImageRef(BaseModel):
    url: str
    alt: str | None = None


class ImagesPhaseRequest(BaseModel):
    featured_image: ImageRef | None = None
    content_images: list[dict[str, Any]] = Field(default_factory=list)


class EnhancementPhaseRequest(BaseModel):
    seo_title: str | None = None
    meta_description: str | None = None
    excerpt: str | None = None
    slug: str | None = None
    structured_data: dict[str, Any] | None = None
    seo_score: float | None = None
    readability_score: float | None = None


class PhaseResponse(BaseModel):
    """Outcome of a phase handler."""

    success: bool
    phase: str
    post_id: str | None = None
    draft_updated: bool | None = None
    error: str | None = None


class WorkflowPhaseResponse(BaseModel):
    queue_id: str
    phase: str | None
