"""Schemas for blog posts, the generation queue, approvals and publishing."""

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field

QueueSortField = Literal["queued_at", "priority", "created_at", "status"]
SortOrder = Literal["asc", "desc"]


def _metadata_field() -> Any:
    return Field(
        default_factory=dict,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
    )


# Generation queue


class QueueItemCreate(BaseModel):
    """Schema for queueing a blog generation."""

    topic: str = Field(min_length=1)
    keywords: list[str] = Field(default_factory=list)
    target_audience: str | None = None
    tone: str | None = None
    word_count: int | None = Field(default=None, gt=0)
    quality_level: str | None = None
    custom_instructions: str | None = None
    template_type: str | None = None
    priority: int = Field(default=5, ge=1, le=10)
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueueItemUpdate(BaseModel):
    """Partial update of a queue item; status changes are validated."""

    status: str | None = None
    priority: int | None = Field(default=None, ge=1, le=10)
    progress_percentage: int | None = None
    current_stage: str | None = None
    progress_updates: list[dict[str, Any]] | None = None
    generated_content: str | None = None
    generated_title: str | None = None
    generation_metadata: dict[str, Any] | None = None
    generation_error: str | None = None
    estimated_completion_at: datetime | None = None
    keywords: list[str] | None = None
    target_audience: str | None = None
    tone: str | None = None
    word_count: int | None = Field(default=None, gt=0)
    quality_level: str | None = None
    custom_instructions: str | None = None
    template_type: str | None = None
    metadata: dict[str, Any] | None = None


class QueueItemResponse(BaseModel):
    """Schema for a generation queue item."""

    id: str
    org_id: str
    post_id: str | None
    created_by: str | None
    topic: str
    keywords: list[str]
    target_audience: str | None
    tone: str | None
    word_count: int | None
    quality_level: str | None
    custom_instructions: str | None
    template_type: str | None
    status: str
    progress_percentage: int
    current_stage: str | None
    progress_updates: list[dict[str, Any]]
    generated_content: str | None
    generated_title: str | None
    generation_metadata: dict[str, Any]
    generation_error: str | None
    queued_at: datetime
    generation_started_at: datetime | None
    generation_completed_at: datetime | None
    estimated_completion_at: datetime | None
    priority: int
    metadata: dict[str, Any] = _metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class QueueListResponse(BaseModel):
    items: list[QueueItemResponse]
    pagination: Pagination


class QueueItemEnvelope(BaseModel):
    success: bool = True
    queue_item: QueueItemResponse


# Approvals


class ApprovalCreate(BaseModel):
    """Schema for requesting review of a generated item."""

    queue_id: str | None = None
    post_id: str | None = None
    review_notes: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ApprovalUpdate(BaseModel):
    """Schema for a reviewer decision."""

    status: str
    review_notes: str | None = None
    rejection_reason: str | None = None


class ApprovalResponse(BaseModel):
    """Schema for an approval record."""

    id: str
    queue_id: str | None
    post_id: str | None
    org_id: str
    status: str
    requested_by: str | None
    requested_at: datetime
    reviewed_by: str | None
    reviewed_at: datetime | None
    review_notes: str | None
    rejection_reason: str | None
    revision_number: int
    previous_approval_id: str | None
    metadata: dict[str, Any] = _metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ApprovalEnvelope(BaseModel):
    success: bool = True
    approval: ApprovalResponse


class ApprovalListResponse(BaseModel):
    approvals: list[ApprovalResponse]


# Platform publishing


class PublishingCreate(BaseModel):
    """Schema for targeting a post at a CMS platform."""

    platform: str
    post_id: str | None = None
    queue_id: str | None = None
    scheduled_at: datetime | None = None
    publish_metadata: dict[str, Any] = Field(default_factory=dict)


class PublishingResponse(BaseModel):
    """Schema for a platform publication record."""

    id: str
    post_id: str
    queue_id: str | None
    org_id: str
    platform: str
    platform_post_id: str | None
    platform_url: str | None
    status: str
    scheduled_at: datetime | None
    published_at: datetime | None
    published_by: str | None
    publish_metadata: dict[str, Any]
    error_message: str | None
    error_code: str | None
    retry_count: int
    last_synced_at: datetime | None
    sync_status: str | None
    metadata: dict[str, Any] = _metadata_field()
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PlatformDeleteRequest(BaseModel):
    """Options for removing a publication's item from its CMS."""

    publish_site_after: bool = True
    delete_local_record: bool = False


class PublishingEnvelope(BaseModel):
    success: bool = True
    publishing: PublishingResponse


class PublishingListResponse(BaseModel):
    publishing: list[PublishingResponse]


# Blog posts

PostStatus = Literal["draft", "published", "scheduled", "archived"]


class FeaturedImageIn(BaseModel):
    image_id: str | None = None
    image_url: str | None = None
    alt_text: str | None = None
    width: int | None = None
    height: int | None = None


class BlogPostCreate(BaseModel):
    """Schema for saving a draft."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    excerpt: str | None = None
    slug: str | None = None
    status: PostStatus = "draft"
    seo_data: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    featured_image: FeaturedImageIn | None = None
    scheduled_at: datetime | None = None


class BlogPostUpdate(BaseModel):
    """Partial update of a post."""

    title: str | None = Field(default=None, min_length=1)
    content: str | None = None
    excerpt: str | None = None
    slug: str | None = None
    status: PostStatus | None = None
    seo_data: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
    scheduled_at: datetime | None = None


class BlogPostResponse(BaseModel):
    id: str
    org_id: str
    created_by: str | None
    title: str
    content: str | None
    excerpt: str | None
    slug: str | None
    status: str
    seo_data: dict[str, Any]
    metadata: dict[str, Any] = _metadata_field()
    scheduled_at: datetime | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BlogPostEnvelope(BaseModel):
    success: bool = True
    post: BlogPostResponse


class BlogPostListResponse(BaseModel):
    posts: list[BlogPostResponse]
    pagination: Pagination
