"""Blog post, generation queue, approval and platform publishing models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringID, TimestampMixin, UUIDMixin


class BlogPost(Base, UUIDMixin, TimestampMixin):
    """A draft or published article owned by an organization."""

    __tablename__ = "blog_posts"
    __table_args__ = (Index("ix_blog_posts_org_status", "org_id", "status"),)

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_by: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str | None] = mapped_column(String(500), nullable=True)
    # draft | published | scheduled | archived
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False)
    seo_data: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False
    )
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<BlogPost {self.title[:40]}>"


class BlogGenerationQueueItem(Base, UUIDMixin, TimestampMixin):
    """One requested blog generation and its lifecycle status."""

    __tablename__ = "blog_generation_queue"
    __table_args__ = (
        CheckConstraint("priority BETWEEN 1 AND 10", name="ck_blog_queue_priority"),
        CheckConstraint(
            "progress_percentage BETWEEN 0 AND 100",
            name="ck_blog_queue_progress",
        ),
        Index("ix_blog_queue_org_status", "org_id", "status"),
    )

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    post_id: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("blog_posts.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_by: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    topic: Mapped[str] = mapped_column(Text, nullable=False)
    keywords: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    target_audience: Mapped[str | None] = mapped_column(Text, nullable=True)
    tone: Mapped[str | None] = mapped_column(String(100), nullable=True)
    word_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quality_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    custom_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    template_type: Mapped[str | None] = mapped_column(String(100), nullable=True)

    status: Mapped[str] = mapped_column(String(30), default="queued", nullable=False)
    progress_percentage: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_stage: Mapped[str | None] = mapped_column(String(100), nullable=True)
    progress_updates: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, default=list, nullable=False
    )

    generated_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    generated_title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    generation_metadata: Mapped[dict[str, Any]] = mapped_column(
        JSONB, default=dict, nullable=False
    )
    generation_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    queued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    generation_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    generation_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    estimated_completion_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    priority: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False
    )


class BlogApproval(Base, UUIDMixin, TimestampMixin):
    """Review request for a generated queue item."""

    __tablename__ = "blog_approvals"

    queue_id: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("blog_generation_queue.id", ondelete="CASCADE"),
        index=True,
        nullable=True,
    )
    post_id: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("blog_posts.id", ondelete="SET NULL"),
        nullable=True,
    )
    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # pending | approved | rejected | changes_requested
    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)
    requested_by: Mapped[str | None] = mapped_column(StringID(), nullable=True)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    reviewed_by: Mapped[str | None] = mapped_column(StringID(), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    revision_number: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    previous_approval_id: Mapped[str | None] = mapped_column(StringID(), nullable=True)
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False
    )


class BlogPlatformPublishing(Base, UUIDMixin, TimestampMixin):
    """Publication of one post to one CMS platform."""

    __tablename__ = "blog_platform_publishing"
    __table_args__ = (
        UniqueConstraint("post_id", "platform", name="uq_blog_publishing_post_platform"),
    )

    post_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    queue_id: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("blog_generation_queue.id", ondelete="SET NULL"),
        nullable=True,
    )
    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # webflow | wordpress | shopify
    platform: Mapped[str] = mapped_column(String(30), nullable=False)
    platform_post_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    platform_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(30), default="pending", nullable=False)
    scheduled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_by: Mapped[str | None] = mapped_column(StringID(), nullable=True)
    publish_metadata: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sync_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False
    )
