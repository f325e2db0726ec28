"""Content index, topic clusters and the internal link graph."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringID, TimestampMixin, UUIDMixin


class ContentIndexEntry(Base, UUIDMixin, TimestampMixin):
    """A page known to the organization, used as a link candidate."""

    __tablename__ = "content_index"
    __table_args__ = (UniqueConstraint("org_id", "page_id", name="uq_content_index_org_page"),)

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    page_id: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    keywords: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    topics: Mapped[list[str]] = mapped_column(JSONB, default=list, nullable=False)
    word_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # cms | static | external
    content_type: Mapped[str] = mapped_column(String(20), default="cms", nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False
    )


class ContentCluster(Base, UUIDMixin, TimestampMixin):
    """Persisted topic cluster with its authority figures."""

    __tablename__ = "content_clusters"
    __table_args__ = (
        UniqueConstraint("org_id", "cluster_name", name="uq_content_clusters_org_name"),
        CheckConstraint(
            "authority_score BETWEEN 0 AND 100",
            name="ck_content_clusters_authority",
        ),
    )

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    cluster_name: Mapped[str] = mapped_column(String(255), nullable=False)
    pillar_keyword: Mapped[str] = mapped_column(String(255), nullable=False)
    cluster_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # planning | in_progress | completed | archived
    cluster_status: Mapped[str] = mapped_column(String(20), default="planning", nullable=False)
    authority_score: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    total_keywords: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    content_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    pillar_content_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    supporting_content_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    internal_links_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    estimated_traffic: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    target_traffic: Mapped[int | None] = mapped_column(Integer, nullable=True)


class InternalLink(Base, UUIDMixin, TimestampMixin):
    """Directed link between two blog posts of the same organization."""

    __tablename__ = "internal_link_graph"
    __table_args__ = (
        CheckConstraint("source_post_id <> target_post_id", name="ck_internal_link_no_self"),
        UniqueConstraint(
            "source_post_id",
            "target_post_id",
            "anchor_text",
            name="uq_internal_link_source_target_anchor",
        ),
    )

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    source_post_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    target_post_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("blog_posts.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    anchor_text: Mapped[str] = mapped_column(String(500), nullable=False)
    link_context: Mapped[str | None] = mapped_column(Text, nullable=True)
    link_type: Mapped[str] = mapped_column(String(30), default="related", nullable=False)
    link_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_auto_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
