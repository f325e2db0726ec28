"""Stored keyword research, per-term metrics and the research cache."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringID, TimestampMixin, UUIDMixin


class KeywordResearchResult(Base, UUIDMixin, TimestampMixin):
    """Full research payload for one keyword/location/language/search type."""

    __tablename__ = "keyword_research_results"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "keyword",
            "location",
            "language",
            "search_type",
            name="uq_keyword_research_natural_key",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    org_id: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
    )
    keyword: Mapped[str] = mapped_column(String(500), nullable=False)
    location: Mapped[str] = mapped_column(String(100), default="United States", nullable=False)
    language: Mapped[str] = mapped_column(String(10), default="en", nullable=False)
    # traditional | ai | both
    search_type: Mapped[str] = mapped_column(String(20), default="traditional", nullable=False)
    traditional_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    ai_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    related_terms: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
    comprehensive_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class KeywordTerm(Base, UUIDMixin, TimestampMixin):
    """Flattened metrics for a single keyword, queryable by volume/difficulty."""

    __tablename__ = "keyword_terms"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "keyword",
            "location",
            "language",
            "search_type",
            name="uq_keyword_terms_natural_key",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    research_result_id: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("keyword_research_results.id", ondelete="SET NULL"),
        nullable=True,
    )
    keyword: Mapped[str] = mapped_column(String(500), nullable=False)
    parent_keyword: Mapped[str | None] = mapped_column(String(500), index=True, nullable=True)
    location: Mapped[str] = mapped_column(String(100), default="United States", nullable=False)
    language: Mapped[str] = mapped_column(String(10), default="en", nullable=False)
    search_type: Mapped[str] = mapped_column(String(20), default="traditional", nullable=False)
    search_volume: Mapped[int | None] = mapped_column(Integer, nullable=True)
    keyword_difficulty: Mapped[float | None] = mapped_column(Float, nullable=True)
    cpc: Mapped[float | None] = mapped_column(Float, nullable=True)
    competition: Mapped[float | None] = mapped_column(Float, nullable=True)
    search_intent: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_related_term: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_matching_term: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_long_tail: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    metrics: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)


class KeywordCache(Base, UUIDMixin, TimestampMixin):
    """Short-lived copy of a research payload, valid until ``expires_at``."""

    __tablename__ = "keyword_cache"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "keyword",
            "location",
            "language",
            "search_type",
            name="uq_keyword_cache_natural_key",
        ),
    )

    user_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    keyword: Mapped[str] = mapped_column(String(500), nullable=False)
    location: Mapped[str] = mapped_column(String(100), default="United States", nullable=False)
    language: Mapped[str] = mapped_column(String(10), default="en", nullable=False)
    search_type: Mapped[str] = mapped_column(String(20), default="traditional", nullable=False)
    traditional_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    ai_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    related_terms: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
    comprehensive_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
