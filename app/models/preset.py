"""Saved generation settings."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringID, TimestampMixin, UUIDMixin


class ContentPreset(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "content_presets"
    __table_args__ = (UniqueConstraint("org_id", "name", name="uq_content_presets_org_name"),)

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    word_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    tone: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quality_level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    template_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
