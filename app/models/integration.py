"""Per-organization third-party integration model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, EncryptedJSON, StringID, TimestampMixin, UUIDMixin


class Integration(Base, UUIDMixin, TimestampMixin):
    """Connection settings for a CMS, media or content backend."""

    __tablename__ = "integrations"
    __table_args__ = (
        UniqueConstraint("org_id", "type", "name", name="uq_integrations_org_type_name"),
    )

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    # webflow | wordpress | shopify | cloudinary | blog_writer
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # active | inactive | error | pending
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    config: Mapped[dict[str, Any]] = mapped_column(EncryptedJSON(), nullable=True)
    field_mappings: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, default=list, nullable=False
    )
    health_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    last_sync: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False
    )
