"""Media asset model."""

from __future__ import annotations

from typing import Any

from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, StringID, TimestampMixin, UUIDMixin


class MediaAsset(Base, UUIDMixin, TimestampMixin):
    """An uploaded or synced image.

    Provider specifics (Cloudinary ``public_id``, dimensions, folder, last sync
    time) live in ``extra_metadata``.
    """

    __tablename__ = "media_assets"

    org_id: Mapped[str] = mapped_column(
        StringID(),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    uploaded_by: Mapped[str | None] = mapped_column(
        StringID(),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_url: Mapped[str] = mapped_column(String(2000), nullable=False)
    file_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    provider: Mapped[str] = mapped_column(String(30), default="cloudinary", nullable=False)
    extra_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, nullable=False
    )
