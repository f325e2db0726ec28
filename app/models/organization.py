"""Organization (tenant) model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.user import User


class Organization(Base, UUIDMixin, TimestampMixin):
    """Tenant boundary; almost every other table is scoped by org_id."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    subscription_tier: Mapped[str] = mapped_column(String(50), default="free", nullable=False)
    api_quota_monthly: Mapped[int] = mapped_column(Integer, default=10000, nullable=False)
    api_quota_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Holds per-org provider settings, e.g. {"cloudinary": {...}}
    settings: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)

    users: Mapped[list[User]] = relationship(
        "User",
        back_populates="organization",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Organization {self.slug}>"
