"""Base model and mixins for SQLAlchemy models."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import String, Text, TypeDecorator


def generate_id() -> str:
    """Return a new 32-char hex primary key."""
    return uuid.uuid4().hex


class StringID(TypeDecorator):
    """String identifier type for uuid hex values."""

    impl = String(32)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


class EncryptedJSON(TypeDecorator):
    """JSON mapping stored as a Fernet ciphertext."""

    impl = Text
    cache_ok = False

    def process_bind_param(self, value: dict[str, Any] | None, dialect):
        if not value:
            return None

        from app.core.field_encryption import encrypt_json

        return encrypt_json(dict(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return {}

        from app.core.field_encryption import decrypt_json

        return decrypt_json(str(value))


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class UUIDMixin:
    """Mixin that adds a uuid-hex string primary key."""

    id: Mapped[str] = mapped_column(
        StringID(),
        primary_key=True,
        default=generate_id,
    )


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
