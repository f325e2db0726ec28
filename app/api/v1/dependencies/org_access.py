"""Org-scoped row lookups shared across v1 routes."""

from typing import TypeVar

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelT = TypeVar("ModelT", bound=Base)


async def get_org_row(
    session: AsyncSession,
    model: type[ModelT],
    row_id: str,
    org_id: str,
    not_found_detail: str,
) -> ModelT:
    """Return a row only when it belongs to the caller's organization.

    Rows from other organizations are reported exactly like missing rows.
    """
    result = await session.execute(
        select(model).where(model.id == row_id, model.org_id == org_id)  # type: ignore[attr-defined]
    )
    row = result.scalar_one_or_none()

    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=not_found_detail,
        )

    return row
