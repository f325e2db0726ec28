"""Saved content generation presets."""

import logging

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dependencies import get_org_row
from app.dependencies import CurrentUser, DbSession
from app.models.preset import ContentPreset
from app.schemas.preset import PresetCreate, PresetListResponse, PresetResponse, PresetUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

PRESET_NOT_FOUND_DETAIL = "Content preset not found"


async def _ensure_name_free(
    session: AsyncSession,
    org_id: str,
    name: str,
    exclude_id: str | None = None,
) -> None:
    query = select(ContentPreset.id).where(
        ContentPreset.org_id == org_id,
        ContentPreset.name == name,
    )
    if exclude_id:
        query = query.where(ContentPreset.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'A preset named "{name}" already exists',
        )


async def _clear_other_defaults(session: AsyncSession, org_id: str, keep_id: str) -> None:
    await session.execute(
        update(ContentPreset)
        .where(
            ContentPreset.org_id == org_id,
            ContentPreset.id != keep_id,
            ContentPreset.is_default.is_(True),
        )
        .values(is_default=False)
    )


@router.get("", response_model=PresetListResponse)
async def list_presets(current_user: CurrentUser, session: DbSession) -> PresetListResponse:
    result = await session.execute(
        select(ContentPreset)
        .where(ContentPreset.org_id == current_user.org_id)
        .order_by(ContentPreset.is_default.desc(), ContentPreset.name)
    )
    return PresetListResponse(
        presets=[PresetResponse.model_validate(p) for p in result.scalars().all()]
    )


@router.post("", response_model=PresetResponse, status_code=status.HTTP_201_CREATED)
async def create_preset(
    preset_in: PresetCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> PresetResponse:
    await _ensure_name_free(session, current_user.org_id, preset_in.name)

    preset = ContentPreset(org_id=current_user.org_id, **preset_in.model_dump())
    session.add(preset)
    await session.flush()
    if preset.is_default:
        await _clear_other_defaults(session, current_user.org_id, preset.id)
    await session.refresh(preset)

    logger.info(
        "Content preset created",
        extra={"preset_id": preset.id, "org_id": preset.org_id, "is_default": preset.is_default},
    )
    return PresetResponse.model_validate(preset)


@router.get("/{preset_id}", response_model=PresetResponse)
async def get_preset(
    preset_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> PresetResponse:
    preset = await get_org_row(
        session, ContentPreset, preset_id, current_user.org_id, PRESET_NOT_FOUND_DETAIL
    )
    return PresetResponse.model_validate(preset)


@router.put("/{preset_id}", response_model=PresetResponse)
async def update_preset(
    preset_id: str,
    preset_in: PresetUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> PresetResponse:
    preset = await get_org_row(
        session, ContentPreset, preset_id, current_user.org_id, PRESET_NOT_FOUND_DETAIL
    )
    update_data = preset_in.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != preset.name:
        await _ensure_name_free(
            session, current_user.org_id, update_data["name"], exclude_id=preset.id
        )

    for field, value in update_data.items():
        if value is not None:
            setattr(preset, field, value)

    await session.flush()
    if preset.is_default:
        await _clear_other_defaults(session, current_user.org_id, preset.id)
    await session.refresh(preset)
    return PresetResponse.model_validate(preset)


@router.delete("/{preset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_preset(
    preset_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> Response:
    preset = await get_org_row(
        session, ContentPreset, preset_id, current_user.org_id, PRESET_NOT_FOUND_DETAIL
    )
    await session.delete(preset)
    await session.flush()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
