"""Organization integration endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dependencies import get_org_row
from app.dependencies import CurrentUser, DbSession
from app.models.integration import Integration
from app.schemas.integration import (
    IntegrationCreate,
    IntegrationListResponse,
    IntegrationResponse,
    IntegrationUpdate,
)
from app.services.rbac import USER_ADMIN_ROLES, require_role

logger = logging.getLogger(__name__)

router = APIRouter()

INTEGRATION_NOT_FOUND_DETAIL = "Integration not found"
MANAGE_FORBIDDEN_DETAIL = "Only organization admins can manage integrations"


def to_response(integration: Integration) -> IntegrationResponse:
    """Describe an integration without exposing its config values."""
    return IntegrationResponse(
        id=integration.id,
        org_id=integration.org_id,
        type=integration.type,
        name=integration.name,
        status=integration.status,
        config_keys=sorted((integration.config or {}).keys()),
        field_mappings=list(integration.field_mappings or []),
        health_status=integration.health_status,
        last_sync=integration.last_sync,
        metadata=dict(integration.extra_metadata or {}),
        created_at=integration.created_at,
        updated_at=integration.updated_at,
    )


async def _ensure_name_free(
    session: AsyncSession,
    org_id: str,
    integration_type: str,
    name: str,
    exclude_id: str | None = None,
) -> None:
    query = select(Integration.id).where(
        Integration.org_id == org_id,
        Integration.type == integration_type,
        Integration.name == name,
    )
    if exclude_id:
        query = query.where(Integration.id != exclude_id)
    if (await session.execute(query)).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'A {integration_type} integration named "{name}" already exists',
        )


@router.get("", response_model=IntegrationListResponse)
async def list_integrations(
    current_user: CurrentUser,
    session: DbSession,
    integration_type: str | None = Query(None, alias="type"),
) -> IntegrationListResponse:
    query = select(Integration).where(Integration.org_id == current_user.org_id)
    if integration_type:
        query = query.where(Integration.type == integration_type)
    query = query.order_by(Integration.created_at.desc())

    result = await session.execute(query)
    return IntegrationListResponse(
        integrations=[to_response(i) for i in result.scalars().all()]
    )


@router.post("", response_model=IntegrationResponse, status_code=status.HTTP_201_CREATED)
async def create_integration(
    integration_in: IntegrationCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> IntegrationResponse:
    """Connect an integration; config is encrypted at rest."""
    require_role(current_user, USER_ADMIN_ROLES, MANAGE_FORBIDDEN_DETAIL)
    await _ensure_name_free(
        session, current_user.org_id, integration_in.type, integration_in.name
    )

    integration = Integration(
        org_id=current_user.org_id,
        type=integration_in.type,
        name=integration_in.name,
        status=integration_in.status,
        config=dict(integration_in.config),
        field_mappings=[m.model_dump() for m in integration_in.field_mappings],
        extra_metadata=dict(integration_in.metadata),
    )
    session.add(integration)
    await session.flush()
    await session.refresh(integration)

    logger.info(
        "Integration created",
        extra={
            "integration_id": integration.id,
            "type": integration.type,
            "org_id": integration.org_id,
            "config_keys": sorted(integration_in.config),
        },
    )
    return to_response(integration)


@router.get("/{integration_id}", response_model=IntegrationResponse)
async def get_integration(
    integration_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> IntegrationResponse:
    integration = await get_org_row(
        session, Integration, integration_id, current_user.org_id, INTEGRATION_NOT_FOUND_DETAIL
    )
    return to_response(integration)


@router.patch("/{integration_id}", response_model=IntegrationResponse)
async def update_integration(
    integration_id: str,
    integration_in: IntegrationUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> IntegrationResponse:
    """Update an integration. Config keys are merged into the stored config."""
    require_role(current_user, USER_ADMIN_ROLES, MANAGE_FORBIDDEN_DETAIL)
    integration = await get_org_row(
        session, Integration, integration_id, current_user.org_id, INTEGRATION_NOT_FOUND_DETAIL
    )

    update_data = integration_in.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != integration.name:
        await _ensure_name_free(
            session,
            current_user.org_id,
            integration.type,
            update_data["name"],
            exclude_id=integration.id,
        )
        integration.name = update_data["name"]
    if integration_in.status is not None:
        integration.status = integration_in.status
    if integration_in.config is not None:
        integration.config = {**(integration.config or {}), **integration_in.config}
    if integration_in.field_mappings is not None:
        integration.field_mappings = [m.model_dump() for m in integration_in.field_mappings]
    if integration_in.health_status is not None:
        integration.health_status = integration_in.health_status
    if integration_in.metadata is not None:
        integration.extra_metadata = {
            **(integration.extra_metadata or {}),
            **integration_in.metadata,
        }

    await session.flush()
    await session.refresh(integration)

    logger.info(
        "Integration updated",
        extra={"integration_id": integration.id, "fields": sorted(update_data)},
    )
    return to_response(integration)


@router.delete("/{integration_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_integration(
    integration_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> Response:
    require_role(current_user, USER_ADMIN_ROLES, MANAGE_FORBIDDEN_DETAIL)
    integration = await get_org_row(
        session, Integration, integration_id, current_user.org_id, INTEGRATION_NOT_FOUND_DETAIL
    )
    await session.delete(integration)
    await session.flush()

    logger.info("Integration deleted", extra={"integration_id": integration_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
