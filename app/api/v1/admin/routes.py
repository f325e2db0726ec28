"""Organization and user administration endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.admin.constants import (
    ELEVATED_ROLE_DETAIL,
    EMAIL_TAKEN_DETAIL,
    ORG_ID_REQUIRED_DETAIL,
    ORGANIZATION_NOT_FOUND_DETAIL,
    SYSTEM_ADMIN_REQUIRED_DETAIL,
    USER_ADMIN_REQUIRED_DETAIL,
    USER_NOT_FOUND_DETAIL,
    duplicate_slug_detail,
    invalid_role_detail,
)
from app.core.security import get_password_hash
from app.dependencies import CurrentUser, DbSession
from app.models.organization import Organization
from app.models.user import User
from app.schemas.admin import (
    AdminUserCreate,
    AdminUserEnvelope,
    AdminUserListResponse,
    AdminUserResponse,
    AdminUserUpdate,
    OrganizationCreate,
    OrganizationEnvelope,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdate,
)
from app.services.content_text import slugify
from app.services.rbac import (
    ASSIGNABLE_ROLES,
    SYSTEM_ADMIN_ROLES,
    USER_ADMIN_ROLES,
    can_assign_role,
    is_system_admin,
    require_role,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_organization(session: AsyncSession, org_id: str) -> Organization:
    organization = await session.get(Organization, org_id)
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ORGANIZATION_NOT_FOUND_DETAIL,
        )
    return organization


async def _ensure_slug_free(
    session: AsyncSession,
    slug: str,
    exclude_id: str | None = None,
) -> None:
    query = select(Organization.id).where(Organization.slug == slug)
    if exclude_id:
        query = query.where(Organization.id != exclude_id)
    if (await session.execute(query)).scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=duplicate_slug_detail(slug),
        )


def _check_assignable(actor: User, role: str) -> None:
    if role not in ASSIGNABLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=invalid_role_detail(ASSIGNABLE_ROLES),
        )
    if not can_assign_role(actor.role, role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=ELEVATED_ROLE_DETAIL)


# Organizations


@router.get("/organizations", response_model=OrganizationListResponse)
async def list_organizations(
    current_user: CurrentUser,
    session: DbSession,
) -> OrganizationListResponse:
    """List every organization, newest first."""
    require_role(current_user, SYSTEM_ADMIN_ROLES, SYSTEM_ADMIN_REQUIRED_DETAIL)

    result = await session.execute(
        select(Organization).order_by(Organization.created_at.desc())
    )
    organizations = result.scalars().all()
    return OrganizationListResponse(
        data=[OrganizationResponse.model_validate(org) for org in organizations]
    )


@router.post(
    "/organizations",
    response_model=OrganizationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_organization(
    org_in: OrganizationCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> OrganizationEnvelope:
    """Create an organization; the slug defaults to the slugified name."""
    require_role(current_user, SYSTEM_ADMIN_ROLES, SYSTEM_ADMIN_REQUIRED_DETAIL)

    slug = slugify(org_in.slug or org_in.name)
    if not slug:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Organization slug cannot be empty",
        )
    await _ensure_slug_free(session, slug)

    organization = Organization(
        name=org_in.name,
        slug=slug,
        subscription_tier=org_in.subscription_tier,
        api_quota_monthly=org_in.api_quota_monthly,
        api_quota_used=0,
        settings=dict(org_in.settings),
    )
    session.add(organization)
    await session.flush()
    await session.refresh(organization)

    logger.info(
        "Organization created",
        extra={"org_id": organization.id, "slug": slug, "created_by": current_user.id},
    )
    return OrganizationEnvelope(data=OrganizationResponse.model_validate(organization))


@router.get("/organizations/{org_id}", response_model=OrganizationEnvelope)
async def get_organization(
    org_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> OrganizationEnvelope:
    require_role(current_user, SYSTEM_ADMIN_ROLES, SYSTEM_ADMIN_REQUIRED_DETAIL)
    organization = await _get_organization(session, org_id)
    return OrganizationEnvelope(data=OrganizationResponse.model_validate(organization))


@router.put("/organizations/{org_id}", response_model=OrganizationEnvelope)
async def update_organization(
    org_id: str,
    org_in: OrganizationUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> OrganizationEnvelope:
    """Partially update an organization."""
    require_role(current_user, SYSTEM_ADMIN_ROLES, SYSTEM_ADMIN_REQUIRED_DETAIL)
    organization = await _get_organization(session, org_id)

    update_data = org_in.model_dump(exclude_unset=True)
    if update_data.get("slug") is not None:
        slug = slugify(update_data["slug"])
        if slug != organization.slug:
            await _ensure_slug_free(session, slug, exclude_id=organization.id)
        update_data["slug"] = slug

    for field, value in update_data.items():
        if value is not None:
            setattr(organization, field, value)

    await session.flush()
    await session.refresh(organization)

    logger.info(
        "Organization updated",
        extra={"org_id": organization.id, "fields": sorted(update_data)},
    )
    return OrganizationEnvelope(data=OrganizationResponse.model_validate(organization))


@router.delete("/organizations/{org_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    org_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> Response:
    require_role(current_user, SYSTEM_ADMIN_ROLES, SYSTEM_ADMIN_REQUIRED_DETAIL)
    organization = await _get_organization(session, org_id)

    await session.delete(organization)
    await session.flush()

    logger.warning(
        "Organization deleted",
        extra={"org_id": org_id, "deleted_by": current_user.id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Users


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    current_user: CurrentUser,
    session: DbSession,
    org_id: str | None = Query(None),
) -> AdminUserListResponse:
    """List users; organization admins only see their own organization."""
    require_role(current_user, USER_ADMIN_ROLES, USER_ADMIN_REQUIRED_DETAIL)

    query = select(User).order_by(User.created_at.desc())
    if is_system_admin(current_user):
        if org_id:
            query = query.where(User.org_id == org_id)
    else:
        query = query.where(User.org_id == current_user.org_id)

    result = await session.execute(query)
    return AdminUserListResponse(
        data=[AdminUserResponse.model_validate(user) for user in result.scalars().all()]
    )


@router.post(
    "/users",
    response_model=AdminUserEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    user_in: AdminUserCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> AdminUserEnvelope:
    """Create a user inside an organization."""
    require_role(current_user, USER_ADMIN_ROLES, USER_ADMIN_REQUIRED_DETAIL)

    if is_system_admin(current_user):
        if not user_in.org_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=ORG_ID_REQUIRED_DETAIL,
            )
        target_org_id = user_in.org_id
    else:
        target_org_id = current_user.org_id

    _check_assignable(current_user, user_in.role)
    await _get_organization(session, target_org_id)

    existing = await session.execute(select(User.id).where(User.email == user_in.email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_TAKEN_DETAIL)

    user = User(
        org_id=target_org_id,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
        full_name=user_in.full_name,
        role=user_in.role,
        permissions=dict(user_in.permissions),
        is_active=True,
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)

    logger.info(
        "User created by admin",
        extra={
            "user_id": user.id,
            "org_id": target_org_id,
            "role": user.role,
            "created_by": current_user.id,
        },
    )
    return AdminUserEnvelope(data=AdminUserResponse.model_validate(user))


@router.patch("/users/{user_id}", response_model=AdminUserEnvelope)
async def update_user(
    user_id: str,
    user_in: AdminUserUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> AdminUserEnvelope:
    """Update role, name, activation or permissions of a user."""
    require_role(current_user, USER_ADMIN_ROLES, USER_ADMIN_REQUIRED_DETAIL)

    query = select(User).where(User.id == user_id)
    if not is_system_admin(current_user):
        query = query.where(User.org_id == current_user.org_id)
    user = (await session.execute(query)).scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_DETAIL)

    update_data = user_in.model_dump(exclude_unset=True)
    if update_data.get("role") is not None:
        _check_assignable(current_user, update_data["role"])

    for field, value in update_data.items():
        if value is not None:
            setattr(user, field, value)

    await session.flush()
    await session.refresh(user)

    logger.info(
        "User updated by admin",
        extra={"user_id": user.id, "fields": sorted(update_data), "updated_by": current_user.id},
    )
    return AdminUserEnvelope(data=AdminUserResponse.model_validate(user))
