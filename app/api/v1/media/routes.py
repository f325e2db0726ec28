"""Media library endpoints backed by the organization's Cloudinary account."""

import logging

from fastapi import APIRouter, File, Form, HTTPException, Query, Response, UploadFile, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dependencies import get_org_row
from app.core.exceptions import ExternalAPIError, OrganizationNotFoundError
from app.dependencies import CurrentUser, DbSession
from app.integrations.cloudinary import (
    CloudinaryClient,
    CloudinaryCredentials,
    credentials_from_settings,
    credentials_to_settings,
    org_folder,
)
from app.models.media import MediaAsset
from app.models.organization import Organization
from app.schemas.media import (
    CloudinaryCredentialsUpdate,
    CloudinaryTestResponse,
    MediaAssetResponse,
    MediaListResponse,
    MediaSyncResponse,
    MediaUploadResponse,
)
from app.services.media_library import new_asset, sync_resources
from app.services.rbac import USER_ADMIN_ROLES, require_role

logger = logging.getLogger(__name__)

router = APIRouter()

ASSET_NOT_FOUND_DETAIL = "Media asset not found"
UPLOAD_SOURCE_REQUIRED_DETAIL = "Provide a file or a url to upload"
CREDENTIALS_FORBIDDEN_DETAIL = "Only organization admins can configure Cloudinary"


async def _get_organization(session: AsyncSession, org_id: str) -> Organization:
    result = await session.execute(select(Organization).where(Organization.id == org_id))
    org = result.scalar_one_or_none()
    if org is None:
        raise OrganizationNotFoundError(org_id)
    return org


async def _org_credentials(session: AsyncSession, org_id: str) -> CloudinaryCredentials:
    org = await _get_organization(session, org_id)
    return credentials_from_settings(org.settings)


@router.get("", response_model=MediaListResponse)
async def list_media(
    current_user: CurrentUser,
    session: DbSession,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> MediaListResponse:
    base = select(MediaAsset).where(MediaAsset.org_id == current_user.org_id)
    total = await session.scalar(select(func.count()).select_from(base.subquery()))
    result = await session.execute(
        base.order_by(MediaAsset.created_at.desc()).limit(limit).offset(offset)
    )
    return MediaListResponse(
        items=[MediaAssetResponse.model_validate(a) for a in result.scalars().all()],
        total=total or 0,
        limit=limit,
        offset=offset,
    )


@router.post("/upload", response_model=MediaUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_media(
    current_user: CurrentUser,
    session: DbSession,
    file: UploadFile | None = File(None),
    url: str | None = Form(None),
    file_name: str | None = Form(None),
) -> MediaUploadResponse:
    """Upload a file or remote image URL into the org's Cloudinary folder."""
    if file is None and not url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=UPLOAD_SOURCE_REQUIRED_DETAIL,
        )

    credentials = await _org_credentials(session, current_user.org_id)
    folder = org_folder(current_user.org_id)
    async with CloudinaryClient(credentials) as client:
        if file is not None:
            resource = await client.upload(
                folder=folder,
                file_bytes=await file.read(),
                file_name=file.filename,
                content_type=file.content_type,
            )
        else:
            resource = await client.upload(folder=folder, remote_url=url)

    asset = new_asset(
        current_user.org_id,
        current_user.id,
        resource,
        file_name=file_name or (file.filename if file is not None else None),
    )
    session.add(asset)
    await session.flush()
    await session.refresh(asset)

    logger.info(
        "Media uploaded",
        extra={
            "asset_id": asset.id,
            "org_id": current_user.org_id,
            "public_id": resource.get("public_id"),
        },
    )
    return MediaUploadResponse(asset=MediaAssetResponse.model_validate(asset))


@router.post("/sync", response_model=MediaSyncResponse)
async def sync_media(current_user: CurrentUser, session: DbSession) -> MediaSyncResponse:
    """Mirror the org's Cloudinary folder into the media library."""
    credentials = await _org_credentials(session, current_user.org_id)
    async with CloudinaryClient(credentials, timeout=120.0) as client:
        resources = await client.iter_all_images(org_folder(current_user.org_id))

    counts = await sync_resources(session, current_user.org_id, current_user.id, resources)
    return MediaSyncResponse(
        synced=counts.synced,
        updated=counts.updated,
        skipped=counts.skipped,
        total=counts.total,
    )


@router.delete("/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media(
    asset_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> Response:
    asset = await get_org_row(
        session, MediaAsset, asset_id, current_user.org_id, ASSET_NOT_FOUND_DETAIL
    )
    await session.delete(asset)
    await session.flush()
    logger.info("Media asset deleted", extra={"asset_id": asset_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/cloudinary/credentials", response_model=CloudinaryTestResponse)
async def set_cloudinary_credentials(
    request: CloudinaryCredentialsUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> CloudinaryTestResponse:
    """Store Cloudinary credentials on the organization; the secret is encrypted."""
    require_role(current_user, USER_ADMIN_ROLES, CREDENTIALS_FORBIDDEN_DETAIL)
    org = await _get_organization(session, current_user.org_id)
    credentials = CloudinaryCredentials(**request.model_dump())
    org.settings = {**(org.settings or {}), "cloudinary": credentials_to_settings(credentials)}
    await session.flush()

    logger.info("Cloudinary credentials updated", extra={"org_id": org.id})
    return CloudinaryTestResponse(
        success=True,
        cloud_name=credentials.cloud_name,
        message="Cloudinary credentials saved",
    )


@router.get("/cloudinary/test", response_model=CloudinaryTestResponse)
async def test_cloudinary(current_user: CurrentUser, session: DbSession) -> CloudinaryTestResponse:
    credentials = await _org_credentials(session, current_user.org_id)
    try:
        async with CloudinaryClient(credentials, timeout=15.0) as client:
            await client.ping()
    except ExternalAPIError as exc:
        return CloudinaryTestResponse(
            success=False,
            cloud_name=credentials.cloud_name,
            message=exc.message,
        )
    return CloudinaryTestResponse(
        success=True,
        cloud_name=credentials.cloud_name,
        message="Cloudinary connection successful",
    )
