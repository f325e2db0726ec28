"""Platform publishing endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.blog_publishing.constants import (
    POST_NOT_FOUND_DETAIL,
    PUBLISH_FORBIDDEN_DETAIL,
    PUBLISHABLE_QUEUE_STATUSES,
    PUBLISHING_NOT_FOUND_DETAIL,
    QUEUE_HAS_NO_POST_DETAIL,
    QUEUE_ITEM_NOT_FOUND_DETAIL,
    QUEUE_NOT_PUBLISHABLE_DETAIL,
    TARGET_REQUIRED_DETAIL,
    duplicate_publishing_detail,
    invalid_platform_detail,
)
from app.api.v1.dependencies import get_org_row
from app.dependencies import CurrentUser, DbSession
from app.models.blog import BlogGenerationQueueItem, BlogPlatformPublishing, BlogPost
from app.schemas.blog import (
    PlatformDeleteRequest,
    PublishingCreate,
    PublishingEnvelope,
    PublishingListResponse,
    PublishingResponse,
)
from app.services.publishing import (
    PublishFailedError,
    delete_from_platform,
    publish_to_platform,
    republish_on_platform,
    unpublish,
)
from app.services.rbac import PLATFORM_DELETE_ROLES, PUBLISHER_ROLES, require_role
from app.services.status_transitions import PLATFORMS

logger = logging.getLogger(__name__)

router = APIRouter()


async def _failure_response(
    session: AsyncSession,
    publishing: BlogPlatformPublishing,
    exc: PublishFailedError,
) -> JSONResponse:
    await session.refresh(publishing)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": exc.message,
            "details": exc.details,
            "publishing": PublishingResponse.model_validate(publishing).model_dump(mode="json"),
        },
    )


@router.get("", response_model=PublishingListResponse)
async def list_publishing(
    current_user: CurrentUser,
    session: DbSession,
    platform: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    post_id: str | None = Query(None),
) -> PublishingListResponse:
    query = select(BlogPlatformPublishing).where(
        BlogPlatformPublishing.org_id == current_user.org_id
    )
    if platform:
        query = query.where(BlogPlatformPublishing.platform == platform)
    if status_filter:
        query = query.where(BlogPlatformPublishing.status == status_filter)
    if post_id:
        query = query.where(BlogPlatformPublishing.post_id == post_id)
    query = query.order_by(BlogPlatformPublishing.created_at.desc())

    result = await session.execute(query)
    return PublishingListResponse(
        publishing=[PublishingResponse.model_validate(p) for p in result.scalars().all()]
    )


@router.post("", response_model=PublishingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_publishing(
    publishing_in: PublishingCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> PublishingEnvelope:
    """Target a post at a CMS platform, optionally on a schedule."""
    if not publishing_in.post_id and not publishing_in.queue_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=TARGET_REQUIRED_DETAIL)
    if publishing_in.platform not in PLATFORMS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=invalid_platform_detail(PLATFORMS),
        )

    post_id = publishing_in.post_id
    if publishing_in.queue_id:
        item = await get_org_row(
            session,
            BlogGenerationQueueItem,
            publishing_in.queue_id,
            current_user.org_id,
            QUEUE_ITEM_NOT_FOUND_DETAIL,
        )
        if item.status not in PUBLISHABLE_QUEUE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=QUEUE_NOT_PUBLISHABLE_DETAIL,
            )
        if not item.post_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=QUEUE_HAS_NO_POST_DETAIL,
            )
        post_id = item.post_id

    await get_org_row(session, BlogPost, post_id, current_user.org_id, POST_NOT_FOUND_DETAIL)

    existing = await session.execute(
        select(BlogPlatformPublishing.id).where(
            BlogPlatformPublishing.post_id == post_id,
            BlogPlatformPublishing.platform == publishing_in.platform,
        )
    )
    if existing.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=duplicate_publishing_detail(publishing_in.platform),
        )

    publishing = BlogPlatformPublishing(
        post_id=post_id,
        queue_id=publishing_in.queue_id,
        org_id=current_user.org_id,
        platform=publishing_in.platform,
        status="scheduled" if publishing_in.scheduled_at else "pending",
        scheduled_at=publishing_in.scheduled_at,
        publish_metadata=dict(publishing_in.publish_metadata),
        retry_count=0,
        extra_metadata={},
    )
    session.add(publishing)
    await session.flush()
    await session.refresh(publishing)

    logger.info(
        "Publishing record created",
        extra={
            "publishing_id": publishing.id,
            "post_id": post_id,
            "platform": publishing.platform,
            "status": publishing.status,
        },
    )
    return PublishingEnvelope(publishing=PublishingResponse.model_validate(publishing))


@router.get("/{publishing_id}", response_model=PublishingEnvelope)
async def get_publishing(
    publishing_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> PublishingEnvelope:
    publishing = await get_org_row(
        session,
        BlogPlatformPublishing,
        publishing_id,
        current_user.org_id,
        PUBLISHING_NOT_FOUND_DETAIL,
    )
    return PublishingEnvelope(publishing=PublishingResponse.model_validate(publishing))


@router.post("/{publishing_id}/publish", response_model=None)
async def publish(
    publishing_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> JSONResponse | dict:
    """Push the post to its CMS through the org's active integration.

    A CMS failure is recorded on the publishing row and answered with 500;
    the failure state is committed with the request.
    """
    require_role(current_user, PUBLISHER_ROLES, PUBLISH_FORBIDDEN_DETAIL)
    publishing = await get_org_row(
        session,
        BlogPlatformPublishing,
        publishing_id,
        current_user.org_id,
        PUBLISHING_NOT_FOUND_DETAIL,
    )

    try:
        result = await publish_to_platform(session, publishing, user_id=current_user.id)
    except PublishFailedError as exc:
        return await _failure_response(session, publishing, exc)

    await session.refresh(publishing)
    return {
        "success": True,
        "message": f"Blog post published successfully to {publishing.platform}",
        "result": result,
        "publishing": PublishingResponse.model_validate(publishing).model_dump(mode="json"),
    }


@router.post("/{publishing_id}/unpublish", response_model=PublishingEnvelope)
async def unpublish_publishing(
    publishing_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> PublishingEnvelope:
    require_role(current_user, PUBLISHER_ROLES, PUBLISH_FORBIDDEN_DETAIL)
    publishing = await get_org_row(
        session,
        BlogPlatformPublishing,
        publishing_id,
        current_user.org_id,
        PUBLISHING_NOT_FOUND_DETAIL,
    )
    unpublish(publishing)
    await session.flush()
    await session.refresh(publishing)

    logger.info(
        "Publishing marked unpublished",
        extra={"publishing_id": publishing.id, "platform": publishing.platform},
    )
    return PublishingEnvelope(publishing=PublishingResponse.model_validate(publishing))


@router.post("/{publishing_id}/republish", response_model=None)
async def republish(
    publishing_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> JSONResponse | dict:
    """Make an unpublished CMS item live again without creating a new one."""
    require_role(current_user, PUBLISHER_ROLES, PUBLISH_FORBIDDEN_DETAIL)
    publishing = await get_org_row(
        session,
        BlogPlatformPublishing,
        publishing_id,
        current_user.org_id,
        PUBLISHING_NOT_FOUND_DETAIL,
    )

    try:
        result = await republish_on_platform(session, publishing, user_id=current_user.id)
    except PublishFailedError as exc:
        return await _failure_response(session, publishing, exc)

    await session.refresh(publishing)
    return {
        "success": True,
        "message": f"Blog post republished successfully on {publishing.platform}",
        "result": result,
        "publishing": PublishingResponse.model_validate(publishing).model_dump(mode="json"),
    }


@router.post("/{publishing_id}/delete-from-platform", response_model=None)
async def delete_publishing_from_platform(
    publishing_id: str,
    current_user: CurrentUser,
    session: DbSession,
    options: PlatformDeleteRequest | None = None,
) -> JSONResponse | dict:
    require_role(current_user, PLATFORM_DELETE_ROLES, PUBLISH_FORBIDDEN_DETAIL)
    options = options or PlatformDeleteRequest()
    publishing = await get_org_row(
        session,
        BlogPlatformPublishing,
        publishing_id,
        current_user.org_id,
        PUBLISHING_NOT_FOUND_DETAIL,
    )

    try:
        result = await delete_from_platform(
            session,
            publishing,
            user_id=current_user.id,
            publish_site=options.publish_site_after,
            delete_record=options.delete_local_record,
        )
    except PublishFailedError as exc:
        return await _failure_response(session, publishing, exc)

    body: dict = {
        "success": True,
        "message": f"Blog post deleted from {publishing.platform}",
        "result": result,
    }
    if not options.delete_local_record:
        await session.refresh(publishing)
        body["publishing"] = PublishingResponse.model_validate(publishing).model_dump(mode="json")
    return body
