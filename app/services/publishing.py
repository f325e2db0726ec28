"""Publishing of blog posts to connected CMS platforms."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BlogWriterError,
    IntegrationNotConfiguredError,
    ResourceNotFoundError,
)
from app.integrations.cms import PublishablePost, PublishResult, WebflowPublisher, get_publisher
from app.models.blog import BlogGenerationQueueItem, BlogPlatformPublishing, BlogPost
from app.models.integration import Integration
from app.services.status_transitions import (
    PLATFORM_TRANSITIONS,
    can_transition_queue,
    ensure_transition,
)

logger = logging.getLogger(__name__)

PUBLISH_ERROR_CODE = "PUBLISH_ERROR"
SYNC_IN_SYNC = "in_sync"
SYNC_FAILED = "sync_failed"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PublishFailedError(BlogWriterError):
    """The CMS rejected or could not receive the post."""

    status_code = 500


class PlatformActionError(BlogWriterError):
    """The publication cannot take the requested platform action."""

    status_code = 400


# Errors a CMS round trip can end in; ValueError covers unknown platforms.
PLATFORM_ERRORS = (BlogWriterError, httpx.HTTPError, ValueError)

# Platforms whose items can be republished or deleted in place.
ITEM_SYNC_PLATFORMS = frozenset({"webflow"})


def _failure_message(exc: Exception) -> str:
    if isinstance(exc, BlogWriterError):
        return exc.message
    return str(exc) or type(exc).__name__


def publishable_from_post(post: BlogPost) -> PublishablePost:
    """Collect the CMS-facing fields of a stored post."""
    metadata = post.extra_metadata or {}
    seo = post.seo_data or {}
    return PublishablePost(
        title=post.title,
        content=post.content or "",
        excerpt=post.excerpt or None,
        slug=post.slug or metadata.get("slug"),
        featured_image=metadata.get("featured_image"),
        featured_image_alt=metadata.get("featured_image_alt"),
        seo_title=seo.get("meta_title"),
        seo_description=seo.get("meta_description"),
        published_at=_utc_now().isoformat(),
        tags=list(seo.get("keywords") or []),
    )


def apply_publish_success(
    publishing: BlogPlatformPublishing,
    result: PublishResult,
    *,
    published_by: str,
    published_at: datetime,
) -> None:
    publishing.status = "published"
    publishing.platform_post_id = result.platform_post_id
    publishing.platform_url = result.url
    publishing.published_at = published_at
    publishing.published_by = published_by
    publishing.sync_status = SYNC_IN_SYNC
    publishing.last_synced_at = published_at
    publishing.error_message = None
    publishing.error_code = None
    publishing.publish_metadata = {
        **(publishing.publish_metadata or {}),
        "platform_item_id": result.platform_post_id,
        "platform_url": result.url,
        "published": result.published,
        "synced_at": published_at.isoformat(),
    }


def apply_publish_failure(publishing: BlogPlatformPublishing, error_message: str) -> None:
    publishing.status = "failed"
    publishing.error_message = error_message
    publishing.error_code = PUBLISH_ERROR_CODE
    publishing.sync_status = SYNC_FAILED
    publishing.retry_count = int(publishing.retry_count or 0) + 1


def advance_queue_to_published(item: BlogGenerationQueueItem) -> bool:
    """Move a linked queue item to ``published`` through ``publishing`` where allowed."""
    if item.status != "publishing" and can_transition_queue(item.status, "publishing"):
        item.status = "publishing"
    if can_transition_queue(item.status, "published"):
        item.status = "published"
        return True
    return False


async def get_active_integration(
    session: AsyncSession,
    org_id: str,
    platform: str,
) -> Integration:
    result = await session.execute(
        select(Integration)
        .where(
            Integration.org_id == org_id,
            Integration.type == platform,
            Integration.status == "active",
        )
        .order_by(Integration.updated_at.desc())
    )
    integration = result.scalars().first()
    if integration is None:
        raise IntegrationNotConfiguredError(
            f"No active {platform} integration configured for this organization",
            {"platform": platform},
        )
    return integration


async def publish_to_platform(
    session: AsyncSession,
    publishing: BlogPlatformPublishing,
    *,
    user_id: str,
) -> dict[str, Any]:
    """Publish ``publishing.post_id`` through the org's active integration.

    Invalid transitions and a missing integration raise before any state
    changes. Failures from the CMS are recorded on the row and re-raised as
    ``PublishFailedError`` after the failure state has been flushed.
    """
    ensure_transition("publishing", PLATFORM_TRANSITIONS, publishing.status, "publishing")
    integration = await get_active_integration(session, publishing.org_id, publishing.platform)

    result = await session.execute(
        select(BlogPost).where(
            BlogPost.id == publishing.post_id,
            BlogPost.org_id == publishing.org_id,
        )
    )
    post = result.scalar_one_or_none()
    if post is None:
        raise ResourceNotFoundError("Blog post", publishing.post_id)

    publishing.status = "publishing"
    await session.flush()

    logger.info(
        "Publishing post to platform",
        extra={
            "publishing_id": publishing.id,
            "post_id": post.id,
            "platform": publishing.platform,
            "integration_id": integration.id,
        },
    )

    try:
        publisher = get_publisher(
            publishing.platform,
            integration.config or {},
            integration.field_mappings or [],
        )
        publish_result = await publisher.publish(publishable_from_post(post))
    except PLATFORM_ERRORS as exc:
        message = _failure_message(exc)
        logger.warning(
            "Platform publish failed",
            extra={
                "publishing_id": publishing.id,
                "platform": publishing.platform,
                "error": message,
            },
        )
        apply_publish_failure(publishing, message or "Publishing failed")
        await session.flush()
        raise PublishFailedError(
            "Failed to publish to platform",
            {"message": message, "publishing_id": publishing.id},
        ) from exc

    now = _utc_now()
    apply_publish_success(publishing, publish_result, published_by=user_id, published_at=now)

    post.status = "published"
    post.published_at = post.published_at or now

    if publishing.queue_id:
        queue_result = await session.execute(
            select(BlogGenerationQueueItem).where(
                BlogGenerationQueueItem.id == publishing.queue_id,
                BlogGenerationQueueItem.org_id == publishing.org_id,
            )
        )
        item = queue_result.scalar_one_or_none()
        if item is not None and not advance_queue_to_published(item):
            logger.info(
                "Queue item left in place after publish",
                extra={"queue_id": item.id, "status": item.status},
            )

    integration.last_sync = now
    await session.flush()

    logger.info(
        "Post published",
        extra={
            "publishing_id": publishing.id,
            "platform": publishing.platform,
            "platform_post_id": publish_result.platform_post_id,
            "published": publish_result.published,
        },
    )
    return {
        "platform_post_id": publish_result.platform_post_id,
        "url": publish_result.url,
        "published": publish_result.published,
    }


def unpublish(publishing: BlogPlatformPublishing) -> None:
    ensure_transition("publishing", PLATFORM_TRANSITIONS, publishing.status, "unpublished")
    publishing.status = "unpublished"
    publishing.last_synced_at = _utc_now()


def item_sync_publisher(platform: str, integration: Integration) -> WebflowPublisher:
    if platform not in ITEM_SYNC_PLATFORMS:
        raise PlatformActionError(
            f"Republishing and deleting on {platform} is not supported",
            {"platform": platform},
        )
    return WebflowPublisher(integration.config or {}, integration.field_mappings or [])


def _require_platform_item(publishing: BlogPlatformPublishing, action: str) -> str:
    if not publishing.platform_post_id:
        raise PlatformActionError(
            f"Cannot {action}: no platform item id found. "
            "This item may not have been published to the platform."
        )
    return publishing.platform_post_id


async def _record_sync_failure(
    session: AsyncSession,
    publishing: BlogPlatformPublishing,
    action: str,
    exc: Exception,
) -> PublishFailedError:
    message = _failure_message(exc)
    logger.warning(
        "Platform sync action failed",
        extra={"publishing_id": publishing.id, "action": action, "error": message},
    )
    publishing.error_message = f"{action.capitalize()} failed: {message}"
    publishing.sync_status = SYNC_FAILED
    await session.flush()
    return PublishFailedError(
        f"Failed to {action} on platform",
        {"message": message, "publishing_id": publishing.id},
    )


async def republish_on_platform(
    session: AsyncSession,
    publishing: BlogPlatformPublishing,
    *,
    user_id: str,
) -> dict[str, Any]:
    """Make a previously unpublished CMS item live again."""
    if publishing.status != "unpublished":
        raise PlatformActionError(
            f"Cannot republish: current status is {publishing.status}. "
            "Only unpublished items can be republished."
        )
    item_id = _require_platform_item(publishing, "republish")
    integration = await get_active_integration(session, publishing.org_id, publishing.platform)
    publisher = item_sync_publisher(publishing.platform, integration)

    try:
        result = await publisher.republish(item_id)
    except PLATFORM_ERRORS as exc:
        raise await _record_sync_failure(session, publishing, "republish", exc) from exc

    now = _utc_now()
    publishing.status = "published"
    publishing.sync_status = SYNC_IN_SYNC
    publishing.last_synced_at = now
    publishing.published_at = now
    publishing.error_message = None
    publishing.error_code = None
    publishing.publish_metadata = {
        **(publishing.publish_metadata or {}),
        "republished_at": now.isoformat(),
        "republished_by": user_id,
        "site_published": result.published,
    }
    await session.flush()

    logger.info(
        "Publication republished",
        extra={"publishing_id": publishing.id, "item_id": result.platform_post_id},
    )
    return {"item_id": result.platform_post_id, "site_published": result.published}


async def delete_from_platform(
    session: AsyncSession,
    publishing: BlogPlatformPublishing,
    *,
    user_id: str,
    publish_site: bool = True,
    delete_record: bool = False,
) -> dict[str, Any]:
    """Remove the CMS item; keep the row as ``pending`` unless ``delete_record``."""
    item_id = _require_platform_item(publishing, "delete")
    integration = await get_active_integration(session, publishing.org_id, publishing.platform)
    publisher = item_sync_publisher(publishing.platform, integration)

    try:
        site_published = await publisher.delete_item(item_id, publish_site=publish_site)
    except PLATFORM_ERRORS as exc:
        raise await _record_sync_failure(session, publishing, "delete", exc) from exc

    result = {"item_id": item_id, "site_published": site_published, "record_deleted": delete_record}
    if delete_record:
        await session.delete(publishing)
        await session.flush()
        logger.info("Publication deleted with platform item", extra={"item_id": item_id})
        return result

    now = _utc_now()
    publishing.status = "pending"
    publishing.platform_post_id = None
    publishing.platform_url = None
    publishing.sync_status = "not_synced"
    publishing.last_synced_at = now
    publishing.error_message = None
    publishing.error_code = None
    publishing.publish_metadata = {
        **(publishing.publish_metadata or {}),
        "deleted_from_platform_at": now.isoformat(),
        "deleted_by": user_id,
        "previous_item_id": item_id,
    }
    await session.flush()

    logger.info(
        "Platform item deleted; publication reset to pending",
        extra={"publishing_id": publishing.id, "item_id": item_id},
    )
    return result
