"""Blog generation queue endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select

from app.api.v1.blog_queue.constants import (
    DEFAULT_LIMIT,
    INVALID_TRANSITION_ERROR,
    MAX_LIMIT,
    QUEUE_EDIT_FORBIDDEN_DETAIL,
    QUEUE_ITEM_NOT_FOUND_DETAIL,
)
from app.api.v1.dependencies import get_org_row
from app.dependencies import CurrentUser, DbSession
from app.models.blog import BlogGenerationQueueItem
from app.models.user import User
from app.schemas.blog import (
    Pagination,
    QueueItemCreate,
    QueueItemEnvelope,
    QueueItemResponse,
    QueueItemUpdate,
    QueueListResponse,
    QueueSortField,
    SortOrder,
)
from app.services.blog_posts import create_draft_from_queue
from app.services.rbac import CONTENT_MANAGER_ROLES, has_role
from app.services.status_transitions import can_transition_queue

logger = logging.getLogger(__name__)

router = APIRouter()

_SORT_COLUMNS = {
    "queued_at": BlogGenerationQueueItem.queued_at,
    "priority": BlogGenerationQueueItem.priority,
    "created_at": BlogGenerationQueueItem.created_at,
    "status": BlogGenerationQueueItem.status,
}


def _ensure_can_edit(item: BlogGenerationQueueItem, user: User) -> None:
    if item.created_by != user.id and not has_role(user, CONTENT_MANAGER_ROLES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=QUEUE_EDIT_FORBIDDEN_DETAIL,
        )


def _ensure_queue_transition(item: BlogGenerationQueueItem, requested: str) -> None:
    if not can_transition_queue(item.status, requested):
        logger.warning(
            "Rejected queue status transition",
            extra={"queue_id": item.id, "current": item.status, "requested": requested},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": INVALID_TRANSITION_ERROR,
                "current_status": item.status,
                "requested_status": requested,
            },
        )


def apply_status_change(item: BlogGenerationQueueItem, requested: str, now: datetime) -> None:
    """Validate and apply a queue status change with its timestamps."""
    _ensure_queue_transition(item, requested)
    item.status = requested
    if requested == "generating":
        item.generation_started_at = now
    elif requested == "generated":
        item.generation_completed_at = now


def clamp_progress(value: int) -> int:
    return max(0, min(100, value))


@router.get("", response_model=QueueListResponse)
async def list_queue_items(
    current_user: CurrentUser,
    session: DbSession,
    status_filter: str | None = Query(None, alias="status"),
    priority: int | None = Query(None, ge=1, le=10),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    sort_by: QueueSortField = Query("queued_at"),
    order: SortOrder = Query("desc"),
) -> QueueListResponse:
    """List the organization's queue items with filters and pagination."""
    query = select(BlogGenerationQueueItem).where(
        BlogGenerationQueueItem.org_id == current_user.org_id
    )
    if status_filter:
        query = query.where(BlogGenerationQueueItem.status == status_filter)
    if priority is not None:
        query = query.where(BlogGenerationQueueItem.priority == priority)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await session.execute(count_query)).scalar() or 0

    sort_column = _SORT_COLUMNS[sort_by]
    query = query.order_by(sort_column.asc() if order == "asc" else sort_column.desc())
    query = query.offset(offset).limit(limit)

    result = await session.execute(query)
    items = result.scalars().all()

    return QueueListResponse(
        items=[QueueItemResponse.model_validate(item) for item in items],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(items) < total,
        ),
    )


@router.post("", response_model=QueueItemEnvelope, status_code=status.HTTP_201_CREATED)
async def create_queue_item(
    item_in: QueueItemCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> QueueItemEnvelope:
    """Queue a blog generation request."""
    item = BlogGenerationQueueItem(
        org_id=current_user.org_id,
        created_by=current_user.id,
        topic=item_in.topic,
        keywords=list(item_in.keywords),
        target_audience=item_in.target_audience,
        tone=item_in.tone,
        word_count=item_in.word_count,
        quality_level=item_in.quality_level,
        custom_instructions=item_in.custom_instructions,
        template_type=item_in.template_type,
        priority=item_in.priority,
        status="queued",
        progress_percentage=0,
        progress_updates=[],
        generation_metadata={},
        extra_metadata=dict(item_in.metadata),
    )
    session.add(item)
    await session.flush()
    await session.refresh(item)

    logger.info(
        "Queue item created",
        extra={"queue_id": item.id, "org_id": item.org_id, "priority": item.priority},
    )
    return QueueItemEnvelope(queue_item=QueueItemResponse.model_validate(item))


@router.get("/{queue_id}", response_model=QueueItemEnvelope)
async def get_queue_item(
    queue_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> QueueItemEnvelope:
    item = await get_org_row(
        session, BlogGenerationQueueItem, queue_id, current_user.org_id, QUEUE_ITEM_NOT_FOUND_DETAIL
    )
    return QueueItemEnvelope(queue_item=QueueItemResponse.model_validate(item))


@router.patch("/{queue_id}", response_model=QueueItemEnvelope)
async def update_queue_item(
    queue_id: str,
    item_in: QueueItemUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> QueueItemEnvelope:
    """Patch a queue item.

    Status changes follow the queue lifecycle. Reaching ``generated`` with
    content but no linked post creates the draft post.
    """
    item = await get_org_row(
        session, BlogGenerationQueueItem, queue_id, current_user.org_id, QUEUE_ITEM_NOT_FOUND_DETAIL
    )
    _ensure_can_edit(item, current_user)

    update_data = item_in.model_dump(exclude_unset=True)
    requested_status = update_data.pop("status", None)
    metadata = update_data.pop("metadata", None)
    progress = update_data.pop("progress_percentage", None)

    now = datetime.now(timezone.utc)
    if requested_status and requested_status != item.status:
        apply_status_change(item, requested_status, now)

    for field, value in update_data.items():
        setattr(item, field, value)
    if progress is not None:
        item.progress_percentage = clamp_progress(progress)
    if metadata is not None:
        item.extra_metadata = {**(item.extra_metadata or {}), **metadata}

    if item.status == "generated" and item.generated_content and not item.post_id:
        await create_draft_from_queue(session, item)

    await session.flush()
    await session.refresh(item)

    logger.info(
        "Queue item updated",
        extra={"queue_id": item.id, "status": item.status, "fields": sorted(update_data)},
    )
    return QueueItemEnvelope(queue_item=QueueItemResponse.model_validate(item))


@router.delete("/{queue_id}", response_model=QueueItemEnvelope)
async def cancel_queue_item(
    queue_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> QueueItemEnvelope:
    """Cancel a queue item; the row is kept for history."""
    item = await get_org_row(
        session, BlogGenerationQueueItem, queue_id, current_user.org_id, QUEUE_ITEM_NOT_FOUND_DETAIL
    )
    _ensure_can_edit(item, current_user)
    _ensure_queue_transition(item, "cancelled")

    item.status = "cancelled"
    await session.flush()
    await session.refresh(item)

    logger.info("Queue item cancelled", extra={"queue_id": item.id})
    return QueueItemEnvelope(queue_item=QueueItemResponse.model_validate(item))
