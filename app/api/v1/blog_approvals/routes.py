"""Blog approval workflow endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.blog_approvals.constants import (
    APPROVAL_NOT_FOUND_DETAIL,
    PENDING_EXISTS_DETAIL,
    QUEUE_ITEM_NOT_FOUND_DETAIL,
    REVIEW_FORBIDDEN_DETAIL,
    TARGET_REQUIRED_DETAIL,
    not_reviewable_detail,
)
from app.api.v1.dependencies import get_org_row
from app.dependencies import CurrentUser, DbSession
from app.models.blog import BlogApproval, BlogGenerationQueueItem
from app.schemas.blog import (
    ApprovalCreate,
    ApprovalEnvelope,
    ApprovalListResponse,
    ApprovalResponse,
    ApprovalUpdate,
)
from app.services.rbac import CONTENT_MANAGER_ROLES, require_role
from app.services.status_transitions import (
    APPROVAL_TO_QUEUE_STATUS,
    APPROVAL_TRANSITIONS,
    ensure_transition,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _resolve_queue_item(
    session: AsyncSession,
    org_id: str,
    approval_in: ApprovalCreate,
) -> BlogGenerationQueueItem:
    if approval_in.queue_id:
        return await get_org_row(
            session,
            BlogGenerationQueueItem,
            approval_in.queue_id,
            org_id,
            QUEUE_ITEM_NOT_FOUND_DETAIL,
        )

    result = await session.execute(
        select(BlogGenerationQueueItem)
        .where(
            BlogGenerationQueueItem.post_id == approval_in.post_id,
            BlogGenerationQueueItem.org_id == org_id,
        )
        .order_by(BlogGenerationQueueItem.created_at.desc())
    )
    item = result.scalars().first()
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=QUEUE_ITEM_NOT_FOUND_DETAIL,
        )
    return item


async def _ensure_no_pending_approval(
    session: AsyncSession,
    queue_id: str,
    exclude_id: str | None = None,
) -> None:
    """At most one approval per queue item may be pending."""
    query = select(BlogApproval.id).where(
        BlogApproval.queue_id == queue_id,
        BlogApproval.status == "pending",
    )
    if exclude_id is not None:
        query = query.where(BlogApproval.id != exclude_id)
    pending = await session.execute(query)
    if pending.first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=PENDING_EXISTS_DETAIL)


@router.get("", response_model=ApprovalListResponse)
async def list_approvals(
    current_user: CurrentUser,
    session: DbSession,
    status_filter: str | None = Query(None, alias="status"),
    queue_id: str | None = Query(None),
) -> ApprovalListResponse:
    """List the organization's approvals, newest first."""
    query = select(BlogApproval).where(BlogApproval.org_id == current_user.org_id)
    if status_filter:
        query = query.where(BlogApproval.status == status_filter)
    if queue_id:
        query = query.where(BlogApproval.queue_id == queue_id)
    query = query.order_by(BlogApproval.requested_at.desc())

    result = await session.execute(query)
    return ApprovalListResponse(
        approvals=[ApprovalResponse.model_validate(a) for a in result.scalars().all()]
    )


@router.post("", response_model=ApprovalEnvelope, status_code=status.HTTP_201_CREATED)
async def request_approval(
    approval_in: ApprovalCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> ApprovalEnvelope:
    """Submit a generated queue item for review."""
    if not approval_in.queue_id and not approval_in.post_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=TARGET_REQUIRED_DETAIL)

    item = await _resolve_queue_item(session, current_user.org_id, approval_in)
    if item.status != "generated":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=not_reviewable_detail(item.status),
        )

    await _ensure_no_pending_approval(session, item.id)

    previous = await session.execute(
        select(BlogApproval)
        .where(BlogApproval.queue_id == item.id)
        .order_by(BlogApproval.revision_number.desc())
        .limit(1)
    )
    previous_approval = previous.scalar_one_or_none()

    approval = BlogApproval(
        queue_id=item.id,
        post_id=approval_in.post_id or item.post_id,
        org_id=current_user.org_id,
        status="pending",
        requested_by=current_user.id,
        requested_at=datetime.now(timezone.utc),
        review_notes=approval_in.review_notes,
        revision_number=(previous_approval.revision_number if previous_approval else 0) + 1,
        previous_approval_id=previous_approval.id if previous_approval else None,
        extra_metadata=dict(approval_in.metadata),
    )
    session.add(approval)
    item.status = "in_review"
    await session.flush()
    await session.refresh(approval)

    logger.info(
        "Approval requested",
        extra={
            "approval_id": approval.id,
            "queue_id": item.id,
            "revision_number": approval.revision_number,
        },
    )
    return ApprovalEnvelope(approval=ApprovalResponse.model_validate(approval))


@router.get("/{approval_id}", response_model=ApprovalEnvelope)
async def get_approval(
    approval_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> ApprovalEnvelope:
    approval = await get_org_row(
        session, BlogApproval, approval_id, current_user.org_id, APPROVAL_NOT_FOUND_DETAIL
    )
    return ApprovalEnvelope(approval=ApprovalResponse.model_validate(approval))


@router.patch("/{approval_id}", response_model=ApprovalEnvelope)
async def review_approval(
    approval_id: str,
    review: ApprovalUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> ApprovalEnvelope:
    """Record a review decision and mirror it onto the queue item."""
    require_role(current_user, CONTENT_MANAGER_ROLES, REVIEW_FORBIDDEN_DETAIL)

    approval = await get_org_row(
        session, BlogApproval, approval_id, current_user.org_id, APPROVAL_NOT_FOUND_DETAIL
    )
    ensure_transition("approval", APPROVAL_TRANSITIONS, approval.status, review.status)

    now = datetime.now(timezone.utc)
    if review.status == "pending":
        if approval.queue_id:
            await _ensure_no_pending_approval(session, approval.queue_id, exclude_id=approval.id)
        approval.requested_by = current_user.id
        approval.requested_at = now
        approval.reviewed_by = None
        approval.reviewed_at = None
    else:
        approval.reviewed_by = current_user.id
        approval.reviewed_at = now
    approval.status = review.status
    if review.review_notes is not None:
        approval.review_notes = review.review_notes
    if review.status == "rejected" and review.rejection_reason:
        approval.rejection_reason = review.rejection_reason

    queue_status = APPROVAL_TO_QUEUE_STATUS.get(review.status)
    if approval.queue_id and queue_status:
        result = await session.execute(
            select(BlogGenerationQueueItem).where(
                BlogGenerationQueueItem.id == approval.queue_id,
                BlogGenerationQueueItem.org_id == current_user.org_id,
            )
        )
        item = result.scalar_one_or_none()
        if item is not None:
            item.status = queue_status

    await session.flush()
    await session.refresh(approval)

    logger.info(
        "Approval reviewed",
        extra={
            "approval_id": approval.id,
            "status": approval.status,
            "queue_status": queue_status,
            "reviewed_by": current_user.id,
        },
    )
    return ApprovalEnvelope(approval=ApprovalResponse.model_validate(approval))
