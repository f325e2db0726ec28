"""Blog post (draft) endpoints."""

import logging

from fastapi import APIRouter, Query, Response, status
from sqlalchemy import func, select

from app.api.v1.dependencies import get_org_row
from app.dependencies import CurrentUser, DbSession
from app.models.blog import BlogPost
from app.schemas.blog import (
    BlogPostCreate,
    BlogPostEnvelope,
    BlogPostListResponse,
    BlogPostResponse,
    BlogPostUpdate,
    Pagination,
    PostStatus,
)
from app.services.blog_posts import apply_post_update, post_fields_from_request

logger = logging.getLogger(__name__)

router = APIRouter()

POST_NOT_FOUND_DETAIL = "Draft not found"


@router.get("", response_model=BlogPostListResponse)
async def list_posts(
    current_user: CurrentUser,
    session: DbSession,
    status_filter: PostStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> BlogPostListResponse:
    query = select(BlogPost).where(BlogPost.org_id == current_user.org_id)
    if status_filter:
        query = query.where(BlogPost.status == status_filter)

    total = (await session.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
    result = await session.execute(
        query.order_by(BlogPost.updated_at.desc()).offset(offset).limit(limit)
    )
    posts = result.scalars().all()
    return BlogPostListResponse(
        posts=[BlogPostResponse.model_validate(p) for p in posts],
        pagination=Pagination(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(posts) < total,
        ),
    )


@router.post("", response_model=BlogPostEnvelope, status_code=status.HTTP_201_CREATED)
async def save_post(
    post_in: BlogPostCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> BlogPostEnvelope:
    """Save a draft written or edited outside the generation queue."""
    post = BlogPost(**post_fields_from_request(current_user.org_id, current_user.id, post_in))
    session.add(post)
    await session.flush()
    await session.refresh(post)

    logger.info(
        "Blog post saved",
        extra={"post_id": post.id, "org_id": post.org_id, "status": post.status},
    )
    return BlogPostEnvelope(post=BlogPostResponse.model_validate(post))


@router.get("/{post_id}", response_model=BlogPostEnvelope)
async def get_post(
    post_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> BlogPostEnvelope:
    post = await get_org_row(session, BlogPost, post_id, current_user.org_id, POST_NOT_FOUND_DETAIL)
    return BlogPostEnvelope(post=BlogPostResponse.model_validate(post))


@router.put("/{post_id}", response_model=BlogPostEnvelope)
async def update_post(
    post_id: str,
    post_in: BlogPostUpdate,
    current_user: CurrentUser,
    session: DbSession,
) -> BlogPostEnvelope:
    post = await get_org_row(session, BlogPost, post_id, current_user.org_id, POST_NOT_FOUND_DETAIL)
    apply_post_update(post, post_in.model_dump(exclude_unset=True))
    await session.flush()
    await session.refresh(post)

    logger.info("Blog post updated", extra={"post_id": post.id, "status": post.status})
    return BlogPostEnvelope(post=BlogPostResponse.model_validate(post))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> Response:
    post = await get_org_row(session, BlogPost, post_id, current_user.org_id, POST_NOT_FOUND_DETAIL)
    await session.delete(post)
    await session.flush()

    logger.info("Blog post deleted", extra={"post_id": post_id, "org_id": current_user.org_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
