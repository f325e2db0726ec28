"""Staged workflow that turns generated output into a finished draft.

Phase 1 writes the article body into a draft post (creating it when the queue
item has none), phase 2 attaches images and phase 3 applies SEO enhancements.
Each phase records its name in the queue item's metadata so a workflow can be
resumed from the last completed phase.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import WorkflowPhaseError
from app.models.blog import BlogGenerationQueueItem, BlogPost

logger = logging.getLogger(__name__)

PHASE_CONTENT = "phase_1_content"
PHASE_IMAGES = "phase_2_images"
PHASE_ENHANCEMENT = "phase_3_enhancement"
PHASE_COMPLETED = "completed"

WORKFLOW_PHASES = (PHASE_CONTENT, PHASE_IMAGES, PHASE_ENHANCEMENT, PHASE_COMPLETED)

QUEUE_ITEM_NOT_FOUND = "Queue item not found"
DRAFT_REQUIRED = "Draft not found. Phase 1 must complete first."

_FEATURED_FIGURE_RE = re.compile(r'<figure[^>]*class="[^"]*featured[^"]*"', re.IGNORECASE)


@dataclass
class PhaseResult:
    success: bool
    phase: str
    post_id: str | None = None
    draft_updated: bool | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


def featured_image_html(url: str, alt: str | None) -> str:
    return (
        '\n<figure class="featured-image">\n'
        f'  <img src="{html.escape(url)}" alt="{html.escape(alt or "")}" />\n'
        "</figure>\n"
    )


def has_featured_figure(content: str | None) -> bool:
    return bool(content) and _FEATURED_FIGURE_RE.search(content) is not None


async def _load_queue_item(
    session: AsyncSession,
    org_id: str,
    queue_id: str,
) -> BlogGenerationQueueItem:
    result = await session.execute(
        select(BlogGenerationQueueItem).where(
            BlogGenerationQueueItem.id == queue_id,
            BlogGenerationQueueItem.org_id == org_id,
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise WorkflowPhaseError(QUEUE_ITEM_NOT_FOUND)
    return item


async def _load_draft(
    session: AsyncSession,
    item: BlogGenerationQueueItem,
) -> BlogPost:
    if not item.post_id:
        raise WorkflowPhaseError(DRAFT_REQUIRED)
    result = await session.execute(
        select(BlogPost).where(BlogPost.id == item.post_id, BlogPost.org_id == item.org_id)
    )
    post = result.scalar_one_or_none()
    if post is None:
        raise WorkflowPhaseError(DRAFT_REQUIRED)
    return post


def _mark_queue_phase(item: BlogGenerationQueueItem, phase: str, **extra: Any) -> None:
    item.extra_metadata = {
        **(item.extra_metadata or {}),
        **(item.generation_metadata or {}),
        "workflow_phase": phase,
        **extra,
    }


async def complete_content_phase(
    session: AsyncSession,
    org_id: str,
    queue_id: str,
    *,
    title: str,
    content: str,
    excerpt: str | None = None,
    word_count: int | None = None,
    metadata: dict[str, Any] | None = None,
) -> PhaseResult:
    """Create or refresh the draft with generated content."""
    try:
        item = await _load_queue_item(session, org_id, queue_id)
    except WorkflowPhaseError as exc:
        logger.warning("Phase 1 failed", extra={"queue_id": queue_id, "error": exc.message})
        return PhaseResult(success=False, phase=PHASE_CONTENT, error=exc.message)

    draft_metadata = {
        **(item.generation_metadata or {}),
        "workflow_phase": PHASE_CONTENT,
        "workflow_queue_id": queue_id,
        "word_count": word_count,
        **(metadata or {}),
    }
    seo_data = {
        "meta_title": title,
        "meta_description": excerpt or content[:160],
        "keywords": list(item.keywords or []),
    }

    post: BlogPost | None = None
    if item.post_id:
        result = await session.execute(
            select(BlogPost).where(BlogPost.id == item.post_id, BlogPost.org_id == org_id)
        )
        post = result.scalar_one_or_none()

    if post is not None:
        post.title = title
        post.content = content
        post.excerpt = excerpt
        post.extra_metadata = draft_metadata
        post.seo_data = seo_data
        draft_updated = True
    else:
        post = BlogPost(
            org_id=org_id,
            created_by=item.created_by,
            title=title,
            content=content,
            excerpt=excerpt,
            status="draft",
            extra_metadata=draft_metadata,
            seo_data=seo_data,
        )
        session.add(post)
        await session.flush()
        item.post_id = post.id
        draft_updated = False

    _mark_queue_phase(item, PHASE_CONTENT, draft_post_id=post.id)
    await session.flush()

    logger.info(
        "Phase 1 applied to draft",
        extra={"queue_id": queue_id, "post_id": post.id, "draft_updated": draft_updated},
    )
    return PhaseResult(
        success=True,
        phase=PHASE_CONTENT,
        post_id=post.id,
        draft_updated=draft_updated,
    )


async def complete_images_phase(
    session: AsyncSession,
    org_id: str,
    queue_id: str,
    *,
    featured_image: dict[str, str] | None = None,
    content_images: list[dict[str, str]] | None = None,
) -> PhaseResult:
    """Attach image metadata and prepend the featured image figure."""
    try:
        item = await _load_queue_item(session, org_id, queue_id)
        post = await _load_draft(session, item)
    except WorkflowPhaseError as exc:
        logger.warning("Phase 2 failed", extra={"queue_id": queue_id, "error": exc.message})
        return PhaseResult(success=False, phase=PHASE_IMAGES, error=exc.message)

    featured_url = (featured_image or {}).get("url") or None
    featured_alt = (featured_image or {}).get("alt") or None

    post.extra_metadata = {
        **(post.extra_metadata or {}),
        **(item.generation_metadata or {}),
        "workflow_phase": PHASE_IMAGES,
        "workflow_queue_id": queue_id,
        "featured_image": featured_url,
        "featured_image_alt": featured_alt,
        "content_images": list(content_images or []),
    }
    if featured_url and post.content and not has_featured_figure(post.content):
        post.content = featured_image_html(featured_url, featured_alt) + post.content

    _mark_queue_phase(
        item,
        PHASE_IMAGES,
        featured_image_url=featured_url,
        featured_image_alt=featured_alt,
    )
    await session.flush()

    logger.info(
        "Phase 2 applied to draft",
        extra={
            "queue_id": queue_id,
            "post_id": post.id,
            "has_featured_image": featured_url is not None,
            "content_images": len(content_images or []),
        },
    )
    return PhaseResult(success=True, phase=PHASE_IMAGES, post_id=post.id, draft_updated=True)


async def complete_enhancement_phase(
    session: AsyncSession,
    org_id: str,
    queue_id: str,
    *,
    seo_title: str | None = None,
    meta_description: str | None = None,
    excerpt: str | None = None,
    slug: str | None = None,
    structured_data: dict[str, Any] | None = None,
    seo_score: float | None = None,
    readability_score: float | None = None,
) -> PhaseResult:
    """Apply SEO enhancements to the draft."""
    try:
        item = await _load_queue_item(session, org_id, queue_id)
        post = await _load_draft(session, item)
    except WorkflowPhaseError as exc:
        logger.warning("Phase 3 failed", extra={"queue_id": queue_id, "error": exc.message})
        return PhaseResult(success=False, phase=PHASE_ENHANCEMENT, error=exc.message)

    post.excerpt = excerpt
    post.extra_metadata = {
        **(post.extra_metadata or {}),
        **(item.generation_metadata or {}),
        "workflow_phase": PHASE_ENHANCEMENT,
        "workflow_queue_id": queue_id,
        "slug": slug,
        "structured_data": structured_data,
        "seo_score": seo_score,
        "readability_score": readability_score,
    }
    post.seo_data = {
        **(post.seo_data or {}),
        "meta_title": seo_title,
        "meta_description": meta_description,
        "structured_data": structured_data,
    }
    if slug:
        post.slug = slug

    _mark_queue_phase(item, PHASE_ENHANCEMENT)
    await session.flush()

    logger.info(
        "Phase 3 applied to draft",
        extra={"queue_id": queue_id, "post_id": post.id, "has_seo_title": bool(seo_title)},
    )
    return PhaseResult(
        success=True,
        phase=PHASE_ENHANCEMENT,
        post_id=post.id,
        draft_updated=True,
    )


async def get_workflow_phase(session: AsyncSession, org_id: str, queue_id: str) -> str | None:
    """Return the last recorded phase, or None when unknown."""
    result = await session.execute(
        select(BlogGenerationQueueItem.extra_metadata).where(
            BlogGenerationQueueItem.id == queue_id,
            BlogGenerationQueueItem.org_id == org_id,
        )
    )
    metadata = result.scalar_one_or_none()
    if not metadata:
        return None
    return metadata.get("workflow_phase")
