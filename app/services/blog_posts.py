"""Blog post drafts: creation from queue output and direct edits."""

from __future__ import annotations

import html
import logging
import re
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.blog import BlogGenerationQueueItem, BlogPost
from app.schemas.blog import BlogPostCreate
from app.services.content_text import (
    make_excerpt,
    read_time_minutes,
    slugify,
    strip_html,
    word_count,
)

logger = logging.getLogger(__name__)


def build_seo_data(title: str, description: str, keywords: list[str] | None) -> dict[str, Any]:
    return {
        "meta_title": title,
        "meta_description": description,
        "keywords": list(keywords or []),
        "og_title": title,
        "og_description": description,
        "twitter_card": "summary_large_image",
    }


def draft_fields_from_queue(item: BlogGenerationQueueItem) -> dict[str, Any]:
    """Column values for a draft post built from a generated queue item."""
    title = item.generated_title or item.topic
    content = item.generated_content or ""
    excerpt = make_excerpt(content)
    words = word_count(strip_html(content))
    return {
        "org_id": item.org_id,
        "created_by": item.created_by,
        "title": title,
        "content": content,
        "excerpt": excerpt,
        "slug": slugify(title),
        "status": "draft",
        "seo_data": build_seo_data(title, excerpt, item.keywords),
        "extra_metadata": {
            "word_count": words,
            "read_time": read_time_minutes(words),
            "queue_id": item.id,
        },
    }


async def create_draft_from_queue(
    session: AsyncSession,
    item: BlogGenerationQueueItem,
) -> BlogPost:
    """Insert a draft post for ``item`` and link it back to the queue row."""
    post = BlogPost(**draft_fields_from_queue(item))
    session.add(post)
    await session.flush()
    item.post_id = post.id

    logger.info(
        "Draft post created from queue item",
        extra={"queue_id": item.id, "post_id": post.id, "org_id": item.org_id},
    )
    return post


_FEATURED_IMAGE_RES = (
    re.compile(
        r'<figure[^>]*class="[^"]*featured[^"]*"[^>]*>[\s\S]*?<img[^>]+src="([^"]+)"',
        re.IGNORECASE,
    ),
    re.compile(r'<img[^>]+class="[^"]*featured[^"]*"[^>]+src="([^"]+)"', re.IGNORECASE),
)


def featured_image_from_content(content: str | None) -> str | None:
    """URL of the featured image embedded in ``content``, if any."""
    if not content:
        return None
    for pattern in _FEATURED_IMAGE_RES:
        match = pattern.search(content)
        if match:
            return html.unescape(match.group(1))
    return None


def _content_stats(content: str) -> dict[str, int]:
    words = word_count(strip_html(content))
    return {"word_count": words, "read_time": read_time_minutes(words)}


def post_fields_from_request(
    org_id: str,
    user_id: str | None,
    post_in: BlogPostCreate,
) -> dict[str, Any]:
    """Column values for a post saved directly through the API."""
    featured = post_in.featured_image
    featured_url = (featured.image_url if featured else None) or featured_image_from_content(
        post_in.content
    )
    metadata: dict[str, Any] = {**post_in.metadata, **_content_stats(post_in.content)}
    if featured_url:
        metadata["featured_image"] = featured_url
    if featured is not None:
        metadata["featured_image_data"] = featured.model_dump()

    return {
        "org_id": org_id,
        "created_by": user_id,
        "title": post_in.title,
        "content": post_in.content,
        "excerpt": post_in.excerpt or make_excerpt(post_in.content),
        "slug": post_in.slug or slugify(post_in.title),
        "status": post_in.status,
        "seo_data": dict(post_in.seo_data),
        "extra_metadata": metadata,
        "scheduled_at": post_in.scheduled_at,
        "published_at": datetime.now(timezone.utc) if post_in.status == "published" else None,
    }


def apply_post_update(post: BlogPost, update_data: dict[str, Any]) -> None:
    """Apply a partial update; content changes refresh the word count."""
    metadata = update_data.pop("metadata", None)
    for field, value in update_data.items():
        if value is not None:
            setattr(post, field, value)

    merged = dict(post.extra_metadata or {})
    if metadata:
        merged.update(metadata)
    if update_data.get("content") is not None:
        merged.update(_content_stats(post.content or ""))
    post.extra_metadata = merged

    if post.status == "published" and post.published_at is None:
        post.published_at = datetime.now(timezone.utc)
