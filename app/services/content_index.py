"""Org content index used as the candidate pool for link and cluster analysis."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.blog import BlogPost
from app.models.interlinking import ContentCluster, ContentIndexEntry
from app.services.cluster_analyzer import TopicCluster
from app.services.content_text import make_excerpt, strip_html, word_count
from app.services.interlinking_engine import IndexedPage, extract_topics

logger = logging.getLogger(__name__)


@dataclass
class UpsertCounts:
    created: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.created + self.updated


def to_indexed_page(entry: ContentIndexEntry) -> IndexedPage:
    return IndexedPage(
        page_id=entry.page_id,
        url=entry.url,
        title=entry.title,
        content=entry.content or "",
        keywords=list(entry.keywords or []),
        topics=list(entry.topics or []),
        word_count=entry.word_count or 0,
        type=entry.content_type,
        published_at=entry.published_at,
    )


def page_values(page: dict[str, Any]) -> dict[str, Any]:
    """Column values for an incoming page, deriving topics and word count when absent."""
    content = page.get("content") or ""
    topics = page.get("topics")
    if topics is None:
        topics = extract_topics(content, page.get("title") or "")
    count = page.get("word_count")
    if count is None:
        count = word_count(strip_html(content))
    return {
        "url": page["url"],
        "title": page["title"],
        "content": content,
        "excerpt": page.get("excerpt") or make_excerpt(content),
        "keywords": list(page.get("keywords") or []),
        "topics": list(topics),
        "word_count": count,
        "content_type": page.get("type") or "cms",
        "published_at": page.get("published_at"),
        "extra_metadata": dict(page.get("metadata") or {}),
    }


def post_page(post: BlogPost, base_url: str = "") -> dict[str, Any]:
    """Describe a published blog post as an index page."""
    metadata = post.extra_metadata or {}
    slug = post.slug or metadata.get("slug") or post.id
    return {
        "page_id": post.id,
        "url": f"{base_url.rstrip('/')}/{slug}",
        "title": post.title,
        "content": post.content or "",
        "excerpt": post.excerpt,
        "keywords": list((post.seo_data or {}).get("keywords") or []),
        "type": "cms",
        "published_at": post.published_at,
        "metadata": {"post_id": post.id},
    }


async def upsert_pages(
    session: AsyncSession,
    org_id: str,
    pages: list[dict[str, Any]],
) -> UpsertCounts:
    counts = UpsertCounts()
    if not pages:
        return counts

    result = await session.execute(
        select(ContentIndexEntry).where(
            ContentIndexEntry.org_id == org_id,
            ContentIndexEntry.page_id.in_([p["page_id"] for p in pages]),
        )
    )
    existing = {entry.page_id: entry for entry in result.scalars().all()}

    for page in pages:
        values = page_values(page)
        entry = existing.get(page["page_id"])
        if entry is None:
            entry = ContentIndexEntry(org_id=org_id, page_id=page["page_id"], **values)
            session.add(entry)
            existing[page["page_id"]] = entry
            counts.created += 1
        else:
            for key, value in values.items():
                setattr(entry, key, value)
            counts.updated += 1

    await session.flush()
    logger.info(
        "Content index updated",
        extra={"org_id": org_id, "created": counts.created, "updated": counts.updated},
    )
    return counts


async def index_published_posts(
    session: AsyncSession,
    org_id: str,
    base_url: str = "",
) -> UpsertCounts:
    result = await session.execute(
        select(BlogPost).where(BlogPost.org_id == org_id, BlogPost.status == "published")
    )
    posts = result.scalars().all()
    return await upsert_pages(session, org_id, [post_page(p, base_url) for p in posts])


async def load_indexed_pages(session: AsyncSession, org_id: str) -> list[IndexedPage]:
    result = await session.execute(
        select(ContentIndexEntry).where(ContentIndexEntry.org_id == org_id)
    )
    return [to_indexed_page(entry) for entry in result.scalars().all()]


def cluster_values(cluster: TopicCluster) -> dict[str, Any]:
    """Column values for a cluster; authority is stored on a 0-100 scale."""
    pillar = cluster.pillar
    return {
        "pillar_keyword": (pillar.keywords[0] if pillar and pillar.keywords else cluster.name),
        "cluster_description": (
            "; ".join(cluster.content_gaps) if cluster.content_gaps else None
        ),
        "authority_score": round(cluster.authority_score * 100),
        "total_keywords": len(cluster.keywords),
        "content_count": cluster.total_content,
        "pillar_content_count": 1 if pillar else 0,
        "supporting_content_count": len(cluster.supporting),
        "internal_links_count": cluster.internal_links,
    }


async def persist_clusters(
    session: AsyncSession,
    org_id: str,
    user_id: str | None,
    clusters: list[TopicCluster],
) -> UpsertCounts:
    """Upsert clusters by name."""
    counts = UpsertCounts()
    result = await session.execute(
        select(ContentCluster).where(ContentCluster.org_id == org_id)
    )
    existing = {row.cluster_name: row for row in result.scalars().all()}

    for cluster in clusters:
        values = cluster_values(cluster)
        row = existing.get(cluster.name)
        if row is None:
            session.add(
                ContentCluster(
                    org_id=org_id,
                    user_id=user_id,
                    cluster_name=cluster.name,
                    cluster_status="in_progress",
                    **values,
                )
            )
            counts.created += 1
        else:
            for key, value in values.items():
                setattr(row, key, value)
            counts.updated += 1

    await session.flush()
    return counts
