"""Unit tests for the content index and the media library sync."""

from __future__ import annotations

from typing import Any

import pytest

from app.models.blog import BlogPost
from app.models.interlinking import ContentCluster, ContentIndexEntry
from app.models.media import MediaAsset
from app.services.cluster_analyzer import TopicCluster
from app.services.content_index import (
    cluster_values,
    page_values,
    persist_clusters,
    post_page,
    upsert_pages,
)
from app.services.interlinking_engine import IndexedPage
from app.services.media_library import new_asset, resource_file_name, sync_resources


class _FakeScalars:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def all(self) -> list[Any]:
        return list(self._rows)


class _FakeResult:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def scalars(self) -> _FakeScalars:
        return _FakeScalars(self._rows)


class _FakeSession:
    def __init__(self, rows: list[Any] | None = None) -> None:
        self._rows = rows or []
        self.added: list[Any] = []

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def execute(self, _statement: Any) -> _FakeResult:
        return _FakeResult(self._rows)

    async def flush(self) -> None:
        return None


def test_page_values_derive_topics_and_word_count() -> None:
    values = page_values(
        {
            "page_id": "p1",
            "url": "https://example.com/p1",
            "title": "Python testing guide",
            "content": "<p>Testing python code with pytest makes testing easy</p>",
        }
    )

    assert values["word_count"] == 8
    assert values["topics"][0] == "testing"
    assert "python" in values["topics"]
    assert values["content_type"] == "cms"
    assert values["excerpt"] == "Testing python code with pytest makes testing easy"


def test_page_values_keep_supplied_topics() -> None:
    values = page_values(
        {"page_id": "p1", "url": "/p1", "title": "T", "topics": ["seo"], "word_count": 12}
    )
    assert values["topics"] == ["seo"]
    assert values["word_count"] == 12


def test_post_page_builds_url_from_slug() -> None:
    post = BlogPost(
        id="post-1",
        title="Hello",
        slug="hello",
        content="<p>x</p>",
        seo_data={"keywords": ["greeting"]},
        extra_metadata={},
    )

    page = post_page(post, "https://blog.example.com/")

    assert page["url"] == "https://blog.example.com/hello"
    assert page["keywords"] == ["greeting"]
    assert page["metadata"] == {"post_id": "post-1"}


@pytest.mark.asyncio
async def test_upsert_pages_creates_and_updates() -> None:
    existing = ContentIndexEntry(org_id="org-1", page_id="p1", url="/old", title="Old")
    session = _FakeSession([existing])

    counts = await upsert_pages(
        session,  # type: ignore[arg-type]
        "org-1",
        [
            {"page_id": "p1", "url": "/p1", "title": "New title", "content": "", "topics": []},
            {"page_id": "p2", "url": "/p2", "title": "Second", "content": "", "topics": []},
        ],
    )

    assert (counts.created, counts.updated, counts.total) == (1, 1, 2)
    assert existing.title == "New title"
    assert session.added[0].page_id == "p2"


@pytest.mark.asyncio
async def test_upsert_without_pages_skips_queries() -> None:
    counts = await upsert_pages(_FakeSession(), "org-1", [])  # type: ignore[arg-type]
    assert counts.total == 0


def _cluster(name: str = "python") -> TopicCluster:
    pillar = IndexedPage(page_id="p1", url="/p1", title="Pillar", keywords=["python guide"])
    return TopicCluster(
        id="cluster-0",
        name=name,
        pillar=pillar,
        supporting=[IndexedPage(page_id="p2", url="/p2", title="Support")],
        keywords=["python guide", "python tips"],
        authority_score=0.774,
        total_content=2,
        internal_links=3,
        content_gaps=["Add more supporting content", "Add long-tail content"],
    )


def test_cluster_values_scale_authority_to_percent() -> None:
    values = cluster_values(_cluster())

    assert values["authority_score"] == 77
    assert values["pillar_keyword"] == "python guide"
    assert values["cluster_description"] == "Add more supporting content; Add long-tail content"
    assert values["pillar_content_count"] == 1
    assert values["supporting_content_count"] == 1
    assert values["total_keywords"] == 2


@pytest.mark.asyncio
async def test_persist_clusters_upserts_by_name() -> None:
    saved = ContentCluster(org_id="org-1", cluster_name="python", authority_score=10)
    session = _FakeSession([saved])

    counts = await persist_clusters(
        session,  # type: ignore[arg-type]
        "org-1",
        "user-1",
        [_cluster("python"), _cluster("seo")],
    )

    assert (counts.created, counts.updated) == (1, 1)
    assert saved.authority_score == 77
    created = session.added[0]
    assert created.cluster_name == "seo"
    assert created.cluster_status == "in_progress"


def test_resource_file_name_uses_last_public_id_segment() -> None:
    assert resource_file_name({"public_id": "blog-images/org-1/hero"}) == "hero"
    asset = new_asset("org-1", "user-1", {"public_id": "a/b", "url": "http://x/b"})
    assert asset.file_name == "b"
    assert asset.file_type == "image/png"
    assert asset.provider == "cloudinary"


@pytest.mark.asyncio
async def test_sync_resources_counts_new_updated_and_skipped() -> None:
    existing = MediaAsset(
        org_id="org-1",
        file_name="old",
        file_url="http://old",
        extra_metadata={"public_id": "blog/a"},
    )
    session = _FakeSession([existing])

    counts = await sync_resources(
        session,  # type: ignore[arg-type]
        "org-1",
        "user-1",
        [
            {"public_id": "blog/a", "secure_url": "https://new/a.jpg", "format": "jpg", "bytes": 10},
            {"public_id": "blog/b", "secure_url": "https://new/b.png"},
            {"public_id": "blog/b", "secure_url": "https://new/b2.png"},
            {"secure_url": "https://no-id.png"},
        ],
    )

    assert (counts.synced, counts.updated, counts.skipped, counts.total) == (1, 2, 1, 4)
    assert existing.file_url == "https://new/a.jpg"
    assert existing.file_type == "jpg"
    assert existing.extra_metadata["synced_at"]
    assert len(session.added) == 1
    assert session.added[0].file_url == "https://new/b2.png"
