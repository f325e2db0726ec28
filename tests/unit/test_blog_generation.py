"""Unit tests for blog generation bookkeeping."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from app.integrations.blog_writer import BlogWriterUpstreamError
from app.models.blog import BlogGenerationQueueItem, BlogPost
from app.services.blog_generation import (
    BlogGenerationService,
    GenerationFailedError,
    GenerationRequest,
    extract_generated,
    generation_error_message,
    progress_from_result,
)


class _FakeSession:
    def __init__(self) -> None:
        self.added: list[Any] = []
        self.flushes = 0

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def flush(self) -> None:
        self.flushes += 1
        for obj in self.added:
            if getattr(obj, "id", None) is None:
                obj.id = "queue-1" if isinstance(obj, BlogGenerationQueueItem) else "post-1"


class _FakeClient:
    def __init__(self, result: dict[str, Any] | None = None, error: Exception | None = None) -> None:
        self.result = result or {}
        self.error = error
        self.calls: list[tuple[dict[str, Any], bool]] = []

    async def generate(self, payload: dict[str, Any], *, async_mode: bool = False) -> dict[str, Any]:
        self.calls.append((payload, async_mode))
        if self.error is not None:
            raise self.error
        return self.result


USER = SimpleNamespace(id="user-1", org_id="org-1")


def _queue_item(session: _FakeSession) -> BlogGenerationQueueItem:
    return next(obj for obj in session.added if isinstance(obj, BlogGenerationQueueItem))


def test_generation_error_message_formats_upstream_errors() -> None:
    assert (
        generation_error_message(BlogWriterUpstreamError(503, "overloaded"))
        == "API error 503: overloaded"
    )
    assert generation_error_message(httpx.ConnectError("refused")) == "API error: refused"


def test_progress_from_result_prefers_explicit_updates() -> None:
    updates = [{"stage": "outline", "progress_percentage": 40}]
    assert progress_from_result({"progress_updates": updates}) == updates


def test_progress_from_result_wraps_legacy_progress() -> None:
    [update] = progress_from_result({"progress": {"stage": "draft", "progress_percentage": 70}})
    assert update["stage"] == "draft"
    assert update["total_stages"] == 12
    assert update["status"] == "Processing"


def test_progress_from_result_synthesizes_completion() -> None:
    [update] = progress_from_result({})
    assert update["stage"] == "finalization"
    assert update["progress_percentage"] == 100


def test_extract_generated_reads_nested_blog_post() -> None:
    generated = extract_generated(
        {"blog_post": {"title": "Nested", "content": "<p>x</p>", "summary": "Sum"}},
        "Topic",
    )
    assert generated == {
        "title": "Nested",
        "content": "<p>x</p>",
        "excerpt": "Sum",
        "meta_title": "Nested",
        "meta_description": "Sum",
    }


def test_extract_generated_falls_back_to_topic() -> None:
    generated = extract_generated({"content": "c", "meta_description": "m"}, "Topic")
    assert generated["title"] == "Topic"
    assert generated["excerpt"] == "m"


@pytest.mark.asyncio
async def test_sync_generation_marks_item_generated_and_creates_draft() -> None:
    session = _FakeSession()
    client = _FakeClient(
        {"title": "Generated", "content": "<p>Hello world</p>", "seo_score": 88, "word_count": 2}
    )
    service = BlogGenerationService(session, client)  # type: ignore[arg-type]

    result = await service.generate(
        USER,  # type: ignore[arg-type]
        GenerationRequest(topic="Topic", keywords=["seo"], word_count=1200),
    )

    item = _queue_item(session)
    assert item.status == "generated"
    assert item.generated_title == "Generated"
    assert item.progress_percentage == 100
    assert item.current_stage == "finalization"
    assert item.generation_metadata == {"seo_score": 88, "word_count": 2}
    assert item.post_id == "post-1"
    assert any(isinstance(obj, BlogPost) for obj in session.added)
    assert result["queue_id"] == "queue-1"
    assert result["post_id"] == "post-1"
    assert result["success"] is True
    assert client.calls[0][1] is False


@pytest.mark.asyncio
async def test_generation_without_content_skips_draft() -> None:
    session = _FakeSession()
    service = BlogGenerationService(session, _FakeClient({"title": "Empty"}))  # type: ignore[arg-type]

    result = await service.generate(
        USER,  # type: ignore[arg-type]
        GenerationRequest(topic="Topic", keywords=["seo"]),
    )

    assert result["post_id"] is None
    assert not any(isinstance(obj, BlogPost) for obj in session.added)


@pytest.mark.asyncio
async def test_async_generation_records_backend_job() -> None:
    session = _FakeSession()
    client = _FakeClient({"job_id": "job-7", "estimated_completion_time": 120})
    service = BlogGenerationService(session, client)  # type: ignore[arg-type]

    result = await service.generate(
        USER,  # type: ignore[arg-type]
        GenerationRequest(topic="Topic", keywords=["seo"]),
        async_mode=True,
    )

    item = _queue_item(session)
    assert result["job_id"] == "job-7"
    assert result["status"] == "queued"
    assert item.status == "queued"
    assert item.extra_metadata["backend_job_id"] == "job-7"


@pytest.mark.asyncio
async def test_failed_generation_marks_item_failed() -> None:
    session = _FakeSession()
    client = _FakeClient(error=BlogWriterUpstreamError(500, "internal error"))
    service = BlogGenerationService(session, client)  # type: ignore[arg-type]

    with pytest.raises(GenerationFailedError) as exc_info:
        await service.generate(
            USER,  # type: ignore[arg-type]
            GenerationRequest(topic="Topic", keywords=["seo"]),
        )

    item = _queue_item(session)
    assert item.status == "failed"
    assert item.generation_error == "API error 500: internal error"
    assert exc_info.value.queue_id == "queue-1"
    assert exc_info.value.status_code == 500
