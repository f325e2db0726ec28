"""Unit tests for platform publishing state changes."""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from app.core.exceptions import (
    ExternalAPIError,
    IntegrationNotConfiguredError,
    InvalidStatusTransitionError,
)
from app.integrations.cms import PublishResult, WebflowPublisher, WordPressPublisher
from app.models.blog import BlogGenerationQueueItem, BlogPlatformPublishing, BlogPost
from app.services import publishing as publishing_service
from app.services.publishing import (
    PlatformActionError,
    PublishFailedError,
    advance_queue_to_published,
    apply_publish_failure,
    apply_publish_success,
    delete_from_platform,
    item_sync_publisher,
    publish_to_platform,
    publishable_from_post,
    republish_on_platform,
    unpublish,
)


class _FakeScalars:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def first(self) -> Any:
        return self._rows[0] if self._rows else None

    def all(self) -> list[Any]:
        return list(self._rows)


class _FakeResult:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def scalar_one_or_none(self) -> Any:
        return self._rows[0] if self._rows else None

    def scalars(self) -> _FakeScalars:
        return _FakeScalars(self._rows)


class _FakeSession:
    def __init__(self, *results: list[Any]) -> None:
        self._results = list(results)
        self.flushes = 0

    async def execute(self, _statement: Any) -> _FakeResult:
        return _FakeResult(self._results.pop(0))

    async def flush(self) -> None:
        self.flushes += 1


class _FakePublisher:
    platform = "webflow"

    def __init__(self, result: PublishResult | None = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.received: list[Any] = []

    async def publish(self, post: Any) -> PublishResult:
        self.received.append(post)
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


def _publishing(status: str = "pending", queue_id: str | None = "queue-1") -> BlogPlatformPublishing:
    return BlogPlatformPublishing(
        id="pub-1",
        org_id="org-1",
        post_id="post-1",
        queue_id=queue_id,
        platform="webflow",
        status=status,
        retry_count=0,
        publish_metadata={},
    )


def _post() -> BlogPost:
    return BlogPost(
        id="post-1",
        org_id="org-1",
        title="Ten Tips",
        content="<p>Body</p>",
        excerpt="Body",
        slug="ten-tips",
        status="draft",
        seo_data={
            "meta_title": "Ten Tips | Blog",
            "meta_description": "All about tips",
            "keywords": ["tips", "seo"],
        },
        extra_metadata={"featured_image": "https://cdn.example.com/a.png"},
    )


def _integration() -> SimpleNamespace:
    return SimpleNamespace(
        id="int-1",
        config={"api_key": "key", "collection_id": "col-1"},
        field_mappings=[],
        last_sync=None,
    )


def test_publishable_from_post_maps_seo_fields() -> None:
    post = publishable_from_post(_post())

    assert post.title == "Ten Tips"
    assert post.slug == "ten-tips"
    assert post.seo_title == "Ten Tips | Blog"
    assert post.seo_description == "All about tips"
    assert post.tags == ["tips", "seo"]
    assert post.featured_image == "https://cdn.example.com/a.png"
    assert post.published_at is not None


def test_apply_publish_success_records_sync_metadata() -> None:
    publishing = _publishing(status="publishing")
    now = datetime(2026, 6, 1, tzinfo=timezone.utc)

    apply_publish_success(
        publishing,
        PublishResult(platform_post_id="item-9", url="https://site.webflow.io/ten-tips", published=True),
        published_by="user-1",
        published_at=now,
    )

    assert publishing.status == "published"
    assert publishing.platform_post_id == "item-9"
    assert publishing.sync_status == "in_sync"
    assert publishing.published_by == "user-1"
    assert publishing.publish_metadata == {
        "platform_item_id": "item-9",
        "platform_url": "https://site.webflow.io/ten-tips",
        "published": True,
        "synced_at": now.isoformat(),
    }


def test_apply_publish_failure_increments_retry_count() -> None:
    publishing = _publishing(status="publishing")
    publishing.retry_count = None

    apply_publish_failure(publishing, "boom")
    apply_publish_failure(publishing, "boom again")

    assert publishing.status == "failed"
    assert publishing.error_code == "PUBLISH_ERROR"
    assert publishing.sync_status == "sync_failed"
    assert publishing.error_message == "boom again"
    assert publishing.retry_count == 2


def test_approved_queue_item_advances_to_published() -> None:
    item = BlogGenerationQueueItem(id="queue-1", status="approved")
    assert advance_queue_to_published(item) is True
    assert item.status == "published"


def test_generated_queue_item_is_left_in_place() -> None:
    item = BlogGenerationQueueItem(id="queue-1", status="generated")
    assert advance_queue_to_published(item) is False
    assert item.status == "generated"


def test_unpublish_requires_published_status() -> None:
    with pytest.raises(InvalidStatusTransitionError):
        unpublish(_publishing(status="pending"))

    publishing = _publishing(status="published")
    unpublish(publishing)
    assert publishing.status == "unpublished"
    assert publishing.last_synced_at is not None


@pytest.mark.asyncio
async def test_publish_to_platform_success_updates_post_and_queue(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    publisher = _FakePublisher(
        PublishResult(platform_post_id="item-9", url="https://site.webflow.io/ten-tips", published=True)
    )
    monkeypatch.setattr(publishing_service, "get_publisher", lambda *args: publisher)

    post = _post()
    queue_item = BlogGenerationQueueItem(id="queue-1", org_id="org-1", status="approved")
    integration = _integration()
    session = _FakeSession([integration], [post], [queue_item])
    publishing = _publishing()

    result = await publish_to_platform(session, publishing, user_id="user-1")  # type: ignore[arg-type]

    assert result == {
        "platform_post_id": "item-9",
        "url": "https://site.webflow.io/ten-tips",
        "published": True,
    }
    assert publishing.status == "published"
    assert post.status == "published"
    assert post.published_at is not None
    assert queue_item.status == "published"
    assert integration.last_sync is not None
    assert publisher.received[0].title == "Ten Tips"


@pytest.mark.asyncio
async def test_publish_to_platform_failure_is_recorded(monkeypatch: pytest.MonkeyPatch) -> None:
    publisher = _FakePublisher(error=ExternalAPIError("Webflow", "401 Unauthorized"))
    monkeypatch.setattr(publishing_service, "get_publisher", lambda *args: publisher)

    session = _FakeSession([_integration()], [_post()])
    publishing = _publishing()

    with pytest.raises(PublishFailedError) as exc_info:
        await publish_to_platform(session, publishing, user_id="user-1")  # type: ignore[arg-type]

    assert exc_info.value.status_code == 500
    assert exc_info.value.details["publishing_id"] == "pub-1"
    assert "401 Unauthorized" in exc_info.value.details["message"]
    assert publishing.status == "failed"
    assert publishing.retry_count == 1
    assert session.flushes == 2


@pytest.mark.asyncio
async def test_publish_without_integration_changes_nothing() -> None:
    session = _FakeSession([])
    publishing = _publishing()

    with pytest.raises(IntegrationNotConfiguredError):
        await publish_to_platform(session, publishing, user_id="user-1")  # type: ignore[arg-type]

    assert publishing.status == "pending"
    assert session.flushes == 0


@pytest.mark.asyncio
async def test_publish_from_published_is_an_invalid_transition() -> None:
    with pytest.raises(InvalidStatusTransitionError):
        await publish_to_platform(  # type: ignore[arg-type]
            _FakeSession(), _publishing(status="published"), user_id="user-1"
        )


def _wordpress_html_publisher(*_args: Any) -> WordPressPublisher:
    return WordPressPublisher(
        {"site_url": "https://blog.example.com", "username": "editor", "app_password": "pw"},
        transport=httpx.MockTransport(
            lambda request: httpx.Response(
                200,
                text="<!DOCTYPE html><html><body>Login</body></html>",
                headers={"content-type": "text/html"},
            )
        ),
    )


@pytest.mark.asyncio
async def test_publish_html_reply_is_recorded_as_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(publishing_service, "get_publisher", _wordpress_html_publisher)

    session = _FakeSession([_integration()], [_post()])
    publishing = _publishing()
    publishing.platform = "wordpress"

    with pytest.raises(PublishFailedError) as exc_info:
        await publish_to_platform(session, publishing, user_id="user-1")  # type: ignore[arg-type]

    assert "non-JSON" in exc_info.value.details["message"]
    assert publishing.status == "failed"
    assert publishing.sync_status == "sync_failed"
    assert publishing.retry_count == 1
    assert session.flushes == 2


@pytest.mark.asyncio
async def test_publish_to_unsupported_platform_is_recorded_as_failure() -> None:
    session = _FakeSession([_integration()], [_post()])
    publishing = _publishing()
    publishing.platform = "ghost"

    with pytest.raises(PublishFailedError) as exc_info:
        await publish_to_platform(session, publishing, user_id="user-1")  # type: ignore[arg-type]

    assert "Unsupported platform" in exc_info.value.details["message"]
    assert publishing.status == "failed"
    assert publishing.retry_count == 1


def _webflow_publisher(handler: Any) -> Any:
    def factory(platform: str, integration: Any) -> WebflowPublisher:
        return WebflowPublisher(
            {"api_key": "key", "collection_id": "col-1", "site_id": "site-1"},
            transport=httpx.MockTransport(handler),
        )

    return factory


def _live_item_handler(request: httpx.Request) -> httpx.Response:
    if request.method in ("GET", "PATCH"):
        return httpx.Response(200, json={"id": "item-1", "fieldData": {"name": "Ten Tips"}})
    return httpx.Response(202, json={})


def _unpublished() -> BlogPlatformPublishing:
    publishing = _publishing(status="unpublished")
    publishing.platform_post_id = "item-1"
    publishing.platform_url = "https://site-1.webflow.io/ten-tips"
    return publishing


@pytest.mark.asyncio
async def test_republish_restores_published_state(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        publishing_service, "item_sync_publisher", _webflow_publisher(_live_item_handler)
    )
    session = _FakeSession([_integration()])
    publishing = _unpublished()

    result = await republish_on_platform(session, publishing, user_id="user-2")  # type: ignore[arg-type]

    assert result == {"item_id": "item-1", "site_published": True}
    assert publishing.status == "published"
    assert publishing.sync_status == "in_sync"
    assert publishing.publish_metadata["republished_by"] == "user-2"
    assert publishing.published_at is not None


@pytest.mark.asyncio
async def test_republish_requires_unpublished_status() -> None:
    publishing = _publishing(status="published")
    publishing.platform_post_id = "item-1"

    with pytest.raises(PlatformActionError, match="Only unpublished items"):
        await republish_on_platform(_FakeSession(), publishing, user_id="user-1")  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_republish_failure_is_recorded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        publishing_service,
        "item_sync_publisher",
        _webflow_publisher(lambda request: httpx.Response(404, json={})),
    )
    session = _FakeSession([_integration()])
    publishing = _unpublished()

    with pytest.raises(PublishFailedError):
        await republish_on_platform(session, publishing, user_id="user-1")  # type: ignore[arg-type]

    assert publishing.status == "unpublished"
    assert publishing.sync_status == "sync_failed"
    assert publishing.error_message.startswith("Republish failed:")
    assert session.flushes == 1


def test_item_sync_is_webflow_only() -> None:
    with pytest.raises(PlatformActionError, match="not supported"):
        item_sync_publisher("wordpress", _integration())  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_delete_from_platform_resets_publication(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        publishing_service, "item_sync_publisher", _webflow_publisher(_live_item_handler)
    )
    session = _FakeSession([_integration()])
    publishing = _unpublished()

    result = await delete_from_platform(session, publishing, user_id="user-1")  # type: ignore[arg-type]

    assert result == {"item_id": "item-1", "site_published": True, "record_deleted": False}
    assert publishing.status == "pending"
    assert publishing.platform_post_id is None
    assert publishing.platform_url is None
    assert publishing.publish_metadata["previous_item_id"] == "item-1"


@pytest.mark.asyncio
async def test_delete_without_platform_item_is_rejected() -> None:
    with pytest.raises(PlatformActionError, match="no platform item id"):
        await delete_from_platform(  # type: ignore[arg-type]
            _FakeSession(), _publishing(status="published"), user_id="user-1"
        )
