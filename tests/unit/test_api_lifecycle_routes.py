"""Route tests for the queue, approval, post, integration and keyword stream lifecycles."""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.v1.blog_approvals.constants import PENDING_EXISTS_DETAIL
from app.api.v1.keywords import routes as keywords_routes
from app.config import settings
from app.core.database import get_session
from app.dependencies import get_current_user
from app.integrations.blog_writer import KEYWORD_STREAM_PATH, BlogWriterClient
from app.main import create_app
from app.models.blog import (
    BlogApproval,
    BlogGenerationQueueItem,
    BlogPlatformPublishing,
    BlogPost,
)
from app.models.integration import Integration

API = settings.api_v1_prefix
NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class _Rows:
    def __init__(self, rows: list[Any]) -> None:
        self._rows = rows

    def scalar_one_or_none(self) -> Any:
        return self._rows[0] if self._rows else None

    def scalar(self) -> Any:
        return self._rows[0] if self._rows else None

    def first(self) -> Any:
        return self._rows[0] if self._rows else None

    def scalars(self) -> "_Rows":
        return self

    def all(self) -> list[Any]:
        return list(self._rows)


class _ScriptedSession:
    """Answers each ``execute`` with the next scripted list of rows."""

    def __init__(self, *results: list[Any]) -> None:
        self._results = list(results)
        self.added: list[Any] = []
        self.deleted: list[Any] = []

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def delete(self, obj: Any) -> None:
        self.deleted.append(obj)

    async def execute(self, _statement: Any) -> _Rows:
        return _Rows(self._results.pop(0) if self._results else [])

    async def flush(self) -> None:
        for index, obj in enumerate(self.added, start=1):
            if getattr(obj, "id", None) is None:
                obj.id = f"{type(obj).__name__.lower()}-{index}"

    async def refresh(self, obj: Any) -> None:
        for field in ("created_at", "updated_at"):
            if getattr(obj, field, None) is None:
                setattr(obj, field, NOW)


def _user(role: str = "editor") -> SimpleNamespace:
    return SimpleNamespace(id="user-1", org_id="org-1", role=role, is_active=True)


def _client(session: _ScriptedSession, user: SimpleNamespace | None = None) -> TestClient:
    app = create_app()

    async def override_session() -> AsyncIterator[_ScriptedSession]:
        yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_current_user] = lambda: user or _user()
    return TestClient(app)


def _queue_item(**overrides: Any) -> BlogGenerationQueueItem:
    fields: dict[str, Any] = {
        "id": "queue-1",
        "org_id": "org-1",
        "post_id": None,
        "created_by": "user-1",
        "topic": "Local SEO checklist",
        "keywords": ["local seo"],
        "status": "generated",
        "progress_percentage": 100,
        "progress_updates": [],
        "generated_content": None,
        "generated_title": None,
        "generation_metadata": {},
        "queued_at": NOW,
        "priority": 5,
        "extra_metadata": {},
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return BlogGenerationQueueItem(**fields)


def _approval(**overrides: Any) -> BlogApproval:
    fields: dict[str, Any] = {
        "id": "approval-1",
        "queue_id": "queue-1",
        "post_id": "post-1",
        "org_id": "org-1",
        "status": "pending",
        "requested_by": "user-2",
        "requested_at": NOW,
        "revision_number": 1,
        "extra_metadata": {},
        "created_at": NOW,
        "updated_at": NOW,
    }
    fields.update(overrides)
    return BlogApproval(**fields)


# Approvals


def test_request_approval_chains_to_previous_revision() -> None:
    item = _queue_item()
    previous = _approval(id="approval-2", status="rejected", revision_number=2)
    session = _ScriptedSession([item], [], [previous])

    response = _client(session).post(
        f"{API}/blog-approvals",
        json={"queue_id": "queue-1", "review_notes": "Second pass"},
    )

    assert response.status_code == 201
    approval = response.json()["approval"]
    assert approval["status"] == "pending"
    assert approval["revision_number"] == 3
    assert approval["previous_approval_id"] == "approval-2"
    assert item.status == "in_review"


def test_first_approval_starts_at_revision_one() -> None:
    session = _ScriptedSession([_queue_item()], [], [])

    response = _client(session).post(f"{API}/blog-approvals", json={"queue_id": "queue-1"})

    assert response.status_code == 201
    assert response.json()["approval"]["revision_number"] == 1
    assert response.json()["approval"]["previous_approval_id"] is None


def test_request_approval_rejected_while_one_is_pending() -> None:
    item = _queue_item()
    session = _ScriptedSession([item], [("approval-1",)])

    response = _client(session).post(f"{API}/blog-approvals", json={"queue_id": "queue-1"})

    assert response.status_code == 400
    assert response.json() == {"error": PENDING_EXISTS_DETAIL}
    assert item.status == "generated"
    assert session.added == []


@pytest.mark.parametrize(
    ("decision", "queue_status"),
    [
        ("approved", "approved"),
        ("rejected", "rejected"),
        ("changes_requested", "generated"),
    ],
)
def test_review_decision_is_mirrored_on_queue_item(decision: str, queue_status: str) -> None:
    approval = _approval()
    item = _queue_item(status="in_review")
    session = _ScriptedSession([approval], [item])

    response = _client(session).patch(
        f"{API}/blog-approvals/approval-1",
        json={"status": decision, "rejection_reason": "Off brand"},
    )

    assert response.status_code == 200
    body = response.json()["approval"]
    assert body["status"] == decision
    assert body["reviewed_by"] == "user-1"
    assert item.status == queue_status
    assert approval.rejection_reason == ("Off brand" if decision == "rejected" else None)


def test_resubmitted_approval_returns_queue_item_to_review() -> None:
    approval = _approval(status="changes_requested", reviewed_by="user-3", reviewed_at=NOW)
    item = _queue_item(status="generated")
    session = _ScriptedSession([approval], [], [item])

    response = _client(session).patch(
        f"{API}/blog-approvals/approval-1",
        json={"status": "pending"},
    )

    assert response.status_code == 200
    body = response.json()["approval"]
    assert body["status"] == "pending"
    assert body["requested_by"] == "user-1"
    assert body["reviewed_by"] is None
    assert body["reviewed_at"] is None
    assert item.status == "in_review"


def test_resubmission_rejected_while_another_approval_is_pending() -> None:
    approval = _approval(status="rejected")
    session = _ScriptedSession([approval], [("approval-9",)])

    response = _client(session).patch(
        f"{API}/blog-approvals/approval-1",
        json={"status": "pending"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": PENDING_EXISTS_DETAIL}
    assert approval.status == "rejected"


def test_writer_cannot_review_approvals() -> None:
    session = _ScriptedSession([_approval()])

    response = _client(session, _user("writer")).patch(
        f"{API}/blog-approvals/approval-1",
        json={"status": "approved"},
    )

    assert response.status_code == 403


# Queue


def test_forbidden_queue_transition_is_reported() -> None:
    item = _queue_item(status="queued")
    session = _ScriptedSession([item])

    response = _client(session).patch(
        f"{API}/blog-queue/queue-1",
        json={"status": "published"},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid status transition",
        "current_status": "queued",
        "requested_status": "published",
    }
    assert item.status == "queued"


def test_generated_content_creates_draft_post() -> None:
    item = _queue_item(status="generating", progress_percentage=80)
    session = _ScriptedSession([item])

    response = _client(session).patch(
        f"{API}/blog-queue/queue-1",
        json={
            "status": "generated",
            "generated_title": "Local SEO checklist for 2025",
            "generated_content": "<p>Start with your Google Business Profile.</p>",
            "progress_percentage": 250,
        },
    )

    assert response.status_code == 200
    body = response.json()["queue_item"]
    assert body["status"] == "generated"
    assert body["progress_percentage"] == 100
    assert body["generation_completed_at"] is not None

    posts = [obj for obj in session.added if isinstance(obj, BlogPost)]
    assert len(posts) == 1
    assert posts[0].status == "draft"
    assert posts[0].title == "Local SEO checklist for 2025"
    assert body["post_id"] == posts[0].id == item.post_id


def test_negative_progress_is_clamped_to_zero() -> None:
    session = _ScriptedSession([_queue_item(status="generating", progress_percentage=40)])

    response = _client(session).patch(
        f"{API}/blog-queue/queue-1",
        json={"progress_percentage": -5, "current_stage": "outline"},
    )

    assert response.status_code == 200
    assert response.json()["queue_item"]["progress_percentage"] == 0
    assert response.json()["queue_item"]["current_stage"] == "outline"


def test_other_writers_cannot_edit_queue_item() -> None:
    session = _ScriptedSession([_queue_item(created_by="user-7")])

    response = _client(session, _user("writer")).patch(
        f"{API}/blog-queue/queue-1",
        json={"priority": 1},
    )

    assert response.status_code == 403


@pytest.mark.parametrize(("total", "has_more"), [(3, True), (2, False)])
def test_queue_list_reports_has_more(total: int, has_more: bool) -> None:
    items = [_queue_item(id="queue-1"), _queue_item(id="queue-2")]
    session = _ScriptedSession([total], items)

    response = _client(session).get(f"{API}/blog-queue", params={"limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert [i["id"] for i in body["items"]] == ["queue-1", "queue-2"]
    assert body["pagination"] == {"total": total, "limit": 2, "offset": 0, "has_more": has_more}


# Blog posts


def test_saved_post_picks_up_featured_image_from_content() -> None:
    session = _ScriptedSession()
    content = (
        '<figure class="featured-image"><img src="https://cdn.example.com/hero.png" '
        'alt="Hero"></figure><p>Three quick wins for local search.</p>'
    )

    response = _client(session).post(
        f"{API}/blog-posts",
        json={"title": "Local Search Wins", "content": content},
    )

    assert response.status_code == 201
    post = response.json()["post"]
    assert post["slug"] == "local-search-wins"
    assert post["status"] == "draft"
    assert post["metadata"]["featured_image"] == "https://cdn.example.com/hero.png"
    assert post["metadata"]["word_count"] > 0


def test_save_post_requires_title_and_content() -> None:
    response = _client(_ScriptedSession()).post(f"{API}/blog-posts", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: title, content"}


def test_unknown_post_is_not_found() -> None:
    response = _client(_ScriptedSession([])).get(f"{API}/blog-posts/post-404")

    assert response.status_code == 404
    assert response.json() == {"error": "Draft not found"}


def test_delete_post_removes_row() -> None:
    post = BlogPost(id="post-1", org_id="org-1", title="Old", status="draft")
    session = _ScriptedSession([post])

    response = _client(session).delete(f"{API}/blog-posts/post-1")

    assert response.status_code == 204
    assert session.deleted == [post]


# Platform actions


def _unpublished_wordpress() -> BlogPlatformPublishing:
    return BlogPlatformPublishing(
        id="pub-1",
        org_id="org-1",
        post_id="post-1",
        platform="wordpress",
        platform_post_id="321",
        status="unpublished",
        retry_count=0,
        publish_metadata={},
    )


def test_republish_is_not_offered_for_wordpress() -> None:
    integration = Integration(id="integration-1", org_id="org-1", type="wordpress", name="Blog")
    session = _ScriptedSession([_unpublished_wordpress()], [integration])

    response = _client(session).post(f"{API}/blog-publishing/pub-1/republish")

    assert response.status_code == 400
    assert response.json() == {
        "error": "Republishing and deleting on wordpress is not supported",
        "details": {"platform": "wordpress"},
    }


def test_editor_cannot_delete_from_platform() -> None:
    session = _ScriptedSession([_unpublished_wordpress()])

    response = _client(session, _user("editor")).post(
        f"{API}/blog-publishing/pub-1/delete-from-platform"
    )

    assert response.status_code == 403


# Integrations


def test_created_integration_lists_config_keys_only() -> None:
    session = _ScriptedSession([])

    response = _client(session, _user("admin")).post(
        f"{API}/integrations",
        json={
            "type": "wordpress",
            "name": "Main site",
            "config": {
                "site_url": "https://blog.example.com",
                "username": "editor",
                "app_password": "abcd efgh ijkl",
            },
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["config_keys"] == ["app_password", "site_url", "username"]
    assert "config" not in body
    assert "abcd efgh ijkl" not in response.text
    assert isinstance(session.added[0], Integration)


def test_duplicate_integration_name_conflicts() -> None:
    session = _ScriptedSession([("integration-1",)])

    response = _client(session, _user("admin")).post(
        f"{API}/integrations",
        json={"type": "webflow", "name": "Marketing", "config": {"api_token": "t"}},
    )

    assert response.status_code == 409
    assert response.json() == {"error": 'A webflow integration named "Marketing" already exists'}
    assert session.added == []


def test_writer_cannot_create_integration() -> None:
    response = _client(_ScriptedSession([]), _user("writer")).post(
        f"{API}/integrations",
        json={"type": "webflow", "name": "Marketing"},
    )

    assert response.status_code == 403


# Keyword storage and streaming


def test_research_term_without_keyword_is_rejected() -> None:
    response = _client(_ScriptedSession()).post(
        f"{API}/keywords/storage/research",
        json={"keyword": "seo", "related_terms": [{"search_volume": 90}]},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: keyword"}


def _stream_client(
    monkeypatch: pytest.MonkeyPatch,
    handler: Any,
) -> TestClient:
    def client_factory(timeout: float | None = None) -> BlogWriterClient:
        return BlogWriterClient(
            base_url="http://writer.test",
            api_key="key",
            timeout=timeout,
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(keywords_routes, "BlogWriterClient", client_factory)
    return _client(_ScriptedSession())


def test_keyword_stream_relays_events_unchanged(monkeypatch: pytest.MonkeyPatch) -> None:
    events = (
        b'data: {"type": "progress", "keyword": "seo"}\n\n'
        b'data: {"type": "complete", "total": 1}\n\n'
    )
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=events, headers={"content-type": "text/event-stream"})

    client = _stream_client(monkeypatch, handler)
    response = client.post(f"{API}/keywords/analyze/stream", json={"keywords": ["seo"]})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    assert response.content == events
    assert seen[0].url.path == KEYWORD_STREAM_PATH


def test_keyword_stream_upstream_failure_is_an_error_event(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"error": "analysis backend overloaded"})

    client = _stream_client(monkeypatch, handler)
    response = client.post(f"{API}/keywords/analyze/stream", json={"keywords": ["seo"]})

    assert response.status_code == 502
    assert response.json() == {"type": "error", "error": "analysis backend overloaded"}


def test_keyword_stream_unreachable_backend_is_an_error_event(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _stream_client(monkeypatch, handler)
    response = client.post(f"{API}/keywords/analyze/stream", json={"keywords": ["seo"]})

    assert response.status_code == 502
    assert response.json()["type"] == "error"
    assert "connection refused" in response.json()["error"]
