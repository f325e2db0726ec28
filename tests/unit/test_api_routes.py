"""Route-level tests for auth, error envelopes and request validation."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.api.v1.blog_writer import routes as blog_writer_routes
from app.api.v1.interlinking.routes import SELF_LINK_DETAIL
from app.config import settings
from app.core.database import get_session
from app.core.exceptions import ExternalAPIError
from app.dependencies import get_current_user
from app.main import create_app, validation_error_body

API = settings.api_v1_prefix


class _FakeResult:
    def __init__(self, row: Any = None) -> None:
        self._row = row

    def scalar_one_or_none(self) -> Any:
        return self._row

    def first(self) -> Any:
        return self._row


class _FakeSession:
    def __init__(self, row: Any = None) -> None:
        self.row = row

    def add(self, obj: Any) -> None:
        return None

    async def execute(self, _statement: Any) -> _FakeResult:
        return _FakeResult(self.row)

    async def flush(self) -> None:
        return None

    async def refresh(self, _obj: Any) -> None:
        return None


def _user(role: str = "writer") -> SimpleNamespace:
    return SimpleNamespace(id="user-1", org_id="org-1", role=role, is_active=True)


def _client(user: SimpleNamespace | None, session: _FakeSession | None = None) -> TestClient:
    app = create_app()
    fake_session = session or _FakeSession()

    async def override_session() -> AsyncIterator[_FakeSession]:
        yield fake_session

    app.dependency_overrides[get_session] = override_session
    if user is not None:
        app.dependency_overrides[get_current_user] = lambda: user
    return TestClient(app)


@pytest.fixture
def client() -> Iterator[TestClient]:
    yield _client(_user())


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": settings.app_version}


def test_missing_token_is_unauthorized() -> None:
    response = _client(user=None).get(f"{API}/blog-queue")

    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_garbage_token_is_unauthorized() -> None:
    response = _client(user=None).get(
        f"{API}/blog-queue",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


def test_missing_required_fields_are_named(client: TestClient) -> None:
    response = client.post(f"{API}/blog-queue", json={})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields: topic"}


def test_invalid_field_values_echo_errors(client: TestClient) -> None:
    response = client.post(f"{API}/blog-queue", json={"topic": "x", "priority": 42})

    body = response.json()
    assert response.status_code == 400
    assert body["error"] == "Invalid request body"
    assert body["details"]["errors"][0]["loc"][-1] == "priority"


def test_validation_error_body_mixes_missing_and_invalid() -> None:
    body = validation_error_body(
        [
            {"type": "missing", "loc": ("body", "topic"), "msg": "Field required"},
            {"type": "int_parsing", "loc": ("body", "priority"), "msg": "bad"},
        ]
    )
    assert body["error"] == "Invalid request body"


def test_keyword_stream_requires_keywords(client: TestClient) -> None:
    response = client.post(f"{API}/keywords/analyze/stream", json={"keywords": []})

    assert response.status_code == 422
    assert response.json() == {"error": "keywords must be a non-empty array"}


def test_self_link_is_rejected(client: TestClient) -> None:
    response = client.post(
        f"{API}/interlinking/links",
        json={"source_post_id": "p1", "target_post_id": "p1", "anchor_text": "read more"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": SELF_LINK_DETAIL}


def test_link_to_unknown_post_is_not_found(client: TestClient) -> None:
    response = client.post(
        f"{API}/interlinking/links",
        json={"source_post_id": "p1", "target_post_id": "p2", "anchor_text": "read more"},
    )
    assert response.status_code == 404


def test_writer_cannot_store_cloudinary_credentials(client: TestClient) -> None:
    response = client.put(
        f"{API}/media/cloudinary/credentials",
        json={"cloud_name": "demo", "api_key": "key", "api_secret": "secret"},
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Only organization admins can configure Cloudinary"}


def test_media_upload_requires_a_source(client: TestClient) -> None:
    response = client.post(f"{API}/media/upload", data={})

    assert response.status_code == 400
    assert response.json() == {"error": "Provide a file or a url to upload"}


def test_workflow_phase_for_unknown_queue_item_is_404(client: TestClient) -> None:
    response = client.post(
        f"{API}/workflow/missing/phases/1",
        json={"title": "Title", "content": "<p>Body</p>"},
    )

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "phase": "phase_1_content",
        "error": "Queue item not found",
    }


def test_workflow_images_phase_without_draft_is_400() -> None:
    queue_item = SimpleNamespace(
        id="queue-1",
        org_id="org-1",
        post_id=None,
        generation_metadata={},
        extra_metadata={},
    )
    response = _client(_user(), _FakeSession(queue_item)).post(
        f"{API}/workflow/queue-1/phases/2",
        json={},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Draft not found. Phase 1 must complete first."


def test_duplicate_preset_name_conflicts() -> None:
    response = _client(_user(), _FakeSession(row=("preset-1",))).post(
        f"{API}/content-presets",
        json={"name": "Weekly"},
    )

    assert response.status_code == 409
    assert response.json() == {"error": 'A preset named "Weekly" already exists'}


def test_meta_tags_fall_back_without_dataforseo(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "dataforseo_login", None)
    monkeypatch.setattr(settings, "dataforseo_password", None)

    response = client.post(
        f"{API}/blog-writer/meta-tags",
        json={"title": "T" * 70, "description": "Short description"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "meta_title": "T" * 57 + "...",
        "meta_description": "Short description",
        "fallback": True,
    }


def test_field_analysis_falls_back_when_backend_fails(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    class FailingClient:
        async def __aenter__(self) -> "FailingClient":
            return self

        async def __aexit__(self, *args: Any) -> None:
            return None

        async def enhance_fields(self, payload: dict[str, Any]) -> dict[str, Any]:
            raise ExternalAPIError("Blog Writer", "503: unavailable", upstream_status=503)

    monkeypatch.setattr(blog_writer_routes, "BlogWriterClient", FailingClient)

    response = client.post(
        f"{API}/blog-writer/analyze",
        json={"title": "Writing Better Posts", "content": "word " * 10},
    )

    body = response.json()
    assert response.status_code == 200
    assert body["fallback"] is True
    assert body["slug"] == "writing-better-posts"
    assert body["word_count"] == 10


@pytest.mark.parametrize("role", ["admin", "owner", "editor"])
def test_org_roles_cannot_list_all_organizations(role: str) -> None:
    response = _client(_user(role)).get(f"{API}/admin/organizations")

    assert response.status_code == 403
    assert "error" in response.json()
