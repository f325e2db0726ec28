"""Unit tests for the content backend, Cloudinary and DataForSEO clients."""

from __future__ import annotations

import hashlib
import json

import httpx
import pytest

from app.core import http_retry
from app.core.exceptions import IntegrationNotConfiguredError
from app.core.field_encryption import encrypt_value
from app.integrations.blog_writer import (
    BlogWriterClient,
    BlogWriterUpstreamError,
    build_generation_payload,
    length_for_word_count,
    normalize_suggestions,
)
from app.integrations.cloudinary import (
    CloudinaryClient,
    CloudinaryCredentials,
    credentials_from_settings,
    credentials_to_settings,
    sign_params,
)
from app.integrations.dataforseo import get_location_code


@pytest.mark.parametrize(
    ("words", "bucket"),
    [(500, "short"), (1000, "medium"), (2500, "long"), (3000, "extended")],
)
def test_length_for_word_count(words: int, bucket: str) -> None:
    assert length_for_word_count(words) == bucket


def test_generation_payload_defaults_and_quality_features() -> None:
    payload = build_generation_payload(
        topic="Remote work",
        keywords=["  ", "remote work tips"],
        quality_level="premium",
        template_type="not-a-type",
        custom_instructions="Use British spelling",
    )

    assert payload["blog_type"] == "custom"
    assert payload["keywords"] == ["remote work tips"]
    assert payload["focus_keyword"] == "remote work tips"
    assert payload["tone"] == "professional"
    assert payload["length"] == "medium"
    assert payload["use_consensus_generation"] is True
    assert payload["custom_instructions"] == "Use British spelling"


def test_generation_payload_uses_topic_when_no_keywords() -> None:
    payload = build_generation_payload(topic="Remote work", feature_overrides={"include_faq": True})
    assert payload["keywords"] == ["Remote work"]
    assert payload["use_google_search"] is False
    assert payload["include_faq"] is True


def test_normalize_enhanced_suggestions() -> None:
    data = {
        "enhanced_analysis": {
            "seo": {
                "related_keywords": ["seo tools", "seo audit"],
                "long_tail_keywords": [{"keyword": "seo for small business"}],
                "difficulty": 40,
            }
        }
    }

    result = normalize_suggestions(data, "seo", limit=2)

    assert [s["keyword"] for s in result["suggestions"]] == ["seo tools", "seo audit"]
    assert result["total_suggestions"] == 2
    assert result["suggestions"][0]["difficulty"] == 40


@pytest.mark.asyncio
async def test_suggest_keywords_falls_back_to_legacy_endpoint(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def fake_sleep(_seconds: float) -> None:
        return None

    monkeypatch.setattr(http_retry.asyncio, "sleep", fake_sleep)
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path.endswith("/keywords/enhanced"):
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"keyword_suggestions": [{"keyword": "seo tools"}]})

    async with BlogWriterClient(
        base_url="http://writer.test",
        transport=httpx.MockTransport(handler),
    ) as client:
        result = await client.suggest_keywords("seo")

    assert paths[-1] == "/api/v1/keywords/suggest"
    assert paths.count("/api/v1/keywords/enhanced") == 3
    assert result["total_suggestions"] == 1


@pytest.mark.asyncio
async def test_generate_passes_async_mode_and_raises_upstream_errors() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(422, text="topic too short")

    async with BlogWriterClient(
        base_url="http://writer.test",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    ) as client:
        with pytest.raises(BlogWriterUpstreamError) as exc_info:
            await client.generate({"topic": "x"}, async_mode=True)

    assert seen[0].url.params["async_mode"] == "true"
    assert seen[0].headers["Authorization"] == "Bearer secret"
    assert exc_info.value.upstream_status == 422
    assert exc_info.value.text == "topic too short"


@pytest.mark.asyncio
async def test_health_reports_unreachable_backend() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with BlogWriterClient(
        base_url="http://writer.test",
        transport=httpx.MockTransport(handler),
    ) as client:
        health = await client.health()

    assert health["status"] == "unhealthy"
    assert health["backend_status"] is None
    assert "refused" in health["error"]


def test_sign_params_sorts_and_skips_empty_values() -> None:
    signature = sign_params({"timestamp": 100, "folder": "blog", "public_id": None}, "shh")
    expected = hashlib.sha1(b"folder=blog&timestamp=100shh").hexdigest()
    assert signature == expected


def test_credentials_from_settings_decrypts_secret() -> None:
    credentials = credentials_from_settings(
        {
            "cloudinary": {
                "cloud_name": "demo",
                "api_key": "key",
                "api_secret_encrypted": encrypt_value("secret"),
            }
        }
    )
    assert credentials == CloudinaryCredentials("demo", "key", "secret")


def test_credentials_round_trip_through_settings() -> None:
    stored = credentials_to_settings(CloudinaryCredentials("demo", "key", "secret"))
    assert "api_secret" not in stored
    assert credentials_from_settings({"cloudinary": stored}).api_secret == "secret"


def test_missing_or_incomplete_credentials_raise() -> None:
    with pytest.raises(IntegrationNotConfiguredError, match="not configured"):
        credentials_from_settings({})
    with pytest.raises(IntegrationNotConfiguredError, match="Incomplete"):
        credentials_from_settings({"cloudinary": {"cloud_name": "demo", "api_key": "key"}})


@pytest.mark.asyncio
async def test_iter_all_images_follows_cursor() -> None:
    pages = {
        None: {"resources": [{"public_id": "a"}], "next_cursor": "c1"},
        "c1": {"resources": [{"public_id": "b"}]},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages[request.url.params.get("next_cursor")])

    credentials = CloudinaryCredentials("demo", "key", "secret")
    async with CloudinaryClient(credentials, transport=httpx.MockTransport(handler)) as client:
        resources = await client.iter_all_images("blog-images/org-1")

    assert [r["public_id"] for r in resources] == ["a", "b"]


@pytest.mark.asyncio
async def test_upload_from_url_sends_signed_form() -> None:
    bodies: list[bytes] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.content)
        return httpx.Response(200, json={"public_id": "blog/x", "secure_url": "https://res/x.png"})

    credentials = CloudinaryCredentials("demo", "key", "secret")
    async with CloudinaryClient(credentials, transport=httpx.MockTransport(handler)) as client:
        resource = await client.upload(folder="blog", remote_url="https://img.example.com/x.png")

    assert resource["public_id"] == "blog/x"
    body = bodies[0].decode()
    assert "signature=" in body
    assert "api_key=key" in body


def test_location_codes() -> None:
    assert get_location_code("en-US") == 2840
    assert get_location_code("United Kingdom") == 2826
    assert get_location_code("de-DE") == 2276
    assert get_location_code("xx") == 2840


def test_upstream_error_message_is_truncated() -> None:
    error = BlogWriterUpstreamError(500, "x" * 900)
    assert json.dumps(error.details) == '{"upstream_status": 500}'
    assert len(error.message) < 600
