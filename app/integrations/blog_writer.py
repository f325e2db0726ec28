"""Client for the external blog content-generation backend."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from app.config import settings
from app.core.exceptions import APIKeyMissingError, ExternalAPIError
from app.core.http_retry import send_with_retry

logger = logging.getLogger(__name__)

API_NAME = "Blog Writer"

ENHANCED_KEYWORDS_PATH = "/api/v1/keywords/enhanced"
SUGGEST_KEYWORDS_PATH = "/api/v1/keywords/suggest"
KEYWORD_STREAM_PATH = "/api/v1/keywords/enhanced/stream"
GENERATE_PATH = "/api/v1/blog/generate-enhanced"
JOB_STATUS_PATH = "/api/v1/blog/jobs/{job_id}"
ENHANCE_FIELDS_PATH = "/api/v1/content/enhance-fields"
HEALTH_PATH = "/health"

DEFAULT_LOCATION = "United States"
DEFAULT_LANGUAGE = "en"
DEFAULT_SUGGESTION_LIMIT = 150

BLOG_TYPES = frozenset(
    {
        "custom",
        "brand",
        "top_10",
        "product_review",
        "how_to",
        "comparison",
        "guide",
        "tutorial",
        "listicle",
        "case_study",
        "news",
        "opinion",
        "interview",
        "faq",
        "checklist",
        "tips",
        "definition",
        "benefits",
        "problem_solution",
        "trend_analysis",
        "statistics",
        "resource_list",
        "timeline",
        "myth_busting",
        "best_practices",
        "getting_started",
        "advanced",
        "troubleshooting",
    }
)


class BlogWriterUpstreamError(ExternalAPIError):
    """The backend answered with a non-success status."""

    def __init__(self, status_code: int, text: str) -> None:
        self.text = text
        super().__init__(API_NAME, f"{status_code}: {text[:500]}", upstream_status=status_code)


def length_for_word_count(word_count: int) -> str:
    """Map a target word count to the backend's length bucket."""
    if word_count >= 3000:
        return "extended"
    if word_count >= 2000:
        return "long"
    if word_count >= 1000:
        return "medium"
    return "short"


def quality_features(quality_level: str) -> dict[str, bool]:
    premium = quality_level in {"premium", "enterprise"}
    high = quality_level == "high"
    return {
        "use_google_search": premium or high,
        "use_fact_checking": premium or high,
        "use_citations": premium or high,
        "use_serp_optimization": premium or high,
        "use_consensus_generation": premium,
        "use_knowledge_graph": premium,
        "use_semantic_keywords": premium or high,
        "use_quality_scoring": premium or high,
    }


def build_generation_payload(
    *,
    topic: str,
    keywords: list[str] | None = None,
    target_audience: str | None = None,
    tone: str | None = None,
    word_count: int | None = None,
    quality_level: str | None = None,
    custom_instructions: str | None = None,
    template_type: str | None = None,
    feature_overrides: dict[str, bool] | None = None,
) -> dict[str, Any]:
    """Request body for the enhanced generation endpoint."""
    keyword_list = [str(k).strip() for k in (keywords or []) if str(k).strip()] or [topic]
    level = quality_level or "medium"
    payload: dict[str, Any] = {
        "blog_type": template_type if template_type in BLOG_TYPES else "custom",
        "topic": topic,
        "keywords": keyword_list,
        "focus_keyword": keyword_list[0],
        "target_audience": target_audience or "general",
        "tone": tone or "professional",
        "length": length_for_word_count(word_count or 1000),
        "format": "html",
        "include_introduction": True,
        "include_conclusion": True,
        "include_faq": False,
        "include_toc": False,
        **quality_features(level),
        **(feature_overrides or {}),
    }
    if custom_instructions:
        payload["custom_instructions"] = custom_instructions
    return payload


def normalize_suggestions(data: dict[str, Any], keyword: str, limit: int) -> dict[str, Any]:
    """Flatten enhanced or legacy suggest responses into one shape."""
    if data.get("enhanced_analysis"):
        analysis = data["enhanced_analysis"].get(keyword) or {}
        raw = [
            *(analysis.get("related_keywords") or []),
            *(analysis.get("long_tail_keywords") or []),
        ][:limit]
        suggestions = [
            {
                "keyword": item if isinstance(item, str) else str(item.get("keyword") or item),
                "search_volume": None,
                "difficulty": analysis.get("difficulty"),
                "competition": analysis.get("competition"),
                "cpc": analysis.get("cpc"),
            }
            for item in raw
        ]
        return {
            "suggestions": suggestions,
            "keyword_suggestions": suggestions,
            "suggestions_with_topics": data.get("suggestions_with_topics") or [],
            "total_suggestions": len(suggestions),
            "clusters": data.get("clusters") or [],
            "cluster_summary": data.get("cluster_summary") or {},
            "enhanced_analysis": data["enhanced_analysis"],
            "original_keyword_analysis": analysis,
        }

    suggestions = data.get("keyword_suggestions") or data.get("suggestions") or []
    return {
        "suggestions": suggestions,
        "keyword_suggestions": suggestions,
        "suggestions_with_topics": data.get("suggestions_with_topics") or [],
        "total_suggestions": data.get("total_suggestions") or len(suggestions),
        "clusters": data.get("clusters") or [],
        "cluster_summary": data.get("cluster_summary") or {},
    }


class BlogWriterClient:
    """Async client for the content backend.

    Use as an async context manager. The base URL and optional bearer key come
    from settings unless passed explicitly.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.blog_writer_api_url or "").rstrip("/")
        self.api_key = api_key if api_key is not None else settings.blog_writer_api_key
        self.timeout = timeout or settings.blog_writer_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self.base_url:
            raise APIKeyMissingError(API_NAME)

    @property
    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def __aenter__(self) -> "BlogWriterClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self._headers,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def _post_with_retry(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        return await send_with_retry(
            lambda: self.client.post(path, json=payload),
            operation_name=path,
            attempts=settings.blog_writer_max_retries,
            base_delay_seconds=settings.blog_writer_retry_delay_seconds,
        )

    @staticmethod
    def _json_or_raise(response: httpx.Response) -> dict[str, Any]:
        if response.is_success:
            return response.json()
        logger.warning(
            "Blog writer request failed",
            extra={"path": response.request.url.path, "status": response.status_code},
        )
        raise BlogWriterUpstreamError(response.status_code, response.text)

    async def suggest_keywords(
        self,
        keyword: str,
        location: str = DEFAULT_LOCATION,
        language: str = DEFAULT_LANGUAGE,
        limit: int = DEFAULT_SUGGESTION_LIMIT,
    ) -> dict[str, Any]:
        """Keyword suggestions from the enhanced endpoint, or the legacy one on 503."""
        response = await self._post_with_retry(
            ENHANCED_KEYWORDS_PATH,
            {
                "keywords": [keyword],
                "location": location,
                "language": language,
                "include_search_volume": True,
                "max_suggestions_per_keyword": limit,
            },
        )
        if response.status_code == 503:
            logger.info("Enhanced keywords unavailable, using suggest endpoint")
            response = await self._post_with_retry(
                SUGGEST_KEYWORDS_PATH,
                {
                    "keyword": keyword,
                    "limit": limit,
                    "include_search_volume": True,
                    "include_difficulty": True,
                    "include_competition": True,
                    "include_cpc": True,
                    "location": location,
                },
            )
        return normalize_suggestions(self._json_or_raise(response), keyword, limit)

    async def open_stream(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        """Start a streaming POST; the caller must ``aclose()`` the response."""
        request = self.client.build_request("POST", path, json=payload)
        return await self.client.send(request, stream=True)

    async def generate(self, payload: dict[str, Any], *, async_mode: bool = False) -> dict[str, Any]:
        params = {"async_mode": "true"} if async_mode else None
        logger.info(
            "Requesting blog generation",
            extra={"topic": payload.get("topic"), "async_mode": async_mode},
        )
        response = await self.client.post(
            GENERATE_PATH,
            json=payload,
            params=params,
            timeout=settings.blog_writer_generation_timeout_seconds,
        )
        return self._json_or_raise(response)

    async def get_job_status(self, job_id: str) -> dict[str, Any]:
        response = await self.client.get(JOB_STATUS_PATH.format(job_id=job_id))
        return self._json_or_raise(response)

    async def enhance_fields(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.post(ENHANCE_FIELDS_PATH, json=payload)
        return self._json_or_raise(response)

    async def health(self) -> dict[str, Any]:
        """Check the backend; never raises for HTTP failures."""
        started = time.perf_counter()
        try:
            response = await self.client.get(HEALTH_PATH)
        except httpx.HTTPError as exc:
            logger.warning("Blog writer health check failed", extra={"error": str(exc)})
            return {
                "status": "unhealthy",
                "backend_status": None,
                "latency_ms": round((time.perf_counter() - started) * 1000),
                "error": str(exc),
            }
        return {
            "status": "healthy" if response.is_success else "unhealthy",
            "backend_status": response.status_code,
            "latency_ms": round((time.perf_counter() - started) * 1000),
        }
