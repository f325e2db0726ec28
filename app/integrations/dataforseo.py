"""DataForSEO API integration for keyword metrics and content generation."""

import base64
import logging
from typing import Any

import httpx

from app.config import settings
from app.core.exceptions import APIKeyMissingError, ExternalAPIError, RateLimitExceededError

logger = logging.getLogger(__name__)

STATUS_OK = 20000


class DataForSEOClient:
    """Client for DataForSEO API.

    Provides methods for:
    - Keyword metrics (volume, CPC, difficulty)
    - Bulk keyword difficulty
    - Content generation (text, subtopics, paraphrase, meta tags)
    """

    BASE_URL = "https://api.dataforseo.com/v3"

    def __init__(
        self,
        login: str | None = None,
        password: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.login = login or settings.dataforseo_login
        self.password = password or settings.dataforseo_password
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self.login or not self.password:
            raise APIKeyMissingError("DataForSEO")

    @property
    def _auth_header(self) -> str:
        """Generate Basic Auth header."""
        credentials = f"{self.login}:{self.password}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return f"Basic {encoded}"

    async def __aenter__(self) -> "DataForSEOClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": self._auth_header,
                "Content-Type": "application/json",
            },
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

    async def _make_request(
        self,
        endpoint: str,
        data: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """POST a task array and return the concatenated task results."""
        logger.info("DataForSEO API request", extra={"endpoint": endpoint})
        url = f"{self.BASE_URL}/{endpoint}"

        try:
            response = await self.client.post(url, json=data)

            if response.status_code == 429:
                logger.warning("DataForSEO rate limit hit", extra={"endpoint": endpoint})
                raise RateLimitExceededError("DataForSEO")

            response.raise_for_status()
            result = response.json()

            if result.get("status_code") != STATUS_OK:
                logger.warning(
                    "DataForSEO API error",
                    extra={"endpoint": endpoint, "status": result.get("status_message")},
                )
                raise ExternalAPIError(
                    "DataForSEO",
                    result.get("status_message", "Unknown error"),
                )

            results = []
            for task in result.get("tasks", []):
                if task.get("status_code") == STATUS_OK and task.get("result"):
                    results.extend(task["result"])

            return results

        except httpx.HTTPError as e:
            logger.warning("DataForSEO HTTP error", extra={"endpoint": endpoint, "error": str(e)})
            raise ExternalAPIError("DataForSEO", str(e)) from e

    async def get_keyword_metrics(
        self,
        keywords: list[str],
        location_code: int = 2840,
        language_code: str = "en",
    ) -> list[dict[str, Any]]:
        """Get search metrics for a list of keywords.

        Args:
            keywords: List of keywords (sent in batches of 700)
            location_code: DataForSEO location code
            language_code: Language code

        Returns:
            List of keyword metrics including difficulty
        """
        logger.info(
            "Fetching keyword metrics",
            extra={"keyword_count": len(keywords), "location": location_code},
        )
        if not keywords:
            return []

        batch_size = 700
        all_metrics = []

        for i in range(0, len(keywords), batch_size):
            batch = keywords[i : i + batch_size]
            results = await self._make_request(
                "dataforseo_labs/google/keyword_overview/live",
                [
                    {
                        "keywords": batch,
                        "location_code": location_code,
                        "language_code": language_code,
                    }
                ],
            )

            for result in results:
                for item in result.get("items", []):
                    info = item.get("keyword_info") or {}
                    props = item.get("keyword_properties") or {}
                    intent = item.get("search_intent_info") or {}
                    monthly = info.get("monthly_searches") or []

                    all_metrics.append({
                        "keyword": item.get("keyword"),
                        "search_volume": info.get("search_volume"),
                        "cpc": info.get("cpc"),
                        "competition": info.get("competition"),
                        "competition_level": info.get("competition_level"),
                        "difficulty": props.get("keyword_difficulty"),
                        "search_intent": intent.get("main_intent"),
                        "trend_data": [m.get("search_volume", 0) for m in monthly],
                    })

        return all_metrics

    async def get_keyword_difficulty(
        self,
        keywords: list[str],
        location_code: int = 2840,
        language_code: str = "en",
    ) -> list[dict[str, Any]]:
        """Get keyword difficulty scores, ``None`` for batches the API rejected."""
        if not keywords:
            return []

        batch_size = 1000
        all_difficulty = []

        for i in range(0, len(keywords), batch_size):
            batch = keywords[i : i + batch_size]
            try:
                results = await self._make_request(
                    "dataforseo_labs/google/bulk_keyword_difficulty/live",
                    [
                        {
                            "keywords": batch,
                            "location_code": location_code,
                            "language_code": language_code,
                        }
                    ],
                )
            except ExternalAPIError:
                logger.warning("Keyword difficulty batch failed", extra={"batch_size": len(batch)})
                all_difficulty.extend({"keyword": kw, "difficulty": None} for kw in batch)
                continue

            for result in results:
                for item in result.get("items", []):
                    all_difficulty.append({
                        "keyword": item.get("keyword"),
                        "difficulty": item.get("keyword_difficulty"),
                    })

        return all_difficulty

    # ========== Content generation ==========

    async def generate_text(
        self,
        text: str,
        creativity_index: float = 0.5,
        text_length: int = 500,
        tone: str = "professional",
        language: str = "en",
    ) -> dict[str, Any]:
        results = await self._make_request(
            "content_generation/generate_text/live",
            [
                {
                    "text": text,
                    "creativity_index": creativity_index,
                    "text_length": text_length,
                    "tone": tone,
                    "language": language,
                }
            ],
        )
        return results[0] if results else {}

    async def generate_subtopics(
        self,
        text: str,
        max_subtopics: int = 10,
        language: str = "en",
    ) -> list[str]:
        results = await self._make_request(
            "content_generation/generate_subtopics/live",
            [{"text": text, "max_subtopics": max_subtopics, "language": language}],
        )
        return list(results[0].get("subtopics") or []) if results else []

    async def paraphrase(
        self,
        text: str,
        creativity_index: float = 0.5,
        language: str = "en",
    ) -> dict[str, Any]:
        results = await self._make_request(
            "content_generation/paraphrase/live",
            [{"text": text, "creativity_index": creativity_index, "language": language}],
        )
        return results[0] if results else {}

    async def generate_meta_tags(self, text: str, language: str = "en") -> dict[str, Any]:
        """Return ``{"title", "description"}`` suggested for ``text``."""
        results = await self._make_request(
            "content_generation/generate_meta_tags/live",
            [{"text": text, "language": language}],
        )
        if not results:
            raise ExternalAPIError("DataForSEO", "No meta tags returned")
        return results[0]


# Location codes for common countries
LOCATION_CODES = {
    "us": 2840,
    "united states": 2840,
    "uk": 2826,
    "united kingdom": 2826,
    "de": 2276,
    "germany": 2276,
    "fr": 2250,
    "france": 2250,
    "es": 2724,
    "spain": 2724,
    "it": 2380,
    "italy": 2380,
    "nl": 2528,
    "netherlands": 2528,
    "au": 2036,
    "australia": 2036,
    "ca": 2124,
    "canada": 2124,
    "in": 2356,
    "india": 2356,
}


def get_location_code(locale: str) -> int:
    """Convert a locale (``en-US``), country code or country name to a location code."""
    value = locale.strip().lower()
    if value in LOCATION_CODES:
        return LOCATION_CODES[value]
    country = value.split("-")[-1] if "-" in value else value
    return LOCATION_CODES.get(country, 2840)  # Default to US
