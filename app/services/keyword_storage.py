"""Persistence for keyword research results, per-term metrics and the TTL cache."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.keyword import KeywordCache, KeywordResearchResult, KeywordTerm

logger = logging.getLogger(__name__)

DEFAULT_LOCATION = "United States"
DEFAULT_LANGUAGE = "en"
DEFAULT_SEARCH_TYPE = "traditional"
LONG_TAIL_MIN_WORDS = 4


def normalize_keyword(keyword: str) -> str:
    return keyword.lower().strip()


def is_long_tail(keyword: str) -> bool:
    return len(keyword.split()) >= LONG_TAIL_MIN_WORDS


@dataclass
class ResearchPayload:
    """A keyword research result as received from the research endpoints."""

    keyword: str
    location: str = DEFAULT_LOCATION
    language: str = DEFAULT_LANGUAGE
    search_type: str = DEFAULT_SEARCH_TYPE
    traditional_data: dict[str, Any] | None = None
    ai_data: dict[str, Any] | None = None
    related_terms: list[dict[str, Any]] = field(default_factory=list)
    matching_terms: list[dict[str, Any]] = field(default_factory=list)
    comprehensive_data: dict[str, Any] | None = None


@dataclass
class TermFilters:
    search_type: str | None = None
    location: str | None = None
    language: str | None = None
    parent_keyword: str | None = None
    is_related_term: bool | None = None
    is_matching_term: bool | None = None
    min_search_volume: int | None = None
    max_difficulty: float | None = None
    limit: int = 100


def _main_term_values(payload: ResearchPayload) -> dict[str, Any]:
    traditional = payload.traditional_data or {}
    ai = payload.ai_data or {}
    return {
        "search_volume": traditional.get("search_volume") or 0,
        "keyword_difficulty": traditional.get("keyword_difficulty"),
        "cpc": traditional.get("cpc"),
        "competition": traditional.get("competition"),
        "search_intent": traditional.get("search_intent"),
        "metrics": {
            key: value
            for key, value in {
                "global_search_volume": traditional.get("global_search_volume"),
                "traffic_potential": traditional.get("traffic_potential"),
                "trend_score": traditional.get("trend_score"),
                "monthly_searches": traditional.get("monthly_searches"),
                "serp_features": traditional.get("serp_features"),
                "parent_topic": traditional.get("parent_topic") or ai.get("reason"),
                "ai_search_volume": ai.get("ai_search_volume"),
                "ai_optimization_score": ai.get("ai_optimization_score"),
                "ai_recommended": ai.get("ai_recommended"),
                "ai_mentions_count": ai.get("ai_mentions_count"),
            }.items()
            if value is not None
        },
    }


def _keyed_terms(terms: list[dict[str, Any]]) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield (keyword, term) pairs, skipping terms without a usable keyword."""
    for term in terms:
        keyword = term.get("keyword") if isinstance(term, dict) else None
        if isinstance(keyword, str) and keyword.strip():
            yield keyword, term
        else:
            logger.warning("Skipping keyword term without a keyword", extra={"term": term})


def _related_term_values(term: dict[str, Any]) -> dict[str, Any]:
    return {
        "search_volume": term.get("search_volume"),
        "keyword_difficulty": term.get("keyword_difficulty"),
        "cpc": term.get("cpc"),
        "competition": term.get("competition"),
        "search_intent": term.get("search_intent"),
        "metrics": {"parent_topic": term["parent_topic"]} if term.get("parent_topic") else {},
    }


class KeywordStorageService:
    """Stores research per user and serves cached copies until they expire."""

    def __init__(self, session: AsyncSession, user_id: str, org_id: str | None = None) -> None:
        self.session = session
        self.user_id = user_id
        self.org_id = org_id

    async def get_cached(
        self,
        keyword: str,
        location: str = DEFAULT_LOCATION,
        language: str = DEFAULT_LANGUAGE,
        search_type: str = DEFAULT_SEARCH_TYPE,
    ) -> KeywordCache | None:
        """Return the cache row when present and not yet expired."""
        result = await self.session.execute(
            select(KeywordCache).where(
                KeywordCache.user_id == self.user_id,
                KeywordCache.keyword == normalize_keyword(keyword),
                KeywordCache.location == location,
                KeywordCache.language == language,
                KeywordCache.search_type == search_type,
                KeywordCache.expires_at > datetime.now(timezone.utc),
            )
        )
        cached = result.scalar_one_or_none()
        logger.debug(
            "Keyword cache lookup",
            extra={"keyword": keyword, "hit": cached is not None},
        )
        return cached

    async def set_cached(self, payload: ResearchPayload) -> KeywordCache:
        keyword = normalize_keyword(payload.keyword)
        expires_at = datetime.now(timezone.utc) + timedelta(days=settings.keyword_cache_ttl_days)

        result = await self.session.execute(
            select(KeywordCache).where(
                KeywordCache.user_id == self.user_id,
                KeywordCache.keyword == keyword,
                KeywordCache.location == payload.location,
                KeywordCache.language == payload.language,
                KeywordCache.search_type == payload.search_type,
            )
        )
        cached = result.scalar_one_or_none()
        if cached is None:
            cached = KeywordCache(
                user_id=self.user_id,
                keyword=keyword,
                location=payload.location,
                language=payload.language,
                search_type=payload.search_type,
            )
            self.session.add(cached)

        cached.traditional_data = payload.traditional_data
        cached.ai_data = payload.ai_data
        cached.related_terms = list(payload.related_terms)
        cached.comprehensive_data = payload.comprehensive_data
        cached.expires_at = expires_at
        await self.session.flush()
        return cached

    async def store_research(self, payload: ResearchPayload) -> KeywordResearchResult:
        """Upsert the research row, its terms and the cache entry."""
        keyword = normalize_keyword(payload.keyword)
        research = await self._find_research(
            keyword, payload.location, payload.language, payload.search_type
        )
        if research is None:
            research = KeywordResearchResult(
                user_id=self.user_id,
                org_id=self.org_id,
                keyword=keyword,
                location=payload.location,
                language=payload.language,
                search_type=payload.search_type,
            )
            self.session.add(research)

        research.traditional_data = payload.traditional_data
        research.ai_data = payload.ai_data
        research.related_terms = list(payload.related_terms)
        research.comprehensive_data = {
            **(payload.comprehensive_data or {}),
            "matching_terms": list(payload.matching_terms),
        }
        research.accessed_at = datetime.now(timezone.utc)
        await self.session.flush()

        if payload.traditional_data or payload.ai_data:
            await self._upsert_term(
                research,
                payload,
                payload.keyword,
                _main_term_values(payload),
                is_related=False,
                is_matching=False,
            )
        for term_keyword, term in _keyed_terms(payload.related_terms):
            await self._upsert_term(
                research,
                payload,
                term_keyword,
                _related_term_values(term),
                is_related=True,
                is_matching=False,
            )
        for term_keyword, term in _keyed_terms(payload.matching_terms):
            await self._upsert_term(
                research,
                payload,
                term_keyword,
                _related_term_values(term),
                is_related=False,
                is_matching=True,
            )

        await self.set_cached(payload)
        logger.info(
            "Keyword research stored",
            extra={
                "keyword": keyword,
                "research_id": research.id,
                "related_terms": len(payload.related_terms),
                "matching_terms": len(payload.matching_terms),
            },
        )
        return research

    async def get_research(
        self,
        keyword: str,
        location: str = DEFAULT_LOCATION,
        language: str = DEFAULT_LANGUAGE,
        search_type: str = DEFAULT_SEARCH_TYPE,
    ) -> KeywordResearchResult | None:
        research = await self._find_research(
            normalize_keyword(keyword), location, language, search_type
        )
        if research is not None:
            research.accessed_at = datetime.now(timezone.utc)
            await self.session.flush()
        return research

    async def flush_cache(self, keyword: str | None = None, search_type: str | None = None) -> int:
        """Delete this user's cache rows, optionally narrowed; returns the count."""
        stmt = delete(KeywordCache).where(KeywordCache.user_id == self.user_id)
        if keyword:
            stmt = stmt.where(KeywordCache.keyword == normalize_keyword(keyword))
        if search_type:
            stmt = stmt.where(KeywordCache.search_type == search_type)
        result = await self.session.execute(stmt)
        deleted = result.rowcount or 0
        logger.info(
            "Keyword cache flushed",
            extra={"user_id": self.user_id, "keyword": keyword, "deleted": deleted},
        )
        return deleted

    async def list_cached(self, limit: int = 100) -> list[KeywordCache]:
        result = await self.session.execute(
            select(KeywordCache)
            .where(
                KeywordCache.user_id == self.user_id,
                KeywordCache.expires_at > datetime.now(timezone.utc),
            )
            .order_by(KeywordCache.updated_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_terms(self, filters: TermFilters | None = None) -> list[KeywordTerm]:
        filters = filters or TermFilters()
        stmt = select(KeywordTerm).where(KeywordTerm.user_id == self.user_id)
        if filters.search_type:
            stmt = stmt.where(KeywordTerm.search_type == filters.search_type)
        if filters.location:
            stmt = stmt.where(KeywordTerm.location == filters.location)
        if filters.language:
            stmt = stmt.where(KeywordTerm.language == filters.language)
        if filters.parent_keyword:
            stmt = stmt.where(KeywordTerm.parent_keyword == filters.parent_keyword)
        if filters.is_related_term is not None:
            stmt = stmt.where(KeywordTerm.is_related_term.is_(filters.is_related_term))
        if filters.is_matching_term is not None:
            stmt = stmt.where(KeywordTerm.is_matching_term.is_(filters.is_matching_term))
        if filters.min_search_volume is not None:
            stmt = stmt.where(KeywordTerm.search_volume >= filters.min_search_volume)
        if filters.max_difficulty is not None:
            stmt = stmt.where(KeywordTerm.keyword_difficulty <= filters.max_difficulty)

        stmt = stmt.order_by(KeywordTerm.search_volume.desc().nulls_last()).limit(filters.limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _find_research(
        self,
        keyword: str,
        location: str,
        language: str,
        search_type: str,
    ) -> KeywordResearchResult | None:
        result = await self.session.execute(
            select(KeywordResearchResult).where(
                KeywordResearchResult.user_id == self.user_id,
                KeywordResearchResult.keyword == keyword,
                KeywordResearchResult.location == location,
                KeywordResearchResult.language == language,
                KeywordResearchResult.search_type == search_type,
            )
        )
        return result.scalar_one_or_none()

    async def _upsert_term(
        self,
        research: KeywordResearchResult,
        payload: ResearchPayload,
        raw_keyword: str,
        values: dict[str, Any],
        *,
        is_related: bool,
        is_matching: bool,
    ) -> KeywordTerm:
        keyword = normalize_keyword(raw_keyword)
        result = await self.session.execute(
            select(KeywordTerm).where(
                KeywordTerm.user_id == self.user_id,
                KeywordTerm.keyword == keyword,
                KeywordTerm.location == payload.location,
                KeywordTerm.language == payload.language,
                KeywordTerm.search_type == payload.search_type,
            )
        )
        term = result.scalar_one_or_none()
        if term is None:
            term = KeywordTerm(
                user_id=self.user_id,
                keyword=keyword,
                location=payload.location,
                language=payload.language,
                search_type=payload.search_type,
            )
            self.session.add(term)

        term.research_result_id = research.id
        term.parent_keyword = normalize_keyword(payload.keyword)
        term.is_related_term = is_related
        term.is_matching_term = is_matching
        term.is_long_tail = is_long_tail(keyword)
        for column, value in values.items():
            setattr(term, column, value)
        await self.session.flush()
        return term
