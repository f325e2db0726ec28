"""Unit tests for keyword research persistence."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from app.models.keyword import KeywordCache, KeywordResearchResult, KeywordTerm
from app.services.keyword_storage import (
    KeywordStorageService,
    TermFilters,
    ResearchPayload,
    is_long_tail,
    normalize_keyword,
)


class _EmptyResult:
    rowcount = 0

    def scalar_one_or_none(self) -> Any:
        return None


class _TermsResult:
    def scalars(self) -> "_TermsResult":
        return self

    def all(self) -> list[Any]:
        return []


class _DeleteResult:
    def __init__(self, rowcount: int) -> None:
        self.rowcount = rowcount


class _FakeSession:
    """Every lookup misses; added rows get ids on flush."""

    def __init__(self, execute_result: Any | None = None) -> None:
        self.added: list[Any] = []
        self.statements: list[Any] = []
        self._execute_result = execute_result or _EmptyResult()

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    async def execute(self, statement: Any) -> Any:
        self.statements.append(statement)
        return self._execute_result

    async def flush(self) -> None:
        for index, obj in enumerate(self.added):
            if getattr(obj, "id", None) is None:
                obj.id = f"{type(obj).__name__}-{index}"


def _terms(session: _FakeSession) -> dict[str, KeywordTerm]:
    return {obj.keyword: obj for obj in session.added if isinstance(obj, KeywordTerm)}


def test_normalize_keyword_and_long_tail() -> None:
    assert normalize_keyword("  Content Marketing ") == "content marketing"
    assert is_long_tail("how to write blog posts")
    assert not is_long_tail("write blog posts")


@pytest.mark.asyncio
async def test_store_research_creates_result_terms_and_cache() -> None:
    session = _FakeSession()
    service = KeywordStorageService(session, user_id="user-1", org_id="org-1")  # type: ignore[arg-type]
    payload = ResearchPayload(
        keyword="Content Marketing",
        traditional_data={
            "search_volume": 5400,
            "keyword_difficulty": 62.0,
            "cpc": 4.1,
            "trend_score": None,
            "serp_features": ["featured_snippet"],
        },
        related_terms=[
            {"keyword": "Content Marketing Strategy For Startups", "search_volume": 320},
            {"keyword": "content plan", "search_volume": 90, "parent_topic": "planning"},
        ],
        matching_terms=[{"keyword": "content marketing tools", "search_volume": 1200}],
        comprehensive_data={"clusters": []},
    )

    before = datetime.now(timezone.utc)
    research = await service.store_research(payload)

    assert isinstance(research, KeywordResearchResult)
    assert research.keyword == "content marketing"
    assert research.user_id == "user-1"
    assert research.org_id == "org-1"
    assert research.comprehensive_data == {
        "clusters": [],
        "matching_terms": [{"keyword": "content marketing tools", "search_volume": 1200}],
    }

    terms = _terms(session)
    main = terms["content marketing"]
    assert main.is_related_term is False
    assert main.is_matching_term is False
    assert main.search_volume == 5400
    assert main.metrics == {"serp_features": ["featured_snippet"]}

    related = terms["content marketing strategy for startups"]
    assert related.is_related_term is True
    assert related.is_long_tail is True
    assert related.parent_keyword == "content marketing"
    assert related.research_result_id == research.id
    assert terms["content plan"].metrics == {"parent_topic": "planning"}
    assert terms["content plan"].is_long_tail is False

    assert terms["content marketing tools"].is_matching_term is True

    caches = [obj for obj in session.added if isinstance(obj, KeywordCache)]
    assert len(caches) == 1
    assert caches[0].keyword == "content marketing"
    assert caches[0].expires_at >= before + timedelta(days=90)


@pytest.mark.asyncio
async def test_store_research_without_metrics_skips_main_term() -> None:
    session = _FakeSession()
    service = KeywordStorageService(session, user_id="user-1")  # type: ignore[arg-type]

    await service.store_research(ResearchPayload(keyword="seo"))

    assert _terms(session) == {}


@pytest.mark.asyncio
async def test_flush_cache_returns_deleted_count() -> None:
    session = _FakeSession(execute_result=_DeleteResult(rowcount=3))
    service = KeywordStorageService(session, user_id="user-1")  # type: ignore[arg-type]

    assert await service.flush_cache(keyword="SEO") == 3
    assert len(session.statements) == 1


@pytest.mark.asyncio
async def test_store_research_skips_terms_without_keyword() -> None:
    session = _FakeSession()
    service = KeywordStorageService(session, user_id="user-1")  # type: ignore[arg-type]

    await service.store_research(
        ResearchPayload(
            keyword="seo",
            related_terms=[{"search_volume": 10}, {"keyword": "  "}, {"keyword": "seo audit"}],
            matching_terms=[{"search_volume": 5}],
        )
    )

    assert list(_terms(session)) == ["seo audit"]


@pytest.mark.asyncio
async def test_list_terms_applies_zero_valued_filters() -> None:
    session = _FakeSession(execute_result=_TermsResult())
    service = KeywordStorageService(session, user_id="user-1")  # type: ignore[arg-type]

    await service.list_terms(TermFilters(min_search_volume=0, max_difficulty=0))

    sql = str(session.statements[0])
    assert "keyword_terms.search_volume >=" in sql
    assert "keyword_terms.keyword_difficulty <=" in sql
