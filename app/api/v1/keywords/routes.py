"""Keyword research and keyword storage endpoints."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack

import httpx
from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from app.config import settings
from app.dependencies import CurrentUser, DbSession
from app.integrations.blog_writer import KEYWORD_STREAM_PATH, BlogWriterClient
from app.integrations.dataforseo import DataForSEOClient, get_location_code
from app.schemas.keyword import (
    CachedKeywordResponse,
    CacheFlushResponse,
    CacheListResponse,
    KeywordMetricsRequest,
    KeywordMetricsResponse,
    KeywordStreamRequest,
    KeywordSuggestRequest,
    KeywordTermListResponse,
    KeywordTermResponse,
    ResearchLookupResponse,
    ResearchResultResponse,
    ResearchStoreRequest,
    SearchType,
)
from app.services.keyword_storage import (
    KeywordStorageService,
    ResearchPayload,
    TermFilters,
)

logger = logging.getLogger(__name__)

router = APIRouter()

KEYWORDS_REQUIRED_DETAIL = "keywords must be a non-empty array"
SSE_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


def _upstream_error_message(body: bytes, status_code: int) -> str:
    text = body.decode("utf-8", errors="replace")
    try:
        data = json.loads(text)
    except ValueError:
        return text[:500] or f"Upstream returned {status_code}"
    if isinstance(data, dict):
        message = data.get("error") or data.get("detail") or data.get("message")
        if message:
            return message if isinstance(message, str) else json.dumps(message)
    return text[:500]


@router.post("/suggest")
async def suggest_keywords(
    request: KeywordSuggestRequest,
    current_user: CurrentUser,
) -> dict:
    """Keyword suggestions from the content backend."""
    keyword = request.primary_keyword
    logger.info(
        "Keyword suggestions requested",
        extra={"keyword": keyword, "user_id": current_user.id, "limit": request.limit},
    )
    async with BlogWriterClient() as client:
        return await client.suggest_keywords(
            keyword,
            location=request.location,
            language=request.language,
            limit=request.limit,
        )


@router.post("/analyze/stream", response_model=None)
async def analyze_keywords_stream(
    request: KeywordStreamRequest,
    current_user: CurrentUser,
) -> StreamingResponse | JSONResponse:
    """Relay the backend's server-sent keyword analysis events unchanged."""
    keywords = request.keywords
    if not isinstance(keywords, list) or not keywords:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=KEYWORDS_REQUIRED_DETAIL,
        )

    payload = request.model_dump()
    logger.info(
        "Streaming keyword analysis",
        extra={"keyword_count": len(keywords), "user_id": current_user.id},
    )

    stack = AsyncExitStack()
    client = await stack.enter_async_context(
        BlogWriterClient(timeout=settings.blog_writer_stream_timeout_seconds)
    )
    try:
        upstream = await client.open_stream(KEYWORD_STREAM_PATH, payload)
    except httpx.HTTPError as exc:
        await stack.aclose()
        logger.warning("Keyword stream unreachable", extra={"error": str(exc)})
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"type": "error", "error": f"Keyword analysis backend unavailable: {exc}"},
        )
    except BaseException:
        await stack.aclose()
        raise
    stack.push_async_callback(upstream.aclose)

    if upstream.status_code >= 400:
        body = await upstream.aread()
        await stack.aclose()
        logger.warning(
            "Keyword stream rejected upstream",
            extra={"status": upstream.status_code},
        )
        return JSONResponse(
            status_code=upstream.status_code,
            content={
                "type": "error",
                "error": _upstream_error_message(body, upstream.status_code),
            },
        )

    async def relay() -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        finally:
            await stack.aclose()

    return StreamingResponse(relay(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/metrics", response_model=KeywordMetricsResponse)
async def keyword_metrics(
    request: KeywordMetricsRequest,
    current_user: CurrentUser,
) -> KeywordMetricsResponse:
    """Search volume, CPC, competition and difficulty from DataForSEO."""
    async with DataForSEOClient() as client:
        metrics = await client.get_keyword_metrics(
            request.keywords,
            location_code=get_location_code(request.location),
            language_code=request.language,
        )
    return KeywordMetricsResponse(keywords=metrics, total=len(metrics))


@router.post("/difficulty", response_model=KeywordMetricsResponse)
async def keyword_difficulty(
    request: KeywordMetricsRequest,
    current_user: CurrentUser,
) -> KeywordMetricsResponse:
    async with DataForSEOClient() as client:
        difficulty = await client.get_keyword_difficulty(
            request.keywords,
            location_code=get_location_code(request.location),
            language_code=request.language,
        )
    return KeywordMetricsResponse(keywords=difficulty, total=len(difficulty))


# Storage


@router.get("/storage/research", response_model=ResearchLookupResponse)
async def get_stored_research(
    current_user: CurrentUser,
    session: DbSession,
    keyword: str = Query(..., min_length=1),
    location: str = Query("United States"),
    language: str = Query("en"),
    search_type: SearchType = Query("traditional"),
) -> ResearchLookupResponse:
    """Return stored research for a keyword, noting whether a fresh cache entry exists."""
    storage = KeywordStorageService(session, current_user.id, current_user.org_id)
    cached = await storage.get_cached(keyword, location, language, search_type)
    research = await storage.get_research(keyword, location, language, search_type)
    return ResearchLookupResponse(
        result=ResearchResultResponse.model_validate(research) if research else None,
        cached=cached is not None,
    )


@router.post(
    "/storage/research",
    response_model=ResearchResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def store_research(
    request: ResearchStoreRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> ResearchResultResponse:
    storage = KeywordStorageService(session, current_user.id, current_user.org_id)
    research = await storage.store_research(ResearchPayload(**request.model_dump()))
    await session.refresh(research)
    return ResearchResultResponse.model_validate(research)


@router.get("/storage/terms", response_model=KeywordTermListResponse)
async def list_keyword_terms(
    current_user: CurrentUser,
    session: DbSession,
    search_type: SearchType | None = Query(None),
    location: str | None = Query(None),
    language: str | None = Query(None),
    parent_keyword: str | None = Query(None),
    is_related_term: bool | None = Query(None),
    is_matching_term: bool | None = Query(None),
    min_search_volume: int | None = Query(None, ge=0),
    max_difficulty: float | None = Query(None, ge=0),
    limit: int = Query(100, ge=1, le=1000),
) -> KeywordTermListResponse:
    storage = KeywordStorageService(session, current_user.id, current_user.org_id)
    terms = await storage.list_terms(
        TermFilters(
            search_type=search_type,
            location=location,
            language=language,
            parent_keyword=parent_keyword.lower().strip() if parent_keyword else None,
            is_related_term=is_related_term,
            is_matching_term=is_matching_term,
            min_search_volume=min_search_volume,
            max_difficulty=max_difficulty,
            limit=limit,
        )
    )
    return KeywordTermListResponse(
        terms=[KeywordTermResponse.model_validate(t) for t in terms],
        total=len(terms),
    )


@router.get("/storage/cache", response_model=CacheListResponse)
async def list_cache(
    current_user: CurrentUser,
    session: DbSession,
    limit: int = Query(100, ge=1, le=1000),
) -> CacheListResponse:
    storage = KeywordStorageService(session, current_user.id, current_user.org_id)
    entries = await storage.list_cached(limit)
    return CacheListResponse(
        entries=[CachedKeywordResponse.model_validate(e) for e in entries],
        total=len(entries),
    )


@router.delete("/storage/cache", response_model=CacheFlushResponse)
async def flush_cache(
    current_user: CurrentUser,
    session: DbSession,
    keyword: str | None = Query(None),
    search_type: SearchType | None = Query(None),
) -> CacheFlushResponse:
    storage = KeywordStorageService(session, current_user.id, current_user.org_id)
    deleted = await storage.flush_cache(keyword, search_type)
    return CacheFlushResponse(deleted=deleted)
