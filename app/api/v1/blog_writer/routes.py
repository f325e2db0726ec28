"""Content generation endpoints backed by the content backend and DataForSEO."""

import logging
from typing import Any

import httpx
from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from app.core.exceptions import ExternalAPIError
from app.dependencies import CurrentUser, DbSession
from app.integrations.blog_writer import BlogWriterClient
from app.integrations.dataforseo import DataForSEOClient
from app.schemas.blog_writer import (
    ContentResultResponse,
    EnhanceFieldsRequest,
    GenerateRequest,
    GenerateTextRequest,
    MetaTagsRequest,
    ParaphraseRequest,
    SubtopicsRequest,
)
from app.services.blog_generation import (
    BlogGenerationService,
    GenerationFailedError,
    GenerationRequest,
)
from app.services.content_text import fallback_field_analysis, fallback_meta_tags

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate", response_model=None)
async def generate_blog(
    request: GenerateRequest,
    current_user: CurrentUser,
    session: DbSession,
    async_mode: bool = Query(False),
) -> dict[str, Any] | JSONResponse:
    """Generate a post, tracking it as a queue item.

    Backend failures mark the queue item failed and answer 500 with its id.
    """
    async with BlogWriterClient() as client:
        service = BlogGenerationService(session, client)
        try:
            return await service.generate(
                current_user,
                GenerationRequest(**request.model_dump()),
                async_mode=async_mode,
            )
        except GenerationFailedError as exc:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Failed to generate blog content",
                    "details": {"message": exc.message},
                    "queue_id": exc.queue_id,
                },
            )


@router.get("/jobs/{job_id}")
async def get_generation_job(job_id: str, current_user: CurrentUser) -> dict[str, Any]:
    """Status of an async generation job on the backend."""
    async with BlogWriterClient() as client:
        return await client.get_job_status(job_id)


@router.post("/analyze")
async def enhance_fields(
    request: EnhanceFieldsRequest,
    current_user: CurrentUser,
) -> dict[str, Any]:
    """SEO field suggestions, falling back to local truncation when the backend fails."""
    payload = request.model_dump(exclude_none=True)
    try:
        async with BlogWriterClient() as client:
            result = await client.enhance_fields(payload)
    except (ExternalAPIError, httpx.HTTPError) as exc:
        logger.warning(
            "Field enhancement unavailable, using local analysis",
            extra={"error": str(exc), "user_id": current_user.id},
        )
        return fallback_field_analysis(request.title, request.content)
    return {**result, "fallback": False}


@router.post("/meta-tags")
async def generate_meta_tags(
    request: MetaTagsRequest,
    current_user: CurrentUser,
) -> dict[str, Any]:
    try:
        async with DataForSEOClient() as client:
            tags = await client.generate_meta_tags(request.source_text, request.language)
    except (ExternalAPIError, httpx.HTTPError) as exc:
        logger.warning("Meta tag generation failed, truncating locally", extra={"error": str(exc)})
        return fallback_meta_tags(request.title, request.description)
    return {
        "meta_title": tags.get("title") or request.title,
        "meta_description": tags.get("description") or request.description,
        "fallback": False,
    }


@router.post("/subtopics", response_model=ContentResultResponse)
async def generate_subtopics(
    request: SubtopicsRequest,
    current_user: CurrentUser,
) -> ContentResultResponse:
    async with DataForSEOClient() as client:
        subtopics = await client.generate_subtopics(
            request.text, request.max_subtopics, request.language
        )
    return ContentResultResponse(data={"subtopics": subtopics})


@router.post("/paraphrase", response_model=ContentResultResponse)
async def paraphrase(
    request: ParaphraseRequest,
    current_user: CurrentUser,
) -> ContentResultResponse:
    async with DataForSEOClient() as client:
        result = await client.paraphrase(
            request.text, request.creativity_index, request.language
        )
    return ContentResultResponse(data=result)


@router.post("/text", response_model=ContentResultResponse)
async def generate_text(
    request: GenerateTextRequest,
    current_user: CurrentUser,
) -> ContentResultResponse:
    async with DataForSEOClient() as client:
        result = await client.generate_text(
            request.text,
            creativity_index=request.creativity_index,
            text_length=request.text_length,
            tone=request.tone,
            language=request.language,
        )
    return ContentResultResponse(data=result)
