"""Blog generation through the content backend, tracked as a queue item."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BlogWriterError, ExternalAPIError
from app.integrations.blog_writer import (
    GENERATE_PATH,
    BlogWriterClient,
    BlogWriterUpstreamError,
    build_generation_payload,
)
from app.models.blog import BlogGenerationQueueItem
from app.models.user import User
from app.services.blog_posts import create_draft_from_queue

logger = logging.getLogger(__name__)

FINAL_STAGE = "finalization"
TOTAL_STAGES = 12


class GenerationFailedError(BlogWriterError):
    """The backend could not generate the post; the queue item is marked failed."""

    status_code = 500

    def __init__(self, message: str, queue_id: str) -> None:
        self.queue_id = queue_id
        super().__init__(message, {"queue_id": queue_id})


@dataclass
class GenerationRequest:
    topic: str
    keywords: list[str]
    target_audience: str | None = None
    tone: str | None = None
    word_count: int | None = None
    quality_level: str | None = None
    custom_instructions: str | None = None
    template_type: str | None = None
    content_goal: str | None = None
    priority: int = 5
    features: dict[str, bool] | None = None


def generation_error_message(exc: Exception) -> str:
    if isinstance(exc, BlogWriterUpstreamError):
        return f"API error {exc.upstream_status}: {exc.text[:500]}"
    if isinstance(exc, BlogWriterError):
        return exc.message
    return f"API error: {exc}"


def progress_from_result(result: dict[str, Any]) -> list[dict[str, Any]]:
    """Progress updates from the result, or one synthetic completion update."""
    updates = result.get("progress_updates")
    if isinstance(updates, list) and updates:
        return updates
    legacy = result.get("progress")
    if isinstance(legacy, dict):
        return [
            {
                "stage": legacy.get("stage") or "unknown",
                "stage_number": legacy.get("stage_number") or 0,
                "total_stages": legacy.get("total_stages") or TOTAL_STAGES,
                "progress_percentage": legacy.get("progress_percentage") or 0,
                "status": legacy.get("status") or "Processing",
            }
        ]
    return [
        {
            "stage": FINAL_STAGE,
            "stage_number": TOTAL_STAGES,
            "total_stages": TOTAL_STAGES,
            "progress_percentage": 100,
            "status": "Blog generation complete",
        }
    ]


def extract_generated(result: dict[str, Any], topic: str) -> dict[str, Any]:
    """Title, content and descriptions from either backend response format."""
    blog_post = result.get("blog_post") or {}
    title = blog_post.get("title") or result.get("title") or topic
    excerpt = (
        blog_post.get("excerpt")
        or blog_post.get("summary")
        or result.get("excerpt")
        or result.get("meta_description")
        or ""
    )
    return {
        "title": title,
        "content": blog_post.get("content") or result.get("content") or "",
        "excerpt": excerpt,
        "meta_title": result.get("meta_title") or result.get("title") or title,
        "meta_description": (
            blog_post.get("meta_description") or result.get("meta_description") or excerpt
        ),
    }


class BlogGenerationService:
    """Creates the queue item, calls the backend and records the outcome."""

    def __init__(self, session: AsyncSession, client: BlogWriterClient) -> None:
        self.session = session
        self.client = client

    async def _create_queue_item(
        self,
        user: User,
        request: GenerationRequest,
        now: datetime,
    ) -> BlogGenerationQueueItem:
        item = BlogGenerationQueueItem(
            org_id=user.org_id,
            created_by=user.id,
            topic=request.topic,
            keywords=list(request.keywords),
            target_audience=request.target_audience,
            tone=request.tone,
            word_count=request.word_count,
            quality_level=request.quality_level,
            custom_instructions=request.custom_instructions,
            template_type=request.template_type,
            priority=request.priority,
            status="generating",
            generation_started_at=now,
            progress_percentage=0,
            progress_updates=[],
            generation_metadata={},
            extra_metadata={
                "quality_level": request.quality_level or "medium",
                "endpoint": GENERATE_PATH,
                "content_goal": request.content_goal,
            },
        )
        self.session.add(item)
        await self.session.flush()
        return item

    async def generate(
        self,
        user: User,
        request: GenerationRequest,
        *,
        async_mode: bool = False,
    ) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        item = await self._create_queue_item(user, request, now)
        payload = build_generation_payload(
            topic=request.topic,
            keywords=request.keywords,
            target_audience=request.target_audience,
            tone=request.tone,
            word_count=request.word_count,
            quality_level=request.quality_level,
            custom_instructions=request.custom_instructions,
            template_type=request.template_type,
            feature_overrides=request.features,
        )

        try:
            result = await self.client.generate(payload, async_mode=async_mode)
        except (ExternalAPIError, httpx.HTTPError) as exc:
            message = generation_error_message(exc)
            item.status = "failed"
            item.generation_error = message
            await self.session.flush()
            logger.warning(
                "Blog generation failed",
                extra={"queue_id": item.id, "error": message},
            )
            raise GenerationFailedError(message, item.id) from exc

        if async_mode and result.get("job_id"):
            item.status = "queued"
            item.extra_metadata = {
                **(item.extra_metadata or {}),
                "backend_job_id": result["job_id"],
                "estimated_completion_time": result.get("estimated_completion_time"),
            }
            await self.session.flush()
            logger.info(
                "Async blog generation job created",
                extra={"queue_id": item.id, "job_id": result["job_id"]},
            )
            return {
                "job_id": result["job_id"],
                "status": result.get("status") or "queued",
                "message": result.get("message") or "Blog generation job created",
                "estimated_completion_time": result.get("estimated_completion_time"),
                "queue_id": item.id,
            }

        if async_mode:
            item.extra_metadata = {
                **(item.extra_metadata or {}),
                "async_mode_requested": True,
                "async_mode_failed": True,
                "fallback_to_sync": True,
            }

        updates = progress_from_result(result)
        latest = updates[-1]
        generated = extract_generated(result, request.topic)

        item.status = "generated"
        item.progress_updates = updates
        item.progress_percentage = max(0, min(100, int(latest.get("progress_percentage") or 100)))
        item.current_stage = latest.get("stage") or FINAL_STAGE
        item.generated_title = generated["title"]
        item.generated_content = generated["content"]
        item.generation_completed_at = datetime.now(timezone.utc)
        item.generation_metadata = {
            key: result.get(key)
            for key in ("seo_score", "readability_score", "word_count", "total_tokens", "total_cost")
            if result.get(key) is not None
        }

        post_id: str | None = None
        if generated["content"]:
            post = await create_draft_from_queue(self.session, item)
            post_id = post.id
        await self.session.flush()

        logger.info(
            "Blog generated",
            extra={"queue_id": item.id, "post_id": post_id, "stages": len(updates)},
        )
        return {
            **result,
            **generated,
            "progress_updates": updates,
            "success": result.get("success") is not False,
            "queue_id": item.id,
            "post_id": post_id,
        }
