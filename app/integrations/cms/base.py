"""Shared types for CMS publishers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from app.core.exceptions import ExternalAPIError

logger = logging.getLogger(__name__)


@dataclass
class PublishablePost:
    """Blog post fields a CMS can receive."""

    title: str
    content: str
    excerpt: str | None = None
    slug: str | None = None
    featured_image: str | None = None
    featured_image_alt: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    published_at: str | None = None
    tags: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)


@dataclass
class PublishResult:
    platform_post_id: str
    url: str | None
    published: bool
    raw: dict[str, Any] = field(default_factory=dict)


class CMSPublisher(Protocol):
    platform: str

    async def publish(self, post: PublishablePost) -> PublishResult: ...


def raise_for_cms_status(response: httpx.Response, api_name: str) -> None:
    if response.is_success:
        return
    logger.warning(
        "CMS request failed",
        extra={"api": api_name, "status": response.status_code, "body": response.text[:500]},
    )
    raise ExternalAPIError(
        api_name,
        f"{response.status_code} {response.reason_phrase} - {response.text[:500]}",
        upstream_status=response.status_code,
    )


def cms_json(response: httpx.Response, api_name: str) -> dict[str, Any]:
    """Decode a successful CMS reply, which must be a JSON object."""
    try:
        data = response.json()
    except ValueError as exc:
        raise ExternalAPIError(
            api_name,
            f"Unexpected non-JSON response ({response.status_code}): {response.text[:200]}",
            upstream_status=response.status_code,
        ) from exc
    if not isinstance(data, dict):
        raise ExternalAPIError(
            api_name,
            f"Unexpected response shape: {type(data).__name__}",
            upstream_status=response.status_code,
        )
    return data


def require_item_id(data: dict[str, Any], api_name: str) -> str:
    item_id = data.get("id")
    if item_id in (None, ""):
        raise ExternalAPIError(api_name, "Response did not include an item id")
    return str(item_id)
