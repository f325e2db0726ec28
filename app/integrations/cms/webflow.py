"""Publish blog posts into a Webflow CMS collection (API v2)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

import httpx

from app.config import settings
from app.core.exceptions import ExternalAPIError, IntegrationNotConfiguredError
from app.integrations.cms.base import (
    PublishablePost,
    PublishResult,
    cms_json,
    raise_for_cms_status,
    require_item_id,
)
from app.services.content_text import slugify

logger = logging.getLogger(__name__)

API_NAME = "Webflow"

TITLE_FIELDS = ("name", "title")
CONTENT_FIELDS = ("post-body", "body", "content", "post-content", "main-content")
EXCERPT_FIELDS = ("excerpt", "post-summary", "summary", "description")
IMAGE_FIELDS = ("main-image", "featured-image", "post-image", "image", "thumbnail")
DATE_FIELDS = ("publish-date", "published-date", "date", "published-at")


def _first_available(candidates: Iterable[str], available: set[str]) -> str | None:
    return next((slug for slug in candidates if slug in available), None)


def blog_field_value(post: PublishablePost, blog_field: str) -> Any:
    now = datetime.now(timezone.utc).isoformat()
    values = {
        "title": post.title,
        "content": post.content,
        "excerpt": post.excerpt,
        "slug": post.slug or slugify(post.title),
        "featured_image": post.featured_image,
        "featured_image_alt": post.featured_image_alt,
        "published_at": post.published_at or now,
        "seo_title": post.seo_title or post.title,
        "seo_description": post.seo_description or post.excerpt,
        "tags": post.tags,
        "categories": post.categories,
    }
    return values.get(blog_field)


def default_field_data(post: PublishablePost, available: set[str]) -> dict[str, Any]:
    """Map a post onto whichever conventional field slugs the collection has."""
    data: dict[str, Any] = {}

    if title_field := _first_available(TITLE_FIELDS, available):
        data[title_field] = post.title
    if content_field := _first_available(CONTENT_FIELDS, available):
        data[content_field] = post.content
    if post.excerpt and (excerpt_field := _first_available(EXCERPT_FIELDS, available)):
        data[excerpt_field] = post.excerpt
    if "slug" in available:
        data["slug"] = post.slug or slugify(post.title)
    if post.featured_image and (image_field := _first_available(IMAGE_FIELDS, available)):
        data[image_field] = post.featured_image
    if post.seo_title and "seo-title" in available:
        data["seo-title"] = post.seo_title
    if post.seo_description and "seo-description" in available:
        data["seo-description"] = post.seo_description
    if date_field := _first_available(DATE_FIELDS, available):
        data[date_field] = post.published_at or datetime.now(timezone.utc).isoformat()
    return data


def mapped_field_data(
    post: PublishablePost,
    mappings: Iterable[Mapping[str, Any]],
    available: set[str],
) -> dict[str, Any]:
    """Apply ``{blog_field, target_field}`` mappings, keeping only known slugs."""
    data: dict[str, Any] = {}
    skipped: list[str] = []
    for mapping in mappings:
        blog_field = mapping.get("blog_field")
        target_field = mapping.get("target_field")
        if not blog_field or not target_field:
            continue
        value = blog_field_value(post, blog_field)
        if value is None:
            continue
        if target_field not in available:
            skipped.append(target_field)
            continue
        data[target_field] = value

    if skipped:
        logger.warning(
            "Mapped Webflow fields missing from collection",
            extra={"missing_fields": skipped, "available_fields": sorted(available)},
        )
    return data


def build_field_data(
    post: PublishablePost,
    available: set[str],
    mappings: Iterable[Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    mapping_list = list(mappings or [])
    if mapping_list:
        data = mapped_field_data(post, mapping_list, available)
    else:
        data = default_field_data(post, available)

    if not data.get("name") and not data.get("title"):
        raise ExternalAPIError(
            API_NAME,
            "Cannot publish: No title field found in Webflow collection. "
            f"Available fields: {', '.join(sorted(available))}. "
            "Please configure field mappings in the integration settings.",
        )
    return data


class WebflowPublisher:
    platform = "webflow"

    def __init__(
        self,
        config: Mapping[str, Any],
        field_mappings: Iterable[Mapping[str, Any]] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = config.get("api_key") or config.get("api_token")
        self.collection_id = config.get("collection_id")
        self.site_id = config.get("site_id")
        if not self.api_key or not self.collection_id:
            raise IntegrationNotConfiguredError(
                "Webflow integration requires api_key and collection_id"
            )
        self.field_mappings = list(field_mappings or [])
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=settings.webflow_api_base_url.rstrip("/"),
            timeout=settings.cms_timeout_seconds,
            transport=self._transport,
            headers={
                "accept": "application/json",
                "authorization": f"Bearer {self.api_key}",
            },
        )

    async def _publish_site(
        self,
        client: httpx.AsyncClient,
        site_id: str | None,
        item_ids: list[str] | None = None,
    ) -> bool:
        """Publish the site so item changes go live; failures leave items as drafts."""
        if not site_id:
            return False
        body = {"itemIds": item_ids} if item_ids else {}
        response = await client.post(f"/sites/{site_id}/publish", json=body)
        if response.is_success:
            return True
        logger.warning(
            "Webflow site publish failed; item left as draft",
            extra={"item_ids": item_ids, "site_id": site_id, "status": response.status_code},
        )
        return False

    async def publish(self, post: PublishablePost) -> PublishResult:
        async with self._client() as client:
            response = await client.get(f"/collections/{self.collection_id}")
            raise_for_cms_status(response, API_NAME)
            collection = cms_json(response, API_NAME)
            available = {
                field["slug"]
                for field in collection.get("fields") or []
                if isinstance(field, dict) and field.get("slug")
            }
            site_id = self.site_id or collection.get("siteId")

            field_data = build_field_data(post, available, self.field_mappings)
            response = await client.post(
                f"/collections/{self.collection_id}/items",
                json={"fieldData": field_data, "isDraft": False},
            )
            raise_for_cms_status(response, API_NAME)
            item = cms_json(response, API_NAME)
            item_id = require_item_id(item, API_NAME)

            published = not item.get("isDraft", False)
            if not published:
                published = await self._publish_site(client, site_id, [item_id])

        slug = post.slug or slugify(post.title)
        url = f"https://{site_id}.webflow.io/{slug}" if published and site_id else None
        logger.info(
            "Published post to Webflow",
            extra={"item_id": item_id, "published": published, "collection_id": self.collection_id},
        )
        return PublishResult(platform_post_id=item_id, url=url, published=published, raw=item)

    async def republish(self, item_id: str) -> PublishResult:
        """Flip an existing item back to live and publish the site."""
        async with self._client() as client:
            response = await client.get(f"/collections/{self.collection_id}/items/{item_id}")
            if response.status_code == 404:
                raise ExternalAPIError(
                    API_NAME,
                    "Webflow item not found - it may have been deleted. "
                    "Use publish to create a new item.",
                    upstream_status=404,
                )
            raise_for_cms_status(response, API_NAME)
            current = cms_json(response, API_NAME)

            response = await client.patch(
                f"/collections/{self.collection_id}/items/{item_id}",
                json={"fieldData": current.get("fieldData") or {}, "isDraft": False},
            )
            raise_for_cms_status(response, API_NAME)
            item = cms_json(response, API_NAME)
            republished_id = require_item_id(item, API_NAME)
            site_published = await self._publish_site(client, self.site_id, [republished_id])

        logger.info(
            "Republished Webflow item",
            extra={"item_id": republished_id, "site_published": site_published},
        )
        return PublishResult(
            platform_post_id=republished_id,
            url=None,
            published=site_published,
            raw=item,
        )

    async def delete_item(self, item_id: str, *, publish_site: bool = True) -> bool:
        """Remove an item from the collection; returns whether the site was republished."""
        async with self._client() as client:
            response = await client.delete(f"/collections/{self.collection_id}/items/{item_id}")
            if response.status_code != 404:
                raise_for_cms_status(response, API_NAME)
            site_published = False
            if publish_site:
                site_published = await self._publish_site(client, self.site_id)

        logger.info(
            "Deleted Webflow item",
            extra={"item_id": item_id, "site_published": site_published},
        )
        return site_published
