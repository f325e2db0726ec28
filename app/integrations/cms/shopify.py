"""Publish blog posts as Shopify blog articles (Admin REST API)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from app.config import settings
from app.core.exceptions import IntegrationNotConfiguredError
from app.integrations.cms.base import (
    PublishablePost,
    PublishResult,
    cms_json,
    raise_for_cms_status,
    require_item_id,
)
from app.services.content_text import slugify

logger = logging.getLogger(__name__)

API_NAME = "Shopify"


class ShopifyPublisher:
    platform = "shopify"

    def __init__(
        self,
        config: Mapping[str, Any],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        shop_domain = str(config.get("shop_domain") or config.get("store_url") or "").strip()
        shop_domain = shop_domain.removeprefix("https://").removeprefix("http://").rstrip("/")
        self.access_token = config.get("access_token") or config.get("api_key")
        self.blog_id = config.get("blog_id")
        if not shop_domain or not self.access_token or not self.blog_id:
            raise IntegrationNotConfiguredError(
                "Shopify integration requires shop_domain, access_token and blog_id"
            )
        version = config.get("api_version") or settings.shopify_api_version
        self.base_url = f"https://{shop_domain}/admin/api/{version}"
        self.shop_domain = shop_domain
        self.blog_handle = config.get("blog_handle") or "news"
        self._transport = transport

    def build_payload(self, post: PublishablePost) -> dict[str, Any]:
        article: dict[str, Any] = {
            "title": post.title,
            "body_html": post.content,
            "handle": post.slug or slugify(post.title),
            "published": True,
        }
        if post.excerpt:
            article["summary_html"] = post.excerpt
        if post.tags:
            article["tags"] = ", ".join(post.tags)
        if post.featured_image:
            article["image"] = {"src": post.featured_image, "alt": post.featured_image_alt or ""}
        return {"article": article}

    async def publish(self, post: PublishablePost) -> PublishResult:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.cms_timeout_seconds,
            transport=self._transport,
            headers={
                "X-Shopify-Access-Token": str(self.access_token),
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        ) as client:
            response = await client.post(
                f"/blogs/{self.blog_id}/articles.json",
                json=self.build_payload(post),
            )
            raise_for_cms_status(response, API_NAME)
            article = cms_json(response, API_NAME).get("article") or {}
            article_id = require_item_id(article, API_NAME)

        handle = article.get("handle") or post.slug or slugify(post.title)
        blog_handle = self.blog_handle
        url = f"https://{self.shop_domain}/blogs/{blog_handle}/{handle}"
        logger.info("Published article to Shopify", extra={"article_id": article_id})
        return PublishResult(
            platform_post_id=article_id,
            url=url,
            published=True,
            raw=article,
        )
