"""Publish blog posts to a WordPress site through the REST API."""

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

API_NAME = "WordPress"


class WordPressPublisher:
    """Uses an application password (Users > Profile > Application Passwords)."""

    platform = "wordpress"

    def __init__(
        self,
        config: Mapping[str, Any],
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        site_url = str(config.get("site_url") or "").rstrip("/")
        username = str(config.get("username") or "").strip()
        # App passwords may contain inner spaces.
        app_password = str(config.get("app_password") or config.get("api_key") or "").strip()
        if not site_url or not username or not app_password:
            raise IntegrationNotConfiguredError(
                "WordPress integration requires site_url, username and app_password"
            )
        self.api_url = f"{site_url}/wp-json/wp/v2"
        self.auth = httpx.BasicAuth(username, app_password)
        self.status = config.get("post_status") or "publish"
        self._transport = transport

    def build_payload(self, post: PublishablePost) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": post.title,
            "content": post.content,
            "status": self.status,
            "slug": post.slug or slugify(post.title),
        }
        if post.excerpt:
            payload["excerpt"] = post.excerpt
        return payload

    async def publish(self, post: PublishablePost) -> PublishResult:
        async with httpx.AsyncClient(
            timeout=settings.cms_timeout_seconds,
            transport=self._transport,
            auth=self.auth,
            headers={"Accept": "application/json"},
        ) as client:
            response = await client.post(f"{self.api_url}/posts", json=self.build_payload(post))
            raise_for_cms_status(response, API_NAME)
            data = cms_json(response, API_NAME)
            post_id = require_item_id(data, API_NAME)

        logger.info("Published post to WordPress", extra={"wp_post_id": post_id})
        return PublishResult(
            platform_post_id=post_id,
            url=data.get("link"),
            published=data.get("status") == "publish",
            raw=data,
        )
