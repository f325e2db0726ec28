"""CMS publishers keyed by platform name."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from app.integrations.cms.base import CMSPublisher, PublishablePost, PublishResult
from app.integrations.cms.shopify import ShopifyPublisher
from app.integrations.cms.webflow import WebflowPublisher
from app.integrations.cms.wordpress import WordPressPublisher


def get_publisher(
    platform: str,
    config: Mapping[str, Any],
    field_mappings: Iterable[Mapping[str, Any]] | None = None,
) -> CMSPublisher:
    if platform == "webflow":
        return WebflowPublisher(config, field_mappings)
    if platform == "wordpress":
        return WordPressPublisher(config)
    if platform == "shopify":
        return ShopifyPublisher(config)
    raise ValueError(f"Unsupported platform: {platform}")


__all__ = [
    "CMSPublisher",
    "PublishResult",
    "PublishablePost",
    "ShopifyPublisher",
    "WebflowPublisher",
    "WordPressPublisher",
    "get_publisher",
]
