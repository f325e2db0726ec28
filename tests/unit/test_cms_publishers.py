"""Unit tests for the Webflow, WordPress and Shopify publishers."""

from __future__ import annotations

import json

import httpx
import pytest

from app.core.exceptions import ExternalAPIError, IntegrationNotConfiguredError
from app.integrations.cms import (
    PublishablePost,
    ShopifyPublisher,
    WebflowPublisher,
    WordPressPublisher,
    get_publisher,
)
from app.integrations.cms.webflow import build_field_data

POST = PublishablePost(
    title="Ten Tips For SEO",
    content="<p>Body</p>",
    excerpt="Short summary",
    featured_image="https://cdn.example.com/hero.png",
    seo_title="Ten Tips | Blog",
    tags=["seo", "tips"],
)


def test_default_field_data_uses_conventional_slugs() -> None:
    data = build_field_data(POST, {"name", "slug", "post-body", "post-summary", "main-image"})

    assert data["name"] == "Ten Tips For SEO"
    assert data["slug"] == "ten-tips-for-seo"
    assert data["post-body"] == "<p>Body</p>"
    assert data["post-summary"] == "Short summary"
    assert data["main-image"] == "https://cdn.example.com/hero.png"


def test_field_mappings_skip_unknown_targets() -> None:
    data = build_field_data(
        POST,
        {"name", "rich-text"},
        [
            {"blog_field": "title", "target_field": "name"},
            {"blog_field": "content", "target_field": "rich-text"},
            {"blog_field": "excerpt", "target_field": "missing-field"},
        ],
    )

    assert data == {"name": "Ten Tips For SEO", "rich-text": "<p>Body</p>"}


def test_collection_without_title_field_is_rejected() -> None:
    with pytest.raises(ExternalAPIError, match="No title field"):
        build_field_data(POST, {"body"})


def test_get_publisher_rejects_unknown_platform() -> None:
    with pytest.raises(ValueError, match="Unsupported platform"):
        get_publisher("ghost", {})


def test_publishers_require_credentials() -> None:
    with pytest.raises(IntegrationNotConfiguredError):
        WebflowPublisher({"api_key": "key"})
    with pytest.raises(IntegrationNotConfiguredError):
        WordPressPublisher({"site_url": "https://blog.example.com"})
    with pytest.raises(IntegrationNotConfiguredError):
        ShopifyPublisher({"shop_domain": "shop.myshopify.com", "access_token": "tok"})


def test_wordpress_payload_defaults_to_publish() -> None:
    publisher = WordPressPublisher(
        {"site_url": "https://blog.example.com/", "username": "editor", "app_password": "ab cd"}
    )

    assert publisher.api_url == "https://blog.example.com/wp-json/wp/v2"
    assert publisher.build_payload(POST) == {
        "title": "Ten Tips For SEO",
        "content": "<p>Body</p>",
        "status": "publish",
        "slug": "ten-tips-for-seo",
        "excerpt": "Short summary",
    }


def test_shopify_payload_includes_tags_and_image() -> None:
    publisher = ShopifyPublisher(
        {"shop_domain": "https://shop.myshopify.com/", "access_token": "tok", "blog_id": 7}
    )

    article = publisher.build_payload(POST)["article"]

    assert publisher.base_url.startswith("https://shop.myshopify.com/admin/api/")
    assert article["published"] is True
    assert article["tags"] == "seo, tips"
    assert article["image"] == {"src": "https://cdn.example.com/hero.png", "alt": ""}
    assert article["handle"] == "ten-tips-for-seo"


@pytest.mark.asyncio
async def test_webflow_publish_creates_live_item() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(
                200,
                json={"siteId": "site-1", "fields": [{"slug": "name"}, {"slug": "post-body"}]},
            )
        return httpx.Response(200, json={"id": "item-1", "isDraft": False})

    publisher = WebflowPublisher(
        {"api_key": "key", "collection_id": "col-1"},
        transport=httpx.MockTransport(handler),
    )

    result = await publisher.publish(POST)

    assert result.platform_post_id == "item-1"
    assert result.published is True
    assert result.url == "https://site-1.webflow.io/ten-tips-for-seo"
    body = json.loads(requests[1].content)
    assert body == {
        "fieldData": {"name": "Ten Tips For SEO", "post-body": "<p>Body</p>"},
        "isDraft": False,
    }
    assert requests[0].headers["authorization"] == "Bearer key"


@pytest.mark.asyncio
async def test_wordpress_error_surfaces_status() -> None:
    publisher = WordPressPublisher(
        {"site_url": "https://blog.example.com", "username": "editor", "app_password": "pw"},
        transport=httpx.MockTransport(lambda request: httpx.Response(401, text="bad auth")),
    )

    with pytest.raises(ExternalAPIError) as exc_info:
        await publisher.publish(POST)

    assert exc_info.value.upstream_status == 401
    assert "bad auth" in exc_info.value.message


@pytest.mark.asyncio
async def test_wordpress_html_reply_is_an_upstream_error() -> None:
    publisher = WordPressPublisher(
        {"site_url": "https://blog.example.com", "username": "editor", "app_password": "pw"},
        transport=httpx.MockTransport(
            lambda request: httpx.Response(
                200,
                text="<html><body>Maintenance mode</body></html>",
                headers={"content-type": "text/html"},
            )
        ),
    )

    with pytest.raises(ExternalAPIError, match="non-JSON") as exc_info:
        await publisher.publish(POST)

    assert exc_info.value.upstream_status == 200


@pytest.mark.asyncio
async def test_shopify_reply_without_article_id_is_an_upstream_error() -> None:
    publisher = ShopifyPublisher(
        {"shop_domain": "shop.myshopify.com", "access_token": "tok", "blog_id": "42"},
        transport=httpx.MockTransport(lambda request: httpx.Response(201, json={"article": {}})),
    )

    with pytest.raises(ExternalAPIError, match="item id"):
        await publisher.publish(POST)


@pytest.mark.asyncio
async def test_webflow_item_without_id_is_an_upstream_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"siteId": "site-1", "fields": [{"slug": "name"}]})
        return httpx.Response(202, json={"isDraft": False})

    publisher = WebflowPublisher(
        {"api_key": "key", "collection_id": "col-1"},
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(ExternalAPIError, match="item id"):
        await publisher.publish(POST)


@pytest.mark.asyncio
async def test_webflow_republish_patches_item_live_and_publishes_site() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(200, json={"id": "item-1", "fieldData": {"name": "Ten Tips"}})
        if request.method == "PATCH":
            return httpx.Response(200, json={"id": "item-1", "isDraft": False})
        return httpx.Response(202, json={})

    publisher = WebflowPublisher(
        {"api_key": "key", "collection_id": "col-1", "site_id": "site-1"},
        transport=httpx.MockTransport(handler),
    )

    result = await publisher.republish("item-1")

    assert result.platform_post_id == "item-1"
    assert result.published is True
    assert json.loads(requests[1].content) == {"fieldData": {"name": "Ten Tips"}, "isDraft": False}
    assert requests[2].url.path.endswith("/sites/site-1/publish")
    assert json.loads(requests[2].content) == {"itemIds": ["item-1"]}


@pytest.mark.asyncio
async def test_webflow_republish_of_deleted_item_explains_itself() -> None:
    publisher = WebflowPublisher(
        {"api_key": "key", "collection_id": "col-1"},
        transport=httpx.MockTransport(lambda request: httpx.Response(404, json={})),
    )

    with pytest.raises(ExternalAPIError, match="may have been deleted"):
        await publisher.republish("item-gone")


@pytest.mark.asyncio
async def test_webflow_delete_tolerates_missing_item() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        if request.method == "DELETE":
            return httpx.Response(404, json={"message": "not found"})
        return httpx.Response(202, json={})

    publisher = WebflowPublisher(
        {"api_key": "key", "collection_id": "col-1", "site_id": "site-1"},
        transport=httpx.MockTransport(handler),
    )

    assert await publisher.delete_item("item-1") is True
    assert await publisher.delete_item("item-1", publish_site=False) is False
    assert methods == ["DELETE", "POST", "DELETE"]
