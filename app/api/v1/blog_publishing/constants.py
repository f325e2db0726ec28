"""Constants for platform publishing routes."""

PUBLISHING_NOT_FOUND_DETAIL = "Publishing record not found"
QUEUE_ITEM_NOT_FOUND_DETAIL = "Queue item not found"
POST_NOT_FOUND_DETAIL = "Blog post not found"
TARGET_REQUIRED_DETAIL = "post_id or queue_id is required"
PUBLISH_FORBIDDEN_DETAIL = "Insufficient permissions"
QUEUE_NOT_PUBLISHABLE_DETAIL = "Queue item must be approved or generated before publishing"
QUEUE_HAS_NO_POST_DETAIL = "Queue item has no draft post to publish"

PUBLISHABLE_QUEUE_STATUSES = frozenset({"approved", "generated"})


def invalid_platform_detail(platforms: tuple[str, ...]) -> str:
    return f"Invalid platform. Must be one of: {', '.join(platforms)}"


def duplicate_publishing_detail(platform: str) -> str:
    return f"This post already has a {platform} publishing record"
