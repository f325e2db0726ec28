"""Constants for blog approval routes."""

APPROVAL_NOT_FOUND_DETAIL = "Approval not found"
QUEUE_ITEM_NOT_FOUND_DETAIL = "Queue item not found"
TARGET_REQUIRED_DETAIL = "queue_id or post_id is required"
REVIEW_FORBIDDEN_DETAIL = "Only admins, managers and editors can review content"
PENDING_EXISTS_DETAIL = "An approval request is already pending for this item"


def not_reviewable_detail(current_status: str) -> str:
    return (
        f"Queue item must be in generated status to request approval "
        f"(current: {current_status})"
    )
