"""Constants for blog generation queue routes."""

QUEUE_ITEM_NOT_FOUND_DETAIL = "Queue item not found"
QUEUE_EDIT_FORBIDDEN_DETAIL = "Only the creator or a content manager can modify this queue item"
INVALID_TRANSITION_ERROR = "Invalid status transition"

DEFAULT_LIMIT = 50
MAX_LIMIT = 200
