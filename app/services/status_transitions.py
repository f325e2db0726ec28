"""Allowed status transitions for queue items, approvals and publications."""

from __future__ import annotations

from collections.abc import Mapping

from app.core.exceptions import InvalidStatusTransitionError

QUEUE_STATUSES = (
    "queued",
    "generating",
    "generated",
    "in_review",
    "approved",
    "rejected",
    "scheduled",
    "publishing",
    "published",
    "failed",
    "cancelled",
)

QUEUE_TRANSITIONS: dict[str, frozenset[str]] = {
    "queued": frozenset({"generating", "cancelled"}),
    "generating": frozenset({"generated", "failed", "cancelled"}),
    "generated": frozenset({"in_review", "scheduled", "cancelled"}),
    "in_review": frozenset({"approved", "rejected", "cancelled"}),
    "approved": frozenset({"scheduled", "publishing", "cancelled"}),
    "rejected": frozenset({"generated", "cancelled"}),
    "scheduled": frozenset({"publishing", "cancelled"}),
    "publishing": frozenset({"published", "failed"}),
    "published": frozenset(),
    "failed": frozenset({"queued", "generating", "cancelled"}),
    "cancelled": frozenset(),
}

APPROVAL_STATUSES = ("pending", "approved", "rejected", "changes_requested")

APPROVAL_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"approved", "rejected", "changes_requested"}),
    "approved": frozenset(),
    "rejected": frozenset({"pending"}),
    "changes_requested": frozenset({"pending"}),
}

PLATFORMS = ("webflow", "wordpress", "shopify")

PLATFORM_STATUSES = (
    "pending",
    "scheduled",
    "publishing",
    "published",
    "failed",
    "unpublished",
    "cancelled",
)

PLATFORM_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"scheduled", "publishing", "cancelled"}),
    "scheduled": frozenset({"publishing", "cancelled"}),
    "publishing": frozenset({"published", "failed"}),
    "published": frozenset({"unpublished"}),
    "failed": frozenset({"publishing", "cancelled"}),
    "unpublished": frozenset(),
    "cancelled": frozenset(),
}

# What the queue item becomes when an approval changes status.
APPROVAL_TO_QUEUE_STATUS = {
    "pending": "in_review",
    "approved": "approved",
    "rejected": "rejected",
    "changes_requested": "generated",
}


def _can_transition(
    transitions: Mapping[str, frozenset[str]],
    current: str,
    requested: str,
) -> bool:
    return requested in transitions.get(current, frozenset())


def can_transition_queue(current: str, requested: str) -> bool:
    return _can_transition(QUEUE_TRANSITIONS, current, requested)


def can_transition_approval(current: str, requested: str) -> bool:
    return _can_transition(APPROVAL_TRANSITIONS, current, requested)


def can_transition_platform(current: str, requested: str) -> bool:
    return _can_transition(PLATFORM_TRANSITIONS, current, requested)


def ensure_transition(
    entity: str,
    transitions: Mapping[str, frozenset[str]],
    current: str,
    requested: str,
) -> None:
    """Raise ``InvalidStatusTransitionError`` when ``current -> requested`` is not allowed."""
    if not _can_transition(transitions, current, requested):
        raise InvalidStatusTransitionError(entity, current, requested)
