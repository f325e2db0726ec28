"""Plain-text helpers shared by drafting, analysis fallbacks and indexing."""

from __future__ import annotations

import math
import re
from typing import Any

_TAG_RE = re.compile(r"<[^>]*>")
_SLUG_RE = re.compile(r"[^a-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200
META_DESCRIPTION_LENGTH = 160
SEO_TITLE_LENGTH = 60

META_TITLE_MAX = 60
META_DESCRIPTION_MAX = 155


def slugify(value: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to ``-`` and trim edge dashes."""
    return _SLUG_RE.sub("-", (value or "").lower()).strip("-")


def strip_html(html: str | None) -> str:
    if not html:
        return ""
    return _WHITESPACE_RE.sub(" ", _TAG_RE.sub(" ", html)).strip()


def word_count(text: str | None) -> int:
    return len((text or "").split())


def read_time_minutes(words: int) -> int:
    return math.ceil(words / WORDS_PER_MINUTE) if words > 0 else 0


def make_excerpt(content: str | None, length: int = EXCERPT_LENGTH) -> str:
    """First ``length`` characters of the text content, with ``...`` when cut."""
    text = strip_html(content)
    if len(text) > length:
        return text[:length] + "..."
    return text


def truncate_meta(value: str, limit: int) -> str:
    if len(value) > limit:
        return value[: limit - 3] + "..."
    return value


def fallback_meta_tags(title: str, description: str) -> dict[str, Any]:
    """Local meta tags used when the provider call fails."""
    return {
        "meta_title": truncate_meta(title, META_TITLE_MAX),
        "meta_description": truncate_meta(description, META_DESCRIPTION_MAX),
        "fallback": True,
    }


def fallback_field_analysis(title: str, content: str) -> dict[str, Any]:
    """Deterministic replacement for the content backend's field enhancement."""
    words = word_count(content)
    return {
        "seo_title": title[:SEO_TITLE_LENGTH],
        "meta_description": content[:META_DESCRIPTION_LENGTH],
        "excerpt": content[:EXCERPT_LENGTH],
        "slug": slugify(title),
        "word_count": words,
        "estimated_read_time": read_time_minutes(words),
        "fallback": True,
    }
