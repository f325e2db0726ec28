"""Unit tests for text helpers shared by drafting and fallbacks."""

from app.models.blog import BlogGenerationQueueItem
from app.services.blog_posts import draft_fields_from_queue
from app.services.content_text import (
    fallback_field_analysis,
    fallback_meta_tags,
    make_excerpt,
    read_time_minutes,
    slugify,
    strip_html,
    word_count,
)


def test_slugify_collapses_punctuation_and_trims_dashes() -> None:
    assert slugify("  Hello, World!  SEO 101 ") == "hello-world-seo-101"
    assert slugify("---") == ""


def test_strip_html_collapses_whitespace() -> None:
    assert strip_html("<p>Hello <b>there</b></p>\n<p>friend</p>") == "Hello there friend"
    assert strip_html(None) == ""


def test_read_time_rounds_up_and_is_zero_for_empty() -> None:
    assert read_time_minutes(0) == 0
    assert read_time_minutes(1) == 1
    assert read_time_minutes(401) == 3


def test_make_excerpt_truncates_with_ellipsis() -> None:
    content = "<p>" + "a" * 250 + "</p>"
    excerpt = make_excerpt(content)
    assert excerpt == "a" * 200 + "..."
    assert make_excerpt("<p>short</p>") == "short"


def test_fallback_meta_tags_truncate_to_limits() -> None:
    tags = fallback_meta_tags("T" * 80, "D" * 200)

    assert tags["meta_title"] == "T" * 57 + "..."
    assert len(tags["meta_title"]) == 60
    assert tags["meta_description"] == "D" * 152 + "..."
    assert tags["fallback"] is True


def test_fallback_meta_tags_keep_short_values() -> None:
    tags = fallback_meta_tags("Short", "Also short")
    assert tags["meta_title"] == "Short"
    assert tags["meta_description"] == "Also short"


def test_fallback_field_analysis_derives_every_field() -> None:
    content = " ".join(["word"] * 450)
    result = fallback_field_analysis("A Very Useful Title", content)

    assert result["seo_title"] == "A Very Useful Title"
    assert result["slug"] == "a-very-useful-title"
    assert result["meta_description"] == content[:160]
    assert result["excerpt"] == content[:200]
    assert result["word_count"] == 450
    assert result["estimated_read_time"] == 3
    assert result["fallback"] is True


def test_draft_fields_from_queue_item() -> None:
    item = BlogGenerationQueueItem(
        id="queue-1",
        org_id="org-1",
        created_by="user-1",
        topic="Fallback topic",
        keywords=["seo", "blogging"],
        generated_title="Ten Tips For Better SEO",
        generated_content="<h1>Tips</h1><p>" + " ".join(["tip"] * 399) + "</p>",
    )

    fields = draft_fields_from_queue(item)

    assert fields["title"] == "Ten Tips For Better SEO"
    assert fields["slug"] == "ten-tips-for-better-seo"
    assert fields["status"] == "draft"
    assert fields["org_id"] == "org-1"
    assert fields["created_by"] == "user-1"
    assert fields["extra_metadata"] == {"word_count": 400, "read_time": 2, "queue_id": "queue-1"}
    assert fields["seo_data"]["keywords"] == ["seo", "blogging"]
    assert fields["seo_data"]["og_title"] == "Ten Tips For Better SEO"
    assert fields["seo_data"]["meta_description"] == fields["excerpt"]
    assert fields["excerpt"].endswith("...")


def test_draft_title_falls_back_to_topic() -> None:
    item = BlogGenerationQueueItem(
        id="queue-2",
        org_id="org-1",
        created_by="user-1",
        topic="Fallback topic",
        keywords=[],
        generated_content="",
    )

    fields = draft_fields_from_queue(item)

    assert fields["title"] == "Fallback topic"
    assert fields["content"] == ""
    assert fields["extra_metadata"]["word_count"] == 0
    assert word_count(fields["content"]) == 0
