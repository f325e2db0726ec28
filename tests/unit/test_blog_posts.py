"""Unit tests for saving and editing blog posts directly."""

from __future__ import annotations

from app.models.blog import BlogPost
from app.schemas.blog import BlogPostCreate, FeaturedImageIn
from app.services.blog_posts import (
    apply_post_update,
    featured_image_from_content,
    post_fields_from_request,
)


def test_featured_image_from_figure() -> None:
    content = (
        '<figure class="wp-block featured"><img alt="x" '
        'src="https://cdn.example.com/a.png?w=1&amp;h=2"></figure>'
    )
    assert featured_image_from_content(content) == "https://cdn.example.com/a.png?w=1&h=2"


def test_featured_image_from_marked_img() -> None:
    content = '<p>Intro</p><img class="featured-image" src="https://cdn.example.com/b.jpg">'
    assert featured_image_from_content(content) == "https://cdn.example.com/b.jpg"


def test_plain_images_are_not_featured() -> None:
    assert featured_image_from_content('<img src="https://cdn.example.com/c.jpg">') is None
    assert featured_image_from_content(None) is None


def test_post_fields_prefer_explicit_featured_image() -> None:
    post_in = BlogPostCreate(
        title="Link Building Basics",
        content='<img class="featured" src="https://cdn.example.com/old.png"><p>One two three</p>',
        status="published",
        metadata={"source": "editor"},
        featured_image=FeaturedImageIn(
            image_url="https://cdn.example.com/new.png", alt_text="Links"
        ),
    )

    fields = post_fields_from_request("org-1", "user-1", post_in)

    assert fields["slug"] == "link-building-basics"
    assert fields["excerpt"]
    assert fields["published_at"] is not None
    metadata = fields["extra_metadata"]
    assert metadata["source"] == "editor"
    assert metadata["featured_image"] == "https://cdn.example.com/new.png"
    assert metadata["featured_image_data"]["alt_text"] == "Links"
    assert metadata["word_count"] == 3


def test_draft_post_has_no_published_at() -> None:
    fields = post_fields_from_request(
        "org-1", None, BlogPostCreate(title="Draft", content="<p>Hi</p>")
    )

    assert fields["status"] == "draft"
    assert fields["published_at"] is None
    assert "featured_image" not in fields["extra_metadata"]


def test_apply_post_update_merges_metadata_and_recounts_words() -> None:
    post = BlogPost(
        title="Old",
        content="<p>one</p>",
        status="draft",
        extra_metadata={"word_count": 1, "source": "queue"},
    )

    apply_post_update(
        post,
        {
            "content": "<p>one two three four</p>",
            "title": None,
            "status": "published",
            "metadata": {"reviewed": True},
        },
    )

    assert post.title == "Old"
    assert post.extra_metadata["word_count"] == 4
    assert post.extra_metadata["source"] == "queue"
    assert post.extra_metadata["reviewed"] is True
    assert post.published_at is not None


def test_apply_post_update_keeps_stats_without_content_change() -> None:
    post = BlogPost(title="Old", content="<p>one</p>", status="draft", extra_metadata={"word_count": 1})

    apply_post_update(post, {"title": "New"})

    assert post.title == "New"
    assert post.extra_metadata == {"word_count": 1}
    assert post.published_at is None
