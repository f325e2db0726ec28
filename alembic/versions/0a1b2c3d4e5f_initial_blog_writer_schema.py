"""initial blog writer schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op
from app.models.base import StringID

# revision identifiers, used by Alembic.
revision: str = "0a1b2c3d4e5f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_and_timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", StringID(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _jsonb(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, postgresql.JSONB(astext_type=sa.Text()), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("subscription_tier", sa.String(length=50), nullable=False),
        sa.Column("api_quota_monthly", sa.Integer(), nullable=False),
        sa.Column("api_quota_used", sa.Integer(), nullable=False),
        _jsonb("settings"),
        *_id_and_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_organizations_slug"), "organizations", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False),
        _jsonb("permissions"),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_org_id"), "users", ["org_id"], unique=False)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)

    op.create_table(
        "blog_posts",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("created_by", StringID(), nullable=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("slug", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        _jsonb("seo_data"),
        _jsonb("metadata"),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_blog_posts_org_status", "blog_posts", ["org_id", "status"], unique=False)

    op.create_table(
        "blog_generation_queue",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("post_id", StringID(), nullable=True),
        sa.Column("created_by", StringID(), nullable=True),
        sa.Column("topic", sa.Text(), nullable=False),
        _jsonb("keywords"),
        sa.Column("target_audience", sa.Text(), nullable=True),
        sa.Column("tone", sa.String(length=100), nullable=True),
        sa.Column("word_count", sa.Integer(), nullable=True),
        sa.Column("quality_level", sa.String(length=50), nullable=True),
        sa.Column("custom_instructions", sa.Text(), nullable=True),
        sa.Column("template_type", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("progress_percentage", sa.Integer(), nullable=False),
        sa.Column("current_stage", sa.String(length=100), nullable=True),
        _jsonb("progress_updates"),
        sa.Column("generated_content", sa.Text(), nullable=True),
        sa.Column("generated_title", sa.String(length=500), nullable=True),
        _jsonb("generation_metadata"),
        sa.Column("generation_error", sa.Text(), nullable=True),
        sa.Column(
            "queued_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("generation_started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("generation_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("estimated_completion_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False),
        _jsonb("metadata"),
        *_id_and_timestamps(),
        sa.CheckConstraint("priority BETWEEN 1 AND 10", name="ck_blog_queue_priority"),
        sa.CheckConstraint(
            "progress_percentage BETWEEN 0 AND 100",
            name="ck_blog_queue_progress",
        ),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["post_id"], ["blog_posts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_blog_queue_org_status", "blog_generation_queue", ["org_id", "status"], unique=False
    )

    op.create_table(
        "blog_approvals",
        sa.Column("queue_id", StringID(), nullable=True),
        sa.Column("post_id", StringID(), nullable=True),
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("requested_by", StringID(), nullable=True),
        sa.Column(
            "requested_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("reviewed_by", StringID(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("revision_number", sa.Integer(), nullable=False),
        sa.Column("previous_approval_id", StringID(), nullable=True),
        _jsonb("metadata"),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["queue_id"], ["blog_generation_queue.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["post_id"], ["blog_posts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_blog_approvals_queue_id"), "blog_approvals", ["queue_id"], unique=False)
    op.create_index(op.f("ix_blog_approvals_org_id"), "blog_approvals", ["org_id"], unique=False)

    op.create_table(
        "blog_platform_publishing",
        sa.Column("post_id", StringID(), nullable=False),
        sa.Column("queue_id", StringID(), nullable=True),
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("platform", sa.String(length=30), nullable=False),
        sa.Column("platform_post_id", sa.String(length=255), nullable=True),
        sa.Column("platform_url", sa.String(length=2000), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_by", StringID(), nullable=True),
        _jsonb("publish_metadata"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("error_code", sa.String(length=100), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_status", sa.String(length=30), nullable=True),
        _jsonb("metadata"),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["post_id"], ["blog_posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["queue_id"], ["blog_generation_queue.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("post_id", "platform", name="uq_blog_publishing_post_platform"),
    )
    op.create_index(
        op.f("ix_blog_platform_publishing_org_id"),
        "blog_platform_publishing",
        ["org_id"],
        unique=False,
    )

    op.create_table(
        "integrations",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("config", sa.Text(), nullable=True),
        _jsonb("field_mappings"),
        sa.Column("health_status", sa.String(length=30), nullable=True),
        sa.Column("last_sync", sa.DateTime(timezone=True), nullable=True),
        _jsonb("metadata"),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "type", "name", name="uq_integrations_org_type_name"),
    )
    op.create_index(op.f("ix_integrations_org_id"), "integrations", ["org_id"], unique=False)

    op.create_table(
        "media_assets",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("uploaded_by", StringID(), nullable=True),
        sa.Column("file_name", sa.String(length=500), nullable=False),
        sa.Column("file_url", sa.String(length=2000), nullable=False),
        sa.Column("file_type", sa.String(length=100), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("provider", sa.String(length=30), nullable=False),
        _jsonb("metadata"),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_media_assets_org_id"), "media_assets", ["org_id"], unique=False)

    keyword_key = ("user_id", "keyword", "location", "language", "search_type")

    op.create_table(
        "keyword_research_results",
        sa.Column("user_id", StringID(), nullable=False),
        sa.Column("org_id", StringID(), nullable=True),
        sa.Column("keyword", sa.String(length=500), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=False),
        sa.Column("language", sa.String(length=10), nullable=False),
        sa.Column("search_type", sa.String(length=20), nullable=False),
        _jsonb("traditional_data", nullable=True),
        _jsonb("ai_data", nullable=True),
        _jsonb("related_terms", nullable=True),
        _jsonb("comprehensive_data", nullable=True),
        sa.Column(
            "accessed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(*keyword_key, name="uq_keyword_research_natural_key"),
    )
    op.create_index(
        op.f("ix_keyword_research_results_user_id"),
        "keyword_research_results",
        ["user_id"],
        unique=False,
    )

    op.create_table(
        "keyword_terms",
        sa.Column("user_id", StringID(), nullable=False),
        sa.Column("research_result_id", StringID(), nullable=True),
        sa.Column("keyword", sa.String(length=500), nullable=False),
        sa.Column("parent_keyword", sa.String(length=500), nullable=True),
        sa.Column("location", sa.String(length=100), nullable=False),
        sa.Column("language", sa.String(length=10), nullable=False),
        sa.Column("search_type", sa.String(length=20), nullable=False),
        sa.Column("search_volume", sa.Integer(), nullable=True),
        sa.Column("keyword_difficulty", sa.Float(), nullable=True),
        sa.Column("cpc", sa.Float(), nullable=True),
        sa.Column("competition", sa.Float(), nullable=True),
        sa.Column("search_intent", sa.String(length=50), nullable=True),
        sa.Column("is_related_term", sa.Boolean(), nullable=False),
        sa.Column("is_matching_term", sa.Boolean(), nullable=False),
        sa.Column("is_long_tail", sa.Boolean(), nullable=False),
        _jsonb("metrics"),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["research_result_id"], ["keyword_research_results.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(*keyword_key, name="uq_keyword_terms_natural_key"),
    )
    op.create_index(op.f("ix_keyword_terms_user_id"), "keyword_terms", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_keyword_terms_parent_keyword"), "keyword_terms", ["parent_keyword"], unique=False
    )

    op.create_table(
        "keyword_cache",
        sa.Column("user_id", StringID(), nullable=False),
        sa.Column("keyword", sa.String(length=500), nullable=False),
        sa.Column("location", sa.String(length=100), nullable=False),
        sa.Column("language", sa.String(length=10), nullable=False),
        sa.Column("search_type", sa.String(length=20), nullable=False),
        _jsonb("traditional_data", nullable=True),
        _jsonb("ai_data", nullable=True),
        _jsonb("related_terms", nullable=True),
        _jsonb("comprehensive_data", nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(*keyword_key, name="uq_keyword_cache_natural_key"),
    )
    op.create_index(op.f("ix_keyword_cache_user_id"), "keyword_cache", ["user_id"], unique=False)
    op.create_index(
        op.f("ix_keyword_cache_expires_at"), "keyword_cache", ["expires_at"], unique=False
    )

    op.create_table(
        "content_index",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("page_id", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=2000), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("excerpt", sa.Text(), nullable=True),
        _jsonb("keywords"),
        _jsonb("topics"),
        sa.Column("word_count", sa.Integer(), nullable=False),
        sa.Column("content_type", sa.String(length=20), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        _jsonb("metadata"),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "page_id", name="uq_content_index_org_page"),
    )
    op.create_index(op.f("ix_content_index_org_id"), "content_index", ["org_id"], unique=False)

    op.create_table(
        "content_clusters",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("user_id", StringID(), nullable=True),
        sa.Column("cluster_name", sa.String(length=255), nullable=False),
        sa.Column("pillar_keyword", sa.String(length=255), nullable=False),
        sa.Column("cluster_description", sa.Text(), nullable=True),
        sa.Column("cluster_status", sa.String(length=20), nullable=False),
        sa.Column("authority_score", sa.Float(), nullable=False),
        sa.Column("total_keywords", sa.Integer(), nullable=False),
        sa.Column("content_count", sa.Integer(), nullable=False),
        sa.Column("pillar_content_count", sa.Integer(), nullable=False),
        sa.Column("supporting_content_count", sa.Integer(), nullable=False),
        sa.Column("internal_links_count", sa.Integer(), nullable=False),
        sa.Column("estimated_traffic", sa.Integer(), nullable=False),
        sa.Column("target_traffic", sa.Integer(), nullable=True),
        *_id_and_timestamps(),
        sa.CheckConstraint(
            "authority_score BETWEEN 0 AND 100",
            name="ck_content_clusters_authority",
        ),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "cluster_name", name="uq_content_clusters_org_name"),
    )
    op.create_index(
        op.f("ix_content_clusters_org_id"), "content_clusters", ["org_id"], unique=False
    )

    op.create_table(
        "internal_link_graph",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("source_post_id", StringID(), nullable=False),
        sa.Column("target_post_id", StringID(), nullable=False),
        sa.Column("anchor_text", sa.String(length=500), nullable=False),
        sa.Column("link_context", sa.Text(), nullable=True),
        sa.Column("link_type", sa.String(length=30), nullable=False),
        sa.Column("link_position", sa.Integer(), nullable=True),
        sa.Column("is_auto_generated", sa.Boolean(), nullable=False),
        *_id_and_timestamps(),
        sa.CheckConstraint("source_post_id <> target_post_id", name="ck_internal_link_no_self"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["source_post_id"], ["blog_posts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["target_post_id"], ["blog_posts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "source_post_id",
            "target_post_id",
            "anchor_text",
            name="uq_internal_link_source_target_anchor",
        ),
    )
    op.create_index(
        op.f("ix_internal_link_graph_org_id"), "internal_link_graph", ["org_id"], unique=False
    )
    op.create_index(
        op.f("ix_internal_link_graph_source_post_id"),
        "internal_link_graph",
        ["source_post_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_internal_link_graph_target_post_id"),
        "internal_link_graph",
        ["target_post_id"],
        unique=False,
    )

    op.create_table(
        "content_presets",
        sa.Column("org_id", StringID(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("word_count", sa.Integer(), nullable=True),
        sa.Column("tone", sa.String(length=100), nullable=True),
        sa.Column("quality_level", sa.String(length=50), nullable=True),
        sa.Column("template_type", sa.String(length=100), nullable=True),
        _jsonb("settings"),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        *_id_and_timestamps(),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("org_id", "name", name="uq_content_presets_org_name"),
    )
    op.create_index(op.f("ix_content_presets_org_id"), "content_presets", ["org_id"], unique=False)


def downgrade() -> None:
    for table in (
        "content_presets",
        "internal_link_graph",
        "content_clusters",
        "content_index",
        "keyword_cache",
        "keyword_terms",
        "keyword_research_results",
        "media_assets",
        "integrations",
        "blog_platform_publishing",
        "blog_approvals",
        "blog_generation_queue",
        "blog_posts",
        "users",
        "organizations",
    ):
        op.drop_table(table)
