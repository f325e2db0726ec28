"""Interlinking schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field

ContentType = Literal["cms", "static", "external"]


class IndexedPageIn(BaseModel):
    """A page to add to the content index."""

    page_id: str = Field(min_length=1)
    url: str
    title: str
    content: str | None = None
    excerpt: str | None = None
    keywords: list[str] = Field(default_factory=list)
    topics: list[str] | None = None
    word_count: int | None = None
    type: ContentType = "cms"
    published_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class IndexRequest(BaseModel):
    pages: list[IndexedPageIn] = Field(min_length=1)


class IndexResponse(BaseModel):
    success: bool = True
    indexed: int
    created: int
    updated: int


class IndexPostsRequest(BaseModel):
    base_url: str = ""


class InterlinkingAnalyzeRequest(BaseModel):
    """Schema for link opportunity analysis of a draft."""

    content: str = Field(min_length=1)
    title: str = Field(min_length=1)
    keywords: list[str] = Field(default_factory=list)
    topics: list[str] | None = None
    max_internal_links: int = Field(default=5, ge=0, le=50)
    max_external_links: int = Field(default=3, ge=0, le=50)


class LinkSuggestion(BaseModel):
    page_id: str
    url: str
    title: str
    type: str
    anchor_text: str
    placement: str
    relevance_score: int
    authority_score: int
    link_value: int
    context: str
    reason: str


class InterlinkingAnalyzeResponse(BaseModel):
    suggestions: list[LinkSuggestion]
    internal_links: list[LinkSuggestion]
    external_links: list[LinkSuggestion]
    recommended_links: int
    max_links: int
    topics: list[str]
    indexed_pages: int
    analysis_complete: bool


class ClusterPersistResponse(BaseModel):
    success: bool = True
    created: int
    updated: int


class ContentClusterResponse(BaseModel):
    id: str
    cluster_name: str
    pillar_keyword: str
    cluster_description: str | None
    cluster_status: str
    authority_score: float
    total_keywords: int
    content_count: int
    pillar_content_count: int
    supporting_content_count: int
    internal_links_count: int
    estimated_traffic: int
    target_traffic: int | None
    updated_at: datetime

    model_config = {"from_attributes": True}


class InternalLinkCreate(BaseModel):
    source_post_id: str
    target_post_id: str
    anchor_text: str = Field(min_length=1)
    link_context: str | None = None
    link_type: str = "related"
    link_position: int | None = None
    is_auto_generated: bool = False


class InternalLinkResponse(BaseModel):
    id: str
    org_id: str
    source_post_id: str
    target_post_id: str
    anchor_text: str
    link_context: str | None
    link_type: str
    link_position: int | None
    is_auto_generated: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class InternalLinkListResponse(BaseModel):
    links: list[InternalLinkResponse]


class ContentIndexResponse(BaseModel):
    id: str
    page_id: str
    url: str
    title: str
    keywords: list[str]
    topics: list[str]
    word_count: int
    content_type: str
    published_at: datetime | None
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
    )

    model_config = {"from_attributes": True}


class ClusterSummary(BaseModel):
    id: str
    name: str
    pillar_page_id: str | None
    supporting_page_ids: list[str]
    long_tail_page_ids: list[str]
    topics: list[str]
    keywords: list[str]
    authority_score: int
    total_content: int
    content_gaps: list[str]


class ClusterAnalysisResponse(BaseModel):
    clusters: list[ClusterSummary]
    total_clusters: int
    pillar_content_count: int
    supporting_content_count: int
    long_tail_content_count: int
    average_authority_score: int
    recommendations: list[str]
