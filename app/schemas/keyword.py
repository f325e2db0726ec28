"""Keyword research and keyword storage schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

SearchType = Literal["traditional", "ai", "both"]


class KeywordSuggestRequest(BaseModel):
    """Schema for keyword suggestions; accepts one keyword or a list."""

    keywords: list[str] | None = None
    keyword: str | None = None
    location: str = "United States"
    language: str = "en"
    limit: int = Field(default=150, ge=1, le=1000)

    @model_validator(mode="after")
    def _require_keyword(self) -> "KeywordSuggestRequest":
        if not self.primary_keyword:
            raise ValueError("keyword or keywords is required")
        return self

    @property
    def primary_keyword(self) -> str:
        if self.keywords:
            for keyword in self.keywords:
                if keyword.strip():
                    return keyword.strip()
        return (self.keyword or "").strip()


class KeywordStreamRequest(BaseModel):
    """Schema for streamed keyword analysis.

    ``keywords`` is validated in the route so it can answer 422.
    """

    keywords: Any = None
    location: str = "United States"
    language: str = "en"
    max_suggestions_per_keyword: int = 75
    include_search_volume: bool = True
    include_serp: bool = False
    include_trends: bool = False

    model_config = {"extra": "allow"}


class KeywordMetricsRequest(BaseModel):
    """Schema for DataForSEO metric lookups."""

    keywords: list[str] = Field(min_length=1)
    location: str = "United States"
    language: str = "en"


class KeywordMetricsResponse(BaseModel):
    keywords: list[dict[str, Any]]
    total: int


# Storage


class ResearchTermIn(BaseModel):
    """A related or matching term; metric fields pass through as-is."""

    keyword: str = Field(min_length=1)

    model_config = {"extra": "allow"}


class ResearchStoreRequest(BaseModel):
    """Schema for persisting a keyword research result."""

    keyword: str = Field(min_length=1)
    location: str = "United States"
    language: str = "en"
    search_type: SearchType = "traditional"
    traditional_data: dict[str, Any] | None = None
    ai_data: dict[str, Any] | None = None
    related_terms: list[ResearchTermIn] = Field(default_factory=list)
    matching_terms: list[ResearchTermIn] = Field(default_factory=list)
    comprehensive_data: dict[str, Any] | None = None


class ResearchResultResponse(BaseModel):
    """Schema for a stored research result."""

    id: str
    user_id: str
    org_id: str | None
    keyword: str
    location: str
    language: str
    search_type: str
    traditional_data: dict[str, Any] | None
    ai_data: dict[str, Any] | None
    related_terms: list[dict[str, Any]] | None
    comprehensive_data: dict[str, Any] | None
    accessed_at: datetime
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ResearchLookupResponse(BaseModel):
    result: ResearchResultResponse | None
    cached: bool = False


class KeywordTermResponse(BaseModel):
    """Schema for one stored keyword term."""

    id: str
    research_result_id: str | None
    keyword: str
    parent_keyword: str | None
    location: str
    language: str
    search_type: str
    search_volume: int | None
    keyword_difficulty: float | None
    cpc: float | None
    competition: float | None
    search_intent: str | None
    is_related_term: bool
    is_matching_term: bool
    is_long_tail: bool
    metrics: dict[str, Any]

    model_config = {"from_attributes": True}


class KeywordTermListResponse(BaseModel):
    terms: list[KeywordTermResponse]
    total: int


class CachedKeywordResponse(BaseModel):
    """Schema for a keyword cache row."""

    id: str
    keyword: str
    location: str
    language: str
    search_type: str
    expires_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class CacheListResponse(BaseModel):
    entries: list[CachedKeywordResponse]
    total: int


class CacheFlushResponse(BaseModel):
    success: bool = True
    deleted: int
