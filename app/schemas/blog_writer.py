"""Content generation request schemas."""

from typing import Any

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Schema for a blog generation request."""

    topic: str = Field(min_length=1)
    keywords: list[str] = Field(default_factory=list)
    target_audience: str | None = None
    tone: str | None = None
    word_count: int | None = Field(default=None, gt=0)
    quality_level: str | None = None
    custom_instructions: str | None = None
    template_type: str | None = None
    content_goal: str | None = None
    priority: int = Field(default=5, ge=1, le=10)
    features: dict[str, bool] = Field(default_factory=dict)


class EnhanceFieldsRequest(BaseModel):
    """Schema for SEO field enhancement of an existing draft."""

    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    keywords: list[str] = Field(default_factory=list)
    featured_image_url: str | None = None
    enhance_seo_title: bool = True
    enhance_meta_description: bool = True
    enhance_slug: bool = True
    enhance_image_alt: bool = True


class MetaTagsRequest(BaseModel):
    """Schema for meta tag generation."""

    title: str = Field(min_length=1)
    description: str = ""
    text: str | None = None
    language: str = "en"

    @property
    def source_text(self) -> str:
        return self.text or f"{self.title}\n\n{self.description}".strip()


class SubtopicsRequest(BaseModel):
    text: str = Field(min_length=1)
    max_subtopics: int = Field(default=10, ge=1, le=50)
    language: str = "en"


class ParaphraseRequest(BaseModel):
    text: str = Field(min_length=1)
    creativity_index: float = Field(default=0.5, ge=0, le=1)
    language: str = "en"


class GenerateTextRequest(BaseModel):
    text: str = Field(min_length=1)
    creativity_index: float = Field(default=0.5, ge=0, le=1)
    text_length: int = Field(default=500, gt=0)
    tone: str = "professional"
    language: str = "en"


class ContentResultResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]
