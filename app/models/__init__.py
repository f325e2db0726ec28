"""SQLAlchemy database models."""
from dotenv import load_dotenv
from app.models.base import Base
from app.models.blog import (
    BlogApproval,
    BlogGenerationQueueItem,
    BlogPlatformPublishing,
    BlogPost,
)
from app.models.integration import Integration
from app.models.interlinking import ContentCluster, ContentIndexEntry, InternalLink
from app.models.keyword import KeywordCache, KeywordResearchResult, KeywordTerm
from app.models.media import MediaAsset
from app.models.organization import Organization
from app.models.preset import ContentPreset
from app.models.user import User


load_dotenv()

__all__ = [
    "Base",
    "Organization",
    "User",
    "BlogPost",
    "BlogGenerationQueueItem",
    "BlogApproval",
    "BlogPlatformPublishing",
    "Integration",
    "MediaAsset",
    "KeywordResearchResult",
    "KeywordTerm",
    "KeywordCache",
    "ContentIndexEntry",
    "ContentCluster",
    "InternalLink",
    "ContentPreset",
]
