"""Content index, link analysis, topic clusters and internal link graph endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, Response, status
from sqlalchemy import select

from app.api.v1.dependencies import get_org_row
from app.dependencies import CurrentUser, DbSession
from app.models.blog import BlogPost
from app.models.interlinking import ContentCluster, ContentIndexEntry, InternalLink
from app.schemas.interlinking import (
    ClusterAnalysisResponse,
    ClusterPersistResponse,
    ClusterSummary,
    ContentClusterResponse,
    ContentIndexResponse,
    IndexPostsRequest,
    IndexRequest,
    IndexResponse,
    InterlinkingAnalyzeRequest,
    InterlinkingAnalyzeResponse,
    InternalLinkCreate,
    InternalLinkListResponse,
    InternalLinkResponse,
    LinkSuggestion,
)
from app.services.cluster_analyzer import ClusterAnalysis, TopicCluster, analyze_clusters
from app.services.content_index import (
    index_published_posts,
    load_indexed_pages,
    persist_clusters,
    upsert_pages,
)
from app.services.interlinking_engine import (
    InterlinkingEngine,
    InterlinkingRequest,
    LinkOpportunity,
    extract_topics,
)

logger = logging.getLogger(__name__)

router = APIRouter()

POST_NOT_FOUND_DETAIL = "Blog post not found"
LINK_NOT_FOUND_DETAIL = "Internal link not found"
SELF_LINK_DETAIL = "A post cannot link to itself"
DUPLICATE_LINK_DETAIL = "This internal link already exists"


def _percent(score: float) -> int:
    return round(score * 100)


def to_suggestion(opportunity: LinkOpportunity) -> LinkSuggestion:
    target = opportunity.target
    return LinkSuggestion(
        page_id=target.page_id,
        url=target.url,
        title=target.title,
        type=target.type,
        anchor_text=opportunity.anchor_text,
        placement=opportunity.placement,
        relevance_score=_percent(opportunity.relevance_score),
        authority_score=_percent(opportunity.authority_score),
        link_value=_percent(opportunity.link_value),
        context=opportunity.context,
        reason=opportunity.reason,
    )


def to_cluster_summary(cluster: TopicCluster) -> ClusterSummary:
    return ClusterSummary(
        id=cluster.id,
        name=cluster.name,
        pillar_page_id=cluster.pillar.page_id if cluster.pillar else None,
        supporting_page_ids=[p.page_id for p in cluster.supporting],
        long_tail_page_ids=[p.page_id for p in cluster.long_tail],
        topics=cluster.topics,
        keywords=cluster.keywords,
        authority_score=_percent(cluster.authority_score),
        total_content=cluster.total_content,
        content_gaps=cluster.content_gaps,
    )


def to_analysis_response(analysis: ClusterAnalysis) -> ClusterAnalysisResponse:
    return ClusterAnalysisResponse(
        clusters=[to_cluster_summary(c) for c in analysis.clusters],
        total_clusters=analysis.total_clusters,
        pillar_content_count=analysis.pillar_content_count,
        supporting_content_count=analysis.supporting_content_count,
        long_tail_content_count=analysis.long_tail_content_count,
        average_authority_score=_percent(analysis.average_authority_score),
        recommendations=analysis.recommendations,
    )


# Content index


@router.get("/index", response_model=list[ContentIndexResponse])
async def list_index(
    current_user: CurrentUser,
    session: DbSession,
    content_type: str | None = Query(None, alias="type"),
) -> list[ContentIndexResponse]:
    query = select(ContentIndexEntry).where(ContentIndexEntry.org_id == current_user.org_id)
    if content_type:
        query = query.where(ContentIndexEntry.content_type == content_type)
    result = await session.execute(query.order_by(ContentIndexEntry.title))
    return [ContentIndexResponse.model_validate(e) for e in result.scalars().all()]


@router.post("/index", response_model=IndexResponse)
async def index_pages(
    request: IndexRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> IndexResponse:
    """Upsert pages into the org's content index keyed by page_id."""
    counts = await upsert_pages(
        session,
        current_user.org_id,
        [page.model_dump() for page in request.pages],
    )
    return IndexResponse(indexed=counts.total, created=counts.created, updated=counts.updated)


@router.post("/index/posts", response_model=IndexResponse)
async def index_posts(
    request: IndexPostsRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> IndexResponse:
    """Index the org's published blog posts as cms pages."""
    counts = await index_published_posts(session, current_user.org_id, request.base_url)
    return IndexResponse(indexed=counts.total, created=counts.created, updated=counts.updated)


# Analysis


@router.post("/analyze", response_model=InterlinkingAnalyzeResponse)
async def analyze_links(
    request: InterlinkingAnalyzeRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> InterlinkingAnalyzeResponse:
    topics = request.topics or extract_topics(request.content, request.title)
    pages = await load_indexed_pages(session, current_user.org_id)
    max_links = request.max_internal_links + request.max_external_links

    if not pages:
        return InterlinkingAnalyzeResponse(
            suggestions=[],
            internal_links=[],
            external_links=[],
            recommended_links=0,
            max_links=max_links,
            topics=topics,
            indexed_pages=0,
            analysis_complete=False,
        )

    analysis = InterlinkingEngine().analyze(
        InterlinkingRequest(
            content=request.content,
            title=request.title,
            keywords=request.keywords,
            topics=topics,
            max_internal=request.max_internal_links,
            max_external=request.max_external_links,
        ),
        pages,
    )
    return InterlinkingAnalyzeResponse(
        suggestions=[to_suggestion(o) for o in analysis.opportunities],
        internal_links=[to_suggestion(o) for o in analysis.internal_links],
        external_links=[to_suggestion(o) for o in analysis.external_links],
        recommended_links=analysis.recommended_links,
        max_links=analysis.max_links,
        topics=topics,
        indexed_pages=len(pages),
        analysis_complete=True,
    )


# Clusters


@router.get("/clusters", response_model=ClusterAnalysisResponse)
async def get_clusters(current_user: CurrentUser, session: DbSession) -> ClusterAnalysisResponse:
    pages = await load_indexed_pages(session, current_user.org_id)
    return to_analysis_response(analyze_clusters(pages))


@router.get("/clusters/saved", response_model=list[ContentClusterResponse])
async def list_saved_clusters(
    current_user: CurrentUser,
    session: DbSession,
) -> list[ContentClusterResponse]:
    result = await session.execute(
        select(ContentCluster)
        .where(ContentCluster.org_id == current_user.org_id)
        .order_by(ContentCluster.authority_score.desc())
    )
    return [ContentClusterResponse.model_validate(c) for c in result.scalars().all()]


@router.post("/clusters/persist", response_model=ClusterPersistResponse)
async def save_clusters(current_user: CurrentUser, session: DbSession) -> ClusterPersistResponse:
    """Store the current cluster analysis, upserting by cluster name."""
    pages = await load_indexed_pages(session, current_user.org_id)
    analysis = analyze_clusters(pages)
    counts = await persist_clusters(
        session, current_user.org_id, current_user.id, analysis.clusters
    )
    logger.info(
        "Clusters persisted",
        extra={
            "org_id": current_user.org_id,
            "created": counts.created,
            "updated": counts.updated,
        },
    )
    return ClusterPersistResponse(created=counts.created, updated=counts.updated)


# Internal link graph


@router.get("/links", response_model=InternalLinkListResponse)
async def list_links(
    current_user: CurrentUser,
    session: DbSession,
    post_id: str | None = Query(None),
) -> InternalLinkListResponse:
    query = select(InternalLink).where(InternalLink.org_id == current_user.org_id)
    if post_id:
        query = query.where(
            (InternalLink.source_post_id == post_id) | (InternalLink.target_post_id == post_id)
        )
    result = await session.execute(query.order_by(InternalLink.created_at.desc()))
    return InternalLinkListResponse(
        links=[InternalLinkResponse.model_validate(link) for link in result.scalars().all()]
    )


@router.post("/links", response_model=InternalLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_link(
    link_in: InternalLinkCreate,
    current_user: CurrentUser,
    session: DbSession,
) -> InternalLinkResponse:
    if link_in.source_post_id == link_in.target_post_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=SELF_LINK_DETAIL)

    for post_id in (link_in.source_post_id, link_in.target_post_id):
        await get_org_row(session, BlogPost, post_id, current_user.org_id, POST_NOT_FOUND_DETAIL)

    existing = await session.execute(
        select(InternalLink.id).where(
            InternalLink.source_post_id == link_in.source_post_id,
            InternalLink.target_post_id == link_in.target_post_id,
            InternalLink.anchor_text == link_in.anchor_text,
        )
    )
    if existing.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_LINK_DETAIL)

    link = InternalLink(org_id=current_user.org_id, **link_in.model_dump())
    session.add(link)
    await session.flush()
    await session.refresh(link)
    return InternalLinkResponse.model_validate(link)


@router.delete("/links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    link_id: str,
    current_user: CurrentUser,
    session: DbSession,
) -> Response:
    link = await get_org_row(
        session, InternalLink, link_id, current_user.org_id, LINK_NOT_FOUND_DETAIL
    )
    await session.delete(link)
    await session.flush()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
