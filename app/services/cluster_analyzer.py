"""Topic cluster identification and authority estimation over indexed pages."""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from app.services.interlinking_engine import IndexedPage, jaccard

logger = logging.getLogger(__name__)

PILLAR_MIN_WORDS = 2000
SUPPORTING_MIN_WORDS = 500
SUPPORTING_MAX_WORDS = 2000
LONG_TAIL_MAX_WORDS = 1000
SUPPORTING_OVERLAP = 0.3
LOW_AUTHORITY = 0.5


@dataclass
class TopicCluster:
    id: str
    name: str
    pillar: IndexedPage | None
    supporting: list[IndexedPage] = field(default_factory=list)
    long_tail: list[IndexedPage] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    authority_score: float = 0.0
    total_content: int = 0
    internal_links: int = 0
    content_gaps: list[str] = field(default_factory=list)


@dataclass
class ClusterAnalysis:
    clusters: list[TopicCluster]
    total_clusters: int
    pillar_content_count: int
    supporting_content_count: int
    long_tail_content_count: int
    average_authority_score: float
    recommendations: list[str]


def cluster_id(topic: str) -> str:
    return "cluster_" + re.sub(r"\s+", "_", topic)


def group_by_topic(pages: Sequence[IndexedPage]) -> dict[str, list[IndexedPage]]:
    groups: dict[str, list[IndexedPage]] = {}
    for page in pages:
        for topic in dict.fromkeys(t.lower() for t in page.topics):
            groups.setdefault(topic, []).append(page)
    return groups


def select_pillar(pages: Sequence[IndexedPage]) -> IndexedPage | None:
    """Longest page (ties broken by topic count) that clears the pillar threshold."""
    if not pages:
        return None
    ranked = sorted(pages, key=lambda p: (p.word_count, len(p.topics)), reverse=True)
    threshold = max(PILLAR_MIN_WORDS, ranked[0].word_count * 0.8)
    for page in ranked:
        if page.word_count >= threshold:
            return page
    return ranked[0]


def select_supporting(
    pages: Sequence[IndexedPage],
    pillar: IndexedPage | None,
) -> list[IndexedPage]:
    pillar_id = pillar.page_id if pillar else None
    supporting = []
    for page in pages:
        if page.page_id == pillar_id:
            continue
        if page.word_count < SUPPORTING_MIN_WORDS or page.word_count > SUPPORTING_MAX_WORDS:
            continue
        if pillar is not None and not (
            jaccard(page.topics, pillar.topics) > SUPPORTING_OVERLAP
            or jaccard(page.keywords, pillar.keywords) > SUPPORTING_OVERLAP
        ):
            continue
        supporting.append(page)
    return supporting


def select_long_tail(
    pages: Sequence[IndexedPage],
    pillar: IndexedPage | None,
    supporting: Sequence[IndexedPage],
) -> list[IndexedPage]:
    excluded = {page.page_id for page in supporting}
    if pillar is not None:
        excluded.add(pillar.page_id)
    return [
        page
        for page in pages
        if page.page_id not in excluded
        and (page.word_count < LONG_TAIL_MAX_WORDS or len(page.topics) == 1)
    ]


def _top_terms(values: list[list[str]], limit: int) -> list[str]:
    counts: Counter[str] = Counter()
    for terms in values:
        counts.update(term.lower() for term in terms)
    return [term for term, _ in counts.most_common(limit)]


def cluster_authority(
    pillar: IndexedPage | None,
    supporting: Sequence[IndexedPage],
    long_tail: Sequence[IndexedPage],
) -> float:
    score = 0.0
    if pillar is not None:
        score += 0.5
        if pillar.word_count > 3000:
            score += 0.1
        if len(pillar.topics) > 3:
            score += 0.1
    score += min(0.3, len(supporting) * 0.05)
    score += min(0.2, len(long_tail) * 0.02)
    return min(1.0, score)


def content_gaps(topics: Sequence[str], pages: Sequence[IndexedPage]) -> list[str]:
    gaps: list[str] = []
    if pages and all(page.word_count < PILLAR_MIN_WORDS for page in pages):
        gaps.append("Missing comprehensive pillar content")

    covered = {topic.lower() for page in pages for topic in page.topics}
    missing = [topic for topic in topics if topic.lower() not in covered]
    if missing:
        gaps.append(f"Missing content for topics: {', '.join(missing)}")
    return gaps


def build_cluster(topic: str, pages: Sequence[IndexedPage]) -> TopicCluster | None:
    if not pages:
        return None
    pillar = select_pillar(pages)
    supporting = select_supporting(pages, pillar)
    long_tail = select_long_tail(pages, pillar, supporting)
    topics = _top_terms([page.topics for page in pages], 5)
    keywords = _top_terms([page.keywords for page in pages], 10)
    return TopicCluster(
        id=cluster_id(topic),
        name=topic,
        pillar=pillar,
        supporting=supporting,
        long_tail=long_tail,
        topics=topics,
        keywords=keywords,
        authority_score=cluster_authority(pillar, supporting, long_tail),
        total_content=len(pages),
        content_gaps=content_gaps(topics, pages),
    )


def recommendations_for(clusters: Sequence[TopicCluster]) -> list[str]:
    recommendations: list[str] = []

    without_pillar = [c for c in clusters if c.pillar is None]
    if without_pillar:
        names = ", ".join(c.name for c in without_pillar)
        recommendations.append(
            f"Create pillar content for {len(without_pillar)} cluster(s): {names}"
        )

    with_gaps = [c for c in clusters if c.content_gaps]
    if with_gaps:
        recommendations.append(
            f"Fill content gaps in {len(with_gaps)} cluster(s) to improve authority"
        )

    low_authority = [c for c in clusters if c.authority_score < LOW_AUTHORITY]
    if low_authority:
        recommendations.append(
            f"Improve authority for {len(low_authority)} cluster(s) "
            "by adding more supporting content"
        )
    return recommendations


def analyze_clusters(pages: Sequence[IndexedPage]) -> ClusterAnalysis:
    """Group pages by topic and summarize each group's structure."""
    clusters = [
        cluster
        for topic, members in group_by_topic(pages).items()
        if (cluster := build_cluster(topic, members)) is not None
    ]

    average = (
        sum(c.authority_score for c in clusters) / len(clusters) if clusters else 0.0
    )
    analysis = ClusterAnalysis(
        clusters=clusters,
        total_clusters=len(clusters),
        pillar_content_count=sum(1 for c in clusters if c.pillar is not None),
        supporting_content_count=sum(len(c.supporting) for c in clusters),
        long_tail_content_count=sum(len(c.long_tail) for c in clusters),
        average_authority_score=average,
        recommendations=recommendations_for(clusters),
    )
    logger.info(
        "Cluster analysis completed",
        extra={
            "pages": len(pages),
            "clusters": analysis.total_clusters,
            "pillars": analysis.pillar_content_count,
        },
    )
    return analysis
