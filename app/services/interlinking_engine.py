"""Relevance scoring and internal link opportunity detection."""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.services.content_text import strip_html

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


@dataclass
class IndexedPage:
    """A page that can be linked to."""

    page_id: str
    url: str
    title: str
    content: str = ""
    keywords: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    word_count: int = 0
    type: str = "cms"  # cms | static | external
    published_at: datetime | None = None


@dataclass
class InterlinkingRequest:
    content: str
    title: str
    keywords: list[str] = field(default_factory=list)
    topics: list[str] = field(default_factory=list)
    max_internal: int = 5
    max_external: int = 3


@dataclass
class LinkOpportunity:
    target: IndexedPage
    anchor_text: str
    placement: str  # introduction | body | conclusion
    relevance_score: float
    authority_score: float
    link_value: float
    context: str
    reason: str


@dataclass
class InterlinkingAnalysis:
    opportunities: list[LinkOpportunity]
    internal_links: list[LinkOpportunity]
    external_links: list[LinkOpportunity]
    cluster_links: list[LinkOpportunity]
    total_opportunities: int
    recommended_links: int
    max_links: int


def jaccard(left: Iterable[str], right: Iterable[str]) -> float:
    """Jaccard similarity of two lowercased string sets; 0 when either is empty."""
    left_set = {item.lower() for item in left}
    right_set = {item.lower() for item in right}
    if not left_set or not right_set:
        return 0.0
    return len(left_set & right_set) / len(left_set | right_set)


def extract_topics(content: str, title: str = "", limit: int = 5) -> list[str]:
    """Most frequent words longer than three characters in title and body."""
    text = _NON_ALNUM_RE.sub(" ", f"{title} {strip_html(content)}".lower())
    counts = Counter(word for word in text.split() if len(word) > 3)
    return [word for word, _ in counts.most_common(limit)]


class InterlinkingEngine:
    """Scores indexed pages against a draft and proposes links.

    relevance = 0.4 keywords + 0.3 topics + 0.2 title words + 0.1 content words
    link value = 0.6 relevance + 0.4 authority
    """

    WEIGHT_KEYWORDS = 0.4
    WEIGHT_TOPICS = 0.3
    WEIGHT_TITLE = 0.2
    WEIGHT_CONTENT = 0.1

    WEIGHT_RELEVANCE = 0.6
    WEIGHT_AUTHORITY = 0.4

    MIN_INTERNAL_RELEVANCE = 0.3
    MIN_CLUSTER_RELEVANCE = 0.4
    CONTENT_SAMPLE_WORDS = 50

    INTERNAL_TYPES = frozenset({"cms", "static"})

    def __init__(self, now: datetime | None = None) -> None:
        self._now = now

    def analyze(
        self,
        request: InterlinkingRequest,
        pages: Sequence[IndexedPage],
    ) -> InterlinkingAnalysis:
        max_internal = request.max_internal or 5
        max_external = request.max_external or 3

        internal = self._find_internal_links(request, pages, max_internal)
        cluster = self._find_cluster_links(request, pages, max_internal)

        unique = self._deduplicate(internal + cluster)
        unique.sort(key=lambda opp: opp.link_value, reverse=True)

        internal_links = [opp for opp in unique if opp.target.type in self.INTERNAL_TYPES]
        external_links = [opp for opp in unique if opp.target.type == "external"]
        recommended = min(max_internal + max_external, len(unique))

        logger.info(
            "Interlinking analysis completed",
            extra={
                "title": request.title,
                "indexed_pages": len(pages),
                "total_opportunities": len(unique),
                "internal_links": len(internal_links),
                "cluster_links": len(cluster),
            },
        )
        return InterlinkingAnalysis(
            opportunities=unique,
            internal_links=internal_links,
            external_links=external_links,
            cluster_links=cluster,
            total_opportunities=len(unique),
            recommended_links=recommended,
            max_links=max_internal + max_external,
        )

    def relevance_score(self, request: InterlinkingRequest, page: IndexedPage) -> float:
        score = (
            jaccard(request.keywords, page.keywords) * self.WEIGHT_KEYWORDS
            + jaccard(request.topics, page.topics) * self.WEIGHT_TOPICS
            + jaccard(request.title.lower().split(), page.title.lower().split())
            * self.WEIGHT_TITLE
            + self._content_similarity(request.content, page.content) * self.WEIGHT_CONTENT
        )
        return min(1.0, score)

    def authority_score(self, page: IndexedPage) -> float:
        score = 0.5
        if page.word_count > 2000:
            score += 0.2
        elif page.word_count > 1000:
            score += 0.1

        if page.published_at is not None:
            published_at = page.published_at
            if published_at.tzinfo is None:
                published_at = published_at.replace(tzinfo=timezone.utc)
            now = self._now or datetime.now(timezone.utc)
            age_days = (now - published_at).total_seconds() / 86400
            if age_days < 90:
                score += 0.1
            elif age_days < 365:
                score += 0.05

        if page.type == "cms":
            score += 0.1
        return min(1.0, score)

    def link_value(self, relevance: float, authority: float) -> float:
        return relevance * self.WEIGHT_RELEVANCE + authority * self.WEIGHT_AUTHORITY

    @staticmethod
    def placement(relevance: float) -> str:
        if relevance > 0.7:
            return "introduction"
        if relevance > 0.4:
            return "body"
        return "conclusion"

    @staticmethod
    def context_sentence(page: IndexedPage) -> str:
        topic = (page.topics or page.keywords or ["this topic"])[0]
        return f"For more information about {topic}, see {page.title}."

    def reason(self, request: InterlinkingRequest, page: IndexedPage, relevance: float) -> str:
        reasons: list[str] = []
        if relevance > 0.7:
            reasons.append("Highly relevant content")
        if jaccard(request.topics, page.topics) > 0.5:
            reasons.append(f"Shares topics: {', '.join(page.topics[:2])}")
        if jaccard(request.keywords, page.keywords) > 0.3:
            reasons.append(f"Shares keywords: {', '.join(page.keywords[:2])}")
        if page.word_count > 2000:
            reasons.append("Comprehensive content")
        return "; ".join(reasons) if reasons else "Related content"

    def _content_similarity(self, left: str, right: str) -> float:
        left_words = [w for w in (left or "").lower().split() if len(w) > 3]
        right_words = [w for w in (right or "").lower().split() if len(w) > 3]
        return jaccard(
            left_words[: self.CONTENT_SAMPLE_WORDS],
            right_words[: self.CONTENT_SAMPLE_WORDS],
        )

    def _opportunity(
        self,
        request: InterlinkingRequest,
        page: IndexedPage,
        relevance: float,
        reason: str,
    ) -> LinkOpportunity:
        authority = self.authority_score(page)
        return LinkOpportunity(
            target=page,
            anchor_text=page.title,
            placement=self.placement(relevance),
            relevance_score=relevance,
            authority_score=authority,
            link_value=self.link_value(relevance, authority),
            context=self.context_sentence(page),
            reason=reason,
        )

    def _find_internal_links(
        self,
        request: InterlinkingRequest,
        pages: Sequence[IndexedPage],
        limit: int,
    ) -> list[LinkOpportunity]:
        title = request.title.lower()
        found: list[LinkOpportunity] = []
        for page in pages:
            if page.title.lower() == title:
                continue
            relevance = self.relevance_score(request, page)
            if relevance < self.MIN_INTERNAL_RELEVANCE:
                continue
            found.append(
                self._opportunity(request, page, relevance, self.reason(request, page, relevance))
            )
        found.sort(key=lambda opp: opp.link_value, reverse=True)
        return found[:limit]

    def _find_cluster_links(
        self,
        request: InterlinkingRequest,
        pages: Sequence[IndexedPage],
        limit: int,
    ) -> list[LinkOpportunity]:
        title = request.title.lower()
        topics = {topic.lower() for topic in request.topics}
        keywords = {keyword.lower() for keyword in request.keywords}

        found: list[LinkOpportunity] = []
        for page in pages:
            shares_topic = any(topic.lower() in topics for topic in page.topics)
            shares_keyword = any(keyword.lower() in keywords for keyword in page.keywords)
            if not (shares_topic or shares_keyword):
                continue
            if page.title.lower() == title:
                continue
            relevance = self.relevance_score(request, page)
            if relevance < self.MIN_CLUSTER_RELEVANCE:
                continue
            reason = f"Related content in the same topic cluster: {', '.join(page.topics)}"
            found.append(self._opportunity(request, page, relevance, reason))
        found.sort(key=lambda opp: opp.link_value, reverse=True)
        return found[:limit]

    @staticmethod
    def _deduplicate(opportunities: Iterable[LinkOpportunity]) -> list[LinkOpportunity]:
        seen: set[str] = set()
        unique: list[LinkOpportunity] = []
        for opp in opportunities:
            if opp.target.page_id in seen:
                continue
            seen.add(opp.target.page_id)
            unique.append(opp)
        return unique
