import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.future import select

from complyai.features.search.services.embedding_codec import cosine_similarity, decompress_embedding
from complyai.features.websites.models import Page, Violation, Website
from complyai.platform.config import settings
from complyai.platform.providers import EmbeddingProvider

logger = logging.getLogger(__name__)

CONTEXTUAL_QUERY_TEMPLATE = "Accessibility violation about {query} in web development"

SEVERITY_ORDER = case(
    {"critical": 0, "high": 1, "medium": 2, "low": 3},
    value=Violation.severity,
    else_=4,
)


class SearchEngine:
    """
    Read side of the index: semantic ranking over stored violation embeddings
    plus exact-match filters.

    Semantic search is a linear scan over at most candidate_limit rows.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        embedder: EmbeddingProvider,
        candidate_limit: Optional[int] = None,
        similarity_threshold: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.embedder = embedder
        self.candidate_limit = candidate_limit or settings.SEMANTIC_CANDIDATE_LIMIT
        self.similarity_threshold = (
            settings.SIMILARITY_THRESHOLD if similarity_threshold is None else similarity_threshold
        )

    async def semantic_search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        """
        Rank stored violations by cosine similarity to query.

        The query is wrapped in the same accessibility framing used when the
        violations were embedded. Returns [] on any failure.
        """
        try:
            query_embedding = await self.embedder.embed(CONTEXTUAL_QUERY_TEMPLATE.format(query=query))
            if not query_embedding:
                raise ValueError("Failed to generate query embedding")

            candidates = await self._load_candidates()

            results = []
            for row in candidates:
                vector = decompress_embedding(row["embedding"])
                if vector is None or len(vector) != len(query_embedding):
                    logger.debug(f"Skipping violation {row['id']}: unusable embedding")
                    continue

                similarity = cosine_similarity(query_embedding, vector)
                if similarity > self.similarity_threshold:
                    row = {key: value for key, value in row.items() if key != "embedding"}
                    results.append({**row, "similarity": similarity})

            results.sort(key=lambda r: r["similarity"], reverse=True)
            return results[:limit]

        except Exception as e:
            logger.error(f"Semantic search failed: {e}")
            return []

    async def _load_candidates(self) -> List[Dict[str, Any]]:
        stmt = (
            select(
                Violation.id,
                Violation.violation_id,
                Violation.description,
                Violation.severity,
                Violation.html,
                Violation.suggestion,
                Violation.embedding,
                Page.url,
                Page.title,
                Website.domain,
            )
            .join(Page, Violation.page_id == Page.id)
            .join(Website, Page.website_id == Website.id)
            .where(Violation.embedding.isnot(None))
            .limit(self.candidate_limit)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [dict(row) for row in result.mappings().all()]

    async def search_violations(
        self,
        violation_id: Optional[str] = None,
        severity: Optional[str] = None,
        domain: Optional[str] = None,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """
        Exact match on violation_id, case-insensitive exact match on severity,
        substring match on domain. Results are ordered critical first.
        """
        stmt = (
            select(
                Violation.id,
                Violation.violation_id,
                Violation.description,
                Violation.severity,
                Violation.html,
                Violation.suggestion,
                Page.url,
                Page.title,
                Website.domain,
            )
            .join(Page, Violation.page_id == Page.id)
            .join(Website, Page.website_id == Website.id)
        )

        if violation_id:
            stmt = stmt.where(Violation.violation_id == violation_id)
        if severity:
            stmt = stmt.where(func.lower(Violation.severity) == severity.lower())
        if domain:
            stmt = stmt.where(Website.domain.contains(domain, autoescape=True))

        stmt = stmt.order_by(SEVERITY_ORDER, Violation.violation_id).limit(limit)

        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [dict(row) for row in result.mappings().all()]

    async def search_websites_by_compliance(self, min_score: float = 0, limit: int = 50) -> List[Dict[str, Any]]:
        stmt = (
            select(Website.domain, Website.compliance_score, Website.last_scanned)
            .where(Website.compliance_score >= min_score)
            .order_by(Website.compliance_score.desc())
            .limit(limit)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [dict(row) for row in result.mappings().all()]
