import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.future import select

from complyai.features.search.services.embedding_codec import compress_embedding
from complyai.features.websites.models import Page, Violation, Website
from complyai.features.websites.models.violation import HTML_SNIPPET_MAX_LENGTH
from complyai.features.websites.schemas.website import (
    PageOut,
    PageReport,
    ViolationOut,
    WebsiteOut,
)
from complyai.platform.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class PersistenceStore:
    """
    Transactional writes of the website -> page -> violation hierarchy.

    Writers are serialized with an asyncio lock, so one page transaction is in
    flight at a time even when pages of a batch finish together.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self._write_lock = asyncio.Lock()

    async def upsert_website(self, session: AsyncSession, domain: str, compliance_score: float) -> Website:
        """
        Get or create the website row for domain.

        compliance_score is only used when the row is created; the aggregate for
        an existing row is written by update_website_score at the end of a run.
        """
        result = await session.execute(select(Website).where(Website.domain == domain))
        website = result.scalars().first()
        now = datetime.utcnow()

        if website is None:
            website = Website(domain=domain, compliance_score=compliance_score, last_scanned=now)
            session.add(website)
        else:
            website.last_scanned = now

        await session.flush()
        return website

    async def upsert_page(
        self,
        session: AsyncSession,
        domain: str,
        url: str,
        title: Optional[str],
        risk_score: float,
        scan_data: Dict[str, Any],
    ) -> str:
        result = await session.execute(select(Website).where(Website.domain == domain))
        website = result.scalars().first()
        if website is None:
            raise PersistenceError(f"Website {domain} must exist before its pages")

        result = await session.execute(select(Page).where(Page.url == url))
        page = result.scalars().first()
        now = datetime.utcnow()

        if page is None:
            page = Page(url=url)
            session.add(page)

        page.website_id = website.id
        page.title = title
        page.risk_score = risk_score
        page.scan_data = scan_data
        page.last_scanned = now

        await session.flush()
        return page.id

    async def replace_violations(
        self,
        session: AsyncSession,
        page_id: str,
        violations: Sequence[Dict[str, Any]],
        embeddings: Optional[Sequence[Optional[List[float]]]] = None,
    ) -> int:
        """
        Delete the page's violations and insert the new set.

        embeddings is aligned with violations; a None entry stores the violation
        without an embedding. Must run inside the caller's transaction.
        """
        await session.execute(delete(Violation).where(Violation.page_id == page_id))

        if embeddings is None:
            embeddings = [None] * len(violations)
        elif len(embeddings) != len(violations):
            raise PersistenceError(
                f"Got {len(embeddings)} embeddings for {len(violations)} violations on page {page_id}"
            )

        rows = []
        for violation, embedding in zip(violations, embeddings):
            nodes = violation.get("nodes") or []
            suggestion = violation.get("suggestion") or {}
            rows.append(
                Violation(
                    page_id=page_id,
                    violation_id=violation.get("id"),
                    description=violation.get("description"),
                    severity=violation.get("severity") or "unknown",
                    html=(nodes[0].get("html") or "")[:HTML_SNIPPET_MAX_LENGTH] if nodes else "",
                    suggestion=suggestion.get("suggestion") or "",
                    embedding=compress_embedding(embedding) if embedding else None,
                )
            )

        session.add_all(rows)
        await session.flush()
        return len(rows)

    async def store_page_results(
        self,
        domain: str,
        url: str,
        title: Optional[str],
        scan_data: Dict[str, Any],
        embeddings: Optional[Sequence[Optional[List[float]]]] = None,
    ) -> str:
        """
        Persist one scanned page in a single transaction:
        website upsert, page upsert, violation delete, violation inserts.

        Raises:
            PersistenceError: the transaction failed and was rolled back
        """
        risk_score = scan_data.get("metrics", {}).get("risk_score", 0)
        violations = scan_data.get("violations") or []

        async with self._write_lock:
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        await self.upsert_website(session, domain, 100 - min(risk_score, 100))
                        page_id = await self.upsert_page(session, domain, url, title, risk_score, scan_data)
                        count = await self.replace_violations(session, page_id, violations, embeddings)
            except PersistenceError:
                logger.error(f"[DB] Failed to store results for {url}, rolled back")
                raise
            except SQLAlchemyError as e:
                logger.error(f"[DB] Failed to store results for {url}, rolled back: {e}")
                raise PersistenceError(f"Failed to store results for {url}: {e}") from e

        logger.info(f"[DB] Stored {count} violations for {url}")
        return page_id

    async def update_website_score(self, domain: str, compliance_score: float) -> None:
        async with self._write_lock:
            try:
                async with self.session_factory() as session:
                    async with session.begin():
                        website = await self.upsert_website(session, domain, compliance_score)
                        website.compliance_score = compliance_score
            except SQLAlchemyError as e:
                logger.error(f"[DB] Failed to update compliance score for {domain}: {e}")
                raise PersistenceError(f"Failed to update compliance score for {domain}: {e}") from e

    async def get_page_report(self, url: str) -> Optional[PageReport]:
        async with self.session_factory() as session:
            result = await session.execute(select(Page).where(Page.url == url))
            page = result.scalars().first()
            if page is None:
                return None

            website = await session.get(Website, page.website_id)
            result = await session.execute(select(Violation).where(Violation.page_id == page.id))
            violations = result.scalars().all()

            return PageReport(
                website=WebsiteOut.model_validate(website),
                page=PageOut.model_validate(page),
                violations=[
                    ViolationOut.model_validate(v).model_copy(update={"has_embedding": v.embedding is not None})
                    for v in violations
                ],
                violation_count=len(violations),
            )
