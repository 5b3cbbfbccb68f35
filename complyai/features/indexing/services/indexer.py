import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse
from uuid import uuid4

from complyai.features.crawler.services.crawler import SiteCrawler
from complyai.features.crawler.services.page_fetcher import SeleniumPageFetcher
from complyai.features.scan.services.orchestrator import ScanOrchestrator
from complyai.features.scan.services.risk import compliance_from_risk
from complyai.features.websites.services.store import PersistenceStore
from complyai.platform.config import settings
from complyai.platform.exceptions import ExternalServiceError
from complyai.platform.providers import EmbeddingProvider
from complyai.platform.utils.batching import run_in_batches
from complyai.platform.utils.url_validator import validate_url

logger = logging.getLogger(__name__)


def default_crawler_factory() -> SiteCrawler:
    return SiteCrawler(SeleniumPageFetcher())


def embedding_text(violation: Dict[str, Any]) -> str:
    nodes = violation.get("nodes") or []
    html = (nodes[0].get("html") or "") if nodes else ""
    tags = ", ".join(violation.get("tags") or [])
    return (
        f"Violation: {violation.get('id')} | {violation.get('description')} | "
        f"Standard: {tags} | Element: {html[:100]}"
    )


class IndexingPipeline:
    """
    Crawl a domain, scan and enhance every page, persist the results and
    write the domain's compliance score.

    Pages are processed in fixed batches; a failing page is logged and left
    out of the compliance aggregate without stopping the run.
    """

    def __init__(
        self,
        store: PersistenceStore,
        orchestrator: ScanOrchestrator,
        embedder: EmbeddingProvider,
        crawler_factory: Optional[Callable[[], SiteCrawler]] = None,
        page_batch_size: Optional[int] = None,
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.embedder = embedder
        self.crawler_factory = crawler_factory or default_crawler_factory
        self.page_batch_size = page_batch_size or settings.PAGE_BATCH_SIZE

    async def index_website(self, domain_or_url: str, max_depth: Optional[int] = None) -> Dict[str, Any]:
        """
        Index every page reachable from domain_or_url.

        Returns:
            {"domain", "pages_indexed", "compliance_score"}

        Raises:
            ValueError: domain_or_url is not a usable URL
            Exception: crawler start-up failures propagate unchanged
        """
        is_valid, start_url, error = validate_url(domain_or_url)
        if not is_valid:
            raise ValueError(error)
        domain = urlparse(start_url).hostname
        run_id = uuid4()

        crawler = self.crawler_factory()
        try:
            logger.info(f"[{run_id}] Starting crawl for: {domain}")
            pages = await crawler.crawl(start_url, max_depth)
            logger.info(f"[{run_id}] Found {len(pages)} pages to index")

            async def index_one(page: Dict[str, str]) -> Optional[float]:
                return await self._index_page(run_id, domain, page)

            risk_scores = await run_in_batches(pages, self.page_batch_size, index_one)
            succeeded = [score for score in risk_scores if score is not None]

            compliance_score = compliance_from_risk(succeeded)
            await self.store.update_website_score(domain, compliance_score)

            logger.info(
                f"[{run_id}] Completed indexing for {domain}: {len(succeeded)}/{len(pages)} pages, "
                f"compliance score {compliance_score}"
            )
            return {
                "domain": domain,
                "pages_indexed": len(succeeded),
                "compliance_score": compliance_score,
            }
        finally:
            await crawler.close()

    async def scan_page(self, url: str) -> Dict[str, Any]:
        """
        Scan, enhance and persist a single page outside of a crawl.
        Errors propagate to the caller.
        """
        is_valid, url, error = validate_url(url)
        if not is_valid:
            raise ValueError(error)
        domain = urlparse(url).hostname

        enhanced = await self.orchestrator.scan_and_enhance(url)
        embeddings = await self._embed_violations(enhanced["violations"])
        await self.store.store_page_results(
            domain, url, enhanced.get("page_title") or url, enhanced, embeddings
        )
        return enhanced

    async def _index_page(self, run_id, domain: str, page: Dict[str, str]) -> Optional[float]:
        url = page["url"]
        try:
            logger.info(f"[{run_id}] Scanning {url}")
            enhanced = await self.orchestrator.scan_and_enhance(url)
            embeddings = await self._embed_violations(enhanced["violations"])
            await self.store.store_page_results(
                domain, url, page.get("title") or enhanced.get("page_title"), enhanced, embeddings
            )
            return enhanced["metrics"]["risk_score"]
        except Exception as e:
            logger.error(f"[{run_id}] Failed to index {url}: {e}")
            return None

    async def _embed_violations(self, violations: List[Dict[str, Any]]) -> List[Optional[List[float]]]:
        async def embed_one(violation: Dict[str, Any]) -> Optional[List[float]]:
            try:
                return await self.embedder.embed(embedding_text(violation))
            except ExternalServiceError as e:
                logger.warning(f"Embedding failed for {violation.get('id')}, storing without it: {e}")
                return None

        return await run_in_batches(violations, settings.SUGGESTION_BATCH_SIZE, embed_one)
