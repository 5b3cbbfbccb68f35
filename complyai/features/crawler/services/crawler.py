import logging
from collections import deque
from typing import Dict, List, Optional
from urllib.parse import urlparse

from complyai.platform.config import settings
from complyai.platform.exceptions import CrawlerStateError, FetchError
from complyai.platform.providers import PageFetcher

logger = logging.getLogger(__name__)


class SiteCrawler:
    """
    Breadth-first page discovery restricted to the start URL's hostname.

    One instance is one crawl run: the visited set lives on the instance and
    a second call to crawl() is rejected.
    """

    def __init__(self, fetcher: PageFetcher, page_timeout: Optional[float] = None):
        self.fetcher = fetcher
        self.page_timeout = page_timeout or settings.CRAWL_PAGE_TIMEOUT_SECONDS
        self.visited: set = set()
        self._started = False

    async def crawl(self, start_url: str, max_depth: Optional[int] = None) -> List[Dict[str, str]]:
        """
        Crawl from start_url and return [{"url", "title"}] in BFS order.

        Args:
            start_url: Absolute http(s) URL to start from
            max_depth: Link distance from start_url to follow (default: settings.CRAWL_MAX_DEPTH)

        Returns:
            Pages that loaded successfully. Pages that failed to load are logged and skipped.
        """
        if self._started:
            raise CrawlerStateError("SiteCrawler instances are single-use; create a new one per run")
        self._started = True

        if max_depth is None:
            max_depth = settings.CRAWL_MAX_DEPTH

        hostname = urlparse(start_url).hostname
        pages: List[Dict[str, str]] = []
        queue = deque([(start_url, 0)])

        while queue:
            url, depth = queue.popleft()

            if depth > max_depth or url in self.visited:
                continue
            self.visited.add(url)

            try:
                snapshot = await self.fetcher.fetch(url, self.page_timeout)
            except FetchError as e:
                logger.error(f"Crawl error for {url}: {e}")
                continue

            pages.append({"url": url, "title": snapshot.title})
            logger.info(f"Crawled: {url} (depth {depth})")

            for link in snapshot.links:
                if self._is_internal_link(link, hostname):
                    queue.append((link, depth + 1))

        logger.info(f"Crawl of {start_url} finished: {len(pages)} pages, {len(self.visited)} visited")
        return pages

    async def close(self) -> None:
        await self.fetcher.close()

    @staticmethod
    def _is_internal_link(link: str, hostname: Optional[str]) -> bool:
        """
        True for absolute http(s) links on exactly the start hostname.
        Malformed links are rejected.
        """
        try:
            parsed = urlparse(link)
            if parsed.scheme not in ("http", "https"):
                return False
            return parsed.hostname is not None and parsed.hostname == hostname
        except ValueError:
            return False
