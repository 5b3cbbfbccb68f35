import asyncio
import logging
from typing import Optional

from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.remote.webdriver import WebDriver

from complyai.platform.browser import BrowserProvider, get_browser_provider
from complyai.platform.exceptions import NavigationTimeout, NetworkError
from complyai.platform.providers import PageSnapshot

logger = logging.getLogger(__name__)

EXTRACT_LINKS_SCRIPT = """
return Array.from(document.querySelectorAll('a[href]'))
    .map(a => a.href)
    .filter(href => href.startsWith('http'));
"""


class SeleniumPageFetcher:
    """
    Loads pages in a single WebDriver owned by one crawl run.

    Selenium is blocking, so every call runs in a worker thread. Calls are
    expected one at a time (the crawler fetches sequentially).
    """

    def __init__(self, provider: Optional[BrowserProvider] = None):
        self.provider = provider or get_browser_provider()
        self._driver: Optional[WebDriver] = None

    def _get_driver(self) -> WebDriver:
        # Driver start-up failures are fatal for the run and are not wrapped
        if self._driver is None:
            self._driver = self.provider.build_driver()
        return self._driver

    def _fetch_sync(self, url: str, timeout: float) -> PageSnapshot:
        driver = self._get_driver()
        try:
            driver.set_page_load_timeout(timeout)
            driver.get(url)
            title = driver.title or ""
            links = driver.execute_script(EXTRACT_LINKS_SCRIPT) or []
        except TimeoutException as e:
            raise NavigationTimeout(url, f"Page load timeout after {timeout} seconds") from e
        except WebDriverException as e:
            raise NetworkError(url, f"WebDriver error: {e.msg or e}") from e

        return PageSnapshot(title=title, links=[link for link in links if isinstance(link, str)])

    async def fetch(self, url: str, timeout: float) -> PageSnapshot:
        return await asyncio.to_thread(self._fetch_sync, url, timeout)

    async def close(self) -> None:
        if self._driver is None:
            return
        driver, self._driver = self._driver, None
        try:
            await asyncio.to_thread(driver.quit)
        except WebDriverException as e:
            logger.warning(f"Failed to quit crawler driver: {e}")
