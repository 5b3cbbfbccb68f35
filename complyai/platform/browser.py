"""
Pluggable WebDriver construction.

The browser type comes from settings.BROWSER_TYPE; a driver binary can be pinned
with settings.BROWSER_DRIVER_PATH, otherwise Selenium Manager resolves one.
"""
import logging
from typing import Callable, Dict, Optional

from selenium import webdriver
from selenium.webdriver.remote.webdriver import WebDriver

from complyai.platform.config import settings

logger = logging.getLogger(__name__)

COMMON_ARGUMENTS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


class BrowserProvider:
    """Builds a configured WebDriver for one browser family."""

    name = "base"

    def __init__(self, driver_path: Optional[str] = None, headless: bool = True):
        self.driver_path = driver_path
        self.headless = headless

    def build_driver(self) -> WebDriver:
        raise NotImplementedError


class ChromeProvider(BrowserProvider):
    name = "chrome"

    def build_driver(self) -> WebDriver:
        from selenium.webdriver.chrome.options import Options
        from selenium.webdriver.chrome.service import Service

        options = Options()
        if self.headless:
            options.add_argument("--headless=new")
        for argument in COMMON_ARGUMENTS:
            options.add_argument(argument)
        options.add_argument("--window-size=1280,800")

        if self.driver_path:
            return webdriver.Chrome(service=Service(executable_path=self.driver_path), options=options)
        return webdriver.Chrome(options=options)


class EdgeProvider(BrowserProvider):
    name = "edge"

    def build_driver(self) -> WebDriver:
        from selenium.webdriver.edge.options import Options
        from selenium.webdriver.edge.service import Service

        options = Options()
        if self.headless:
            options.add_argument("--headless=new")
        for argument in COMMON_ARGUMENTS:
            options.add_argument(argument)
        options.add_argument("--window-size=1280,800")

        if self.driver_path:
            return webdriver.Edge(service=Service(executable_path=self.driver_path), options=options)
        return webdriver.Edge(options=options)


class FirefoxProvider(BrowserProvider):
    name = "firefox"

    def build_driver(self) -> WebDriver:
        from selenium.webdriver.firefox.options import Options
        from selenium.webdriver.firefox.service import Service

        options = Options()
        if self.headless:
            options.add_argument("-headless")
        options.add_argument("--width=1280")
        options.add_argument("--height=800")

        if self.driver_path:
            return webdriver.Firefox(service=Service(executable_path=self.driver_path), options=options)
        return webdriver.Firefox(options=options)


BROWSER_PROVIDERS: Dict[str, Callable[..., BrowserProvider]] = {
    "chrome": ChromeProvider,
    "edge": EdgeProvider,
    "firefox": FirefoxProvider,
}


def get_browser_provider(
    browser_type: Optional[str] = None,
    driver_path: Optional[str] = None,
    headless: Optional[bool] = None,
) -> BrowserProvider:
    browser_type = (browser_type or settings.BROWSER_TYPE).lower()
    provider_cls = BROWSER_PROVIDERS.get(browser_type)
    if provider_cls is None:
        raise ValueError(f"Unsupported browser: {browser_type}")

    return provider_cls(
        driver_path=driver_path or settings.BROWSER_DRIVER_PATH,
        headless=settings.HEADLESS if headless is None else headless,
    )
