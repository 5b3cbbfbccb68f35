import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from selenium.common.exceptions import (
    JavascriptException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.remote.webdriver import WebDriver

from complyai.platform.browser import BrowserProvider, get_browser_provider
from complyai.platform.config import settings
from complyai.platform.exceptions import NavigationTimeout, NetworkError, ScanError

logger = logging.getLogger(__name__)

KEYBOARD_PROBE_LIMIT = 50
SCREEN_READER_PROBE_LIMIT = 200
STANDARDS = ["WCAG 2.1", "Section 508", "ATAG 2.0"]

AXE_RUN_SCRIPT = """
const callback = arguments[arguments.length - 1];
axe.run(document, {
    runOnly: {type: 'tag', values: ['wcag2a', 'wcag2aa', 'wcag21aa', 'section508', 'best-practice']},
    rules: {
        'color-contrast': {enabled: true},
        'empty-heading': {enabled: true},
        'image-alt': {enabled: true}
    },
    reporter: 'v2',
    resultTypes: ['violations', 'incomplete', 'inapplicable']
}).then(results => callback(JSON.parse(JSON.stringify(results))))
  .catch(err => callback({error: String(err)}));
"""

AXE_AUTHORING_SCRIPT = """
const callback = arguments[arguments.length - 1];
axe.run(document, {runOnly: {type: 'tag', values: ['atag2.0']}})
  .then(results => callback(JSON.parse(JSON.stringify(results.violations))))
  .catch(err => callback([]));
"""

IS_AUTHORING_TOOL_SCRIPT = """
return document.querySelector('[contenteditable], .wysiwyg, .rich-text-editor') !== null;
"""

FOCUSED_ELEMENT_SCRIPT = """
const el = document.activeElement;
if (!el) { return null; }
const style = window.getComputedStyle(el);
return {
    tagName: el.tagName,
    visible: style.visibility !== 'hidden' && style.display !== 'none'
        && el.offsetWidth > 0 && el.offsetHeight > 0,
    accessibleName: el.getAttribute('aria-label') || (el.textContent || '').trim()
};
"""

SCREEN_READER_SCRIPT = """
const limit = arguments[0];
const issues = [];
const elements = Array.from(document.querySelectorAll('img, button, a, input, [role]')).slice(0, limit);
for (const el of elements) {
    const tagName = el.tagName;
    const ariaLabel = el.getAttribute('aria-label');
    const html = el.outerHTML.substring(0, 500);
    if (tagName === 'IMG' && !el.alt && !ariaLabel) {
        issues.push({type: 'screenreader-missing-alt', element: tagName,
                     message: 'Image missing alt text for screen readers', html: html});
    }
    if ((tagName === 'BUTTON' || tagName === 'A') && !ariaLabel && !(el.textContent || '').trim()) {
        issues.push({type: 'screenreader-missing-aria', element: tagName,
                     message: 'Interactive element missing ARIA label', html: html});
    }
}
return issues;
"""


class AxeSeleniumScanner:
    """
    Runs axe-core inside a real browser page and returns its raw v2 report,
    plus keyboard and screen-reader probe findings.

    Each scan gets its own WebDriver so scans can run concurrently in threads.
    """

    def __init__(
        self,
        provider: Optional[BrowserProvider] = None,
        axe_script_path: Optional[str] = None,
        navigation_timeout: Optional[int] = None,
    ):
        self.provider = provider or get_browser_provider()
        self.axe_script_path = axe_script_path or settings.AXE_SCRIPT_PATH
        self.navigation_timeout = navigation_timeout or settings.NAVIGATION_TIMEOUT_SECONDS
        self._axe_source: Optional[str] = None

    def _load_axe_source(self) -> str:
        if self._axe_source is None:
            try:
                self._axe_source = Path(self.axe_script_path).read_text(encoding="utf-8")
            except OSError as e:
                raise ScanError(f"Cannot read axe-core script at {self.axe_script_path}: {e}") from e
        return self._axe_source

    async def scan(self, url: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self._scan_sync, url)

    def _scan_sync(self, url: str) -> Dict[str, Any]:
        scan_id = uuid4()
        logger.info(f"[{scan_id}] Starting {self.provider.name} scan for: {url}")

        axe_source = self._load_axe_source()
        driver = self.provider.build_driver()
        try:
            driver.set_page_load_timeout(self.navigation_timeout)
            driver.set_script_timeout(self.navigation_timeout)
            try:
                driver.get(url)
            except TimeoutException as e:
                raise NavigationTimeout(url, f"Navigation timeout after {self.navigation_timeout} seconds") from e
            except WebDriverException as e:
                raise NetworkError(url, f"WebDriver error: {e.msg or e}") from e

            results = self._run_axe(driver, axe_source)

            authoring_violations: List[Dict[str, Any]] = []
            if driver.execute_script(IS_AUTHORING_TOOL_SCRIPT):
                authoring_violations = driver.execute_async_script(AXE_AUTHORING_SCRIPT) or []

            keyboard_issues = self._probe_keyboard(driver)
            screen_reader_issues = self._probe_screen_reader(driver)
            test_engine = results.get("testEngine") or {}

            logger.info(f"[{scan_id}] Scan completed with {len(results.get('violations', []))} violations")
            return {
                "url": url,
                "page_title": driver.title or url,
                "violations": results.get("violations", []),
                "incomplete": results.get("incomplete", []),
                "inapplicable": results.get("inapplicable", []),
                "authoring_violations": authoring_violations,
                "keyboard_issues": keyboard_issues,
                "screen_reader_issues": screen_reader_issues,
                "engine": {
                    "name": test_engine.get("name", "axe-core"),
                    "version": test_engine.get("version"),
                    "standards": STANDARDS,
                },
            }
        finally:
            try:
                driver.quit()
            except WebDriverException:
                logger.warning(f"[{scan_id}] Failed to quit scan driver")

    @staticmethod
    def _run_axe(driver: WebDriver, axe_source: str) -> Dict[str, Any]:
        try:
            driver.execute_script(axe_source)
            results = driver.execute_async_script(AXE_RUN_SCRIPT)
        except (JavascriptException, TimeoutException) as e:
            raise ScanError(f"axe-core failed to run: {e}") from e

        if not isinstance(results, dict):
            raise ScanError("axe-core returned no results")
        if "error" in results:
            raise ScanError(f"axe-core failed to run: {results['error']}")
        return results

    @staticmethod
    def _probe_keyboard(driver: WebDriver) -> List[Dict[str, Any]]:
        """Tab through up to KEYBOARD_PROBE_LIMIT focus stops and flag hidden or unnamed ones."""
        issues = []
        try:
            actions = ActionChains(driver)
            for _ in range(KEYBOARD_PROBE_LIMIT):
                actions.send_keys(Keys.TAB).perform()
                focused = driver.execute_script(FOCUSED_ELEMENT_SCRIPT)
                if not focused:
                    continue

                tag_name = focused.get("tagName")
                if not focused.get("visible"):
                    issues.append({
                        "type": "keyboard-focus-hidden",
                        "element": tag_name,
                        "message": "Focused element is not visible",
                    })
                if tag_name in ("A", "BUTTON") and not focused.get("accessibleName"):
                    issues.append({
                        "type": "keyboard-missing-aria-label",
                        "element": tag_name,
                        "message": "Interactive element missing accessible name",
                    })
        except WebDriverException as e:
            logger.warning(f"Keyboard probe stopped early: {e}")
        return issues

    @staticmethod
    def _probe_screen_reader(driver: WebDriver) -> List[Dict[str, Any]]:
        try:
            return driver.execute_script(SCREEN_READER_SCRIPT, SCREEN_READER_PROBE_LIMIT) or []
        except WebDriverException as e:
            logger.warning(f"Screen reader probe failed: {e}")
            return []
