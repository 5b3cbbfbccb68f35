from unittest.mock import MagicMock, patch

import pytest
from selenium.common.exceptions import JavascriptException, TimeoutException, WebDriverException

from complyai.features.scan.services.scanner import (
    AXE_AUTHORING_SCRIPT,
    AXE_RUN_SCRIPT,
    FOCUSED_ELEMENT_SCRIPT,
    IS_AUTHORING_TOOL_SCRIPT,
    KEYBOARD_PROBE_LIMIT,
    SCREEN_READER_SCRIPT,
    AxeSeleniumScanner,
)
from complyai.platform.exceptions import NavigationTimeout, NetworkError, ScanError

AXE_SOURCE = "window.axe = {run: function () {}};"

AXE_RESULTS = {
    "testEngine": {"name": "axe-core", "version": "4.8.2"},
    "violations": [{"id": "image-alt", "impact": "critical", "nodes": []}],
    "incomplete": [{"id": "color-contrast"}],
    "inapplicable": [],
}

SCREEN_READER_ISSUES = [
    {"type": "screenreader-missing-alt", "element": "IMG", "message": "Image missing alt text", "html": "<img>"}
]


@pytest.fixture
def axe_file(tmp_path):
    path = tmp_path / "axe.min.js"
    path.write_text(AXE_SOURCE, encoding="utf-8")
    return path


@pytest.fixture
def mock_driver():
    driver = MagicMock()
    driver.title = "Example Home"

    def execute_script(script, *args):
        if script == IS_AUTHORING_TOOL_SCRIPT:
            return False
        if script == FOCUSED_ELEMENT_SCRIPT:
            return {"tagName": "A", "visible": True, "accessibleName": "Home"}
        if script == SCREEN_READER_SCRIPT:
            return SCREEN_READER_ISSUES
        return None

    driver.execute_script.side_effect = execute_script
    driver.execute_async_script.return_value = AXE_RESULTS
    return driver


@pytest.fixture
def scanner(mock_driver, axe_file):
    provider = MagicMock()
    provider.name = "chrome"
    provider.build_driver.return_value = mock_driver
    return AxeSeleniumScanner(provider=provider, axe_script_path=str(axe_file), navigation_timeout=15)


@pytest.fixture(autouse=True)
def action_chains():
    with patch("complyai.features.scan.services.scanner.ActionChains") as mock_chains:
        yield mock_chains


class TestAxeSeleniumScanner:
    @pytest.mark.asyncio
    async def test_scan_returns_raw_report(self, scanner, mock_driver):
        result = await scanner.scan("https://example.com/")

        mock_driver.set_page_load_timeout.assert_called_once_with(15)
        mock_driver.get.assert_called_once_with("https://example.com/")
        mock_driver.execute_script.assert_any_call(AXE_SOURCE)
        mock_driver.execute_async_script.assert_called_once_with(AXE_RUN_SCRIPT)

        assert result["url"] == "https://example.com/"
        assert result["page_title"] == "Example Home"
        assert result["violations"] == AXE_RESULTS["violations"]
        assert result["incomplete"] == AXE_RESULTS["incomplete"]
        assert result["authoring_violations"] == []
        assert result["keyboard_issues"] == []
        assert result["screen_reader_issues"] == SCREEN_READER_ISSUES
        assert result["engine"]["version"] == "4.8.2"
        mock_driver.quit.assert_called_once()

    @pytest.mark.asyncio
    async def test_authoring_rules_run_on_editable_pages(self, scanner, mock_driver):
        base = mock_driver.execute_script.side_effect
        mock_driver.execute_script.side_effect = (
            lambda script, *args: True if script == IS_AUTHORING_TOOL_SCRIPT else base(script, *args)
        )
        mock_driver.execute_async_script.side_effect = (
            lambda script: [{"id": "atag-rule"}] if script == AXE_AUTHORING_SCRIPT else AXE_RESULTS
        )

        result = await scanner.scan("https://example.com/editor")

        assert result["authoring_violations"] == [{"id": "atag-rule"}]

    @pytest.mark.asyncio
    async def test_keyboard_probe_flags_hidden_and_unnamed_focus(self, scanner, mock_driver):
        base = mock_driver.execute_script.side_effect
        mock_driver.execute_script.side_effect = (
            lambda script, *args: {"tagName": "BUTTON", "visible": False, "accessibleName": ""}
            if script == FOCUSED_ELEMENT_SCRIPT
            else base(script, *args)
        )

        result = await scanner.scan("https://example.com/")

        types = {issue["type"] for issue in result["keyboard_issues"]}
        assert types == {"keyboard-focus-hidden", "keyboard-missing-aria-label"}
        assert len(result["keyboard_issues"]) == 2 * KEYBOARD_PROBE_LIMIT

    @pytest.mark.asyncio
    async def test_navigation_timeout(self, scanner, mock_driver):
        mock_driver.get.side_effect = TimeoutException("page load timed out")

        with pytest.raises(NavigationTimeout):
            await scanner.scan("https://slow.example.com/")
        mock_driver.quit.assert_called_once()

    @pytest.mark.asyncio
    async def test_network_error(self, scanner, mock_driver):
        mock_driver.get.side_effect = WebDriverException("net::ERR_CONNECTION_REFUSED")

        with pytest.raises(NetworkError):
            await scanner.scan("https://down.example.com/")

    @pytest.mark.asyncio
    async def test_axe_failure_is_a_scan_error(self, scanner, mock_driver):
        mock_driver.execute_async_script.side_effect = JavascriptException("axe is not defined")

        with pytest.raises(ScanError):
            await scanner.scan("https://example.com/")
        mock_driver.quit.assert_called_once()

    @pytest.mark.asyncio
    async def test_axe_error_payload_is_a_scan_error(self, scanner, mock_driver):
        mock_driver.execute_async_script.return_value = {"error": "Error: boom"}

        with pytest.raises(ScanError):
            await scanner.scan("https://example.com/")

    @pytest.mark.asyncio
    async def test_missing_axe_script(self, mock_driver, tmp_path):
        provider = MagicMock()
        provider.build_driver.return_value = mock_driver
        scanner = AxeSeleniumScanner(provider=provider, axe_script_path=str(tmp_path / "missing.js"))

        with pytest.raises(ScanError):
            await scanner.scan("https://example.com/")
        provider.build_driver.assert_not_called()

    @pytest.mark.asyncio
    async def test_probe_failures_do_not_fail_the_scan(self, scanner, action_chains):
        action_chains.return_value.send_keys.return_value.perform.side_effect = WebDriverException("gone")

        result = await scanner.scan("https://example.com/")

        assert result["keyboard_issues"] == []
        assert result["violations"] == AXE_RESULTS["violations"]
