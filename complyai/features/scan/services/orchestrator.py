import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from complyai.features.scan.services.risk import calculate_risk_score, severity_breakdown
from complyai.features.suggestions.services.suggestion_cache import SuggestionCache
from complyai.features.websites.models.violation import HTML_SNIPPET_MAX_LENGTH, ViolationSeverity
from complyai.platform.config import settings
from complyai.platform.providers import AccessibilityScanner
from complyai.platform.utils.batching import run_in_batches

logger = logging.getLogger(__name__)

SEVERITY_MAPPING = {
    ViolationSeverity.critical.value: ("serious", "critical"),
    ViolationSeverity.high.value: ("moderate",),
    ViolationSeverity.medium.value: ("minor",),
    ViolationSeverity.low.value: ("cosmetic",),
}


def map_severity(impact: Optional[str]) -> str:
    for severity, impacts in SEVERITY_MAPPING.items():
        if impact in impacts:
            return severity
    return ViolationSeverity.unknown.value


def enhance_node(node: Dict[str, Any]) -> Dict[str, Any]:
    target = node.get("target") or []
    if isinstance(target, str):
        target = [target]
    return {
        **node,
        "target": " > ".join(segment if isinstance(segment, str) else " ".join(segment) for segment in target),
        "html": (node.get("html") or "")[:HTML_SNIPPET_MAX_LENGTH],
    }


class ScanOrchestrator:
    """
    Scans one page and turns the raw axe report into the enhanced result
    stored per page: mapped severities, trimmed nodes, AI fix suggestions
    and risk metrics.
    """

    def __init__(
        self,
        scanner: AccessibilityScanner,
        suggestion_cache: SuggestionCache,
        batch_size: Optional[int] = None,
    ):
        self.scanner = scanner
        self.suggestion_cache = suggestion_cache
        self.batch_size = batch_size or settings.SUGGESTION_BATCH_SIZE

    async def scan_and_enhance(self, url: str) -> Dict[str, Any]:
        raw_results = await self.scanner.scan(url)
        return await self.enhance_results(raw_results)

    async def enhance_results(self, results: Dict[str, Any]) -> Dict[str, Any]:
        violations = await run_in_batches(
            results.get("violations") or [], self.batch_size, self._enhance_violation
        )
        screen_reader_issues = await run_in_batches(
            results.get("screen_reader_issues") or [], self.batch_size, self._suggest_for_probe_issue
        )

        metrics = {
            "risk_score": calculate_risk_score(violations),
            "violation_count": len(violations),
            "severity_breakdown": severity_breakdown(violations),
        }
        logger.info(
            f"Enhanced {len(violations)} violations for {results.get('url')}: risk={metrics['risk_score']}"
        )

        return {
            **results,
            "violations": violations,
            "screen_reader_issues": screen_reader_issues,
            "keyboard_issues": results.get("keyboard_issues") or [],
            "metrics": metrics,
            "scanned_at": datetime.now(timezone.utc).isoformat(),
        }

    async def _enhance_violation(self, violation: Dict[str, Any]) -> Dict[str, Any]:
        severity = map_severity(violation.get("impact"))
        nodes = [enhance_node(node) for node in violation.get("nodes") or []]

        enhanced = {**violation, "severity": severity, "nodes": nodes}
        enhanced["suggestion"] = await self.suggestion_cache.get_or_generate(enhanced)
        return enhanced

    async def _suggest_for_probe_issue(self, issue: Dict[str, Any]) -> Dict[str, Any]:
        suggestion = await self.suggestion_cache.get_or_generate({
            "id": issue.get("type"),
            "description": issue.get("message"),
            "nodes": [{"html": issue.get("html") or ""}],
        })
        return {**issue, "suggestion": suggestion}
