import math
from typing import Any, Dict, List

SEVERITY_WEIGHTS = {
    "critical": 10,
    "high": 6,
    "medium": 3,
    "low": 1,
    "unknown": 1,
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_risk_score(violations: List[Dict[str, Any]]) -> int:
    """
    Severity-weighted page risk, 0-100 (higher is worse).

    The raw weight sum is normalized against the score the same number of
    critical violations would give, so an all-critical page is always 100
    and an empty page is 0.
    """
    if not violations:
        return 0

    raw_score = sum(SEVERITY_WEIGHTS.get(v.get("severity"), 1) for v in violations)
    max_possible = len(violations) * SEVERITY_WEIGHTS["critical"]

    return min(_round_half_up(raw_score / max_possible * 100), 100)


def severity_breakdown(violations: List[Dict[str, Any]]) -> Dict[str, int]:
    breakdown: Dict[str, int] = {}
    for violation in violations:
        severity = violation.get("severity", "unknown")
        breakdown[severity] = breakdown.get(severity, 0) + 1
    return breakdown


def compliance_from_risk(risk_scores: List[float]) -> float:
    """
    Website compliance, 0-100 (higher is better), from the page risk scores of
    the pages that were indexed successfully.

    No successful pages means no evidence of issues, reported as 100.
    """
    if not risk_scores:
        return 100.0
    mean_risk = sum(risk_scores) / len(risk_scores)
    return 100 - min(mean_risk, 100)
