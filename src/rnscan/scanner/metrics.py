"""Security metrics derived from a scan result."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from rnscan.scanner.models import Finding, ScanResult, Severity

# Weight of one finding against a perfect score of 100
SEVERITY_WEIGHTS = {Severity.HIGH: 10, Severity.MEDIUM: 5, Severity.LOW: 2}

# Assumed average file length when estimating lines of code
ESTIMATED_LINES_PER_FILE = 200

IMPROVING = "improving"
DECLINING = "declining"
STABLE = "stable"


@dataclass
class SecurityMetrics:
    total: int
    high: int
    medium: int
    low: int
    score: int
    density: float
    by_rule: dict[str, int] = field(default_factory=dict)

    @property
    def by_severity(self) -> dict[str, int]:
        return {"HIGH": self.high, "MEDIUM": self.medium, "LOW": self.low}

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "by_severity": self.by_severity,
            "by_rule": dict(self.by_rule),
            "score": self.score,
            "density": self.density,
        }


def security_score(findings: list[Finding]) -> int:
    """0-100, higher is better."""
    weight = sum(SEVERITY_WEIGHTS[f.severity] for f in findings)
    return round(max(0, min(100, 100 - weight)))


def vulnerability_density(findings: list[Finding], files_scanned: int) -> float:
    """Findings per 1000 estimated lines of code."""
    if files_scanned == 0:
        return 0.0
    estimated_lines = files_scanned * ESTIMATED_LINES_PER_FILE
    return round(len(findings) / estimated_lines * 1000, 1)


def compute_metrics(result: ScanResult) -> SecurityMetrics:
    by_rule = Counter(f.rule_id for f in result.findings)
    return SecurityMetrics(
        total=len(result.findings),
        high=result.count(Severity.HIGH),
        medium=result.count(Severity.MEDIUM),
        low=result.count(Severity.LOW),
        score=security_score(result.findings),
        density=vulnerability_density(result.findings, result.files_scanned),
        by_rule=dict(sorted(by_rule.items())),
    )


def compare_trends(current: SecurityMetrics, previous: SecurityMetrics) -> str:
    """Classify the change between two metric snapshots."""
    score_diff = current.score - previous.score
    issue_diff = current.total - previous.total

    if score_diff > 5 or issue_diff < -2:
        return IMPROVING
    if score_diff < -5 or issue_diff > 2:
        return DECLINING
    return STABLE
