"""Tests for security metrics."""

from __future__ import annotations

from rnscan.scanner.metrics import (
    DECLINING,
    IMPROVING,
    STABLE,
    SecurityMetrics,
    compare_trends,
    compute_metrics,
    security_score,
    vulnerability_density,
)
from rnscan.scanner.models import Finding, ScanResult, Severity


def _findings(*severities: Severity) -> list[Finding]:
    return [
        Finding(
            rule_id=f"RULE_{i}",
            description="",
            severity=severity,
            file_path="/app/App.tsx",
            line=i + 1,
        )
        for i, severity in enumerate(severities)
    ]


def _metrics(score: int, total: int) -> SecurityMetrics:
    return SecurityMetrics(total=total, high=0, medium=0, low=0, score=score, density=0.0)


class TestScore:
    def test_perfect(self):
        assert security_score([]) == 100

    def test_weights(self):
        findings = _findings(Severity.HIGH, Severity.MEDIUM, Severity.LOW)
        assert security_score(findings) == 83

    def test_floor(self):
        assert security_score(_findings(*[Severity.HIGH] * 11)) == 0


class TestDensity:
    def test_no_files(self):
        assert vulnerability_density(_findings(Severity.LOW), 0) == 0.0

    def test_per_thousand_lines(self):
        assert vulnerability_density(_findings(Severity.LOW, Severity.LOW), 4) == 2.5


class TestComputeMetrics:
    def test_from_result(self):
        result = ScanResult(
            directory="/app",
            findings=_findings(Severity.HIGH, Severity.HIGH, Severity.LOW),
            files_scanned=10,
        )
        metrics = compute_metrics(result)
        assert metrics.total == 3
        assert metrics.by_severity == {"HIGH": 2, "MEDIUM": 0, "LOW": 1}
        assert metrics.score == 78
        assert metrics.density == 1.5
        assert metrics.to_dict()["by_rule"] == {"RULE_0": 1, "RULE_1": 1, "RULE_2": 1}


class TestTrends:
    def test_improving(self):
        assert compare_trends(_metrics(90, 2), _metrics(80, 3)) == IMPROVING
        assert compare_trends(_metrics(80, 1), _metrics(80, 4)) == IMPROVING

    def test_declining(self):
        assert compare_trends(_metrics(70, 5), _metrics(80, 4)) == DECLINING
        assert compare_trends(_metrics(80, 7), _metrics(80, 4)) == DECLINING

    def test_stable(self):
        assert compare_trends(_metrics(82, 5), _metrics(80, 4)) == STABLE
