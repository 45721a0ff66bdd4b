"""Tests for JSON report output."""

from __future__ import annotations

import json

import pytest

from rnscan.scanner.models import Finding, FindingCategory, ScanResult, Severity
from rnscan.scanner.report import load_report, to_json, write_report


@pytest.fixture
def result() -> ScanResult:
    return ScanResult(
        directory="/app",
        findings=[
            Finding(
                rule_id="INSECURE_HTTP_URL",
                description='Insecure HTTP URL detected in fetch: "http://api.shop.io"',
                severity=Severity.MEDIUM,
                file_path="/app/src/api.ts",
                line=3,
                snippet="fetch('http://api.shop.io')",
                suggestion="Use HTTPS instead of HTTP for all network requests",
            ),
            Finding(
                rule_id="NPM_VULNERABLE_DEPENDENCY",
                description="Prototype Pollution in lodash (critical)",
                severity=Severity.HIGH,
                file_path="/app/package.json",
                line=4,
                category=FindingCategory.DEPENDENCY,
            ),
        ],
        files_scanned=12,
        files_skipped=1,
        duration=0.42,
        timestamp=0.0,
        ignored_rules=["EVAL_USAGE"],
    )


class TestToJson:
    def test_shape(self, result):
        data = json.loads(to_json(result))
        assert data["directory"] == "/app"
        assert data["timestamp"] == "1970-01-01T00:00:00+00:00"
        assert data["files_scanned"] == 12
        assert data["files_skipped"] == 1
        assert data["ignored_rules"] == ["EVAL_USAGE"]
        assert data["summary"] == {"total": 2, "high": 1, "medium": 1, "low": 0}
        assert data["findings"][0]["severity"] == "MEDIUM"
        assert data["findings"][1]["category"] == "dependency"


class TestWriteAndLoad:
    def test_write_creates_parents(self, result, tmp_path):
        path = write_report(result, tmp_path / "reports" / "scan.json")
        assert path.is_file()
        assert path.read_text(encoding="utf-8").endswith("}\n")

    def test_load_written_report(self, result, tmp_path):
        path = write_report(result, tmp_path / "scan.json")
        findings = load_report(path)
        assert [f.key for f in findings] == [f.key for f in result.findings]
        assert findings[1].category == FindingCategory.DEPENDENCY

    def test_not_a_report(self, tmp_path):
        path = tmp_path / "other.json"
        path.write_text('{"name": "shop"}', encoding="utf-8")
        with pytest.raises(ValueError, match="Not a scan report"):
            load_report(path)

    def test_malformed_finding(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text('{"findings": [{"rule_id": "X"}]}', encoding="utf-8")
        with pytest.raises(ValueError, match="Malformed finding"):
            load_report(path)
