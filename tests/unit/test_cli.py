"""Tests for CLI commands using Click's CliRunner."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

import rnscan.cli.scan as scan_command
from rnscan.cli import main
from rnscan.scanner.engine import ScanEngine

WEAK_HASH = "export const digest = (pwd) => CryptoJS.MD5(pwd).toString();\n"
CLEAN = "export const add = (a, b) => a + b;\n"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("RNSCAN_IGNORED_RULES", raising=False)
    monkeypatch.delenv("RNSCAN_VERBOSE", raising=False)


@pytest.fixture
def vulnerable_app(project):
    return project({"src/crypto/digest.js": WEAK_HASH, "src/utils/format.js": CLEAN})


@pytest.fixture
def clean_app(project):
    return project({"src/utils/format.js": CLEAN})


def test_main_help():
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "rnscan" in result.output
    assert "scan" in result.output
    assert "rules" in result.output


def test_main_version():
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_scan_help():
    runner = CliRunner()
    result = runner.invoke(main, ["scan", "--help"])
    assert result.exit_code == 0
    assert "--changed-since" in result.output
    assert "--baseline" in result.output


def test_scan_clean_project(clean_app):
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(clean_app)])
    assert result.exit_code == 0
    assert "No findings." in result.output
    assert "Scanned 1 files" in result.output
    assert "Security score: 100/100" in result.output


def test_scan_high_findings_exit_code(vulnerable_app):
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(vulnerable_app)])
    assert result.exit_code == 1
    assert "high severity finding(s)" in result.output


def test_scan_json_on_stdout(vulnerable_app):
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(vulnerable_app), "--json"])
    assert result.exit_code == 1
    data = json.loads(result.stdout)
    assert data["files_scanned"] == 2
    assert data["summary"]["high"] >= 1
    assert "WEAK_HASH_ALGORITHM" in [f["rule_id"] for f in data["findings"]]


def test_scan_ignore_option(vulnerable_app):
    runner = CliRunner()
    result = runner.invoke(
        main, ["scan", str(vulnerable_app), "--json", "--ignore", "WEAK_HASH_ALGORITHM"]
    )
    data = json.loads(result.stdout)
    assert "WEAK_HASH_ALGORITHM" not in [f["rule_id"] for f in data["findings"]]
    assert data["ignored_rules"] == ["WEAK_HASH_ALGORITHM"]


def test_scan_exclude_option(vulnerable_app):
    runner = CliRunner()
    result = runner.invoke(
        main, ["scan", str(vulnerable_app), "--json", "--exclude", "src/crypto/*"]
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["files_scanned"] == 1


def test_scan_project_config_file(vulnerable_app):
    (vulnerable_app / ".rnscan.yml").write_text(
        "ignored_rules:\n  - WEAK_HASH_ALGORITHM\n", encoding="utf-8"
    )
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(vulnerable_app), "--json"])
    data = json.loads(result.stdout)
    assert data["ignored_rules"] == ["WEAK_HASH_ALGORITHM"]


def test_scan_missing_path(tmp_path):
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(tmp_path / "nope")])
    assert result.exit_code == 2
    assert "Error:" in result.output


def test_scan_invalid_config(clean_app):
    (clean_app / ".rnscan.yml").write_text("- not\n- a mapping\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(clean_app)])
    assert result.exit_code == 2
    assert "Config must be a mapping" in result.output


def test_scan_output_file(vulnerable_app, tmp_path):
    report = tmp_path / "out" / "report.json"
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(vulnerable_app), "--output", str(report)])
    assert result.exit_code == 1
    assert "Report written to" in result.output
    assert json.loads(report.read_text(encoding="utf-8"))["files_scanned"] == 2


def test_scan_baseline(vulnerable_app, tmp_path):
    report = tmp_path / "baseline.json"
    runner = CliRunner()
    runner.invoke(main, ["scan", str(vulnerable_app), "--output", str(report)])

    unchanged = runner.invoke(main, ["scan", str(vulnerable_app), "--baseline", str(report)])
    assert "Changes since baseline: none" in unchanged.output

    (vulnerable_app / "src" / "crypto" / "legacy.js").write_text(
        "export const sign = (body) => CryptoJS.SHA1(body);\n", encoding="utf-8"
    )
    changed = runner.invoke(main, ["scan", str(vulnerable_app), "--baseline", str(report)])
    assert "1 new issue introduced" in changed.output


def test_scan_bad_baseline(clean_app, tmp_path):
    report = tmp_path / "baseline.json"
    report.write_text('{"name": "not a report"}', encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(clean_app), "--baseline", str(report)])
    assert result.exit_code == 2


def test_scan_changed_since(vulnerable_app, monkeypatch):
    monkeypatch.setattr(scan_command, "is_git_repository", lambda root: True)
    monkeypatch.setattr(
        scan_command,
        "changed_files",
        lambda ref, root: [vulnerable_app / "src" / "utils" / "format.js"],
    )
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(vulnerable_app), "--changed-since", "main"])
    assert result.exit_code == 0
    assert "files changed since" in result.output
    assert "Scanned 1 files" in result.output


def test_scan_changed_since_outside_git(clean_app, monkeypatch):
    monkeypatch.setattr(scan_command, "is_git_repository", lambda root: False)
    runner = CliRunner()
    result = runner.invoke(main, ["scan", str(clean_app), "--changed-since", "main"])
    assert result.exit_code == 2
    assert "Error:" in result.output


def test_rules_lists_every_rule():
    runner = CliRunner()
    result = runner.invoke(main, ["rules"])
    assert result.exit_code == 0
    assert "EVAL_USAGE" in result.stdout
    assert f"{len(ScanEngine().all_rules())} rules" in result.stdout


def test_rules_by_category():
    runner = CliRunner()
    result = runner.invoke(main, ["rules", "--category", "crypto"])
    assert result.exit_code == 0
    assert "2 rules" in result.stdout


def test_rules_unknown_category():
    runner = CliRunner()
    result = runner.invoke(main, ["rules", "--category", "bogus"])
    assert result.exit_code == 2
