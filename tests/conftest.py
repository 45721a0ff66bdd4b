"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from rnscan.config import HARDCODED, NpmScanSettings, ScanConfig
from rnscan.scanner.engine import ScanEngine
from rnscan.scanner.models import Finding


@pytest.fixture
def offline_config() -> ScanConfig:
    """Config that never shells out to npm."""
    return ScanConfig(npm=NpmScanSettings(data_source=HARDCODED))


@pytest.fixture
def engine(offline_config: ScanConfig) -> ScanEngine:
    return ScanEngine(offline_config)


@pytest.fixture
def scan_source(engine: ScanEngine) -> Callable[..., list[Finding]]:
    """Run every applicable rule on one in-memory file, with suppression."""

    def _scan(file_path: str, content: str, rule_id: str | None = None) -> list[Finding]:
        findings = engine.scan_content(file_path, content)
        if rule_id is not None:
            findings = [f for f in findings if f.rule_id == rule_id]
        return findings

    return _scan


@pytest.fixture
def project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write a small project tree and return its root."""

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / "app"
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        root.mkdir(exist_ok=True)
        return root

    return _make
