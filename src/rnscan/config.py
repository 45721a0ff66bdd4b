"""Scan configuration — project config file, env vars, defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_FILENAMES = (".rnscan.yml", ".rnscan.yaml", ".rnscan.json", ".rnsec.json")

NPM_AUDIT = "npm-audit"
HARDCODED = "hardcoded"


@dataclass
class NpmScanSettings:
    """Dependency vulnerability scanning options."""

    enabled: bool = True
    data_source: str = NPM_AUDIT
    exclude_dev_dependencies: bool = False


@dataclass
class ScanConfig:
    """Options that shape one scan. Passed explicitly to the engine."""

    ignored_rules: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    npm: NpmScanSettings = field(default_factory=NpmScanSettings)
    verbose: bool = False
    source: Path | None = None

    @classmethod
    def load(cls, root: str | Path | None = None) -> ScanConfig:
        """Load the project config file under ``root``, then apply env overrides."""
        config = cls()
        if root is not None:
            for name in CONFIG_FILENAMES:
                path = Path(root) / name
                if path.is_file():
                    config = load_config(path)
                    break

        env_ignored = os.environ.get("RNSCAN_IGNORED_RULES")
        if env_ignored:
            for rule_id in env_ignored.split(","):
                rule_id = rule_id.strip()
                if rule_id and rule_id not in config.ignored_rules:
                    config.ignored_rules.append(rule_id)

        if os.environ.get("RNSCAN_VERBOSE"):
            config.verbose = True

        return config


def load_config(path: str | Path) -> ScanConfig:
    """Load a config file. JSON documents are read as YAML."""
    text = Path(path).read_text(encoding="utf-8")
    config = load_config_from_string(text)
    config.source = Path(path)
    return config


def load_config_from_string(text: str) -> ScanConfig:
    data = yaml.safe_load(text)
    if data is None:
        return ScanConfig()
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping")
    return _build_config(data)


def _get(data: dict, *names: str, default=None):
    for name in names:
        if name in data:
            return data[name]
    return default


def _build_config(data: dict) -> ScanConfig:
    ignored = _get(data, "ignored_rules", "ignoredRules", default=[]) or []
    if isinstance(ignored, str):
        ignored = [ignored]
    if not isinstance(ignored, list):
        raise ValueError("ignored_rules must be a list of rule ids")

    exclude = _get(data, "exclude", "excludePaths", "exclude_paths", default=[]) or []
    if isinstance(exclude, str):
        exclude = [exclude]
    if not isinstance(exclude, list):
        raise ValueError("exclude must be a list of glob patterns")

    npm_data = (
        _get(data, "npm_vulnerability_scanning", "npmVulnerabilityScanning", default={})
        or {}
    )
    if not isinstance(npm_data, dict):
        raise ValueError("npm_vulnerability_scanning must be a mapping")

    data_source = _get(npm_data, "data_source", "dataSource", default=NPM_AUDIT)
    if data_source not in (NPM_AUDIT, HARDCODED):
        raise ValueError(
            f"Unknown npm data source: {data_source!r} "
            f"(expected {NPM_AUDIT!r} or {HARDCODED!r})"
        )

    return ScanConfig(
        ignored_rules=[str(r) for r in ignored],
        exclude=[str(p) for p in exclude],
        npm=NpmScanSettings(
            enabled=bool(_get(npm_data, "enabled", default=True)),
            data_source=data_source,
            exclude_dev_dependencies=bool(
                _get(
                    npm_data,
                    "exclude_dev_dependencies",
                    "excludeDevDependencies",
                    default=False,
                )
            ),
        ),
        verbose=bool(data.get("verbose", False)),
    )
