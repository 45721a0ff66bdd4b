"""Scan engine — runs every applicable rule over every file of a project."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path

from rnscan.config import ScanConfig
from rnscan.scanner.context import build_context
from rnscan.scanner.files import is_excluded, is_scannable, walk_project
from rnscan.scanner.models import Finding, ScanResult
from rnscan.scanner.rules import Rule, RuleGroup, default_rule_groups
from rnscan.scanner.suppression import suppress_debug_findings
from rnscan.scanner.syntax.parser import CodeParser

logger = logging.getLogger(__name__)


class ScanEngine:
    """Orchestrates rule execution across a project directory or file list.

    Files are processed one at a time in enumeration order. Within a file,
    rules run in registration order; a rule that raises contributes nothing
    for that file and the scan carries on.
    """

    def __init__(
        self,
        config: ScanConfig | None = None,
        groups: Iterable[RuleGroup] | None = None,
    ) -> None:
        self._config = config or ScanConfig()
        self._groups: list[RuleGroup] = (
            list(groups) if groups is not None else default_rule_groups()
        )
        self._parser = CodeParser()

    @property
    def config(self) -> ScanConfig:
        return self._config

    @property
    def ignored_rules(self) -> set[str]:
        return set(self._config.ignored_rules)

    def register_group(self, group: RuleGroup) -> None:
        self._groups.append(group)

    def all_rules(self) -> list[Rule]:
        return [rule for group in self._groups for rule in group.rules]

    def get_applicable_rules(self, file_path: str) -> list[Rule]:
        """Rules whose file types match ``file_path``, minus ignored ids."""
        ignored = self.ignored_rules
        return [
            rule
            for rule in self.all_rules()
            if rule.id not in ignored and rule.applies_to(file_path)
        ]

    def scan(self, directory: str | Path) -> ScanResult:
        """Scan a project directory and return aggregated results."""
        directory = Path(directory).resolve()
        if not directory.exists():
            raise FileNotFoundError(f"Scan root does not exist: {directory}")
        if not directory.is_dir():
            raise NotADirectoryError(f"Scan root is not a directory: {directory}")

        files = list(walk_project(directory, self._config.exclude))
        logger.debug("Enumerated %d files under %s", len(files), directory)
        return self._run(directory, files)

    def scan_files(
        self, paths: Iterable[str | Path], root: str | Path | None = None
    ) -> ScanResult:
        """Scan an explicit file list, e.g. the files changed since a git ref.

        Files outside the scanned set or matching an exclude glob are dropped;
        a listed file that no longer exists counts as skipped.
        """
        directory = Path(root).resolve() if root is not None else Path.cwd()
        selected = []
        for raw in paths:
            path = Path(raw)
            if not path.is_absolute():
                path = directory / path
            if not is_scannable(path):
                continue
            try:
                relative = path.relative_to(directory).as_posix()
            except ValueError:
                relative = path.as_posix()
            if is_excluded(relative, self._config.exclude):
                continue
            selected.append(path)
        return self._run(directory, selected)

    def _run(self, directory: Path, files: list[Path]) -> ScanResult:
        start = time.time()
        result = ScanResult(
            directory=str(directory),
            ignored_rules=list(self._config.ignored_rules),
        )

        for file_path in files:
            try:
                content = file_path.read_text(encoding="utf-8", errors="ignore")
            except OSError as e:
                logger.debug("Skipping %s: %s", file_path, e)
                result.files_skipped += 1
                continue

            result.files_scanned += 1
            result.findings.extend(
                self.scan_content(
                    str(file_path), content, _project_path(file_path, directory)
                )
            )

        result.duration = time.time() - start
        return result

    def scan_content(
        self, file_path: str, content: str, project_path: str | None = None
    ) -> list[Finding]:
        """Run the applicable rules on one file's content, then suppress debug code.

        ``project_path`` is the file's location inside the scanned project
        (``/src/App.tsx``). Test, mock and build markers are matched against it;
        it defaults to ``file_path``.
        """
        rules = self.get_applicable_rules(file_path)
        if not rules:
            return []

        context = build_context(
            file_path, content, self._config, self._parser, project_path
        )
        findings: list[Finding] = []
        for rule in rules:
            try:
                findings.extend(rule.apply(context))
            except Exception as e:
                logger.debug("Rule %s failed on %s: %s", rule.id, file_path, e)
        return suppress_debug_findings(findings, content, context.project_path)


def _project_path(file_path: Path, directory: Path) -> str:
    try:
        return "/" + file_path.relative_to(directory).as_posix()
    except ValueError:
        return file_path.as_posix()
