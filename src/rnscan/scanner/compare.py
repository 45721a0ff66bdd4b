"""Scan comparison — what changed between a baseline scan and the current one."""

from __future__ import annotations

from dataclasses import dataclass, field

from rnscan.scanner.models import Finding


@dataclass
class ScanComparison:
    new: list[Finding] = field(default_factory=list)
    resolved: list[Finding] = field(default_factory=list)
    persistent: list[Finding] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.new or self.resolved)


def compare_scans(current: list[Finding], baseline: list[Finding]) -> ScanComparison:
    """Partition findings by their ``(rule_id, file_path, line)`` key.

    A baseline finding matches at most one current finding; unmatched
    baseline findings are resolved.
    """
    remaining: dict[tuple[str, str, int], Finding] = {}
    for finding in baseline:
        remaining[finding.key] = finding

    comparison = ScanComparison()
    for finding in current:
        if finding.key in remaining:
            comparison.persistent.append(finding)
            del remaining[finding.key]
        else:
            comparison.new.append(finding)

    comparison.resolved.extend(remaining.values())
    return comparison


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def summarize_comparison(comparison: ScanComparison) -> str:
    """One-line summary, empty when nothing was introduced or resolved."""
    if not comparison.changed:
        return ""

    parts = []
    if comparison.new:
        parts.append(f"{_plural(len(comparison.new), 'new issue')} introduced")
    if comparison.resolved:
        parts.append(f"{_plural(len(comparison.resolved), 'issue')} resolved")
    if comparison.persistent:
        parts.append(
            f"{_plural(len(comparison.persistent), 'existing issue')} still present"
        )
    return ", ".join(parts)
