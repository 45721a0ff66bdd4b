"""Scanner data models — findings and scan results."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone


class Severity(enum.Enum):
    """Finding severity level."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


class FindingCategory(enum.Enum):
    """Coarse origin of a finding."""

    CODE = "code"
    DEPENDENCY = "dependency"


@dataclass
class Finding:
    """A single issue reported by a rule."""

    rule_id: str
    description: str
    severity: Severity
    file_path: str
    line: int | None = None
    column: int | None = None
    snippet: str | None = None
    suggestion: str | None = None
    category: FindingCategory = FindingCategory.CODE
    is_debug_context: bool = False

    @property
    def key(self) -> tuple[str, str, int]:
        """Comparison key used when diffing two scans."""
        return (self.rule_id, self.file_path, self.line or 0)

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "description": self.description,
            "severity": self.severity.value,
            "file_path": self.file_path,
            "line": self.line,
            "column": self.column,
            "snippet": self.snippet,
            "suggestion": self.suggestion,
            "category": self.category.value,
            "is_debug_context": self.is_debug_context,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Finding:
        return cls(
            rule_id=data["rule_id"],
            description=data.get("description", ""),
            severity=Severity(data["severity"]),
            file_path=data["file_path"],
            line=data.get("line"),
            column=data.get("column"),
            snippet=data.get("snippet"),
            suggestion=data.get("suggestion"),
            category=FindingCategory(data.get("category", "code")),
            is_debug_context=bool(data.get("is_debug_context", False)),
        )


@dataclass
class ScanResult:
    """Aggregate result of a static scan."""

    directory: str
    findings: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    files_skipped: int = 0
    duration: float = 0.0
    timestamp: float = field(default_factory=time.time)
    ignored_rules: list[str] = field(default_factory=list)

    def count(self, severity: Severity) -> int:
        return sum(1 for f in self.findings if f.severity == severity)

    @property
    def has_high(self) -> bool:
        """True when at least one HIGH finding survived suppression."""
        return any(f.severity == Severity.HIGH for f in self.findings)

    def to_dict(self) -> dict:
        return {
            "directory": self.directory,
            "timestamp": datetime.fromtimestamp(
                self.timestamp, tz=timezone.utc
            ).isoformat(),
            "duration": round(self.duration, 3),
            "files_scanned": self.files_scanned,
            "files_skipped": self.files_skipped,
            "ignored_rules": list(self.ignored_rules),
            "summary": {
                "total": len(self.findings),
                "high": self.count(Severity.HIGH),
                "medium": self.count(Severity.MEDIUM),
                "low": self.count(Severity.LOW),
            },
            "findings": [f.to_dict() for f in self.findings],
        }
