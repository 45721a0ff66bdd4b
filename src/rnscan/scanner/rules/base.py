"""Rule and rule-group definitions, plus helpers for building findings."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass

from rnscan.scanner.context import RuleContext
from rnscan.scanner.models import Finding, FindingCategory, Severity
from rnscan.scanner.syntax.nodes import Node

JS_FILES = (".js", ".jsx", ".ts", ".tsx")
JS_AND_JSON_FILES = (".js", ".jsx", ".ts", ".tsx", ".json")


class RuleCategory(enum.Enum):
    """Documentation grouping for rules. Has no effect on execution."""

    STORAGE = "storage"
    NETWORK = "network"
    LOGGING = "logging"
    CONFIG = "config"
    MANIFEST = "manifest"
    AUTHENTICATION = "authentication"
    CRYPTO = "crypto"
    REACT_NATIVE = "react-native"
    WEBVIEW = "webview"
    SECRETS = "secrets"
    DEBUG = "debug"
    ANDROID = "android"
    IOS = "ios"
    DEPENDENCIES = "dependencies"


@dataclass(frozen=True)
class Rule:
    """A detection unit with fixed identity and a pure ``check`` function."""

    id: str
    description: str
    severity: Severity
    file_types: tuple[str, ...]
    check: Callable[[RuleContext], list[Finding]]

    def applies_to(self, file_path: str) -> bool:
        return any(file_path.endswith(file_type) for file_type in self.file_types)

    def apply(self, context: RuleContext) -> list[Finding]:
        return self.check(context)


@dataclass(frozen=True)
class RuleGroup:
    category: RuleCategory
    rules: tuple[Rule, ...]


def node_finding(
    ctx: RuleContext,
    rule_id: str,
    severity: Severity,
    description: str,
    suggestion: str,
    node: Node,
) -> Finding:
    """Finding anchored at a syntax node, with a five-line snippet."""
    return offset_finding(ctx, rule_id, severity, description, suggestion, node.start)


def offset_finding(
    ctx: RuleContext,
    rule_id: str,
    severity: Severity,
    description: str,
    suggestion: str,
    offset: int,
) -> Finding:
    line = ctx.line_of(offset)
    return Finding(
        rule_id=rule_id,
        description=description,
        severity=severity,
        file_path=ctx.file_path,
        line=line,
        snippet=ctx.snippet(line),
        suggestion=suggestion,
    )


def line_finding(
    ctx: RuleContext,
    rule_id: str,
    severity: Severity,
    description: str,
    suggestion: str,
    line: int,
    snippet: str | None = None,
) -> Finding:
    """Finding on a line, with the line itself as snippet unless given."""
    return Finding(
        rule_id=rule_id,
        description=description,
        severity=severity,
        file_path=ctx.file_path,
        line=line,
        snippet=snippet if snippet is not None else ctx.line_text(line).strip(),
        suggestion=suggestion,
    )


def file_finding(
    ctx: RuleContext,
    rule_id: str,
    severity: Severity,
    description: str,
    suggestion: str,
    line: int | None = None,
    category: FindingCategory = FindingCategory.CODE,
) -> Finding:
    """Finding that concerns the file as a whole."""
    return Finding(
        rule_id=rule_id,
        description=description,
        severity=severity,
        file_path=ctx.file_path,
        line=line,
        suggestion=suggestion,
        category=category,
    )
