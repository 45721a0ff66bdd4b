"""Logging rules — sensitive values in console output and error messages."""

from __future__ import annotations

import re

from rnscan.scanner.context import RuleContext
from rnscan.scanner.heuristics import contains_sensitive_keyword, text_window
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.patterns import SENSITIVE_DATA_CATEGORIES
from rnscan.scanner.rules.base import JS_FILES, Rule, RuleCategory, RuleGroup, node_finding
from rnscan.scanner.syntax.nodes import (
    CallExpression,
    CatchClause,
    Identifier,
    MemberExpression,
    Node,
    ObjectExpression,
    StringLiteral,
    TemplateLiteral,
    callee_names,
)

_CONSOLE_METHODS = ("log", "error", "warn", "info", "debug")
_DEV_CHECK = re.compile(r"__DEV__|process\.env\.NODE_ENV")
_TEST_PATH_MARKERS = (".test.", ".spec.", "/__tests__/", "/tests/")
_ERROR_NAMES = ("error", "err", "exception")
_ERROR_MEMBERS = ("error.message", "err.message", "error.stack")


def categorize_sensitive_data(text: str) -> str:
    """Map a logged expression to a human-readable data category."""
    lower = text.lower()
    if "password" in lower or "passwd" in lower or "pwd" in lower:
        return SENSITIVE_DATA_CATEGORIES["password"]
    if "token" in lower or "jwt" in lower or "bearer" in lower:
        return SENSITIVE_DATA_CATEGORIES["token"]
    if "apikey" in lower or "api_key" in lower or "secret" in lower:
        return SENSITIVE_DATA_CATEGORIES["api_key"]
    if "session" in lower:
        return SENSITIVE_DATA_CATEGORIES["session"]
    if "email" in lower or "phone" in lower or "ssn" in lower:
        return SENSITIVE_DATA_CATEGORIES["pii"]
    if any(word in lower for word in ("credit", "card", "cvv", "pin")):
        return SENSITIVE_DATA_CATEGORIES["payment"]
    if "user" in lower and ("profile" in lower or "data" in lower):
        return SENSITIVE_DATA_CATEGORIES["user_profile"]
    if "private" in lower or "encryption" in lower:
        return SENSITIVE_DATA_CATEGORIES["crypto_key"]
    return SENSITIVE_DATA_CATEGORIES["sensitive"]


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def _sensitive_argument(ctx: RuleContext, arg: Node) -> tuple[str, str] | None:
    """``(label, category)`` when a logged argument carries sensitive data."""
    if isinstance(arg, StringLiteral):
        if arg.value and contains_sensitive_keyword(arg.value):
            return _truncate(arg.value, 50), categorize_sensitive_data(arg.value)
    elif isinstance(arg, Identifier):
        if contains_sensitive_keyword(arg.name):
            return arg.name, categorize_sensitive_data(arg.name)
    elif isinstance(arg, MemberExpression):
        text = ctx.source(arg)
        if contains_sensitive_keyword(text):
            return text, categorize_sensitive_data(text)
    elif isinstance(arg, TemplateLiteral):
        text = ctx.source(arg)
        if contains_sensitive_keyword(text):
            return _truncate(text, 60), categorize_sensitive_data(text)
    elif isinstance(arg, ObjectExpression):
        text = ctx.source(arg)
        if contains_sensitive_keyword(text):
            return "object containing sensitive fields", categorize_sensitive_data(text)
    return None


def _sensitive_logging(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    lower_path = ctx.project_path.lower()
    if any(marker in lower_path for marker in _TEST_PATH_MARKERS):
        return findings

    for call in ctx.tree.nodes(CallExpression):
        obj, method = callee_names(call)
        if obj != "console" or method not in _CONSOLE_METHODS:
            continue
        dev_checked = bool(
            _DEV_CHECK.search(text_window(ctx.content, call.start, call.end, 200, 50))
        )
        for arg in call.arguments:
            match = _sensitive_argument(ctx, arg)
            if match is None:
                continue
            label, category = match
            findings.append(
                node_finding(
                    ctx,
                    "SENSITIVE_LOGGING",
                    Severity.LOW if dev_checked else Severity.MEDIUM,
                    f"console.{method}() logging {category}: {label}",
                    "Consider using a secure logging service instead of console logs, "
                    "even in development."
                    if dev_checked
                    else "Remove console logs with sensitive data or wrap in __DEV__ "
                    "check. Use a logging library with data filtering for production.",
                    call,
                )
            )
            break
    return findings


def _is_error_display(call: CallExpression) -> bool:
    obj, name = callee_names(call)
    if obj == "console" and name in ("error", "warn"):
        return True
    return isinstance(call.callee, Identifier) and name in ("alert", "Alert")


def _sensitive_data_in_error_messages(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    for node in ctx.tree.nodes(CallExpression, CatchClause):
        if isinstance(node, CatchClause):
            body = ctx.source(node)
            if ("Alert.alert" in body or "alert(" in body) and any(
                member in body for member in _ERROR_MEMBERS
            ):
                findings.append(
                    node_finding(
                        ctx,
                        "SENSITIVE_DATA_IN_ERROR_MESSAGES",
                        Severity.MEDIUM,
                        "Catch block shows raw error message to user - may expose "
                        "sensitive backend details",
                        'Replace with user-friendly generic messages. Example: "An error '
                        'occurred. Please try again." Log details securely.',
                        node,
                    )
                )
            continue

        if not _is_error_display(node):
            continue
        for arg in node.arguments:
            if isinstance(arg, Identifier) and arg.name in _ERROR_NAMES:
                findings.append(
                    node_finding(
                        ctx,
                        "SENSITIVE_DATA_IN_ERROR_MESSAGES",
                        Severity.MEDIUM,
                        "Error object logged directly - may contain sensitive data or "
                        "stack traces",
                        "Log only safe error properties (message, code). Sanitize error "
                        "messages before displaying to users. Never expose stack traces "
                        "in production.",
                        node,
                    )
                )
            if isinstance(arg, MemberExpression):
                text = ctx.source(arg)
                if any(member in text for member in _ERROR_MEMBERS):
                    findings.append(
                        node_finding(
                            ctx,
                            "SENSITIVE_DATA_IN_ERROR_MESSAGES",
                            Severity.MEDIUM,
                            "Backend error message or stack trace exposed to user",
                            "Use generic error messages for users. Log detailed errors "
                            "server-side only. Never expose stack traces or backend "
                            "errors.",
                            node,
                        )
                    )
    return findings


LOGGING_RULES = RuleGroup(
    category=RuleCategory.LOGGING,
    rules=(
        Rule(
            id="SENSITIVE_LOGGING",
            description="Sensitive data potentially logged to console",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_sensitive_logging,
        ),
        Rule(
            id="SENSITIVE_DATA_IN_ERROR_MESSAGES",
            description="Error messages or stack traces may expose sensitive data",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_sensitive_data_in_error_messages,
        ),
    ),
)
