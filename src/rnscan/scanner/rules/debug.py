"""Debug rules — test credentials, debug endpoints, Redux DevTools."""

from __future__ import annotations

import re

from rnscan.scanner.context import RuleContext
from rnscan.scanner.heuristics import text_window
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import (
    JS_FILES,
    Rule,
    RuleCategory,
    RuleGroup,
    node_finding,
    offset_finding,
)
from rnscan.scanner.syntax.nodes import Identifier, MemberExpression, StringLiteral

_CREDENTIAL_SKIP_PATHS = (
    ".test.",
    ".spec.",
    "/__tests__/",
    "/test/",
    "node_modules",
    "/vendor/",
    "/lib/",
    "/libraries/",
    "/assets/",
    "/modules/",
    "highcharts",
    ".min.",
)

TEST_CREDENTIAL_PATTERNS = (
    (
        re.compile(
            r"(password|pass|pwd)[\s]*[:=][\s]*['\"](test|demo|admin|password|123456|qwerty)",
            re.IGNORECASE,
        ),
        "password",
    ),
    (
        re.compile(
            r"(username|user|email)[\s]*[:=][\s]*['\"](test|demo|admin|user@test\.com)",
            re.IGNORECASE,
        ),
        "username",
    ),
    (re.compile(r"['\"]test@(test|example)\.(com|org)['\"]", re.IGNORECASE), "email"),
    (re.compile(r"Bearer\s+test[a-zA-Z0-9]+", re.IGNORECASE), "token"),
)

_DEBUG_ENDPOINTS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (r"/debug/", r"/api/debug", r"/admin/debug", r"/__debug")
)
_LOCAL_HOSTS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"localhost",
        r"127\.0\.0\.1",
        r"192\.168\.",
        r"10\.0\.",
        r"172\.(1[6-9]|2[0-9]|3[0-1])\.",
    )
)
_DEV_CHECK = re.compile(r"__DEV__|process\.env\.NODE_ENV")
_DEVTOOLS_DEV_CHECK = re.compile(r"__DEV__|process\.env\.NODE_ENV.*!==.*production")


def _test_credentials_in_code(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    lower_path = ctx.project_path.lower()
    if any(p in lower_path for p in _CREDENTIAL_SKIP_PATHS):
        return findings

    for pattern, kind in TEST_CREDENTIAL_PATTERNS:
        for match in pattern.finditer(ctx.content):
            findings.append(
                offset_finding(
                    ctx,
                    "TEST_CREDENTIALS_IN_CODE",
                    Severity.MEDIUM,
                    f"Test {kind} found in production code: {match.group(0)}",
                    "Remove test credentials from production code. Use environment "
                    "variables or mock data in tests only.",
                    match.start(),
                )
            )
    return findings


def _debug_endpoints_exposed(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    for literal in ctx.tree.nodes(StringLiteral):
        value = literal.value
        if "://" not in value and not value.startswith("/"):
            continue
        if any(p.search(value) for p in _LOCAL_HOSTS):
            continue
        if not any(p.search(value) for p in _DEBUG_ENDPOINTS):
            continue
        surrounding = text_window(ctx.content, literal.start, literal.end, 150, 150)
        if _DEV_CHECK.search(surrounding):
            continue
        findings.append(
            node_finding(
                ctx,
                "DEBUG_ENDPOINTS_EXPOSED",
                Severity.HIGH,
                f"Debug endpoint exposed: {value}",
                "Wrap debug endpoints in __DEV__ checks or remove them from production "
                "builds. Debug endpoints should never be accessible in production.",
                literal,
            )
        )
    return findings


def _redux_devtools_enabled(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    for member in ctx.tree.nodes(MemberExpression):
        if not (
            isinstance(member.object, Identifier)
            and member.object.name == "window"
            and member.property_name == "__REDUX_DEVTOOLS_EXTENSION__"
        ):
            continue
        surrounding = text_window(ctx.content, member.start, member.end, 200, 200)
        if _DEVTOOLS_DEV_CHECK.search(surrounding):
            continue
        findings.append(
            node_finding(
                ctx,
                "REDUX_DEVTOOLS_ENABLED",
                Severity.MEDIUM,
                "Redux DevTools extension enabled without production check",
                "Wrap Redux DevTools in __DEV__ or NODE_ENV check: "
                "window.__REDUX_DEVTOOLS_EXTENSION__ && __DEV__ ? ... : undefined",
                member,
            )
        )
    return findings


DEBUG_RULES = RuleGroup(
    category=RuleCategory.DEBUG,
    rules=(
        Rule(
            id="TEST_CREDENTIALS_IN_CODE",
            description="Test credentials or example passwords found in source code",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_test_credentials_in_code,
        ),
        Rule(
            id="DEBUG_ENDPOINTS_EXPOSED",
            description="Debug or development endpoints exposed in production code",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_debug_endpoints_exposed,
        ),
        Rule(
            id="REDUX_DEVTOOLS_ENABLED",
            description="Redux DevTools enabled in production",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_redux_devtools_enabled,
        ),
    ),
)
