"""Network rules — cleartext URLs, WebView origins, timeouts, TLS settings."""

from __future__ import annotations

from rnscan.scanner.context import RuleContext
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import (
    JS_FILES,
    Rule,
    RuleCategory,
    RuleGroup,
    file_finding,
    line_finding,
    node_finding,
)
from rnscan.scanner.syntax.nodes import (
    ArrayExpression,
    CallExpression,
    Identifier,
    JsxElement,
    ObjectExpression,
    Property,
    StringLiteral,
    callee_names,
    is_jsx_literal_true,
    jsx_attribute_expression,
)

_HTTPS_SUGGESTION = "Use HTTPS instead of HTTP for all network requests"
_WEAK_TLS_MARKERS = ("TLSv1.0", "TLSv1.1", "TLSv1_0", "TLSv1_1")
_WEAK_CIPHERS = ("RC4", "DES", "MD5", "NULL", "EXPORT", "anon")


def _has_key(options: ObjectExpression, *names: str) -> bool:
    return any(options.get(name) is not None for name in names)


def _insecure_http_url(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    for node in ctx.tree.nodes(CallExpression, Property):
        if isinstance(node, Property):
            if (
                isinstance(node.key, Identifier)
                and node.key.name == "baseURL"
                and isinstance(node.value, StringLiteral)
                and node.value.value.startswith("http://")
            ):
                findings.append(
                    node_finding(
                        ctx,
                        "INSECURE_HTTP_URL",
                        Severity.MEDIUM,
                        f'Insecure HTTP baseURL detected: "{node.value.value}"',
                        _HTTPS_SUGGESTION,
                        node,
                    )
                )
            continue

        obj, name = callee_names(node)
        if obj is None and name == "fetch":
            client = "fetch"
        elif obj == "axios":
            client = "axios"
        else:
            continue
        url = node.arguments[0] if node.arguments else None
        if isinstance(url, StringLiteral) and url.value.startswith("http://"):
            findings.append(
                node_finding(
                    ctx,
                    "INSECURE_HTTP_URL",
                    Severity.MEDIUM,
                    f'Insecure HTTP URL detected in {client}: "{url.value}"',
                    _HTTPS_SUGGESTION,
                    node,
                )
            )
    return findings


def _insecure_webview(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for element in ctx.tree.nodes(JsxElement):
        if element.name != "WebView":
            continue
        javascript = is_jsx_literal_true(element.attribute("javaScriptEnabled"))
        origins = jsx_attribute_expression(element.attribute("originWhitelist"))
        wildcard = isinstance(origins, ArrayExpression) and any(
            isinstance(el, StringLiteral) and el.value == "*" for el in origins.elements
        )
        if javascript and wildcard:
            findings.append(
                node_finding(
                    ctx,
                    "INSECURE_WEBVIEW",
                    Severity.HIGH,
                    "WebView with javaScriptEnabled and wildcard originWhitelist",
                    "Restrict originWhitelist to specific domains and disable "
                    "JavaScript if not needed",
                    element,
                )
            )
    return findings


def _no_request_timeout(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    for call in ctx.tree.nodes(CallExpression):
        obj, name = callee_names(call)
        if obj is None and name == "fetch":
            options = call.arguments[1] if len(call.arguments) > 1 else None
            if not isinstance(options, ObjectExpression):
                findings.append(
                    node_finding(
                        ctx,
                        "NO_REQUEST_TIMEOUT",
                        Severity.MEDIUM,
                        "fetch() without timeout - vulnerable to slowloris DoS",
                        "Add timeout to fetch using AbortSignal with setTimeout, or use "
                        "a library like axios with timeout config.",
                        call,
                    )
                )
            elif not _has_key(options, "signal", "timeout"):
                findings.append(
                    node_finding(
                        ctx,
                        "NO_REQUEST_TIMEOUT",
                        Severity.MEDIUM,
                        "fetch() without timeout configuration",
                        "Add timeout using AbortSignal: const controller = new "
                        "AbortController(); setTimeout(() => controller.abort(), 30000);",
                        call,
                    )
                )
        elif obj == "axios":
            if len(call.arguments) > 1:
                options = call.arguments[1]
            else:
                options = call.arguments[0] if call.arguments else None
            if isinstance(options, ObjectExpression) and not _has_key(options, "timeout"):
                findings.append(
                    node_finding(
                        ctx,
                        "NO_REQUEST_TIMEOUT",
                        Severity.MEDIUM,
                        "axios request without timeout configuration",
                        "Add timeout to axios config: { timeout: 30000 } to prevent "
                        "hanging requests.",
                        call,
                    )
                )
    return findings


def _weak_tls_configuration(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    content = ctx.content
    lines = content.split("\n")

    if any(marker in content for marker in _WEAK_TLS_MARKERS):
        for number, line in enumerate(lines, start=1):
            if any(marker in line for marker in _WEAK_TLS_MARKERS):
                findings.append(
                    line_finding(
                        ctx,
                        "WEAK_TLS_CONFIGURATION",
                        Severity.HIGH,
                        "Weak TLS version (< 1.2) configured - deprecated and insecure",
                        "Use TLS 1.2 or higher. TLS 1.0 and 1.1 are deprecated and have "
                        "known vulnerabilities.",
                        number,
                    )
                )

    if "httpsAgent" in content and (
        "rejectUnauthorized" in content or "secureProtocol" in content
    ):
        for number, line in enumerate(lines, start=1):
            if "rejectUnauthorized" in line and "false" in line:
                findings.append(
                    line_finding(
                        ctx,
                        "WEAK_TLS_CONFIGURATION",
                        Severity.HIGH,
                        "HTTPS agent with rejectUnauthorized: false - disables "
                        "certificate validation",
                        "Never disable certificate validation in production. Remove "
                        "rejectUnauthorized: false.",
                        number,
                    )
                )

    if "cipher" in content.lower():
        for cipher in _WEAK_CIPHERS:
            if cipher in content:
                findings.append(
                    file_finding(
                        ctx,
                        "WEAK_TLS_CONFIGURATION",
                        Severity.MEDIUM,
                        f"Weak cipher suite detected: {cipher}",
                        f"Remove weak cipher {cipher}. Use strong ciphers like AES-GCM, "
                        "ChaCha20-Poly1305.",
                        line=1,
                    )
                )
                break

    return findings


NETWORK_RULES = RuleGroup(
    category=RuleCategory.NETWORK,
    rules=(
        Rule(
            id="INSECURE_HTTP_URL",
            description="Insecure HTTP URLs detected in network requests",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_insecure_http_url,
        ),
        Rule(
            id="INSECURE_WEBVIEW",
            description="WebView with insecure configuration detected",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_insecure_webview,
        ),
        Rule(
            id="NO_REQUEST_TIMEOUT",
            description="Network request without timeout configuration",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_no_request_timeout,
        ),
        Rule(
            id="WEAK_TLS_CONFIGURATION",
            description="Weak TLS configuration detected",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_weak_tls_configuration,
        ),
    ),
)
