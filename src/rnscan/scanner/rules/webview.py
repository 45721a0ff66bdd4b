"""WebView rules — every check inspects the props of a ``<WebView>`` element."""

from __future__ import annotations

import re
from collections.abc import Iterator

from rnscan.scanner.context import RuleContext
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import JS_FILES, Rule, RuleCategory, RuleGroup, node_finding
from rnscan.scanner.syntax.nodes import (
    BinaryExpression,
    CallExpression,
    FunctionExpression,
    Identifier,
    JsxElement,
    JsxExpression,
    MemberExpression,
    StringLiteral,
    TemplateLiteral,
    is_jsx_literal_true,
    jsx_attribute_expression,
)

_DYNAMIC_SOURCES = (Identifier, MemberExpression, CallExpression, TemplateLiteral, BinaryExpression)
_FILE_ACCESS_PROPS = (
    "allowFileAccess",
    "allowFileAccessFromFileURLs",
    "allowUniversalAccessFromFileURLs",
)
_NAVIGATION_HANDLERS = ("onShouldStartLoadWithRequest", "onNavigationStateChange")
_ORIGIN_CHECK = re.compile(r"origin|nativeEvent\.url|event\.url|source.*url", re.IGNORECASE)
_AUTH_SOURCE = re.compile(r"header|authorization|token|bearer", re.IGNORECASE)
_HEADERS_KEY = re.compile(r"headers\s*:", re.IGNORECASE)
_HTML_KEY = re.compile(r"html\s*:", re.IGNORECASE)
_CSP = re.compile(r"content-security-policy", re.IGNORECASE)
_SCRIPT = re.compile(r"script", re.IGNORECASE)


def _webviews(ctx: RuleContext) -> Iterator[JsxElement]:
    if ctx.tree is None:
        return
    for element in ctx.tree.nodes(JsxElement):
        if element.name == "WebView":
            yield element


def _prop_source(ctx: RuleContext, element: JsxElement, name: str) -> str:
    attr = element.attribute(name)
    if attr is None or attr.value is None:
        return ""
    return ctx.source(attr.value)


def _webview_javascript_injection(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        source = webview.attribute("source")
        dynamic = (
            source is not None
            and isinstance(source.value, JsxExpression)
            and isinstance(source.value.expression, _DYNAMIC_SOURCES)
        )
        if dynamic and is_jsx_literal_true(webview.attribute("javaScriptEnabled")):
            findings.append(
                node_finding(
                    ctx,
                    "WEBVIEW_JAVASCRIPT_INJECTION",
                    Severity.HIGH,
                    "WebView with JavaScript enabled loading dynamic content - potential "
                    "XSS vulnerability",
                    "Validate and sanitize URLs before loading, use originWhitelist to "
                    "restrict allowed domains, or disable JavaScript if not needed",
                    webview,
                )
            )
    return findings


def _webview_file_access(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        for attr in webview.attributes:
            if attr.name in _FILE_ACCESS_PROPS and is_jsx_literal_true(attr):
                findings.append(
                    node_finding(
                        ctx,
                        "WEBVIEW_FILE_ACCESS",
                        Severity.HIGH,
                        f"WebView with {attr.name}={{true}} - exposes local file system",
                        "Disable file access unless absolutely necessary. If required, "
                        "implement strict validation and access controls",
                        webview,
                    )
                )
    return findings


def _webview_dom_storage_enabled(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        if is_jsx_literal_true(webview.attribute("domStorageEnabled")) and is_jsx_literal_true(
            webview.attribute("javaScriptEnabled")
        ):
            findings.append(
                node_finding(
                    ctx,
                    "WEBVIEW_DOM_STORAGE_ENABLED",
                    Severity.MEDIUM,
                    "WebView with DOM storage and JavaScript enabled - sensitive data may "
                    "be exposed to XSS",
                    "Avoid storing sensitive data in localStorage/sessionStorage, use secure "
                    "native storage instead",
                    webview,
                )
            )
    return findings


def _webview_geolocation_enabled(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        if is_jsx_literal_true(webview.attribute("geolocationEnabled")):
            findings.append(
                node_finding(
                    ctx,
                    "WEBVIEW_GEOLOCATION_ENABLED",
                    Severity.MEDIUM,
                    "WebView with geolocation enabled - ensure proper permission handling",
                    "Implement onGeolocationPermissionsShowPrompt to properly handle "
                    "location permissions and user consent",
                    webview,
                )
            )
    return findings


def _webview_mixed_content(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        attr = webview.attribute("mixedContentMode")
        if attr is not None and isinstance(attr.value, StringLiteral) and attr.value.value == "always":
            findings.append(
                node_finding(
                    ctx,
                    "WEBVIEW_MIXED_CONTENT",
                    Severity.MEDIUM,
                    "WebView allows mixed content (HTTP resources on HTTPS pages)",
                    'Set mixedContentMode to "never" to prevent loading insecure content '
                    "on HTTPS pages",
                    webview,
                )
            )
    return findings


def _webview_unvalidated_navigation(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        if not is_jsx_literal_true(webview.attribute("javaScriptEnabled")):
            continue
        if any(webview.attribute(name) is not None for name in _NAVIGATION_HANDLERS):
            continue
        findings.append(
            node_finding(
                ctx,
                "WEBVIEW_UNVALIDATED_NAVIGATION",
                Severity.HIGH,
                "WebView without URL validation - vulnerable to open redirect and phishing",
                "Implement onShouldStartLoadWithRequest to validate URLs before navigation "
                "and restrict to trusted domains",
                webview,
            )
        )
    return findings


def _webview_postmessage_no_origin_check(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        attr = webview.attribute("onMessage")
        if attr is None or not isinstance(attr.value, JsxExpression):
            continue
        handler = jsx_attribute_expression(attr)
        if handler is None:
            continue
        checked = isinstance(handler, FunctionExpression) and bool(
            _ORIGIN_CHECK.search(ctx.source(handler))
        )
        if not checked:
            findings.append(
                node_finding(
                    ctx,
                    "WEBVIEW_POSTMESSAGE_NO_ORIGIN_CHECK",
                    Severity.HIGH,
                    "WebView onMessage handler does not validate message origin",
                    "Always validate event.nativeEvent.url or message origin before "
                    "processing postMessage data",
                    webview,
                )
            )
    return findings


def _webview_caching_enabled(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        if not is_jsx_literal_true(webview.attribute("cacheEnabled")):
            continue
        if _AUTH_SOURCE.search(_prop_source(ctx, webview, "source")):
            findings.append(
                node_finding(
                    ctx,
                    "WEBVIEW_CACHING_ENABLED",
                    Severity.LOW,
                    "WebView with caching enabled while loading authenticated content",
                    "Disable caching for pages with sensitive content or authentication "
                    "tokens",
                    webview,
                )
            )
    return findings


def _missing_security_headers(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    for webview in _webviews(ctx):
        injects_script = webview.attribute("injectedJavaScript") is not None
        source = _prop_source(ctx, webview, "source")
        sets_headers = bool(_HEADERS_KEY.search(source))
        inline_html = bool(_HTML_KEY.search(source))

        if inline_html and not _CSP.search(source) and (injects_script or _SCRIPT.search(source)):
            findings.append(
                node_finding(
                    ctx,
                    "MISSING_SECURITY_HEADERS",
                    Severity.LOW,
                    "WebView loading HTML without Content-Security-Policy header",
                    "Add Content-Security-Policy meta tag to HTML: <meta "
                    "http-equiv=\"Content-Security-Policy\" content=\"default-src 'self'\" />",
                    webview,
                )
            )
        if not sets_headers and not inline_html:
            findings.append(
                node_finding(
                    ctx,
                    "MISSING_SECURITY_HEADERS",
                    Severity.LOW,
                    "WebView loading external content without security headers",
                    "Add security headers to WebView source: X-Frame-Options, "
                    "Content-Security-Policy. Validate origin of loaded content.",
                    webview,
                )
            )
    return findings


WEBVIEW_RULES = RuleGroup(
    category=RuleCategory.WEBVIEW,
    rules=(
        Rule(
            id="WEBVIEW_JAVASCRIPT_INJECTION",
            description="WebView with JavaScript enabled loading dynamic or user-controlled content",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_webview_javascript_injection,
        ),
        Rule(
            id="WEBVIEW_FILE_ACCESS",
            description="WebView with file access enabled - allows access to local files",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_webview_file_access,
        ),
        Rule(
            id="WEBVIEW_DOM_STORAGE_ENABLED",
            description="WebView with DOM storage enabled - may expose sensitive data",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_webview_dom_storage_enabled,
        ),
        Rule(
            id="WEBVIEW_GEOLOCATION_ENABLED",
            description="WebView with geolocation enabled - requires proper permission handling",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_webview_geolocation_enabled,
        ),
        Rule(
            id="WEBVIEW_MIXED_CONTENT",
            description="WebView allows mixed content - HTTPS pages can load HTTP resources",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_webview_mixed_content,
        ),
        Rule(
            id="WEBVIEW_UNVALIDATED_NAVIGATION",
            description="WebView without URL validation on navigation - potential open redirect",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_webview_unvalidated_navigation,
        ),
        Rule(
            id="WEBVIEW_POSTMESSAGE_NO_ORIGIN_CHECK",
            description="WebView onMessage handler without origin validation",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_webview_postmessage_no_origin_check,
        ),
        Rule(
            id="WEBVIEW_CACHING_ENABLED",
            description="WebView with caching enabled - may cache sensitive content",
            severity=Severity.LOW,
            file_types=JS_FILES,
            check=_webview_caching_enabled,
        ),
        Rule(
            id="MISSING_SECURITY_HEADERS",
            description="WebView missing important security headers (CSP, X-Frame-Options)",
            severity=Severity.LOW,
            file_types=JS_FILES,
            check=_missing_security_headers,
        ),
    ),
)
