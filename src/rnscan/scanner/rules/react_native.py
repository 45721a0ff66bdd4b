"""React Native rules — native bridges, deep links, screens, eval, app hardening."""

from __future__ import annotations

import re

from rnscan.scanner.context import RuleContext
from rnscan.scanner.heuristics import text_window
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import (
    JS_AND_JSON_FILES,
    JS_FILES,
    Rule,
    RuleCategory,
    RuleGroup,
    file_finding,
    node_finding,
)
from rnscan.scanner.syntax.nodes import (
    CallExpression,
    Identifier,
    ImportDeclaration,
    JsxAttribute,
    JsxElement,
    JsxExpression,
    MemberExpression,
    ReturnStatement,
    StringLiteral,
    VariableDeclarator,
    callee_names,
)

_BRIDGE_VALIDATION = re.compile(r"validate|sanitize|check|verify", re.IGNORECASE)
_DEEPLINK_VALIDATION = re.compile(
    r"validate|sanitize|whitelist|allowed|check|verify", re.IGNORECASE
)
_HTML_SANITIZATION = re.compile(r"sanitize|dompurify|xss|escape", re.IGNORECASE)
_INTERCEPTOR = re.compile(r"interceptor|request|response", re.IGNORECASE)
_NETWORK_LOGGING = re.compile(r"console\.log|logger|debug|\.data|\.headers", re.IGNORECASE)
_DEV_GUARD = re.compile(r"__DEV__|process\.env\.NODE_ENV.*development", re.IGNORECASE)
_APP_ENTRY = re.compile(r"App\.(tsx|ts|jsx|js)$")

_NON_SCREEN_PATHS = (
    "node_modules",
    "metro.config",
    "babel.config",
    "jest.config",
    "webpack.config",
    ".config.",
    "/scripts/",
    "/config/",
    "/utils/",
    "/helpers/",
    "/constants/",
    "/lib/",
    "/hooks/",
    "/store/",
    "/redux/",
    "/slices/",
    "/api/",
    "/services/",
    "/types/",
    "/models/",
    "index.",
)
_NON_SCREEN_SUFFIXES = (".test.tsx", ".test.ts", ".spec.tsx", ".spec.ts")
_SCREEN_DIRS = ("/screens/", "/pages/", "/views/")
_SCREEN_FILE = re.compile(r"(screen|page)\.(tsx|jsx)$")

_SENSITIVE_PLACEHOLDERS = (
    "password",
    "pin code",
    "cvv",
    "credit card",
    "card number",
    "ssn",
    "social security",
)
_PAYMENT_COMPONENTS = (
    "CreditCardForm",
    "CardForm",
    "PaymentForm",
    "CardInput",
    "StripeCardField",
    "CardField",
)
_SENSITIVE_STATE = ("password", "pin", "cvv", "cardnumber")
_CAPTURE_PACKAGES = ("screen-capture", "screenshot-prevent", "expo-screen-capture")

_SENSITIVE_APP_MARKERS = (
    "payment",
    "banking",
    "financial",
    "fintech",
    "healthcare",
    "health",
    "medical",
    "crypto",
    "wallet",
    "insurance",
    "credit card",
    "debit",
)
_ROOT_DETECTION = (
    "jailmonkey",
    "jail-monkey",
    "rootdetection",
    "isrooted",
    "isjailbroken",
    "jailbreaktest",
)
_SENSITIVE_OPERATIONS = (
    "payment",
    "transaction",
    "banking",
    "fintech",
    "crypto",
    "authentication",
    "biometric",
    "securestore",
)
_INTEGRITY_MARKERS = (
    "playintegrity",
    "safetynet",
    "appattest",
    "devicecheck",
    "tamperdetection",
    "checksignature",
    "verifysignature",
    "checksum",
)

_UNTRUSTED_SOURCES = ("response", "request", "fetch", "axios", "api", "url", "params", "query")
_SCHEMA_VALIDATION = ("validate", "sanitize", "schema", "zod", "yup", "joi")

_SDK_SENSITIVE_MARKERS = ("payment", "banking", "healthcare", "medical", "financial")
RISKY_SDKS = (
    ("smartlook", "Session replay - records user interactions including sensitive input"),
    ("hotjar", "Session recording and heatmaps - may capture sensitive data"),
    ("fullstory", "Session replay - captures all user interactions"),
    ("logrocket", "Session replay with console logs - may expose sensitive data"),
    ("mouseflow", "Session replay and form analytics"),
    ("crazyegg", "Heatmaps and session recording"),
    ("appsflyer", "Attribution tracking - extensive data collection"),
    ("adjust", "Mobile attribution - tracks user behavior"),
    ("segment", "Analytics aggregator - forwards data to multiple services"),
)


def _is_app_entry(file_path: str) -> bool:
    return bool(_APP_ENTRY.search(file_path)) or "index." in file_path


def _javascript_enabled_bridge(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        callee = call.callee
        if not isinstance(callee, MemberExpression) or not isinstance(
            callee.object, MemberExpression
        ):
            continue
        native = callee.object.object
        if not isinstance(native, Identifier) or native.name != "NativeModules":
            continue
        if not call.arguments:
            continue
        surrounding = text_window(ctx.content, call.start, call.end, 200, 100)
        if _BRIDGE_VALIDATION.search(surrounding):
            continue
        findings.append(
            node_finding(
                ctx,
                "JAVASCRIPT_ENABLED_BRIDGE",
                Severity.HIGH,
                f'Native module "{callee.object.property_name}" called without input '
                "validation",
                "Always validate and sanitize inputs before passing to native modules to "
                "prevent code injection",
                call,
            )
        )
    return findings


def _insecure_deeplink_handler(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        obj, method = callee_names(call)
        if obj != "Linking" or method not in ("addEventListener", "getInitialURL"):
            continue
        if not call.arguments:
            continue
        handler = call.arguments[1] if len(call.arguments) > 1 else call.arguments[0]
        handler_code = text_window(ctx.content, handler.start, handler.end, 0, 200)
        if _DEEPLINK_VALIDATION.search(handler_code):
            continue
        findings.append(
            node_finding(
                ctx,
                "INSECURE_DEEPLINK_HANDLER",
                Severity.HIGH,
                "Deep link handled without URL validation",
                "Validate deep link URLs against a whitelist of allowed schemes and paths "
                "before navigation",
                call,
            )
        )
    return findings


def _is_screen_file(file_path: str) -> bool:
    path = file_path.lower()
    if any(p in path for p in _NON_SCREEN_PATHS) or path.endswith(_NON_SCREEN_SUFFIXES):
        return False
    return any(d in path for d in _SCREEN_DIRS) or bool(_SCREEN_FILE.search(path))


def _sensitive_attribute(attr: JsxAttribute) -> str | None:
    """Label for a TextInput attribute that marks sensitive input."""
    name = attr.name.lower()
    value = attr.value.value.lower() if isinstance(attr.value, StringLiteral) else ""
    sensitive = (
        name == "securetextentry"
        or (name == "placeholder" and any(w in value for w in _SENSITIVE_PLACEHOLDERS))
        or (
            name == "autocomplete"
            and (
                value in ("password", "password-new", "credit-card-number")
                or value.startswith("cc-")
            )
        )
    )
    if not sensitive:
        return None
    return value or "secure input"


def _screenshot_protection_missing(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None or not _is_screen_file(ctx.project_path):
        return findings

    imports_react = any(
        node.source == "react" for node in ctx.tree.nodes(ImportDeclaration)
    )
    returns_jsx = any(
        isinstance(node.argument, JsxElement) for node in ctx.tree.nodes(ReturnStatement)
    )
    if not imports_react or not returns_jsx:
        return findings

    sensitive_type = None
    for node in ctx.tree.nodes(JsxElement, VariableDeclarator):
        if isinstance(node, JsxElement):
            if node.name == "TextInput":
                for attr in node.attributes:
                    label = _sensitive_attribute(attr)
                    if label is not None:
                        sensitive_type = label
            if node.name in _PAYMENT_COMPONENTS:
                sensitive_type = "payment form"
        elif isinstance(node.id, Identifier) and isinstance(node.init, CallExpression):
            var_name = node.id.name.lower()
            if var_name in _SENSITIVE_STATE and callee_names(node.init) == (None, "useState"):
                sensitive_type = f"{var_name} field"
    if sensitive_type is None:
        return findings

    for node in ctx.tree.nodes(ImportDeclaration, CallExpression):
        if isinstance(node, ImportDeclaration):
            source = (node.source or "").lower()
            if any(p in source for p in _CAPTURE_PACKAGES):
                return findings
        elif callee_names(node) == ("ScreenCapture", "preventScreenCaptureAsync"):
            return findings

    findings.append(
        file_finding(
            ctx,
            "SCREENSHOT_PROTECTION_MISSING",
            Severity.MEDIUM,
            f"Sensitive screen with {sensitive_type} without screenshot protection",
            "Use expo-screen-capture or react-native-screenshot-prevent to block "
            "screenshots on sensitive screens",
            line=1,
        )
    )
    return findings


def _unsafe_dangerously_set_inner_html(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for attr in ctx.tree.nodes(JsxAttribute):
        if attr.name != "dangerouslySetInnerHTML" or not isinstance(attr.value, JsxExpression):
            continue
        surrounding = text_window(ctx.content, attr.start, attr.end, 200, 200)
        if _HTML_SANITIZATION.search(surrounding):
            continue
        findings.append(
            node_finding(
                ctx,
                "UNSAFE_DANGEROUSLY_SET_INNER_HTML",
                Severity.HIGH,
                "dangerouslySetInnerHTML without HTML sanitization - XSS risk",
                "Sanitize HTML content with DOMPurify or similar library before rendering "
                "to prevent XSS attacks",
                attr,
            )
        )
    return findings


def _network_logger_in_production(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        if not isinstance(call.callee, MemberExpression) or call.callee.property_name != "use":
            continue
        code = text_window(ctx.content, call.start, call.end, 0, 500)
        if (
            _INTERCEPTOR.search(code)
            and _NETWORK_LOGGING.search(code)
            and not _DEV_GUARD.search(code)
        ):
            findings.append(
                node_finding(
                    ctx,
                    "NETWORK_LOGGER_IN_PRODUCTION",
                    Severity.MEDIUM,
                    "Network interceptor with logging not wrapped in __DEV__ check",
                    "Wrap network logging in __DEV__ check or disable in production to "
                    "prevent sensitive data exposure",
                    call,
                )
            )
    return findings


def _dynamic_code_call(call: CallExpression) -> str | None:
    if isinstance(call.callee, Identifier) and call.callee.name in ("eval", "Function"):
        return call.callee.name
    return None


def _eval_usage(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        name = _dynamic_code_call(call)
        if name is not None:
            findings.append(
                node_finding(
                    ctx,
                    "EVAL_USAGE",
                    Severity.HIGH,
                    f"Dangerous {name}() usage detected - code injection risk",
                    "Avoid eval() and Function() constructor. Use JSON.parse() for JSON "
                    "data or refactor code",
                    call,
                )
            )
    return findings


def _root_jailbreak_detection_absent(ctx: RuleContext) -> list[Finding]:
    if not _is_app_entry(ctx.project_path):
        return []
    content = ctx.content.lower()
    if not any(marker in content for marker in _SENSITIVE_APP_MARKERS):
        return []
    if any(marker in content for marker in _ROOT_DETECTION):
        return []
    return [
        file_finding(
            ctx,
            "ROOT_JAILBREAK_DETECTION_ABSENT",
            Severity.HIGH,
            "Sensitive app (banking/fintech/healthcare) without root/jailbreak detection",
            "Implement root/jailbreak detection using jail-monkey or similar library. Warn "
            "users or restrict functionality on compromised devices.",
            line=1,
        )
    ]


def _missing_runtime_integrity_checks(ctx: RuleContext) -> list[Finding]:
    if not _is_app_entry(ctx.project_path):
        return []
    content = ctx.content.lower()
    if not any(op in content for op in _SENSITIVE_OPERATIONS):
        return []
    has_integrity = any(marker in content for marker in _INTEGRITY_MARKERS) or (
        "bundleidentifier" in content and "verify" in content
    )
    if has_integrity:
        return []
    return [
        file_finding(
            ctx,
            "MISSING_RUNTIME_INTEGRITY_CHECKS",
            Severity.MEDIUM,
            "Sensitive app without runtime integrity or tamper detection",
            "Implement runtime integrity checks: Play Integrity API (Android), App Attest "
            "(iOS), or signature verification to detect tampering.",
            line=1,
        )
    ]


def _insecure_deserialization(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        if callee_names(call) == ("JSON", "parse"):
            surrounding = text_window(ctx.content, call.start, call.end, 300, 100).lower()
            untrusted = any(word in surrounding for word in _UNTRUSTED_SOURCES)
            validated = any(word in surrounding for word in _SCHEMA_VALIDATION)
            if untrusted and not validated:
                findings.append(
                    node_finding(
                        ctx,
                        "INSECURE_DESERIALIZATION",
                        Severity.MEDIUM,
                        "JSON.parse() on potentially untrusted data without validation",
                        "Validate JSON structure and data types before parsing untrusted "
                        "input. Use schema validation libraries like Zod or Yup.",
                        call,
                    )
                )

        name = _dynamic_code_call(call)
        if name is not None:
            findings.append(
                node_finding(
                    ctx,
                    "INSECURE_DESERIALIZATION",
                    Severity.HIGH,
                    f"{name}() enables arbitrary code execution from data",
                    "Never use eval() or Function() constructor with untrusted data. Use "
                    "safe alternatives like JSON.parse().",
                    call,
                )
            )
    return findings


def _third_party_sdk_risk(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    content = ctx.content.lower()
    sensitive = any(marker in content for marker in _SDK_SENSITIVE_MARKERS)
    if not sensitive and "package.json" not in ctx.file_path:
        return findings
    for name, risk in RISKY_SDKS:
        if name in content:
            findings.append(
                file_finding(
                    ctx,
                    "THIRD_PARTY_SDK_RISK",
                    Severity.LOW,
                    f"Risky SDK detected in sensitive app: {name} - {risk}",
                    f"Review {name} usage in sensitive app. Ensure it doesn't "
                    "capture/transmit sensitive user data. Consider alternatives or strict "
                    "configuration.",
                    line=1,
                )
            )
    return findings


REACT_NATIVE_RULES = RuleGroup(
    category=RuleCategory.REACT_NATIVE,
    rules=(
        Rule(
            id="JAVASCRIPT_ENABLED_BRIDGE",
            description="Native module exposed to JavaScript without proper input validation",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_javascript_enabled_bridge,
        ),
        Rule(
            id="INSECURE_DEEPLINK_HANDLER",
            description="Deep link or URL scheme handled without validation",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_insecure_deeplink_handler,
        ),
        Rule(
            id="SCREENSHOT_PROTECTION_MISSING",
            description="Sensitive screen without screenshot/screen recording protection",
            severity=Severity.LOW,
            file_types=JS_FILES,
            check=_screenshot_protection_missing,
        ),
        Rule(
            id="UNSAFE_DANGEROUSLY_SET_INNER_HTML",
            description="dangerouslySetInnerHTML used with potentially unsafe content",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_unsafe_dangerously_set_inner_html,
        ),
        Rule(
            id="NETWORK_LOGGER_IN_PRODUCTION",
            description="Network request/response logging enabled - may expose sensitive data",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_network_logger_in_production,
        ),
        Rule(
            id="EVAL_USAGE",
            description="eval() used - code injection risk",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_eval_usage,
        ),
        Rule(
            id="ROOT_JAILBREAK_DETECTION_ABSENT",
            description="Sensitive app without root/jailbreak detection",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_root_jailbreak_detection_absent,
        ),
        Rule(
            id="MISSING_RUNTIME_INTEGRITY_CHECKS",
            description="No runtime integrity or tamper detection implemented",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_missing_runtime_integrity_checks,
        ),
        Rule(
            id="INSECURE_DESERIALIZATION",
            description="Unsafe deserialization of untrusted data",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_insecure_deserialization,
        ),
        Rule(
            id="THIRD_PARTY_SDK_RISK",
            description="Potentially risky third-party SDK detected",
            severity=Severity.LOW,
            file_types=JS_AND_JSON_FILES,
            check=_third_party_sdk_risk,
        ),
    ),
)
