"""Authentication rules — randomness, token handling, secure inputs, TLS validation."""

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
    file_finding,
    node_finding,
)
from rnscan.scanner.syntax.nodes import (
    BooleanLiteral,
    CallExpression,
    JsxElement,
    Property,
    StringLiteral,
    TemplateLiteral,
    callee_names,
)

_RANDOM_SKIP_PATHS = (
    "node_modules",
    "/vendor/",
    "/assets/",
    "/modules/",
    "chart",
    "graph",
    "visualization",
    "/lib/",
    ".min.",
)
_RANDOM_SKIP_SUFFIXES = (".test.ts", ".test.tsx", ".test.js", ".test.jsx")

# Nearby words that mean the random value is cosmetic.
_RANDOM_BENIGN_CONTEXT = (
    "chart",
    "graph",
    "animation",
    "color",
    "rgb",
    "position",
    "coordinate",
    "marker",
    "cluster",
    "plot",
    "axis",
    "shuffle",
    "demo",
    "example",
    "test",
    "mock",
    "randomcolor",
    "randomposition",
    "delay",
)

# Nearby words that mean the random value guards something.
_RANDOM_SECURITY_CONTEXT = tuple(
    re.compile(p)
    for p in (
        r"generate.*token",
        r"create.*token",
        r"token.*generat",
        r"session.*id",
        r"access.*token",
        r"refresh.*token",
        r"api.*key",
        r"secret.*key",
        r"encryption.*key",
        r"auth.*token",
        r"csrf.*token",
        r"\bnonce\b",
        r"\bsalt\b",
        r"\botp\b",
        r"verification.*code",
        r"reset.*code",
        r"\bpin\b.*generat",
        r"generat.*\bpin\b",
        r"random.*password",
        r"password.*random",
        r"\buuid\b",
        r"unique.*identifier",
        r"security.*code",
    )
)

_TOKEN_IN_QUERY = re.compile(r"[?&](token|access_token|auth_token|api_key)=", re.IGNORECASE)

_INPUT_SENSITIVE_WORDS = ("password", "pin", "ssn", "cvv", "credit card", "security code")

_CERT_VALIDATION_KEYS = ("rejectUnauthorized", "validateCertificate", "trustAllCerts")

_BIOMETRIC_MARKERS = ("biometric", "touchid", "faceid", "fingerprint", "authenticateasync")
_INSECURE_FALLBACKS = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"pin\s*=\s*['\"`]",
        r"password\s*=\s*['\"`]",
        r"\bpin\b.*asyncstorage",
        r"\bpassword\b.*asyncstorage",
        r"fallback.*=.*true",
    )
)


def _insecure_random(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    lower_path = ctx.project_path.lower()
    if any(p in lower_path for p in _RANDOM_SKIP_PATHS) or lower_path.endswith(
        _RANDOM_SKIP_SUFFIXES
    ):
        return findings

    for call in ctx.tree.nodes(CallExpression):
        if callee_names(call) != ("Math", "random"):
            continue
        surrounding = text_window(ctx.content, call.start, call.end, 200, 200).lower()
        if any(word in surrounding for word in _RANDOM_BENIGN_CONTEXT):
            continue
        if any(p.search(surrounding) for p in _RANDOM_SECURITY_CONTEXT):
            findings.append(
                node_finding(
                    ctx,
                    "INSECURE_RANDOM",
                    Severity.HIGH,
                    "Math.random() used for security-sensitive random value generation",
                    "Use expo-random or crypto.getRandomValues() for cryptographically "
                    "secure random values. Math.random() is not cryptographically secure.",
                    call,
                )
            )
    return findings


def _jwt_no_expiry_check(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    decodes_jwt = "jwt" in ctx.content.lower() and "decode" in ctx.content
    if decodes_jwt:
        return findings

    for call in ctx.tree.nodes(CallExpression):
        obj, method = callee_names(call)
        if obj not in ("AsyncStorage", "SecureStore") or method not in (
            "getItem",
            "getItemAsync",
        ):
            continue
        key = call.arguments[0] if call.arguments else None
        if not isinstance(key, StringLiteral):
            continue
        lower = key.value.lower()
        if "jwt" in lower or "token" in lower:
            findings.append(
                node_finding(
                    ctx,
                    "JWT_NO_EXPIRY_CHECK",
                    Severity.MEDIUM,
                    "JWT token retrieved from storage without expiration validation: "
                    f'"{key.value}"',
                    "Install and use jwt-decode to validate token expiration before use. "
                    'Check the "exp" claim and refresh token if expired.',
                    call,
                )
            )
    return findings


def _sensitive_input_kind(element: JsxElement) -> str | None:
    kind = None
    for attr in element.attributes:
        if not isinstance(attr.value, StringLiteral):
            continue
        value = attr.value.value
        if attr.name in ("placeholder", "label"):
            lower = value.lower()
            for word in _INPUT_SENSITIVE_WORDS:
                if word in lower:
                    kind = word
                    break
        elif attr.name == "textContentType" and value in ("password", "newPassword"):
            kind = "password"
        elif attr.name == "autoCompleteType" and value in ("password", "password-new"):
            kind = "password"
    return kind


def _text_input_no_secure(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for element in ctx.tree.nodes(JsxElement):
        if element.name != "TextInput":
            continue
        kind = _sensitive_input_kind(element)
        if kind is not None and element.attribute("secureTextEntry") is None:
            findings.append(
                node_finding(
                    ctx,
                    "TEXT_INPUT_NO_SECURE",
                    Severity.MEDIUM,
                    f"TextInput for {kind} without secureTextEntry property",
                    "Add secureTextEntry={true} to hide sensitive input and prevent "
                    "screen recording/screenshots of this field",
                    element,
                )
            )
    return findings


def _oauth_token_in_url(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for node in ctx.tree.nodes(StringLiteral, TemplateLiteral):
        text = node.value if isinstance(node, StringLiteral) else node.text
        if "://" not in text and "http" not in text:
            continue
        if not _TOKEN_IN_QUERY.search(text):
            continue
        if isinstance(node, StringLiteral):
            description = "Authentication token passed as URL query parameter - visible in logs"
            suggestion = (
                "Use Authorization header instead of URL parameters for tokens to "
                "prevent exposure in logs"
            )
        else:
            description = "Authentication token passed as URL query parameter in template"
            suggestion = "Use Authorization header instead of URL parameters for tokens"
        findings.append(
            node_finding(
                ctx, "OAUTH_TOKEN_IN_URL", Severity.HIGH, description, suggestion, node
            )
        )
    return findings


def _cert_pinning_disabled(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for prop in ctx.tree.nodes(Property):
        name = prop.key_name
        if (
            name in _CERT_VALIDATION_KEYS
            and isinstance(prop.value, BooleanLiteral)
            and not prop.value.value
        ):
            findings.append(
                node_finding(
                    ctx,
                    "CERT_PINNING_DISABLED",
                    Severity.MEDIUM,
                    f"SSL certificate validation disabled: {name}=false",
                    "Enable certificate validation and implement certificate pinning for "
                    "production environments",
                    prop,
                )
            )
    return findings


def _improper_biometric_fallback(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    content = ctx.content.lower()
    if not any(marker in content for marker in _BIOMETRIC_MARKERS):
        return findings

    if any(p.search(content) for p in _INSECURE_FALLBACKS):
        findings.append(
            file_finding(
                ctx,
                "IMPROPER_BIOMETRIC_FALLBACK",
                Severity.MEDIUM,
                "Biometric authentication falls back to insecurely stored credentials",
                "Use proper fallback: require device passcode/pattern, or store fallback "
                "credentials in secure keychain/keystore, never in plaintext or "
                "AsyncStorage.",
                line=1,
            )
        )

    has_fallback = (
        "fallback" in content
        or "passcode" in content
        or ("device" in content and "credential" in content)
        or "keychain" in content
        or "securestore" in content
    )
    if not has_fallback and "auth" in content:
        findings.append(
            file_finding(
                ctx,
                "IMPROPER_BIOMETRIC_FALLBACK",
                Severity.LOW,
                "Biometric authentication without proper fallback mechanism",
                "Implement secure fallback when biometrics fail: device passcode, secure "
                "keychain, or re-authentication.",
                line=1,
            )
        )
    return findings


AUTHENTICATION_RULES = RuleGroup(
    category=RuleCategory.AUTHENTICATION,
    rules=(
        Rule(
            id="INSECURE_RANDOM",
            description="Math.random() used in security-sensitive context (token/key generation)",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_insecure_random,
        ),
        Rule(
            id="JWT_NO_EXPIRY_CHECK",
            description="JWT token retrieved from storage without expiration validation",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_jwt_no_expiry_check,
        ),
        Rule(
            id="TEXT_INPUT_NO_SECURE",
            description="Password or sensitive input field without secureTextEntry property",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_text_input_no_secure,
        ),
        Rule(
            id="OAUTH_TOKEN_IN_URL",
            description="OAuth/access token passed in URL query parameters",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_oauth_token_in_url,
        ),
        Rule(
            id="CERT_PINNING_DISABLED",
            description="SSL certificate pinning disabled or bypassed",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_cert_pinning_disabled,
        ),
        Rule(
            id="IMPROPER_BIOMETRIC_FALLBACK",
            description="Biometric authentication with insecure fallback mechanism",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_improper_biometric_fallback,
        ),
    ),
)
