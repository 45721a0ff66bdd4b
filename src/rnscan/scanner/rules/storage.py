"""Storage rules — AsyncStorage, hardcoded secrets, persistence, clipboard, files."""

from __future__ import annotations

from rnscan.scanner.context import RuleContext
from rnscan.scanner.heuristics import (
    contains_sensitive_keyword,
    is_likely_identifier,
    is_likely_sensitive_variable,
    looks_like_secret,
    text_window,
)
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import JS_FILES, Rule, RuleCategory, RuleGroup, node_finding
from rnscan.scanner.syntax.nodes import (
    ArrayExpression,
    CallExpression,
    Identifier,
    ObjectExpression,
    Property,
    StringLiteral,
    VariableDeclarator,
    callee_names,
)

_SECRET_VAR_SKIP = ("test", "mock", "fixture", "example", "dummy", "sample")
_UTILITY_NAMES = (
    "characters",
    "charset",
    "alphabet",
    "letters",
    "digits",
    "allowed",
    "valid",
    "format",
    "pattern",
    "template",
)
_SECRET_PROP_SKIP = _UTILITY_NAMES + ("test", "mock", "example", "sample", "dummy")

_PII_KEYWORDS = (
    "email",
    "phone",
    "phonenumber",
    "ssn",
    "socialsecurity",
    "address",
    "birthdate",
    "dob",
    "creditcard",
    "passport",
)

_CLIPBOARD_SENSITIVE = ("password", "token", "secret", "apikey", "creditcard", "ssn", "auth")

_INSECURE_LOCATIONS = (
    "externaldir",
    "cachedir",
    "downloaddir",
    "picturesdir",
    "documentsdir",
    "/external",
    "/sdcard",
    "/downloads",
)
_FILE_SENSITIVE = ("password", "token", "secret", "apikey", "credential", "auth")
_ENCRYPTION_MARKERS = ("encrypt", "cipher", "crypto", "securestore")


def _async_storage_key(call: CallExpression) -> StringLiteral | None:
    if callee_names(call) != ("AsyncStorage", "setItem") or not call.arguments:
        return None
    key = call.arguments[0]
    return key if isinstance(key, StringLiteral) else None


def _asyncstorage_sensitive_key(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        key = _async_storage_key(call)
        if key is not None and contains_sensitive_keyword(key.value):
            findings.append(
                node_finding(
                    ctx,
                    "ASYNCSTORAGE_SENSITIVE_KEY",
                    Severity.HIGH,
                    f'AsyncStorage storing sensitive key: "{key.value}"',
                    "Use encrypted storage like expo-secure-store or "
                    "react-native-keychain for sensitive data",
                    call,
                )
            )
    return findings


def _is_hardcoded_secret(name: str, value: str) -> bool:
    if len(value) < 16 or is_likely_identifier(value):
        return False
    return is_likely_sensitive_variable(name, value) or looks_like_secret(value)


def _hardcoded_secrets(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    suggestion = "Move secrets to environment variables or secure config management"
    for node in ctx.tree.nodes(VariableDeclarator, Property):
        if isinstance(node, VariableDeclarator):
            if not isinstance(node.id, Identifier) or not isinstance(node.init, StringLiteral):
                continue
            name = node.id.name
            lower = name.lower()
            if any(p in lower for p in _SECRET_VAR_SKIP) or any(
                p in lower for p in _UTILITY_NAMES
            ):
                continue
            if _is_hardcoded_secret(name, node.init.value):
                findings.append(
                    node_finding(
                        ctx,
                        "HARDCODED_SECRETS",
                        Severity.HIGH,
                        f'Potential hardcoded secret in variable "{name}"',
                        suggestion,
                        node,
                    )
                )
        else:
            name = node.key_name
            if name is None or not isinstance(node.value, StringLiteral):
                continue
            if any(p in name.lower() for p in _SECRET_PROP_SKIP):
                continue
            if _is_hardcoded_secret(name, node.value.value):
                findings.append(
                    node_finding(
                        ctx,
                        "HARDCODED_SECRETS",
                        Severity.HIGH,
                        f'Potential hardcoded secret in property "{name}"',
                        suggestion,
                        node,
                    )
                )
    return findings


def _asyncstorage_pii_data(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        key = _async_storage_key(call)
        if key is None:
            continue
        lower = key.value.lower()
        if any(keyword in lower for keyword in _PII_KEYWORDS):
            findings.append(
                node_finding(
                    ctx,
                    "ASYNCSTORAGE_PII_DATA",
                    Severity.HIGH,
                    f'AsyncStorage storing PII data with key: "{key.value}"',
                    "Use encrypted storage (expo-secure-store, react-native-keychain, "
                    "or MMKV with encryption) for PII data",
                    call,
                )
            )
    return findings


def _redux_persist_no_encryption(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        if not isinstance(call.callee, Identifier) or call.callee.name not in (
            "persistStore",
            "persistReducer",
        ):
            continue
        if not call.arguments or not isinstance(call.arguments[0], ObjectExpression):
            continue
        options = call.arguments[0]
        has_transforms = options.get("transforms") is not None
        whitelist = options.get("whitelist")
        sensitive = False
        if whitelist is not None and isinstance(whitelist.value, ArrayExpression):
            for element in whitelist.value.elements:
                if isinstance(element, StringLiteral):
                    reducer = element.value.lower()
                    if "auth" in reducer or "user" in reducer or "payment" in reducer:
                        sensitive = True
        if sensitive and not has_transforms:
            findings.append(
                node_finding(
                    ctx,
                    "REDUX_PERSIST_NO_ENCRYPTION",
                    Severity.MEDIUM,
                    "Redux persist storing sensitive reducers without encryption transforms",
                    "Add encryption transform (redux-persist-sensitive-storage) to "
                    "persistConfig for sensitive data",
                    call,
                )
            )
    return findings


def _clipboard_sensitive_data(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        obj, method = callee_names(call)
        if obj != "Clipboard" or method not in ("setString", "setStringAsync"):
            continue
        surrounding = text_window(ctx.content, call.start, call.end, 200, 100).lower()
        if any(p in surrounding for p in _CLIPBOARD_SENSITIVE):
            findings.append(
                node_finding(
                    ctx,
                    "CLIPBOARD_SENSITIVE_DATA",
                    Severity.MEDIUM,
                    "Sensitive data copied to clipboard - accessible by other apps",
                    "Avoid copying sensitive data to clipboard. If necessary, clear "
                    "clipboard after short timeout and notify user",
                    call,
                )
            )
    return findings


def _insecure_file_storage(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings
    for call in ctx.tree.nodes(CallExpression):
        obj, method = callee_names(call)
        if obj != "FileSystem" or method not in ("writeAsStringAsync", "writeFile"):
            continue
        if not call.arguments:
            continue

        target = ctx.source(call.arguments[0]).lower()
        if any(location in target for location in _INSECURE_LOCATIONS):
            findings.append(
                node_finding(
                    ctx,
                    "INSECURE_FILE_STORAGE",
                    Severity.HIGH,
                    "File written to external/shared storage - accessible by other apps",
                    "Use FileSystem.documentDirectory for app-private files. Encrypt "
                    "sensitive data before writing to any storage.",
                    call,
                )
            )

        surrounding = text_window(ctx.content, call.start, call.end, 300, 100).lower()
        sensitive = any(p in surrounding for p in _FILE_SENSITIVE)
        encrypted = any(m in surrounding for m in _ENCRYPTION_MARKERS)
        if sensitive and not encrypted:
            findings.append(
                node_finding(
                    ctx,
                    "INSECURE_FILE_STORAGE",
                    Severity.HIGH,
                    "Sensitive data written to file without encryption",
                    "Encrypt sensitive data before writing to files. Use "
                    "expo-secure-store for credentials.",
                    call,
                )
            )
    return findings


STORAGE_RULES = RuleGroup(
    category=RuleCategory.STORAGE,
    rules=(
        Rule(
            id="ASYNCSTORAGE_SENSITIVE_KEY",
            description="AsyncStorage used with sensitive key names (token, password, auth, secret)",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_asyncstorage_sensitive_key,
        ),
        Rule(
            id="HARDCODED_SECRETS",
            description="Hardcoded secrets or tokens detected in source code",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_hardcoded_secrets,
        ),
        Rule(
            id="ASYNCSTORAGE_PII_DATA",
            description="AsyncStorage storing PII (email, phone, SSN) without encryption",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_asyncstorage_pii_data,
        ),
        Rule(
            id="REDUX_PERSIST_NO_ENCRYPTION",
            description="Redux persist configuration without encryption transform for sensitive data",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_redux_persist_no_encryption,
        ),
        Rule(
            id="CLIPBOARD_SENSITIVE_DATA",
            description="Sensitive data copied to clipboard (accessible by other apps)",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_clipboard_sensitive_data,
        ),
        Rule(
            id="INSECURE_FILE_STORAGE",
            description="Files written to insecure storage locations",
            severity=Severity.MEDIUM,
            file_types=JS_FILES,
            check=_insecure_file_storage,
        ),
    ),
)
