"""Cryptography rules — weak digests and hardcoded keys."""

from __future__ import annotations

from rnscan.scanner.context import RuleContext
from rnscan.scanner.heuristics import is_likely_identifier, text_window
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import JS_FILES, Rule, RuleCategory, RuleGroup, node_finding
from rnscan.scanner.syntax.nodes import (
    CallExpression,
    Identifier,
    MemberExpression,
    Property,
    StringLiteral,
    VariableDeclarator,
    callee_names,
)

_WEAK_ALGORITHMS = ("MD5", "SHA1", "md5", "sha1")
_WEAK_ALGORITHM_NAMES = ("md5", "sha1", "sha-1")
_HASH_CONTEXT = ("hash", "digest", "crypto", "algorithm")

_KEY_NAMES = (
    "encryptionkey",
    "encryption_key",
    "cryptokey",
    "crypto_key",
    "cipherkey",
    "cipher_key",
)

# Shortest literal treated as real key material.
MIN_KEY_LENGTH = 21


def _weak_hash_algorithm(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    for node in ctx.tree.nodes(CallExpression, StringLiteral):
        if isinstance(node, CallExpression):
            if not isinstance(node.callee, MemberExpression):
                continue
            obj, algorithm = callee_names(node)
            if obj in ("CryptoJS", "crypto") and algorithm in _WEAK_ALGORITHMS:
                findings.append(
                    node_finding(
                        ctx,
                        "WEAK_HASH_ALGORITHM",
                        Severity.HIGH,
                        f"Weak hash algorithm detected: {algorithm}",
                        "Use SHA-256 or stronger algorithms (SHA-384, SHA-512) instead "
                        "of MD5 or SHA-1",
                        node,
                    )
                )
            continue

        if node.value.lower() not in _WEAK_ALGORITHM_NAMES:
            continue
        surrounding = text_window(ctx.content, node.start, node.end, 100, 100).lower()
        if any(word in surrounding for word in _HASH_CONTEXT):
            findings.append(
                node_finding(
                    ctx,
                    "WEAK_HASH_ALGORITHM",
                    Severity.HIGH,
                    f'Weak hash algorithm specified: "{node.value}"',
                    "Use SHA-256 or stronger algorithms instead of MD5 or SHA-1",
                    node,
                )
            )
    return findings


def _is_key_material(value: str) -> bool:
    return len(value) >= MIN_KEY_LENGTH and not is_likely_identifier(value)


def _hardcoded_encryption_key(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.tree is None:
        return findings

    for node in ctx.tree.nodes(VariableDeclarator, Property):
        if isinstance(node, VariableDeclarator):
            if not isinstance(node.id, Identifier) or not isinstance(node.init, StringLiteral):
                continue
            name = node.id.name
            lower = name.lower()
            named_like_key = any(k in lower for k in _KEY_NAMES) or lower.endswith(
                ("iv", "salt")
            )
            if named_like_key and _is_key_material(node.init.value):
                findings.append(
                    node_finding(
                        ctx,
                        "HARDCODED_ENCRYPTION_KEY",
                        Severity.HIGH,
                        f'Hardcoded encryption key or IV in variable "{name}"',
                        "Encryption keys should be generated dynamically or stored in "
                        "secure environment variables, not hardcoded",
                        node,
                    )
                )
        else:
            name = node.key_name
            if name is None or not isinstance(node.value, StringLiteral):
                continue
            lower = name.lower()
            named_like_key = any(k in lower for k in _KEY_NAMES) or lower in ("iv", "salt")
            if named_like_key and _is_key_material(node.value.value):
                findings.append(
                    node_finding(
                        ctx,
                        "HARDCODED_ENCRYPTION_KEY",
                        Severity.HIGH,
                        f'Hardcoded encryption key or IV in property "{name}"',
                        "Encryption keys should be generated dynamically or stored in "
                        "secure environment variables",
                        node,
                    )
                )
    return findings


CRYPTO_RULES = RuleGroup(
    category=RuleCategory.CRYPTO,
    rules=(
        Rule(
            id="WEAK_HASH_ALGORITHM",
            description="Weak or deprecated cryptographic hash algorithm detected (MD5, SHA1)",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_weak_hash_algorithm,
        ),
        Rule(
            id="HARDCODED_ENCRYPTION_KEY",
            description="Hardcoded encryption key or initialization vector (IV) detected",
            severity=Severity.HIGH,
            file_types=JS_FILES,
            check=_hardcoded_encryption_key,
        ),
    ),
)
