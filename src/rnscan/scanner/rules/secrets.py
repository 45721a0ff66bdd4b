"""Secret rules — vendor API key signatures and committed environment files."""

from __future__ import annotations

import re

from rnscan.scanner.context import RuleContext
from rnscan.scanner.heuristics import text_window
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.patterns import API_SECRET_PATTERNS
from rnscan.scanner.rules.base import Rule, RuleCategory, RuleGroup, file_finding, offset_finding

_SKIP_PATHS = ("node_modules", ".test.", ".spec.", "mock")
_PLACEHOLDER_CONTEXT = ("example", "sample", "dummy", "placeholder", "your_", "xxx", "...")

_ENV_SENSITIVE = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"[A-Z_]+KEY",
        r"[A-Z_]+SECRET",
        r"[A-Z_]+TOKEN",
        r"[A-Z_]+PASSWORD",
        r"DATABASE_URL",
        r"API_URL",
    )
)


def mask_secret(value: str) -> str:
    """Keep a short prefix of a secret so a report never carries the full value."""
    if len(value) > 20:
        return value[:20] + "...[REDACTED]"
    return value[:8] + "...[REDACTED]"


def _is_placeholder(surrounding: str, matched: str) -> bool:
    return (
        any(word in surrounding for word in _PLACEHOLDER_CONTEXT)
        or "example" in matched
        or "your_" in matched
        or "XXXXXXXX" in matched
    )


def _api_key_exposed(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    lower_path = ctx.project_path.lower()
    if any(p in lower_path for p in _SKIP_PATHS):
        return findings

    for pattern in API_SECRET_PATTERNS:
        for match in pattern.regex.finditer(ctx.content):
            matched = match.group(0)
            surrounding = text_window(
                ctx.content, match.start(), match.start(), 100, 100
            ).lower()
            if _is_placeholder(surrounding, matched):
                continue
            findings.append(
                offset_finding(
                    ctx,
                    "API_KEY_EXPOSED",
                    pattern.severity,
                    f"{pattern.description}: {mask_secret(matched)}",
                    f"Move {pattern.name} to environment variables or secure config "
                    "management. Never commit secrets to version control.",
                    match.start(),
                )
            )
    return findings


def _env_file_committed(ctx: RuleContext) -> list[Finding]:
    if ".env" not in ctx.file_path:
        return []
    if not any(p.search(ctx.content) for p in _ENV_SENSITIVE):
        return []
    return [
        file_finding(
            ctx,
            "ENV_FILE_COMMITTED",
            Severity.HIGH,
            "Environment file with sensitive data should not be committed to repository",
            "Add .env files to .gitignore. Use .env.example with placeholder values "
            "instead. Load actual secrets from secure environment variable storage.",
            line=1,
        )
    ]


SECRETS_RULES = RuleGroup(
    category=RuleCategory.SECRETS,
    rules=(
        Rule(
            id="API_KEY_EXPOSED",
            description="API keys or secrets exposed in source code",
            severity=Severity.HIGH,
            file_types=(".js", ".jsx", ".ts", ".tsx", ".json", ".env"),
            check=_api_key_exposed,
        ),
        Rule(
            id="ENV_FILE_COMMITTED",
            description="Environment file with secrets potentially committed to repository",
            severity=Severity.HIGH,
            file_types=(".env", ".env.local", ".env.production"),
            check=_env_file_committed,
        ),
    ),
)
