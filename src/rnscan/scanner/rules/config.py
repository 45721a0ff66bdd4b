"""Expo configuration rules."""

from __future__ import annotations

from rnscan.scanner.context import RuleContext
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import Rule, RuleCategory, RuleGroup, file_finding

DANGEROUS_PERMISSIONS = (
    "android.permission.READ_PHONE_STATE",
    "android.permission.ACCESS_FINE_LOCATION",
    "android.permission.CAMERA",
    "android.permission.RECORD_AUDIO",
)


def _expo_insecure_permissions(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    if ctx.json_data is None or "app.json" not in ctx.file_path:
        return findings

    expo = ctx.json_data.get("expo")
    android = expo.get("android") if isinstance(expo, dict) else None
    permissions = android.get("permissions") if isinstance(android, dict) else None
    if not isinstance(permissions, list):
        return findings

    for permission in permissions:
        if permission in DANGEROUS_PERMISSIONS:
            findings.append(
                file_finding(
                    ctx,
                    "EXPO_INSECURE_PERMISSIONS",
                    Severity.LOW,
                    f"Dangerous permission detected: {permission}",
                    "Only request necessary permissions and explain usage to users",
                )
            )
    return findings


CONFIG_RULES = RuleGroup(
    category=RuleCategory.CONFIG,
    rules=(
        Rule(
            id="EXPO_INSECURE_PERMISSIONS",
            description="Potentially dangerous permissions detected in Expo config",
            severity=Severity.LOW,
            file_types=(".json",),
            check=_expo_insecure_permissions,
        ),
    ),
)
