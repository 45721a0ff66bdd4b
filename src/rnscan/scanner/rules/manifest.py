"""Platform manifest rules — Android cleartext traffic and iOS ATS."""

from __future__ import annotations

import re

from rnscan.scanner.context import RuleContext
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import Rule, RuleCategory, RuleGroup, file_finding

_ATS_ARBITRARY_LOADS = re.compile(
    r"<key>NSAppTransportSecurity</key>\s*<dict>[\s\S]*?"
    r"<key>NSAllowsArbitraryLoads</key>\s*<true/>"
)


def _android_cleartext_enabled(ctx: RuleContext) -> list[Finding]:
    if ctx.xml is None or "AndroidManifest" not in ctx.file_path:
        return []
    if 'android:usesCleartextTraffic="true"' not in ctx.xml:
        return []
    return [
        file_finding(
            ctx,
            "ANDROID_CLEARTEXT_ENABLED",
            Severity.HIGH,
            "android:usesCleartextTraffic is set to true",
            "Disable cleartext traffic or use network security config to restrict it "
            "to specific domains",
        )
    ]


def _ios_ats_disabled(ctx: RuleContext) -> list[Finding]:
    if ctx.plist is None or "Info.plist" not in ctx.file_path:
        return []
    if not _ATS_ARBITRARY_LOADS.search(ctx.plist):
        return []
    return [
        file_finding(
            ctx,
            "IOS_ATS_DISABLED",
            Severity.HIGH,
            "NSAllowsArbitraryLoads is enabled, disabling ATS",
            "Enable ATS and use exception domains only for specific servers that "
            "require it",
        )
    ]


MANIFEST_RULES = RuleGroup(
    category=RuleCategory.MANIFEST,
    rules=(
        Rule(
            id="ANDROID_CLEARTEXT_ENABLED",
            description="Android cleartext traffic is enabled",
            severity=Severity.HIGH,
            file_types=(".xml",),
            check=_android_cleartext_enabled,
        ),
        Rule(
            id="IOS_ATS_DISABLED",
            description="iOS App Transport Security (ATS) is disabled",
            severity=Severity.HIGH,
            file_types=(".plist",),
            check=_ios_ats_disabled,
        ),
    ),
)
