"""Android rules — AndroidManifest.xml hardening and Keystore usage."""

from __future__ import annotations

import re

from rnscan.scanner.context import RuleContext
from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.rules.base import (
    JS_FILES,
    Rule,
    RuleCategory,
    RuleGroup,
    file_finding,
    line_finding,
)

_BACKUP_SENSITIVE = (
    "permission.CAMERA",
    "permission.ACCESS_FINE_LOCATION",
    "permission.READ_CONTACTS",
    "permission.RECORD_AUDIO",
    "SecureStore",
    "biometric",
)

_COMPONENT_TYPES = ("activity", "service", "receiver", "provider")
_EXPORTED_COMPONENTS = {
    kind: re.compile(
        rf'<{kind}[^>]*android:exported="true"[^>]*>([\s\S]*?)</{kind}>', re.IGNORECASE
    )
    for kind in _COMPONENT_TYPES
}

# (action, required category or None, risk)
PERMISSIVE_INTENTS = (
    ("android.intent.action.VIEW", "android.intent.category.DEFAULT", "Can be invoked by any app"),
    ("android.intent.action.SEND", "android.intent.category.DEFAULT", "Can receive data from any app"),
    ("android.intent.action.SENDTO", None, "Can be invoked with arbitrary data"),
)
_INTENT_FILTER = re.compile(r"<intent-filter[\s\S]*?</intent-filter>", re.IGNORECASE)
_RECEIVER = re.compile(r"<receiver[^>]*>[\s\S]*?</receiver>", re.IGNORECASE)
_PROVIDER = re.compile(r"<provider[^>]*/?>|<provider[^>]*>[\s\S]*?</provider>", re.IGNORECASE)
_USES_PERMISSION = re.compile(r'<uses-permission\s+android:name="([^"]+)"\s*/>', re.IGNORECASE)

_COMMONLY_EXCESSIVE = (
    "CAMERA",
    "LOCATION",
    "CONTACTS",
    "MICROPHONE",
    "STORAGE",
    "READ_PHONE_STATE",
    "CALL_PHONE",
    "SMS",
    "BLUETOOTH",
)

_KEYSTORE_APIS = ("KeyGenParameterSpec", "KeyPairGenerator", "KeyGenerator")
_KEY_PURPOSES = ("PURPOSE_ENCRYPT", "PURPOSE_DECRYPT", "PURPOSE_SIGN")
_USER_AUTH = ("setUserAuthenticationRequired", "setUserAuthenticationParameters")


def _manifest(ctx: RuleContext) -> str | None:
    if ctx.xml is None or "AndroidManifest" not in ctx.file_path:
        return None
    return ctx.xml


def _android_debuggable_enabled(ctx: RuleContext) -> list[Finding]:
    xml = _manifest(ctx)
    if xml is None or 'android:debuggable="true"' not in xml:
        return []
    return [
        file_finding(
            ctx,
            "ANDROID_DEBUGGABLE_ENABLED",
            Severity.HIGH,
            "Application is debuggable - allows memory dumps and code inspection",
            "Remove android:debuggable=\"true\" or ensure it's only set in debug builds. "
            "Debuggable apps expose sensitive data.",
        )
    ]


def _android_backup_allowed(ctx: RuleContext) -> list[Finding]:
    xml = _manifest(ctx)
    if xml is None or not any(marker in xml for marker in _BACKUP_SENSITIVE):
        return []
    if 'android:allowBackup="true"' in xml:
        return [
            file_finding(
                ctx,
                "ANDROID_BACKUP_ALLOWED",
                Severity.MEDIUM,
                "Backup enabled for app with sensitive data - data can be extracted via ADB",
                'Set android:allowBackup="false" or implement android:fullBackupContent '
                "rules to exclude sensitive data.",
            )
        ]
    if 'android:allowBackup="false"' not in xml:
        return [
            file_finding(
                ctx,
                "ANDROID_BACKUP_ALLOWED",
                Severity.LOW,
                "Backup setting not specified for sensitive app (defaults to true)",
                'Explicitly set android:allowBackup="false" for apps handling sensitive '
                "data.",
            )
        ]
    return []


def _android_exported_component(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    xml = _manifest(ctx)
    if xml is None:
        return findings
    for kind, pattern in _EXPORTED_COMPONENTS.items():
        for match in pattern.finditer(xml):
            if "android:permission=" in match.group(0):
                continue
            findings.append(
                file_finding(
                    ctx,
                    "ANDROID_EXPORTED_COMPONENT",
                    Severity.HIGH,
                    f"Exported {kind} without permission protection - accessible by any app",
                    f"Add android:permission attribute to exported {kind} or set "
                    'android:exported="false" if external access is not needed.',
                )
            )
    return findings


def _android_intent_filter_permissive(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    xml = _manifest(ctx)
    if xml is None:
        return findings
    for action, category, risk in PERMISSIVE_INTENTS:
        if action not in xml:
            continue
        for match in _INTENT_FILTER.finditer(xml):
            block = match.group(0)
            if action in block and (category is None or category in block):
                findings.append(
                    file_finding(
                        ctx,
                        "ANDROID_INTENT_FILTER_PERMISSIVE",
                        Severity.MEDIUM,
                        f"Permissive intent filter with {action}: {risk}",
                        "Validate all incoming intents and restrict with custom "
                        "permissions if external access is not required.",
                    )
                )
    return findings


def _android_unprotected_receiver(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    xml = _manifest(ctx)
    if xml is None:
        return findings
    for match in _RECEIVER.finditer(xml):
        block = match.group(0)
        exported = 'android:exported="true"' in block or "<intent-filter" in block
        if exported and "android:permission=" not in block:
            findings.append(
                file_finding(
                    ctx,
                    "ANDROID_UNPROTECTED_RECEIVER",
                    Severity.HIGH,
                    "Broadcast receiver is exported without permission - can be triggered "
                    "by malicious apps",
                    "Add android:permission to protect receiver or set "
                    'android:exported="false" for internal broadcasts.',
                )
            )
    return findings


def _android_content_provider_no_permission(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    xml = _manifest(ctx)
    if xml is None:
        return findings
    for match in _PROVIDER.finditer(xml):
        block = match.group(0)
        if 'android:exported="true"' not in block:
            continue
        if any(
            attr in block
            for attr in (
                "android:readPermission=",
                "android:writePermission=",
                "android:permission=",
            )
        ):
            continue
        findings.append(
            file_finding(
                ctx,
                "ANDROID_CONTENT_PROVIDER_NO_PERMISSION",
                Severity.HIGH,
                "Exported content provider without permission protection - data accessible "
                "to all apps",
                "Add android:readPermission, android:writePermission, or "
                "android:permission to protect the content provider.",
            )
        )
    return findings


def _insecure_keystore_usage(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    content = ctx.content
    if not content:
        return findings

    if "BLOCK_MODE_ECB" in content:
        for number, line in enumerate(content.split("\n"), start=1):
            if "BLOCK_MODE_ECB" in line:
                findings.append(
                    line_finding(
                        ctx,
                        "INSECURE_KEYSTORE_USAGE",
                        Severity.HIGH,
                        "Android Keystore using ECB block mode - not semantically secure",
                        "Use BLOCK_MODE_GCM or BLOCK_MODE_CBC instead of ECB mode for "
                        "proper encryption security.",
                        number,
                    )
                )

    if not any(api in content for api in _KEYSTORE_APIS):
        return findings
    if not any(purpose in content for purpose in _KEY_PURPOSES):
        return findings

    if not any(call in content for call in _USER_AUTH):
        findings.append(
            file_finding(
                ctx,
                "INSECURE_KEYSTORE_USAGE",
                Severity.HIGH,
                "Android Keystore key generated without user authentication requirement",
                "Add setUserAuthenticationRequired(true) to KeyGenParameterSpec for "
                "sensitive keys to require biometric/device credential authentication.",
                line=1,
            )
        )
    if "setIsStrongBoxBacked" not in content:
        findings.append(
            file_finding(
                ctx,
                "INSECURE_KEYSTORE_USAGE",
                Severity.MEDIUM,
                "Android Keystore not using StrongBox hardware security",
                "Consider using setIsStrongBoxBacked(true) for hardware-backed key "
                "storage on supported devices.",
                line=1,
            )
        )
    return findings


def _excessive_permissions(ctx: RuleContext) -> list[Finding]:
    xml = _manifest(ctx)
    if xml is None:
        return []
    excessive = []
    for match in _USES_PERMISSION.finditer(xml):
        permission = match.group(1)
        short_name = permission.split(".")[-1] or permission
        if any(check in short_name for check in _COMMONLY_EXCESSIVE):
            excessive.append(permission)
    if not excessive:
        return []

    listed = ", ".join(excessive[:3]) + ("..." if len(excessive) > 3 else "")
    return [
        file_finding(
            ctx,
            "EXCESSIVE_PERMISSIONS",
            Severity.LOW,
            f"Potentially excessive permissions declared: {listed}",
            "Review declared permissions and remove those not actively used. Request "
            "permissions at runtime only when needed.",
        )
    ]


ANDROID_RULES = RuleGroup(
    category=RuleCategory.ANDROID,
    rules=(
        Rule(
            id="ANDROID_DEBUGGABLE_ENABLED",
            description='android:debuggable="true" in production manifest',
            severity=Severity.HIGH,
            file_types=(".xml",),
            check=_android_debuggable_enabled,
        ),
        Rule(
            id="ANDROID_BACKUP_ALLOWED",
            description='android:allowBackup="true" for sensitive app',
            severity=Severity.MEDIUM,
            file_types=(".xml",),
            check=_android_backup_allowed,
        ),
        Rule(
            id="ANDROID_EXPORTED_COMPONENT",
            description="Exported Android component without permission protection",
            severity=Severity.HIGH,
            file_types=(".xml",),
            check=_android_exported_component,
        ),
        Rule(
            id="ANDROID_INTENT_FILTER_PERMISSIVE",
            description="Overly permissive intent filter may expose functionality",
            severity=Severity.MEDIUM,
            file_types=(".xml",),
            check=_android_intent_filter_permissive,
        ),
        Rule(
            id="ANDROID_UNPROTECTED_RECEIVER",
            description="Broadcast receiver without permission protection",
            severity=Severity.HIGH,
            file_types=(".xml",),
            check=_android_unprotected_receiver,
        ),
        Rule(
            id="ANDROID_CONTENT_PROVIDER_NO_PERMISSION",
            description="Content provider without read/write permissions",
            severity=Severity.HIGH,
            file_types=(".xml",),
            check=_android_content_provider_no_permission,
        ),
        Rule(
            id="INSECURE_KEYSTORE_USAGE",
            description="Android Keystore used without proper security configuration",
            severity=Severity.HIGH,
            file_types=JS_FILES + (".java", ".kt"),
            check=_insecure_keystore_usage,
        ),
        Rule(
            id="EXCESSIVE_PERMISSIONS",
            description="Android permissions declared but not used in code",
            severity=Severity.LOW,
            file_types=(".xml",),
            check=_excessive_permissions,
        ),
    ),
)
