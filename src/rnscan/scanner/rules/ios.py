"""iOS rules — Info.plist, entitlements and Keychain usage."""

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

# (plist key, feature label)
USAGE_DESCRIPTIONS = (
    ("NSCameraUsageDescription", "Camera"),
    ("NSPhotoLibraryUsageDescription", "Photo Library"),
    ("NSPhotoLibraryAddUsageDescription", "Photo Library (Add)"),
    ("NSMicrophoneUsageDescription", "Microphone"),
    ("NSLocationWhenInUseUsageDescription", "Location (When In Use)"),
    ("NSLocationAlwaysUsageDescription", "Location (Always)"),
    ("NSLocationAlwaysAndWhenInUseUsageDescription", "Location (Always and When In Use)"),
    ("NSContactsUsageDescription", "Contacts"),
    ("NSCalendarsUsageDescription", "Calendars"),
    ("NSRemindersUsageDescription", "Reminders"),
    ("NSMotionUsageDescription", "Motion & Fitness"),
    ("NSHealthShareUsageDescription", "Health (Read)"),
    ("NSHealthUpdateUsageDescription", "Health (Write)"),
    ("NSBluetoothAlwaysUsageDescription", "Bluetooth"),
    ("NSBluetoothPeripheralUsageDescription", "Bluetooth Peripheral"),
    ("NSFaceIDUsageDescription", "Face ID"),
    ("NSSpeechRecognitionUsageDescription", "Speech Recognition"),
    ("NSAppleMusicUsageDescription", "Apple Music"),
)

# Evidence in the plist that a feature is in use, and the keys it requires.
_FEATURE_EVIDENCE = (
    (re.compile(r"<key>UIBackgroundModes</key>", re.IGNORECASE), ("NSLocationAlwaysUsageDescription",)),
    (
        re.compile(r"AVFoundation", re.IGNORECASE),
        ("NSCameraUsageDescription", "NSMicrophoneUsageDescription"),
    ),
    (re.compile(r"CoreLocation", re.IGNORECASE), ("NSLocationWhenInUseUsageDescription",)),
    (re.compile(r"Photos", re.IGNORECASE), ("NSPhotoLibraryUsageDescription",)),
    (re.compile(r"Contacts", re.IGNORECASE), ("NSContactsUsageDescription",)),
)

BACKGROUND_MODES = (
    ("location", "Continuous location tracking drains battery and raises privacy concerns"),
    ("fetch", "Background fetch may expose data during background updates"),
    ("remote-notification", "Remote notifications can trigger background activity"),
    ("voip", "VoIP mode allows persistent connection and background execution"),
    ("audio", "Audio mode keeps app active in background"),
)

_BACKGROUND_MODES = re.compile(
    r"<key>UIBackgroundModes</key>\s*<array>([\s\S]*?)</array>", re.IGNORECASE
)
_APPLINKS = re.compile(r"<string>applinks:(.*?)</string>", re.IGNORECASE)
_URL_TYPES = re.compile(r"<key>CFBundleURLTypes</key>\s*<array>", re.IGNORECASE)
_URL_SCHEMES = re.compile(
    r"<key>CFBundleURLSchemes</key>\s*<array>([\s\S]*?)</array>", re.IGNORECASE
)
_KEYCHAIN_GROUPS = re.compile(
    r"<key>keychain-access-groups</key>\s*<array>([\s\S]*?)</array>", re.IGNORECASE
)
_EXCEPTION_DOMAINS = re.compile(r"<key>NSExceptionDomains</key>\s*<dict>", re.IGNORECASE)
_DICT_ENTRY = re.compile(r"<key>([^<]*)</key>\s*<dict>", re.IGNORECASE)
_CONTAINER_TAGS = {
    name: re.compile(rf"<{name}>|</{name}>|<{name}/>", re.IGNORECASE)
    for name in ("dict", "array")
}

_PROTECTED_FEATURES = (
    "NSCameraUsageDescription",
    "NSLocationAlwaysUsageDescription",
    "NSHealthShareUsageDescription",
    "NSFaceIDUsageDescription",
)

_KEYCHAIN_WRITES = ("SecItemAdd", "SecItemUpdate", "setGenericPassword", "Keychain.set")
_ACCESS_CONTROL = (
    "kSecAttrAccessControl",
    "SecAccessControlCreate",
    "accessControl:",
    "withAccessControl",
)
_BIOMETRIC_PROTECTION = ("biometryAny", "biometryCurrentSet", "userPresence", "devicePasscode")
_KEYCHAIN_SENSITIVE = ("password", "token", "secret", "key", "credential")


def _info_plist(ctx: RuleContext) -> str | None:
    if ctx.plist is None or "Info.plist" not in ctx.file_path:
        return None
    return ctx.plist


def _container_body(text: str, open_end: int, name: str = "dict") -> str:
    """Body of the ``<dict>`` or ``<array>`` whose opening tag ends at ``open_end``."""
    depth = 1
    for tag in _CONTAINER_TAGS[name].finditer(text, open_end):
        token = tag.group(0).lower()
        if token.endswith("/>"):
            continue
        depth += -1 if token.startswith("</") else 1
        if depth == 0:
            return text[open_end : tag.start()]
    return text[open_end:]


def _ios_usage_descriptions_missing(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    plist = _info_plist(ctx)
    if plist is None:
        return findings

    for key, feature in USAGE_DESCRIPTIONS:
        if f"<key>{key}</key>" not in plist:
            needed = any(
                key in keys and pattern.search(plist) for pattern, keys in _FEATURE_EVIDENCE
            )
            if needed:
                findings.append(
                    file_finding(
                        ctx,
                        "IOS_USAGE_DESCRIPTIONS_MISSING",
                        Severity.LOW,
                        f"Missing {feature} usage description - Apple App Store requirement",
                        f"Add {key} to Info.plist with a clear explanation of why {feature} "
                        "access is needed. This is required for App Store submission.",
                    )
                )
            continue

        match = re.search(
            rf"<key>{key}</key>\s*<string>(.*?)</string>", plist, re.IGNORECASE
        )
        if match is None or not match.group(1):
            continue
        text = match.group(1).strip()
        lower = text.lower()
        if len(text) < 10 or "placeholder" in lower or "todo" in lower:
            findings.append(
                file_finding(
                    ctx,
                    "IOS_USAGE_DESCRIPTIONS_MISSING",
                    Severity.LOW,
                    f'{feature} usage description is too generic or placeholder: "{text}"',
                    f"Provide a meaningful explanation for {feature} access that users will "
                    "understand.",
                )
            )
    return findings


def _ios_background_modes_unnecessary(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    plist = _info_plist(ctx)
    if plist is None:
        return findings
    match = _BACKGROUND_MODES.search(plist)
    if match is None:
        return findings
    modes = match.group(1)
    for mode, concern in BACKGROUND_MODES:
        if mode in modes:
            findings.append(
                file_finding(
                    ctx,
                    "IOS_BACKGROUND_MODES_UNNECESSARY",
                    Severity.LOW,
                    f"Background mode '{mode}' enabled: {concern}",
                    f"Ensure '{mode}' background mode is necessary. Remove if not required "
                    "to reduce attack surface and improve privacy.",
                )
            )
    return findings


def _ios_universal_links_misconfigured(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    plist = _info_plist(ctx)
    if plist is None or "com.apple.developer.associated-domains" not in plist:
        return findings

    for match in _APPLINKS.finditer(plist):
        domain = match.group(1)
        if "*" in domain or "?" in domain:
            findings.append(
                file_finding(
                    ctx,
                    "IOS_UNIVERSAL_LINKS_MISCONFIGURED",
                    Severity.MEDIUM,
                    f"Universal link domain uses wildcard: {domain} - too permissive",
                    "Specify exact domains for universal links. Avoid wildcards that could "
                    "allow unintended domains.",
                )
            )
        if "." not in domain:
            findings.append(
                file_finding(
                    ctx,
                    "IOS_UNIVERSAL_LINKS_MISCONFIGURED",
                    Severity.LOW,
                    f"Universal link domain looks invalid: {domain}",
                    "Verify universal link domain is correctly configured with a valid "
                    "domain name.",
                )
            )
    return findings


def _ios_custom_url_scheme_unprotected(ctx: RuleContext) -> list[Finding]:
    plist = _info_plist(ctx)
    if plist is None:
        return []
    match = _URL_TYPES.search(plist)
    if match is None:
        return []
    return [
        file_finding(
            ctx,
            "IOS_CUSTOM_URL_SCHEME_UNPROTECTED",
            Severity.MEDIUM,
            "Custom URL scheme detected - ensure deep link validation is implemented",
            "Implement URL validation in application:openURL:options: to prevent deep "
            "link exploits. Validate scheme, host, and parameters.",
        )
        for _ in _URL_SCHEMES.finditer(_container_body(plist, match.end(), "array"))
    ]


def _ios_keychain_access_group_insecure(ctx: RuleContext) -> list[Finding]:
    if ctx.plist is None:
        return []
    match = _KEYCHAIN_GROUPS.search(ctx.plist)
    if match is None or "*" not in match.group(1):
        return []
    return [
        file_finding(
            ctx,
            "IOS_KEYCHAIN_ACCESS_GROUP_INSECURE",
            Severity.MEDIUM,
            "Keychain access group uses wildcard - may allow unintended access",
            "Specify exact keychain access groups instead of using wildcards to prevent "
            "data leakage between apps.",
        )
    ]


def _ios_data_protection_missing(ctx: RuleContext) -> list[Finding]:
    plist = ctx.plist
    if plist is None:
        return []
    protected = (
        "NSFileProtectionComplete" in plist
        or "com.apple.developer.default-data-protection" in plist
    )
    sensitive = any(feature in plist for feature in _PROTECTED_FEATURES)
    if not sensitive or protected:
        return []
    return [
        file_finding(
            ctx,
            "IOS_DATA_PROTECTION_MISSING",
            Severity.LOW,
            "Sensitive app without data protection entitlement",
            "Enable data protection (NSFileProtectionComplete) to encrypt files when "
            "device is locked.",
        )
    ]


def _ios_ats_exception_too_permissive(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    plist = _info_plist(ctx)
    if plist is None:
        return findings
    match = _EXCEPTION_DOMAINS.search(plist)
    if match is None:
        return findings

    domains = _container_body(plist, match.end())
    position = 0
    while True:
        entry = _DICT_ENTRY.search(domains, position)
        if entry is None:
            break
        domain = entry.group(1)
        config = _container_body(domains, entry.end())
        position = entry.end() + len(config)

        if "NSIncludesSubdomains" in config and "<true/>" in config:
            findings.append(
                file_finding(
                    ctx,
                    "IOS_ATS_EXCEPTION_TOO_PERMISSIVE",
                    Severity.MEDIUM,
                    f"ATS exception for {domain} includes all subdomains - too broad",
                    "Limit ATS exceptions to specific subdomains instead of using "
                    f"NSIncludesSubdomains for {domain}.",
                )
            )
        if "NSAllowsArbitraryLoadsInWebContent" in config:
            findings.append(
                file_finding(
                    ctx,
                    "IOS_ATS_EXCEPTION_TOO_PERMISSIVE",
                    Severity.MEDIUM,
                    f"NSAllowsArbitraryLoadsInWebContent enabled for {domain} - allows "
                    "insecure web content",
                    "Avoid NSAllowsArbitraryLoadsInWebContent. Use HTTPS for all web "
                    "content or specify exact exceptions.",
                )
            )
    return findings


def _insecure_keychain_usage(ctx: RuleContext) -> list[Finding]:
    findings: list[Finding] = []
    content = ctx.content

    if "kSecAttrAccessibleAlways" in content:
        for number, line in enumerate(content.split("\n"), start=1):
            if "kSecAttrAccessibleAlways" in line:
                findings.append(
                    line_finding(
                        ctx,
                        "INSECURE_KEYCHAIN_USAGE",
                        Severity.HIGH,
                        "Keychain item uses kSecAttrAccessibleAlways - accessible even when "
                        "device is locked",
                        "Use kSecAttrAccessibleWhenUnlockedThisDeviceOnly or "
                        "kSecAttrAccessibleAfterFirstUnlock for better security.",
                        number,
                    )
                )

    if not any(call in content for call in _KEYCHAIN_WRITES):
        return findings
    lower = content.lower()
    if not any(word in lower for word in _KEYCHAIN_SENSITIVE):
        return findings

    if not any(flag in content for flag in _ACCESS_CONTROL):
        findings.append(
            file_finding(
                ctx,
                "INSECURE_KEYCHAIN_USAGE",
                Severity.HIGH,
                "Keychain storing sensitive data without access control flags",
                "Add kSecAttrAccessControl with biometric or device passcode requirement "
                "for sensitive keychain items.",
                line=1,
            )
        )
    if not any(flag in content for flag in _BIOMETRIC_PROTECTION) and "WhenUnlocked" not in content:
        findings.append(
            file_finding(
                ctx,
                "INSECURE_KEYCHAIN_USAGE",
                Severity.MEDIUM,
                "Keychain item for sensitive data without biometric or passcode protection",
                "Require biometric authentication or device passcode for accessing "
                "sensitive keychain items.",
                line=1,
            )
        )
    return findings


IOS_RULES = RuleGroup(
    category=RuleCategory.IOS,
    rules=(
        Rule(
            id="IOS_USAGE_DESCRIPTIONS_MISSING",
            description="Missing iOS usage description - Apple App Store requirement",
            severity=Severity.LOW,
            file_types=(".plist",),
            check=_ios_usage_descriptions_missing,
        ),
        Rule(
            id="IOS_BACKGROUND_MODES_UNNECESSARY",
            description="Potentially unnecessary background modes enabled",
            severity=Severity.MEDIUM,
            file_types=(".plist",),
            check=_ios_background_modes_unnecessary,
        ),
        Rule(
            id="IOS_UNIVERSAL_LINKS_MISCONFIGURED",
            description="Universal links configured without proper validation",
            severity=Severity.MEDIUM,
            file_types=(".plist",),
            check=_ios_universal_links_misconfigured,
        ),
        Rule(
            id="IOS_CUSTOM_URL_SCHEME_UNPROTECTED",
            description="Custom URL scheme without validation code",
            severity=Severity.MEDIUM,
            file_types=(".plist",),
            check=_ios_custom_url_scheme_unprotected,
        ),
        Rule(
            id="IOS_KEYCHAIN_ACCESS_GROUP_INSECURE",
            description="Keychain access group configuration may expose data",
            severity=Severity.MEDIUM,
            file_types=(".plist", ".entitlements"),
            check=_ios_keychain_access_group_insecure,
        ),
        Rule(
            id="IOS_DATA_PROTECTION_MISSING",
            description="Data protection entitlement not configured for sensitive app",
            severity=Severity.LOW,
            file_types=(".plist", ".entitlements"),
            check=_ios_data_protection_missing,
        ),
        Rule(
            id="IOS_ATS_EXCEPTION_TOO_PERMISSIVE",
            description="App Transport Security exception too permissive",
            severity=Severity.HIGH,
            file_types=(".plist",),
            check=_ios_ats_exception_too_permissive,
        ),
        Rule(
            id="INSECURE_KEYCHAIN_USAGE",
            description="iOS Keychain used without proper accessibility and protection",
            severity=Severity.HIGH,
            file_types=JS_FILES + (".m", ".swift"),
            check=_insecure_keychain_usage,
        ),
    ),
)
