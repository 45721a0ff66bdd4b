"""Tests for the Android and iOS platform rules."""

from __future__ import annotations

from collections import Counter

from rnscan.scanner.models import Severity

MANIFEST_PATH = "/project/android/app/src/main/AndroidManifest.xml"
INFO_PLIST_PATH = "/project/ios/Shop/Info.plist"

SAMPLE_MANIFEST = """\
<manifest xmlns:android="http://schemas.android.com/apk/res/android" package="com.shop.app">
    <uses-permission android:name="android.permission.INTERNET" />
    <uses-permission android:name="android.permission.CAMERA" />
    <application android:debuggable="true" android:allowBackup="true">
        <activity android:name=".MainActivity" android:exported="true">
            <intent-filter>
                <action android:name="android.intent.action.VIEW" />
                <category android:name="android.intent.category.DEFAULT" />
            </intent-filter>
        </activity>
        <receiver android:name=".PushReceiver" android:exported="true">
        </receiver>
        <provider android:name=".FilesProvider" android:authorities="com.shop.files" android:exported="true" />
    </application>
</manifest>
"""

SAMPLE_INFO_PLIST = """\
<?xml version="1.0" encoding="UTF-8"?>
<plist version="1.0">
<dict>
  <key>NSCameraUsageDescription</key>
  <string>TODO</string>
  <key>UIBackgroundModes</key>
  <array>
    <string>location</string>
    <string>audio</string>
  </array>
  <key>CFBundleURLTypes</key>
  <array>
    <dict>
      <key>CFBundleURLSchemes</key>
      <array>
        <string>shopapp</string>
      </array>
    </dict>
  </array>
  <key>NSAppTransportSecurity</key>
  <dict>
    <key>NSExceptionDomains</key>
    <dict>
      <key>example.com</key>
      <dict>
        <key>NSIncludesSubdomains</key>
        <true/>
      </dict>
    </dict>
  </dict>
</dict>
</plist>
"""


def _counts(findings):
    return Counter(f.rule_id for f in findings)


class TestAndroidManifest:
    def test_cleartext_traffic(self, scan_source):
        manifest = (
            '<manifest xmlns:android="http://schemas.android.com/apk/res/android">\n'
            '  <application android:usesCleartextTraffic="true" />\n'
            "</manifest>\n"
        )
        findings = scan_source(MANIFEST_PATH, manifest, "ANDROID_CLEARTEXT_ENABLED")
        assert len(findings) == 1
        assert findings[0].severity == Severity.HIGH
        assert findings[0].line is None

    def test_sample_manifest(self, scan_source):
        counts = _counts(scan_source(MANIFEST_PATH, SAMPLE_MANIFEST))
        assert counts["ANDROID_DEBUGGABLE_ENABLED"] == 1
        assert counts["ANDROID_BACKUP_ALLOWED"] == 1
        assert counts["ANDROID_EXPORTED_COMPONENT"] == 2
        assert counts["ANDROID_INTENT_FILTER_PERMISSIVE"] == 1
        assert counts["ANDROID_UNPROTECTED_RECEIVER"] == 1
        assert counts["ANDROID_CONTENT_PROVIDER_NO_PERMISSION"] == 1
        assert counts["EXCESSIVE_PERMISSIONS"] == 1
        assert counts["ANDROID_CLEARTEXT_ENABLED"] == 0

    def test_backup_severity(self, scan_source):
        findings = scan_source(MANIFEST_PATH, SAMPLE_MANIFEST, "ANDROID_BACKUP_ALLOWED")
        assert findings[0].severity == Severity.MEDIUM

    def test_backup_unspecified(self, scan_source):
        manifest = SAMPLE_MANIFEST.replace(' android:allowBackup="true"', "")
        findings = scan_source(MANIFEST_PATH, manifest, "ANDROID_BACKUP_ALLOWED")
        assert [f.severity for f in findings] == [Severity.LOW]

    def test_permission_protected_components(self, scan_source):
        manifest = SAMPLE_MANIFEST.replace(
            'android:exported="true"',
            'android:exported="true" android:permission="com.shop.SIGNED"',
        )
        counts = _counts(scan_source(MANIFEST_PATH, manifest))
        assert counts["ANDROID_EXPORTED_COMPONENT"] == 0
        assert counts["ANDROID_UNPROTECTED_RECEIVER"] == 0
        assert counts["ANDROID_CONTENT_PROVIDER_NO_PERMISSION"] == 0

    def test_other_xml_files_are_ignored(self, scan_source):
        path = "/project/android/app/src/main/res/values/strings.xml"
        assert scan_source(path, SAMPLE_MANIFEST) == []


class TestKeystore:
    SOURCE = (
        "val spec = KeyGenParameterSpec.Builder(alias, KeyProperties.PURPOSE_ENCRYPT)\n"
        "    .setBlockModes(KeyProperties.BLOCK_MODE_ECB)\n"
        "    .build()\n"
    )
    PATH = "/project/android/app/src/main/java/com/shop/KeyHelper.kt"

    def test_insecure_key_generation(self, scan_source):
        findings = scan_source(self.PATH, self.SOURCE, "INSECURE_KEYSTORE_USAGE")
        assert [(f.severity, f.line) for f in findings] == [
            (Severity.HIGH, 2),
            (Severity.HIGH, 1),
            (Severity.MEDIUM, 1),
        ]

    def test_hardened_key_generation(self, scan_source):
        source = (
            "val spec = KeyGenParameterSpec.Builder(alias, KeyProperties.PURPOSE_ENCRYPT)\n"
            "    .setBlockModes(KeyProperties.BLOCK_MODE_GCM)\n"
            "    .setUserAuthenticationRequired(true)\n"
            "    .setIsStrongBoxBacked(true)\n"
            "    .build()\n"
        )
        assert scan_source(self.PATH, source, "INSECURE_KEYSTORE_USAGE") == []


class TestInfoPlist:
    def test_sample_plist(self, scan_source):
        counts = _counts(scan_source(INFO_PLIST_PATH, SAMPLE_INFO_PLIST))
        assert counts["IOS_USAGE_DESCRIPTIONS_MISSING"] == 2
        assert counts["IOS_BACKGROUND_MODES_UNNECESSARY"] == 2
        assert counts["IOS_CUSTOM_URL_SCHEME_UNPROTECTED"] == 1
        assert counts["IOS_ATS_EXCEPTION_TOO_PERMISSIVE"] == 1
        assert counts["IOS_DATA_PROTECTION_MISSING"] == 1
        assert counts["IOS_ATS_DISABLED"] == 0

    def test_placeholder_usage_description(self, scan_source):
        findings = scan_source(
            INFO_PLIST_PATH, SAMPLE_INFO_PLIST, "IOS_USAGE_DESCRIPTIONS_MISSING"
        )
        descriptions = [f.description for f in findings]
        assert any('"TODO"' in d for d in descriptions)
        assert any("Location (Always)" in d for d in descriptions)

    def test_ats_exception_names_the_domain(self, scan_source):
        findings = scan_source(
            INFO_PLIST_PATH, SAMPLE_INFO_PLIST, "IOS_ATS_EXCEPTION_TOO_PERMISSIVE"
        )
        assert "example.com" in findings[0].description

    def test_ats_disabled(self, scan_source):
        plist = (
            "<dict>\n"
            "  <key>NSAppTransportSecurity</key>\n"
            "  <dict>\n"
            "    <key>NSAllowsArbitraryLoads</key>\n"
            "    <true/>\n"
            "  </dict>\n"
            "</dict>\n"
        )
        findings = scan_source(INFO_PLIST_PATH, plist, "IOS_ATS_DISABLED")
        assert len(findings) == 1
        assert findings[0].severity == Severity.HIGH

    def test_multiple_url_schemes(self, scan_source):
        plist = (
            "<dict>\n"
            "  <key>CFBundleURLTypes</key>\n"
            "  <array>\n"
            "    <dict>\n"
            "      <key>CFBundleURLSchemes</key>\n"
            "      <array><string>shopapp</string></array>\n"
            "    </dict>\n"
            "    <dict>\n"
            "      <key>CFBundleURLSchemes</key>\n"
            "      <array><string>fb12345</string></array>\n"
            "    </dict>\n"
            "  </array>\n"
            "</dict>\n"
        )
        findings = scan_source(INFO_PLIST_PATH, plist, "IOS_CUSTOM_URL_SCHEME_UNPROTECTED")
        assert len(findings) == 2

    def test_wildcard_keychain_group(self, scan_source):
        entitlements = (
            "<dict>\n"
            "  <key>keychain-access-groups</key>\n"
            "  <array><string>$(AppIdentifierPrefix)*</string></array>\n"
            "</dict>\n"
        )
        findings = scan_source(
            "/project/ios/Shop/Shop.entitlements",
            entitlements,
            "IOS_KEYCHAIN_ACCESS_GROUP_INSECURE",
        )
        assert len(findings) == 1


class TestKeychain:
    SOURCE = (
        "let query: [String: Any] = [\n"
        "    kSecClass as String: kSecClassGenericPassword,\n"
        '    kSecAttrAccount as String: "token",\n'
        "    kSecAttrAccessible as String: kSecAttrAccessibleAlways\n"
        "]\n"
        "SecItemAdd(query as CFDictionary, nil)\n"
    )

    def test_insecure_keychain_item(self, scan_source):
        findings = scan_source(
            "/project/ios/Shop/TokenStore.swift", self.SOURCE, "INSECURE_KEYCHAIN_USAGE"
        )
        assert [(f.severity, f.line) for f in findings] == [
            (Severity.HIGH, 4),
            (Severity.HIGH, 1),
            (Severity.MEDIUM, 1),
        ]

    def test_protected_keychain_item(self, scan_source):
        source = (
            self.SOURCE.replace("kSecAttrAccessibleAlways", "kSecAttrAccessibleWhenUnlocked")
            + "let access = SecAccessControlCreateWithFlags(nil, nil, .userPresence, nil)\n"
        )
        findings = scan_source(
            "/project/ios/Shop/TokenStore.swift", source, "INSECURE_KEYCHAIN_USAGE"
        )
        assert findings == []
