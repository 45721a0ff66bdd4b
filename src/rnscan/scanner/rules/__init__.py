"""Built-in rule groups, in registration order."""

from __future__ import annotations

from rnscan.scanner.rules.android import ANDROID_RULES
from rnscan.scanner.rules.authentication import AUTHENTICATION_RULES
from rnscan.scanner.rules.base import Rule, RuleCategory, RuleGroup
from rnscan.scanner.rules.config import CONFIG_RULES
from rnscan.scanner.rules.crypto import CRYPTO_RULES
from rnscan.scanner.rules.debug import DEBUG_RULES
from rnscan.scanner.rules.ios import IOS_RULES
from rnscan.scanner.rules.logs import LOGGING_RULES
from rnscan.scanner.rules.manifest import MANIFEST_RULES
from rnscan.scanner.rules.network import NETWORK_RULES
from rnscan.scanner.rules.npm import NPM_RULES
from rnscan.scanner.rules.react_native import REACT_NATIVE_RULES
from rnscan.scanner.rules.secrets import SECRETS_RULES
from rnscan.scanner.rules.storage import STORAGE_RULES
from rnscan.scanner.rules.webview import WEBVIEW_RULES

ALL_RULE_GROUPS: tuple[RuleGroup, ...] = (
    STORAGE_RULES,
    NETWORK_RULES,
    LOGGING_RULES,
    CONFIG_RULES,
    MANIFEST_RULES,
    AUTHENTICATION_RULES,
    CRYPTO_RULES,
    REACT_NATIVE_RULES,
    WEBVIEW_RULES,
    SECRETS_RULES,
    DEBUG_RULES,
    ANDROID_RULES,
    IOS_RULES,
    NPM_RULES,
)


def default_rule_groups() -> list[RuleGroup]:
    return list(ALL_RULE_GROUPS)


__all__ = [
    "ALL_RULE_GROUPS",
    "Rule",
    "RuleCategory",
    "RuleGroup",
    "default_rule_groups",
]
