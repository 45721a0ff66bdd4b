"""Debug-context suppression — drops findings that only matter in dev/test builds."""

from __future__ import annotations

import re

from rnscan.scanner.models import Finding

DEBUG_PATH_MARKERS = (
    "/debug/",
    "__debug",
    ".debug.",
    "/dev/",
    ".dev.",
    "/__tests__/",
    "/__mocks__/",
    "/mocks/",
    "/test/",
    "/tests/",
    ".test.",
    ".spec.",
    "jestsetup",
    "jest.setup",
    "jest.config",
    "setuptest",
    "storybook",
    "node_modules",
    "/vendor/",
    "/assets/",
    "/build/",
    "/dist/",
)

DEBUG_GUARD_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"if\s*\(\s*__DEV__\s*\)",
        r"\?\s*__DEV__\s*[?:]",
        r"__DEV__\s*&&",
        r"&&\s*__DEV__",
        r"process\.env\.NODE_ENV\s*===?\s*['\"]development['\"]",
        r"process\.env\.NODE_ENV\s*!==?\s*['\"]production['\"]",
        r"NODE_ENV\s*===?\s*['\"]development['\"]",
        r"NODE_ENV\s*!==?\s*['\"]production['\"]",
        r"if\s*\(\s*DEBUG\s*\)",
        r"\?\s*DEBUG\s*[?:]",
        r"DEBUG\s*&&",
        r"&&\s*DEBUG",
        r"process\.env\.DEBUG",
        r"if\s*\(\s*['\"]development['\"]\s*===?\s*process\.env\.NODE_ENV\s*\)",
        r"isDevelopment\s*&&",
        r"isDebug\s*&&",
        r"\.development\s*\?",
        r"typeof\s+__DEV__\s*!==?\s*['\"]undefined['\"]\s*&&\s*__DEV__",
        r"Constants\.manifest\.?packagerOpts\.?dev",
        r"expo-constants.*development",
        r"webpack_require.*development",
        r"WEBPACK_DEV",
    )
)

DEBUG_IMPORT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"require\(['\"].*\.debug['\"]\)",
        r"require\(['\"].*/debug['\"]\)",
        r"import.*from\s+['\"].*\.debug['\"]",
        r"import.*from\s+['\"].*/debug['\"]",
    )
)


def is_debug_path(file_path: str) -> bool:
    """True when a path sits under a test, mock, debug, vendor or build location."""
    normalized = "/" + file_path.replace("\\", "/").lower().lstrip("/")
    return any(marker in normalized for marker in DEBUG_PATH_MARKERS)


def has_debug_guard(code: str) -> bool:
    """True when code contains a development-mode guard or a debug-only import."""
    for line in code.split("\n"):
        if any(pattern.search(line) for pattern in DEBUG_GUARD_PATTERNS):
            return True
    return any(pattern.search(code) for pattern in DEBUG_IMPORT_PATTERNS)


def is_in_debug_context(content: str, snippet: str | None, file_path: str) -> bool:
    if is_debug_path(file_path):
        return True
    code = f"{content}\n{snippet}" if snippet else content
    return has_debug_guard(code)


def suppress_debug_findings(
    findings: list[Finding], content: str, project_path: str | None = None
) -> list[Finding]:
    """Drop every finding whose file or surrounding code is development-only.

    Applied once per file after all rules have run. The whole file content is
    consulted, so one ``__DEV__`` guard anywhere in a file silences the file.
    Path markers are matched against ``project_path``, the file's location
    inside the scanned project, when given.
    """
    return [
        finding
        for finding in findings
        if not is_in_debug_context(
            content, finding.snippet, project_path or finding.file_path
        )
    ]
