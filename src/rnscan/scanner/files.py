"""File enumeration — which files under a project root get scanned."""

from __future__ import annotations

import fnmatch
import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

CODE_SUFFIXES = {".js", ".jsx", ".ts", ".tsx"}
NATIVE_SUFFIXES = {".java", ".kt", ".m", ".swift"}

# Exact file names scanned wherever they appear
_SCANNED_NAMES = {
    "app.json",
    "app.config.json",
    "package.json",
    "AndroidManifest.xml",
    "Info.plist",
    ".env",
    ".env.local",
    ".env.production",
}

# Directories to always skip
_SKIP_DIRS = {
    "node_modules",
    "dist",
    "build",
    ".expo",
    ".git",
    "coverage",
    "__tests__",
    "__mocks__",
    "e2e",
    "tests",
    "test",
}

_SKIP_FILE_PATTERNS = (
    "*.test.js",
    "*.test.ts",
    "*.test.jsx",
    "*.test.tsx",
    "*.spec.js",
    "*.spec.ts",
    "*.spec.jsx",
    "*.spec.tsx",
    "*.e2e.js",
    "*.e2e.ts",
)

# Max file size to scan (1 MB)
MAX_FILE_SIZE = 1_048_576


def is_scannable(path: str | Path) -> bool:
    """Whether a file name belongs to the scanned set, ignoring its location."""
    path = Path(path)
    name = path.name
    if any(fnmatch.fnmatchcase(name, pattern) for pattern in _SKIP_FILE_PATTERNS):
        return False
    if name in _SCANNED_NAMES:
        return True
    suffix = path.suffix.lower()
    return suffix in CODE_SUFFIXES or suffix in NATIVE_SUFFIXES or suffix == ".entitlements"


def is_excluded(relative: str, patterns: Iterable[str]) -> bool:
    """Match a root-relative POSIX path, or its file name, against exclude globs."""
    name = relative.rsplit("/", 1)[-1]
    for pattern in patterns:
        if fnmatch.fnmatch(relative, pattern) or fnmatch.fnmatch(name, pattern):
            return True
    return False


def walk_project(root: str | Path, exclude: Iterable[str] = ()) -> Iterator[Path]:
    """Yield scannable files under ``root`` in a stable, sorted order."""
    root = Path(root)
    exclude = list(exclude)
    for current, dirs, files in os.walk(root):
        base = Path(current)
        # Prune skipped directories in-place
        dirs[:] = sorted(
            d
            for d in dirs
            if d not in _SKIP_DIRS
            and not is_excluded((base / d).relative_to(root).as_posix(), exclude)
        )

        for name in sorted(files):
            path = base / name
            if not is_scannable(path):
                continue
            if is_excluded(path.relative_to(root).as_posix(), exclude):
                continue
            try:
                if path.stat().st_size > MAX_FILE_SIZE:
                    logger.debug("Skipping %s: larger than %d bytes", path, MAX_FILE_SIZE)
                    continue
            except OSError:
                continue
            yield path
