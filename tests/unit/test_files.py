"""Tests for project file enumeration."""

from __future__ import annotations

import pytest

from rnscan.scanner import files
from rnscan.scanner.files import is_excluded, is_scannable, walk_project


class TestIsScannable:
    @pytest.mark.parametrize(
        "name",
        [
            "App.tsx",
            "src/api/client.ts",
            "Button.jsx",
            "index.js",
            "package.json",
            "app.json",
            "AndroidManifest.xml",
            "Info.plist",
            ".env",
            ".env.production",
            "MainActivity.kt",
            "KeychainHelper.swift",
            "Shop.entitlements",
        ],
    )
    def test_scanned(self, name):
        assert is_scannable(name)

    @pytest.mark.parametrize(
        "name",
        [
            "README.md",
            "tsconfig.json",
            "styles.xml",
            "login.test.tsx",
            "api.spec.ts",
            "flow.e2e.js",
            "logo.png",
        ],
    )
    def test_not_scanned(self, name):
        assert not is_scannable(name)


class TestIsExcluded:
    def test_relative_path_glob(self):
        assert is_excluded("src/legacy/old.js", ["src/legacy/*"])

    def test_file_name_glob(self):
        assert is_excluded("src/deep/generated.js", ["generated.js"])

    def test_no_patterns(self):
        assert not is_excluded("src/App.tsx", [])


class TestWalkProject:
    def test_skips_directories_and_sorts(self, project):
        root = project(
            {
                "src/b.ts": "",
                "src/a.ts": "",
                "App.tsx": "",
                "node_modules/lib/index.js": "",
                "build/out.js": "",
                "e2e/login.js": "",
                "coverage/report.js": "",
                "src/__mocks__/api.js": "",
            }
        )
        walked = [p.relative_to(root).as_posix() for p in walk_project(root)]
        assert walked == ["App.tsx", "src/a.ts", "src/b.ts"]

    def test_excluded_directory_is_pruned(self, project):
        root = project({"src/App.tsx": "", "legacy/old.js": ""})
        walked = [p.relative_to(root).as_posix() for p in walk_project(root, ["legacy"])]
        assert walked == ["src/App.tsx"]

    def test_large_files_are_skipped(self, project, monkeypatch):
        root = project({"small.js": "a", "large.js": "a" * 100})
        monkeypatch.setattr(files, "MAX_FILE_SIZE", 10)
        walked = [p.name for p in walk_project(root)]
        assert walked == ["small.js"]
