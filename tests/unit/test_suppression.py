"""Tests for debug-context suppression."""

from __future__ import annotations

import pytest

from rnscan.scanner.models import Finding, Severity
from rnscan.scanner.suppression import (
    has_debug_guard,
    is_debug_path,
    is_in_debug_context,
    suppress_debug_findings,
)


def _finding(file_path: str, snippet: str = "fetch(url)") -> Finding:
    return Finding(
        rule_id="INSECURE_HTTP_URL",
        description="Insecure HTTP URL",
        severity=Severity.MEDIUM,
        file_path=file_path,
        line=1,
        snippet=snippet,
    )


class TestDebugPath:
    @pytest.mark.parametrize(
        "path",
        [
            "/project/src/__tests__/auth.ts",
            "/project/src/__mocks__/api.ts",
            "/project/test/helpers.js",
            "/project/src/api.test.ts",
            "/project/src/Button.stories.storybook.tsx",
            "/project/node_modules/pkg/index.js",
            "/project/dist/bundle.js",
            "C:\\project\\tests\\login.js",
        ],
    )
    def test_debug_locations(self, path):
        assert is_debug_path(path)

    @pytest.mark.parametrize(
        "path",
        ["/project/src/screens/Login.tsx", "/project/src/api/client.ts", "/project/App.js"],
    )
    def test_production_locations(self, path):
        assert not is_debug_path(path)


class TestDebugGuard:
    @pytest.mark.parametrize(
        "code",
        [
            "if (__DEV__) { console.log(token); }",
            "typeof __DEV__ !== 'undefined' && __DEV__",
            "__DEV__ && enableLogger()",
            "if (process.env.NODE_ENV === 'development') {}",
            "if (process.env.NODE_ENV !== \"production\") {}",
            "import tools from './utils/debug'",
        ],
    )
    def test_guarded(self, code):
        assert has_debug_guard(code)

    def test_unguarded(self):
        assert not has_debug_guard("const api = createClient();\napi.get('/users');")

    def test_snippet_is_consulted(self):
        assert is_in_debug_context("const a = 1;", "if (__DEV__) {", "/project/src/a.ts")


class TestSuppressDebugFindings:
    def test_drops_findings_in_debug_paths(self):
        findings = [
            _finding("/project/src/api/client.ts"),
            _finding("/project/src/__tests__/client.ts"),
        ]
        kept = suppress_debug_findings(findings, "fetch(url)")
        assert [f.file_path for f in kept] == ["/project/src/api/client.ts"]

    def test_one_guard_silences_the_whole_file(self):
        content = "fetch(url);\n\nif (__DEV__) {\n  enableLogging();\n}\n"
        findings = [_finding("/project/src/api/client.ts")]
        assert suppress_debug_findings(findings, content) == []

    def test_only_path_differs(self):
        content = "fetch(url);"
        outside = suppress_debug_findings([_finding("/project/src/client.ts")], content)
        inside = suppress_debug_findings([_finding("/project/src/mocks/client.ts")], content)
        assert len(outside) == 1
        assert inside == []

    def test_project_path_replaces_checkout_location(self):
        content = "fetch(url);"
        checkout = [_finding("/home/me/dev/shop/src/client.ts")]
        assert len(suppress_debug_findings(checkout, content, "/src/client.ts")) == 1
        assert suppress_debug_findings(checkout, content, "/src/mocks/client.ts") == []
