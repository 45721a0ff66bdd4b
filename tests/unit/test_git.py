"""Tests for the git helpers."""

from __future__ import annotations

import subprocess

import pytest

from rnscan.scanner import git
from rnscan.scanner.git import GitError, changed_files, is_git_repository


def _completed(stdout: str = ""):
    calls = []

    def run(args, **kwargs):
        calls.append((args, kwargs))
        return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr="")

    return run, calls


class TestChangedFiles:
    def test_paths_are_absolute(self, monkeypatch, tmp_path):
        run, calls = _completed("src/App.tsx\nsrc/api/client.ts\n\n")
        monkeypatch.setattr(git.subprocess, "run", run)

        paths = changed_files("origin/main", tmp_path)

        assert paths == [
            tmp_path.resolve() / "src/App.tsx",
            tmp_path.resolve() / "src/api/client.ts",
        ]
        args, kwargs = calls[0]
        assert args[:2] == ["git", "diff"]
        assert args[-1] == "origin/main"
        assert "--diff-filter=ACMRT" in args
        assert kwargs["cwd"] == tmp_path.resolve()

    def test_bad_ref(self, monkeypatch, tmp_path):
        def fail(args, **kwargs):
            raise subprocess.CalledProcessError(
                128, args, stderr="fatal: bad revision 'nope'\n"
            )

        monkeypatch.setattr(git.subprocess, "run", fail)
        with pytest.raises(GitError, match="bad revision"):
            changed_files("nope", tmp_path)

    def test_git_missing(self, monkeypatch, tmp_path):
        def missing(args, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(git.subprocess, "run", missing)
        with pytest.raises(GitError, match="not found"):
            changed_files("HEAD", tmp_path)


class TestIsGitRepository:
    def test_inside(self, monkeypatch, tmp_path):
        run, _ = _completed(".git\n")
        monkeypatch.setattr(git.subprocess, "run", run)
        assert is_git_repository(tmp_path)

    def test_outside(self, monkeypatch, tmp_path):
        def fail(args, **kwargs):
            raise subprocess.CalledProcessError(128, args, stderr="fatal: not a git repository")

        monkeypatch.setattr(git.subprocess, "run", fail)
        assert not is_git_repository(tmp_path)
