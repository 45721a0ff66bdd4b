"""Git helpers for incremental scans."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GitError(RuntimeError):
    """Raised when a git command cannot be run or fails."""


def _git(args: list[str], cwd: Path) -> str:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise GitError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        message = (e.stderr or "").strip() or f"exit status {e.returncode}"
        raise GitError(f"git {' '.join(args)} failed: {message}") from e
    return proc.stdout


def changed_files(ref: str, cwd: str | Path = ".") -> list[Path]:
    """Absolute paths of files added, copied, modified, renamed or retyped since ``ref``.

    Only files under ``cwd`` are listed.
    """
    root = Path(cwd).resolve()
    output = _git(["diff", "--name-only", "--relative", "--diff-filter=ACMRT", ref], root)
    files = [root / line.strip() for line in output.splitlines() if line.strip()]
    logger.debug("%d files changed since %s", len(files), ref)
    return files


def is_git_repository(cwd: str | Path = ".") -> bool:
    try:
        _git(["rev-parse", "--git-dir"], Path(cwd).resolve())
    except GitError:
        return False
    return True
