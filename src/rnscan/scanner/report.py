"""JSON report persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from rnscan.scanner.models import Finding, ScanResult

logger = logging.getLogger(__name__)


def to_json(result: ScanResult, indent: int = 2) -> str:
    return json.dumps(result.to_dict(), indent=indent)


def write_report(result: ScanResult, path: str | Path) -> Path:
    """Write the scan result as JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_json(result) + "\n", encoding="utf-8")
    logger.debug("Wrote report to %s", path)
    return path


def load_report(path: str | Path) -> list[Finding]:
    """Load the findings of a previously written report.

    Raises ``ValueError`` when the file is not a report.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not isinstance(data.get("findings"), list):
        raise ValueError(f"Not a scan report: {path}")
    try:
        return [Finding.from_dict(item) for item in data["findings"]]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed finding in {path}: {e}") from e
