"""Dependency rules — vulnerable and deprecated npm packages in package.json.

Vulnerability data comes from ``npm audit --json`` run in the package's
directory. When npm is missing, times out, or prints something that is not an
audit report, a small built-in advisory table is used instead. Setting the
data source to ``hardcoded`` skips npm entirely.
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from rnscan.config import HARDCODED
from rnscan.scanner.context import RuleContext
from rnscan.scanner.models import Finding, FindingCategory, Severity
from rnscan.scanner.rules.base import Rule, RuleCategory, RuleGroup

logger = logging.getLogger(__name__)

NPM_AUDIT_TIMEOUT = 10


@dataclass(frozen=True)
class Advisory:
    """A known vulnerable version range of one package."""

    package: str
    vulnerable_below: tuple[str, ...]
    severity: Severity
    cve: str | None
    description: str
    fix_version: str | None = None


KNOWN_VULNERABLE_PACKAGES = (
    Advisory(
        "lodash",
        ("4.17.21",),
        Severity.HIGH,
        "CVE-2021-23337",
        "Command injection vulnerability in lodash",
        "4.17.21",
    ),
    Advisory(
        "axios",
        ("0.21.1",),
        Severity.MEDIUM,
        "CVE-2020-28168",
        "SSRF vulnerability in axios",
        "0.21.1",
    ),
    Advisory(
        "minimist",
        ("1.2.6",),
        Severity.MEDIUM,
        "CVE-2021-44906",
        "Prototype pollution vulnerability",
        "1.2.6",
    ),
    Advisory(
        "node-fetch",
        ("2.6.7", "3.0.0"),
        Severity.HIGH,
        "CVE-2022-0235",
        "Information exposure vulnerability",
        "2.6.7",
    ),
    Advisory(
        "express",
        ("4.17.3",),
        Severity.MEDIUM,
        "CVE-2022-24999",
        "Open redirect vulnerability",
        "4.17.3",
    ),
    Advisory(
        "trim",
        ("0.0.3",),
        Severity.HIGH,
        "CVE-2020-7753",
        "Regular expression denial of service",
        "0.0.3",
    ),
)

DEPRECATED_PACKAGES = (
    ("request", "axios or node-fetch"),
    ("node-uuid", "uuid"),
    ("gulp-util", "individual gulp utilities"),
    ("istanbul", "nyc"),
    ("colors", "chalk (after colors sabotage incident)"),
    ("faker", "@faker-js/faker"),
)


def convert_npm_severity(npm_severity: str) -> Severity:
    """Map an npm audit severity onto the three-level scale."""
    if npm_severity in ("critical", "high"):
        return Severity.HIGH
    if npm_severity == "moderate":
        return Severity.MEDIUM
    return Severity.LOW


def _version_parts(version: str) -> list[int]:
    parts = []
    for piece in version.split("."):
        try:
            parts.append(int(piece))
        except ValueError:
            parts.append(0)
    return parts


def compare_versions(v1: str, v2: str) -> int:
    """Numeric dotted-version comparison; -1, 0 or 1. Missing parts count as 0."""
    parts1, parts2 = _version_parts(v1), _version_parts(v2)
    for i in range(max(len(parts1), len(parts2))):
        a = parts1[i] if i < len(parts1) else 0
        b = parts2[i] if i < len(parts2) else 0
        if a < b:
            return -1
        if a > b:
            return 1
    return 0


def is_vulnerable_version(spec: str, below: str) -> bool:
    """Whether a package.json version spec falls under ``below``."""
    version = spec.strip().lstrip("~^>=<v").strip()
    return compare_versions(version, below) < 0


def find_package_line(content: str, package: str) -> int:
    """1-based line where ``"package"`` first appears, or 1."""
    needle = f'"{package}"'
    for number, line in enumerate(content.split("\n"), start=1):
        if needle in line:
            return number
    return 1


def run_npm_audit(project_dir: str) -> dict | None:
    """Run ``npm audit --json``; ``None`` when no usable report is produced.

    npm exits non-zero when vulnerabilities exist, so the exit status is not
    checked; only the JSON on stdout matters.
    """
    try:
        proc = subprocess.run(
            ["npm", "audit", "--json"],
            cwd=project_dir,
            capture_output=True,
            text=True,
            timeout=NPM_AUDIT_TIMEOUT,
        )
    except FileNotFoundError:
        logger.debug("npm not found; using built-in advisories")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("npm audit timed out in %s", project_dir)
        return None
    except OSError as e:
        logger.debug("npm audit failed in %s: %s", project_dir, e)
        return None

    try:
        report = json.loads(proc.stdout)
    except ValueError:
        logger.debug("npm audit produced no JSON in %s", project_dir)
        return None
    return report if isinstance(report, dict) else None


def _dependency_map(package_json: dict, include_dev: bool) -> dict:
    deps: dict = {}
    sections = ("dependencies", "devDependencies") if include_dev else ("dependencies",)
    for section in sections:
        value = package_json.get(section)
        if isinstance(value, dict):
            deps.update(value)
    return deps


def _package_finding(
    ctx: RuleContext,
    rule_id: str,
    severity: Severity,
    description: str,
    suggestion: str,
    package: str,
) -> Finding:
    line = find_package_line(ctx.content, package)
    return Finding(
        rule_id=rule_id,
        description=description,
        severity=severity,
        file_path=ctx.file_path,
        line=line,
        snippet=ctx.snippet(line),
        suggestion=suggestion,
        category=FindingCategory.DEPENDENCY,
    )


def _package_json(ctx: RuleContext) -> dict | None:
    if not ctx.config.npm.enabled or not ctx.file_path.endswith("package.json"):
        return None
    return ctx.json_data


def _audit_findings(ctx: RuleContext, vulnerabilities: dict, deps: dict) -> list[Finding]:
    findings: list[Finding] = []
    for package, vuln in vulnerabilities.items():
        if not deps.get(package) or not isinstance(vuln, dict):
            continue
        npm_severity = str(vuln.get("severity", "low"))

        via = vuln.get("via")
        first = via[0] if isinstance(via, list) and via else None
        if isinstance(first, dict) and first.get("title"):
            title = first["title"]
        else:
            title = f"Vulnerability in {package}"

        fix = vuln.get("fixAvailable")
        if isinstance(fix, dict):
            fix_info = f" Update to {fix.get('name')}@{fix.get('version')}"
        elif fix:
            fix_info = " Fix available - run npm audit fix"
        else:
            fix_info = " No automatic fix available"

        findings.append(
            _package_finding(
                ctx,
                "NPM_VULNERABLE_DEPENDENCY",
                convert_npm_severity(npm_severity),
                f"{title} ({npm_severity})",
                f"{fix_info}. Check: npm audit for details.",
                package,
            )
        )
    return findings


def _advisory_findings(ctx: RuleContext, deps: dict) -> list[Finding]:
    findings: list[Finding] = []
    advisories = {advisory.package: advisory for advisory in KNOWN_VULNERABLE_PACKAGES}
    for package, version in deps.items():
        advisory = advisories.get(package)
        if advisory is None or not isinstance(version, str):
            continue
        if not any(is_vulnerable_version(version, below) for below in advisory.vulnerable_below):
            continue
        cve = f" ({advisory.cve})" if advisory.cve else ""
        target = advisory.fix_version or "latest"
        findings.append(
            _package_finding(
                ctx,
                "NPM_VULNERABLE_DEPENDENCY",
                advisory.severity,
                f'Vulnerable package "{package}@{version}": {advisory.description}{cve}',
                f'Update "{package}" to version {target}. Run: npm install '
                f"{package}@{target}",
                package,
            )
        )
    return findings


def _npm_vulnerable_dependency(ctx: RuleContext) -> list[Finding]:
    package_json = _package_json(ctx)
    if package_json is None:
        return []
    settings = ctx.config.npm
    deps = _dependency_map(package_json, include_dev=not settings.exclude_dev_dependencies)

    if settings.data_source != HARDCODED:
        report = run_npm_audit(str(Path(ctx.file_path).parent))
        vulnerabilities = report.get("vulnerabilities") if report else None
        if isinstance(vulnerabilities, dict):
            return _audit_findings(ctx, vulnerabilities, deps)

    return _advisory_findings(ctx, deps)


def _deprecated_npm_package(ctx: RuleContext) -> list[Finding]:
    package_json = _package_json(ctx)
    if package_json is None:
        return []
    deps = _dependency_map(package_json, include_dev=True)
    return [
        _package_finding(
            ctx,
            "DEPRECATED_NPM_PACKAGE",
            Severity.MEDIUM,
            f'Package "{package}" is deprecated',
            f'Replace "{package}" with {replacement}. Deprecated packages no longer '
            "receive security updates.",
            package,
        )
        for package, replacement in DEPRECATED_PACKAGES
        if deps.get(package)
    ]


NPM_RULES = RuleGroup(
    category=RuleCategory.DEPENDENCIES,
    rules=(
        Rule(
            id="NPM_VULNERABLE_DEPENDENCY",
            description="Vulnerable npm package detected in dependencies",
            severity=Severity.HIGH,
            file_types=("package.json",),
            check=_npm_vulnerable_dependency,
        ),
        Rule(
            id="DEPRECATED_NPM_PACKAGE",
            description="Deprecated npm package in use",
            severity=Severity.MEDIUM,
            file_types=("package.json",),
            check=_deprecated_npm_package,
        ),
    ),
)
