"""CLI command: rnscan scan [PATH] — static security analysis of a project."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from rnscan.config import ScanConfig
from rnscan.scanner.compare import compare_scans, summarize_comparison
from rnscan.scanner.engine import ScanEngine
from rnscan.scanner.git import GitError, changed_files, is_git_repository
from rnscan.scanner.metrics import compute_metrics
from rnscan.scanner.models import ScanResult, Severity
from rnscan.scanner.report import load_report, to_json, write_report

console = Console(stderr=True)

SEVERITY_COLORS = {
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "blue",
}

EXIT_HIGH_FINDINGS = 1
EXIT_FATAL = 2


@click.command()
@click.argument("path", default=".", type=click.Path())
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON on stdout.")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Also write the JSON report to this file.",
)
@click.option(
    "--ignore",
    "-i",
    multiple=True,
    help="Rule id to ignore. May be repeated.",
)
@click.option(
    "--exclude",
    "-e",
    multiple=True,
    help="Glob of files or directories to exclude from scan.",
)
@click.option(
    "--changed-since",
    metavar="REF",
    help="Only scan files changed since this git reference.",
)
@click.option(
    "--baseline",
    type=click.Path(dir_okay=False),
    help="Previous JSON report to compare against.",
)
@click.pass_context
def scan(
    ctx: click.Context,
    path: str,
    as_json: bool,
    output: str | None,
    ignore: tuple[str, ...],
    exclude: tuple[str, ...],
    changed_since: str | None,
    baseline: str | None,
) -> None:
    """Scan a React Native or Expo project for security issues."""
    ctx.ensure_object(dict)
    root = Path(path)

    try:
        result = _run_scan(ctx, root, ignore, exclude, changed_since)
        if output:
            write_report(result, output)
        comparison = None
        if baseline:
            comparison = compare_scans(result.findings, load_report(baseline))
    except (OSError, ValueError, GitError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(EXIT_FATAL)

    if as_json:
        click.echo(to_json(result))
    else:
        _print_findings(result)
        _print_summary(result)
        if comparison is not None:
            summary = summarize_comparison(comparison)
            console.print(f"Changes since baseline: {summary or 'none'}")
        if output:
            console.print(f"Report written to [cyan]{output}[/cyan]")

    high_count = result.count(Severity.HIGH)
    if high_count > 0:
        if not as_json:
            console.print(f"\n[red]{high_count} high severity finding(s)[/red]")
        sys.exit(EXIT_HIGH_FINDINGS)


def _run_scan(
    ctx: click.Context,
    root: Path,
    ignore: tuple[str, ...],
    exclude: tuple[str, ...],
    changed_since: str | None,
) -> ScanResult:
    if not root.exists():
        raise FileNotFoundError(f"Scan root does not exist: {root}")

    config = ScanConfig.load(root if root.is_dir() else None)
    config.ignored_rules.extend(r for r in ignore if r not in config.ignored_rules)
    config.exclude.extend(exclude)
    if config.verbose and not ctx.obj.get("verbose"):
        logging.getLogger("rnscan").setLevel(logging.DEBUG)

    engine = ScanEngine(config)
    if changed_since is None:
        console.print(f"[bold]rnscan[/bold] scanning [cyan]{root}[/cyan]\n")
        return engine.scan(root)

    if not is_git_repository(root):
        raise GitError(f"{root} is not a git repository")
    files = changed_files(changed_since, root)
    console.print(
        f"[bold]rnscan[/bold] scanning [cyan]{len(files)}[/cyan] files changed "
        f"since [cyan]{changed_since}[/cyan]\n"
    )
    return engine.scan_files(files, root)


def _print_findings(result: ScanResult) -> None:
    if not result.findings:
        console.print("[green]No findings.[/green]")
        return

    # Sort by severity (high first), then file, then line
    findings = sorted(
        result.findings,
        key=lambda f: (f.severity.rank, f.file_path, f.line or 0),
    )

    table = Table(title="Findings", show_lines=False)
    table.add_column("Severity", style="bold", width=8)
    table.add_column("Rule")
    table.add_column("File", style="cyan")
    table.add_column("Line", justify="right")
    table.add_column("Description", max_width=60)

    for finding in findings:
        color = SEVERITY_COLORS[finding.severity]
        table.add_row(
            f"[{color}]{finding.severity.value}[/{color}]",
            finding.rule_id,
            _shorten_path(finding.file_path, result.directory),
            str(finding.line) if finding.line is not None else "-",
            finding.description,
        )

    console.print(table)


def _print_summary(result: ScanResult) -> None:
    metrics = compute_metrics(result)
    console.print(
        f"\nScanned {result.files_scanned} files "
        f"({result.files_skipped} skipped) "
        f"in {result.duration:.2f}s"
    )
    console.print(
        f"Total findings: {metrics.total} "
        f"(high {metrics.high}, medium {metrics.medium}, low {metrics.low})"
    )
    console.print(
        f"Security score: {metrics.score}/100, "
        f"{metrics.density} issues per 1K lines"
    )
    if result.ignored_rules:
        console.print(f"Ignored rules: {', '.join(result.ignored_rules)}")


def _shorten_path(file_path: str, base_dir: str) -> str:
    """Shorten file path relative to scan directory."""
    if file_path.startswith(base_dir):
        return file_path[len(base_dir) :].lstrip("/")
    return file_path
