"""CLI command: rnscan rules — list every registered rule."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from rnscan.cli.scan import SEVERITY_COLORS
from rnscan.scanner.rules import default_rule_groups

console = Console()


@click.command()
@click.option("--category", "-c", help="Only list rules in this category.")
def rules(category: str | None) -> None:
    """List the built-in detection rules."""
    table = Table(title="Rules", show_lines=False)
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Category")
    table.add_column("Severity", style="bold", width=8)
    table.add_column("Files")
    table.add_column("Description")

    count = 0
    for group in default_rule_groups():
        if category and group.category.value != category:
            continue
        for rule in group.rules:
            color = SEVERITY_COLORS[rule.severity]
            table.add_row(
                rule.id,
                group.category.value,
                f"[{color}]{rule.severity.value}[/{color}]",
                " ".join(rule.file_types),
                rule.description,
            )
            count += 1

    if count == 0:
        raise click.BadParameter(f"no rules in category {category!r}", param_hint="--category")

    console.print(table)
    console.print(f"\n{count} rules")
