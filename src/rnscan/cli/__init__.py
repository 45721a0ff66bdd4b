"""CLI entry point — Click group with global options."""

from __future__ import annotations

import logging

import click

from rnscan import __version__


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("rnscan").setLevel(level)


@click.group()
@click.version_option(version=__version__, prog_name="rnscan")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """rnscan — static security scanner for React Native and Expo apps."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(verbose)


def _register_commands() -> None:
    from rnscan.cli.rules import rules  # noqa: F811
    from rnscan.cli.scan import scan  # noqa: F811

    main.add_command(scan)
    main.add_command(rules)


_register_commands()
