# Copyright (c) Syntropy Systems
"""Main CLI entry point for contribcheck."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from contribcheck.check import run_check
from contribcheck.report import ConsoleReporter

console = Console()

app = typer.Typer(
    name="contribcheck",
    help=(
        "Measure how much a repository feature contributes to request "
        "latency by comparing timed calls under controlled conditions."
    ),
    add_completion=False,
)


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def check(
    identity: Optional[str] = typer.Argument(
        None,
        help="Acting user, USERDIRECTORY\\userid",
        show_default=False,
    ),
    app_id: Optional[str] = typer.Argument(
        None,
        help="Target app id (UUID)",
        show_default=False,
    ),
    mode: Optional[str] = typer.Argument(
        None,
        help="RuleContribution or OptionalFeatureContribution",
        show_default=False,
    ),
    repeat: Optional[int] = typer.Option(
        None,
        "--repeat",
        "-n",
        help="Calls per condition for OptionalFeatureContribution (min 2)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a contribcheck.yaml config file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log every request",
    ),
) -> None:
    """Run one latency contribution check.

    Example:
        contribcheck INTERNAL\\sa_api 4a03b166-af2c-4784-b17b-1b22dcf5ed4c RuleContribution

    """
    configure_logging(verbose)
    exit_code = run_check(
        identity,
        app_id,
        mode,
        config_path=config,
        repeat_count=repeat,
        reporter=ConsoleReporter(console),
    )
    raise typer.Exit(exit_code)


if __name__ == "__main__":
    app()
