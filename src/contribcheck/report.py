# Copyright (c) Syntropy Systems
"""Console rendering for startup diagnostics, progress and summaries."""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from contribcheck.models.trial import (
    OptionalFeatureContributionResult,
    RuleContributionResult,
)

if TYPE_CHECKING:
    from uuid import UUID

    from contribcheck.client import Identity
    from contribcheck.models.qrs import AboutResponse
    from contribcheck.models.trial import Sample, StrategyResult

USAGE = (
    "Usage:   contribcheck {USERDIR}\\{userid} {appId} "
    "{RuleContribution|OptionalFeatureContribution}\n"
    "Example: contribcheck INTERNAL\\sa_api "
    "4a03b166-af2c-4784-b17b-1b22dcf5ed4c RuleContribution"
)

NS_PER_MS = 1_000_000


def format_duration(duration_ns: int) -> str:
    """Format nanoseconds as milliseconds with three decimals."""
    return f"{duration_ns / NS_PER_MS:.3f} ms"


def format_diff(diff_ns: int) -> str:
    """Format a signed difference."""
    sign = "+" if diff_ns >= 0 else "-"
    return f"{sign}{format_duration(abs(diff_ns))}"


class ConsoleReporter:
    """Writes everything the user sees. Also serves as the trial observer."""

    console: Console

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # --- Startup ---

    def usage(self, error: str | None = None) -> None:
        """Print the argument error, if any, followed by usage text."""
        self.console.print("Error parsing arguments.", markup=False)
        if error:
            self.console.print(
                error,
                markup=False,
                highlight=False,
                soft_wrap=True,
            )
        self.console.print(
            USAGE,
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    def startup(self, identity: Identity, app_id: UUID) -> None:
        """Print who runs the check and against which app."""
        self.console.print(f"Running test as user: {escape(str(identity))}")
        self.console.print(f"Connection to app:    {app_id}")

    def probe_started(self) -> None:
        self.console.print("Connecting to server... ", end="")

    def probe_succeeded(self, about: AboutResponse) -> None:
        self.console.print(
            "[green]Success![/green] Connected to repository version: "
            f"{escape(about.build_version)}"
        )
        self.console.print()

    def probe_failed(self, error: BaseException) -> None:
        """Print the failure with its full cause chain."""
        self.console.print("[red]Failed![/red]")
        self.console.print(
            f"Exception: {error}",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )
        cause = error.__cause__
        while cause is not None:
            self.console.print(
                f"Caused by: {type(cause).__name__}: {cause}",
                markup=False,
                highlight=False,
                soft_wrap=True,
            )
            cause = cause.__cause__

    def error(self, message: str) -> None:
        self.console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)

    def trial_aborted(self, error: BaseException) -> None:
        """Report a failure in the middle of a strategy. No summary follows."""
        self.console.print()
        self.console.print("[red]Trial aborted[/red]")
        self.console.print(
            f"Exception: {error}",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )

    # --- Progress (observer protocol) ---

    def on_section(self, title: str) -> None:
        self.console.print(f"[bold]**** {escape(title)} ****[/bold]")

    def on_cache_clear_start(self) -> None:
        self.console.print("Clearing rule cache... ", end="")

    def on_cache_clear_done(self) -> None:
        self.console.print("[green]Done![/green]")

    def on_request(self, endpoint: str) -> None:
        self.console.print(f"Calling endpoint {escape(endpoint)}... ", end="")

    def on_sample(self, sample: Sample) -> None:
        self.console.print(
            f"[green]Done![/green] ({format_duration(sample.duration_ns)})"
        )

    # --- Summary ---

    def summary(self, result: StrategyResult) -> None:
        """Render the summary for either strategy."""
        self.console.print()
        self.console.print("[bold]**** Test Result Summary ****[/bold]")
        if isinstance(result, RuleContributionResult):
            self._rule_summary(result)
        elif isinstance(result, OptionalFeatureContributionResult):
            self._feature_summary(result)

    def _rule_summary(self, result: RuleContributionResult) -> None:
        contribution = result.contribution
        table = Table(show_header=False, box=None)
        table.add_column("", style="dim")
        table.add_column("")
        table.add_row("Time to open app test 1", format_duration(contribution.baseline_ns))
        table.add_row(
            "Time to open app test 2",
            f"{format_duration(contribution.variant_ns)} "
            f"(diff from test 1: {format_diff(contribution.absolute_diff_ns)})",
        )
        table.add_row(
            "Time to count connections",
            format_duration(result.warming.duration_ns),
        )
        table.add_row(
            "Estimated rule contribution",
            f"{contribution.percentage:.1f}%",
        )
        self.console.print(table)

    def _feature_summary(self, result: OptionalFeatureContributionResult) -> None:
        used = result.enabled.sample_count_used
        self.console.print(
            f"[dim]{result.repeat_count} calls per condition, "
            f"first call excluded, {used} averaged[/dim]"
        )
        table = Table(show_header=True, header_style="bold")
        table.add_column("Condition", style="dim")
        table.add_column("Total", justify="right")
        table.add_column("Average", justify="right")
        table.add_row(
            "Feature enabled",
            format_duration(result.enabled.total_ns),
            format_duration(result.enabled.average_ns),
        )
        table.add_row(
            "Feature disabled",
            format_duration(result.disabled.total_ns),
            format_duration(result.disabled.average_ns),
        )
        table.add_row(
            "Difference",
            format_diff(result.total_diff.diff_ns),
            format_diff(result.average_diff.diff_ns),
        )
        self.console.print(table)
