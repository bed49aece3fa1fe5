from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table

from .aggregate import run_totals
from .normalize.schema import ContextSummary, EligibilityRecord


def build_summary_table(summaries: Sequence[ContextSummary]) -> Table:
    table = Table(title="Flex Consumption Migration Summary", show_header=True, header_style="bold")
    table.add_column("Subscription", style="cyan")
    table.add_column("Subscription ID", style="white")
    table.add_column("Total", justify="right")
    table.add_column("Eligible", justify="right", style="green")
    table.add_column("Ineligible", justify="right", style="red")
    for s in summaries:
        table.add_row(
            s.subscription_name,
            s.subscription_id,
            str(s.total_apps),
            str(s.eligible_apps),
            str(s.ineligible_apps),
        )
    return table


def print_console_summary(
    summaries: Sequence[ContextSummary],
    records: Sequence[EligibilityRecord],
    *,
    console: Optional[Console] = None,
) -> None:
    """Print the per-subscription table followed by run totals."""
    out = console or Console()
    totals = run_totals(summaries)
    out.print(build_summary_table(summaries))
    out.print(f"Subscriptions with apps: {totals.subscriptions_with_apps}")
    out.print(f"Total apps: {len(records)}")
    out.print(f"Eligible for migration: {totals.eligible_apps}")
    out.print(f"Not eligible: {totals.ineligible_apps}")
