"""Results display utilities for CLI output."""

from rich.console import Console
from rich.table import Table

from async_fanout.core.execution.result_types import AggregationReport


def build_outcomes_table(report: AggregationReport) -> Table:
    """Build a table with one row per dispatched service, in request order."""
    table = Table(title=f"Outcomes ({report.policy})")
    table.add_column("#", justify="right")
    table.add_column("Service")
    table.add_column("Status")
    table.add_column("Value / Error", overflow="fold")

    for outcome in report.outcomes:
        if outcome.is_success:
            status = "[green]✓ success[/green]"
            detail = str(outcome.value)
        else:
            status = "[red]✗ failed[/red]"
            detail = str(outcome.error) or type(outcome.error).__name__
        table.add_row(str(outcome.index), outcome.service_id, status, detail)

    return table


def display_report(report: AggregationReport, detailed: bool = False) -> None:
    """Display an aggregation report with Rich formatting."""
    console = Console(soft_wrap=True, highlight=False)

    if detailed:
        if report.outcomes:
            console.print(build_outcomes_table(report))
        else:
            console.print("[dim]No services were dispatched[/dim]")

    if isinstance(report.result, list):
        for value in report.result:
            console.print(value, markup=False)
    elif report.result is not None:
        console.print(report.result, markup=False)
