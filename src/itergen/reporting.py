"""Console rendering of run events (Rich).

The engines only emit :class:`~itergen.events.RunEvent` objects; this module is the single place
that turns them into terminal output.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from itergen.events import ContentType, RunEvent
from itergen.orchestrator.state import AssignmentReport, GenerationReport, RunOutcome


class ConsoleReporter:
    """Print one line per meaningful event."""

    def __init__(self, console: Console, *, verbose: bool = False) -> None:
        self._console = console
        self._verbose = verbose

    def handle(self, event: RunEvent) -> None:
        data = event.data if isinstance(event.data, dict) else {}
        ct = event.content_type
        path = escape(str(data.get("path", "")))

        if ct is ContentType.RUN_STARTED:
            self._console.print(f"[bold cyan]Run {event.run_id}[/bold cyan] started")
        elif ct is ContentType.TREE_FETCHED:
            self._console.print(f"[dim]Fetched tree {path} (depth {data.get('depth')})[/dim]")
        elif ct is ContentType.NODE_ATTEMPTED and self._verbose:
            self._console.print(f"[dim]  ? {path}[/dim]")
        elif ct is ContentType.NODE_CREATED:
            self._console.print(f"  [green]+[/green] {path} (id={data.get('id')})")
        elif ct is ContentType.NODE_MATCHED_EXISTING:
            self._console.print(f"  [yellow]=[/yellow] {path} already exists")
        elif ct is ContentType.NODE_SUBSCRIBED:
            self._console.print(f"  [green]->[/green] team subscribed to {path}")
        elif ct is ContentType.SUBSCRIPTION_FAILED:
            failed = escape(str(event.metadata.get("path")))
            self._console.print(f"  [red]x[/red] subscription failed for {failed}: {escape(str(event.data))}")
        elif ct is ContentType.LIMIT_REACHED:
            self._console.print(f"[bold yellow]Stopped:[/bold yellow] {escape(str(event.data))}")

    def error(self, message: str) -> None:
        self._console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def build_ledger_table(report: GenerationReport) -> Table:
    table = Table(title="Generated nodes")
    table.add_column("Path", style="cyan")
    table.add_column("Id", style="white")
    table.add_column("Status", style="green")
    for entry in report.ledger:
        table.add_row(escape(entry.node.label()), str(entry.node.id if entry.node.id is not None else "n/a"),
                      "created" if entry.created else "existing")
    return table


def print_generation_summary(console: Console, report: GenerationReport) -> None:
    console.print(build_ledger_table(report))
    console.print(
        f"created={report.created_count} existing={report.matched_count} "
        f"subscribed={report.subscribed} subscription_failures={report.subscription_failures}"
    )
    if report.outcome is RunOutcome.STOPPED_AT_LIMIT:
        console.print("[yellow]Team subscriptions stopped at the iteration limit; created nodes are kept.[/yellow]")


def print_assignment_summary(console: Console, report: AssignmentReport) -> None:
    console.print(
        f"visited={report.visited} subscribed={report.subscribed} "
        f"skipped={report.skipped} failures={report.failures} outcome={report.outcome.value}"
    )
