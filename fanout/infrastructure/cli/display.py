import json
import logging
from typing import Any, Dict, Optional

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fanout.domain.interfaces.user_interface import UserInterface
from fanout.domain.events.dispatch_events import (
    DomainEvent, OperationFailed, OperationInitiated, OperationSucceeded,
    RetryScheduled,
)
from fanout.domain.models.outcome import FULFILLED, Fulfilled, ResultSet

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    "fulfilled": "bold green",
    "rejected": "bold red",
}


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()
        self.event_count = 0

    @property
    def console(self):
        """Get the Rich console instance for direct operations."""
        return self._console

    @console.setter
    def console(self, value: Console) -> None:
        self._console = value

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        self.console.print(f"[blue]Info:[/blue] {info_message}")

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        self.console.print(f"[bold yellow]Warning:[/bold yellow] {warning_message}")

    def display_event(self, event: DomainEvent) -> None:
        """Prints a one-line progress message for the interesting events.

        Admission and settlement bookkeeping events are only counted.
        """
        self.event_count += 1
        line = self._format_event(event)
        if line is not None:
            self.console.print(line, highlight=False)

    @staticmethod
    def _format_event(event: DomainEvent) -> Optional[str]:
        if isinstance(event, OperationInitiated):
            return f"[cyan]Requesting[/cyan] {escape(str(event.target))} [dim](attempt {event.attempt_number})[/dim]"
        if isinstance(event, OperationSucceeded):
            return f"[green]Success[/green] {escape(str(event.target))} [dim]({event.latency_ms:.0f} ms)[/dim]"
        if isinstance(event, RetryScheduled):
            return (
                f"[yellow]Failed[/yellow] {escape(str(event.target))} ({escape(event.error_message)}). "
                f"Retrying in {event.delay_seconds:.2f}s..."
            )
        if isinstance(event, OperationFailed):
            return f"[red]{escape(event.error_message)}[/red]"
        return None

    def display_results(self, results: ResultSet, **kwargs: Any) -> None:
        """Renders the result set as a table, or as JSON when ``as_json`` is set.

        Args:
            results: The result set to render.
            **kwargs: ``as_json`` (bool) switches to plain JSON output.
        """
        if kwargs.get("as_json", False):
            self.console.out(json.dumps(results.to_dicts(), indent=2, default=str), highlight=False)
            return

        table = Table(title="Dispatch Results", show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("#", justify="right", style="dim")
        table.add_column("Target")
        table.add_column("Status")
        table.add_column("Attempts", justify="right")
        table.add_column("Value / Reason")

        for outcome in results:
            detail = str(outcome.value) if isinstance(outcome, Fulfilled) else str(outcome.reason)
            table.add_row(
                str(outcome.index),
                Text(str(outcome.target)),
                Text(outcome.status, style=STATUS_STYLES[outcome.status]),
                str(outcome.attempts),
                Text(detail),
            )

        summary = results.summary()
        self.console.print("")
        self.console.print(table)
        self.console.print(
            f"All requests finished: {summary['total']} total, "
            f"[green]{summary[FULFILLED]} fulfilled[/green], "
            f"[red]{summary['rejected']} rejected[/red]"
        )

    def display_settings(self, settings: Dict[str, Any]) -> None:
        table = Table(show_header=True, box=SIMPLE, border_style="cyan", padding=(0, 1))
        table.add_column("Setting")
        table.add_column("Value")
        for key, value in settings.items():
            table.add_row(key, "-" if value is None else str(value))
        self.console.print(table)
