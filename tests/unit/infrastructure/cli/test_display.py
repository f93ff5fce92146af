import json

import pytest
from unittest.mock import MagicMock
from rich.table import Table

from fanout.domain.events.dispatch_events import (
    OperationFailed, OperationInitiated, RetryScheduled, TargetAdmitted,
)
from fanout.domain.models.common import TargetIndex
from fanout.domain.models.errors import FinalFailureError, PermanentError
from fanout.domain.models.outcome import Fulfilled, Rejected, ResultSet
from fanout.infrastructure.cli.display import ConsoleDisplay


@pytest.fixture
def mock_console():
    """Fixture to create a mock rich Console object."""
    return MagicMock()


@pytest.fixture
def console_display(mock_console: MagicMock):
    """Fixture to create a ConsoleDisplay instance with a mocked console."""
    display = ConsoleDisplay()
    display.console = mock_console # Inject the mock
    return display


@pytest.fixture
def results():
    return ResultSet([
        Fulfilled(index=TargetIndex(1), target="API-2", value="Response data from API-2"),
        Rejected(index=TargetIndex(0), target="API-1",
                 reason=FinalFailureError("API-1", PermanentError("404 Not Found")), attempts=1),
    ])


def test_display_info(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_info("Process completed")
    mock_console.print.assert_called_once_with("[blue]Info:[/blue] Process completed")


def test_display_warning(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_warning("1 of 3 target(s) were rejected")
    mock_console.print.assert_called_once_with("[bold yellow]Warning:[/bold yellow] 1 of 3 target(s) were rejected")


def test_display_error_prints_panel(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_error("Something went wrong")
    mock_console.print.assert_called_once()


def test_display_event_prints_request_lines(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_event(OperationInitiated(index=0, target="API-1", attempt_number=2))

    mock_console.print.assert_called_once()
    line = mock_console.print.call_args.args[0]
    assert "Requesting" in line
    assert "API-1" in line
    assert "attempt 2" in line


def test_display_event_escapes_markup_in_targets(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_event(
        RetryScheduled(index=0, target="[red]x", attempt_number=1, delay_seconds=2.0, error_message="503")
    )
    line = mock_console.print.call_args.args[0]
    assert "\\[red]x" in line
    assert "Retrying in 2.00s" in line


def test_display_event_skips_bookkeeping_events(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_event(TargetAdmitted(index=0, target="API-1", active_count=1))
    mock_console.print.assert_not_called()
    assert console_display.event_count == 1


def test_display_event_prints_final_failures(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_event(
        OperationFailed(index=0, target="API-1", error_type="PermanentError",
                        error_message="Final failure for API-1: 404 Not Found")
    )
    assert "Final failure for API-1" in mock_console.print.call_args.args[0]


def test_display_results_table(console_display: ConsoleDisplay, mock_console: MagicMock, results):
    console_display.display_results(results)

    printed = [c.args[0] for c in mock_console.print.call_args_list if c.args]
    tables = [p for p in printed if isinstance(p, Table)]
    assert len(tables) == 1
    assert tables[0].row_count == 2
    assert any("1 fulfilled" in str(p) and "1 rejected" in str(p) for p in printed)


def test_display_results_json(console_display: ConsoleDisplay, mock_console: MagicMock, results):
    console_display.display_results(results, as_json=True)

    mock_console.print.assert_not_called()
    payload = json.loads(mock_console.out.call_args.args[0])
    assert payload == [
        {"status": "fulfilled", "value": "Response data from API-2"},
        {"status": "rejected", "reason": "Final failure for API-1: 404 Not Found"},
    ]


def test_display_settings(console_display: ConsoleDisplay, mock_console: MagicMock):
    console_display.display_settings({"dispatch.max_delay": None, "dispatch.max_retries": 3})

    table = mock_console.print.call_args.args[0]
    assert isinstance(table, Table)
    assert table.row_count == 2
