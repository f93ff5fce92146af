"""Main entry point for the fanout application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Coroutine, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from fanout.core.command_handler import CommandHandler

# --- Domain Layer ---
from fanout.domain.models.errors import ConfigurationError

# --- Infrastructure Layer ---
# Config
from fanout.infrastructure.config.settings import (
    get_config, get_dispatch_settings, get_simulation_settings, load_configuration,
)
# UI
from fanout.infrastructure.cli.display import ConsoleDisplay
# Operations
from fanout.infrastructure.operations.simulated import SimulatedOperation
# Monitoring
from fanout.infrastructure.monitoring.logger_setup import setup_logging, setup_logging_from_config

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}

    # 1. Load Configuration First, then configure logging from it
    load_configuration()
    setup_logging_from_config(get_config)
    logger.debug("Configuration and logging initialized.")

    # 2. Infrastructure adapters
    dependencies['ui'] = ConsoleDisplay()
    dependencies['operation_factory'] = SimulatedOperation.from_settings

    # 3. Command handler
    dependencies['command_handler'] = CommandHandler(
        ui=dependencies['ui'],
        operation_factory=dependencies['operation_factory'],
    )
    logger.debug("All dependencies initialized successfully.")
    return dependencies

# --- Get Wired-up Dependencies ---
_dependencies: Dict[str, Any] = create_dependencies()

# --- Typer App Definition ---
app = typer.Typer(
    name="fanout",
    help="fanout: dispatch requests with bounded concurrency, retries and exponential backoff.",
    add_completion=False,
    no_args_is_help=True,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs an async command handler from a sync Typer command."""
    try:
        return asyncio.run(coro)
    except Exception as e:
        logger.error(f"Error executing async command: {e}", exc_info=True)
        _dependencies['ui'].display_error(f"Command execution failed: {e}")
        raise typer.Exit(code=1)


def _with_overrides(settings: Any, **overrides: Any) -> Any:
    """Replaces dataclass fields for every override that was actually given."""
    given = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(settings, **given)

# --- CLI Commands ---

@app.command()
def run(
    targets: Annotated[List[str], typer.Argument(help="Targets to dispatch, in submission order.")],
    limit: Annotated[Optional[int], typer.Option("--limit", "-l", help="Maximum number of requests in flight.")] = None,
    max_retries: Annotated[Optional[int], typer.Option("--max-retries", help="Retries per target after the first attempt.")] = None,
    base_delay: Annotated[Optional[float], typer.Option("--base-delay", help="Backoff before the first retry, in seconds.")] = None,
    max_delay: Annotated[Optional[float], typer.Option("--max-delay", help="Ceiling for a single backoff wait, in seconds.")] = None,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Seed for the simulated failures and latency.")] = None,
    transient_rate: Annotated[Optional[float], typer.Option("--transient-rate", help="Probability of a 503 (retried).")] = None,
    permanent_rate: Annotated[Optional[float], typer.Option("--permanent-rate", help="Probability of a 404 (not retried).")] = None,
    min_latency: Annotated[Optional[float], typer.Option("--min-latency", help="Minimum simulated latency, in seconds.")] = None,
    max_latency: Annotated[Optional[float], typer.Option("--max-latency", help="Maximum simulated latency, in seconds.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Print results as JSON instead of a table.")] = False,
    fail_on_rejected: Annotated[bool, typer.Option("--fail-on-rejected", help="Exit with code 1 if any target is rejected.")] = False,
):
    """Dispatch targets against the simulated remote API."""
    handler: CommandHandler = _dependencies['command_handler']
    try:
        settings = _with_overrides(
            get_dispatch_settings(),
            concurrency_limit=limit,
            max_retries=max_retries,
            base_delay=base_delay,
            max_delay=max_delay,
        )
        simulation = _with_overrides(
            get_simulation_settings(),
            seed=seed,
            transient_rate=transient_rate,
            permanent_rate=permanent_rate,
            min_latency=min_latency,
            max_latency=max_latency,
        )
    except ConfigurationError as e:
        handler.handle_configuration_error(e)
        raise typer.Exit(code=2)

    results = run_async(handler.handle_run(targets, settings, simulation, as_json=json_output))
    if results is None:
        raise typer.Exit(code=2)
    if fail_on_rejected and results.rejected:
        raise typer.Exit(code=1)


@app.command(name="show-config")
def show_config_command():
    """Show the effective dispatch and simulation settings."""
    handler: CommandHandler = _dependencies['command_handler']
    try:
        settings, simulation = get_dispatch_settings(), get_simulation_settings()
    except ConfigurationError as e:
        handler.handle_configuration_error(e)
        raise typer.Exit(code=2)
    handler.handle_show_config(settings, simulation)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """Bounded-concurrency request dispatcher."""
    if verbose:
        setup_logging(log_level=logging.DEBUG)
        logger.debug("Debug logging enabled.")

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
