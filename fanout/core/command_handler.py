"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), builds the operation
and the DispatchService for them, and reports progress and results through
the UserInterface.
"""

import logging
from dataclasses import asdict
from typing import Any, Callable, List, Optional

# Core Services Imports
from fanout.core.services.dispatch_service import DispatchService

# Domain Layer Imports
from fanout.domain.interfaces.operation import Operation
from fanout.domain.interfaces.user_interface import UserInterface
from fanout.domain.models.common import DispatchSettings, SimulationSettings
from fanout.domain.models.errors import ConfigurationError
from fanout.domain.models.outcome import ResultSet

logger = logging.getLogger(__name__)

OperationFactory = Callable[[SimulationSettings], Operation]


class CommandHandler:
    """Handles incoming commands and delegates to the dispatch service."""

    def __init__(self, ui: UserInterface, operation_factory: OperationFactory):
        """Initializes the CommandHandler.

        Args:
            ui: Where progress, errors and results are displayed.
            operation_factory: Builds the operation for a given simulation profile.
        """
        self.ui = ui
        self.operation_factory = operation_factory

    async def handle_run(
        self,
        targets: List[Any],
        settings: DispatchSettings,
        simulation: SimulationSettings,
        as_json: bool = False,
    ) -> Optional[ResultSet]:
        """Handles the 'run' command.

        Returns:
            The ResultSet, or None when the configuration was rejected.
        """
        logger.info(f"Handling 'run' command for {len(targets)} target(s)")
        try:
            operation = self.operation_factory(simulation)
            # JSON mode prints nothing but the results
            event_sink = None if as_json else self.ui.display_event
            service = DispatchService(operation, event_sink=event_sink)
            if not as_json:
                self.ui.display_info(
                    f"Starting {len(targets)} request(s) with concurrency limit: {settings.concurrency_limit}"
                )
            results = await service.run(
                targets,
                settings.concurrency_limit,
                max_retries=settings.max_retries,
                base_delay=settings.base_delay,
                max_delay=settings.max_delay,
            )
        except ConfigurationError as e:
            self.handle_configuration_error(e)
            return None

        self.ui.display_results(results, as_json=as_json)
        if results.rejected and not as_json:
            self.ui.display_warning(f"{len(results.rejected)} of {len(results)} target(s) were rejected")
        return results

    def handle_configuration_error(self, error: ConfigurationError) -> None:
        """Reports settings that were rejected before anything was dispatched."""
        logger.error(f"Configuration rejected: {error}")
        self.ui.display_error(f"Invalid configuration: {error}")

    def handle_show_config(self, settings: DispatchSettings, simulation: SimulationSettings) -> None:
        """Handles the 'show-config' command."""
        logger.info("Handling 'show-config' command")
        values = {f"dispatch.{k}": v for k, v in asdict(settings).items()}
        values.update({f"simulation.{k}": v for k, v in asdict(simulation).items()})
        self.ui.display_settings(values)
