"""Interface for presenting dispatch progress and results to the user.

Defines the contract for displaying information, errors, warnings, live
dispatch events and the final result set, allowing different UI
implementations (e.g., rich console, plain JSON).
"""

import abc
from typing import Any, Dict

from fanout.domain.events.dispatch_events import DomainEvent
from fanout.domain.models.outcome import ResultSet


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_event(self, event: DomainEvent) -> None:
        """Renders one dispatch event as a progress line.

        Args:
            event: The domain event emitted by the dispatcher.
        """
        pass

    @abc.abstractmethod
    def display_results(self, results: ResultSet, **kwargs: Any) -> None:
        """Renders the final result set.

        Args:
            results: The outcomes of every dispatched target.
            **kwargs: Additional arguments (e.g., ``as_json=True``).
        """
        pass

    def display_settings(self, settings: Dict[str, Any]) -> None:
        """Displays effective configuration values.

        Args:
            settings: Mapping of setting name to value.
        """
        pass
