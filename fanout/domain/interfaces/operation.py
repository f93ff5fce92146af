"""Interface for remote operations executed by the dispatcher.

Defines the contract for performing a single request against a target.
Implementations classify their own failures so the retry layer can decide
between retrying and giving up.
"""

import abc
from typing import Any


class Operation(abc.ABC):
    """Abstract Base Class for a remote operation capability."""

    @abc.abstractmethod
    async def perform(self, target: Any) -> Any:
        """Performs the operation against one target asynchronously.

        Args:
            target: Opaque target identifier or request descriptor.

        Returns:
            The operation's result value.

        Raises:
            TransientError: On a retryable failure.
            PermanentError: On a non-retryable failure.
        """
        pass

    @property
    def name(self) -> str:
        """Human readable name used in logs."""
        return self.__class__.__name__
