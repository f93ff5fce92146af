"""Error taxonomy for the dispatcher.

Operations signal failures with an explicit classification (transient or
permanent) so the retry layer never has to guess from an error message.
Final failures wrap the original cause together with the target.
"""

import enum
from typing import Any, Optional


class FailureClass(str, enum.Enum):
    """Whether a failed operation may be retried."""
    TRANSIENT = "transient"
    PERMANENT = "permanent"


class FanoutError(Exception):
    """Base class for all fanout errors."""


# --- Errors raised by operations ---

class OperationError(FanoutError):
    """A classified failure raised by an operation capability."""

    classification: FailureClass = FailureClass.PERMANENT

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        return self.classification is FailureClass.TRANSIENT


class TransientError(OperationError):
    """Retryable failure (server-side errors, throttling, timeouts)."""
    classification = FailureClass.TRANSIENT


class PermanentError(OperationError):
    """Non-retryable failure (client-side errors)."""
    classification = FailureClass.PERMANENT


# Client-side statuses that are still worth retrying
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


def error_for_status(status_code: int, message: Optional[str] = None) -> OperationError:
    """Builds the classified error for an HTTP-style status code.

    5xx responses, 408 and 429 are transient; any other status is permanent.

    Args:
        status_code: The status code returned by the remote side.
        message: Optional description, defaults to the bare status code.

    Returns:
        A TransientError or PermanentError carrying the status code.
    """
    text = message or str(status_code)
    if status_code >= 500 or status_code in RETRYABLE_CLIENT_STATUSES:
        return TransientError(text, status_code=status_code)
    return PermanentError(text, status_code=status_code)


# --- Final failures (rejection reasons) ---

class FinalFailureError(FanoutError):
    """Terminal failure of a target; used as the reason of a Rejected outcome."""

    def __init__(self, target: Any, cause: BaseException):
        self.target = target
        self.cause = cause
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return f"Final failure for {self.target}: {self.cause}"

    @property
    def exhausted(self) -> bool:
        return False


class RetryExhaustedError(FinalFailureError):
    """Raised when a transient failure persisted through every retry."""

    def __init__(self, target: Any, cause: BaseException, retries: int):
        self.retries = retries
        super().__init__(target, cause)

    def _format_message(self) -> str:
        return (
            f"Final failure for {self.target}: retries exhausted after "
            f"{self.retries} retries (last error: {self.cause})"
        )

    @property
    def exhausted(self) -> bool:
        return True


# --- Programming and configuration errors ---

class ConfigurationError(FanoutError, ValueError):
    """Invalid dispatcher configuration, raised before any target is admitted."""


class AggregationError(FanoutError, RuntimeError):
    """Outcome recorded twice, out of range, or results finalized too early."""
