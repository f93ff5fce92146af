"""Domain Events related to dispatching targets.

Covers operation attempts, scheduled retries, admission decisions and
settlement of each target.
"""

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# Base Event Class
@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

EventSink = Callable[[DomainEvent], None]

# --- Operation Events ---

@dataclass
class OperationInitiated(DomainEvent):
    """Event triggered when an operation attempt is about to be made."""
    index: int
    target: Any
    attempt_number: int # 1-based
    timestamp: float = field(default_factory=time.time)

@dataclass
class OperationSucceeded(DomainEvent):
    """Event triggered when an operation attempt succeeds."""
    index: int
    target: Any
    attempt_number: int
    latency_ms: float
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a transient failure will be retried."""
    index: int
    target: Any
    attempt_number: int
    delay_seconds: float
    error_message: str
    timestamp: float = field(default_factory=time.time)

@dataclass
class OperationFailed(DomainEvent):
    """Event triggered when a target fails definitively (permanent or exhausted)."""
    index: int
    target: Any
    error_type: str
    error_message: str
    exhausted: bool = False
    timestamp: float = field(default_factory=time.time)

# --- Admission Events ---

@dataclass
class TargetAdmitted(DomainEvent):
    """Event triggered when a target is started under the concurrency ceiling."""
    index: int
    target: Any
    active_count: int
    timestamp: float = field(default_factory=time.time)

@dataclass
class AdmissionDeferred(DomainEvent):
    """Event triggered when admission pauses until an active target settles."""
    active_count: int
    concurrency_limit: int
    next_index: Optional[int] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class TargetSettled(DomainEvent):
    """Event triggered when a target's outcome is recorded."""
    index: int
    target: Any
    status: str # 'fulfilled' or 'rejected'
    attempts: int
    timestamp: float = field(default_factory=time.time)


def publish(event: DomainEvent, sink: Optional[EventSink] = None) -> None:
    """Logs the event and hands it to the sink, if one is attached."""
    logger.debug(f"EVENT: {event}")
    if sink is not None:
        sink(event)
