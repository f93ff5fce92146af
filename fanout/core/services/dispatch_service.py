"""Core service for dispatching a list of targets.

Wires the Retry Executor, the Admission Controller and the Outcome Aggregator
together: every target is wrapped in a retrying job, admitted under the
concurrency ceiling, and its outcome recorded. ``run`` resolves once every
target has settled and only raises for invalid configuration.
"""

import asyncio
import logging
import numbers
from typing import Any, Iterable, Optional

# Domain Layer Imports
from fanout.domain.interfaces.operation import Operation
from fanout.domain.models.common import (
    DEFAULT_BASE_DELAY, DEFAULT_MAX_RETRIES, TargetIndex,
)
from fanout.domain.models.errors import ConfigurationError
from fanout.domain.models.outcome import ResultSet
from fanout.domain.events.dispatch_events import EventSink, TargetSettled, publish

# Core / Infrastructure Imports
from fanout.core.aggregator import OutcomeAggregator
from fanout.infrastructure.concurrency.admission import (
    AdmissionController, validate_concurrency_limit,
)
from fanout.infrastructure.resilience.retry_executor import RetryExecutor, SleepFn

logger = logging.getLogger(__name__)


def validate_retry_settings(max_retries: Any, base_delay: Any, max_delay: Any = None) -> None:
    """Checks retry parameters before anything is dispatched.

    Raises:
        ConfigurationError: If a parameter is out of range or of the wrong type.
    """
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
        raise ConfigurationError(f"max_retries must be an integer >= 0, got {max_retries!r}")
    if isinstance(base_delay, bool) or not isinstance(base_delay, numbers.Real) or base_delay < 0:
        raise ConfigurationError(f"base_delay must be a number >= 0, got {base_delay!r}")
    if max_delay is not None:
        if isinstance(max_delay, bool) or not isinstance(max_delay, numbers.Real):
            raise ConfigurationError(f"max_delay must be a number, got {max_delay!r}")
        if max_delay < base_delay:
            raise ConfigurationError(f"max_delay ({max_delay}) must be >= base_delay ({base_delay})")


class DispatchService:
    """Runs targets against an operation with bounded concurrency and retries."""

    def __init__(
        self,
        operation: Operation,
        sleep: SleepFn = asyncio.sleep,
        event_sink: Optional[EventSink] = None,
    ):
        """Initializes the DispatchService.

        Args:
            operation: The operation capability performed for each target.
            sleep: Awaitable used for backoff waits.
            event_sink: Optional receiver for every domain event.
        """
        self.operation = operation
        self._sleep = sleep
        self._event_sink = event_sink
        # Admission controller of the most recent run, kept for inspection
        self.last_controller: Optional[AdmissionController] = None

    async def run(
        self,
        targets: Iterable[Any],
        concurrency_limit: int,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = DEFAULT_BASE_DELAY,
        max_delay: Optional[float] = None,
    ) -> ResultSet:
        """Dispatches every target and collects all outcomes.

        Args:
            targets: Targets in submission order.
            concurrency_limit: Maximum operations in flight (>= 1).
            max_retries: Retries per target after the first attempt.
            base_delay: Backoff before the first retry, in seconds.
            max_delay: Optional ceiling on a single backoff wait.

        Returns:
            A ResultSet with exactly one outcome per target.

        Raises:
            ConfigurationError: If any argument is invalid. Raised before any
                target is admitted.
        """
        validate_concurrency_limit(concurrency_limit)
        validate_retry_settings(max_retries, base_delay, max_delay)
        target_list = list(targets)

        logger.info(
            f"Dispatching {len(target_list)} target(s) via {self.operation.name}: "
            f"concurrency_limit={concurrency_limit}, max_retries={max_retries}, "
            f"base_delay={base_delay}s, max_delay={max_delay}"
        )

        executor = RetryExecutor(
            self.operation,
            max_retries=max_retries,
            base_delay=base_delay,
            max_delay=max_delay,
            sleep=self._sleep,
            event_sink=self._event_sink,
        )
        controller = AdmissionController(concurrency_limit, event_sink=self._event_sink)
        aggregator = OutcomeAggregator(len(target_list))
        self.last_controller = controller

        async def settle(index: TargetIndex, target: Any) -> None:
            outcome = await executor.execute(index, target)
            aggregator.record(outcome)
            publish(
                TargetSettled(index=index, target=target, status=outcome.status, attempts=outcome.attempts),
                self._event_sink,
            )

        jobs = (
            (index, target, lambda index=index, target=target: settle(TargetIndex(index), target))
            for index, target in enumerate(target_list)
        )
        await controller.admit_all(jobs)

        results = aggregator.finalize()
        logger.info(f"All requests finished: {results!r} (peak concurrency {controller.peak_active})")
        return results


async def run(
    operation: Operation,
    targets: Iterable[Any],
    concurrency_limit: int,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: Optional[float] = None,
    event_sink: Optional[EventSink] = None,
) -> ResultSet:
    """Convenience wrapper around ``DispatchService(operation).run(...)``."""
    service = DispatchService(operation, event_sink=event_sink)
    return await service.run(
        targets,
        concurrency_limit,
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay,
    )
