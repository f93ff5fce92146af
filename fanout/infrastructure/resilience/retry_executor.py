"""Executes one target's operation with automatic retries.

Transient failures are retried with exponential backoff until the retry
budget runs out; permanent failures settle immediately. Every call ends in
exactly one Outcome, failures included.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from fanout.domain.interfaces.operation import Operation
from fanout.domain.models.common import TargetIndex
from fanout.domain.models.errors import (
    FinalFailureError, OperationError, RetryExhaustedError,
)
from fanout.domain.models.outcome import Fulfilled, Outcome, Rejected
from fanout.domain.events.dispatch_events import (
    EventSink, OperationFailed, OperationInitiated, OperationSucceeded,
    RetryScheduled, publish,
)
from fanout.infrastructure.resilience.backoff import BackoffPolicy

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]

DEFAULT_MAX_RETRIES = 3


class RetryExecutor:
    """Runs an operation for a single target with retry and backoff."""

    def __init__(
        self,
        operation: Operation,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay: float = 1.0,
        max_delay: Optional[float] = None,
        sleep: SleepFn = asyncio.sleep,
        event_sink: Optional[EventSink] = None,
    ):
        """Initializes the RetryExecutor.

        Args:
            operation: The operation capability to invoke.
            max_retries: Retries allowed after the first attempt.
            base_delay: Delay in seconds before the first retry.
            max_delay: Optional ceiling on any single backoff delay.
            sleep: Awaitable used for backoff waits (injectable for tests).
            event_sink: Optional receiver for domain events.
        """
        self.operation = operation
        self.max_retries = max_retries
        self.policy = BackoffPolicy(base_delay=base_delay, max_delay=max_delay)
        self._sleep = sleep
        self._event_sink = event_sink

        logger.debug(
            f"RetryExecutor initialized: operation={operation.name}, max_retries={max_retries}, "
            f"base_delay={base_delay}s, max_delay={max_delay}"
        )

    async def execute(self, index: TargetIndex, target: Any) -> Outcome:
        """Runs the operation for ``target`` until it settles.

        Args:
            index: Position of the target in the submitted sequence.
            target: The target handed to ``operation.perform``.

        Returns:
            Fulfilled with the operation's value, or Rejected with a
            FinalFailureError (RetryExhaustedError when retries ran out).
        """
        retries_used = 0

        while True:
            attempt_number = retries_used + 1
            publish(OperationInitiated(index=index, target=target, attempt_number=attempt_number), self._event_sink)
            logger.info(f"Requesting: {target} (attempt {attempt_number}/{self.max_retries + 1})")
            start_time = time.perf_counter()
            try:
                value = await self.operation.perform(target)
            except OperationError as e:
                if not e.retryable:
                    return self._reject(index, target, FinalFailureError(target, e), attempt_number)
                if retries_used >= self.max_retries:
                    return self._reject(index, target, RetryExhaustedError(target, e, retries_used), attempt_number)

                delay = self.policy.delay(retries_used)
                logger.warning(f"Failed {target} ({e}). Retrying in {delay:.2f}s...")
                publish(
                    RetryScheduled(index=index, target=target, attempt_number=attempt_number,
                                   delay_seconds=delay, error_message=str(e)),
                    self._event_sink,
                )
                await self._sleep(delay)
                retries_used += 1
            except Exception as e:
                # Unclassified errors are not retried
                logger.error(f"Unexpected error from {self.operation.name} for {target}: {e}", exc_info=True)
                return self._reject(index, target, FinalFailureError(target, e), attempt_number)
            else:
                latency_ms = (time.perf_counter() - start_time) * 1000
                logger.info(f"Success: {target}")
                publish(
                    OperationSucceeded(index=index, target=target, attempt_number=attempt_number, latency_ms=latency_ms),
                    self._event_sink,
                )
                return Fulfilled(index=index, target=target, value=value, attempts=attempt_number)

    def _reject(self, index: TargetIndex, target: Any, reason: FinalFailureError, attempts: int) -> Rejected:
        logger.error(str(reason))
        publish(
            OperationFailed(index=index, target=target, error_type=type(reason.cause).__name__,
                            error_message=str(reason), exhausted=reason.exhausted),
            self._event_sink,
        )
        return Rejected(index=index, target=target, reason=reason, attempts=attempts)
