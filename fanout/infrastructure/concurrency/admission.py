"""Concurrency admission control for dispatched targets.

Starts jobs in submission order and keeps at most ``concurrency_limit`` of
them in flight. Admission is eager: a job is started first, and only when the
active set is full does the loop wait for the earliest settlement among all
active jobs before considering the next target. After the last job starts the
loop drains the active set.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Iterable, Optional, Set, Tuple

from fanout.domain.models.errors import ConfigurationError
from fanout.domain.events.dispatch_events import (
    AdmissionDeferred, EventSink, TargetAdmitted, publish,
)

logger = logging.getLogger(__name__)

JobFactory = Callable[[], Coroutine[Any, Any, Any]]
Job = Tuple[int, Any, JobFactory]


def validate_concurrency_limit(concurrency_limit: Any) -> int:
    """Ensures the limit is a positive integer.

    Raises:
        ConfigurationError: For non-integers (bool included) or values below 1.
    """
    if isinstance(concurrency_limit, bool) or not isinstance(concurrency_limit, int):
        raise ConfigurationError(f"concurrency_limit must be an integer, got {concurrency_limit!r}")
    if concurrency_limit < 1:
        raise ConfigurationError(f"concurrency_limit must be >= 1, got {concurrency_limit}")
    return concurrency_limit


class AdmissionController:
    """Bounds the number of simultaneously running jobs."""

    def __init__(self, concurrency_limit: int, event_sink: Optional[EventSink] = None):
        """Initializes the controller.

        Args:
            concurrency_limit: Maximum number of jobs in flight (>= 1).
            event_sink: Optional receiver for admission events.

        Raises:
            ConfigurationError: If the limit is not a positive integer.
        """
        self.concurrency_limit = validate_concurrency_limit(concurrency_limit)
        self._event_sink = event_sink
        self._active: Set[asyncio.Task] = set()
        self.peak_active = 0

    @property
    def active_count(self) -> int:
        return len(self._active)

    async def admit_all(self, jobs: Iterable[Job]) -> None:
        """Starts every job under the concurrency ceiling and waits for all of them.

        Args:
            jobs: ``(index, target, job_factory)`` tuples in submission order.
                ``job_factory()`` must return a coroutine that does not raise.
        """
        for index, target, job_factory in jobs:
            task = asyncio.ensure_future(job_factory())
            self._active.add(task)
            task.add_done_callback(self._active.discard)
            self.peak_active = max(self.peak_active, len(self._active))
            logger.debug(f"Admitted target #{index} ({target}); active={len(self._active)}/{self.concurrency_limit}")
            publish(TargetAdmitted(index=index, target=target, active_count=len(self._active)), self._event_sink)

            if len(self._active) >= self.concurrency_limit:
                publish(
                    AdmissionDeferred(active_count=len(self._active), concurrency_limit=self.concurrency_limit,
                                      next_index=index + 1),
                    self._event_sink,
                )
                await self._wait_for_settlement()

        logger.debug(f"All targets admitted; draining {len(self._active)} active job(s)")
        while self._active:
            await self._wait_for_settlement()

    async def _wait_for_settlement(self) -> None:
        """Suspends until at least one active job finishes, then drops finished jobs."""
        done, _ = await asyncio.wait(set(self._active), return_when=asyncio.FIRST_COMPLETED)
        self._active.difference_update(done)
        for task in done:
            if task.cancelled() or task.exception() is not None:
                # Job coroutines settle into outcomes; a raising job is a bug
                await self._cancel_active()
                task.result()

    async def _cancel_active(self) -> None:
        """Cancels every job still in flight and waits until they have stopped."""
        pending = list(self._active)
        if pending:
            logger.warning(f"Cancelling {len(pending)} active job(s) after a job failed")
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._active.clear()
