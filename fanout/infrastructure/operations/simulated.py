"""Simulated remote operation.

Stands in for a real API: waits a random latency, then either returns a
response or fails with a classified 503 (transient) or 404 (permanent) error.
Seedable so runs can be reproduced.
"""

import asyncio
import logging
import random
from typing import Any, Optional

from fanout.domain.interfaces.operation import Operation
from fanout.domain.models.common import SimulationSettings
from fanout.domain.models.errors import ConfigurationError, error_for_status
from fanout.infrastructure.resilience.retry_executor import SleepFn

logger = logging.getLogger(__name__)


class SimulatedOperation(Operation):
    """Operation with a configurable latency and failure profile."""

    def __init__(
        self,
        transient_rate: float = 0.2,
        permanent_rate: float = 0.1,
        min_latency: float = 0.5,
        max_latency: float = 1.5,
        seed: Optional[int] = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        """Initializes the SimulatedOperation.

        Args:
            transient_rate: Probability of a 503 Service Unavailable.
            permanent_rate: Probability of a 404 Not Found.
            min_latency: Lower bound of the simulated latency, in seconds.
            max_latency: Upper bound of the simulated latency, in seconds.
            seed: Optional seed for reproducible runs.
            sleep: Awaitable used to simulate latency.

        Raises:
            ConfigurationError: If the rates or latencies are out of range.
        """
        for name, rate in (("transient_rate", transient_rate), ("permanent_rate", permanent_rate)):
            if not 0.0 <= rate <= 1.0:
                raise ConfigurationError(f"{name} must be within [0, 1], got {rate}")
        if transient_rate + permanent_rate > 1.0:
            raise ConfigurationError("transient_rate + permanent_rate must not exceed 1")
        if not 0.0 <= min_latency <= max_latency:
            raise ConfigurationError(
                f"Latency bounds must satisfy 0 <= min <= max, got min={min_latency}, max={max_latency}"
            )

        self.transient_rate = transient_rate
        self.permanent_rate = permanent_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self._random = random.Random(seed)
        self._sleep = sleep
        logger.debug(
            f"SimulatedOperation initialized: transient={transient_rate}, permanent={permanent_rate}, "
            f"latency={min_latency}-{max_latency}s, seed={seed}"
        )

    @classmethod
    def from_settings(cls, settings: SimulationSettings, sleep: SleepFn = asyncio.sleep) -> "SimulatedOperation":
        return cls(
            transient_rate=settings.transient_rate,
            permanent_rate=settings.permanent_rate,
            min_latency=settings.min_latency,
            max_latency=settings.max_latency,
            seed=settings.seed,
            sleep=sleep,
        )

    async def perform(self, target: Any) -> str:
        # Both draws happen before the first suspension point
        roll = self._random.random()
        latency = self._random.uniform(self.min_latency, self.max_latency)
        await self._sleep(latency)

        if roll < self.transient_rate:
            raise error_for_status(503, "503 Service Unavailable")
        if roll < self.transient_rate + self.permanent_rate:
            raise error_for_status(404, "404 Not Found")
        return f"Response data from {target}"
