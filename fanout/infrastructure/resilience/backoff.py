"""Exponential backoff policy.

Maps a retry index to the wait before that retry. Pure and deterministic.
"""

import math
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_BASE_DELAY_S = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0


def compute_delay(
    attempt_index: int,
    base_delay: float = DEFAULT_BASE_DELAY_S,
    max_delay: Optional[float] = None,
    factor: float = DEFAULT_BACKOFF_FACTOR,
) -> float:
    """Returns the wait in seconds before retry number ``attempt_index``.

    Args:
        attempt_index: 0 for the first retry, 1 for the second, and so on.
        base_delay: Wait before the first retry, in seconds.
        max_delay: Optional ceiling on the returned wait.
        factor: Growth multiplier between consecutive retries.

    Returns:
        ``base_delay * factor ** attempt_index``, capped at ``max_delay``.

    Raises:
        ValueError: If any argument is negative.
    """
    if attempt_index < 0:
        raise ValueError(f"attempt_index must be >= 0, got {attempt_index}")
    if base_delay < 0:
        raise ValueError(f"base_delay must be >= 0, got {base_delay}")
    if max_delay is not None and max_delay < 0:
        raise ValueError(f"max_delay must be >= 0, got {max_delay}")

    if base_delay == 0:
        return 0.0
    try:
        delay = base_delay * (factor ** attempt_index)
    except OverflowError:
        # Growth past the float range; only the ceiling bounds it
        delay = math.inf
    if max_delay is not None:
        delay = min(delay, max_delay)
    return delay


@dataclass(frozen=True)
class BackoffPolicy:
    """Value Object representing retry backoff configuration."""
    base_delay: float = DEFAULT_BASE_DELAY_S
    factor: float = DEFAULT_BACKOFF_FACTOR
    max_delay: Optional[float] = None

    def delay(self, attempt_index: int) -> float:
        return compute_delay(attempt_index, self.base_delay, self.max_delay, self.factor)

    def schedule(self, retries: int) -> List[float]:
        """The successive waits used by ``retries`` retries."""
        return [self.delay(i) for i in range(retries)]
