"""Defines common Value Objects used across the dispatcher.

These objects represent simple values or settings bundles like target
positions and the dispatch/simulation configuration.
"""

from dataclasses import dataclass
from typing import NewType, Optional

# === Core Value Objects ===

TargetIndex = NewType("TargetIndex", int)      # Position of a target in the submitted sequence

# === Defaults ===
DEFAULT_CONCURRENCY_LIMIT = 2
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0

# --- Settings Bundles ---

@dataclass(frozen=True)
class DispatchSettings:
    """Effective dispatcher configuration."""
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: Optional[float] = None


@dataclass(frozen=True)
class SimulationSettings:
    """Failure and latency profile of the simulated remote operation."""
    transient_rate: float = 0.2
    permanent_rate: float = 0.1
    min_latency: float = 0.5
    max_latency: float = 1.5
    seed: Optional[int] = None
