"""Outcome Aggregator: collects the settled outcome of every target."""

import logging
from typing import Dict, List

from fanout.domain.models.errors import AggregationError
from fanout.domain.models.outcome import Outcome, ResultSet

logger = logging.getLogger(__name__)


class OutcomeAggregator:
    """Records exactly one Outcome per submitted target.

    Outcomes arrive in completion order; each is keyed by its target index so
    the final ResultSet can be mapped back to the submitted sequence.
    """

    def __init__(self, expected: int):
        if expected < 0:
            raise AggregationError(f"expected must be >= 0, got {expected}")
        self.expected = expected
        self._by_index: Dict[int, Outcome] = {}
        self._completion_order: List[Outcome] = []

    @property
    def recorded(self) -> int:
        return len(self._completion_order)

    @property
    def is_complete(self) -> bool:
        return self.recorded == self.expected

    def record(self, outcome: Outcome) -> None:
        """Stores a settled outcome.

        Raises:
            AggregationError: If the index is out of range or already recorded.
        """
        index = outcome.index
        if not 0 <= index < self.expected:
            raise AggregationError(f"Outcome index {index} outside of 0..{self.expected - 1}")
        if index in self._by_index:
            raise AggregationError(f"Outcome for target #{index} already recorded")
        self._by_index[index] = outcome
        self._completion_order.append(outcome)
        logger.debug(f"Recorded {outcome.status} outcome for target #{index} ({self.recorded}/{self.expected})")

    def finalize(self) -> ResultSet:
        """Returns the ResultSet once every target has recorded.

        Raises:
            AggregationError: If some targets have not settled yet.
        """
        if not self.is_complete:
            missing = sorted(set(range(self.expected)) - set(self._by_index))
            raise AggregationError(f"Cannot finalize: {len(missing)} target(s) not settled: {missing}")
        return ResultSet(self._completion_order)
