"""Outcome value objects and the final ResultSet.

An Outcome is created exactly once per target, at settlement, and never
changes afterwards. The ResultSet keeps outcomes in completion order and can
also hand them back in submission order.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from fanout.domain.models.common import TargetIndex

FULFILLED = "fulfilled"
REJECTED = "rejected"


@dataclass(frozen=True)
class Fulfilled:
    """Target settled successfully."""
    index: TargetIndex
    target: Any
    value: Any
    attempts: int = 1

    @property
    def status(self) -> str:
        return FULFILLED

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"status": FULFILLED, "value": self.value}


@dataclass(frozen=True)
class Rejected:
    """Target settled with a final failure."""
    index: TargetIndex
    target: Any
    reason: BaseException
    attempts: int = 1

    @property
    def status(self) -> str:
        return REJECTED

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {"status": REJECTED, "reason": str(self.reason)}


Outcome = Union[Fulfilled, Rejected]


class ResultSet:
    """Immutable collection of every target's Outcome.

    Iteration follows completion order. Use ``ordered()`` or ``get(index)``
    to map outcomes back to the submitted targets.
    """

    def __init__(self, outcomes: Sequence[Outcome]):
        self._outcomes: tuple = tuple(outcomes)
        self._by_index: Dict[int, Outcome] = {o.index: o for o in self._outcomes}

    def __len__(self) -> int:
        return len(self._outcomes)

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self._outcomes)

    def __repr__(self) -> str:
        counts = self.summary()
        return f"ResultSet(total={counts['total']}, fulfilled={counts[FULFILLED]}, rejected={counts[REJECTED]})"

    def get(self, index: int) -> Optional[Outcome]:
        """Returns the outcome of the target submitted at ``index``."""
        return self._by_index.get(index)

    def ordered(self) -> List[Outcome]:
        """Outcomes in submission order."""
        return [self._by_index[i] for i in sorted(self._by_index)]

    @property
    def fulfilled(self) -> List[Fulfilled]:
        return [o for o in self._outcomes if o.ok]

    @property
    def rejected(self) -> List[Rejected]:
        return [o for o in self._outcomes if not o.ok]

    def summary(self) -> Dict[str, int]:
        rejected = len(self.rejected)
        return {"total": len(self), FULFILLED: len(self) - rejected, REJECTED: rejected}

    def to_dicts(self) -> List[Dict[str, Any]]:
        """Plain ``{"status": ..., "value"/"reason": ...}`` records, completion order."""
        return [o.to_dict() for o in self._outcomes]
