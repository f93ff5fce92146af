import pytest

from fanout.core.aggregator import OutcomeAggregator
from fanout.domain.models.common import TargetIndex
from fanout.domain.models.errors import AggregationError, PermanentError
from fanout.domain.models.outcome import Fulfilled, Rejected, ResultSet


def fulfilled(index, target="t", value="v"):
    return Fulfilled(index=TargetIndex(index), target=target, value=value)


def rejected(index, target="t"):
    return Rejected(index=TargetIndex(index), target=target, reason=PermanentError("404 Not Found"))


def test_finalize_keeps_completion_order_and_maps_back_to_targets():
    aggregator = OutcomeAggregator(3)
    aggregator.record(fulfilled(2, "C"))
    aggregator.record(rejected(0, "A"))
    aggregator.record(fulfilled(1, "B"))

    results = aggregator.finalize()

    assert isinstance(results, ResultSet)
    assert len(results) == 3
    assert [o.index for o in results] == [2, 0, 1]
    assert [o.target for o in results.ordered()] == ["A", "B", "C"]
    assert results.get(0).status == "rejected"
    assert results.get(5) is None


def test_duplicate_record_is_a_programming_error():
    aggregator = OutcomeAggregator(2)
    aggregator.record(fulfilled(0))
    with pytest.raises(AggregationError, match="already recorded"):
        aggregator.record(fulfilled(0))


@pytest.mark.parametrize("index", [-1, 2, 10])
def test_out_of_range_record_is_rejected(index):
    aggregator = OutcomeAggregator(2)
    with pytest.raises(AggregationError):
        aggregator.record(fulfilled(index))


def test_finalize_before_all_recorded_fails():
    aggregator = OutcomeAggregator(3)
    aggregator.record(fulfilled(1))
    assert not aggregator.is_complete
    with pytest.raises(AggregationError, match=r"2 target\(s\) not settled: \[0, 2\]"):
        aggregator.finalize()


def test_empty_aggregator_finalizes_to_empty_result():
    aggregator = OutcomeAggregator(0)
    assert aggregator.is_complete
    assert len(aggregator.finalize()) == 0


def test_result_set_summary_and_dicts():
    results = ResultSet([fulfilled(0, value="data"), rejected(1)])

    assert results.summary() == {"total": 2, "fulfilled": 1, "rejected": 1}
    assert results.to_dicts() == [
        {"status": "fulfilled", "value": "data"},
        {"status": "rejected", "reason": "404 Not Found"},
    ]
    assert len(results.fulfilled) == 1
    assert len(results.rejected) == 1
    assert "fulfilled=1" in repr(results)


def test_outcomes_are_immutable():
    outcome = fulfilled(0)
    with pytest.raises(AttributeError):
        outcome.value = "changed"
