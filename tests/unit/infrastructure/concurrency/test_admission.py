import asyncio

import pytest

from fanout.domain.events.dispatch_events import AdmissionDeferred, TargetAdmitted
from fanout.domain.models.errors import ConfigurationError
from fanout.infrastructure.concurrency.admission import AdmissionController


class JobTracker:
    """Tracks how many jobs run at once and the order they start and finish."""

    def __init__(self):
        self.active = 0
        self.peak = 0
        self.started = []
        self.finished = []

    def job(self, name, delay):
        async def _run():
            self.started.append(name)
            self.active += 1
            self.peak = max(self.peak, self.active)
            await asyncio.sleep(delay)
            self.active -= 1
            self.finished.append(name)
        return _run


@pytest.mark.parametrize("limit", [0, -1, -100])
def test_non_positive_limit_fails_fast(limit):
    with pytest.raises(ConfigurationError):
        AdmissionController(limit)


@pytest.mark.parametrize("limit", [1.5, "2", None, True])
def test_non_integer_limit_is_rejected(limit):
    with pytest.raises(ConfigurationError):
        AdmissionController(limit)


@pytest.mark.parametrize("limit", [1, 2, 3, 5])
def test_active_jobs_never_exceed_limit(limit):
    tracker = JobTracker()
    delays = [0.03, 0.01, 0.02, 0.005, 0.015]
    jobs = [(i, f"T{i}", tracker.job(f"T{i}", d)) for i, d in enumerate(delays)]
    controller = AdmissionController(limit)

    asyncio.run(controller.admit_all(jobs))

    assert tracker.peak <= limit
    assert controller.peak_active <= limit
    assert controller.peak_active == min(limit, len(delays))
    assert sorted(tracker.finished) == sorted(f"T{i}" for i in range(len(delays)))
    assert controller.active_count == 0


def test_jobs_start_in_submission_order():
    tracker = JobTracker()
    delays = [0.02, 0.001, 0.03, 0.001, 0.01]
    jobs = [(i, name, tracker.job(name, d)) for i, (name, d) in enumerate(zip("ABCDE", delays))]

    asyncio.run(AdmissionController(2).admit_all(jobs))

    assert tracker.started == list("ABCDE")


def test_third_job_waits_for_first_settlement():
    tracker = JobTracker()
    starts_at_admission = {}

    def job(name, delay):
        inner = tracker.job(name, delay)

        async def _run():
            starts_at_admission[name] = list(tracker.finished)
            await inner()
        return _run

    jobs = [(0, "A", job("A", 0.05)), (1, "B", job("B", 0.01)), (2, "C", job("C", 0.01))]

    asyncio.run(AdmissionController(2).admit_all(jobs))

    assert starts_at_admission["A"] == []
    assert starts_at_admission["B"] == []
    # B is faster than A, so C is admitted as soon as B settles
    assert starts_at_admission["C"] == ["B"]


def test_admission_events(event_log):
    tracker = JobTracker()
    jobs = [(i, f"T{i}", tracker.job(f"T{i}", 0.001)) for i in range(3)]

    asyncio.run(AdmissionController(2, event_sink=event_log.append).admit_all(jobs))

    admitted = [e for e in event_log if isinstance(e, TargetAdmitted)]
    deferred = [e for e in event_log if isinstance(e, AdmissionDeferred)]
    assert [e.index for e in admitted] == [0, 1, 2]
    assert deferred and all(e.active_count == 2 for e in deferred)


def test_empty_job_list_completes_immediately():
    controller = AdmissionController(3)
    asyncio.run(controller.admit_all([]))
    assert controller.peak_active == 0


def test_limit_larger_than_job_count_starts_everything_at_once():
    tracker = JobTracker()
    jobs = [(i, f"T{i}", tracker.job(f"T{i}", 0.01)) for i in range(3)]
    controller = AdmissionController(10)

    asyncio.run(controller.admit_all(jobs))

    assert tracker.peak == 3
    assert controller.peak_active == 3


def test_raising_job_cancels_siblings_still_in_flight():
    sibling = {"cancelled": False, "finished": False}

    async def broken():
        await asyncio.sleep(0.01)
        raise RuntimeError("job bug")

    async def slow():
        try:
            await asyncio.sleep(5)
            sibling["finished"] = True
        except asyncio.CancelledError:
            sibling["cancelled"] = True
            raise

    controller = AdmissionController(2)
    jobs = [(0, "slow", slow), (1, "broken", broken), (2, "never", JobTracker().job("never", 0))]

    with pytest.raises(RuntimeError, match="job bug"):
        asyncio.run(controller.admit_all(jobs))

    assert sibling == {"cancelled": True, "finished": False}
    assert controller.active_count == 0
