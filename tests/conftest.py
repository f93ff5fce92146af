import asyncio
import os
from typing import Any, Dict, List, Optional

import pytest
from typer.testing import CliRunner

from fanout.domain.interfaces.operation import Operation
from fanout.infrastructure.config.settings import clear_test_config


class ScriptedOperation(Operation):
    """Operation whose results are scripted per target.

    Each script entry is consumed per call: exceptions are raised, anything
    else is returned. Targets without a script return ``"value:<target>"``.
    Tracks call order and how many calls were in flight at once.
    """

    def __init__(self, script: Optional[Dict[Any, List[Any]]] = None, latency: Optional[Dict[Any, float]] = None):
        self.script = {target: list(steps) for target, steps in (script or {}).items()}
        self.latency = latency or {}
        self.calls: List[Any] = []
        self.active = 0
        self.peak_active = 0

    async def perform(self, target: Any) -> Any:
        self.calls.append(target)
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            await asyncio.sleep(self.latency.get(target, 0))
            steps = self.script.get(target)
            step = steps.pop(0) if steps else f"value:{target}"
            if isinstance(step, BaseException):
                raise step
            return step
        finally:
            self.active -= 1

    def call_count(self, target: Any) -> int:
        return self.calls.count(target)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)

    @property
    def total(self) -> float:
        return sum(self.delays)


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def scripted_operation():
    """Factory fixture for ScriptedOperation instances."""
    def _make(script=None, latency=None) -> ScriptedOperation:
        return ScriptedOperation(script=script, latency=latency)
    return _make


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def event_log() -> List[Any]:
    """A list usable as an event sink via ``event_log.append``."""
    return []


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keeps FANOUT_* environment variables and test overrides out of other tests."""
    for key in list(os.environ):
        if key.startswith("FANOUT_"):
            monkeypatch.delenv(key, raising=False)
    yield
    clear_test_config()
