import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from Time_Warp.config import Config
from Time_Warp.engine.monitor import get_monitor_slot
from Time_Warp.engine.scripted import Scenario, ScriptedEngine


class FakeClock:
    """Wall clock that moves ``step`` seconds every time it is read."""

    def __init__(self, start: float = 0.0, step: float = 0.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


def make_engine(clock=None, **scenario) -> ScriptedEngine:
    """Build a :class:`ScriptedEngine` from keyword scenario fields."""

    return ScriptedEngine(
        Scenario.model_validate(scenario), clock=clock or FakeClock()
    )


@pytest.fixture(autouse=True)
def _isolate_shared_state(tmp_path, monkeypatch) -> None:
    """Free the monitor slot and redirect session logs for every test."""

    monkeypatch.setattr(Config, "output_dir", str(tmp_path / "output"))
    slot = get_monitor_slot()
    slot.reset()
    yield
    slot.reset()
