"""Bounded per-tick advancement of a simulation engine."""

from __future__ import annotations

import math

from ..config import Config
from .interface import SimulationEngine


class StepController:
    """Advance ``engine`` toward a target, one bounded chunk per host tick.

    The controller holds no simulation state; completion is observed by the
    caller through :meth:`reached`.
    """

    def __init__(self, engine: SimulationEngine, wall_budget: float | None = None) -> None:
        self._engine = engine
        self.wall_budget = Config.wall_budget if wall_budget is None else float(wall_budget)
        if self.wall_budget <= 0:
            raise ValueError("wall_budget must be positive")

    def advance(self, target: float) -> float:
        """Advance at most ``target - now`` within :attr:`wall_budget`.

        Returns the simulated time consumed, ``0.0`` once the target has been
        reached.
        """

        now = self._engine.current_time()
        remaining = target - now
        if remaining <= 0:
            return 0.0
        # now + (target - now) can round one ulp past target; step short
        # instead so a later chunk lands on target exactly.
        while now + remaining > target:
            remaining = math.nextafter(remaining, 0.0)
        return self._engine.advance(remaining, self.wall_budget)

    def reached(self, target: float) -> bool:
        return self._engine.current_time() >= target
