"""Reference engine that replays a scripted day.

:class:`ScriptedEngine` implements :class:`~Time_Warp.engine.interface.SimulationEngine`
without any agent model. A :class:`Scenario` lists when trips finish, when
locations become congested and when alerts fire; the engine walks those
events in simulated-time order under a wall-clock budget. It backs the
headless CLI and the test-suite.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Callable, List, Optional

import yaml
from pydantic import BaseModel, Field, model_validator

from ..clock import DAY
from .interface import Alert, PeriodicObserver
from .scheduler import EventScheduler

logger = logging.getLogger(__name__)

# Same-time ordering: state changes first, observers see the settled state.
_STATE_PRIORITY = 0
_PERIODIC_PRIORITY = 1


class TripSpec(BaseModel):
    trip_id: int
    finish: float = Field(ge=0.0)


class CongestionSpec(BaseModel):
    """A location where agents queue from ``start`` until ``end``."""

    location: str
    start: float = Field(ge=0.0)
    end: Optional[float] = None

    @model_validator(mode="after")
    def _check_window(self) -> "CongestionSpec":
        if self.end is not None and self.end < self.start:
            raise ValueError(f"congestion at {self.location} ends before it starts")
        return self


class AlertSpec(BaseModel):
    time: float = Field(ge=0.0)
    location: Optional[str] = None
    message: str


class Scenario(BaseModel):
    """Scripted simulation day."""

    start_time: float = Field(default=0.0, ge=0.0)
    end_of_day: float = Field(default=DAY, gt=0.0)
    trips: List[TripSpec] = Field(default_factory=list)
    congestion: List[CongestionSpec] = Field(default_factory=list)
    alerts: List[AlertSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_day(self) -> "Scenario":
        if self.start_time > self.end_of_day:
            raise ValueError("start_time is after end_of_day")
        return self


def load_scenario(path: str | os.PathLike[str]) -> Scenario:
    """Read a :class:`Scenario` from a YAML or JSON file."""

    path = os.fspath(path)
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    with open(path) as fh:
        # JSON is a subset of YAML
        data = yaml.safe_load(fh) or {}
    return Scenario.model_validate(data)


class ScriptedEngine:
    """Advance a :class:`Scenario` in bounded chunks.

    Parameters
    ----------
    scenario:
        The scripted day to replay.
    clock:
        Wall clock used to enforce the advance budget. Tests inject a fake.
    """

    def __init__(
        self, scenario: Scenario, *, clock: Callable[[], float] = time.perf_counter
    ) -> None:
        self._scenario = scenario
        self._clock = clock
        self._time = scenario.start_time
        self._scheduler = EventScheduler()
        self._finished = 0
        self._waiting: dict[str, float] = {}
        self._alerts: list[Alert] = []
        self._observer: PeriodicObserver | None = None
        self._interval = 0.0
        self._generation = 0
        self._load(scenario)

    def _load(self, scenario: Scenario) -> None:
        now = self._time
        for trip in scenario.trips:
            if trip.finish <= now:
                self._finished += 1
            else:
                self._scheduler.push(trip.finish, "trip_finished", trip.trip_id)
        for jam in scenario.congestion:
            if jam.end is not None and jam.end <= now:
                continue
            if jam.start <= now:
                self._start_jam(jam.location, jam.start)
            else:
                self._scheduler.push(jam.start, "jam_started", jam.location)
            if jam.end is not None:
                self._scheduler.push(jam.end, "jam_cleared", jam.location)
        for alert in scenario.alerts:
            if alert.time > now:
                self._scheduler.push(
                    alert.time,
                    "alert",
                    Alert(alert.time, alert.location, alert.message),
                )

    # ------------------------------------------------------------------
    def advance(self, max_advance: float, wall_budget: float) -> float:
        """Process events up to ``max_advance`` seconds ahead within budget.

        At least one pending event is processed per call, so repeated calls
        always make progress. When the budget runs out, or the periodic
        observer asks to stop, the clock stays at the last processed event;
        otherwise it lands exactly on the bound.
        """

        if max_advance <= 0:
            return 0.0
        start = self._time
        stop = start + max_advance
        deadline = self._clock() + wall_budget
        while self._scheduler and self._scheduler.peek_time() <= stop:
            t, kind, payload = self._scheduler.pop()
            self._time = t
            if self._dispatch(kind, payload):
                logger.debug("periodic observer stopped the advance at %s", t)
                return self._time - start
            if self._clock() >= deadline:
                return self._time - start
        self._time = stop
        return self._time - start

    def _dispatch(self, kind: str, payload) -> bool:
        """Apply one event; ``True`` means the observer wants control back."""
        if kind == "periodic":
            return self._run_periodic(payload)
        if kind == "trip_finished":
            self._finished += 1
        elif kind == "jam_started":
            self._start_jam(payload, self._time)
        elif kind == "jam_cleared":
            self._waiting.pop(payload, None)
        elif kind == "alert":
            self._alerts.append(payload)
        else:  # pragma: no cover - events are only created above
            raise ValueError(f"unknown event kind {kind!r}")
        return False

    def _start_jam(self, location: str, since: float) -> None:
        # Overlapping windows keep the oldest queue.
        self._waiting.setdefault(location, since)

    def _run_periodic(self, generation: int) -> bool:
        if generation != self._generation or self._observer is None:
            return False
        stop = bool(self._observer.on_periodic(self._time, self))
        if generation == self._generation:
            self._scheduler.push(
                self._time + self._interval,
                "periodic",
                generation,
                priority=_PERIODIC_PRIORITY,
            )
        return stop

    # ------------------------------------------------------------------
    def current_time(self) -> float:
        return self._time

    def end_of_day(self) -> float:
        return self._scenario.end_of_day

    def finished_trip_count(self) -> int:
        return self._finished

    def congested_locations(self, min_wait: float = 0.0) -> list[str]:
        """Return locations queued for at least ``min_wait``, oldest first."""

        now = self._time
        delayed = [
            (since, loc)
            for loc, since in self._waiting.items()
            if now - since >= min_wait
        ]
        return [loc for _, loc in sorted(delayed)]

    def drain_alerts(self) -> list[Alert]:
        alerts, self._alerts = self._alerts, []
        return alerts

    # ------------------------------------------------------------------
    @property
    def has_periodic_callback(self) -> bool:
        return self._observer is not None

    def register_periodic_callback(
        self, interval: float, observer: PeriodicObserver
    ) -> None:
        if self._observer is not None:
            raise RuntimeError("a periodic callback is already registered")
        if interval <= 0:
            raise ValueError("periodic interval must be positive")
        self._generation += 1
        self._observer = observer
        self._interval = float(interval)
        self._scheduler.push(
            self._time + self._interval,
            "periodic",
            self._generation,
            priority=_PERIODIC_PRIORITY,
        )
        logger.debug("periodic callback every %ss from %s", interval, self._time)

    def unregister_periodic_callback(self) -> None:
        if self._observer is None:
            raise RuntimeError("no periodic callback is registered")
        # Stale "periodic" events are skipped by generation.
        self._generation += 1
        self._observer = None


__all__ = [
    "AlertSpec",
    "CongestionSpec",
    "Scenario",
    "ScriptedEngine",
    "TripSpec",
    "load_scenario",
]
