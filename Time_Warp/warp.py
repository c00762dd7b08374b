"""Time-warp session state machine.

A :class:`TimeWarpScreen` owns one warp toward a fixed target time. The host
calls :meth:`TimeWarpScreen.tick` once per frame; each call advances the
engine by a bounded chunk and then decides whether the session keeps
running, completes, halts on a delayed location, stops on an engine alert,
or has been cancelled.
"""

from __future__ import annotations

import enum
import logging
import time
import uuid
from typing import Callable, Optional

from .config import Config
from .engine.baseline import BaselineComparator, BaselineTrace
from .engine.interface import Alert, SimulationEngine
from .engine.logging.logger import log_record
from .engine.logging_models import (
    SessionEndedLog,
    SessionEndedPayload,
    SessionStartedLog,
    SessionStartedPayload,
)
from .engine.monitor import DelayMonitor, MonitorLease, MonitorSlot, get_monitor_slot
from .engine.stepper import StepController
from .view import HaltReport, WarpStatus

logger = logging.getLogger(__name__)


class WarpState(str, enum.Enum):
    """Lifecycle of a time-warp session."""

    RUNNING = "running"
    HALTED = "halted"
    COMPLETED = "completed"
    COMPLETED_WITH_ALERT = "completed_with_alert"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self is not WarpState.RUNNING


class TimeWarpScreen:
    """Drive ``engine`` to ``target`` one host tick at a time.

    Parameters
    ----------
    engine:
        Simulation to advance.
    target:
        Simulated time to stop at. Must not be earlier than the engine's
        current time.
    halt_upon_delay:
        When set, install a :class:`DelayMonitor` and halt as soon as a
        location has been congested for this many simulated seconds. If the
        monitor slot is taken the session runs without halting.
    baseline:
        Optional recorded run to compare finished trips against.
    wall_budget:
        Real seconds each tick may spend advancing. Defaults to
        :attr:`Config.wall_budget`.
    slot:
        Monitor slot to request; the process-wide slot by default.
    interval:
        Simulated seconds between delay checks. Defaults to
        :attr:`Config.delay_check_interval`.
    clock:
        Wall clock used for the speed factor.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        target: float,
        halt_upon_delay: float | None = None,
        *,
        baseline: BaselineTrace | None = None,
        wall_budget: float | None = None,
        slot: MonitorSlot | None = None,
        interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        now = engine.current_time()
        if target < now:
            raise ValueError(f"cannot warp backward from {now} to {target}")
        self._engine = engine
        self._target = float(target)
        self._stepper = StepController(engine, wall_budget)
        self._comparator = BaselineComparator(baseline)
        self._clock = clock
        self.session_id = uuid.uuid4().hex
        self.wall_time_started = clock()
        self.sim_time_started = now
        self.state = WarpState.RUNNING
        self.alert: Optional[Alert] = None
        self.halt: Optional[HaltReport] = None
        self.degraded = False
        self._lease: MonitorLease | None = None

        self.halt_upon_delay = halt_upon_delay
        if halt_upon_delay is not None:
            slot = slot if slot is not None else get_monitor_slot()
            monitor = DelayMonitor(halt_upon_delay)
            self._lease = slot.request(
                engine,
                monitor,
                Config.delay_check_interval if interval is None else interval,
            )
            if self._lease is None:
                self.degraded = True
                self.halt_upon_delay = None

        self.status = self._compute_status()
        log_record(
            "warp",
            "session_started",
            value=SessionStartedLog(
                sim_time=now,
                session_id=self.session_id,
                payload=SessionStartedPayload(
                    target=self._target,
                    halt_limit=self.halt_upon_delay,
                    degraded=self.degraded,
                    baseline=baseline.label if baseline is not None else None,
                ),
            ).model_dump(mode="json"),
        )
        logger.info(
            "time warp %s -> %s (halt on delay: %s)", now, target, self.halt_upon_delay
        )

    # ------------------------------------------------------------------
    @property
    def target(self) -> float:
        return self._target

    @property
    def now(self) -> float:
        return self._engine.current_time()

    @property
    def monitor(self) -> DelayMonitor | None:
        if self._lease is None or self._lease.released:
            return None
        return self._lease.monitor

    @property
    def running(self) -> bool:
        return self.state is WarpState.RUNNING

    # ------------------------------------------------------------------
    def tick(self) -> WarpState:
        """Advance one bounded chunk and return the resulting state."""

        if self.state.terminal:
            return self.state

        self._stepper.advance(self._target)

        alerts = self._engine.drain_alerts()
        if alerts:
            # Only the first alert of a tick is surfaced.
            self.alert = alerts[0]
            if len(alerts) > 1:
                logger.debug("dropping %d more alerts this tick", len(alerts) - 1)
            return self._finish(WarpState.COMPLETED_WITH_ALERT)

        monitor = self.monitor
        if monitor is not None and monitor.tripped is not None:
            location, first_seen = monitor.tripped
            self.halt = HaltReport(
                location=location,
                first_seen=first_seen,
                delayed_for=self._engine.current_time() - first_seen,
            )
            return self._finish(WarpState.HALTED)

        self.status = self._compute_status()
        if self._stepper.reached(self._target):
            return self._finish(WarpState.COMPLETED)
        return self.state

    def cancel(self) -> WarpState:
        """Stop the warp now. No further advancement happens."""

        if self.state is WarpState.RUNNING:
            self._finish(WarpState.CANCELLED)
        return self.state

    def close(self) -> None:
        """Tear the screen down, cancelling a running warp."""

        self.cancel()

    def __enter__(self) -> "TimeWarpScreen":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    def _compute_status(self) -> WarpStatus:
        now = self._engine.current_time()
        finished = self._engine.finished_trip_count()
        elapsed_sim = now - self.sim_time_started
        elapsed_wall = self._clock() - self.wall_time_started
        speed = int(round(elapsed_sim / elapsed_wall)) if elapsed_wall > 0 else 0
        delta = self._comparator.delta(now, finished)
        return WarpStatus(
            now=now,
            target=self._target,
            speed=speed,
            finished_trips=finished,
            baseline_delta=delta,
            baseline_label=self._comparator.trace.label if delta is not None else None,
        )

    def _finish(self, state: WarpState) -> WarpState:
        try:
            if self._lease is not None:
                self._lease.release()
        finally:
            self.state = state
            self._log_end()
        return state

    def _log_end(self) -> None:
        now = self._engine.current_time()
        location = None
        message = None
        if self.halt is not None:
            location = self.halt.location
        elif self.alert is not None:
            location = self.alert.location
            message = self.alert.message
        logger.info("time warp %s at %s", self.state.value, now)
        log_record(
            "warp",
            "session_ended",
            value=SessionEndedLog(
                sim_time=now,
                session_id=self.session_id,
                payload=SessionEndedPayload(
                    state=self.state.value,
                    target=self._target,
                    wall_elapsed=self._clock() - self.wall_time_started,
                    finished_trips=self._engine.finished_trip_count(),
                    location=location,
                    message=message,
                ),
            ).model_dump(mode="json"),
        )


__all__ = ["TimeWarpScreen", "WarpState"]
