"""Contract between the time-warp driver and a simulation engine.

The driver never looks inside the engine. It advances it in bounded chunks,
reads the clock and trip counters, drains alerts and installs at most one
periodic observer. Any object with these methods can be warped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable

from ..clock import format_time


@dataclass(frozen=True)
class Alert:
    """Anomaly raised by the engine while it was advancing."""

    time: float
    location: str | None
    message: str

    def describe(self) -> str:
        """Return the text shown to the user for this alert."""

        if self.location is None:
            return f"At {format_time(self.time)}, {self.message}"
        return f"At {format_time(self.time)}, near {self.location}, {self.message}"


class PeriodicObserver(Protocol):
    """Callback invoked by the engine at fixed simulated-time boundaries."""

    def on_periodic(self, now: float, engine: "SimulationEngine") -> bool | None:
        """Inspect ``engine`` at simulated time ``now``.

        A truthy return asks the engine to hand control back to its caller
        right after this callback, leaving the clock at ``now``.
        """


@runtime_checkable
class SimulationEngine(Protocol):
    """Bounded-step simulation the time-warp driver can advance."""

    def advance(self, max_advance: float, wall_budget: float) -> float:
        """Advance at most ``max_advance`` simulated seconds.

        Returns control once the simulated bound is reached, ``wall_budget``
        seconds of real time have been spent, or the periodic observer asked
        to stop, and returns the simulated time actually consumed.
        """

    def current_time(self) -> float: ...

    def end_of_day(self) -> float: ...

    def finished_trip_count(self) -> int: ...

    def register_periodic_callback(
        self, interval: float, observer: PeriodicObserver
    ) -> None:
        """Invoke ``observer`` every ``interval`` simulated seconds.

        Raises
        ------
        RuntimeError
            If another observer is already registered.
        """

    def unregister_periodic_callback(self) -> None: ...

    def congested_locations(self, min_wait: float = 0.0) -> Sequence[str]:
        """Return locations where agents have waited at least ``min_wait``."""

    def drain_alerts(self) -> list[Alert]:
        """Return alerts raised since the last drain, oldest first."""


__all__ = ["Alert", "PeriodicObserver", "SimulationEngine"]
