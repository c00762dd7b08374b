"""Delay monitoring and the single monitor slot.

Only one periodic observer may be installed on the engine at a time. The
slot hands out a :class:`MonitorLease` to whoever registers first; every
other requester runs without delay halting until the lease is released.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Tuple

from .interface import SimulationEngine

logger = logging.getLogger(__name__)


class DelayMonitor:
    """Track locations that stay congested across periodic callbacks.

    Parameters
    ----------
    halt_limit:
        Simulated seconds a location may stay congested before the warp
        halts on it.
    report_limit:
        Minimum wait the engine must see at a location before reporting it
        as congested. Defaults to ``0.0`` so a location is stamped on the
        first callback that sees it queueing.
    """

    def __init__(self, halt_limit: float, report_limit: float | None = None) -> None:
        if halt_limit < 0:
            raise ValueError("halt_limit must not be negative")
        self.halt_limit = float(halt_limit)
        self.report_limit = 0.0 if report_limit is None else float(report_limit)
        # Insertion order is first-seen order since callbacks only move forward.
        self.currently_delayed: dict[str, float] = {}
        self.tripped: Optional[Tuple[str, float]] = None
        self._last_seen: float | None = None

    def on_periodic(self, now: float, engine: SimulationEngine) -> bool:
        """Engine callback: refresh the record from the engine's report.

        Returns ``True`` once a location is overdue so the engine stops
        advancing at this callback.
        """

        self.observe(now, engine.congested_locations(self.report_limit))
        return self.tripped is not None

    def observe(self, now: float, congested: Iterable[str]) -> None:
        """Apply one congestion report taken at simulated time ``now``.

        New locations are stamped with ``now``; locations missing from the
        report are forgotten; survivors keep their original stamp. The first
        overdue location found is latched in :attr:`tripped`.
        """

        if self._last_seen is not None and now < self._last_seen:
            raise ValueError(
                f"delay monitor saw time move backward ({now} < {self._last_seen})"
            )
        self._last_seen = now
        current = list(dict.fromkeys(congested))
        still = set(current)
        for loc in [loc for loc in self.currently_delayed if loc not in still]:
            del self.currently_delayed[loc]
        for loc in current:
            if loc not in self.currently_delayed:
                self.currently_delayed[loc] = now
        if self.tripped is None:
            self.tripped = self.find_overdue(now)
            if self.tripped is not None:
                logger.info(
                    "%s delayed since %s (limit %ss)",
                    self.tripped[0],
                    self.tripped[1],
                    self.halt_limit,
                )

    def find_overdue(self, now: float) -> Optional[Tuple[str, float]]:
        """Return the earliest ``(location, first_seen)`` past the halt limit."""

        for loc, since in self.currently_delayed.items():
            if now - since >= self.halt_limit:
                return loc, since
        return None


class MonitorLease:
    """Proof of ownership of the :class:`MonitorSlot`.

    Releasing the lease unregisters the engine callback and frees the slot.
    Only the first :meth:`release` does anything.
    """

    def __init__(
        self, slot: "MonitorSlot", engine: SimulationEngine, monitor: DelayMonitor
    ) -> None:
        self.monitor = monitor
        self._slot = slot
        self._engine = engine
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> bool:
        """Give the slot back. Returns ``False`` if already released."""

        if self._released:
            return False
        self._released = True
        try:
            self._engine.unregister_periodic_callback()
        finally:
            self._slot._free(self)
        return True

    def __enter__(self) -> "MonitorLease":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


class MonitorSlot:
    """Process-wide slot allowing a single registered :class:`DelayMonitor`."""

    def __init__(self) -> None:
        self._lease: MonitorLease | None = None

    @property
    def held(self) -> bool:
        return self._lease is not None

    @property
    def lease(self) -> MonitorLease | None:
        return self._lease

    def request(
        self, engine: SimulationEngine, monitor: DelayMonitor, interval: float
    ) -> MonitorLease | None:
        """Register ``monitor`` every ``interval`` seconds and return its lease.

        Returns ``None`` when the slot is taken or the engine already has a
        periodic callback; the caller is expected to carry on without delay
        halting.
        """

        if self._lease is not None:
            logger.warning("delay monitor slot already taken; halting disabled")
            return None
        try:
            engine.register_periodic_callback(interval, monitor)
        except RuntimeError as exc:
            logger.warning("engine refused delay monitor: %s", exc)
            return None
        self._lease = MonitorLease(self, engine, monitor)
        return self._lease

    def _free(self, lease: MonitorLease) -> None:
        if self._lease is lease:
            self._lease = None

    def reset(self) -> None:
        """Release any outstanding lease."""

        if self._lease is not None:
            self._lease.release()


_SLOT = MonitorSlot()


def get_monitor_slot() -> MonitorSlot:
    """Return the process-wide :class:`MonitorSlot`."""

    return _SLOT


__all__ = ["DelayMonitor", "MonitorLease", "MonitorSlot", "get_monitor_slot"]
