"""Choosing where a time warp goes.

:class:`JumpToTime` holds the state of the "jump to what time?" dialog: a
slider over the simulated day, a delay picker, and the two actions that
start a :class:`~Time_Warp.warp.TimeWarpScreen`.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .clock import format_duration, format_time, round_seconds, to_percent
from .config import Config
from .engine.interface import SimulationEngine
from .warp import TimeWarpScreen

logger = logging.getLogger(__name__)


class RewindNotSupported(RuntimeError):
    """Raised when jumping backward without a way to restart the simulation."""


class JumpToTime:
    """Pick a target time or delay and launch a warp.

    Parameters
    ----------
    engine:
        Simulation currently shown.
    rewind:
        Optional factory returning a fresh engine at the start of the day.
        Jumping to a time earlier than now is only possible through it.
    """

    def __init__(
        self,
        engine: SimulationEngine,
        *,
        rewind: Optional[Callable[[], SimulationEngine]] = None,
    ) -> None:
        self._engine = engine
        self._rewind = rewind
        self.target = engine.current_time()
        self.halt_limit = float(Config.time_warp_halt_limit)

    @property
    def engine(self) -> SimulationEngine:
        return self._engine

    # ------------------------------------------------------------------
    @property
    def slider_percent(self) -> float:
        return min(1.0, to_percent(self.target, self._engine.end_of_day()))

    def set_slider(self, percent: float) -> float:
        """Move the slider to ``percent`` of the day and return the new target.

        The target snaps to :attr:`Config.slider_round_seconds`.
        """

        percent = min(1.0, max(0.0, percent))
        self.target = round_seconds(
            self._engine.end_of_day() * percent, Config.slider_round_seconds
        )
        return self.target

    def delay_choices(self) -> list[tuple[str, float]]:
        """Return the ``(label, seconds)`` delays the dialog offers."""
        return [(label, float(seconds)) for label, seconds in Config.halt_limit_choices]

    def choose_delay(self, halt_limit: float) -> None:
        """Select one of :meth:`delay_choices` by its length in seconds."""
        if float(halt_limit) not in Config.halt_limit_values():
            raise ValueError(
                f"halt limit must be one of {Config.halt_limit_values()}, got {halt_limit}"
            )
        self.halt_limit = float(halt_limit)

    def jump_to_time_label(self) -> str:
        return f"Jump to {format_time(self.target)}"

    def jump_to_delay_label(self) -> str:
        return f"Jump to next {format_duration(self.halt_limit)} delay"

    # ------------------------------------------------------------------
    def jump_to_time(self, **kwargs: Any) -> TimeWarpScreen:
        """Warp to :attr:`target` without delay halting.

        Targets in the past restart the simulation through ``rewind`` first.
        Extra keyword arguments are passed to :class:`TimeWarpScreen`.
        """

        if self.target < self._engine.current_time():
            if self._rewind is None:
                raise RewindNotSupported(
                    "Sorry, you can't go rewind time from this mode."
                )
            logger.info("rewinding to warp back to %s", self.target)
            self._engine = self._rewind()
        return TimeWarpScreen(self._engine, self.target, None, **kwargs)

    def jump_to_delay(self, **kwargs: Any) -> TimeWarpScreen:
        """Warp to the end of the day, halting on the next :attr:`halt_limit` delay.

        The chosen delay is remembered in :attr:`Config.time_warp_halt_limit`.
        """

        Config.time_warp_halt_limit = self.halt_limit
        return TimeWarpScreen(
            self._engine,
            self._engine.end_of_day(),
            self.halt_limit,
            **kwargs,
        )


__all__ = ["JumpToTime", "RewindNotSupported"]
