"""UI-facing status dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .clock import format_duration, format_time, prettyprint

HEADING = "Let's do the time warp again!"


@dataclass(frozen=True)
class HaltReport:
    """Location that stayed congested long enough to halt the warp."""

    location: str
    first_seen: float
    delayed_for: float

    def describe(self) -> str:
        return (
            f"{self.location} delayed for {format_duration(self.delayed_for)} "
            f"(since {format_time(self.first_seen)})"
        )


@dataclass(frozen=True)
class WarpStatus:
    """Statistics shown while a time warp is running."""

    now: float
    target: float
    speed: int
    finished_trips: int
    baseline_delta: Optional[str] = None
    baseline_label: Optional[str] = None

    def lines(self) -> List[str]:
        """Return the status text, one entry per line."""

        trips = f"Finished trips: {prettyprint(self.finished_trips)}"
        if self.baseline_delta is not None:
            trips += (
                f" ({self.baseline_delta} compared to before "
                f'"{self.baseline_label}")'
            )
        return [
            HEADING,
            f"{format_time(self.now)} / {format_time(self.target)}",
            f"Speed: {prettyprint(self.speed)}x",
            trips,
        ]

    def text(self) -> str:
        return "\n".join(self.lines())
