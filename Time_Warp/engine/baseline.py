from __future__ import annotations

"""Baseline trip traces and live comparison."""

import json
import os
from bisect import bisect_right
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ..clock import prettyprint


class FinishedTrip(BaseModel):
    """One finished trip recorded by a previous run."""

    model_config = {"frozen": True}

    time: float
    trip_id: int
    metadata: Dict[str, Any] = Field(default_factory=dict)


class BaselineTrace:
    """Immutable, time-ordered finished-trip timeline.

    Parameters
    ----------
    trips:
        Finished trips ordered by ``time``.
    label:
        Name of the run the trace was recorded from, shown next to the delta.
    """

    def __init__(self, trips: Iterable[FinishedTrip], label: str = "baseline") -> None:
        self._trips: Tuple[FinishedTrip, ...] = tuple(trips)
        self._times: Tuple[float, ...] = tuple(t.time for t in self._trips)
        if any(a > b for a, b in zip(self._times, self._times[1:])):
            raise ValueError("baseline trips must be ordered by time")
        self.label = label

    @property
    def trips(self) -> Tuple[FinishedTrip, ...]:
        return self._trips

    @property
    def times(self) -> Tuple[float, ...]:
        return self._times

    def __len__(self) -> int:
        return len(self._trips)

    def finished_series(self) -> List[Tuple[float, int]]:
        """Return cumulative ``(time, finished)`` pairs, one per distinct time."""

        series: List[Tuple[float, int]] = []
        for count, t in enumerate(self._times, start=1):
            if series and series[-1][0] == t:
                series[-1] = (t, count)
            else:
                series.append((t, count))
        return series


def load_baseline(path: str | os.PathLike[str], label: str | None = None) -> BaselineTrace:
    """Load a :class:`BaselineTrace` from ``path``.

    ``.jsonl`` files hold one trip record per line. ``.json`` files hold
    either a list of records or an object with ``label`` and
    ``finished_trips`` keys. ``label`` overrides the stored name.
    """

    path = os.fspath(path)
    if not os.path.exists(path):
        raise FileNotFoundError(path)
    stored_label: Optional[str] = None
    with open(path) as fh:
        if path.endswith(".jsonl"):
            records = [json.loads(line) for line in fh if line.strip()]
        else:
            data = json.load(fh)
            if isinstance(data, dict):
                stored_label = data.get("label")
                records = data.get("finished_trips", [])
            else:
                records = data
    trips = [FinishedTrip.model_validate(r) for r in records]
    name = label or stored_label or os.path.splitext(os.path.basename(path))[0]
    return BaselineTrace(trips, label=name)


def finished_by(trace: Sequence[float] | BaselineTrace, now: float) -> int:
    """Return how many baseline trips had finished at or before ``now``."""

    times = trace.times if isinstance(trace, BaselineTrace) else trace
    return bisect_right(times, now)


def compare_count(after: int, before: int) -> str:
    """Render ``after - before`` as a signed count, e.g. ``"+0"`` or ``"-1,024"``."""

    if after == before:
        return "+0"
    if after > before:
        return f"+{prettyprint(after - before)}"
    return f"-{prettyprint(before - after)}"


class BaselineComparator:
    """Compare live finished trips against a :class:`BaselineTrace`.

    The comparator remembers how far into the trace it has counted, so
    successive calls with non-decreasing ``now`` only scan the new part of
    the trace. A call with an earlier ``now`` re-seats the cursor by bisection.
    """

    def __init__(self, trace: BaselineTrace | None) -> None:
        self.trace = trace
        self._cursor = 0
        self._last_now: float | None = None

    @property
    def enabled(self) -> bool:
        return self.trace is not None and len(self.trace) > 0

    def finished_before(self, now: float) -> Optional[int]:
        """Return the baseline's finished count at ``now``, or ``None``."""

        if not self.enabled:
            return None
        if self._last_now is not None and now < self._last_now:
            self._cursor = finished_by(self.trace, now)
        times = self.trace.times
        cursor = self._cursor
        while cursor < len(times) and times[cursor] <= now:
            cursor += 1
        self._cursor = cursor
        self._last_now = now
        return cursor

    def delta(self, now: float, finished_live: int) -> Optional[str]:
        """Return the signed difference between live and baseline counts."""

        before = self.finished_before(now)
        if before is None:
            return None
        return compare_count(finished_live, before)


__all__ = [
    "BaselineComparator",
    "BaselineTrace",
    "FinishedTrip",
    "compare_count",
    "finished_by",
    "load_baseline",
]
