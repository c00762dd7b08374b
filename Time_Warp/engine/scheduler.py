"""Bucketed event queue for the scripted engine."""

from __future__ import annotations

from bisect import bisect
from collections import defaultdict
import heapq
from typing import Any, DefaultDict, List, Tuple


class EventScheduler:
    """Simulated-time bucketed priority queue.

    Events are grouped into buckets by their simulated time. Each bucket keeps
    its items ordered by ``(priority, seq)`` so that events sharing a time run
    lowest priority first and otherwise in insertion order. A separate
    min-heap tracks which times are present, so heap operations only occur
    when a new time is added or a bucket empties.
    """

    def __init__(self) -> None:
        self._buckets: DefaultDict[float, List[Tuple[Tuple[int, int], str, Any]]] = (
            defaultdict(list)
        )
        self._times: List[float] = []
        self._seq = 0

    def push(self, time: float, kind: str, payload: Any = None, priority: int = 0) -> None:
        """Schedule ``kind`` with ``payload`` at simulated ``time``."""

        bucket = self._buckets[time]
        if not bucket:
            heapq.heappush(self._times, time)
        key = (priority, self._seq)
        idx = bisect(bucket, key, key=lambda item: item[0])
        bucket.insert(idx, (key, kind, payload))
        self._seq += 1

    def pop(self) -> Tuple[float, str, Any]:
        """Remove and return the next ``(time, kind, payload)``."""

        if not self._times:
            raise IndexError("pop from empty scheduler")
        time = self._times[0]
        bucket = self._buckets[time]
        _, kind, payload = bucket.pop(0)
        if not bucket:
            heapq.heappop(self._times)
            del self._buckets[time]
        return time, kind, payload

    def peek_time(self) -> float:
        """Return the time of the next event without removing it."""

        if not self._times:
            raise IndexError("peek from empty scheduler")
        return self._times[0]

    def __len__(self) -> int:  # pragma: no cover - trivial
        return sum(len(b) for b in self._buckets.values())

    def __bool__(self) -> bool:
        return bool(self._times)
