"""Simulated clock helpers: parsing, rounding and display."""

from __future__ import annotations

import math

DAY = 86400.0


def format_time(t: float) -> str:
    """Format simulated time ``t`` as a 12-hour clock string.

    Times past the first midnight carry a ``Day N`` prefix, so ``90000`` is
    rendered as ``"Day 2 1:00:00 AM"``.
    """

    total = int(math.floor(t))
    day, rem = divmod(total, int(DAY))
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    suffix = "AM" if hours < 12 else "PM"
    hour12 = hours % 12 or 12
    text = f"{hour12}:{minutes:02d}:{seconds:02d} {suffix}"
    if day:
        return f"Day {day + 1} {text}"
    return text


def format_duration(d: float) -> str:
    """Return a compact duration such as ``"1h5m"`` or ``"30s"``."""

    total = int(round(d))
    if total == 0:
        return "0s"
    sign = "-" if total < 0 else ""
    hours, rem = divmod(abs(total), 3600)
    minutes, seconds = divmod(rem, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")
    return sign + "".join(parts)


def parse_time(text: str) -> float:
    """Parse ``HH:MM``, ``HH:MM:SS`` or plain seconds into simulated time."""

    text = text.strip()
    if ":" not in text:
        value = float(text)
    else:
        parts = text.split(":")
        if len(parts) not in (2, 3):
            raise ValueError(f"unrecognised time {text!r}")
        fields = [float(p) for p in parts] + [0.0] * (3 - len(parts))
        hours, minutes, seconds = fields
        if not (0 <= minutes < 60 and 0 <= seconds < 60):
            raise ValueError(f"unrecognised time {text!r}")
        value = hours * 3600 + minutes * 60 + seconds
    if value < 0:
        raise ValueError(f"time must not be negative: {text!r}")
    return value


def round_seconds(t: float, step: float) -> float:
    """Round ``t`` to the nearest multiple of ``step`` seconds."""

    if step <= 0:
        raise ValueError("step must be positive")
    return float(round(t / step) * step)


def to_percent(t: float, end: float) -> float:
    """Return ``t`` as a fraction of ``end``."""

    if end <= 0:
        return 0.0
    return t / end


def prettyprint(n: int) -> str:
    """Format an integer with thousands separators."""

    return f"{n:,}"


__all__ = [
    "DAY",
    "format_duration",
    "format_time",
    "parse_time",
    "prettyprint",
    "round_seconds",
    "to_percent",
]
