"""Area-under-curve outline for the baseline chart.

The raw series is scaled into a ``width`` x ``height`` box (y grows
downward) and handed to a host-supplied downsampler before the outline is
closed along the bottom edge.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence, Tuple

import numpy as np

Downsampler = Callable[[np.ndarray, int], np.ndarray]


def scale_series(
    raw: Sequence[Tuple[float, int]], width: float, height: float
) -> np.ndarray:
    """Map ``(time, count)`` samples to chart coordinates.

    Time starts at midnight on the left; the largest count touches the top.
    """

    if not raw:
        raise ValueError("cannot chart an empty series")
    data = np.asarray(raw, dtype=float)
    xs, ys = data[:, 0], data[:, 1]
    max_x = xs[-1]
    max_y = ys.max()
    x_span = max_x if max_x > 0 else 1.0
    y_span = max_y if max_y > 0 else 1.0
    out = np.empty_like(data)
    out[:, 0] = width * xs / x_span
    out[:, 1] = height * (1.0 - ys / y_span)
    return out


def area_under_curve(
    raw: Sequence[Tuple[float, int]],
    width: float,
    height: float,
    *,
    points: int = 100,
    downsample: Optional[Downsampler] = None,
) -> np.ndarray:
    """Return a closed outline of the area under ``raw``.

    Parameters
    ----------
    raw:
        ``(time, count)`` samples ordered by time.
    width, height:
        Size of the chart box.
    points:
        Number of points requested from ``downsample``.
    downsample:
        Line simplification routine supplied by the host, called as
        ``downsample(points_array, points)``. When omitted the scaled series
        is used as is.
    """

    pts = scale_series(raw, width, height)
    if downsample is not None and len(pts) > points:
        pts = np.asarray(downsample(pts, points), dtype=float)
    closing = np.array([[width, height], pts[0]], dtype=float)
    return np.vstack([pts, closing])


__all__ = ["Downsampler", "area_under_curve", "scale_series"]
