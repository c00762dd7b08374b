from __future__ import annotations

"""Lightweight JSON line logger for time-warp sessions."""

import json
from pathlib import Path
from typing import Any

from ...config import Config


def log_record(
    category: str,
    label: str,
    *,
    value: dict[str, Any] | None = None,
    path: Path | None = None,
    **extra: Any,
) -> bool:
    """Append a record to a JSON lines log file.

    The record is written to ``<output_dir>/<category>_log.jsonl`` unless
    ``path`` is given. Returns ``False`` when the ``category``/``label`` pair
    is disabled in :class:`~Time_Warp.config.Config`.
    """

    if not Config.is_log_enabled(category, label):
        return False
    if path is None:
        path = Path(Config.output_path(f"{category}_log.jsonl"))
    path.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = {"label": label}
    if value is not None:
        data.update(value)
    if extra:
        data.update(extra)
    with path.open("a") as fh:
        fh.write(json.dumps(data) + "\n")
    return True
