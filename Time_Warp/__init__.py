"""Time_Warp package initialization."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .warp import TimeWarpScreen, WarpState

__all__ = ["TimeWarpScreen", "WarpState"]


def __getattr__(name: str) -> Any:  # pragma: no cover - attribute access
    """Lazily expose the session state machine."""

    if name in __all__:
        from . import warp

        return getattr(warp, name)
    raise AttributeError(name)
