from __future__ import annotations

from typing import List, Optional, Tuple

from PySide6.QtCore import QObject, Property, QTimer, Signal, Slot

from ..chart import Downsampler, area_under_curve
from ..config import Config
from ..engine.baseline import BaselineTrace
from ..warp import TimeWarpScreen, WarpState


class TimeWarpModel(QObject):
    """Drive a :class:`TimeWarpScreen` from the Qt event loop.

    A zero-interval :class:`QTimer` calls :meth:`tick` whenever the event
    loop is idle, so each frame does one bounded advance and the window
    stays responsive.
    """

    statusChanged = Signal(str)
    stateChanged = Signal(str)
    alertRaised = Signal(str)
    haltedAt = Signal(str)

    def __init__(
        self,
        screen: TimeWarpScreen,
        baseline: BaselineTrace | None = None,
        parent: QObject | None = None,
        interval_ms: int = 0,
    ) -> None:
        """Wrap ``screen``; ``baseline`` feeds :meth:`chartPoints`."""
        super().__init__(parent)
        self._screen = screen
        self._baseline = baseline
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self.tick)
        self._status = screen.status.text()
        self._state = screen.state.value

    # ------------------------------------------------------------------
    def _get_status(self) -> str:
        return self._status

    status = Property(str, _get_status, notify=statusChanged)

    def _get_state(self) -> str:
        return self._state

    state = Property(str, _get_state, notify=stateChanged)

    def _get_skip_drawing(self) -> bool:
        return bool(Config.dont_draw_time_warp)

    def _set_skip_drawing(self, value: bool) -> None:
        Config.dont_draw_time_warp = bool(value)

    skipDrawing = Property(bool, _get_skip_drawing, _set_skip_drawing)

    @property
    def screen(self) -> TimeWarpScreen:
        return self._screen

    # ------------------------------------------------------------------
    @Slot()
    def start(self) -> None:
        """Begin ticking on the event loop."""
        if self._screen.running:
            self._timer.start()

    @Slot()
    def stopNow(self) -> None:
        """Cancel the warp at the user's request."""
        self._timer.stop()
        self._screen.cancel()
        self._publish()

    @Slot()
    def tick(self) -> None:
        """Advance one frame and publish the outcome."""
        self._screen.tick()
        self._publish()

    def _publish(self) -> None:
        text = self._screen.status.text()
        if text != self._status:
            self._status = text
            self.statusChanged.emit(text)
        state = self._screen.state
        if state.value == self._state:
            return
        self._state = state.value
        self._timer.stop()
        if state is WarpState.COMPLETED_WITH_ALERT and self._screen.alert is not None:
            self.alertRaised.emit(self._screen.alert.describe())
        elif state is WarpState.HALTED and self._screen.halt is not None:
            self.haltedAt.emit(self._screen.halt.location)
        self.stateChanged.emit(state.value)

    # ------------------------------------------------------------------
    def chartPoints(self, downsample: Optional[Downsampler] = None) -> List[Tuple[float, float]]:
        """Return the baseline chart outline, or an empty list without one."""
        if self._baseline is None or len(self._baseline) == 0:
            return []
        chart = Config.chart
        outline = area_under_curve(
            self._baseline.finished_series(),
            float(chart["width"]),
            float(chart["height"]),
            points=int(chart["points"]),
            downsample=downsample,
        )
        return [(float(x), float(y)) for x, y in outline]
