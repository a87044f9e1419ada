"""Interactive matplotlib window: canvas timer ticks, mouse drags, wheel zoom."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .engine import LayoutEngine, LayoutFrame
from .interaction import Viewport
from .model import NodeLike
from .projections import ProjectionMode
from .render import BACKGROUND, draw_frame
from .scheduler import TickCallback, TickScheduler

logger = logging.getLogger(__name__)


class MatplotlibScheduler(TickScheduler):
    """Tick source backed by a canvas timer; the timer is stopped while paused."""

    def __init__(self, canvas: Any, fps: float = 60.0) -> None:
        super().__init__()
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self._timer = canvas.new_timer(interval=max(1, int(round(1000.0 / fps))))
        self._timer.add_callback(self.trigger)

    def start(self, callback: TickCallback) -> None:
        super().start(callback)
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        super().stop()

    def pause(self) -> None:
        super().pause()
        self._timer.stop()

    def resume(self) -> None:
        was_paused = self.paused
        super().resume()
        if was_paused and self.active:
            self._timer.start()

    def trigger(self) -> bool:
        return self._fire()


class MapViewer:
    """Binds a :class:`LayoutEngine` to a figure.

    Left button drags nodes or pans the background, the wheel zooms around the
    pointer, ``m`` toggles network/timeline, ``r`` resets the view and
    ``escape`` abandons the current gesture.
    """

    def __init__(
        self,
        root: NodeLike,
        *,
        figure: Optional[Figure] = None,
        width: float = 800.0,
        height: float = 600.0,
        dpi: int = 100,
        fps: float = 60.0,
        **engine_kwargs: Any,
    ) -> None:
        self.width = float(width)
        self.height = float(height)
        self.figure = figure if figure is not None else plt.figure(figsize=(width / dpi, height / dpi), dpi=dpi)
        self.figure.set_facecolor(BACKGROUND)
        self.ax = self.figure.axes[0] if self.figure.axes else self.figure.add_axes((0.0, 0.0, 1.0, 1.0))
        self.scheduler = MatplotlibScheduler(self.figure.canvas, fps)
        self.engine = LayoutEngine(
            root,
            width=width,
            height=height,
            scheduler=self.scheduler,
            on_positions_changed=self._on_frame,
            **engine_kwargs,
        )
        self._last_pointer: Optional[Tuple[float, float]] = None
        canvas = self.figure.canvas
        self._connections: List[int] = [
            canvas.mpl_connect("button_press_event", self.on_press),
            canvas.mpl_connect("motion_notify_event", self.on_motion),
            canvas.mpl_connect("button_release_event", self.on_release),
            canvas.mpl_connect("scroll_event", self.on_scroll),
            canvas.mpl_connect("key_press_event", self.on_key),
            canvas.mpl_connect("close_event", self.on_close),
        ]
        self.redraw()

    @property
    def interaction(self):
        return self.engine.interaction

    def _pointer(self, event: Any) -> Optional[Tuple[float, float]]:
        if event.inaxes is not self.ax or event.xdata is None or event.ydata is None:
            return None
        return (float(event.xdata), float(event.ydata))

    # -- drawing -----------------------------------------------------------

    def _on_frame(self, frame: LayoutFrame) -> None:
        self.redraw(frame)

    def redraw(self, frame: Optional[LayoutFrame] = None) -> None:
        frame = frame or self.engine.frame()
        self.ax.clear()
        draw_frame(
            self.ax,
            frame,
            viewport=self.interaction.viewport,
            screen_size=(self.width, self.height),
            year_scale=self.engine.year_scale,
            focused=self.interaction.focused,
        )
        self.figure.canvas.draw_idle()

    # -- events ------------------------------------------------------------

    def on_press(self, event: Any) -> None:
        pointer = self._pointer(event)
        if pointer is None or event.button != 1:
            return
        self._last_pointer = pointer
        self.interaction.pointer_down(*pointer)

    def on_motion(self, event: Any) -> None:
        pointer = self._pointer(event)
        if pointer is None:
            return
        self._last_pointer = pointer
        panning = self.interaction.panning
        self.interaction.pointer_move(*pointer)
        if panning:
            self.redraw()

    def on_release(self, event: Any) -> None:
        if event.button != 1:
            return
        pointer = self._pointer(event) or self._last_pointer
        if pointer is None:
            self.interaction.cancel()
            return
        self.interaction.pointer_up(*pointer)
        self.redraw()

    def on_scroll(self, event: Any) -> None:
        pointer = self._pointer(event)
        if pointer is None:
            return
        self.interaction.wheel(pointer[0], pointer[1], float(event.step))
        self.redraw()

    def on_key(self, event: Any) -> None:
        if event.key == "m":
            target = ProjectionMode.TIMELINE if self.engine.mode is ProjectionMode.NETWORK else ProjectionMode.NETWORK
            logger.info("Switching to %s view", target.value)
            self.engine.set_mode(target)
        elif event.key == "r":
            centred = Viewport.centered(self.width, self.height)
            self.interaction.viewport.reset((centred.translate_x, centred.translate_y))
            self.redraw()
        elif event.key == "escape":
            self.interaction.cancel()

    def on_close(self, event: Any = None) -> None:
        for cid in self._connections:
            self.figure.canvas.mpl_disconnect(cid)
        self._connections = []
        self.engine.teardown()

    def show(self) -> None:
        """Block in the GUI event loop, tearing the engine down when the window closes."""

        try:
            plt.show()
        finally:
            if not self.engine.closed:
                self.on_close()


__all__ = ["MapViewer", "MatplotlibScheduler"]
