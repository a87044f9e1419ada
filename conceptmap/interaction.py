"""Pointer and gesture handling: dragging pins nodes, panning and zooming move the viewport."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import numpy as np

from .model import NodeId

logger = logging.getLogger(__name__)

Point2D = Tuple[float, float]


@dataclass
class Viewport:
    """Screen transform ``screen = logical * scale + translate``.

    It only affects rendering and hit testing; simulation coordinates are
    never rewritten.
    """

    scale: float = 1.0
    translate_x: float = 0.0
    translate_y: float = 0.0
    min_scale: float = 0.1
    max_scale: float = 4.0

    def __post_init__(self) -> None:
        if not 0.0 < self.min_scale <= self.max_scale:
            raise ValueError(f"invalid scale range [{self.min_scale}, {self.max_scale}]")
        self.scale = self.clamp_scale(self.scale)

    @classmethod
    def centered(cls, width: float, height: float, **kwargs) -> "Viewport":
        """Viewport showing the logical origin in the middle of a ``width`` x ``height`` screen."""

        return cls(translate_x=width / 2.0, translate_y=height / 2.0, **kwargs)

    def clamp_scale(self, scale: float) -> float:
        return min(self.max_scale, max(self.min_scale, float(scale)))

    def to_screen(self, x: float, y: float) -> Point2D:
        return (x * self.scale + self.translate_x, y * self.scale + self.translate_y)

    def to_logical(self, sx: float, sy: float) -> Point2D:
        return ((sx - self.translate_x) / self.scale, (sy - self.translate_y) / self.scale)

    def pan(self, dx: float, dy: float) -> None:
        self.translate_x += dx
        self.translate_y += dy

    def zoom_at(self, sx: float, sy: float, factor: float) -> float:
        """Zoom by ``factor`` keeping the logical point under ``(sx, sy)`` fixed."""

        if factor <= 0 or not math.isfinite(factor):
            return self.scale
        lx, ly = self.to_logical(sx, sy)
        self.scale = self.clamp_scale(self.scale * factor)
        self.translate_x = sx - lx * self.scale
        self.translate_y = sy - ly * self.scale
        return self.scale

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Map an (N, 2) array of logical points to screen space."""

        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        return pts * self.scale + np.array([self.translate_x, self.translate_y])

    def as_matrix(self) -> np.ndarray:
        return np.array(
            [[self.scale, 0.0, self.translate_x], [0.0, self.scale, self.translate_y], [0.0, 0.0, 1.0]],
            dtype=float,
        )

    def reset(self, translate: Point2D = (0.0, 0.0)) -> None:
        self.scale = self.clamp_scale(1.0)
        self.translate_x, self.translate_y = translate


class DragTarget(Protocol):
    """What the controller needs from the layout; it never reaches into the simulation."""

    def hit_test(self, x: float, y: float) -> Optional[NodeId]: ...

    def position_of(self, node_id: NodeId) -> Optional[Point2D]: ...

    def begin_drag(self, node_id: NodeId) -> bool: ...

    def drag_to(self, node_id: NodeId, x: float, y: float) -> bool: ...

    def end_drag(self, node_id: NodeId, keep_pinned: bool = False) -> bool: ...

    def unpin(self, node_id: NodeId) -> bool: ...

    def emit_click(self, node_id: NodeId) -> None: ...


@dataclass
class _Gesture:
    kind: str  # "drag" or "pan"
    press: Point2D
    last: Point2D
    node_id: Optional[NodeId] = None
    offset: Point2D = (0.0, 0.0)
    moved: bool = False


class InteractionController:
    """Turns pointer events in screen coordinates into pins and viewport changes."""

    def __init__(
        self,
        target: DragTarget,
        viewport: Optional[Viewport] = None,
        *,
        click_tolerance: float = 3.0,
        zoom_step: float = 1.1,
        keep_focused_pinned: bool = False,
        focus_on_click: bool = True,
    ) -> None:
        self.target = target
        self.viewport = viewport or Viewport()
        self.click_tolerance = click_tolerance
        self.zoom_step = zoom_step
        self.keep_focused_pinned = keep_focused_pinned
        self.focus_on_click = focus_on_click
        self.focused: Optional[NodeId] = None
        self._kept_pin: Optional[NodeId] = None
        self._gesture: Optional[_Gesture] = None

    @property
    def dragging(self) -> Optional[NodeId]:
        if self._gesture is not None and self._gesture.kind == "drag":
            return self._gesture.node_id
        return None

    @property
    def panning(self) -> bool:
        return self._gesture is not None and self._gesture.kind == "pan"

    def focus(self, node_id: Optional[NodeId]) -> None:
        """Move focus; a pin kept for the previously focused node is released."""

        self.focused = node_id
        kept = self._kept_pin
        if kept is not None and kept != node_id:
            self._kept_pin = None
            self.target.unpin(kept)
            logger.debug("Released pin kept for %r", kept)

    def pointer_down(self, sx: float, sy: float) -> Optional[NodeId]:
        """Start a drag on the node under the pointer, or a pan on empty space."""

        if self._gesture is not None:
            # A second press without a release; finish the stale gesture first.
            self.pointer_up(*self._gesture.last)
        lx, ly = self.viewport.to_logical(sx, sy)
        node_id = self.target.hit_test(lx, ly)
        if node_id is None:
            self._gesture = _Gesture(kind="pan", press=(sx, sy), last=(sx, sy))
            return None
        position = self.target.position_of(node_id) or (lx, ly)
        offset = (position[0] - lx, position[1] - ly)
        self.target.begin_drag(node_id)
        self._gesture = _Gesture(kind="drag", press=(sx, sy), last=(sx, sy), node_id=node_id, offset=offset)
        logger.debug("Drag started on %r", node_id)
        return node_id

    def pointer_move(self, sx: float, sy: float) -> None:
        gesture = self._gesture
        if gesture is None:
            return
        if math.hypot(sx - gesture.press[0], sy - gesture.press[1]) > self.click_tolerance:
            gesture.moved = True
        if gesture.kind == "pan":
            self.viewport.pan(sx - gesture.last[0], sy - gesture.last[1])
        elif gesture.node_id is not None:
            lx, ly = self.viewport.to_logical(sx, sy)
            self.target.drag_to(gesture.node_id, lx + gesture.offset[0], ly + gesture.offset[1])
        gesture.last = (sx, sy)

    def pointer_up(self, sx: float, sy: float) -> Optional[NodeId]:
        """Finish the gesture; returns the clicked node when it was a click rather than a drag."""

        gesture = self._gesture
        self._gesture = None
        if gesture is None:
            return None
        if math.hypot(sx - gesture.press[0], sy - gesture.press[1]) > self.click_tolerance:
            gesture.moved = True
        if gesture.kind == "pan" or gesture.node_id is None:
            if gesture.moved:
                self.viewport.pan(sx - gesture.last[0], sy - gesture.last[1])
            return None

        node_id = gesture.node_id
        clicked = not gesture.moved
        if clicked and self.focus_on_click:
            self.focus(node_id)
        keep = self.keep_focused_pinned and node_id == self.focused
        self.target.end_drag(node_id, keep_pinned=keep)
        if keep:
            self._kept_pin = node_id
        logger.debug("Drag ended on %r (click=%s, keep_pinned=%s)", node_id, clicked, keep)
        if clicked:
            self.target.emit_click(node_id)
            return node_id
        return None

    def wheel(self, sx: float, sy: float, steps: float) -> float:
        """Zoom around the pointer; positive ``steps`` zoom in."""

        return self.viewport.zoom_at(sx, sy, self.zoom_step ** steps)

    def cancel(self) -> None:
        """Drop the current gesture, releasing any drag pin."""

        gesture = self._gesture
        self._gesture = None
        if gesture is not None and gesture.kind == "drag" and gesture.node_id is not None:
            self.target.end_drag(gesture.node_id, keep_pinned=False)


__all__ = ["DragTarget", "InteractionController", "Viewport"]
