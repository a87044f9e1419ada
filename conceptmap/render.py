"""Static matplotlib rendering of layout frames."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

import numpy as np
from matplotlib.axes import Axes
from matplotlib.collections import LineCollection
from matplotlib.figure import Figure
from matplotlib.patches import Circle

from .engine import LayoutFrame
from .interaction import Viewport
from .projections import ProjectionMode, YearScale
from .styles import (
    MASTERED_FILL,
    MASTERY_RING_GAP,
    mastery_ring_alpha,
    node_fill,
    relation_style,
)

logger = logging.getLogger(__name__)

BACKGROUND = "#0f172a"
OUTLINE = "#1e293b"
FOCUS_OUTLINE = "#facc15"
LABEL_COLOR = "#e2e8f0"
AXIS_COLOR = "#64748b"
LABEL_GAP = 12.0
AXIS_GAP = 60.0


def _transform(frame: LayoutFrame, viewport: Optional[Viewport]) -> Tuple[List[str], np.ndarray, float]:
    ids = list(frame.nodes)
    points = np.array([frame.position(node_id) for node_id in ids], dtype=float).reshape(-1, 2)
    if viewport is None:
        return ids, points, 1.0
    return ids, viewport.apply(points), viewport.scale


def _draw_year_axis(
    ax: Axes,
    frame: LayoutFrame,
    scale: YearScale,
    viewport: Optional[Viewport],
    tick_count: int,
) -> None:
    max_y = frame.bounds()[3]
    axis_y = max_y + AXIS_GAP if frame.nodes else AXIS_GAP
    years = scale.ticks(tick_count)
    logical = np.array([[scale(year), axis_y] for year in years] + [[scale.range[0], axis_y], [scale.range[1], axis_y]])
    screen = viewport.apply(logical) if viewport is not None else logical
    ax.plot(screen[-2:, 0], screen[-2:, 1], color=AXIS_COLOR, linewidth=1.0, zorder=0)
    for year, (x, y) in zip(years, screen[:-2]):
        ax.plot([x, x], [y - 4.0, y + 4.0], color=AXIS_COLOR, linewidth=1.0, zorder=0)
        ax.text(x, y + 8.0, str(year), color=AXIS_COLOR, fontsize=7, ha="center", va="top", zorder=0)


def draw_frame(
    ax: Axes,
    frame: LayoutFrame,
    *,
    viewport: Optional[Viewport] = None,
    screen_size: Optional[Tuple[float, float]] = None,
    year_scale: Optional[YearScale] = None,
    focused: Optional[str] = None,
    show_labels: bool = True,
    year_ticks: int = 10,
    padding: float = 40.0,
) -> Axes:
    """Draw ``frame`` onto ``ax`` with screen-style axes (y grows downwards).

    With a ``viewport`` the frame is drawn in screen coordinates; pass
    ``screen_size`` to pin the axes to the visible window, otherwise the
    limits are fitted around the nodes.
    """

    ids, points, scale = _transform(frame, viewport)
    index = {node_id: i for i, node_id in enumerate(ids)}

    segments = []
    colors = []
    widths = []
    for edge in frame.edges:
        style = relation_style(edge.relation)
        segments.append([points[index[edge.source]], points[index[edge.target]]])
        colors.append(style.color)
        widths.append(style.width)
    if segments:
        ax.add_collection(LineCollection(segments, colors=colors, linewidths=widths, alpha=0.8, zorder=1))

    for node_id, (x, y) in zip(ids, points):
        node = frame.nodes[node_id]
        radius = node.radius * scale
        ring_alpha = mastery_ring_alpha(node.mastery)
        if ring_alpha > 0.0:
            ax.add_patch(
                Circle(
                    (x, y),
                    (node.radius + MASTERY_RING_GAP) * scale,
                    fill=False,
                    edgecolor=MASTERED_FILL,
                    linestyle="--",
                    linewidth=2.0,
                    alpha=ring_alpha,
                    zorder=2,
                )
            )
        outline = FOCUS_OUTLINE if node_id == focused else OUTLINE
        ax.add_patch(
            Circle(
                (x, y),
                radius,
                facecolor=node_fill(node),
                edgecolor=outline,
                linewidth=3.0 if node.pinned or node_id == focused else 1.5,
                zorder=3,
            )
        )
        if show_labels:
            ax.text(
                x,
                y + radius + LABEL_GAP * scale,
                node.label,
                color=LABEL_COLOR,
                fontsize=8,
                ha="center",
                va="top",
                zorder=4,
            )

    if frame.mode is ProjectionMode.TIMELINE and year_scale is not None:
        _draw_year_axis(ax, frame, year_scale, viewport, year_ticks)

    ax.set_facecolor(BACKGROUND)
    ax.set_aspect("equal", adjustable="box")
    if viewport is not None and screen_size is not None:
        ax.set_xlim(0.0, screen_size[0])
        ax.set_ylim(screen_size[1], 0.0)
    else:
        min_x, min_y, max_x, max_y = frame.bounds(padding)
        if frame.mode is ProjectionMode.TIMELINE and year_scale is not None:
            min_x = min(min_x, year_scale.range[0] - padding)
            max_x = max(max_x, year_scale.range[1] + padding)
            max_y += AXIS_GAP + padding
        corners = np.array([[min_x, min_y], [max_x, max_y]])
        if viewport is not None:
            corners = viewport.apply(corners)
        ax.set_xlim(corners[0, 0], corners[1, 0])
        ax.set_ylim(corners[1, 1], corners[0, 1])
    ax.set_xticks([])
    ax.set_yticks([])
    return ax


def save_frame_png(
    frame: LayoutFrame,
    path: Union[str, Path],
    *,
    width: float = 800.0,
    height: float = 600.0,
    dpi: int = 100,
    year_scale: Optional[YearScale] = None,
    title: Optional[str] = None,
) -> Path:
    """Render ``frame`` to a PNG sized ``width`` x ``height`` pixels."""

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = Figure(figsize=(width / dpi, height / dpi), dpi=dpi, facecolor=BACKGROUND)
    ax = fig.add_subplot(1, 1, 1)
    draw_frame(ax, frame, year_scale=year_scale)
    if title:
        ax.set_title(title, color=LABEL_COLOR)
    fig.tight_layout()
    fig.savefig(output_path, facecolor=fig.get_facecolor())
    logger.info("Wrote %d node(s) to %s", len(frame.nodes), output_path)
    return output_path


__all__ = ["draw_frame", "save_frame_png"]
