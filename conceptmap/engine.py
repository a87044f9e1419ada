"""Layout engine façade: mutation queue, tick loop, drag and mode control."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .collaborators import BranchSuggestion, ExpandResult
from .interaction import InteractionController, Viewport
from .model import (
    Category,
    ConceptNode,
    GraphModel,
    GraphSnapshot,
    GraphWarning,
    LinkLike,
    NodeId,
    NodeLike,
    Relation,
)
from .projections import ProjectionMode, TimelineProjection, YearScale, make_projection
from .scheduler import ManualScheduler, TickScheduler
from .simulation import ForceSimulation, SimulationConfig

logger = logging.getLogger(__name__)

Point2D = Tuple[float, float]
Mutation = Callable[[GraphModel], List[GraphWarning]]


@dataclass(frozen=True)
class NodePlacement:
    id: NodeId
    label: str
    category: Category
    year: Optional[int]
    mastery: float
    unlocked: bool
    x: float
    y: float
    radius: float
    pinned: bool


@dataclass(frozen=True)
class EdgePlacement:
    source: NodeId
    target: NodeId
    relation: Relation


@dataclass(frozen=True)
class LayoutFrame:
    """Everything a renderer needs for one frame."""

    tick: int
    alpha: float
    mode: ProjectionMode
    idle: bool
    nodes: Mapping[NodeId, NodePlacement]
    edges: Tuple[EdgePlacement, ...]

    def position(self, node_id: NodeId) -> Point2D:
        node = self.nodes[node_id]
        return (node.x, node.y)

    def bounds(self, padding: float = 0.0) -> Tuple[float, float, float, float]:
        """``(min_x, min_y, max_x, max_y)`` of all node discs."""

        if not self.nodes:
            return (-padding, -padding, padding, padding)
        min_x = min(n.x - n.radius for n in self.nodes.values()) - padding
        min_y = min(n.y - n.radius for n in self.nodes.values()) - padding
        max_x = max(n.x + n.radius for n in self.nodes.values()) + padding
        max_y = max(n.y + n.radius for n in self.nodes.values()) + padding
        return (min_x, min_y, max_x, max_y)


class LayoutEngine:
    """Owns the graph, the simulation and the loop that ties them together.

    Mutations submitted from outside are queued and committed only at the
    start of the next tick, so a step never sees a half-applied expansion.
    """

    def __init__(
        self,
        root: NodeLike,
        *,
        mode: Union[ProjectionMode, str] = ProjectionMode.NETWORK,
        width: float = 800.0,
        height: float = 600.0,
        config: Optional[SimulationConfig] = None,
        scheduler: Optional[TickScheduler] = None,
        viewport: Optional[Viewport] = None,
        default_year: Optional[float] = None,
        keep_focused_pinned: bool = False,
        on_node_click: Optional[Callable[[NodeId], None]] = None,
        on_positions_changed: Optional[Callable[[LayoutFrame], None]] = None,
        on_warning: Optional[Callable[[GraphWarning], None]] = None,
    ) -> None:
        self.width = float(width)
        self.height = float(height)
        self.default_year = default_year
        self.on_node_click = on_node_click
        self.on_positions_changed = on_positions_changed
        self.warnings: List[GraphWarning] = []
        self._on_warning = on_warning
        self.model = GraphModel(root, on_warning=self._record_warning)
        self._mode = ProjectionMode(mode)
        self.simulation = ForceSimulation(config, self._projection_for(self._mode))
        self.simulation.sync(self.model.snapshot())
        self.interaction = InteractionController(
            self,
            viewport or Viewport.centered(self.width, self.height),
            keep_focused_pinned=keep_focused_pinned,
        )
        self._queue: Deque[Mutation] = deque()
        self._dragging: Dict[NodeId, bool] = {}
        self._branch_counter = 0
        self._closed = False
        self._last_frame: Optional[LayoutFrame] = None
        self.scheduler = scheduler or ManualScheduler()
        self.scheduler.start(self.tick)
        logger.info("Layout engine started in %s mode (%gx%g)", self._mode.value, self.width, self.height)

    # -- helpers -----------------------------------------------------------

    def _projection_for(self, mode: ProjectionMode):
        return make_projection(mode, width=self.width, default_year=self.default_year)

    def _record_warning(self, warning: GraphWarning) -> None:
        self.warnings.append(warning)
        if self._on_warning is not None:
            self._on_warning(warning)

    def _wake(self) -> None:
        if not self._closed:
            self.scheduler.resume()

    def _invalidate_frame(self) -> None:
        self._last_frame = None

    def _enqueue(self, mutation: Mutation) -> bool:
        if self._closed:
            logger.debug("Ignoring mutation submitted after teardown")
            return False
        self._queue.append(mutation)
        self._wake()
        return True

    # -- mutation intake ---------------------------------------------------

    @property
    def pending(self) -> int:
        return len(self._queue)

    def submit_nodes_links(self, nodes: Iterable[NodeLike], links: Iterable[LinkLike]) -> bool:
        node_list = list(nodes)
        link_list = list(links)
        return self._enqueue(lambda model: model.expand(node_list, link_list))

    def submit_expand(
        self,
        result: Union[ExpandResult, Mapping[str, object]],
        *,
        anchor_id: Optional[NodeId] = None,
    ) -> bool:
        """Queue an expansion; with ``anchor_id`` unlinked results are tied to that node."""

        if not isinstance(result, ExpandResult):
            result = ExpandResult.from_payload(result)
        if anchor_id is not None:
            result = result.with_fallback_links(anchor_id)
        return self.submit_nodes_links(result.nodes, result.links)

    def submit_branch(
        self,
        parent_id: NodeId,
        suggestion: Union[BranchSuggestion, Mapping[str, object]],
        *,
        node_id: Optional[NodeId] = None,
    ) -> bool:
        if not isinstance(suggestion, BranchSuggestion):
            suggestion = BranchSuggestion.from_payload(suggestion)

        def mutation(model: GraphModel) -> List[GraphWarning]:
            parent = model.get(parent_id)
            if parent is None:
                warning = GraphWarning(
                    kind="unknown-node",
                    subject=parent_id,
                    message=f"Dropped branch {suggestion.label!r}: unknown parent {parent_id!r}",
                )
                logger.warning(warning.message)
                self._record_warning(warning)
                return [warning]
            new_id = node_id or self._next_branch_id(model)
            result = suggestion.to_expand(parent, new_id, self.simulation.position_of(parent_id))
            return model.expand(result.nodes, result.links)

        return self._enqueue(mutation)

    def _next_branch_id(self, model: GraphModel) -> NodeId:
        while True:
            self._branch_counter += 1
            candidate = f"evolved-{self._branch_counter}"
            if candidate not in model:
                return candidate

    def set_mastery(self, node_id: NodeId, value: float) -> bool:
        def mutation(model: GraphModel) -> List[GraphWarning]:
            model.set_mastery(node_id, value)
            return []

        return self._enqueue(mutation)

    def set_unlocked(self, node_id: NodeId, unlocked: bool) -> bool:
        def mutation(model: GraphModel) -> List[GraphWarning]:
            model.set_unlocked(node_id, unlocked)
            return []

        return self._enqueue(mutation)

    # -- loop --------------------------------------------------------------

    def _drain(self) -> int:
        applied = 0
        while self._queue:
            mutation = self._queue.popleft()
            mutation(self.model)
            applied += 1
        return applied

    def tick(self) -> Optional[LayoutFrame]:
        """Commit queued mutations, advance the simulation and publish a frame."""

        if self._closed:
            logger.debug("Tick after teardown ignored")
            return None
        applied = self._drain()
        if applied:
            logger.debug("Committed %d queued mutation(s) at tick boundary", applied)
        self.simulation.sync(self.model.snapshot())
        self.simulation.step()
        frame = self._build_frame()
        self._last_frame = frame
        if self.on_positions_changed is not None:
            self.on_positions_changed(frame)
        if self.simulation.is_idle and not self._queue and not self._closed:
            self.scheduler.pause()
        return frame

    def run_until_idle(self, max_ticks: int = 10_000) -> int:
        """Tick directly until the layout settles; returns the number of ticks."""

        ticks = 0
        while ticks < max_ticks and not self._closed:
            self.tick()
            ticks += 1
            if self.is_idle and not self._queue:
                break
        return ticks

    @property
    def is_idle(self) -> bool:
        return self.simulation.is_idle

    @property
    def closed(self) -> bool:
        return self._closed

    def teardown(self) -> None:
        """Stop ticking for good and discard anything still queued."""

        if self._closed:
            return
        self.interaction.cancel()
        self._closed = True
        self.scheduler.stop()
        discarded = len(self._queue)
        self._queue.clear()
        logger.info("Layout engine torn down; discarded %d queued mutation(s)", discarded)

    # -- mode --------------------------------------------------------------

    @property
    def mode(self) -> ProjectionMode:
        return self._mode

    def set_mode(self, mode: Union[ProjectionMode, str]) -> None:
        resolved = ProjectionMode(mode)
        if resolved is self._mode:
            return
        self._mode = resolved
        self.simulation.set_projection(self._projection_for(resolved))
        self._invalidate_frame()
        self._wake()

    @property
    def year_scale(self) -> YearScale:
        """Year axis of the timeline, also available while the network view is shown."""

        projection = self.simulation.projection
        if isinstance(projection, TimelineProjection):
            return projection.scale
        return YearScale.for_width(self.width)

    # -- drag target -------------------------------------------------------

    def hit_test(self, x: float, y: float) -> Optional[NodeId]:
        """Topmost node whose disc contains the logical point."""

        state = self.simulation.state
        for idx in range(len(state) - 1, -1, -1):
            nx, ny = state.positions[idx]
            if (nx - x) ** 2 + (ny - y) ** 2 <= state.radii[idx] ** 2:
                return state.ids[idx]
        return None

    def position_of(self, node_id: NodeId) -> Optional[Point2D]:
        return self.simulation.position_of(node_id)

    def begin_drag(self, node_id: NodeId) -> bool:
        position = self.simulation.position_of(node_id)
        if self._closed or position is None:
            return False
        self.simulation.begin_drag()
        self.simulation.set_pin(node_id, *position)
        self._dragging[node_id] = True
        self._invalidate_frame()
        self._wake()
        return True

    def drag_to(self, node_id: NodeId, x: float, y: float) -> bool:
        if self._closed or node_id not in self._dragging:
            return False
        moved = self.simulation.set_pin(node_id, x, y)
        if moved:
            self._invalidate_frame()
        return moved

    def end_drag(self, node_id: NodeId, keep_pinned: bool = False) -> bool:
        if self._dragging.pop(node_id, None) is None:
            return False
        if not keep_pinned:
            self.simulation.clear_pin(node_id)
            self._invalidate_frame()
        if not self._dragging:
            self.simulation.end_drag()
        return True

    def emit_click(self, node_id: NodeId) -> None:
        logger.debug("Node clicked: %r", node_id)
        if self.on_node_click is not None and not self._closed:
            self.on_node_click(node_id)

    def pin(self, node_id: NodeId, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        changed = self.simulation.set_pin(node_id, x, y)
        if changed:
            self._invalidate_frame()
            self.simulation.reheat(self.simulation.config.drag_reheat_alpha)
            self._wake()
        return changed

    def unpin(self, node_id: NodeId) -> bool:
        changed = self.simulation.clear_pin(node_id)
        if changed:
            self._invalidate_frame()
            self.simulation.reheat(self.simulation.config.drag_reheat_alpha)
            self._wake()
        return changed

    # -- read side ---------------------------------------------------------

    def snapshot(self) -> GraphSnapshot:
        return self.model.snapshot()

    def positions(self) -> Dict[NodeId, Point2D]:
        return self.simulation.positions()

    def frame(self) -> LayoutFrame:
        """Latest published frame, rebuilt when mode or pins changed since the last tick."""

        if self._last_frame is None:
            self._last_frame = self._build_frame()
        return self._last_frame

    def _build_frame(self) -> LayoutFrame:
        snapshot = self.model.snapshot()
        sim = self.simulation
        placements: Dict[NodeId, NodePlacement] = {}
        for node in snapshot.iter_nodes():
            position = sim.position_of(node.id)
            if position is None:
                continue
            placements[node.id] = _placement(node, position, sim.radius_of(node.id) or 0.0, sim.pin_of(node.id) is not None)
        edges = tuple(
            EdgePlacement(link.source, link.target, link.relation)
            for link in snapshot.iter_links()
            if link.source in placements and link.target in placements
        )
        return LayoutFrame(
            tick=sim.tick_count,
            alpha=sim.alpha,
            mode=self._mode,
            idle=sim.is_idle,
            nodes=placements,
            edges=edges,
        )


def _placement(node: ConceptNode, position: Point2D, radius: float, pinned: bool) -> NodePlacement:
    return NodePlacement(
        id=node.id,
        label=node.label,
        category=node.category,
        year=node.year,
        mastery=node.mastery,
        unlocked=node.unlocked,
        x=position[0],
        y=position[1],
        radius=radius,
        pinned=pinned,
    )


__all__ = ["EdgePlacement", "LayoutEngine", "LayoutFrame", "NodePlacement"]
