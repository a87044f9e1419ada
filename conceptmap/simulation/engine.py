"""Tick-driven force simulation over a simulation-local copy of the graph."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..model import ConceptNode, GraphSnapshot, NodeId
from ..projections import NetworkProjection, PositionalTargets, ProjectionPolicy
from ..styles import node_radius
from .config import get_simulation_config
from .forces import (
    apply_centering,
    apply_collision,
    enforce_order,
    apply_links,
    apply_many_body,
    apply_positional,
    integrate,
    resolve_overlaps,
)
from .math_utils import clamp_norm, zero_non_finite
from .model import LinkArrays, Point2D, SimulationConfig, SimulationState
from .seed import seed_positions

logger = logging.getLogger(__name__)


class ForceSimulation:
    """Physics solver advancing node positions one tick at a time.

    The simulation never touches authoritative graph records: it copies what
    it needs from a :class:`GraphSnapshot` in :meth:`sync` and owns positions,
    velocities and pins from then on.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        projection: Optional[ProjectionPolicy] = None,
    ) -> None:
        self.config = config or get_simulation_config()
        self.projection: ProjectionPolicy = projection or NetworkProjection()
        self.state = SimulationState()
        self.rng = np.random.default_rng(self.config.random_seed)
        self.alpha = self.config.alpha_start
        self.alpha_floor = 0.0
        self.tick_count = 0
        self._idle = False
        self._nodes: List[ConceptNode] = []
        self._targets: PositionalTargets = self.projection.targets([])
        self._order_keys: Optional[np.ndarray] = None
        self._synced_version: Optional[int] = None
        self._structure: Tuple[int, int] = (0, 0)

    # -- state machine -----------------------------------------------------

    @property
    def is_idle(self) -> bool:
        return self._idle

    def reheat(self, level: Optional[float] = None) -> None:
        """Raise alpha to at least ``level`` and leave the idle state."""

        target = self.config.reheat_alpha if level is None else float(level)
        self.alpha = max(self.alpha, min(target, 1.0))
        if self._idle:
            logger.debug("Simulation reheated to alpha=%.4f", self.alpha)
        self._idle = False

    def begin_drag(self) -> None:
        self.alpha_floor = self.config.drag_alpha_floor
        self.reheat(self.config.drag_reheat_alpha)

    def end_drag(self) -> None:
        self.alpha_floor = 0.0

    def ticks_to_idle(self) -> int:
        """Upper bound on ticks before idling from the current alpha with no drag."""

        if self._idle:
            return 0
        rate = self.config.decay_rate
        return int(math.ceil(math.log(self.config.alpha_min / max(self.alpha, 1e-300)) / math.log(rate))) + 1

    # -- graph synchronisation ---------------------------------------------

    def sync(self, snapshot: GraphSnapshot) -> bool:
        """Bring the particle set in line with ``snapshot``.

        Returns ``True`` when nodes or links were added; that reheats the
        simulation. Restyling alone only refreshes the cached records.
        """

        if snapshot.version == self._synced_version:
            return False
        self._synced_version = snapshot.version
        self._nodes = list(snapshot.iter_nodes())

        new_nodes = [node for node in self._nodes if node.id not in self.state.index]
        if new_nodes:
            known = {node_id: self.state.position_of(node_id) for node_id in self.state.ids}
            seeded = seed_positions(
                new_nodes,
                snapshot,
                known,  # type: ignore[arg-type]
                radius=self.config.seed_radius,
                counts=self.state.seed_counts,
                center=self.projection.seed_anchor(),
            )
            for node in new_nodes:
                self.state.add_particle(
                    node.id,
                    seeded[node.id],
                    node_radius(node.category),
                    self.config.charge_for(node.category),
                )

        self._compile_links(snapshot)
        self._targets = self.projection.targets(self._nodes)
        self._order_keys = self.projection.order_keys(self._nodes)

        structure = (len(snapshot.nodes), len(snapshot.links))
        changed = structure != self._structure
        self._structure = structure
        if changed:
            logger.info(
                "Synced graph version %d: %d node(s), %d link(s), %d new node(s)",
                snapshot.version,
                structure[0],
                structure[1],
                len(new_nodes),
            )
            self.reheat()
        return changed

    def _compile_links(self, snapshot: GraphSnapshot) -> None:
        index = self.state.index
        springs = [link for link in snapshot.iter_links() if not link.is_self_loop]
        if not springs:
            self.state.links = LinkArrays()
            return
        count = np.zeros(len(self.state), dtype=float)
        source = np.array([index[link.source] for link in springs], dtype=int)
        target = np.array([index[link.target] for link in springs], dtype=int)
        np.add.at(count, source, 1.0)
        np.add.at(count, target, 1.0)
        rest = np.array([self.config.link_rest_length(link.relation) for link in springs], dtype=float)
        strength = 1.0 / np.minimum(count[source], count[target])
        bias = count[source] / (count[source] + count[target])
        self.state.links = LinkArrays(source=source, target=target, rest_length=rest, strength=strength, bias=bias)

    def set_projection(self, projection: ProjectionPolicy) -> None:
        """Re-target positional forces; positions and velocities carry over."""

        previous = self.projection
        self.projection = projection
        self._targets = projection.targets(self._nodes)
        self._order_keys = projection.order_keys(self._nodes)
        logger.info("Projection switched from %s to %s", previous.mode.value, projection.mode.value)
        self.reheat()

    # -- pins ----------------------------------------------------------------

    def set_pin(self, node_id: NodeId, x: Optional[float] = None, y: Optional[float] = None) -> bool:
        idx = self.state.index.get(node_id)
        if idx is None:
            logger.debug("set_pin ignored for unknown node %r", node_id)
            return False
        for axis, value in ((0, x), (1, y)):
            if value is None:
                continue
            value = float(value)
            if not math.isfinite(value):
                logger.warning("Ignoring non-finite pin %r for node %r", value, node_id)
                continue
            self.state.pins[idx, axis] = value
            self.state.positions[idx, axis] = value
            self.state.velocities[idx, axis] = 0.0
        return True

    def clear_pin(self, node_id: NodeId) -> bool:
        idx = self.state.index.get(node_id)
        if idx is None:
            return False
        self.state.pins[idx] = np.nan
        return True

    def pin_of(self, node_id: NodeId) -> Optional[Tuple[Optional[float], Optional[float]]]:
        idx = self.state.index.get(node_id)
        if idx is None:
            return None
        fx, fy = self.state.pins[idx]
        if math.isnan(fx) and math.isnan(fy):
            return None
        return (None if math.isnan(fx) else float(fx), None if math.isnan(fy) else float(fy))

    # -- queries ---------------------------------------------------------------

    def position_of(self, node_id: NodeId) -> Optional[Point2D]:
        return self.state.position_of(node_id)

    def velocity_of(self, node_id: NodeId) -> Optional[Point2D]:
        idx = self.state.index.get(node_id)
        if idx is None:
            return None
        vx, vy = self.state.velocities[idx]
        return (float(vx), float(vy))

    def positions(self) -> Dict[NodeId, Point2D]:
        return {node_id: (float(x), float(y)) for node_id, (x, y) in zip(self.state.ids, self.state.positions)}

    def radius_of(self, node_id: NodeId) -> Optional[float]:
        idx = self.state.index.get(node_id)
        return None if idx is None else float(self.state.radii[idx])

    # -- stepping --------------------------------------------------------------

    def step(self) -> bool:
        """Advance one tick. Returns ``False`` without doing anything when idle."""

        if self._idle:
            return False
        cfg = self.config
        state = self.state
        self.alpha = self.alpha_floor + (self.alpha - self.alpha_floor) * cfg.decay_rate
        alpha = self.alpha
        previous = state.positions.copy()

        apply_links(state, alpha, cfg, self.rng)
        apply_many_body(state, alpha, cfg, self.rng)
        apply_collision(state, cfg, self.rng)
        if self.projection.recenter:
            apply_centering(state, self.projection.center)
        apply_positional(state, self._targets, alpha)

        replaced = zero_non_finite(state.velocities)
        if replaced:
            logger.warning("Zeroed %d non-finite velocity component(s) at tick %d", replaced, self.tick_count)
        clamp_norm(state.velocities, cfg.max_speed)
        integrate(state, cfg)
        if self._order_keys is not None:
            enforce_order(state, self._order_keys)
        resolve_overlaps(state, cfg, self.rng, vertical=self._order_keys is not None)

        bad = ~np.isfinite(state.positions)
        if bad.any():
            logger.warning("Restored %d non-finite position component(s) at tick %d", int(bad.sum()), self.tick_count)
            state.positions[bad] = previous[bad]
            state.velocities[bad] = 0.0

        self.tick_count += 1
        if self.alpha < cfg.alpha_min:
            self._idle = True
            logger.info("Simulation settled after %d tick(s)", self.tick_count)
        return True

    def run_until_idle(self, max_ticks: Optional[int] = None) -> int:
        """Step until idle or ``max_ticks``; returns the number of ticks run."""

        if max_ticks is None and self.alpha_floor >= self.config.alpha_min:
            raise RuntimeError("simulation cannot settle while a drag holds alpha above alpha_min")
        ticks = 0
        while not self._idle and (max_ticks is None or ticks < max_ticks):
            self.step()
            ticks += 1
        return ticks


__all__ = ["ForceSimulation"]
