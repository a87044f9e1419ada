"""Core data structures for the force simulation."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..model import Category, NodeId, Relation

Point2D = Tuple[float, float]


@dataclass
class SimulationConfig:
    """Tuning knobs for the force simulation.

    Defaults follow the classic d3-force behaviour: alpha decays from 1 to
    ``alpha_min`` in ``settle_ticks`` ticks and velocities keep ``friction`` of
    their magnitude each tick.
    """

    alpha_start: float = 1.0
    alpha_min: float = 0.001
    settle_ticks: int = 300
    friction: float = 0.6
    reheat_alpha: float = 1.0
    drag_reheat_alpha: float = 0.3
    drag_alpha_floor: float = 0.3

    charge_strength: float = -500.0
    root_charge_scale: float = 2.0
    charge_distance_min: float = 1.0
    charge_distance_max: float = math.inf

    link_distance: float = 180.0
    strong_link_distance: float = 240.0
    link_iterations: int = 1

    collision_strength: float = 1.0
    collision_padding: float = 0.0
    collision_sweeps: int = 32
    collision_tolerance: float = 1e-3

    max_speed: float = 120.0
    jiggle: float = 1e-6
    seed_radius: float = 30.0
    random_seed: Optional[int] = 0

    def __post_init__(self) -> None:
        if not 0.0 < self.friction < 1.0:
            raise ValueError(f"friction must lie in (0, 1), got {self.friction}")
        if not 0.0 < self.alpha_min < 1.0:
            raise ValueError(f"alpha_min must lie in (0, 1), got {self.alpha_min}")
        if self.settle_ticks <= 0:
            raise ValueError("settle_ticks must be positive")

    @property
    def decay_rate(self) -> float:
        """Per tick multiplier applied to ``alpha - floor``."""

        return self.alpha_min ** (1.0 / self.settle_ticks)

    def link_rest_length(self, relation: Relation) -> float:
        return self.strong_link_distance if Relation(relation).is_strong else self.link_distance

    def charge_for(self, category: Category) -> float:
        if Category(category) is Category.ROOT:
            return self.charge_strength * self.root_charge_scale
        return self.charge_strength


@dataclass
class LinkArrays:
    """Compiled springs; self-loops are excluded."""

    source: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    target: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    rest_length: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))
    strength: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))
    bias: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))

    def __len__(self) -> int:
        return int(self.source.shape[0])


@dataclass
class SimulationState:
    """Simulation-local particle records, index-aligned with ``ids``."""

    ids: List[NodeId] = field(default_factory=list)
    index: Dict[NodeId, int] = field(default_factory=dict)
    positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=float))
    velocities: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=float))
    pins: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=float))
    radii: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))
    charges: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=float))
    links: LinkArrays = field(default_factory=LinkArrays)
    seed_counts: Dict[NodeId, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.ids)

    def add_particle(self, node_id: NodeId, position: Point2D, radius: float, charge: float) -> int:
        idx = len(self.ids)
        self.ids.append(node_id)
        self.index[node_id] = idx
        self.positions = np.vstack([self.positions, np.asarray(position, dtype=float).reshape(1, 2)])
        self.velocities = np.vstack([self.velocities, np.zeros((1, 2), dtype=float)])
        self.pins = np.vstack([self.pins, np.full((1, 2), np.nan, dtype=float)])
        self.radii = np.append(self.radii, float(radius))
        self.charges = np.append(self.charges, float(charge))
        return idx

    def pinned_mask(self) -> np.ndarray:
        """Boolean (N, 2) mask of pinned axes."""

        return ~np.isnan(self.pins)

    def apply_pins(self) -> None:
        mask = self.pinned_mask()
        if mask.any():
            self.positions[mask] = self.pins[mask]
            self.velocities[mask] = 0.0

    def position_of(self, node_id: NodeId) -> Optional[Point2D]:
        idx = self.index.get(node_id)
        if idx is None:
            return None
        x, y = self.positions[idx]
        return (float(x), float(y))


__all__ = ["LinkArrays", "Point2D", "SimulationConfig", "SimulationState"]
