"""Seeding strategies placing newly arrived nodes before their first tick."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol, Sequence, Tuple

from ..logging_utils import apply_debug_logging
from ..model import ConceptNode, GraphSnapshot, NodeId
from .math_utils import golden_offset

logger = logging.getLogger(__name__)

Point2D = Tuple[float, float]


class BaseSeeder(Protocol):
    """Protocol implemented by seeding strategies."""

    def seed(
        self,
        node: ConceptNode,
        snapshot: GraphSnapshot,
        known: Mapping[NodeId, Point2D],
    ) -> Optional[Point2D]:
        """Return a starting position or ``None`` when the strategy does not apply."""


class HintSeeder:
    """Use the producer supplied position hint verbatim."""

    def seed(self, node: ConceptNode, snapshot: GraphSnapshot, known: Mapping[NodeId, Point2D]) -> Optional[Point2D]:
        return node.position_hint


@dataclass
class NeighborSeeder:
    """Place a node on a small spiral around its first positioned neighbour.

    ``counts`` remembers how many nodes were already placed around each anchor
    so siblings fan out instead of landing on top of each other.
    """

    radius: float
    counts: Dict[NodeId, int]

    def _around(self, anchor_id: NodeId, anchor: Point2D) -> Point2D:
        k = self.counts.get(anchor_id, 0)
        self.counts[anchor_id] = k + 1
        ox, oy = golden_offset(k, self.radius)
        return (anchor[0] + ox, anchor[1] + oy)

    def seed(self, node: ConceptNode, snapshot: GraphSnapshot, known: Mapping[NodeId, Point2D]) -> Optional[Point2D]:
        for neighbor in snapshot.neighbors(node.id):
            if neighbor in known:
                return self._around(neighbor, known[neighbor])
        return None


@dataclass
class RootSeeder(NeighborSeeder):
    """Fallback for unconnected nodes: spiral around the root."""

    def seed(self, node: ConceptNode, snapshot: GraphSnapshot, known: Mapping[NodeId, Point2D]) -> Optional[Point2D]:
        root_id = snapshot.root.id
        if root_id == node.id or root_id not in known:
            return None
        return self._around(root_id, known[root_id])


def seed_positions(
    nodes: Sequence[ConceptNode],
    snapshot: GraphSnapshot,
    known: Mapping[NodeId, Point2D],
    *,
    radius: float,
    counts: Dict[NodeId, int],
    center: Point2D = (0.0, 0.0),
) -> Dict[NodeId, Point2D]:
    """Return starting positions for ``nodes`` in order.

    Nodes seeded earlier in the batch count as positioned for later ones. A
    node nobody can anchor (the very first node) starts at ``center``.
    """

    placed: Dict[NodeId, Point2D] = dict(known)
    seeders: Sequence[BaseSeeder] = (
        HintSeeder(),
        NeighborSeeder(radius=radius, counts=counts),
        RootSeeder(radius=radius, counts=counts),
    )
    result: Dict[NodeId, Point2D] = {}
    for node in nodes:
        position: Optional[Point2D] = None
        for seeder in seeders:
            position = seeder.seed(node, snapshot, placed)
            if position is not None:
                logger.debug("Seeded %r with %s at %s", node.id, type(seeder).__name__, position)
                break
        if position is None:
            position = (float(center[0]), float(center[1]))
        placed[node.id] = position
        result[node.id] = position
    return result


apply_debug_logging(globals(), logger=logger, wrap_methods=False)
