"""Fixed visual tables keyed by node category and link relation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Protocol

from .model import Category, Relation


class StyledNode(Protocol):
    """Anything carrying the fields the fill rule reads: graph records and frame placements."""

    category: Category
    mastery: float
    unlocked: bool


@dataclass(frozen=True)
class RelationStyle:
    color: str
    width: float
    label: str


RELATION_STYLES: Dict[Relation, RelationStyle] = {
    Relation.CRITIQUES: RelationStyle(color="#ef4444", width=2.5, label="Critiques"),
    Relation.OPPOSES: RelationStyle(color="#f97316", width=2.5, label="Opposes"),
    Relation.EXPANDS_UPON: RelationStyle(color="#10b981", width=2.5, label="Expands Upon"),
    Relation.INFLUENCED_BY: RelationStyle(color="#a855f7", width=2.5, label="Influenced By"),
    Relation.RELATES_TO: RelationStyle(color="#475569", width=1.5, label="Relates To"),
}

NODE_RADII: Dict[Category, float] = {
    Category.ROOT: 40.0,
    Category.THEORY: 30.0,
    Category.PERSON: 30.0,
    Category.CONCEPT: 30.0,
}

# Gap between the node disc and its dashed mastery ring.
MASTERY_RING_GAP = 4.0

ROOT_FILL = "#d4af37"
MASTERED_FILL = "#10b981"
PERSON_FILL = "#f43f5e"
DEFAULT_FILL = "#3b82f6"
LOCKED_FILL = "#334155"
MASTERED_THRESHOLD = 80.0


def relation_style(relation: Relation) -> RelationStyle:
    return RELATION_STYLES[Relation(relation)]


def node_radius(category: Category) -> float:
    return NODE_RADII[Category(category)]


def node_fill(node: StyledNode) -> str:
    """Fill colour; order matters, root wins over mastery and mastery over person."""

    if node.category is Category.ROOT:
        return ROOT_FILL
    if not node.unlocked:
        return LOCKED_FILL
    if node.mastery > MASTERED_THRESHOLD:
        return MASTERED_FILL
    if node.category is Category.PERSON:
        return PERSON_FILL
    return DEFAULT_FILL


def mastery_ring_alpha(mastery: float) -> float:
    """Opacity of the mastery ring; zero hides it."""

    return max(0.0, min(1.0, float(mastery) / 100.0))


__all__ = [
    "MASTERY_RING_GAP",
    "NODE_RADII",
    "RELATION_STYLES",
    "RelationStyle",
    "StyledNode",
    "mastery_ring_alpha",
    "node_fill",
    "node_radius",
    "relation_style",
]
