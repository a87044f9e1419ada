"""Payloads exchanged with the knowledge-expansion and branch-suggestion services.

Both services hand over plain JSON-like mappings; the helpers here turn them
into graph records, skipping entries that cannot be parsed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from .model import (
    Category,
    ConceptLink,
    ConceptNode,
    NodeId,
    Relation,
    link_from_mapping,
    node_from_mapping,
)

logger = logging.getLogger(__name__)

BRANCH_OFFSET: Tuple[float, float] = (50.0, 50.0)


@dataclass
class ExpandResult:
    nodes: List[ConceptNode] = field(default_factory=list)
    links: List[ConceptLink] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExpandResult":
        nodes: List[ConceptNode] = []
        links: List[ConceptLink] = []
        for raw in payload.get("nodes") or []:
            try:
                nodes.append(node_from_mapping(raw))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed node payload %r: %s", raw, exc)
        for raw in payload.get("links") or []:
            try:
                links.append(link_from_mapping(raw))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed link payload %r: %s", raw, exc)
        return cls(nodes=nodes, links=links)

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.links

    def with_fallback_links(self, anchor_id: NodeId) -> "ExpandResult":
        """Connect every new node to ``anchor_id`` when the service returned no links."""

        if self.links or not self.nodes:
            return self
        fallback = [ConceptLink(anchor_id, node.id, Relation.RELATES_TO) for node in self.nodes]
        logger.info("Expansion returned no links; linking %d node(s) to %r", len(fallback), anchor_id)
        return ExpandResult(nodes=list(self.nodes), links=fallback)


@dataclass
class BranchSuggestion:
    """A single node proposed during a debate, attached to the node being debated."""

    label: str
    description: str = ""
    category: Category = Category.CONCEPT
    associated_theorist: Optional[str] = None
    relation: Relation = Relation.RELATES_TO

    def __post_init__(self) -> None:
        self.category = Category(self.category)
        self.relation = Relation(self.relation)
        if self.category is Category.ROOT:
            raise ValueError("a branch suggestion cannot propose a root node")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "BranchSuggestion":
        return cls(
            label=str(payload["label"]),
            description=str(payload.get("description", "")),
            category=Category(payload.get("type", payload.get("category", Category.CONCEPT.value))),
            associated_theorist=payload.get("associatedTheorist", payload.get("associated_theorist")),
            relation=Relation(payload.get("relation", Relation.RELATES_TO.value)),
        )

    def to_expand(
        self,
        parent: ConceptNode,
        node_id: NodeId,
        parent_position: Optional[Tuple[float, float]] = None,
    ) -> ExpandResult:
        hint = None
        if parent_position is not None:
            hint = (parent_position[0] + BRANCH_OFFSET[0], parent_position[1] + BRANCH_OFFSET[1])
        node = ConceptNode(
            id=node_id,
            label=self.label,
            category=self.category,
            year=parent.year,
            mastery=0.0,
            unlocked=True,
            description=self.description,
            key_definition=self.description,
            academic_controversy="Newly discovered connection.",
            associated_theorist=self.associated_theorist,
            position_hint=hint,
        )
        return ExpandResult(nodes=[node], links=[ConceptLink(parent.id, node_id, self.relation)])


__all__ = ["BRANCH_OFFSET", "BranchSuggestion", "ExpandResult"]
