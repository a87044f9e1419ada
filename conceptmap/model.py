"""Authoritative concept graph records and the append-only graph store."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

logger = logging.getLogger(__name__)

NodeId = str


class Category(str, enum.Enum):
    ROOT = "root"
    THEORY = "theory"
    PERSON = "person"
    CONCEPT = "concept"


class Relation(str, enum.Enum):
    CRITIQUES = "CRITIQUES"
    EXPANDS_UPON = "EXPANDS_UPON"
    INFLUENCED_BY = "INFLUENCED_BY"
    OPPOSES = "OPPOSES"
    RELATES_TO = "RELATES_TO"

    @property
    def is_strong(self) -> bool:
        """Theoretical claims, as opposed to the weak ``RELATES_TO`` association."""

        return self is not Relation.RELATES_TO


MASTERY_MIN = 0.0
MASTERY_MAX = 100.0


def clamp_mastery(value: float) -> float:
    return min(MASTERY_MAX, max(MASTERY_MIN, float(value)))


@dataclass(frozen=True)
class ConceptNode:
    """A concept, theory or theorist shown on the map.

    Records are immutable; restyling produces a new record so that snapshots
    handed to the simulation never change underneath it.
    """

    id: NodeId
    label: str
    category: Category = Category.CONCEPT
    year: Optional[int] = None
    mastery: float = 0.0
    unlocked: bool = True
    description: str = ""
    key_definition: str = ""
    seminal_works: Tuple[str, ...] = ()
    academic_controversy: str = ""
    associated_theorist: Optional[str] = None
    position_hint: Optional[Tuple[float, float]] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", Category(self.category))
        object.__setattr__(self, "mastery", clamp_mastery(self.mastery))
        object.__setattr__(self, "seminal_works", tuple(self.seminal_works))
        if self.year is not None:
            object.__setattr__(self, "year", int(self.year))
        if self.position_hint is not None:
            x, y = (float(value) for value in self.position_hint)
            if not (math.isfinite(x) and math.isfinite(y)):
                logger.warning("Dropping non-finite position hint %r for node %r", self.position_hint, self.id)
                object.__setattr__(self, "position_hint", None)
            else:
                object.__setattr__(self, "position_hint", (x, y))

    @property
    def is_root(self) -> bool:
        return self.category is Category.ROOT


@dataclass(frozen=True)
class ConceptLink:
    source: NodeId
    target: NodeId
    relation: Relation = Relation.RELATES_TO

    def __post_init__(self) -> None:
        object.__setattr__(self, "relation", Relation(self.relation))

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def describe(self) -> str:
        return f"{self.source}-[{self.relation.value}]->{self.target}"


@dataclass
class GraphWarning:
    kind: str
    subject: str
    message: str

    def __str__(self) -> str:  # pragma: no cover - trivial string formatting
        return self.message


NodeLike = Union[ConceptNode, Mapping[str, object]]
LinkLike = Union[ConceptLink, Mapping[str, object]]


def node_from_mapping(data: Mapping[str, object]) -> ConceptNode:
    """Build a node from a plain mapping using either snake or camel case keys."""

    def pick(*keys: str, default: object = None) -> object:
        for key in keys:
            if key in data and data[key] is not None:
                return data[key]
        return default

    year = pick("year")
    hint = pick("position_hint")
    if hint is None and data.get("x") is not None and data.get("y") is not None:
        hint = (data["x"], data["y"])
    return ConceptNode(
        id=str(data["id"]),
        label=str(pick("label", default=data["id"])),
        category=Category(pick("category", "type", default=Category.CONCEPT.value)),
        year=int(year) if year is not None else None,  # type: ignore[arg-type]
        mastery=float(pick("mastery", default=0.0)),  # type: ignore[arg-type]
        unlocked=bool(pick("unlocked", default=True)),
        description=str(pick("description", default="")),
        key_definition=str(pick("key_definition", "keyDefinition", default="")),
        seminal_works=tuple(pick("seminal_works", "seminalWorks", default=()) or ()),  # type: ignore[arg-type]
        academic_controversy=str(pick("academic_controversy", "academicControversy", default="")),
        associated_theorist=pick("associated_theorist", "associatedTheorist"),  # type: ignore[arg-type]
        position_hint=hint,  # type: ignore[arg-type]
    )


def link_from_mapping(data: Mapping[str, object]) -> ConceptLink:
    return ConceptLink(
        source=str(data["source"]),
        target=str(data["target"]),
        relation=Relation(data.get("relation", Relation.RELATES_TO.value)),
    )


@dataclass(frozen=True)
class GraphSnapshot:
    """Read-only view of the graph at one model version.

    Iteration helpers return fresh iterators, so a snapshot can be walked any
    number of times.
    """

    version: int
    nodes: Tuple[ConceptNode, ...]
    links: Tuple[ConceptLink, ...]
    _by_id: Dict[NodeId, ConceptNode] = field(default_factory=dict, repr=False, compare=False)
    _adjacency: Dict[NodeId, Tuple[NodeId, ...]] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def build(cls, version: int, nodes: Iterable[ConceptNode], links: Iterable[ConceptLink]) -> "GraphSnapshot":
        node_tuple = tuple(nodes)
        link_tuple = tuple(links)
        by_id = {node.id: node for node in node_tuple}
        adjacency: Dict[NodeId, List[NodeId]] = {node.id: [] for node in node_tuple}
        for link in link_tuple:
            if link.is_self_loop:
                continue
            adjacency[link.source].append(link.target)
            adjacency[link.target].append(link.source)
        return cls(
            version=version,
            nodes=node_tuple,
            links=link_tuple,
            _by_id=by_id,
            _adjacency={key: tuple(value) for key, value in adjacency.items()},
        )

    def iter_nodes(self) -> Iterator[ConceptNode]:
        return iter(self.nodes)

    def iter_links(self) -> Iterator[ConceptLink]:
        return iter(self.links)

    def node(self, node_id: NodeId) -> Optional[ConceptNode]:
        return self._by_id.get(node_id)

    def neighbors(self, node_id: NodeId) -> Tuple[NodeId, ...]:
        """Neighbours in link order, ignoring self-loops."""

        return self._adjacency.get(node_id, ())

    def degree(self, node_id: NodeId) -> int:
        return len(self._adjacency.get(node_id, ()))

    @property
    def root(self) -> ConceptNode:
        for node in self.nodes:
            if node.is_root:
                return node
        raise LookupError("snapshot has no root node")  # pragma: no cover - guarded by GraphModel

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id


class GraphModel:
    """Append-only store of concept nodes and links.

    Rejected input never raises: it is reported as :class:`GraphWarning`
    values, logged, and forwarded to ``on_warning`` when one is registered.
    """

    def __init__(
        self,
        root: NodeLike,
        *,
        on_warning: Optional[Callable[[GraphWarning], None]] = None,
    ) -> None:
        root_node = root if isinstance(root, ConceptNode) else node_from_mapping(root)
        if not root_node.is_root:
            raise ValueError(f"graph must be created from a root node, got category {root_node.category.value!r}")
        self._nodes: Dict[NodeId, ConceptNode] = {root_node.id: root_node}
        self._links: List[ConceptLink] = []
        self._root_id = root_node.id
        self._version = 0
        self._snapshot: Optional[GraphSnapshot] = None
        self.on_warning = on_warning
        logger.info("Created graph with root %r", root_node.id)

    # -- queries -----------------------------------------------------------

    @property
    def version(self) -> int:
        return self._version

    @property
    def root(self) -> ConceptNode:
        return self._nodes[self._root_id]

    @property
    def links(self) -> Tuple[ConceptLink, ...]:
        return tuple(self._links)

    def get(self, node_id: NodeId) -> Optional[ConceptNode]:
        return self._nodes.get(node_id)

    def node_ids(self) -> List[NodeId]:
        return list(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def snapshot(self) -> GraphSnapshot:
        """Return the snapshot for the current version, building it on first use."""

        if self._snapshot is None or self._snapshot.version != self._version:
            self._snapshot = GraphSnapshot.build(self._version, self._nodes.values(), self._links)
        return self._snapshot

    # -- mutation ----------------------------------------------------------

    def _warn(self, warnings: List[GraphWarning], kind: str, subject: str, message: str, *, quiet: bool = False) -> None:
        warning = GraphWarning(kind=kind, subject=subject, message=message)
        warnings.append(warning)
        if quiet:
            logger.debug(message)
        else:
            logger.warning(message)
        if self.on_warning is not None:
            self.on_warning(warning)

    def _touch(self) -> None:
        self._version += 1

    def add_nodes(self, nodes: Iterable[NodeLike]) -> List[GraphWarning]:
        warnings: List[GraphWarning] = []
        added = 0
        for item in nodes:
            try:
                node = item if isinstance(item, ConceptNode) else node_from_mapping(item)
            except (KeyError, TypeError, ValueError) as exc:
                self._warn(warnings, "invalid-node", repr(item), f"Rejected malformed node {item!r}: {exc}")
                continue
            if node.id in self._nodes:
                self._warn(
                    warnings,
                    "duplicate-node",
                    node.id,
                    f"Rejected node {node.id!r}: id already exists",
                )
                continue
            if node.is_root:
                self._warn(
                    warnings,
                    "extra-root",
                    node.id,
                    f"Rejected node {node.id!r}: graph already has root {self._root_id!r}",
                )
                continue
            self._nodes[node.id] = node
            added += 1
        if added:
            self._touch()
            logger.info("Added %d node(s); graph now has %d", added, len(self._nodes))
        return warnings

    def add_links(self, links: Iterable[LinkLike]) -> List[GraphWarning]:
        warnings: List[GraphWarning] = []
        added = 0
        for item in links:
            try:
                link = item if isinstance(item, ConceptLink) else link_from_mapping(item)
            except (KeyError, TypeError, ValueError) as exc:
                self._warn(
                    warnings, "invalid-relation", repr(item), f"Dropped malformed link {item!r}: {exc}", quiet=True
                )
                continue
            missing = [end for end in (link.source, link.target) if end not in self._nodes]
            if missing:
                self._warn(
                    warnings,
                    "unknown-endpoint",
                    link.describe(),
                    f"Dropped link {link.describe()}: unknown endpoint(s) {', '.join(missing)}",
                    quiet=True,
                )
                continue
            self._links.append(link)
            added += 1
        if added:
            self._touch()
            logger.info("Added %d link(s); graph now has %d", added, len(self._links))
        return warnings

    def expand(self, nodes: Iterable[NodeLike], links: Iterable[LinkLike]) -> List[GraphWarning]:
        """Append an expansion: nodes first, so links may reference them."""

        warnings = self.add_nodes(nodes)
        warnings.extend(self.add_links(links))
        return warnings

    def set_mastery(self, node_id: NodeId, value: float) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("set_mastery ignored for unknown node %r", node_id)
            return False
        mastery = clamp_mastery(value)
        if mastery != node.mastery:
            self._nodes[node_id] = replace(node, mastery=mastery)
            self._touch()
        return True

    def set_unlocked(self, node_id: NodeId, unlocked: bool) -> bool:
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("set_unlocked ignored for unknown node %r", node_id)
            return False
        if bool(unlocked) != node.unlocked:
            self._nodes[node_id] = replace(node, unlocked=bool(unlocked))
            self._touch()
        return True


__all__ = [
    "Category",
    "ConceptLink",
    "ConceptNode",
    "GraphModel",
    "GraphSnapshot",
    "GraphWarning",
    "NodeId",
    "Relation",
    "clamp_mastery",
    "link_from_mapping",
    "node_from_mapping",
]
