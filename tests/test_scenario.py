"""End-to-end layout of the three node Sociology map in both projections."""

import itertools
import math

import pytest

from conceptmap import Category, ConceptLink, ConceptNode, LayoutEngine

ROOT = ConceptNode(id="root", label="Sociology", category=Category.ROOT)
NODES = [
    ConceptNode(id="marx", label="Karl Marx", category=Category.PERSON, year=1867),
    ConceptNode(id="weber", label="Max Weber", category=Category.PERSON, year=1905),
]
LINKS = [ConceptLink("root", "marx"), ConceptLink("root", "weber")]


def _settle(mode: str) -> LayoutEngine:
    engine = LayoutEngine(ROOT, mode=mode)
    engine.submit_nodes_links(NODES, LINKS)
    engine.run_until_idle(max_ticks=5_000)
    assert engine.is_idle
    return engine


def _reachable(engine: LayoutEngine, start: str):
    snapshot = engine.snapshot()
    seen = {start}
    frontier = [start]
    while frontier:
        current = frontier.pop()
        for neighbor in snapshot.neighbors(current):
            if neighbor not in seen:
                seen.add(neighbor)
                frontier.append(neighbor)
    return seen


def test_timeline_orders_marx_weber_then_undated_root():
    engine = _settle("timeline")
    frame = engine.frame()

    assert frame.nodes["marx"].x < frame.nodes["weber"].x < frame.nodes["root"].x


@pytest.mark.parametrize("mode", ["network", "timeline"])
def test_settled_nodes_do_not_overlap(mode):
    frame = _settle(mode).frame()

    for a, b in itertools.combinations(frame.nodes.values(), 2):
        assert math.hypot(a.x - b.x, a.y - b.y) >= a.radius + b.radius - 1e-2


def test_network_nodes_are_mutually_reachable():
    engine = _settle("network")

    assert _reachable(engine, "root") == {"root", "marx", "weber"}
    assert _reachable(engine, "marx") == {"root", "marx", "weber"}
