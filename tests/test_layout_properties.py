import itertools
import math

import numpy as np
import pytest

from conceptmap.engine import LayoutEngine
from conceptmap.model import Category, ConceptLink, ConceptNode

ROOT = ConceptNode(id="root", label="Sociology", category=Category.ROOT)
FLOOR_EPS = 0.5


def _build_star(size: int, seed: int):
    rng = np.random.default_rng(seed)
    years = rng.choice(np.arange(1800, 2020), size=size - 1, replace=False)
    nodes = [ConceptNode(id=f"n{idx}", label=f"N{idx}", year=int(year)) for idx, year in enumerate(years)]
    # Dated right next to the undated root at the far end of the axis.
    nodes.append(ConceptNode(id="recent", label="Recent", year=2024))
    links = [ConceptLink("root", node.id) for node in nodes]
    return nodes, links


def _settle(mode: str, size: int, seed: int) -> LayoutEngine:
    engine = LayoutEngine(ROOT, mode=mode)
    engine.submit_nodes_links(*_build_star(size, seed))
    engine.run_until_idle()
    assert engine.is_idle
    return engine


@pytest.mark.parametrize("mode", ["network", "timeline"])
@pytest.mark.parametrize("size,seed", [(20, 3), (40, 11)])
def test_settled_star_respects_collision_floor(mode, size, seed):
    engine = _settle(mode, size, seed)
    frame = engine.frame()

    for a, b in itertools.combinations(frame.nodes.values(), 2):
        distance = math.hypot(a.x - b.x, a.y - b.y)
        assert distance >= a.radius + b.radius - FLOOR_EPS, (a.id, b.id)


@pytest.mark.parametrize("size,seed", [(20, 3), (40, 11)])
def test_settled_timeline_keeps_chronological_order(size, seed):
    engine = _settle("timeline", size, seed)
    frame = engine.frame()
    resolution = engine.year_scale.resolution

    dated = [node for node in frame.nodes.values() if node.year is not None]
    assert len(dated) == size
    for a, b in itertools.combinations(dated, 2):
        early, late = (a, b) if a.year < b.year else (b, a)
        if early.year == late.year:
            continue
        assert early.x <= late.x + resolution, (early.id, early.year, late.id, late.year)


def test_mode_switch_back_to_timeline_restores_order():
    engine = _settle("network", 20, 5)

    engine.set_mode("timeline")
    engine.run_until_idle()

    dated = sorted((node for node in engine.frame().nodes.values() if node.year is not None), key=lambda n: n.year)
    xs = [node.x for node in dated]
    assert all(left <= right + engine.year_scale.resolution for left, right in zip(xs, xs[1:]))
