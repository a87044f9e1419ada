import numpy as np
import pytest

from conceptmap.model import Category, ConceptNode
from conceptmap.projections import (
    NetworkProjection,
    ProjectionMode,
    TimelineProjection,
    YearScale,
    centering_shift,
    make_projection,
)


def _node(node_id: str, year=None) -> ConceptNode:
    return ConceptNode(id=node_id, label=node_id.title(), category=Category.CONCEPT, year=year)


def test_year_scale_maps_domain_onto_margined_width():
    scale = YearScale.for_width(800)

    assert scale.range == (-350.0, 350.0)
    assert scale(1800) == pytest.approx(-350.0)
    assert scale(2025) == pytest.approx(350.0)
    assert scale(1912.5) == pytest.approx(0.0)


def test_year_scale_clamps_out_of_domain_years():
    scale = YearScale.for_width(800)

    assert scale(1650) == pytest.approx(-350.0)
    assert scale(2300) == pytest.approx(350.0)
    assert scale.invert(scale(1905)) == pytest.approx(1905.0)
    assert scale.invert(10_000) == pytest.approx(2025.0)


def test_year_scale_rejects_empty_domain():
    with pytest.raises(ValueError):
        YearScale(domain=(1900.0, 1900.0))


def test_year_scale_ticks_use_round_steps():
    assert YearScale().ticks(10) == [1800, 1850, 1900, 1950, 2000]
    assert YearScale().ticks(5) == [1800, 1850, 1900, 1950, 2000]


def test_timeline_targets_follow_years_and_default_to_domain_end():
    projection = TimelineProjection(scale=YearScale.for_width(800))
    targets = projection.targets([_node("marx", 1867), _node("weber", 1905), _node("undated")])

    assert targets.x[0] < targets.x[1] < targets.x[2]
    assert targets.x[2] == pytest.approx(350.0)
    assert np.allclose(targets.y, 0.0)
    assert np.allclose(targets.strength_x, 0.8)
    assert np.allclose(targets.strength_y, 0.3)


def test_timeline_default_year_override():
    projection = TimelineProjection(scale=YearScale.for_width(800), default_year=1800)

    assert projection.fallback_year == 1800.0
    assert projection.target_x(_node("undated")) == pytest.approx(-350.0)


def test_network_targets_pull_weakly_to_center():
    projection = NetworkProjection(center=(5.0, -5.0))
    targets = projection.targets([_node("a"), _node("b")])

    assert len(targets) == 2
    assert np.allclose(targets.x, 5.0)
    assert np.allclose(targets.y, -5.0)
    assert np.allclose(targets.strength_x, 0.01)
    assert projection.recenter is True


def test_empty_targets_have_zero_length():
    assert len(NetworkProjection().targets([])) == 0


def test_make_projection_resolves_mode_strings():
    timeline = make_projection("timeline", width=1000)
    network = make_projection(ProjectionMode.NETWORK)

    assert isinstance(timeline, TimelineProjection)
    assert timeline.scale.range == (-450.0, 450.0)
    assert timeline.recenter is False
    assert isinstance(network, NetworkProjection)
    with pytest.raises(ValueError):
        make_projection("radial")


def test_centering_shift_moves_centroid_onto_center():
    points = np.array([[0.0, 0.0], [10.0, 20.0]])

    assert np.allclose(centering_shift(points, (0.0, 0.0)), [-5.0, -10.0])
    assert np.allclose(centering_shift(np.zeros((0, 2)), (1.0, 1.0)), [0.0, 0.0])
