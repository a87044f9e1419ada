import math

import numpy as np
import pytest

from conceptmap.engine import LayoutEngine
from conceptmap.interaction import InteractionController, Viewport
from conceptmap.model import Category, ConceptLink, ConceptNode

ROOT = ConceptNode(id="root", label="Sociology", category=Category.ROOT)


class _FakeTarget:
    """Drag target over fixed discs that records every call."""

    def __init__(self, nodes):
        self.nodes = dict(nodes)
        self.calls = []

    def hit_test(self, x, y):
        for node_id, (nx, ny, radius) in self.nodes.items():
            if math.hypot(nx - x, ny - y) <= radius:
                return node_id
        return None

    def position_of(self, node_id):
        nx, ny, _ = self.nodes[node_id]
        return (nx, ny)

    def begin_drag(self, node_id):
        self.calls.append(("begin", node_id))
        return True

    def drag_to(self, node_id, x, y):
        self.calls.append(("drag", node_id, x, y))
        self.nodes[node_id] = (x, y, self.nodes[node_id][2])
        return True

    def end_drag(self, node_id, keep_pinned=False):
        self.calls.append(("end", node_id, keep_pinned))
        return True

    def unpin(self, node_id):
        self.calls.append(("unpin", node_id))
        return True

    def emit_click(self, node_id):
        self.calls.append(("click", node_id))


def _build_controller(**kwargs):
    target = _FakeTarget({"a": (0.0, 0.0, 30.0), "b": (200.0, 0.0, 30.0)})
    return InteractionController(target, Viewport(), **kwargs), target


def test_viewport_round_trips_and_zooms_about_pointer():
    viewport = Viewport.centered(800, 600)

    assert viewport.to_screen(0.0, 0.0) == (400.0, 300.0)
    lx, ly = viewport.to_logical(*viewport.to_screen(12.0, -7.0))
    assert (lx, ly) == pytest.approx((12.0, -7.0))

    before = viewport.to_logical(500.0, 250.0)
    viewport.zoom_at(500.0, 250.0, 2.0)
    assert viewport.scale == 2.0
    assert viewport.to_logical(500.0, 250.0) == pytest.approx(before)
    assert np.allclose(viewport.apply(np.array([[0.0, 0.0]])), [viewport.to_screen(0.0, 0.0)])


def test_viewport_scale_is_clamped():
    viewport = Viewport()

    viewport.zoom_at(0.0, 0.0, 100.0)
    assert viewport.scale == 4.0
    viewport.zoom_at(0.0, 0.0, 1e-6)
    assert viewport.scale == 0.1
    assert viewport.zoom_at(0.0, 0.0, -1.0) == 0.1
    with pytest.raises(ValueError):
        Viewport(min_scale=2.0, max_scale=1.0)


def test_drag_keeps_grab_offset_and_releases_pin():
    controller, target = _build_controller()

    assert controller.pointer_down(10.0, 0.0) == "a"
    assert controller.dragging == "a"
    controller.pointer_move(60.0, 20.0)
    clicked = controller.pointer_up(60.0, 20.0)

    assert clicked is None
    assert controller.dragging is None
    assert target.calls == [("begin", "a"), ("drag", "a", 50.0, 20.0), ("end", "a", False)]
    assert controller.focused is None


def test_click_emits_and_focuses():
    controller, target = _build_controller()

    controller.pointer_down(200.0, 1.0)
    clicked = controller.pointer_up(201.0, 1.0)

    assert clicked == "b"
    assert controller.focused == "b"
    assert target.calls[-1] == ("click", "b")
    assert ("end", "b", False) in target.calls


def test_focused_node_stays_pinned_when_configured():
    controller, target = _build_controller(keep_focused_pinned=True)
    controller.focus("a")

    controller.pointer_down(0.0, 0.0)
    controller.pointer_move(40.0, 40.0)
    controller.pointer_up(40.0, 40.0)
    controller.pointer_down(200.0, 0.0)
    controller.pointer_move(240.0, 0.0)
    controller.pointer_up(240.0, 0.0)

    ends = [call for call in target.calls if call[0] == "end"]
    assert ends == [("end", "a", True), ("end", "b", False)]


def test_moving_focus_releases_previously_kept_pin():
    controller, target = _build_controller(keep_focused_pinned=True)

    controller.pointer_down(0.0, 0.0)
    controller.pointer_up(0.0, 0.0)
    controller.pointer_down(200.0, 0.0)
    controller.pointer_up(200.0, 0.0)

    assert controller.focused == "b"
    assert target.calls == [
        ("begin", "a"),
        ("end", "a", True),
        ("click", "a"),
        ("begin", "b"),
        ("unpin", "a"),
        ("end", "b", True),
        ("click", "b"),
    ]

    controller.focus(None)
    assert target.calls[-1] == ("unpin", "b")


def test_engine_keeps_only_the_focused_node_pinned():
    engine = LayoutEngine(ROOT, keep_focused_pinned=True)
    engine.submit_nodes_links(
        [ConceptNode(id="a", label="A"), ConceptNode(id="b", label="B")],
        [ConceptLink("root", "a"), ConceptLink("root", "b")],
    )
    engine.run_until_idle()
    viewport = engine.interaction.viewport

    for node_id in ("a", "b"):
        sx, sy = viewport.to_screen(*engine.position_of(node_id))
        engine.interaction.pointer_down(sx, sy)
        engine.interaction.pointer_up(sx, sy)

    assert engine.interaction.focused == "b"
    assert engine.simulation.pin_of("a") is None
    assert engine.simulation.pin_of("b") is not None


def test_background_drag_pans_viewport():
    controller, target = _build_controller()

    assert controller.pointer_down(500.0, 500.0) is None
    assert controller.panning
    controller.pointer_move(520.0, 490.0)
    controller.pointer_up(530.0, 480.0)

    assert (controller.viewport.translate_x, controller.viewport.translate_y) == (30.0, -20.0)
    assert target.calls == []


def test_wheel_zooms_by_step():
    controller, _ = _build_controller(zoom_step=2.0)

    assert controller.wheel(0.0, 0.0, 1) == 2.0
    assert controller.wheel(0.0, 0.0, -2) == 0.5


def test_cancel_releases_active_drag():
    controller, target = _build_controller(keep_focused_pinned=True)
    controller.focus("a")
    controller.pointer_down(0.0, 0.0)

    controller.cancel()

    assert controller.dragging is None
    assert target.calls[-1] == ("end", "a", False)
