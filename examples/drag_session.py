"""Example pipeline: simulate a pointer drag and a debate branch, then render a PNG."""

import sys

from conceptmap import BranchSuggestion, Category, ConceptLink, ConceptNode, LayoutEngine
from conceptmap.render import save_frame_png

ROOT = ConceptNode(id="root", label="Sociology", category=Category.ROOT)
NODES = [
    ConceptNode(id="marx", label="Karl Marx", category=Category.PERSON, year=1867, mastery=60),
    ConceptNode(id="weber", label="Max Weber", category=Category.PERSON, year=1905, mastery=95),
]
LINKS = [ConceptLink("root", "marx"), ConceptLink("root", "weber", "INFLUENCED_BY")]


def main(output: str = "drag_session.png") -> None:
    engine = LayoutEngine(ROOT, keep_focused_pinned=True, on_node_click=lambda node_id: print(f"clicked {node_id}"))
    engine.submit_nodes_links(NODES, LINKS)
    engine.run_until_idle()

    viewport = engine.interaction.viewport
    sx, sy = viewport.to_screen(*engine.position_of("marx"))
    engine.interaction.pointer_down(sx, sy)
    engine.interaction.pointer_up(sx, sy)

    # Drag the now focused node; it stays pinned where it is dropped.
    engine.interaction.pointer_down(sx, sy)
    for step in range(1, 11):
        engine.interaction.pointer_move(sx - 15.0 * step, sy - 5.0 * step)
        engine.tick()
    engine.interaction.pointer_up(sx - 150.0, sy - 50.0)
    print(f"marx pinned at {engine.simulation.pin_of('marx')}")

    engine.submit_branch(
        "marx",
        BranchSuggestion(label="Critical Theory", category=Category.THEORY, relation="EXPANDS_UPON"),
    )
    engine.run_until_idle()
    for node_id, (x, y) in engine.positions().items():
        print(f"  {node_id}: ({x:.2f}, {y:.2f})")

    path = save_frame_png(engine.frame(), output, title="Sociology")
    print(f"Image written to {path}")
    engine.teardown()


if __name__ == "__main__":
    main(*sys.argv[1:2])
