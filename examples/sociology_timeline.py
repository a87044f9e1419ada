"""Example pipeline: expand a concept map, settle it in both views and print coordinates."""

from conceptmap import Category, ConceptNode, ExpandResult, LayoutEngine

ROOT = ConceptNode(
    id="root",
    label="Sociology",
    category=Category.ROOT,
    description="The systematic study of society and social interaction.",
)

EXPANSION = {
    "nodes": [
        {"id": "marx", "label": "Karl Marx", "type": "person", "year": 1867},
        {"id": "weber", "label": "Max Weber", "type": "person", "year": 1905},
        {"id": "durkheim", "label": "Emile Durkheim", "type": "person", "year": 1895},
        {"id": "conflict", "label": "Conflict Theory", "type": "theory", "year": 1848},
        {"id": "anomie", "label": "Anomie", "type": "concept", "year": 1893},
    ],
    "links": [
        {"source": "root", "target": "marx"},
        {"source": "root", "target": "weber"},
        {"source": "root", "target": "durkheim"},
        {"source": "marx", "target": "conflict", "relation": "EXPANDS_UPON"},
        {"source": "weber", "target": "marx", "relation": "CRITIQUES"},
        {"source": "durkheim", "target": "anomie", "relation": "EXPANDS_UPON"},
    ],
}


def main() -> None:
    engine = LayoutEngine(ROOT, mode="network")
    engine.submit_expand(ExpandResult.from_payload(EXPANSION), anchor_id="root")
    ticks = engine.run_until_idle()
    print(f"Network settled after {ticks} tick(s)")
    for node_id, (x, y) in engine.positions().items():
        print(f"  {node_id}: ({x:.2f}, {y:.2f})")

    engine.set_mode("timeline")
    ticks = engine.run_until_idle()
    print(f"\nTimeline settled after {ticks} tick(s)")
    scale = engine.year_scale
    frame = engine.frame()
    for node in sorted(frame.nodes.values(), key=lambda placement: placement.x):
        year = "undated" if node.year is None else str(node.year)
        print(f"  {node.label:<18} {year:>8}  x={node.x:8.2f}  (axis year {scale.invert(node.x):.0f})")

    engine.teardown()


if __name__ == "__main__":
    main()
