import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

from conceptmap import (
    Category,
    ConceptNode,
    ExpandResult,
    LayoutEngine,
    ProjectionMode,
    get_simulation_config,
)
from conceptmap.render import save_frame_png

logger = logging.getLogger(__name__)

DEMO_ROOT = ConceptNode(
    id="root",
    label="Sociology",
    category=Category.ROOT,
    year=1838,
    mastery=100.0,
    description="The systematic study of society and social interaction.",
    key_definition=(
        "Sociology is the scientific study of social behavior, its origins, development, "
        "organization, and institutions."
    ),
    seminal_works=(
        "The Rules of Sociological Method (Durkheim, 1895)",
        "Economy and Society (Weber, 1922)",
    ),
    academic_controversy="The tension between structure (social forces) and agency (individual action).",
)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _load_expansions(paths: Sequence[str]) -> List[ExpandResult]:
    results: List[ExpandResult] = []
    for path in paths:
        with open(path, encoding="utf-8") as fin:
            payload: Any = json.load(fin)
        batches = payload if isinstance(payload, list) else [payload]
        for batch in batches:
            result = ExpandResult.from_payload(batch)
            logger.info(
                "Loaded %d node(s) and %d link(s) from %s",
                len(result.nodes),
                len(result.links),
                path,
            )
            results.append(result)
    return results


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Lay out a concept map with a force simulation")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ProjectionMode],
        default=ProjectionMode.NETWORK.value,
        help="Projection used for the layout (default: network)",
    )
    parser.add_argument(
        "--expand",
        action="append",
        default=[],
        metavar="FILE",
        help="JSON expand result ({nodes, links} or a list of them); may be repeated",
    )
    parser.add_argument(
        "--anchor",
        default=DEMO_ROOT.id,
        help="Node that unlinked expansion results are attached to (default: root)",
    )
    parser.add_argument("--width", type=float, default=800.0, help="Viewport width (default: 800)")
    parser.add_argument("--height", type=float, default=600.0, help="Viewport height (default: 600)")
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Random seed for jiggle and seeding (default: 0)",
    )
    parser.add_argument(
        "--max-ticks",
        type=int,
        default=2000,
        help="Upper bound on simulation ticks (default: 2000)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--png", help="Write the settled layout to the given PNG path")
    parser.add_argument(
        "--show",
        action="store_true",
        help="Open an interactive window after settling",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    config = get_simulation_config(random_seed=args.seed)
    expansions = _load_expansions(args.expand)

    if args.show:
        from conceptmap.viewer import MapViewer

        viewer = MapViewer(DEMO_ROOT, width=args.width, height=args.height, mode=args.mode, config=config)
        for result in expansions:
            viewer.engine.submit_expand(result, anchor_id=args.anchor)
        viewer.show()
        return

    engine = LayoutEngine(
        DEMO_ROOT,
        mode=args.mode,
        width=args.width,
        height=args.height,
        config=config,
    )
    for result in expansions:
        engine.submit_expand(result, anchor_id=args.anchor)

    ticks = engine.run_until_idle(max_ticks=args.max_ticks)
    frame = engine.frame()
    if not engine.is_idle:
        logger.warning("Layout still active after %d tick(s), alpha=%.4f", ticks, engine.simulation.alpha)

    print(f"Mode: {frame.mode.value}")
    print(f"Ticks: {ticks} (idle={frame.idle})")
    print("Warnings:")
    if engine.warnings:
        for warning in engine.warnings:
            print(f"  - {warning}")
    else:
        print("  (none)")
    print("Coordinates:")
    for node_id, node in frame.nodes.items():
        print(f"  {node_id}: ({node.x:.3f}, {node.y:.3f})")

    if args.png:
        output_path = Path(args.png)
        logger.info("Writing layout image to %s", output_path)
        save_frame_png(
            frame,
            output_path,
            width=args.width,
            height=args.height,
            year_scale=engine.year_scale,
            title=DEMO_ROOT.label,
        )
        print(f"Image written to {output_path}")

    engine.teardown()


if __name__ == "__main__":
    main(sys.argv[1:])
