"""Command-line entry point.

Usage:
    scatterfield generate                          # random seed, no tokens
    scatterfield generate --seed 42 --scenario Raze --out map.png
    scatterfield generate --weighted --resources 2,1,3,2,2 --check
    scatterfield generate --catalog my_catalog.json --out layout.json
    scatterfield check map.png                     # validate a saved layout

Resources are per-category piece counts in the order
blocking,difficult,obstacle,hill,forest. Scenarios may be given by name
("Raze", "SMOKE_AND_MIRRORS") or by scenario id.
"""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import Future
from pathlib import Path

from ..engine.catalog_io import default_catalog, load_catalog
from ..engine.collision import find_overlaps, find_token_violations
from ..engine.generate import run_map_generation
from ..engine.tokens import run_token_generation
from ..engine.types import MapParams, Scenario, TokenParams
from .layout_io import (
    layout_from_dict,
    layout_to_dict,
    load_layout,
    save_layout_json,
    save_layout_png,
)
from .renderer import (
    MapRenderer,
    RenderSurface,
    TokenRenderer,
    compose,
    render_tokens_when_ready,
)
from .scenarios import get_scenario
from .settings import GeneratorSettings, parse_seed

logger = logging.getLogger(__name__)

LOG_FORMAT = (
    "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | "
    "%(message)s"
)


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _resolve_scenario(value: str) -> Scenario:
    by_id = get_scenario(value)
    if by_id is not None:
        return by_id
    return Scenario.from_name(value)


def _report_violations(overlaps, token_violations) -> int:
    for i, j in overlaps:
        print(f"Terrain overlap: node {i} and node {j}")
    for kind, ti, other in token_violations:
        if kind == "terrain":
            print(f"Token {ti} too close to terrain node {other}")
        else:
            print(f"Token {ti} too close to token {other}")
    count = len(overlaps) + len(token_violations)
    if count:
        print(f"{count} violation(s)")
        return 1
    print("Layout OK")
    return 0


def _render(run, token_run, debug_level, surface_width):
    map_img = MapRenderer(run.width, run.height).render(
        run.nodes, debug=debug_level > 0
    )
    if token_run is None:
        return map_img
    # Surface size is known up front here, so the handoff resolves at once.
    surface: Future[RenderSurface] = Future()
    surface.set_result(RenderSurface(surface_width))
    token_img = render_tokens_when_ready(
        TokenRenderer(run.width, run.height),
        token_run.tokens,
        surface,
        debug_level=debug_level,
    )
    return compose(map_img, token_img)


def cmd_generate(args) -> int:
    seed = parse_seed(args.seed) if args.seed is not None else None
    if args.catalog:
        catalog = load_catalog(Path(args.catalog))
    else:
        catalog = default_catalog()
    settings = GeneratorSettings.from_query(None, args.resources)
    settings.weighted = args.weighted
    params = MapParams(
        height=args.height,
        width=args.width,
        edge_boundary=args.edge,
        resources=settings.resource_budget(catalog),
        weighted=settings.weighted,
        seed=seed,
        catalog=catalog,
    )
    run = run_map_generation(params)
    print(f"Map Seed: {run.seed}")
    print(
        f"Placed {len(run.nodes)}/{run.target_count} pieces "
        f"in {run.attempts} attempts ({run.status.value})"
    )
    for type_id, n in sorted(run.counts_by_type().items()):
        print(f"  {catalog[type_id].visual_tag or type_id}: {n}")

    token_run = None
    if args.scenario:
        token_run = run_token_generation(
            run.nodes,
            TokenParams(
                scenario=_resolve_scenario(args.scenario),
                seed=run.seed,
                width=run.width,
                height=run.height,
            ),
        )
        if token_run.success:
            print(
                f"{token_run.scenario.value}: "
                f"{len(token_run.tokens)} token(s)"
            )
            for t in token_run.tokens:
                print(f"  {t}")
        else:
            print(
                f"{token_run.scenario.value}: no token layout found "
                f"after {token_run.attempts} runs"
            )

    if args.out:
        layout = layout_to_dict(run, catalog, token_run)
        if args.out.lower().endswith(".json"):
            save_layout_json(layout, args.out)
        elif args.out.lower().endswith(".png"):
            img = _render(run, token_run, args.debug_level, args.surface_width)
            save_layout_png(img, layout, args.out)
        else:
            raise ValueError(f"Unsupported file extension: {args.out}")
        print(f"Layout written to {args.out}")

    if args.check:
        tokens = token_run.tokens if token_run is not None else []
        return _report_violations(
            find_overlaps(run.nodes), find_token_violations(tokens, run.nodes)
        )
    return 0


def cmd_check(args) -> int:
    run, _, token_run = layout_from_dict(load_layout(args.path))
    tokens = token_run.tokens if token_run is not None else []
    print(f"Map Seed: {run.seed}")
    return _report_violations(
        find_overlaps(run.nodes), find_token_violations(tokens, run.nodes)
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="scatterfield",
        description="Generate wargame terrain layouts and scenario tokens",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging"
    )
    sub = parser.add_subparsers(dest="command")

    p_gen = sub.add_parser("generate", help="Generate a new layout")
    p_gen.add_argument("--seed", help="Map seed (0..2**32-1)")
    p_gen.add_argument("--scenario", help="Scenario name or id")
    p_gen.add_argument("--width", type=float, default=600.0)
    p_gen.add_argument("--height", type=float, default=400.0)
    p_gen.add_argument(
        "--edge",
        type=float,
        default=50.0,
        help="Margin kept free of piece centers (default: 50)",
    )
    p_gen.add_argument(
        "--weighted",
        action="store_true",
        help="Pick terrain types according to their catalog weights",
    )
    p_gen.add_argument(
        "--resources",
        help="Per-category piece counts: blocking,difficult,obstacle,"
        "hill,forest",
    )
    p_gen.add_argument("--catalog", help="Terrain catalog JSON file")
    p_gen.add_argument(
        "--debug-level",
        type=int,
        choices=[0, 1, 2],
        default=0,
        help="Overlay bounding circles (1) and token radii (1, 2)",
    )
    p_gen.add_argument(
        "--surface-width",
        type=int,
        default=600,
        help="Width in pixels of the rendered image (default: 600)",
    )
    p_gen.add_argument(
        "--out", "-o", help="Write the layout to a .png or .json file"
    )
    p_gen.add_argument(
        "--check",
        action="store_true",
        help="Validate the layout; exit 1 on violations",
    )

    p_check = sub.add_parser("check", help="Validate a saved layout")
    p_check.add_argument("path", help="Layout .png or .json file")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "generate":
        command = cmd_generate
    elif args.command == "check":
        command = cmd_check
    else:
        parser.print_help()
        return 1

    try:
        return command(args)
    except (ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
