"""Terrain map generation engine.

Scatters terrain pieces from a catalog onto a rectangular map by rejection
sampling:

  1. Draw a target piece count (8-11, clamped to the resource budget).
  2. Repeatedly pick a terrain type (``select_terrain_type``), draw a
     candidate center inside the map minus ``edge_boundary`` on every side,
     and keep the piece if its bounding circle clears every piece already
     placed (``collision.check_for_overlap``).
  3. Stop when the target is reached, when ``MAX_RUNS`` attempts have been
     spent, or when no catalog type can be selected any more.

Running out of attempts is normal for crowded maps and just yields fewer
pieces; the ``GenerationRun.status`` records which way the loop ended so
callers can tell a full map from a partial one.

**Determinism:** every draw comes from a ``PCG32`` seeded with the run's
seed, in a fixed order per attempt (type selection draws, then x, then y,
then the rotation angle on acceptance). Reordering those draws changes every
layout ever shared by seed, so treat the order as part of the format.

The public API is ``run_map_generation(params)`` returning a
``GenerationRun``, ``generate_map(...)`` returning just the node list, and
``generate_json(dict)`` for the JSON interface used by the CLI.
"""

from __future__ import annotations

import logging
import math

from .catalog_io import default_catalog
from .collision import check_for_overlap
from .prng import MAP_STREAM, PCG32, check_seed, random_seed
from .tokens import run_token_generation
from .types import (
    GenerationRun,
    MapParams,
    PlacedTerrain,
    RunStatus,
    TerrainCatalog,
    TerrainType,
    TokenParams,
)

logger = logging.getLogger(__name__)

# Universal limit on placement attempts per generation run.
MAX_RUNS = 50
# Scales bounding circles so pieces may overlap slightly at the edges.
BOUND_SCALING = 0.85
MIN_NODES = 8
EXTRA_NODES = 4
# Upper bound on rejection-sampling draws for a single type selection.
MAX_SELECTION_DRAWS = 1000


def _is_selectable(
    tt: TerrainType, weighted: bool, budget: dict[int, int] | None
) -> bool:
    """Could ``tt`` ever pass selection under the current budget/weighting?"""
    if budget is not None and budget.get(tt.id, 0) < 1:
        return False
    if weighted and tt.weight <= 0.0:
        return False
    return True


def has_selectable_type(
    catalog: TerrainCatalog, weighted: bool, budget: dict[int, int] | None
) -> bool:
    return any(_is_selectable(tt, weighted, budget) for tt in catalog)


def select_terrain_type(
    rng: PCG32,
    catalog: TerrainCatalog,
    weighted: bool,
    budget: dict[int, int] | None,
    max_draws: int = MAX_SELECTION_DRAWS,
) -> TerrainType | None:
    """Pick a terrain type by rejection sampling.

    Draws a uniform catalog index; rejects it if the budget has none left,
    and (independently) in weighted mode if a fresh uniform draw exceeds the
    type's weight. Types missing from a supplied budget have none left.

    Returns None without drawing when no type is admissible, or after
    ``max_draws`` rejected draws.
    """
    if not has_selectable_type(catalog, weighted, budget):
        return None
    n = len(catalog)
    for _ in range(max_draws):
        item = catalog[rng.next_index(n)]
        if budget is not None and budget.get(item.id, 0) < 1:
            continue
        if weighted and item.weight < rng.next_float():
            continue
        return item
    return None


def _target_count(rng: PCG32, budget: dict[int, int] | None) -> int:
    count = math.floor(rng.next_float() * EXTRA_NODES) + MIN_NODES
    if budget is not None:
        count = min(count, sum(budget.values()))
    return count


def run_map_generation(params: MapParams) -> GenerationRun:
    """Run one map generation and return the full run record."""
    seed = random_seed() if params.seed is None else check_seed(params.seed)
    catalog = params.catalog
    if catalog is None:
        catalog = default_catalog()
    rng = PCG32(seed, seq=MAP_STREAM)

    budget = None
    if params.resources is not None:
        budget = dict(params.resources)
    edge = params.edge_boundary
    span_x = params.width - 2 * edge
    span_y = params.height - 2 * edge

    run = GenerationRun(
        seed=seed,
        height=params.height,
        width=params.width,
        target_count=_target_count(rng, budget),
        initial_budget=dict(budget) if budget is not None else None,
        remaining_budget=budget,
    )
    nodes = run.nodes

    while len(nodes) < run.target_count:
        if run.attempts >= MAX_RUNS:
            run.status = RunStatus.ATTEMPTS_EXHAUSTED
            logger.debug(
                "seed %d: attempt budget spent with %d/%d pieces placed",
                seed,
                len(nodes),
                run.target_count,
            )
            break
        run.attempts += 1

        if not has_selectable_type(catalog, params.weighted, budget):
            run.status = RunStatus.SELECTION_EXHAUSTED
            logger.warning(
                "seed %d: no selectable terrain type left after %d pieces",
                seed,
                len(nodes),
            )
            break
        item = select_terrain_type(rng, catalog, params.weighted, budget)
        if item is None:
            # draw cap hit with low weights; costs this attempt only
            logger.debug("seed %d: type selection gave up", seed)
            continue

        x = edge + rng.next_float() * span_x
        y = edge + rng.next_float() * span_y
        radius = item.radius * BOUND_SCALING
        if check_for_overlap(nodes, radius, x, y):
            continue

        angle = rng.next_float() * 2 * math.pi
        nodes.append(
            PlacedTerrain(
                x=x, y=y, angle=angle, bounding_radius=radius, terrain=item
            )
        )
        if budget is not None:
            budget[item.id] = budget.get(item.id, 0) - 1

    logger.debug(
        "seed %d: placed %d pieces in %d attempts (%s)",
        seed,
        len(nodes),
        run.attempts,
        run.status.value,
    )
    return run


def generate_map(
    height: float,
    width: float,
    edge_boundary: float,
    resources: dict[int, int] | list[int] | None = None,
    weighted: bool = False,
    seed: int | None = None,
    catalog: TerrainCatalog | None = None,
) -> list[PlacedTerrain]:
    """Generate a map and return its nodes in placement order.

    ``seed=None`` draws a fresh seed; use ``run_map_generation`` when the
    drawn seed needs to be recorded.
    """
    params = MapParams(
        height=height,
        width=width,
        edge_boundary=edge_boundary,
        resources=resources,
        weighted=weighted,
        seed=seed,
        catalog=catalog,
    )
    return run_map_generation(params).nodes


def generate_json(params_dict: dict) -> dict:
    """JSON-dict in, JSON-dict out wrapper.

    Accepts ``MapParams`` fields plus an optional ``scenario`` name; when a
    scenario is given, tokens are generated on the new map with the same
    seed.
    """
    params = MapParams.from_dict(params_dict)
    run = run_map_generation(params)
    result: dict = {"map": run.to_dict()}
    scenario = params_dict.get("scenario")
    if scenario:
        token_params = TokenParams.from_dict(
            {
                "scenario": scenario,
                "seed": run.seed,
                "width": run.width,
                "height": run.height,
            }
        )
        result["tokens"] = run_token_generation(
            run.nodes, token_params
        ).to_dict()
    return result

