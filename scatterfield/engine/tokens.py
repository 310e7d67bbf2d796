"""Scenario token placement.

Given a finished terrain map and a scenario, place that scenario's objective
tokens so they keep clear of Blocking terrain and of each other (see
``collision.terrain_collision`` / ``collision.token_collision``).

Each scenario maps to a *strategy*: a function that tries once to lay out
every token and returns the list, or None when some token could not be
placed within ``MAX_ATTEMPTS`` random draws. A strategy always starts from
an empty list, so a failed try leaves nothing behind. ``run_token_generation``
calls the strategy again until it succeeds, at most ``MAX_STRATEGY_RUNS``
times; a scenario whose constraints cannot be met on the given map ends with
``TokenRun.success == False`` and no tokens rather than looping forever.

Only Raze has a real layout so far. Every other scenario uses
``_not_implemented``, which succeeds immediately with no tokens.

Randomness comes from the ``TOKEN_STREAM`` sequence of the run's seed, so a
map seed reproduces its tokens as well.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .collision import (
    TOKEN_TERRAIN_CLEARANCE,
    terrain_collision,
    token_collision,
)
from .prng import PCG32, TOKEN_STREAM, check_seed, random_seed
from .types import PlacedTerrain, Scenario, Token, TokenParams, TokenRun

logger = logging.getLogger(__name__)

# Max random draws to place a single token.
MAX_ATTEMPTS = 100
# Max full strategy retries before a scenario is reported infeasible.
MAX_STRATEGY_RUNS = 100
# Tokens stay this far from the left and right map edges.
EDGE_MARGIN = 25.0
# Raze side tokens sit on two lines this far above/below the center line.
LINE_OFFSET = 50.0
RAZE_SIDE_TOKENS = 6


@dataclass
class Board:
    """What a strategy needs to know about the map it places tokens on."""

    nodes: Sequence[PlacedTerrain]
    width: float
    height: float
    rng: PCG32


Strategy = Callable[[Board], Optional[list[Token]]]


def reposition_token_x(
    token: Token,
    nodes: Sequence[PlacedTerrain],
    width: float,
    margin: float = EDGE_MARGIN,
    clearance: float = TOKEN_TERRAIN_CLEARANCE,
) -> Token:
    """Move ``token`` along x to the nearest spot clear of Blocking terrain.

    Scans one unit at a time to the left (down to ``margin``) and to the
    right (up to ``width - margin``) and takes whichever side needed fewer
    steps; ties go right. ``y`` never changes, so this is meant for tokens
    whose row is fixed by the scenario, like an exact-center token.
    """
    y = token.y
    x_left = token.x
    while (
        terrain_collision(Token(x_left, y), nodes, clearance)
        and x_left > margin
    ):
        x_left -= 1
    x_right = token.x
    while (
        terrain_collision(Token(x_right, y), nodes, clearance)
        and x_right < width - margin
    ):
        x_right += 1

    x = x_left if token.x - x_left < x_right - token.x else x_right
    moved = Token(x, y)
    if terrain_collision(moved, nodes, clearance):
        logger.warning(
            "no clear x on row y=%s for %s; using %s", y, token, moved
        )
    return moved


def _place_on_row(
    board: Board, tokens: list[Token], y: float
) -> Token | None:
    """Draw x positions on row ``y`` until one clears terrain and tokens."""
    span = board.width - 2 * EDGE_MARGIN
    for _ in range(MAX_ATTEMPTS):
        t = Token(EDGE_MARGIN + board.rng.next_float() * span, y)
        if token_collision(t, tokens) is None and (
            terrain_collision(t, board.nodes) is None
        ):
            return t
    return None


def _raze_tokens(board: Board) -> list[Token] | None:
    """One center token, then three tokens on each of two rows."""
    tokens: list[Token] = []
    center = Token(board.width / 2, board.height / 2)
    tokens.append(reposition_token_x(center, board.nodes, board.width))

    for i in range(RAZE_SIDE_TOKENS):
        side = 1 if i % 2 == 0 else -1
        y = board.height / 2 + LINE_OFFSET * side
        t = _place_on_row(board, tokens, y)
        if t is None:
            # This terrain arrangement does not leave room for every token.
            logger.debug(
                "max attempts exceeded trying to place token %d", i + 1
            )
            return None
        tokens.append(t)
    return tokens


def _not_implemented(board: Board) -> list[Token] | None:
    return []


STRATEGIES: dict[Scenario, Strategy] = {
    Scenario.RAZE: _raze_tokens,
}


def strategy_for(scenario: Scenario) -> Strategy:
    return STRATEGIES.get(scenario, _not_implemented)


def has_token_layout(scenario: Scenario) -> bool:
    """True if ``scenario`` has a real token layout (not the empty stub)."""
    return scenario in STRATEGIES


def run_token_generation(
    nodes: Sequence[PlacedTerrain], params: TokenParams
) -> TokenRun:
    """Place tokens for ``params.scenario`` on a map of ``nodes``."""
    if (
        params.width <= 2 * EDGE_MARGIN
        or params.height < 2 * LINE_OFFSET
    ):
        raise ValueError(
            f"Map {params.width}x{params.height} is too small for tokens"
        )
    seed = random_seed() if params.seed is None else check_seed(params.seed)
    board = Board(
        nodes=nodes,
        width=params.width,
        height=params.height,
        rng=PCG32(seed, seq=TOKEN_STREAM),
    )
    strategy = strategy_for(params.scenario)

    for attempt in range(1, MAX_STRATEGY_RUNS + 1):
        tokens = strategy(board)
        if tokens is not None:
            logger.debug(
                "%s: %d tokens after %d attempt(s)",
                params.scenario.value,
                len(tokens),
                attempt,
            )
            return TokenRun(
                scenario=params.scenario,
                seed=seed,
                success=True,
                attempts=attempt,
                tokens=tokens,
            )

    logger.warning(
        "%s: no valid token layout after %d attempts (seed %d)",
        params.scenario.value,
        MAX_STRATEGY_RUNS,
        seed,
    )
    return TokenRun(
        scenario=params.scenario,
        seed=seed,
        success=False,
        attempts=MAX_STRATEGY_RUNS,
    )


def generate_tokens(
    nodes: Sequence[PlacedTerrain],
    scenario: Scenario | str,
    seed: int | None = None,
    width: float = 600.0,
    height: float = 400.0,
) -> TokenRun:
    if not isinstance(scenario, Scenario):
        scenario = Scenario.from_name(scenario)
    return run_token_generation(
        nodes,
        TokenParams(scenario=scenario, seed=seed, width=width, height=height),
    )
