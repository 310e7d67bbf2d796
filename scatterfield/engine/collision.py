"""Collision and clearance checks for terrain nodes and tokens.

Everything on the map is modelled as a circle:

  * **Terrain nodes** use their ``bounding_radius`` (the type radius scaled
    down slightly so neighbouring pieces may visually touch). Two nodes
    overlap when their centers are closer than the sum of their bounding
    radii; exactly touching is allowed.
  * **Tokens** are points. A token collides with a Blocking node when it is
    closer than ``TOKEN_TERRAIN_CLEARANCE + node.bounding_radius`` to the
    node's center, and with another token when closer than
    ``TOKEN_SEPARATION``. Non-blocking terrain never collides with tokens.

The scalar predicates (``check_for_overlap``, ``terrain_collision``,
``token_collision``) scan in insertion order and stop at the first hit; the
generators in ``generate.py`` and ``tokens.py`` call them inside their
rejection loops. ``find_overlaps`` and ``find_token_violations`` check a
whole finished layout at once with numpy and report every violation; they
back the CLI's ``--check`` flag and the invariant tests.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .types import PlacedTerrain, Token

TOKEN_TERRAIN_CLEARANCE = 25.0
TOKEN_SEPARATION = 100.0


def dist(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x1 - x2, y1 - y2)


def first_overlap(
    nodes: Sequence[PlacedTerrain], radius: float, x: float, y: float
) -> PlacedTerrain | None:
    """Return the first node whose bounding circle overlaps the candidate."""
    for node in nodes:
        if dist(node.x, node.y, x, y) < node.bounding_radius + radius:
            return node
    return None


def check_for_overlap(
    nodes: Sequence[PlacedTerrain], radius: float, x: float, y: float
) -> bool:
    """True if a circle of ``radius`` at (x, y) overlaps any existing node."""
    return first_overlap(nodes, radius, x, y) is not None


def terrain_collision(
    token: Token,
    nodes: Sequence[PlacedTerrain],
    clearance: float = TOKEN_TERRAIN_CLEARANCE,
) -> PlacedTerrain | None:
    """Return the first Blocking node too close to ``token``, or None."""
    for node in nodes:
        if not node.terrain.is_blocking:
            continue
        if dist(token.x, token.y, node.x, node.y) < (
            clearance + node.bounding_radius
        ):
            return node
    return None


def token_collision(
    token: Token,
    other_tokens: Sequence[Token],
    separation: float = TOKEN_SEPARATION,
) -> Token | None:
    """Return the first of ``other_tokens`` too close to ``token``, or None.

    ``other_tokens`` should not contain ``token`` itself.
    """
    for t in other_tokens:
        if dist(token.x, token.y, t.x, t.y) < separation:
            return t
    return None


def _centers(points: Sequence[PlacedTerrain] | Sequence[Token]) -> np.ndarray:
    return np.array([(p.x, p.y) for p in points], dtype=np.float64).reshape(
        -1, 2
    )


def _pairwise_distances(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    diff = a[:, None, :] - b[None, :, :]
    return np.sqrt(np.sum(diff * diff, axis=2))


def find_overlaps(nodes: Sequence[PlacedTerrain]) -> list[tuple[int, int]]:
    """Return every (i, j), i < j, whose bounding circles overlap."""
    if len(nodes) < 2:
        return []
    centers = _centers(nodes)
    radii = np.array([n.bounding_radius for n in nodes], dtype=np.float64)
    d = _pairwise_distances(centers, centers)
    limit = radii[:, None] + radii[None, :]
    bad = np.triu(d < limit, k=1)
    return [(int(i), int(j)) for i, j in zip(*np.nonzero(bad))]


def find_token_violations(
    tokens: Sequence[Token],
    nodes: Sequence[PlacedTerrain],
    clearance: float = TOKEN_TERRAIN_CLEARANCE,
    separation: float = TOKEN_SEPARATION,
) -> list[tuple[str, int, int]]:
    """Return every clearance violation in a token layout.

    Each entry is ``("terrain", token_index, node_index)`` or
    ``("token", token_index, other_token_index)``.
    """
    violations: list[tuple[str, int, int]] = []
    if not tokens:
        return violations
    token_xy = _centers(tokens)

    blocking = [i for i, n in enumerate(nodes) if n.terrain.is_blocking]
    if blocking:
        node_xy = _centers([nodes[i] for i in blocking])
        radii = np.array(
            [nodes[i].bounding_radius for i in blocking], dtype=np.float64
        )
        d = _pairwise_distances(token_xy, node_xy)
        for ti, bi in zip(*np.nonzero(d < clearance + radii[None, :])):
            violations.append(("terrain", int(ti), blocking[int(bi)]))

    if len(tokens) > 1:
        d = _pairwise_distances(token_xy, token_xy)
        for ti, tj in zip(*np.nonzero(np.triu(d < separation, k=1))):
            violations.append(("token", int(ti), int(tj)))
    return violations
