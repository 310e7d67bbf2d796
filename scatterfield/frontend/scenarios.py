"""Scenario table.

Pure data module, no rendering dependencies. Scenarios are shared between
players as small integer ids (their position in ``SCENARIOS``), so the order
below is fixed: append new scenarios at the end.
"""

from __future__ import annotations

from ..engine.prng import PCG32
from ..engine.tokens import has_token_layout
from ..engine.types import Scenario

SCENARIOS: list[Scenario] = [
    Scenario.CONTROL,
    Scenario.DOMINATE,
    Scenario.FOOLS_GOLD,
    Scenario.INVADE,
    Scenario.KILL,
    Scenario.LOOT,
    Scenario.PILLAGE,
    Scenario.PLUNDER,
    Scenario.PUSH,
    Scenario.SALT_THE_EARTH,
    Scenario.SMOKE_AND_MIRRORS,
    Scenario.RAZE,
]


def get_scenario(scenario_id: int | str | None) -> Scenario | None:
    """Look up a scenario by id (int or decimal string). None if invalid."""
    if scenario_id is None:
        return None
    try:
        idx = int(scenario_id)
    except ValueError:
        return None
    if not 0 <= idx < len(SCENARIOS):
        return None
    return SCENARIOS[idx]


def scenario_id(scenario: Scenario) -> int:
    return SCENARIOS.index(scenario)


def pick_scenario_id(rng: PCG32, current: int | None = None) -> int:
    """Pick a random scenario id different from ``current``."""
    if current is not None and 0 <= current < len(SCENARIOS):
        # Draw from the other ids only, so one draw always suffices.
        idx = rng.next_int(0, len(SCENARIOS) - 2)
        return idx + 1 if idx >= current else idx
    return rng.next_int(0, len(SCENARIOS) - 1)


def scenarios_with_tokens() -> list[Scenario]:
    """Scenarios that place tokens (the rest only have terrain)."""
    return [s for s in SCENARIOS if has_token_layout(s)]
