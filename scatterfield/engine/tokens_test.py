import pytest

from scatterfield.engine.collision import (
    TOKEN_SEPARATION,
    dist,
    find_token_violations,
    terrain_collision,
)
from scatterfield.engine.generate import run_map_generation
from scatterfield.engine.prng import PCG32
from scatterfield.engine.tokens import (
    EDGE_MARGIN,
    MAX_ATTEMPTS,
    MAX_STRATEGY_RUNS,
    Board,
    _raze_tokens,
    generate_tokens,
    has_token_layout,
    reposition_token_x,
)
from scatterfield.engine.types import (
    MapParams,
    PlacedTerrain,
    Scenario,
    TerrainCategory,
    TerrainType,
    Token,
)

HOUSE = TerrainType(
    id=0, radius=40.0, visual_tag="house", category=TerrainCategory.BLOCKING
)
POND = TerrainType(
    id=1, radius=40.0, visual_tag="pond", category=TerrainCategory.DIFFICULT
)


def _node(x, y, r, terrain=HOUSE):
    return PlacedTerrain(
        x=x, y=y, angle=0.0, bounding_radius=r, terrain=terrain
    )


def _wall(y=200.0, r=60.0):
    """Blocking pieces every 100 units across the map at height ``y``."""
    return [_node(float(x), y, r) for x in range(0, 601, 100)]


class _CountingRng(PCG32):
    def __init__(self, seed):
        super().__init__(seed)
        self.draws = 0

    def next_float(self):
        self.draws += 1
        return super().next_float()


# -- Axis repositioning ---------------------------------------------


class TestRepositionTokenX:
    def test_center_on_blocking_node(self):
        """Equal distance both ways: the right-hand position wins."""
        nodes = [_node(300, 200, 30.0)]
        moved = reposition_token_x(Token(300, 200), nodes, 600)
        assert moved.y == 200
        assert terrain_collision(moved, nodes) is None
        assert moved.x == 355

    def test_picks_nearer_side(self):
        nodes = [_node(310, 200, 30.0)]
        moved = reposition_token_x(Token(300, 200), nodes, 600)
        assert moved == Token(255, 200)
        assert terrain_collision(moved, nodes) is None

    def test_clear_token_unchanged(self):
        nodes = [_node(100, 100, 30.0)]
        assert reposition_token_x(Token(300, 200), nodes, 600) == Token(
            300, 200
        )

    def test_non_blocking_terrain_ignored(self):
        nodes = [_node(300, 200, 30.0, terrain=POND)]
        assert reposition_token_x(Token(300, 200), nodes, 600) == Token(
            300, 200
        )

    def test_fully_blocked_row_stops_at_margin(self):
        nodes = _wall()
        moved = reposition_token_x(Token(300, 200), nodes, 600)
        assert moved == Token(600 - EDGE_MARGIN, 200)
        assert terrain_collision(moved, nodes) is not None


# -- Raze -----------------------------------------------------------


class TestRaze:
    def test_empty_map_layout(self):
        run = generate_tokens([], Scenario.RAZE, seed=1)
        assert run.success
        assert len(run.tokens) == 7
        assert run.tokens[0] == Token(300, 200)
        for i, t in enumerate(run.tokens[1:]):
            assert t.y == (250 if i % 2 == 0 else 150)
            assert EDGE_MARGIN <= t.x <= 600 - EDGE_MARGIN

    def test_custom_map_size(self):
        run = generate_tokens([], Scenario.RAZE, seed=2, width=900, height=600)
        assert run.tokens[0] == Token(450, 300)
        assert {t.y for t in run.tokens[1:]} == {250, 350}

    def test_deterministic(self):
        nodes = run_map_generation(MapParams(seed=17)).nodes
        a = generate_tokens(nodes, Scenario.RAZE, seed=17)
        b = generate_tokens(nodes, Scenario.RAZE, seed=17)
        assert a.tokens == b.tokens

    @pytest.mark.parametrize("seed", range(20))
    def test_clearances_on_generated_maps(self, seed):
        nodes = run_map_generation(MapParams(seed=seed)).nodes
        run = generate_tokens(nodes, Scenario.RAZE, seed=seed)
        if not run.success:
            assert run.tokens == []
            return
        for i, a in enumerate(run.tokens):
            for b in run.tokens[i + 1 :]:
                assert dist(a.x, a.y, b.x, b.y) >= TOKEN_SEPARATION
        violations = find_token_violations(run.tokens, nodes)
        # only the center token may be left on terrain, and only when its
        # whole row is blocked
        assert all(
            kind == "terrain" and ti == 0 for kind, ti, _ in violations
        )
        for node in nodes:
            if not node.terrain.is_blocking:
                continue
            for t in run.tokens[1:]:
                assert dist(t.x, t.y, node.x, node.y) >= (
                    25 + node.bounding_radius
                )

    def test_center_token_repositioned(self):
        nodes = [_node(300, 200, 30.0)]
        run = generate_tokens(nodes, Scenario.RAZE, seed=3)
        assert run.tokens[0] == Token(355, 200)

    def test_single_attempt_is_bounded(self):
        rng = _CountingRng(5)
        board = Board(nodes=_wall(), width=600, height=400, rng=rng)
        assert _raze_tokens(board) is None
        assert rng.draws == MAX_ATTEMPTS

    def test_infeasible_map_reports_failure(self):
        run = generate_tokens(_wall(), Scenario.RAZE, seed=5)
        assert not run.success
        assert run.tokens == []
        assert run.attempts == MAX_STRATEGY_RUNS


# -- Dispatch -------------------------------------------------------


class TestDispatch:
    @pytest.mark.parametrize(
        "scenario", [s for s in Scenario if s is not Scenario.RAZE]
    )
    def test_unimplemented_scenarios_are_empty(self, scenario):
        run = generate_tokens([], scenario, seed=1)
        assert run.success
        assert run.tokens == []
        assert run.attempts == 1
        assert not has_token_layout(scenario)

    def test_raze_has_layout(self):
        assert has_token_layout(Scenario.RAZE)

    def test_scenario_by_name(self):
        run = generate_tokens([], "Raze", seed=1)
        assert run.scenario is Scenario.RAZE
        assert generate_tokens([], "SMOKE_AND_MIRRORS", seed=1).tokens == []

    def test_unknown_scenario(self):
        with pytest.raises(ValueError):
            generate_tokens([], "Capture the Flag")

    def test_map_too_small(self):
        with pytest.raises(ValueError):
            generate_tokens([], Scenario.RAZE, width=40)

    @pytest.mark.parametrize("height", [60, 99.5])
    def test_map_too_short_for_rows(self, height):
        with pytest.raises(ValueError):
            generate_tokens([], Scenario.RAZE, seed=1, height=height)

    def test_rows_stay_on_shortest_map(self):
        run = generate_tokens([], Scenario.RAZE, seed=1, height=100)
        assert run.success
        for t in run.tokens:
            assert 0 <= t.y <= 100
            assert 0 <= t.x <= 600

    def test_unseeded_run_records_seed(self):
        run = generate_tokens([], Scenario.RAZE)
        again = generate_tokens([], Scenario.RAZE, seed=run.seed)
        assert again.tokens == run.tokens
