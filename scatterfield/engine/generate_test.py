import math

import pytest

from scatterfield.engine.catalog_io import (
    default_catalog,
    load_catalog,
    test_catalog_path,
)
from scatterfield.engine.collision import dist, find_overlaps
from scatterfield.engine.generate import (
    BOUND_SCALING,
    MAX_RUNS,
    generate_json,
    generate_map,
    run_map_generation,
    select_terrain_type,
)
from scatterfield.engine.prng import PCG32, SEED_LIMIT
from scatterfield.engine.types import (
    MapParams,
    RunStatus,
    TerrainCatalog,
    TerrainType,
)


def _mixed_catalog():
    return load_catalog(test_catalog_path("mixed"))


def _giant_catalog():
    """A single type so large that only one piece fits on a 600x400 map."""
    return TerrainCatalog(types=(TerrainType(id=0, radius=500.0),))


# -- Type selection --------------------------------------------------


class TestSelectTerrainType:
    def test_reaches_every_catalog_entry(self):
        """The last catalog entry is selectable too."""
        catalog = default_catalog()
        rng = PCG32(7)
        seen = {
            select_terrain_type(rng, catalog, False, None).id
            for _ in range(2000)
        }
        assert seen == set(range(len(catalog)))

    def test_budget_excludes_spent_types(self):
        catalog = default_catalog()
        rng = PCG32(3)
        budget = {2: 1, 5: 4}
        for _ in range(500):
            item = select_terrain_type(rng, catalog, False, budget)
            assert item.id in (2, 5)

    def test_zero_weight_never_selected_when_weighted(self):
        catalog = _mixed_catalog()
        rng = PCG32(11)
        for _ in range(500):
            item = select_terrain_type(rng, catalog, True, None)
            assert item.weight > 0.0

    def test_weighting_favours_heavier_types(self):
        catalog = _mixed_catalog()
        rng = PCG32(5)
        counts = [0] * len(catalog)
        for _ in range(4000):
            counts[select_terrain_type(rng, catalog, True, None).id] += 1
        # weights 1.0 / 0.5 / 0.25 / 0.0
        assert counts[0] > counts[1] > counts[2] > counts[3] == 0

    def test_unweighted_ignores_weight(self):
        catalog = _mixed_catalog()
        rng = PCG32(5)
        seen = {
            select_terrain_type(rng, catalog, False, None).id
            for _ in range(500)
        }
        assert 3 in seen

    def test_exhausted_budget_returns_none(self):
        catalog = default_catalog()
        budget = {i: 0 for i in range(len(catalog))}
        assert select_terrain_type(PCG32(1), catalog, False, budget) is None

    def test_budget_left_only_on_weightless_types_returns_none(self):
        catalog = _mixed_catalog()
        assert select_terrain_type(PCG32(1), catalog, True, {3: 4}) is None

    def test_draws_are_bounded(self):
        catalog = TerrainCatalog(
            types=(TerrainType(id=0, radius=10.0, weight=1e-12),)
        )
        assert (
            select_terrain_type(PCG32(1), catalog, True, None, max_draws=10)
            is None
        )


# -- Map generation --------------------------------------------------


class TestGenerateMap:
    def test_deterministic(self):
        """Same seed produces identical output."""
        a = generate_map(400, 600, 50, None, False, seed=42)
        b = generate_map(400, 600, 50, None, False, seed=42)
        assert a == b
        assert [n.to_dict() for n in a] == [n.to_dict() for n in b]

    def test_seed_42_node_count(self):
        run = run_map_generation(
            MapParams(height=400, width=600, edge_boundary=50, seed=42)
        )
        assert 8 <= run.target_count <= 11
        assert len(run.nodes) <= run.target_count
        if run.status is RunStatus.COMPLETE:
            assert len(run.nodes) == run.target_count
        else:
            assert run.status is RunStatus.ATTEMPTS_EXHAUSTED

    def test_different_seeds(self):
        a = generate_map(400, 600, 50, seed=1)
        b = generate_map(400, 600, 50, seed=2)
        assert a != b

    @pytest.mark.parametrize("seed", range(25))
    def test_no_overlaps(self, seed):
        nodes = generate_map(400, 600, 50, seed=seed)
        assert find_overlaps(nodes) == []
        for i, a in enumerate(nodes):
            for b in nodes[i + 1 :]:
                assert dist(a.x, a.y, b.x, b.y) >= (
                    a.bounding_radius + b.bounding_radius
                )

    @pytest.mark.parametrize("seed", range(25))
    def test_attempts_bounded(self, seed):
        run = run_map_generation(MapParams(seed=seed))
        assert run.attempts <= MAX_RUNS
        assert len(run.nodes) <= run.attempts

    def test_centers_inside_edge_boundary(self):
        for seed in range(10):
            for n in generate_map(400, 600, 50, seed=seed):
                assert 50 <= n.x <= 550
                assert 50 <= n.y <= 350

    def test_node_geometry(self):
        for n in generate_map(400, 600, 50, seed=99):
            assert 0.0 <= n.angle < 2 * math.pi
            assert n.bounding_radius == pytest.approx(
                n.terrain.radius * BOUND_SCALING
            )

    def test_zero_edge_boundary(self):
        nodes = generate_map(400, 600, 0, seed=5)
        for n in nodes:
            assert 0 <= n.x <= 600
            assert 0 <= n.y <= 400

    def test_attempts_exhausted_returns_partial(self):
        run = run_map_generation(
            MapParams(seed=3, edge_boundary=0, catalog=_giant_catalog())
        )
        assert len(run.nodes) == 1
        assert run.attempts == MAX_RUNS
        assert run.status is RunStatus.ATTEMPTS_EXHAUSTED


class TestSeeding:
    def test_unseeded_run_records_seed(self):
        run = run_map_generation(MapParams(seed=None))
        assert 0 <= run.seed < SEED_LIMIT
        again = run_map_generation(MapParams(seed=run.seed))
        assert again.nodes == run.nodes

    def test_out_of_range_seed_rejected(self):
        with pytest.raises(ValueError):
            run_map_generation(MapParams(seed=SEED_LIMIT))


class TestResourceBudget:
    def test_budget_respected(self):
        budget = {0: 2, 1: 0, 2: 5, 3: 5, 4: 5, 5: 5, 6: 5, 7: 5, 8: 5}
        for seed in range(20):
            run = run_map_generation(MapParams(seed=seed, resources=budget))
            counts = run.counts_by_type()
            assert counts.get(0, 0) <= 2
            assert counts.get(1, 0) == 0
            for type_id, count in counts.items():
                assert count <= budget[type_id]

    def test_remaining_budget_decremented(self):
        budget = {i: 3 for i in range(9)}
        run = run_map_generation(MapParams(seed=8, resources=budget))
        counts = run.counts_by_type()
        for type_id in range(9):
            assert run.remaining_budget[type_id] == 3 - counts.get(type_id, 0)
        assert run.initial_budget == budget

    def test_caller_budget_not_mutated(self):
        budget = {i: 3 for i in range(9)}
        run_map_generation(MapParams(seed=8, resources=budget))
        assert budget == {i: 3 for i in range(9)}

    def test_target_clamped_to_budget_total(self):
        run = run_map_generation(
            MapParams(seed=4, resources={0: 1, 4: 2})
        )
        assert run.target_count == 3
        assert len(run.nodes) <= 3
        assert set(run.counts_by_type()) <= {0, 4}

    def test_list_budget_indexed_by_type_id(self):
        run = run_map_generation(
            MapParams(seed=4, resources=[0, 0, 2, 0, 0, 0, 0, 0, 0])
        )
        assert {n.terrain.id for n in run.nodes} <= {2}

    def test_empty_budget_places_nothing(self):
        run = run_map_generation(
            MapParams(seed=4, resources={i: 0 for i in range(9)})
        )
        assert run.nodes == []
        assert run.attempts == 0
        assert run.status is RunStatus.COMPLETE

    def test_unselectable_budget_stops_run(self):
        run = run_map_generation(
            MapParams(
                seed=4,
                resources={3: 5},
                weighted=True,
                catalog=_mixed_catalog(),
            )
        )
        assert run.nodes == []
        assert run.attempts == 1
        assert run.status is RunStatus.SELECTION_EXHAUSTED

    def test_low_weight_type_still_placed(self):
        catalog = TerrainCatalog(
            types=(TerrainType(id=0, radius=10.0, weight=0.001),)
        )
        run = run_map_generation(
            MapParams(seed=1, weighted=True, catalog=catalog)
        )
        assert run.status is not RunStatus.SELECTION_EXHAUSTED
        assert run.nodes
        assert (
            len(run.nodes) == run.target_count
            or run.status is RunStatus.ATTEMPTS_EXHAUSTED
        )

    def test_selection_draw_cap_spends_attempts(self):
        catalog = TerrainCatalog(
            types=(TerrainType(id=0, radius=10.0, weight=1e-12),)
        )
        run = run_map_generation(
            MapParams(seed=1, weighted=True, catalog=catalog)
        )
        assert run.nodes == []
        assert run.attempts == MAX_RUNS
        assert run.status is RunStatus.ATTEMPTS_EXHAUSTED

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            MapParams(resources={0: -1})


class TestMapParams:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"height": 0},
            {"width": -10},
            {"edge_boundary": -1},
            {"edge_boundary": 250},
        ],
    )
    def test_invalid_params(self, kwargs):
        with pytest.raises(ValueError):
            MapParams(**kwargs)

    def test_from_dict_string_keys(self):
        params = MapParams.from_dict({"resources": {"0": 2, "3": 1}})
        assert params.resources == {0: 2, 3: 1}


class TestGenerateJson:
    def test_map_only(self):
        out = generate_json({"seed": 42})
        assert "tokens" not in out
        assert out["map"]["seed"] == 42
        assert out == generate_json({"seed": 42})

    def test_with_scenario(self):
        out = generate_json({"seed": 42, "scenario": "Raze"})
        tokens = out["tokens"]
        assert tokens["scenario"] == "Raze"
        assert tokens["seed"] == 42
        assert out == generate_json({"seed": 42, "scenario": "Raze"})
