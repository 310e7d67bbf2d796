"""Data types for terrain catalogs, generated layouts and scenario tokens.

All coordinates are in map units with the origin at the top-left corner of
the map, x growing to the right and y growing downwards (the same space the
renderer draws in).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class TerrainCategory(str, enum.Enum):
    """Rules category of a terrain type.

    Declaration order is the order used by the resources setting.
    """

    BLOCKING = "blocking"
    DIFFICULT = "difficult"
    OBSTACLE = "obstacle"
    HILL = "hill"
    FOREST = "forest"


class Scenario(str, enum.Enum):
    CONTROL = "Control"
    DOMINATE = "Dominate"
    FOOLS_GOLD = "Fool's Gold"
    INVADE = "Invade"
    KILL = "Kill"
    LOOT = "Loot"
    PILLAGE = "Pillage"
    PLUNDER = "Plunder"
    PUSH = "Push"
    RAZE = "Raze"
    SALT_THE_EARTH = "Salt the Earth"
    SMOKE_AND_MIRRORS = "Smoke & Mirrors"

    @staticmethod
    def from_name(name: str) -> Scenario:
        """Look up a scenario by display name or enum member name."""
        for s in Scenario:
            if name in (s.value, s.name):
                return s
        raise ValueError(f"Unknown scenario: {name!r}")


class RunStatus(str, enum.Enum):
    COMPLETE = "complete"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    SELECTION_EXHAUSTED = "selection_exhausted"


@dataclass(frozen=True)
class TerrainType:
    id: int
    radius: float
    weight: float = 1.0
    visual_tag: str = ""
    category: TerrainCategory = TerrainCategory.OBSTACLE

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError(f"Terrain type id must be >= 0, got {self.id}")
        if self.radius <= 0:
            raise ValueError(
                f"Terrain type radius must be > 0, got {self.radius}"
            )
        if not 0.0 <= self.weight <= 1.0:
            raise ValueError(
                f"Terrain type weight must be in [0, 1], got {self.weight}"
            )

    @property
    def is_blocking(self) -> bool:
        return self.category is TerrainCategory.BLOCKING

    @staticmethod
    def from_dict(d: dict) -> TerrainType:
        return TerrainType(
            id=d["id"],
            radius=d["radius"],
            weight=d.get("weight", 1.0),
            visual_tag=d.get("visual_tag", ""),
            category=TerrainCategory(d.get("category", "obstacle")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "radius": self.radius,
            "weight": self.weight,
            "visual_tag": self.visual_tag,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class TerrainCatalog:
    types: tuple[TerrainType, ...]
    name: str | None = None

    def __post_init__(self) -> None:
        for i, tt in enumerate(self.types):
            if tt.id != i:
                raise ValueError(
                    f"Catalog entry {i} has id {tt.id}; ids must match "
                    "their catalog index"
                )

    def __len__(self) -> int:
        return len(self.types)

    def __getitem__(self, type_id: int) -> TerrainType:
        return self.types[type_id]

    def __iter__(self):
        return iter(self.types)

    def by_category(self, category: TerrainCategory) -> list[TerrainType]:
        return [tt for tt in self.types if tt.category is category]

    @staticmethod
    def from_dict(d: dict) -> TerrainCatalog:
        return TerrainCatalog(
            types=tuple(TerrainType.from_dict(t) for t in d["types"]),
            name=d.get("name"),
        )

    def to_dict(self) -> dict:
        d: dict = {"types": [t.to_dict() for t in self.types]}
        if self.name:
            d["name"] = self.name
        return d


@dataclass(frozen=True)
class PlacedTerrain:
    """One concrete placed instance of a terrain type (a map node)."""

    x: float
    y: float
    angle: float
    bounding_radius: float
    terrain: TerrainType

    @staticmethod
    def from_dict(d: dict, catalog: TerrainCatalog) -> PlacedTerrain:
        type_id = d["type_id"]
        if not 0 <= type_id < len(catalog):
            raise ValueError(f"Unknown terrain type id: {type_id}")
        return PlacedTerrain(
            x=d["x"],
            y=d["y"],
            angle=d.get("angle", 0.0),
            bounding_radius=d["bounding_radius"],
            terrain=catalog[type_id],
        )

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "angle": self.angle,
            "bounding_radius": self.bounding_radius,
            "type_id": self.terrain.id,
        }


@dataclass(frozen=True)
class Token:
    x: float
    y: float

    @staticmethod
    def from_dict(d: dict) -> Token:
        return Token(x=d["x"], y=d["y"])

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    def __str__(self) -> str:
        return f"Token({self.x}, {self.y})"


def _normalize_budget(
    resources: dict | list | tuple | None,
) -> dict[int, int] | None:
    """Turn a resources mapping or id-ordered sequence into {type_id: count}.

    JSON object keys arrive as strings and are converted to ints.
    """
    if resources is None:
        return None
    if isinstance(resources, dict):
        items = [(int(k), v) for k, v in resources.items()]
    else:
        items = list(enumerate(resources))
    budget: dict[int, int] = {}
    for type_id, count in items:
        if int(count) != count or count < 0:
            raise ValueError(
                f"Resource count for type {type_id} must be a "
                f"non-negative integer, got {count!r}"
            )
        budget[type_id] = int(count)
    return budget


@dataclass
class MapParams:
    height: float = 400.0
    width: float = 600.0
    edge_boundary: float = 50.0
    resources: dict[int, int] | None = None
    weighted: bool = False
    seed: int | None = None
    catalog: TerrainCatalog | None = None

    def __post_init__(self) -> None:
        self.resources = _normalize_budget(self.resources)
        if self.height <= 0 or self.width <= 0:
            raise ValueError(
                f"Map size must be positive, got {self.width}x{self.height}"
            )
        if self.edge_boundary < 0:
            raise ValueError(
                f"Edge boundary must be >= 0, got {self.edge_boundary}"
            )
        if (
            2 * self.edge_boundary > self.width
            or 2 * self.edge_boundary > self.height
        ):
            raise ValueError(
                f"Edge boundary {self.edge_boundary} leaves no room on a "
                f"{self.width}x{self.height} map"
            )

    @staticmethod
    def from_dict(d: dict) -> MapParams:
        cat = d.get("catalog")
        return MapParams(
            height=d.get("height", 400.0),
            width=d.get("width", 600.0),
            edge_boundary=d.get("edge_boundary", 50.0),
            resources=d.get("resources"),
            weighted=d.get("weighted", False),
            seed=d.get("seed"),
            catalog=TerrainCatalog.from_dict(cat) if cat else None,
        )

    def to_dict(self) -> dict:
        d: dict = {
            "height": self.height,
            "width": self.width,
            "edge_boundary": self.edge_boundary,
            "weighted": self.weighted,
            "seed": self.seed,
        }
        if self.resources is not None:
            d["resources"] = {str(k): v for k, v in self.resources.items()}
        if self.catalog is not None:
            d["catalog"] = self.catalog.to_dict()
        return d


@dataclass
class GenerationRun:
    """Everything one map generation produced, plus how it ended."""

    seed: int
    height: float
    width: float
    target_count: int
    attempts: int = 0
    status: RunStatus = RunStatus.COMPLETE
    initial_budget: dict[int, int] | None = None
    remaining_budget: dict[int, int] | None = None
    nodes: list[PlacedTerrain] = field(default_factory=list)

    def counts_by_type(self) -> dict[int, int]:
        counts: dict[int, int] = {}
        for node in self.nodes:
            counts[node.terrain.id] = counts.get(node.terrain.id, 0) + 1
        return counts

    def to_dict(self) -> dict:
        d: dict = {
            "seed": self.seed,
            "height": self.height,
            "width": self.width,
            "target_count": self.target_count,
            "attempts": self.attempts,
            "status": self.status.value,
            "nodes": [n.to_dict() for n in self.nodes],
        }
        if self.initial_budget is not None:
            d["initial_budget"] = {
                str(k): v for k, v in self.initial_budget.items()
            }
        if self.remaining_budget is not None:
            d["remaining_budget"] = {
                str(k): v for k, v in self.remaining_budget.items()
            }
        return d

    @staticmethod
    def from_dict(d: dict, catalog: TerrainCatalog) -> GenerationRun:
        return GenerationRun(
            seed=d["seed"],
            height=d["height"],
            width=d["width"],
            target_count=d.get("target_count", len(d["nodes"])),
            attempts=d.get("attempts", 0),
            status=RunStatus(d.get("status", "complete")),
            initial_budget=_normalize_budget(d.get("initial_budget")),
            remaining_budget=_normalize_budget(d.get("remaining_budget")),
            nodes=[PlacedTerrain.from_dict(n, catalog) for n in d["nodes"]],
        )


@dataclass
class TokenParams:
    scenario: Scenario
    seed: int | None = None
    width: float = 600.0
    height: float = 400.0

    @staticmethod
    def from_dict(d: dict) -> TokenParams:
        return TokenParams(
            scenario=Scenario.from_name(d["scenario"]),
            seed=d.get("seed"),
            width=d.get("width", 600.0),
            height=d.get("height", 400.0),
        )


@dataclass
class TokenRun:
    scenario: Scenario
    seed: int
    success: bool = True
    attempts: int = 0
    tokens: list[Token] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "scenario": self.scenario.value,
            "seed": self.seed,
            "success": self.success,
            "attempts": self.attempts,
            "tokens": [t.to_dict() for t in self.tokens],
        }

    @staticmethod
    def from_dict(d: dict) -> TokenRun:
        return TokenRun(
            scenario=Scenario.from_name(d["scenario"]),
            seed=d["seed"],
            success=d.get("success", True),
            attempts=d.get("attempts", 0),
            tokens=[Token.from_dict(t) for t in d.get("tokens", [])],
        )
