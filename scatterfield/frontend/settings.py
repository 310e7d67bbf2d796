"""Generator settings as shareable string parameters.

Settings travel as two comma-separated strings so they can be put in a link
or typed on the command line:

  * ``settings``: boolean toggles, ``0`` is false and anything else true.
    Format: ``hill_not_in_zones,weighted``. Position 0 belongs to the
    hills-outside-deployment-zones toggle of older links; deployment zones
    are not modelled, so it is written as ``1`` and ignored when read.
    Links carrying only that position leave ``weighted`` off.
  * ``resources``: how many pieces of each terrain category may be placed,
    in ``TerrainCategory`` order:
    ``blocking,difficult,obstacle,hill,forest``. Extra values are dropped;
    an empty string means no restriction.

Seeds travel as plain decimal strings (``parse_seed`` / ``str(seed)``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..engine.prng import check_seed
from ..engine.types import TerrainCatalog, TerrainCategory

logger = logging.getLogger(__name__)

_CATEGORIES = list(TerrainCategory)
# index of the weighted toggle in the settings parameter
_WEIGHTED_POS = 1


def parse_seed(value: str) -> int:
    """Parse a seed parameter. Raises ValueError if it is not a uint32."""
    try:
        seed = int(value.strip())
    except ValueError:
        raise ValueError(
            f"Seed must be a decimal integer, got {value!r}"
        ) from None
    return check_seed(seed)


def _parse_resources(param: str) -> list[int]:
    counts = []
    for part in param.split(","):
        try:
            n = int(part.strip())
        except ValueError:
            raise ValueError(
                f"Invalid resource count {part!r} in {param!r}"
            ) from None
        if n < 0:
            raise ValueError(f"Resource counts must be >= 0, got {n}")
        counts.append(n)
    return counts[: len(_CATEGORIES)]


def _parse_flags(param: str) -> list[bool]:
    try:
        return [int(x.strip()) != 0 for x in param.split(",")]
    except ValueError:
        raise ValueError(f"Invalid settings value {param!r}") from None


@dataclass
class GeneratorSettings:
    weighted: bool = False
    # per-category counts in TerrainCategory order; empty = unrestricted
    resources: list[int] = field(default_factory=list)

    @staticmethod
    def from_query(
        settings_param: str | None, resources_param: str | None
    ) -> GeneratorSettings:
        settings = GeneratorSettings()
        if settings_param:
            flags = _parse_flags(settings_param)
            if len(flags) > _WEIGHTED_POS:
                settings.weighted = flags[_WEIGHTED_POS]
        else:
            logger.debug("settings not provided, using defaults")
        if resources_param:
            settings.resources = _parse_resources(resources_param)
        else:
            logger.debug("resources not provided, generation unrestricted")
        return settings

    def settings_param_value(self) -> str:
        return ",".join("1" if x else "0" for x in [True, self.weighted])

    def resources_param_value(self) -> str:
        return ",".join(str(n) for n in self.resources)

    def restore_defaults(self) -> None:
        self.weighted = False
        self.resources = []

    def resource_budget(
        self, catalog: TerrainCatalog
    ) -> dict[int, int] | None:
        """Expand per-category counts into a per-type-id budget.

        Each category's count is spread evenly over the catalog types of that
        category, earlier types taking the remainder. Categories missing from
        the setting get no pieces. Returns None when unrestricted.
        """
        if not self.resources:
            return None
        budget = {tt.id: 0 for tt in catalog}
        for category, count in zip(_CATEGORIES, self.resources):
            types = catalog.by_category(category)
            if not types:
                if count:
                    logger.debug(
                        "catalog has no %s terrain; dropping %d pieces",
                        category.value,
                        count,
                    )
                continue
            share, extra = divmod(count, len(types))
            for i, tt in enumerate(types):
                budget[tt.id] = share + (1 if i < extra else 0)
        return budget
