"""Load and save terrain catalogs from/to JSON files.

Provides helpers for reading catalog JSON files into typed ``TerrainCatalog``
objects (via ``types.py``) and path helpers for locating test and built-in
catalog files under ``scatterfield/catalogs/``.

The built-in catalog is read once per process and shared read-only by every
generation run (``default_catalog``).
"""

from __future__ import annotations

import functools
import json
from pathlib import Path

from .types import TerrainCatalog

# scatterfield/catalogs/ is two levels up from this file
_CATALOGS_DIR = Path(__file__).parent.parent / "catalogs"

DEFAULT_CATALOG_NAME = "epic_dwarf"


def _catalog_path(kind: str, name: str) -> Path:
    return _CATALOGS_DIR / kind / f"{name}.json"


def test_catalog_path(name: str) -> Path:
    """Path of a small catalog used by the tests, e.g. ``"mixed"``."""
    return _catalog_path("test", name)


# Keep pytest from collecting the helper above as a test.
test_catalog_path.__test__ = False  # type: ignore[attr-defined]


def builtin_catalog_path(name: str) -> Path:
    """Path of a catalog shipped with the package, e.g. ``"epic_dwarf"``."""
    return _catalog_path("builtin", name)


def load_catalog(path: Path) -> TerrainCatalog:
    """Load a JSON catalog file and return a typed ``TerrainCatalog``.

    Raises ValueError if the file is not a valid catalog.
    """
    with open(path) as f:
        data = json.load(f)
    try:
        return TerrainCatalog.from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed catalog file {path}: {e}") from e


def save_catalog(catalog: TerrainCatalog, path: Path) -> None:
    """Write a catalog to a JSON file.

    Creates parent directories if they don't exist.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(catalog.to_dict(), f, indent=2)
        f.write("\n")


@functools.lru_cache(maxsize=None)
def default_catalog() -> TerrainCatalog:
    """The process-wide built-in catalog."""
    return load_catalog(builtin_catalog_path(DEFAULT_CATALOG_NAME))
