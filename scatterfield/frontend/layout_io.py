"""Save and load generated layouts as PNG (with embedded metadata) or JSON.

The primary format is PNG: the rendered map is saved with the full layout
JSON embedded in a PNG tEXt chunk (key: ``scatterfield_layout``), so a saved
file is both a shareable picture and a complete, reloadable layout. JSON
files are supported as a plain-text alternative.

A layout dict holds ``{"map": GenerationRun.to_dict(), "tokens":
TokenRun.to_dict() | absent, "catalog": TerrainCatalog.to_dict()}``; the
catalog travels with the layout so it can be reloaded without the catalog
file it was generated from.
"""

from __future__ import annotations

import json
from pathlib import Path

from PIL import Image
from PIL.PngImagePlugin import PngInfo

from ..engine.types import (
    GenerationRun,
    TerrainCatalog,
    TokenRun,
)

METADATA_KEY = "scatterfield_layout"


def layout_to_dict(
    run: GenerationRun,
    catalog: TerrainCatalog,
    token_run: TokenRun | None = None,
) -> dict:
    d: dict = {"map": run.to_dict(), "catalog": catalog.to_dict()}
    if token_run is not None:
        d["tokens"] = token_run.to_dict()
    return d


def layout_from_dict(
    d: dict,
) -> tuple[GenerationRun, TerrainCatalog, TokenRun | None]:
    """Rebuild typed objects from a layout dict.

    Raises ValueError if required sections are missing.
    """
    try:
        catalog = TerrainCatalog.from_dict(d["catalog"])
        run = GenerationRun.from_dict(d["map"], catalog)
        tokens = d.get("tokens")
        token_run = TokenRun.from_dict(tokens) if tokens else None
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed layout: missing {e}") from e
    return run, catalog, token_run


def save_layout_png(img: Image.Image, layout: dict, path: str) -> None:
    """Save a rendered image with the layout JSON embedded as a tEXt chunk."""
    info = PngInfo()
    info.add_text(METADATA_KEY, json.dumps(layout))
    img.save(path, pnginfo=info)


def save_layout_json(layout: dict, path: str) -> None:
    with open(path, "w") as f:
        json.dump(layout, f, indent=2)
        f.write("\n")


def load_layout_png(path: str) -> dict:
    """Load a layout dict from a PNG file's tEXt metadata.

    Raises ValueError if the PNG does not contain layout metadata.
    """
    with Image.open(path) as img:
        text_data = dict(getattr(img, "text", None) or {})
    if METADATA_KEY not in text_data:
        raise ValueError(
            "PNG file does not contain layout metadata "
            f"(missing '{METADATA_KEY}' chunk)"
        )
    return json.loads(text_data[METADATA_KEY])


def load_layout_json(path: str) -> dict:
    """Load a layout dict from a JSON file."""
    with open(path) as f:
        return json.load(f)


_READERS = {".png": load_layout_png, ".json": load_layout_json}


def load_layout(path: str) -> dict:
    """Load a saved layout, choosing the reader by file suffix.

    Raises ValueError for anything other than .png or .json.
    """
    reader = _READERS.get(Path(path).suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported file extension: {path}")
    return reader(path)
