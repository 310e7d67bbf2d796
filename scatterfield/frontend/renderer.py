"""Pillow rendering of generated maps and token layers.

The engine only produces data (``PlacedTerrain`` and ``Token`` lists); this
module turns it into images:

  * ``MapRenderer``: the terrain layer at map resolution with a grass
    background, grid, one disc per terrain piece colored by category
    and a tick showing its rotation. With ``debug`` it also marks piece
    centers and outlines the bounding circles used for overlap checks.
  * ``TokenRenderer``: a transparent token layer sized for the display
    surface (height is 0.66 of width), so it can be laid over a scaled map.
    ``debug_level`` 1 adds the terrain clearance circle around each token,
    2 also the token separation circle.

A display surface may not exist yet when tokens are ready (a window still
being laid out, say). ``render_tokens_when_ready`` takes a ``Future`` the
surface owner resolves with a ``RenderSurface`` and waits on it, with a
timeout, before drawing.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Sequence

from PIL import Image, ImageDraw

from ..engine.collision import TOKEN_SEPARATION, TOKEN_TERRAIN_CLEARANCE
from ..engine.types import PlacedTerrain, TerrainCategory, Token

logger = logging.getLogger(__name__)

# -- Visual constants --

MAP_BG = (112, 179, 68)
GRID_COLOR = "#000000"
DEBUG_CENTER_COLOR = "#ff0000"
DEBUG_CIRCLE_COLOR = "#000000"
CATEGORY_FILL = {
    TerrainCategory.BLOCKING: "#7a5c3e",
    TerrainCategory.DIFFICULT: "#4f7fb0",
    TerrainCategory.OBSTACLE: "#9a9a9a",
    TerrainCategory.HILL: "#b59b6a",
    TerrainCategory.FOREST: "#2f5d2a",
}
PIECE_OUTLINE = "#222222"

TOKEN_RADIUS = 4.1
TOKEN_FILL = "#cab9a5"
TOKEN_OUTLINE = "#000000"
CLEARANCE_COLOR = "#ff0000"
SEPARATION_COLOR = "#000000"
SURFACE_ASPECT = 0.66

DEFAULT_READY_TIMEOUT = 5.0


@dataclass
class RenderSurface:
    """Layout metrics of the surface tokens are drawn for."""

    width_px: int

    @property
    def height_px(self) -> int:
        return round(self.width_px * SURFACE_ASPECT)


class MapRenderer:
    """Renders terrain nodes to a Pillow image."""

    def __init__(self, width, height, grid_spacing=100, scale=1.0):
        self.width = width
        self.height = height
        self.grid_spacing = grid_spacing
        self.scale = scale

    def _to_px(self, x, y):
        return x * self.scale, y * self.scale

    def _lw(self, base_width):
        return max(1, round(base_width * self.scale))

    def render(self, nodes: Sequence[PlacedTerrain], debug=False):
        w = int(self.width * self.scale)
        h = int(self.height * self.scale)
        img = Image.new("RGB", (w, h), MAP_BG)
        draw = ImageDraw.Draw(img)

        # Grid
        gx = self.grid_spacing
        while gx < self.width:
            px, _ = self._to_px(gx, 0)
            draw.line([(px, 0), (px, h - 1)], fill=GRID_COLOR, width=1)
            gx += self.grid_spacing
        gy = self.grid_spacing
        while gy < self.height:
            _, py = self._to_px(0, gy)
            draw.line([(0, py), (w - 1, py)], fill=GRID_COLOR, width=1)
            gy += self.grid_spacing

        for node in nodes:
            self._draw_node(draw, node)
            if debug:
                self._draw_debug(draw, node)
        return img

    def _draw_node(self, draw, node):
        cx, cy = self._to_px(node.x, node.y)
        r = node.terrain.radius * self.scale
        fill = CATEGORY_FILL.get(node.terrain.category, "#888888")
        draw.ellipse(
            [cx - r, cy - r, cx + r, cy + r],
            fill=fill,
            outline=PIECE_OUTLINE,
            width=self._lw(2),
        )
        # rotation tick
        draw.line(
            [
                (cx, cy),
                (cx + r * math.cos(node.angle), cy + r * math.sin(node.angle)),
            ],
            fill=PIECE_OUTLINE,
            width=self._lw(2),
        )

    def _draw_debug(self, draw, node):
        cx, cy = self._to_px(node.x, node.y)
        half = 3 * self.scale
        draw.rectangle(
            [cx - half, cy - half, cx + half, cy + half],
            fill=DEBUG_CENTER_COLOR,
        )
        r = node.bounding_radius * self.scale
        draw.ellipse(
            [cx - r, cy - r, cx + r, cy + r],
            outline=DEBUG_CIRCLE_COLOR,
            width=1,
        )


class TokenRenderer:
    """Renders tokens to a transparent layer scaled to a display surface."""

    def __init__(self, width=600.0, height=400.0):
        self.width = width
        self.height = height

    def render(
        self,
        tokens: Sequence[Token],
        surface: RenderSurface,
        debug_level: int = 0,
    ):
        if debug_level not in (0, 1, 2):
            raise ValueError(f"debug_level must be 0, 1 or 2: {debug_level}")
        w = surface.width_px
        h = surface.height_px
        sx = w / self.width
        sy = h / self.height
        img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        draw = ImageDraw.Draw(img)

        def circle(x, y, r, **kwargs):
            draw.ellipse(
                [(x - r) * sx, (y - r) * sy, (x + r) * sx, (y + r) * sy],
                **kwargs,
            )

        for t in tokens:
            circle(
                t.x, t.y, TOKEN_RADIUS, fill=TOKEN_FILL, outline=TOKEN_OUTLINE
            )
            if debug_level:
                circle(
                    t.x,
                    t.y,
                    TOKEN_TERRAIN_CLEARANCE,
                    outline=CLEARANCE_COLOR,
                )
                if debug_level > 1:
                    circle(
                        t.x, t.y, TOKEN_SEPARATION, outline=SEPARATION_COLOR
                    )
        return img


def render_tokens_when_ready(
    renderer: TokenRenderer,
    tokens: Sequence[Token],
    surface: Future[RenderSurface],
    debug_level: int = 0,
    timeout: float = DEFAULT_READY_TIMEOUT,
):
    """Wait for ``surface`` to be resolved, then render ``tokens`` for it.

    Raises ``concurrent.futures.TimeoutError`` if the surface is not ready
    within ``timeout`` seconds.
    """
    if not surface.done():
        logger.debug("waiting up to %ss for render surface", timeout)
    ready = surface.result(timeout=timeout)
    return renderer.render(tokens, ready, debug_level=debug_level)


def compose(map_img, token_img):
    """Scale the map to the token layer's size and draw the tokens over it."""
    base = map_img.convert("RGBA").resize(
        token_img.size, Image.Resampling.LANCZOS
    )
    return Image.alpha_composite(base, token_img)
