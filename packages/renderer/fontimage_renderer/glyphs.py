"""Glyph measurement and rasterization boundary backed by Pillow's FreeType bindings."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Protocol

from PIL import Image, ImageDraw, ImageFont, features

from .errors import FontUnavailable, UnsupportedEnvironment
from .models import RGB, BoundingBox

_LOGGER = logging.getLogger("fontimage.renderer")

# Point sizes are rasterized at 96 dpi, matching GD/FreeType defaults.
DPI = 96


class GlyphRenderer(Protocol):
    def ensure_supported(self) -> None: ...

    def measure(self, font_path: Path, size: int, angle: int, text: str) -> BoundingBox: ...

    def rasterize(
        self,
        canvas: Image.Image,
        font_path: Path,
        size: int,
        angle: int,
        x: int,
        y: int,
        colour: RGB,
        text: str,
    ) -> None: ...


def rotate_point(x: float, y: float, angle: int) -> tuple[int, int]:
    """Rotate counter-clockwise on screen (y grows downward)."""
    rad = math.radians(angle)
    cos, sin = math.cos(rad), math.sin(rad)
    return round(x * cos + y * sin), round(-x * sin + y * cos)


def rotated_box(left: int, top: int, right: int, bottom: int, angle: int) -> BoundingBox:
    corners = [(left, bottom), (right, bottom), (right, top), (left, top)]
    flat: list[int] = []
    for cx, cy in corners:
        flat.extend(rotate_point(cx, cy, angle))
    return BoundingBox(*flat)


class PillowGlyphRenderer:
    """FreeType rendering through Pillow.

    Multi-line text is laid out from the first line's baseline at the origin,
    one line per ascent+descent. Rotation pivots on the origin. A FreeType
    build of Pillow is required, see :meth:`ensure_supported`.
    """

    def __init__(self) -> None:
        self._fonts: dict[tuple[str, int], ImageFont.FreeTypeFont] = {}

    def ensure_supported(self) -> None:
        if not features.check_module("freetype2"):
            raise UnsupportedEnvironment("Pillow was built without FreeType support")

    def _font(self, font_path: Path, size: int) -> ImageFont.FreeTypeFont:
        key = (str(font_path), int(size))
        font = self._fonts.get(key)
        if font is None:
            try:
                font = ImageFont.truetype(str(font_path), max(1, round(size * DPI / 72)))
            except OSError as exc:
                raise FontUnavailable(f'Could not load the font "{font_path}": {exc}') from exc
            self._fonts[key] = font
        return font

    @staticmethod
    def _line_height(font: ImageFont.FreeTypeFont) -> int:
        ascent, descent = font.getmetrics()
        return ascent + descent

    def _extents(self, font: ImageFont.FreeTypeFont, lines: list[str]) -> tuple[int, int, int, int]:
        lh = self._line_height(font)
        boxes = []
        for i, line in enumerate(lines):
            if not line:
                continue
            x0, y0, x1, y1 = font.getbbox(line, anchor="ls")
            boxes.append((x0, y0 + i * lh, x1, y1 + i * lh))
        if not boxes:
            return 0, 0, 0, 0
        return (
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        )

    def measure(self, font_path: Path, size: int, angle: int, text: str) -> BoundingBox:
        font = self._font(font_path, size)
        left, top, right, bottom = self._extents(font, text.splitlines() or [""])
        return rotated_box(int(left), int(top), int(right), int(bottom), angle)

    def rasterize(
        self,
        canvas: Image.Image,
        font_path: Path,
        size: int,
        angle: int,
        x: int,
        y: int,
        colour: RGB,
        text: str,
    ) -> None:
        font = self._font(font_path, size)
        lines = text.splitlines() or [""]
        lh = self._line_height(font)
        fill = (*colour, 255)

        overlay = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        if angle % 360 == 0:
            draw = ImageDraw.Draw(overlay)
            for i, line in enumerate(lines):
                if line:
                    draw.text((x, y + i * lh), line, font=font, fill=fill, anchor="ls")
        else:
            layer, (ox, oy) = self._rotated_layer(font, lines, lh, fill, angle)
            overlay.paste(layer, (x - ox, y - oy))

        if canvas.mode == "RGBA":
            canvas.alpha_composite(overlay)
        else:
            canvas.paste(overlay, (0, 0), overlay)
        _LOGGER.debug("rasterized %d line(s) at %s", len(lines), (x, y), extra={"event": "rasterize"})

    def _rotated_layer(
        self,
        font: ImageFont.FreeTypeFont,
        lines: list[str],
        lh: int,
        fill: tuple[int, int, int, int],
        angle: int,
    ) -> tuple[Image.Image, tuple[int, int]]:
        """Draw ``lines`` on a layer sized to their extents and rotate it.

        Returns the rotated layer and the position of the text origin inside it.
        """
        pad = 2
        left, top, right, bottom = self._extents(font, lines)
        width, height = right - left + 2 * pad, bottom - top + 2 * pad
        origin = (pad - left, pad - top)

        layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        for i, line in enumerate(lines):
            if line:
                draw.text((origin[0], origin[1] + i * lh), line, font=font, fill=fill, anchor="ls")
        rotated = layer.rotate(angle, resample=Image.Resampling.BICUBIC, expand=True)

        # expand=True keeps the layer centre at the centre of the result.
        dx, dy = rotate_point(origin[0] - width / 2, origin[1] - height / 2, angle)
        return rotated, (round(rotated.width / 2 + dx), round(rotated.height / 2 + dy))
