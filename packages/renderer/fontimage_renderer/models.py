"""Typed renderer models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Union

RGB = tuple[int, int, int]


class Transparent(Enum):
    """Background sentinel meaning "no fill"; never equal to an RGB triple."""

    TRANSPARENT = "transparent"

    def __repr__(self) -> str:
        return "TRANSPARENT"


TRANSPARENT = Transparent.TRANSPARENT

Background = Union[RGB, Transparent]


@dataclass(frozen=True)
class RenderRequest:
    text: str
    font: str
    font_size: int = 12
    angle: int = 0
    max_width: int | None = None
    max_height: int | None = None
    wrapping: bool = False
    text_colour: RGB = (0, 0, 0)
    background_colour: Background = TRANSPARENT

    @property
    def transparent(self) -> bool:
        return self.background_colour is TRANSPARENT

    @property
    def baseline(self) -> int:
        return self.font_size + self.font_size // 5


@dataclass(frozen=True)
class BoundingBox:
    """Corners of the rendered text relative to its origin.

    Order follows FreeType/GD convention: lower-left, lower-right,
    upper-right, upper-left.
    """

    x0: int
    y0: int
    x1: int
    y1: int
    x2: int
    y2: int
    x3: int
    y3: int

    @property
    def width(self) -> int:
        return abs(self.x2 - self.x0)

    @property
    def height(self) -> int:
        return abs(self.y2 - self.y0)


@dataclass(frozen=True)
class EmitBytes:
    """Deliver the encoded image to the caller, optionally copying it to a stream."""

    stream: BinaryIO | None = None


@dataclass(frozen=True)
class WriteToPath:
    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))


OutputTarget = Union[EmitBytes, WriteToPath]
