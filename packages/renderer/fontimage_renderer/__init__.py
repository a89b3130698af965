"""Renderer package for FontImage text rasterization."""

from .colours import WebColour, colour_to_hex, list_colours, resolve_background, resolve_colour
from .composer import CONTENT_TYPE, ImageComposer
from .errors import (
    DestinationUnwritable,
    EncodeFailure,
    FontImageError,
    FontUnavailable,
    InvalidColour,
    InvalidInput,
    StorageUnavailable,
    UnsupportedEnvironment,
)
from .glyphs import GlyphRenderer, PillowGlyphRenderer
from .models import (
    RGB,
    TRANSPARENT,
    BoundingBox,
    EmitBytes,
    OutputTarget,
    RenderRequest,
    Transparent,
    WriteToPath,
)
from .wrapping import should_wrap, wrap_text

__all__ = [
    "CONTENT_TYPE",
    "RGB",
    "TRANSPARENT",
    "BoundingBox",
    "DestinationUnwritable",
    "EmitBytes",
    "EncodeFailure",
    "FontImageError",
    "FontUnavailable",
    "GlyphRenderer",
    "ImageComposer",
    "InvalidColour",
    "InvalidInput",
    "OutputTarget",
    "PillowGlyphRenderer",
    "RenderRequest",
    "StorageUnavailable",
    "Transparent",
    "UnsupportedEnvironment",
    "WebColour",
    "WriteToPath",
    "colour_to_hex",
    "list_colours",
    "resolve_background",
    "resolve_colour",
    "should_wrap",
    "wrap_text",
]
