"""Colour normalization: packed ints, hex strings, triples and web colour names."""

from __future__ import annotations

import string
from enum import IntEnum
from typing import Any

from .errors import InvalidColour
from .models import RGB, TRANSPARENT, Background, Transparent


class WebColour(IntEnum):
    """The 16 basic HTML colours as packed 0xRRGGBB values."""

    WHITE = 0xFFFFFF
    SILVER = 0xC0C0C0
    GRAY = 0x808080
    BLACK = 0x000000
    RED = 0xFF0000
    MAROON = 0x800000
    YELLOW = 0xFFFF00
    OLIVE = 0x808000
    LIME = 0x00FF00
    GREEN = 0x008000
    AQUA = 0x00FFFF
    TEAL = 0x008080
    BLUE = 0x0000FF
    NAVY = 0x000080
    FUCHSIA = 0xFF00FF
    PURPLE = 0x800080


_TRANSPARENT_ALIASES = ("transparent", "none")


def list_colours() -> list[str]:
    return sorted(c.name.lower() for c in WebColour)


def _from_int(value: int) -> RGB:
    if not 0 <= value <= 0xFFFFFF:
        raise InvalidColour(f"Packed colour {value:#x} is outside 0x000000..0xFFFFFF")
    return (0xFF & (value >> 0x10), 0xFF & (value >> 0x8), 0xFF & value)


def _from_hex(value: str) -> RGB:
    raw = value.strip()
    digits = raw[1:] if raw.startswith("#") else raw
    if any(ch not in string.hexdigits for ch in digits):
        raise InvalidColour(f'Could not convert hex string "{value}" to an RGB triple')
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    elif len(digits) != 6:
        raise InvalidColour(f'Hex colour "{value}" must have 3 or 6 digits')
    return _from_int(int(digits, 16))


def _from_sequence(value: Any) -> RGB:
    channels = tuple(value)
    if len(channels) != 3:
        raise InvalidColour(f"RGB colour needs exactly 3 channels, got {len(channels)}")
    for ch in channels:
        if isinstance(ch, bool) or not isinstance(ch, int) or not 0 <= ch <= 255:
            raise InvalidColour(f"RGB channel {ch!r} is not an integer in 0..255")
    return channels  # type: ignore[return-value]


def resolve_colour(value: Any) -> RGB:
    """Normalize ``value`` to an ``(r, g, b)`` tuple or raise :class:`InvalidColour`."""
    if isinstance(value, bool):
        raise InvalidColour(f"Could not convert {value!r} to an RGB triple")
    if isinstance(value, int):
        return _from_int(value)
    if isinstance(value, str):
        name = value.strip().upper()
        if name in WebColour.__members__:
            return _from_int(WebColour[name].value)
        return _from_hex(value)
    if isinstance(value, (tuple, list)):
        return _from_sequence(value)
    raise InvalidColour(f"Could not convert {type(value).__name__} to an RGB triple")


def resolve_background(value: Any) -> Background:
    """Like :func:`resolve_colour` but also accepts the transparent sentinel."""
    if value is TRANSPARENT or value is False:
        return TRANSPARENT
    if isinstance(value, str) and value.strip().lower() in _TRANSPARENT_ALIASES:
        return TRANSPARENT
    return resolve_colour(value)


def colour_to_hex(value: Background) -> str:
    if isinstance(value, Transparent):
        return value.value
    r, g, b = value
    return f"#{r:02X}{g:02X}{b:02X}"
