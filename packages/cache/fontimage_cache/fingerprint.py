"""Deterministic cache keys for render requests."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

from fontimage_renderer.models import RenderRequest, Transparent

FINGERPRINT_VERSION = 2


def canonical_payload(request: RenderRequest, font_path: Path | None = None) -> dict[str, Any]:
    """Every field that changes the output, with explicit sentinels for unset values.

    ``font_path`` is the resolved font file; two directories holding a font
    under the same name must not share entries.
    """
    background = request.background_colour
    return {
        "v": FINGERPRINT_VERSION,
        "text": request.text,
        "font": request.font,
        "font_path": None if font_path is None else str(Path(font_path).resolve()),
        "font_size": int(request.font_size),
        "angle": int(request.angle),
        "max_width": request.max_width,
        "max_height": request.max_height,
        "wrapping": bool(request.wrapping),
        "text_colour": list(request.text_colour),
        "background_colour": background.value if isinstance(background, Transparent) else list(background),
    }


def fingerprint(request: RenderRequest, font_path: Path | None = None) -> str:
    blob = json.dumps(canonical_payload(request, font_path), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    # Lone surrogates (undecodable argv bytes) still hash to a stable key.
    return hashlib.sha256(blob.encode("utf-8", "surrogatepass")).hexdigest()
