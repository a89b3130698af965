"""Environment and cache diagnostics for the ``doctor`` command."""

from __future__ import annotations

import platform
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import PIL
from PIL import features

from fontimage_cache import CacheStore

from .config import RenderConfig, config_to_dict

FONT_SUFFIXES = (".ttf", ".otf", ".ttc")


def list_fonts(directory: Path) -> list[str]:
    if not directory.is_dir():
        return []
    return sorted(p.name for p in directory.iterdir() if p.is_file() and p.suffix.lower() in FONT_SUFFIXES)


def build_doctor_payload(cfg: RenderConfig) -> dict[str, Any]:
    font_dir = Path(cfg.font_directory)
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "pillow": PIL.__version__,
        "freetype": {
            "supported": bool(features.check_module("freetype2")),
            "version": features.version_module("freetype2"),
        },
        "config": config_to_dict(cfg),
        "fonts": {
            "directory": str(font_dir),
            "available": list_fonts(font_dir),
            "selected_found": cfg.font_path.is_file(),
        },
        "cache": asdict(CacheStore(cfg.cache_directory).stats()) if cfg.cache_enabled else None,
    }
