"""Render settings schema and load/save helpers."""

from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from fontimage_renderer.colours import colour_to_hex, resolve_background, resolve_colour
from fontimage_renderer.errors import InvalidInput
from fontimage_renderer.models import RGB, TRANSPARENT, Background, RenderRequest

_LOGGER = logging.getLogger("fontimage.config")

CONFIG_VERSION = 1
DEFAULT_FONT_EXTENSION = ".ttf"

# Option names used by the original PHP-style settings files.
_LEGACY_KEYS = {
    "cacheEnabled": "cache_enabled",
    "cacheDirectory": "cache_directory",
    "fontDirectory": "font_directory",
    "fontSize": "font_size",
    "fontSizePt": "font_size",
    "fontAngle": "angle",
    "angleDeg": "angle",
    "maxWidth": "width",
    "maxHeight": "height",
    "textColour": "text_colour",
    "backgroundColour": "background_colour",
}


@dataclass
class RenderConfig:
    config_version: int = CONFIG_VERSION
    font_directory: str = "./fonts/"
    font: str = "arial.ttf"
    font_size: int = 12
    angle: int = 0
    width: int | None = None
    height: int | None = None
    wrapping: bool = False
    text_colour: RGB = (0, 0, 0)
    background_colour: Background = TRANSPARENT
    cache_enabled: bool = True
    cache_directory: str = "./cache/"

    def copy(self) -> RenderConfig:
        return replace(self)

    @property
    def font_path(self) -> Path:
        return Path(self.font_directory) / self.font

    def to_request(self, text: str) -> RenderRequest:
        return RenderRequest(
            text=text,
            font=self.font,
            font_size=self.font_size,
            angle=self.angle,
            max_width=self.width,
            max_height=self.height,
            wrapping=self.wrapping,
            text_colour=self.text_colour,
            background_colour=self.background_colour,
        )


def normalize_font_name(font: str) -> str:
    font = str(font).strip()
    if not font or font in (".", "..") or "/" in font or "\\" in font:
        raise InvalidInput(f'"{font}" is not a font file name')
    return font if "." in font else font + DEFAULT_FONT_EXTENSION


def config_root() -> Path:
    override = os.environ.get("FONTIMAGE_HOME", "").strip()
    if override:
        return Path(override)
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "FontImage"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "FontImage"
    return Path.home() / ".config" / "fontimage"


def config_path() -> Path:
    return config_root() / "config.json"


def config_to_dict(cfg: RenderConfig) -> dict[str, Any]:
    data = asdict(cfg)
    data["text_colour"] = colour_to_hex(cfg.text_colour)
    data["background_colour"] = colour_to_hex(cfg.background_colour)
    return data


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 0))
    data = dict(raw)

    if version < 1:
        for old, new in _LEGACY_KEYS.items():
            if old in data:
                data.setdefault(new, data.pop(old))
        if data.get("background_colour") is False:
            data["background_colour"] = "transparent"
        data["config_version"] = 1

    return data


def _normalize(cfg: RenderConfig, data: dict[str, Any]) -> None:
    defaults = RenderConfig()

    for name in ("font_size", "angle"):
        try:
            setattr(cfg, name, int(data.get(name, getattr(defaults, name))))
        except (TypeError, ValueError):
            setattr(cfg, name, getattr(defaults, name))
    if cfg.font_size < 1:
        cfg.font_size = defaults.font_size

    for name in ("width", "height"):
        value = data.get(name)
        try:
            value = None if value is None else int(value)
        except (TypeError, ValueError):
            value = None
        setattr(cfg, name, value if value is None or value > 0 else None)

    for name in ("wrapping", "cache_enabled"):
        value = data.get(name)
        setattr(cfg, name, value if isinstance(value, bool) else getattr(defaults, name))

    for name in ("font_directory", "cache_directory"):
        value = data.get(name)
        setattr(cfg, name, str(value) if value else getattr(defaults, name))

    try:
        cfg.font = normalize_font_name(data.get("font", defaults.font))
    except InvalidInput:
        cfg.font = defaults.font

    try:
        cfg.text_colour = resolve_colour(data.get("text_colour", defaults.text_colour))
    except InvalidInput as exc:
        _LOGGER.warning("ignoring text colour: %s", exc, extra={"event": "config_invalid_colour"})
        cfg.text_colour = defaults.text_colour
    try:
        cfg.background_colour = resolve_background(data.get("background_colour", "transparent"))
    except InvalidInput as exc:
        _LOGGER.warning("ignoring background colour: %s", exc, extra={"event": "config_invalid_colour"})
        cfg.background_colour = defaults.background_colour


def load_config(path: Path | None = None) -> RenderConfig:
    path = path or config_path()
    if not path.exists():
        return RenderConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return RenderConfig()
    if not isinstance(raw, dict):
        return RenderConfig()

    data = _migrate(raw)
    known = {f.name for f in fields(RenderConfig)}
    cfg = RenderConfig()
    _normalize(cfg, {k: v for k, v in data.items() if k in known})
    cfg.config_version = CONFIG_VERSION
    return cfg


def save_config(cfg: RenderConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_to_dict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
