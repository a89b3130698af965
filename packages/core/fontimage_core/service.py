"""Render façade: cache lookup, rendering, best-effort cache store and delivery."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fontimage_cache import CacheStore, fingerprint
from fontimage_renderer import (
    CONTENT_TYPE,
    TRANSPARENT,
    DestinationUnwritable,
    EmitBytes,
    EncodeFailure,
    FontImageError,
    FontUnavailable,
    GlyphRenderer,
    ImageComposer,
    InvalidInput,
    OutputTarget,
    PillowGlyphRenderer,
    RenderRequest,
    WriteToPath,
    resolve_background,
    resolve_colour,
    should_wrap,
    wrap_text,
)

from .config import RenderConfig, normalize_font_name
from .logging_setup import get_logger

_LOGGER = get_logger("service")


@dataclass(frozen=True)
class GenerateResult:
    success: bool
    data: bytes | None = None
    content_type: str = CONTENT_TYPE
    path: Path | None = None
    cache_hit: bool = False
    fingerprint: str | None = None
    error: FontImageError | None = None


@dataclass(frozen=True)
class ServiceResult:
    service: RenderService | None
    error: FontImageError | None = None

    @property
    def ok(self) -> bool:
        return self.service is not None


def _coerce_int(name: str, value: Any, strict: bool, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        if strict:
            raise InvalidInput(f"{name} {value!r} is not an integer - it is a {type(value).__name__}")
        try:
            value = int(value)
        except (TypeError, ValueError) as exc:
            raise InvalidInput(f"{name} {value!r} cannot be converted to an integer") from exc
    if minimum is not None and value < minimum:
        raise InvalidInput(f"{name} must be at least {minimum}, got {value}")
    return value


class RenderService:
    """Long-lived renderer owning one RenderConfig and, when enabled, one CacheStore.

    Construct it once (see :func:`create_render_service`) and share the
    instance with every call site.
    """

    def __init__(self, config: RenderConfig | None = None, glyphs: GlyphRenderer | None = None) -> None:
        self._glyphs = glyphs or PillowGlyphRenderer()
        self._glyphs.ensure_supported()
        self._composer = ImageComposer(self._glyphs)
        self._config = (config or RenderConfig()).copy()
        self._store: CacheStore | None = None
        self._lock = threading.RLock()
        self._events: list[dict[str, Any]] = []

        if self._config.cache_enabled:
            self._store = self._bootstrap_store(self._config.cache_directory)

    @property
    def config(self) -> RenderConfig:
        with self._lock:
            return self._config.copy()

    @property
    def cache_store(self) -> CacheStore | None:
        return self._store

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._events[-limit:])

    def _log_event(self, event: str, **fields: Any) -> None:
        row = {"ts_utc": datetime.now(timezone.utc).isoformat(), "event": event}
        row.update(fields)
        with self._lock:
            self._events.append(row)
            if len(self._events) > 1000:
                self._events = self._events[-1000:]

    @staticmethod
    def _bootstrap_store(directory: str | Path) -> CacheStore:
        store = CacheStore(directory)
        store.bootstrap()
        return store

    # Configuration

    def set_font(self, font: str) -> None:
        """Select a font file from the font directory; ``.ttf`` is assumed without an extension."""
        font = normalize_font_name(font)
        with self._lock:
            self._config.font = font

    def set_font_directory(self, directory: str | Path) -> None:
        if not Path(directory).is_dir():
            raise FontUnavailable(f'Could not find the font directory "{directory}"')
        with self._lock:
            self._config.font_directory = str(directory)

    def set_font_size(self, size: Any, strict: bool = False) -> None:
        value = _coerce_int("font size", size, strict, minimum=1)
        with self._lock:
            self._config.font_size = value

    def set_font_angle(self, angle: Any, strict: bool = False) -> None:
        value = _coerce_int("font angle", angle, strict)
        with self._lock:
            self._config.angle = value

    def set_size(self, width: Any = None, height: Any = None, strict: bool = False) -> None:
        """Cap the canvas; ``None`` leaves that dimension as it is."""
        w = None if width is None else _coerce_int("width", width, strict, minimum=1)
        h = None if height is None else _coerce_int("height", height, strict, minimum=1)
        with self._lock:
            if w is not None:
                self._config.width = w
            if h is not None:
                self._config.height = h

    def clear_size(self) -> None:
        with self._lock:
            self._config.width = None
            self._config.height = None

    def set_colour(self, text_colour: Any, background_colour: Any = TRANSPARENT) -> None:
        """Set text and background colours; ``None`` keeps the current value."""
        text = None if text_colour is None else resolve_colour(text_colour)
        background = None if background_colour is None else resolve_background(background_colour)
        with self._lock:
            if text is not None:
                self._config.text_colour = text
            if background is not None:
                self._config.background_colour = background

    def use_wrapping(self, enabled: bool = True) -> None:
        with self._lock:
            self._config.wrapping = bool(enabled)

    def cache_enable(self, enabled: bool = True) -> None:
        with self._lock:
            if enabled and self._store is None:
                self._store = self._bootstrap_store(self._config.cache_directory)
            self._config.cache_enabled = bool(enabled)

    def set_cache_directory(self, directory: str | Path) -> None:
        if not str(directory).strip():
            raise InvalidInput("Cache directory cannot be empty. Use cache_enable(False) to disable the cache.")
        store = self._bootstrap_store(directory)
        with self._lock:
            self._store = store
            self._config.cache_directory = str(directory)

    # Rendering

    def snapshot_request(self, text: str) -> RenderRequest:
        with self._lock:
            return self._config.to_request(text)

    def generate(
        self,
        text: str,
        target: OutputTarget | None = None,
        bypass_cache: bool = False,
    ) -> GenerateResult:
        target = target or EmitBytes()
        with self._lock:
            cfg = self._config.copy()
            store = self._store if cfg.cache_enabled else None
        request = cfg.to_request(text)
        key: str | None = None
        use_cache = store is not None and not bypass_cache

        try:
            self._check_text(request.text)
            key = fingerprint(request, cfg.font_path)
            if isinstance(target, WriteToPath):
                self._check_destination(target.path)
            font_path = self._locate_font(cfg)

            data = store.lookup(request.font, key) if use_cache else None
            cache_hit = data is not None
            if data is None:
                data = self._render(request, font_path)
                if use_cache and not store.store(request.font, key, data):
                    self._log_event("cache_store_failed", fingerprint=key)

            self._deliver(target, data)
        except FontImageError as exc:
            self._log_event("generate_failed", fingerprint=key, code=exc.code, error=str(exc))
            _LOGGER.warning("generate failed: %s", exc, extra={"event": "generate_failed", "fingerprint": key})
            return GenerateResult(success=False, fingerprint=key, error=exc)

        self._log_event("cache_hit" if cache_hit else "rendered", fingerprint=key, bytes=len(data))
        _LOGGER.debug(
            "generated %d bytes", len(data),
            extra={"event": "generated", "fingerprint": key, "font": request.font, "cache_hit": cache_hit},
        )
        return GenerateResult(
            success=True,
            data=data,
            path=target.path if isinstance(target, WriteToPath) else None,
            cache_hit=cache_hit,
            fingerprint=key,
        )

    @staticmethod
    def _check_text(text: str) -> None:
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise InvalidInput(f"Text is not valid Unicode: {exc.reason} at position {exc.start}") from exc

    @staticmethod
    def _check_destination(path: Path) -> None:
        if path.exists():
            writable = path.is_file() and os.access(path, os.W_OK)
        else:
            parent = path.parent
            writable = parent.is_dir() and os.access(parent, os.W_OK)
        if not writable:
            raise DestinationUnwritable(f'Cannot write to path "{path}"')

    @staticmethod
    def _locate_font(cfg: RenderConfig) -> Path:
        path = cfg.font_path
        if not path.is_file():
            raise FontUnavailable(f'Could not find the font "{path}"')
        return path

    def _render(self, request: RenderRequest, font_path: Path) -> bytes:
        text = request.text
        try:
            if should_wrap(request.wrapping, request.max_width):
                # Line length is measured unrotated.
                lines = wrap_text(
                    text,
                    request.max_width,
                    lambda s: self._glyphs.measure(font_path, request.font_size, 0, s).width,
                )
                text = "\n".join(lines)
            bbox = self._composer.measure(request, font_path, text)
            image = self._composer.compose(request, font_path, bbox, text)
        except FontImageError:
            raise
        except (OSError, ValueError) as exc:
            raise EncodeFailure(f"Could not create the final image: {exc}") from exc
        return self._composer.encode(image)

    @staticmethod
    def _deliver(target: OutputTarget, data: bytes) -> None:
        if isinstance(target, WriteToPath):
            try:
                target.path.write_bytes(data)
            except OSError as exc:
                raise DestinationUnwritable(f'Could not write the final image to "{target.path}": {exc}') from exc
        elif target.stream is not None:
            try:
                target.stream.write(data)
                target.stream.flush()
            except (OSError, ValueError) as exc:
                raise EncodeFailure(f"Could not output the final image: {exc}") from exc


def create_render_service(config: RenderConfig | None = None, glyphs: GlyphRenderer | None = None) -> ServiceResult:
    """Build a RenderService, reporting capability or cache bootstrap problems instead of raising."""
    try:
        service = RenderService(config=config, glyphs=glyphs)
    except FontImageError as exc:
        _LOGGER.error("render service unavailable: %s", exc, extra={"event": "service_unavailable"})
        return ServiceResult(service=None, error=exc)
    return ServiceResult(service=service)
