"""Content-addressed on-disk store for rendered PNG images.

Layout::

    <root>/what_is_this.txt
    <root>/<font stem>/<fingerprint>.cache.png

Entries are derived data. Nothing here evicts or invalidates them, and an
operator may delete any of them at any time. There is no cross-process
locking: writers for the same fingerprint produce identical bytes, each write
goes through a temporary file plus rename, and the last rename wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path

from PIL import Image

from fontimage_renderer.errors import StorageUnavailable

_LOGGER = logging.getLogger("fontimage.cache")

MARKER_NAME = "what_is_this.txt"
MARKER_TEXT = (
    "All the .cache.png files in this folder are cache files for FontImage. "
    "If you want to get rid of them, feel free to do so.\n"
)
ENTRY_SUFFIX = ".cache.png"


@dataclass
class CacheStats:
    root: str
    entries: int = 0
    total_bytes: int = 0
    fonts: dict[str, int] = field(default_factory=dict)


def font_stem(font: str) -> str:
    return Path(font).stem


class CacheStore:
    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._bootstrapped = False

    @property
    def bootstrapped(self) -> bool:
        return self._bootstrapped

    def bootstrap(self) -> None:
        """Create the root and its marker file; safe to call repeatedly."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f'Could not create cache folder at "{self.root}": {exc}') from exc

        marker = self.root / MARKER_NAME
        if not marker.exists():
            try:
                marker.write_text(MARKER_TEXT, encoding="utf-8")
            except OSError as exc:
                if not self._bootstrapped:
                    raise StorageUnavailable(f'Could not write to cache folder at "{self.root}": {exc}') from exc
                _LOGGER.warning("cache marker rewrite failed: %s", exc, extra={"event": "cache_marker_failed"})
        self._bootstrapped = True

    def font_directory(self, font: str) -> Path:
        return self.root / font_stem(font)

    def ensure_font_directory(self, font: str) -> Path:
        path = self.font_directory(font)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f'Could not create font folder in cache folder at "{path}": {exc}') from exc
        return path

    def entry_path(self, font: str, key: str) -> Path:
        return self.font_directory(font) / f"{key}{ENTRY_SUFFIX}"

    def lookup(self, font: str, key: str) -> bytes | None:
        path = self.entry_path(font, key)
        if not path.is_file():
            return None
        try:
            data = path.read_bytes()
            with Image.open(BytesIO(data)) as image:
                if image.format != "PNG":
                    raise ValueError(f"unexpected format {image.format}")
                image.load()
        except (OSError, ValueError, SyntaxError) as exc:
            # Corrupt, truncated or mid-write entries are misses; the next store overwrites them.
            _LOGGER.warning("unreadable cache entry %s: %s", path, exc, extra={"event": "cache_corrupt"})
            return None
        return data

    def store(self, font: str, key: str, data: bytes) -> bool:
        """Persist ``data``; returns False instead of raising when the write fails."""
        tmp_name: str | None = None
        try:
            directory = self.ensure_font_directory(font)
            with tempfile.NamedTemporaryFile(dir=directory, prefix=".", suffix=".tmp", delete=False) as fh:
                tmp_name = fh.name
                fh.write(data)
            os.replace(tmp_name, self.entry_path(font, key))
            tmp_name = None
        except OSError as exc:
            _LOGGER.warning("cache store failed for %s: %s", key, exc, extra={"event": "cache_store_failed"})
            return False
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        return True

    def stats(self) -> CacheStats:
        out = CacheStats(root=str(self.root))
        if not self.root.is_dir():
            return out
        for font_dir in sorted(p for p in self.root.iterdir() if p.is_dir()):
            count = 0
            for entry in font_dir.glob(f"*{ENTRY_SUFFIX}"):
                count += 1
                out.total_bytes += entry.stat().st_size
            out.fonts[font_dir.name] = count
            out.entries += count
        return out
