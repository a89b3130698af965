"""Disk cache for rendered FontImage output."""

from .fingerprint import FINGERPRINT_VERSION, canonical_payload, fingerprint
from .store import ENTRY_SUFFIX, MARKER_NAME, CacheStats, CacheStore, font_stem

__all__ = [
    "ENTRY_SUFFIX",
    "FINGERPRINT_VERSION",
    "MARKER_NAME",
    "CacheStats",
    "CacheStore",
    "canonical_payload",
    "fingerprint",
    "font_stem",
]
