"""Typed failures raised across rendering, caching and delivery."""

from __future__ import annotations


class FontImageError(Exception):
    """Base class for every failure surfaced by FontImage."""

    code = "error"


class UnsupportedEnvironment(FontImageError, RuntimeError):
    code = "unsupported_environment"


class InvalidInput(FontImageError, ValueError):
    code = "invalid_input"


class InvalidColour(InvalidInput):
    code = "invalid_colour"


class StorageUnavailable(FontImageError, OSError):
    code = "storage_unavailable"


class FontUnavailable(FontImageError, FileNotFoundError):
    code = "font_unavailable"


class DestinationUnwritable(FontImageError, PermissionError):
    code = "destination_unwritable"


class EncodeFailure(FontImageError, RuntimeError):
    code = "encode_failure"
