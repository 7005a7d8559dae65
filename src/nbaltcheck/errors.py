"""Exception types raised while checking notebook images.

Image failures are contained inside the analysis layer: callers receive an
``ImageLoadError`` per image and skip that image, never the whole cell.
"""

from __future__ import annotations

from pathlib import Path


class AccessibilityCheckError(Exception):
    """Base class for all nbaltcheck errors."""


class ImageLoadError(AccessibilityCheckError):
    """An image could not be fetched, read, or identified."""

    def __init__(self, source: str, cause: Exception | None = None) -> None:
        self.source = source
        self.cause = cause
        message = f"Failed to load image {_shorten(source)}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class DecodeContextUnavailable(AccessibilityCheckError):
    """The image loaded but no pixel buffer could be obtained from it."""

    def __init__(self, source: str, cause: Exception | None = None) -> None:
        self.source = source
        self.cause = cause
        message = f"No pixel data available for {_shorten(source)}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class NotebookLoadError(AccessibilityCheckError):
    """A notebook file is unreadable or not valid notebook JSON."""

    def __init__(self, path: Path, cause: Exception | None = None) -> None:
        self.path = path
        self.cause = cause
        message = f"Failed to load notebook {path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


def _shorten(source: str, limit: int = 80) -> str:
    # data: URIs can be megabytes long
    if len(source) <= limit:
        return source
    return source[: limit - 3] + "..."


__all__ = [
    "AccessibilityCheckError",
    "DecodeContextUnavailable",
    "ImageLoadError",
    "NotebookLoadError",
]
