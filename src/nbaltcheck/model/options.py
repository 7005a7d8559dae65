"""Checker configuration options.

Defaults match the behaviour of the notebook extension: images are treated as
too transparent below a score of 9 and a navigation flash lasts 0.8 seconds.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

TIMEOUT_ENV_VAR = "NBALTCHECK_IMAGE_TIMEOUT"


def get_environment_timeout(default: float) -> float:
    """Return the image timeout from the environment, or ``default``.

    Invalid or non-positive values are ignored with a warning.
    """
    raw = os.environ.get(TIMEOUT_ENV_VAR)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r; using %.1fs", TIMEOUT_ENV_VAR, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r; using %.1fs", TIMEOUT_ENV_VAR, raw, default)
        return default
    return value


@dataclass
class CheckerOptions:
    """Configuration for image analysis and indicator handling."""

    # Server origin used to resolve relative image paths as <origin>/files/<path>.
    # When None, relative paths are read from disk beside the notebook.
    origin: str | None = None

    # Upper bound in seconds for loading a single image
    image_timeout: float = 10.0

    # Transparency scores strictly below this value are reported
    transparency_threshold: float = 9.0

    # Duration in seconds of the highlight applied when navigating to a cell
    flash_duration: float = 0.8

    # Report images without alternative text in content cells
    detect_missing_alt: bool = True

    @classmethod
    def from_cli(
        cls,
        *,
        origin: str | None = None,
        timeout: float | None = None,
        threshold: float = 9.0,
        alt_check: bool = True,
    ) -> CheckerOptions:
        """Build CheckerOptions from CLI argument values.

        Args:
            origin: Server origin such as ``http://localhost:8888``
            timeout: Per-image timeout in seconds; falls back to the environment
            threshold: Transparency threshold in the 0..10 range
            alt_check: Whether missing alt text is reported

        Returns:
            CheckerOptions instance

        Raises:
            ValueError: If any argument has an invalid value
        """
        if origin is not None:
            parsed = urlparse(origin)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(
                    f"Invalid origin '{origin}'. Expected an http(s) URL such as "
                    "http://localhost:8888"
                )
            origin = origin.rstrip("/")

        if timeout is None:
            timeout = get_environment_timeout(cls.image_timeout)
        elif timeout <= 0:
            raise ValueError(f"Invalid timeout {timeout}. Must be greater than 0")

        if not 0 <= threshold <= 10:
            raise ValueError(f"Invalid threshold {threshold}. Valid range: 0..10")

        return cls(
            origin=origin,
            image_timeout=timeout,
            transparency_threshold=threshold,
            detect_missing_alt=alt_check,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization/logging."""
        return {
            "origin": self.origin,
            "image_timeout": self.image_timeout,
            "transparency_threshold": self.transparency_threshold,
            "flash_duration": self.flash_duration,
            "detect_missing_alt": self.detect_missing_alt,
        }


__all__ = [
    "TIMEOUT_ENV_VAR",
    "CheckerOptions",
    "get_environment_timeout",
]
