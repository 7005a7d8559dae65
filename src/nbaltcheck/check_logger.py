"""Centralized decision logging for the accessibility checker.

This module keeps configuration, per-cell decisions and error policies in one
place so that analysis failures, which never reach the user as errors, still
leave a trace for troubleshooting.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nbaltcheck.model.options import CheckerOptions

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    """Install a rich log handler on the root logger.

    Args:
        verbose: Log at DEBUG level instead of WARNING
    """
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def log_checker_configuration(options: CheckerOptions) -> None:
    """Log the checker configuration for debugging.

    Args:
        options: Checker options to log
    """
    logger.info("Checker configuration:")
    logger.info("  Origin: %s", options.origin or "(local files)")
    logger.info("  Image timeout: %.1fs", options.image_timeout)
    logger.info("  Transparency threshold: %.2f", options.transparency_threshold)
    logger.info(
        "  Missing alt detection: %s", "enabled" if options.detect_missing_alt else "disabled"
    )


def log_cell_decision(cell_id: str, decision: str, issue_count: int = 0) -> None:
    """Log the indicator decision taken for a cell.

    Args:
        cell_id: Identifier of the analyzed cell
        decision: The decision made (e.g., "flagged", "clean", "stale")
        issue_count: Number of issue rows committed for the cell
    """
    if issue_count:
        logger.info("Cell %s: %s (%d issue(s))", cell_id, decision, issue_count)
    else:
        logger.debug("Cell %s: %s", cell_id, decision)


def log_error_policy(
    feature: str, error_type: str, action: str, details: str | None = None
) -> None:
    """Log error handling policy decisions.

    Args:
        feature: Name of the component encountering the error
        error_type: Type of error (e.g., "image_load_failed", "parse_failed")
        action: Action taken (e.g., "skip", "neutral", "continue")
        details: Optional additional details
    """
    if details:
        logger.warning("%s error policy: %s -> %s (%s)", feature, error_type, action, details)
    else:
        logger.warning("%s error policy: %s -> %s", feature, error_type, action)


__all__ = [
    "configure_logging",
    "log_cell_decision",
    "log_checker_configuration",
    "log_error_policy",
]
