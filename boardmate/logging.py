"""Logging configuration."""

import logging
import sys


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for boardmate.

    Logs go to stderr, not mixed with chat output or --json output.

    Args:
        verbose: If True, log at DEBUG level; otherwise WARNING.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (e.g., "assistant.mutation")

    Returns:
        Logger instance
    """
    if name.startswith("boardmate"):
        return logging.getLogger(name)
    return logging.getLogger(f"boardmate.{name}")
