"""Diagnostics for contree; records go to stderr so stdout carries only the document."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_ROOT = "contree"
_FORMAT = "contree: %(levelname)s: %(message)s"
_VERBOSE_FORMAT = "contree: %(levelname)s [%(name)s] %(message)s"


def get_logger(component: str | None = None) -> logging.Logger:
    """Return the logger for ``component`` (e.g. ``"walker"``), or the root contree logger."""
    if not component:
        return logging.getLogger(_ROOT)
    return logging.getLogger(f"{_ROOT}.{component}")


def configure_logging(*, verbose: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Attach a single handler writing to ``stream`` (stderr when omitted).

    Warnings and info are always shown. ``verbose`` adds the per-component
    debug trail and names the emitting component on each line.
    """
    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
