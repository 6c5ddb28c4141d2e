"""Tests for contree.logging."""

from __future__ import annotations

import io
import logging

from contree.logging import configure_logging, get_logger


def test_component_loggers_share_the_contree_hierarchy() -> None:
    assert get_logger().name == "contree"
    assert get_logger("deps.resolver").name == "contree.deps.resolver"


def test_default_level_hides_debug_records() -> None:
    stream = io.StringIO()
    configure_logging(stream=stream)

    get_logger("walker").debug("descending into src")
    get_logger("walker").warning("Skipping unreadable directory locked")

    assert stream.getvalue() == "contree: WARNING: Skipping unreadable directory locked\n"


def test_verbose_names_the_component() -> None:
    stream = io.StringIO()
    configure_logging(verbose=True, stream=stream)

    get_logger("walker").debug("descending into src")

    assert stream.getvalue() == "contree: DEBUG [contree.walker] descending into src\n"


def test_reconfiguring_replaces_the_handler() -> None:
    first, second = io.StringIO(), io.StringIO()
    configure_logging(stream=first)
    logger = configure_logging(stream=second)

    get_logger("assembler").info("Assembled 3 document entries")

    assert len(logger.handlers) == 1
    assert first.getvalue() == ""
    assert "Assembled 3 document entries" in second.getvalue()
    assert logger.level == logging.INFO
