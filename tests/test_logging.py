"""Tests for logging setup."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest
from rich.logging import RichHandler

from itergen.logging import _ContextFilter, configure_logging, run_context, set_step


@pytest.fixture()
def clean_root() -> Iterator[logging.Logger]:
    root = logging.getLogger()
    saved = list(root.handlers)
    level = root.level
    root.handlers = [h for h in saved if not isinstance(h, RichHandler)]
    yield root
    root.handlers = saved
    root.setLevel(level)


def test_configure_logging_is_repeatable(clean_root: logging.Logger) -> None:
    """It should keep one Rich handler with one context filter across repeated calls."""

    configure_logging("INFO")
    configure_logging("DEBUG")
    configure_logging("WARNING")

    handlers = [h for h in clean_root.handlers if isinstance(h, RichHandler)]
    assert len(handlers) == 1
    assert sum(isinstance(f, _ContextFilter) for f in handlers[0].filters) == 1
    assert clean_root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING


def test_context_filter_injects_run_and_step() -> None:
    """It should stamp records with the bound run id and current step."""

    record = logging.LogRecord("itergen", logging.INFO, __file__, 1, "msg", None, None)

    with run_context(run_id="r-1", step="fetch"):
        set_step("subscribe")
        _ContextFilter().filter(record)

    assert record.run_id == "r-1"
    assert record.step == "subscribe"
