"""Logging utilities."""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any

from rich.logging import RichHandler


_run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("itergen_run_id", default="-")
_step_var: contextvars.ContextVar[str] = contextvars.ContextVar("itergen_step", default="-")

_HANDLER_NAME = "itergen"
_FORMAT = "run=%(run_id)s step=%(step)s %(name)s: %(message)s"


class _ContextFilter(logging.Filter):
    """Inject run context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.run_id = _run_id_var.get()  # type: ignore[attr-defined]
        record.step = _step_var.get()  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def run_context(*, run_id: str, step: str | None = None) -> Any:
    """Temporarily bind run context for structured logging.

    Args:
        run_id: Run identifier.
        step: Optional step identifier (e.g. ``fetch``, ``create``, ``subscribe``).
    """

    token_run = _run_id_var.set(run_id)
    token_step = _step_var.set(step or _step_var.get())
    try:
        yield
    finally:
        _run_id_var.reset(token_run)
        _step_var.reset(token_step)


def set_step(step: str) -> None:
    """Update current step in context."""

    _step_var.set(step)


def _itergen_handler(root: logging.Logger) -> RichHandler:
    for h in root.handlers:
        if isinstance(h, RichHandler) and h.get_name() == _HANDLER_NAME:
            return h
    handler = RichHandler(rich_tracebacks=True, show_time=True, show_level=True)
    handler.set_name(_HANDLER_NAME)
    root.addHandler(handler)
    return handler


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Safe to call once per CLI command in the same process: the Rich handler and its context
    filter are installed once and only the level is updated afterwards.

    Args:
        level: Logging level name.
    """

    level = level.upper()
    root = logging.getLogger()
    root.setLevel(level)

    handler = _itergen_handler(root)
    if not any(isinstance(f, _ContextFilter) for f in handler.filters):
        handler.addFilter(_ContextFilter())
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if level == "DEBUG" else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)


def log_exception(logger: logging.Logger, msg: str, **context: Any) -> None:
    """Log an exception with optional structured context."""

    if context:
        logger.exception("%s | context=%s", msg, context)
    else:
        logger.exception("%s", msg)
