"""Structured logging for scrapes and upstream requests.

Callers attach context through ``extra=build_log_extra(...)``; both formatters
render every non-standard record attribute after the message, so a log line
can always be tied back to the api, url and node it concerns.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, Iterator

_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "color_message"}

LEVEL_COLORS = {
    logging.DEBUG: "\033[90m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
RESET = "\033[0m"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def extract_log_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Return the attributes a caller attached to ``record`` via ``extra``."""

    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
    }


def build_log_extra(
    *,
    api: str | None = None,
    url: str | None = None,
    node_id: str | None = None,
    chain_id: str | None = None,
    error_type: str | None = None,
    elapsed: float | None = None,
    additional: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    """Construct an `extra` dict for structured logging, omitting unset fields."""
    extra: Dict[str, Any] = {}

    if api is not None:
        extra["api"] = api

    if url is not None:
        extra["url"] = url

    if node_id is not None:
        extra["node_id"] = node_id

    if chain_id is not None:
        extra["chain_id"] = chain_id

    if error_type is not None:
        extra["error_type"] = error_type

    if elapsed is not None:
        extra["elapsed_seconds"] = round(elapsed, 3)

    if additional:
        extra.update(additional)

    return extra


@dataclass(slots=True)
class Timing:
    """Outcome of a :func:`timed` block, filled in when the block exits."""

    elapsed: float = 0.0
    succeeded: bool = False


@contextmanager
def timed(
    logger: logging.Logger,
    event: str,
    *,
    level: int = logging.DEBUG,
    extra: Dict[str, Any] | None = None,
) -> Iterator[Timing]:
    """Measure the enclosed block and log ``event`` with its duration and outcome.

    The yielded :class:`Timing` lets the caller reuse the measured duration
    for metrics once the block has completed.
    """
    timing = Timing()
    start = perf_counter()

    try:
        yield timing
        timing.succeeded = True
    finally:
        timing.elapsed = perf_counter() - start
        logger.log(
            level,
            event,
            extra={
                **(extra or {}),
                "elapsed_seconds": round(timing.elapsed, 3),
                "outcome": "ok" if timing.succeeded else "error",
            },
        )


def _render_value(value: Any) -> str:
    text = str(value)

    if not text or any(char in text for char in ' "='):
        return json.dumps(text)

    return text


def render_context(context: Dict[str, Any]) -> str:
    """Render context as sorted ``key=value`` pairs, quoting values that need it."""

    return " ".join(f"{key}={_render_value(context[key])}" for key in sorted(context))


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per record with the structured context inlined."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(extract_log_context(record))

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class StructuredTextFormatter(logging.Formatter):
    """Plain text lines with a ``| key=value`` context suffix and an optionally coloured level."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        *,
        color_enabled: bool = True,
    ) -> None:
        super().__init__(fmt, datefmt)
        self.color_enabled = color_enabled

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)

        if self.color_enabled and color:
            line = line.replace(record.levelname, f"{color}{record.levelname}{RESET}", 1)

        context = extract_log_context(record)

        if context:
            line = f"{line} | {render_context(context)}"

        return line


__all__ = [
    "JsonFormatter",
    "StructuredTextFormatter",
    "Timing",
    "build_log_extra",
    "extract_log_context",
    "get_logger",
    "render_context",
    "timed",
]
