"""Classifieds logging configuration.

Call ``configure_logging()`` once at process startup (e.g. in ``__main__``).
Every other module must define its own logger at module scope:

    import logging
    logger = logging.getLogger(__name__)

Supported environment variables (read at call time):
    LOG_LEVEL   DEBUG | INFO | WARNING | ERROR   (default: INFO)
    LOG_FORMAT  text | json                      (default: text)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_logging",
    "JsonFormatter",
    "REQUEST_ID_CTX",
    "RequestContextFilter",
]

# ---------------------------------------------------------------------------
# Request-scoped context variable
# ---------------------------------------------------------------------------

#: Async-safe context variable holding the identifier of the HTTP request
#: currently being handled.  Set to a short hex string by the request-logging
#: middleware in :mod:`classifieds.api.app`.  Defaults to ``"-"`` outside of
#: any request (startup, teardown, direct store use in tests).
REQUEST_ID_CTX: ContextVar[str] = ContextVar("request_id", default="-")

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_VALID_FORMATS = {"text", "json"}

# ``%(request_id)s`` is injected by :class:`RequestContextFilter`.
_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio")


class RequestContextFilter(logging.Filter):
    """Inject the current request ID into every log record.

    Reads :data:`REQUEST_ID_CTX` and sets ``record.request_id`` before the
    record reaches any formatter, so the text format can reference
    ``%(request_id)s`` and :class:`JsonFormatter` emits it as the top-level
    ``"request_id"`` key.

    The filter is installed on the handler (not the logger) by
    :func:`configure_logging`, so records propagated from any module get the
    attribute.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        """Attach ``request_id`` to *record* and allow all records through."""
        record.request_id = REQUEST_ID_CTX.get("-")
        return True


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    *,
    force: bool = False,
) -> None:
    """Configure the root logger for the entire process.

    Args:
        level: Logging level string (DEBUG/INFO/WARNING/ERROR/CRITICAL).
            Falls back to ``$LOG_LEVEL`` env var, then "INFO".
        fmt: Output format ("text" or "json").
            Falls back to ``$LOG_FORMAT`` env var, then "text".
        force: If True, reconfigure even if logging has already been set up.
            Useful in tests and CLI entry-points.

    Raises:
        ValueError: If *level* or *fmt* contain an unrecognised value.
    """
    resolved_level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    resolved_fmt = (fmt or os.environ.get("LOG_FORMAT", "text")).lower()

    if resolved_level not in _VALID_LEVELS:
        raise ValueError(
            f"Unknown LOG_LEVEL {resolved_level!r}. "
            f"Must be one of: {', '.join(sorted(_VALID_LEVELS))}"
        )
    if resolved_fmt not in _VALID_FORMATS:
        raise ValueError(
            f"Unknown LOG_FORMAT {resolved_fmt!r}. "
            f"Must be one of: {', '.join(sorted(_VALID_FORMATS))}"
        )

    root = logging.getLogger()

    if root.handlers and not force:
        # Already configured (e.g. by pytest's log_cli); only adjust the level.
        root.setLevel(resolved_level)
        return

    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved_level)
    handler.addFilter(RequestContextFilter())

    if resolved_fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT))

    root.setLevel(resolved_level)
    root.addHandler(handler)

    if resolved_level != "DEBUG":
        for noisy in _NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# JSON formatter
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Emit one JSON object per log record.

    Output shape::

        {
            "time":       "2026-10-19T12:34:56.789+00:00",
            "level":      "INFO",
            "logger":     "classifieds.api.app",
            "request_id": "a3f2b1c0",
            "message":    "GET /api/listings 200 in 3ms"
        }

    Keys passed through ``extra=`` on the logging call are merged into
    ``"fields"``.  ``"exception"`` holds the formatted traceback when the
    record carries one.
    """

    # Standard LogRecord attributes; anything else on the record came from ``extra=``.
    _STANDARD_ATTRS: frozenset[str] = frozenset(
        vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
        | {"message", "asctime", "request_id"}
    )

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", REQUEST_ID_CTX.get()),
            "message": record.getMessage(),
        }

        fields = {k: v for k, v in vars(record).items() if k not in self._STANDARD_ATTRS}
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            payload["exception"] = record.exc_text
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)

        return json.dumps(payload, default=str, ensure_ascii=False)
