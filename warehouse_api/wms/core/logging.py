"""
Logging setup for the warehouse API.

Every record carries the correlation id of the request (or job) that produced
it, so an allocation, a credit raise and the error returned to the client can
be matched up in the logs.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterable, Iterator, Optional, Union
from uuid import uuid4

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | %(message)s"

# Chatty third-party loggers kept at WARNING unless the root level is DEBUG.
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "alembic.runtime.migration")


class LoggingContextFilter(logging.Filter):
    """Copy the current correlation id onto each record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.correlation_id = correlation_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """
    Bind a correlation id for the duration of a block.

    A new uuid4 is used when none is given. The previous value is restored on exit.
    """
    cid = correlation_id or str(uuid4())
    token = correlation_id_var.set(cid)
    try:
        yield cid
    finally:
        correlation_id_var.reset(token)


# PUBLIC_INTERFACE
def configure_logging(
    level: Union[int, str] = logging.INFO,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Install a single stdout handler with the correlation-aware format on the root logger."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)

    if level > logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)
