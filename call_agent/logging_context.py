"""Session-scoped logging context.

Every turn runs with the caller's session id stored in a ContextVar.
``SessionIdFilter`` copies it onto log records as ``session_id`` so the
configured format can print ``[%(session_id)s]`` for records from any
module, including third-party loggers such as httpx.

Usage:
    from call_agent.logging_context import get_session_logger, session_context

    logger = get_session_logger(__name__)
    with session_context("CA1234"):
        logger.info("Processing turn")  # ... [CA1234] Processing turn
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_SESSION = "-"

_session_id: ContextVar[str] = ContextVar("session_id", default=NO_SESSION)


def get_session_id() -> str:
    return _session_id.get()


@contextmanager
def session_context(session_id: str) -> Iterator[None]:
    """Bind ``session_id`` for the duration of a block, then restore the previous one."""
    token = _session_id.set(session_id)
    try:
        yield
    finally:
        _session_id.reset(token)


class SessionIdFilter(logging.Filter):
    """Stamps the active session id on records that do not carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session_id"):
            record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def install_session_filter(logger: Optional[logging.Logger] = None) -> int:
    """Attach a SessionIdFilter to each handler of ``logger`` (root by default).

    Handler filters see records propagated from every logger, so formats
    using ``%(session_id)s`` never fail on a record from a module that
    was not set up through get_session_logger. Returns the number of
    handlers that gained a filter; calling it again is a no-op.
    """
    target = logger or logging.getLogger()
    added = 0
    for handler in target.handlers:
        if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
            handler.addFilter(SessionIdFilter())
            added += 1
    return added


def get_session_logger(name: str) -> logging.Logger:
    """Return the named logger with a SessionIdFilter attached."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger
