"""
Structured logging for the scanner.

structlog renders JSON lines in production or colored console output in
development. Logs go to stderr so CLI tables on stdout stay clean. Scan
entry points bind their parameters with `scan_context`, so every event
logged during a scan (adapter retries, cache failures, region errors)
carries the sport and scan id without threading them through each call.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional, TextIO

import structlog

from ev_odds.config import get_settings

# Chatty transport loggers, capped at WARNING
_QUIET_LOGGERS = ("httpx", "httpcore", "redis")


def setup_logging(
    level: Optional[str] = None,
    format: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Log level (default EV_ODDS_LOG_LEVEL)
        format: 'json' or 'console' (default EV_ODDS_LOG_FORMAT)
        stream: Destination, stderr unless given
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    fmt = format or settings.log_format

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if fmt == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream is None and sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stderr,
        level=getattr(logging, level, logging.INFO),
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def scan_context(**fields: Any) -> Iterator[str]:
    """
    Bind `fields` plus a fresh scan_id to every log event in this task.

    Yields the scan id. Bindings are contextvars, so concurrent scans in
    other tasks keep their own.
    """
    scan_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(scan_id=scan_id, **fields):
        yield scan_id
