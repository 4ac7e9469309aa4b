"""Tests for logging setup and scan context binding."""

import io
import logging

import structlog

from ev_odds.observability.logging import scan_context, setup_logging


def test_scan_context_binds_and_unbinds():
    with scan_context(sport="basketball_nba") as scan_id:
        bound = structlog.contextvars.get_contextvars()
        assert bound["sport"] == "basketball_nba"
        assert bound["scan_id"] == scan_id
    assert "scan_id" not in structlog.contextvars.get_contextvars()


def test_transport_loggers_quieted():
    setup_logging(level="debug", format="json", stream=io.StringIO())
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("redis").level == logging.WARNING
