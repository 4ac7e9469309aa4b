"""Observability: structured logging."""

from ev_odds.observability.logging import scan_context, setup_logging

__all__ = ["scan_context", "setup_logging"]
