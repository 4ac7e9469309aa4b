"""Sportsbook odds consensus and expected-value detection."""

__version__ = "0.1.0"
