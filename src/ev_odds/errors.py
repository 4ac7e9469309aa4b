"""Typed failures raised by the odds provider client."""

from __future__ import annotations

from typing import Optional


class OddsAPIError(Exception):
    """Raised for upstream failures the caller must decide how to handle."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(f"Odds API error: {message}")
        else:
            super().__init__(f"Odds API error {status_code}: {message}")


class QuotaExhaustedError(OddsAPIError):
    """Raised when the provider reports the usage quota is spent."""
    pass
