"""Odds source adapters."""

from ev_odds.adapters.odds_api import DataSourceMode, OddsAPIAdapter
from ev_odds.adapters.synthetic import SyntheticOddsSource

__all__ = ["DataSourceMode", "OddsAPIAdapter", "SyntheticOddsSource"]
