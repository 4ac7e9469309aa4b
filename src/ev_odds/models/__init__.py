"""Normalized data models for odds consensus and EV detection."""

from ev_odds.models.odds import (
    BookmakerQuote,
    Event,
    EventOdds,
    Market,
    Outcome,
    PlayerProps,
    Scores,
    Sport,
)
from ev_odds.models.opportunity import (
    NO_CONSENSUS,
    ConsensusMethod,
    ConsensusResult,
    EVOpportunity,
    EVScanResult,
    SportScanSummary,
)
from ev_odds.models.response import ApiResponse, DataSource, UsageStats

__all__ = [
    "Sport",
    "Scores",
    "Event",
    "EventOdds",
    "PlayerProps",
    "Outcome",
    "Market",
    "BookmakerQuote",
    "NO_CONSENSUS",
    "ConsensusMethod",
    "ConsensusResult",
    "EVOpportunity",
    "EVScanResult",
    "SportScanSummary",
    "ApiResponse",
    "DataSource",
    "UsageStats",
]
