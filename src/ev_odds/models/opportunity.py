"""Consensus and EV opportunity models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from ev_odds.models.response import DataSource

# Sentinel price meaning "not enough data for a reference price"
NO_CONSENSUS = 0.0


class ConsensusMethod(str, Enum):
    """Strategy used to compute a reference price."""
    WEIGHTED = "weighted"  # Weighted multi-bookmaker mean
    SHARP = "sharp"        # Sharp-bookmaker anchor
    SIMPLE = "simple"      # Median of all other books

    @classmethod
    def _missing_(cls, value: object) -> Optional[ConsensusMethod]:
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in ("consensus", "median"):
                return cls.SIMPLE
            for member in cls:
                if member.value == lowered:
                    return member
        return None


class ConsensusResult(BaseModel):
    """
    Reference price for one (event, market, outcome, point) tuple.

    `contributors` maps bookmaker key to the weight it carried (1.0 for the
    unweighted strategies).
    """
    price: float = NO_CONSENSUS
    method: ConsensusMethod
    contributors: dict[str, float] = Field(default_factory=dict)

    @property
    def found(self) -> bool:
        return self.price != NO_CONSENSUS

    @classmethod
    def none(cls, method: ConsensusMethod) -> ConsensusResult:
        return cls(price=NO_CONSENSUS, method=method)


class EVOpportunity(BaseModel):
    """
    A bookmaker offer priced better than the consensus.

    Created fresh on each detection pass; never mutated.
    """
    id: str
    event_id: str
    event_name: str = Field(description='e.g. "Golden State Warriors @ Los Angeles Lakers"')
    market: str
    selection: str = Field(description='e.g. "Over 221.5" or "Boston Celtics"')
    player_name: Optional[str] = None
    point: Optional[float] = None

    bookmaker: str
    odds: float = Field(description="Offered American odds")
    consensus_odds: float = Field(description="Reference American odds")
    ev: float = Field(description="Expected value in percent")

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    commence_time: Optional[datetime] = None
    is_live: bool = False
    region: str = "unknown"
    comparison_method: ConsensusMethod
    contributors: dict[str, float] = Field(default_factory=dict)


class EVScanResult(BaseModel):
    """Ranked opportunities for one sport scan."""
    opportunities: list[EVOpportunity] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: DataSource = DataSource.API
    failed_regions: list[str] = Field(default_factory=list)


class SportScanSummary(BaseModel):
    """Outcome of one sport within a multi-sport refresh."""
    sport: str
    success: bool
    opportunities: int = 0
    best_ev: Optional[float] = None
    failed_regions: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
