"""Core utilities."""

from ev_odds.core.consensus import ConsensusEngine
from ev_odds.core.detector import EVDetector
from ev_odds.core.kelly import KellyStake, kelly_fraction, kelly_stake
from ev_odds.core.merge import merge_region_odds
from ev_odds.core.odds_math import (
    american_to_decimal,
    american_to_prob,
    expected_value_pct,
    prob_to_american,
    round_to_standard_american,
)

__all__ = [
    "ConsensusEngine",
    "EVDetector",
    "KellyStake",
    "kelly_fraction",
    "kelly_stake",
    "merge_region_odds",
    "american_to_decimal",
    "american_to_prob",
    "expected_value_pct",
    "prob_to_american",
    "round_to_standard_american",
]
