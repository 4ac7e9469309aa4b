"""Kelly criterion sizing.

All functions here are pure: no I/O and no state, so results depend only on
their arguments.

The reference (consensus) price's implied probability is treated as the true
win probability. Fractional Kelly scales the full-Kelly stake down; negative
edges size to zero, never to a negative stake.
"""

from __future__ import annotations

from dataclasses import dataclass

from ev_odds.core.odds_math import american_to_decimal, american_to_prob, expected_value_pct

#: Quarter Kelly is the default recommendation.
DEFAULT_KELLY_FRACTION = 0.25


@dataclass(frozen=True)
class KellyStake:
    """Recommended wager for one offer."""

    stake_fraction: float
    dollar_amount: float
    offered_implied_prob: float
    reference_implied_prob: float
    full_kelly: float
    expected_value: float


def kelly_fraction(win_prob: float, decimal_odds: float) -> float:
    """
    Full-Kelly fraction of bankroll, possibly negative.

    f* = (b·p − q) / b with b = decimal_odds − 1 and q = 1 − p.

    Examples:
        >>> kelly_fraction(0.55, 1.909)
        0.0549...
    """
    if not 0.0 <= win_prob <= 1.0:
        raise ValueError(f"win_prob must be in [0, 1], got {win_prob}")
    b = decimal_odds - 1.0
    if b <= 0:
        raise ValueError(f"decimal_odds must be > 1, got {decimal_odds}")
    return (b * win_prob - (1.0 - win_prob)) / b


def kelly_stake(
    bankroll: float,
    offered_odds: float,
    reference_odds: float,
    fraction: float = DEFAULT_KELLY_FRACTION,
) -> KellyStake:
    """
    Size a wager at `offered_odds` when `reference_odds` is the fair price.

    Args:
        bankroll: Current bankroll in dollars
        offered_odds: American odds offered by the bookmaker
        reference_odds: American consensus odds
        fraction: Multiplier on full Kelly, in (0, 1]

    Returns:
        KellyStake with the applied fraction and dollar amount
    """
    if not 0.0 < fraction <= 1.0:
        raise ValueError(f"fraction must be in (0, 1], got {fraction}")
    if bankroll < 0:
        raise ValueError(f"bankroll must be >= 0, got {bankroll}")

    offered_prob = american_to_prob(offered_odds)
    reference_prob = american_to_prob(reference_odds)

    full = kelly_fraction(reference_prob, american_to_decimal(offered_odds))
    applied = max(full, 0.0) * fraction

    return KellyStake(
        stake_fraction=applied,
        dollar_amount=bankroll * applied,
        offered_implied_prob=offered_prob,
        reference_implied_prob=reference_prob,
        full_kelly=full,
        expected_value=expected_value_pct(offered_odds, reference_odds),
    )
