"""
Odds conversion, expected-value and vig mathematics.

All probability values are decimals in [0, 1].
American odds are signed prices (e.g., -110, +150).
Decimal odds are floats >= 1.0 (e.g., 1.91, 2.50).
"""

from __future__ import annotations


def american_to_prob(odds: float) -> float:
    """
    Convert American odds to implied probability.

    Args:
        odds: American odds (-110, +150, etc.)

    Returns:
        Implied probability in [0, 1]

    Examples:
        >>> american_to_prob(-110)  # Favorite
        0.5238...
        >>> american_to_prob(+150)  # Underdog
        0.4
    """
    if odds == 0:
        raise ValueError("American odds cannot be 0")
    if odds > 0:
        return 100 / (odds + 100)
    return abs(odds) / (abs(odds) + 100)


def american_to_decimal(odds: float) -> float:
    """
    Convert American odds to decimal odds.

    Examples:
        >>> american_to_decimal(+150)
        2.5
        >>> american_to_decimal(-110)
        1.909...
    """
    if odds == 0:
        raise ValueError("American odds cannot be 0")
    if odds > 0:
        return odds / 100 + 1
    return 100 / abs(odds) + 1


def decimal_to_american(odds: float) -> float:
    """Convert decimal odds to American odds."""
    if odds <= 1:
        raise ValueError(f"Decimal odds must be > 1, got {odds}")
    if odds >= 2:
        return (odds - 1) * 100
    return -100 / (odds - 1)


def decimal_to_prob(odds: float) -> float:
    """
    Convert decimal odds to implied probability.

    Examples:
        >>> decimal_to_prob(2.00)
        0.5
    """
    if odds <= 0:
        raise ValueError(f"Decimal odds must be > 0, got {odds}")
    return 1.0 / odds


def prob_to_american(prob: float) -> float:
    """
    Convert probability to American odds.

    Args:
        prob: Probability in (0, 1)

    Returns:
        American odds (negative for favorites)
    """
    if prob <= 0 or prob >= 1:
        raise ValueError(f"Probability must be in (0, 1), got {prob}")

    if prob >= 0.5:
        return -100 * prob / (1 - prob)
    return 100 * (1 - prob) / prob


def prob_to_decimal(prob: float) -> float:
    """Convert probability to decimal odds."""
    if prob <= 0 or prob >= 1:
        raise ValueError(f"Probability must be in (0, 1), got {prob}")
    return 1.0 / prob


def fair_odds(prob: float) -> int:
    """Whole-number American price with no margin for a probability."""
    return round(prob_to_american(prob))


def round_to_standard_american(odds: float) -> int:
    """
    Snap a raw average onto a quotable American price.

    Magnitudes >= 100 round to the nearest multiple of 5. Anything inside
    (-100, 100) is not a legal price and snaps to +100 or -110 by sign.

    Examples:
        >>> round_to_standard_american(-112.4)
        -110
        >>> round_to_standard_american(42.0)
        100
    """
    if -100 < odds < 100:
        return 100 if odds >= 0 else -110
    return int(round(odds / 5) * 5)


def expected_value_pct(offered_odds: float, reference_odds: float) -> float:
    """
    Expected value of an offered price, in percent, treating the reference
    price's implied probability as the true win probability.

    EV% = (p_reference * decimal(offered) - 1) * 100

    Examples:
        >>> expected_value_pct(+150, +120)
        13.63...
    """
    p_true = american_to_prob(reference_odds)
    return (p_true * american_to_decimal(offered_odds) - 1) * 100


def bet_expected_value(stake: float, odds: float, win_prob: float) -> float:
    """Expected profit in currency units for a stake at American odds."""
    profit = stake * (american_to_decimal(odds) - 1)
    return win_prob * profit - (1 - win_prob) * stake


def no_vig_two_way(p_a: float, p_b: float) -> tuple[float, float]:
    """
    Remove vig from two-way market using proportional method.

    Examples:
        >>> no_vig_two_way(0.5238, 0.5238)  # Both -110
        (0.5, 0.5)
    """
    overround = p_a + p_b

    if overround <= 0:
        raise ValueError(f"Overround must be > 0, got {overround}")

    return p_a / overround, p_b / overround


def no_vig_multi_way(probs: list[float]) -> tuple[list[float], float]:
    """
    Remove vig from multi-way market using proportional normalization.

    Returns:
        (no_vig_probs, overround) tuple
    """
    if not probs:
        raise ValueError("Must provide at least one probability")

    overround = sum(probs)

    if overround <= 0:
        raise ValueError(f"Overround must be > 0, got {overround}")

    return [p / overround for p in probs], overround


def get_overround(probs: list[float]) -> float:
    """
    Calculate overround (vigorish) from implied probabilities.

    Examples:
        >>> get_overround([0.5238, 0.5238])  # Both -110
        1.0476...
    """
    return sum(probs)


def get_vig_pct(overround: float) -> float:
    """Convert overround to vig percentage."""
    return (overround - 1.0) * 100.0


def margin_pct(prices: list[float]) -> float:
    """Bookmaker margin in percent for the American prices of one market."""
    return get_vig_pct(get_overround([american_to_prob(p) for p in prices]))


def closing_line_value(placed_odds: float, closing_odds: float) -> float:
    """
    Closing line value in percent.

    Positive when the placed price beat the closing price.
    """
    placed = american_to_prob(placed_odds)
    closing = american_to_prob(closing_odds)
    return (closing / placed - 1) * 100
