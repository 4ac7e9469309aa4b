"""
Static bookmaker weight tables for the weighted consensus.

Higher weight = more influence on the consensus price. Pinnacle anchors every
game-market table at 5.0. Unknown (sport, market, bookmaker) combinations
weigh DEFAULT_WEIGHT.
"""

from __future__ import annotations

from ev_odds.constants import SPORTS, is_player_market

DEFAULT_WEIGHT = 1.0

_NBA = {
    "pinnacle": 5.0,
    "draftkings": 4.97,
    "betmgm": 4.39,
    "bet365": 4.7,
    "fanduel": 4.6,
    "caesars": 4.5,
    "pointsbet": 4.0,
    "betonline": 4.92,
}

_NCAAB = {
    "pinnacle": 5.0,
    "bet365": 4.5,
    "draftkings": 4.3,
    "fanduel": 4.2,
    "betmgm": 4.0,
    "caesars": 4.0,
    "pointsbet": 3.8,
    "betrivers": 4.0,
    "bovada": 3.9,
    "fanatics": 3.8,
    "williamhill_us": 4.1,
    "mybookieag": 3.7,
    "betonline": 3.8,
    "betonlineag": 3.8,
    "betus": 3.7,
    "lowvig": 4.1,
}

_FOOTBALL = {
    "pinnacle": 5.0,
    "bet365": 2.0,
    "draftkings": 1.8,
    "fanduel": 1.8,
    "betmgm": 1.5,
    "caesars": 1.5,
    "pointsbet": 1.0,
}

_MLB = {
    "pinnacle": 5.0,
    "draftkings": 4.34,
    "fanduel": 4.33,
    "betmgm": 3.97,
    "bet365": 4.3,
    "caesars": 4.2,
    "pointsbet": 4.0,
}

_NHL = {
    "pinnacle": 5.0,
    "bet365": 4.6,
    "draftkings": 4.4,
    "fanduel": 4.3,
    "betmgm": 4.1,
    "caesars": 4.1,
    "pointsbet": 3.9,
    "betrivers": 4.0,
    "bovada": 3.9,
    "fanatics": 3.8,
    "williamhill_us": 4.2,
    "mybookieag": 3.7,
    "betonline": 3.8,
    "betonlineag": 3.8,
    "betus": 3.7,
    "lowvig": 4.2,
}

_UFC = {
    "pinnacle": 5.0,
    "draftkings": 2.5,
    "bet365": 2.0,
    "fanduel": 1.5,
    "betmgm": 1.2,
    "caesars": 1.2,
    "pointsbet": 1.0,
}

_EPL = {
    "pinnacle": 5.0,
    "bet365": 3.0,
    "draftkings": 1.5,
    "fanduel": 1.5,
    "betmgm": 1.2,
    "caesars": 1.2,
    "pointsbet": 1.0,
}


def _all_markets(weights: dict[str, float], **overrides: dict[str, float]) -> dict[str, dict[str, float]]:
    table = {"h2h": weights, "spreads": weights, "totals": weights}
    table.update(overrides)
    return table


BOOKMAKER_WEIGHTS: dict[str, dict[str, dict[str, float]]] = {
    SPORTS["NBA"]: _all_markets(_NBA),
    SPORTS["NCAAB"]: _all_markets(_NCAAB, spreads={**_NCAAB, "draftkings": 4.4}),
    SPORTS["NFL"]: _all_markets(_FOOTBALL, spreads={**_FOOTBALL, "draftkings": 2.0}),
    SPORTS["MLB"]: _all_markets(_MLB),
    SPORTS["NHL"]: _all_markets(_NHL),
    SPORTS["NCAAF"]: _all_markets(_FOOTBALL, spreads={**_FOOTBALL, "draftkings": 2.0}),
    SPORTS["UFC"]: _all_markets(_UFC),
    SPORTS["EPL"]: _all_markets(_EPL),
}

PLAYER_PROPS_WEIGHTS: dict[str, dict[str, float]] = {
    "nba": {
        "fanduel": 4.6,
        "draftkings": 4.8,
        "pinnacle": 4.5,
        "caesars": 4.55,
        "kambi": 2.9,
        "betmgm": 4.0,
        "pointsbet": 3.8,
        "bet365": 4.2,
    },
    "mlb": {
        "fanduel": 5.0,
        "pinnacle": 3.7,
        "caesars": 3.7,
        "draftkings": 3.5,
        "kambi": 2.2,
        "betmgm": 3.3,
        "pointsbet": 3.0,
        "bet365": 3.5,
    },
}

# Player-prop tables are shared between related leagues
_PROP_TABLE_FOR_SPORT = {
    SPORTS["NBA"]: "nba",
    SPORTS["NCAAB"]: "nba",
    SPORTS["MLB"]: "mlb",
}


def get_bookmaker_weight(bookmaker: str, sport: str, market: str) -> float:
    """Weight for a bookmaker's price in a (sport, market) consensus."""
    bookmaker_key = bookmaker.lower()

    if is_player_market(market) and sport in _PROP_TABLE_FOR_SPORT:
        table = PLAYER_PROPS_WEIGHTS[_PROP_TABLE_FOR_SPORT[sport]]
        return table.get(bookmaker_key, DEFAULT_WEIGHT)

    market_weights = BOOKMAKER_WEIGHTS.get(sport, {}).get(market)
    if not market_weights:
        return DEFAULT_WEIGHT
    return market_weights.get(bookmaker_key, DEFAULT_WEIGHT)

