"""Provider vocabulary: sports, markets, regions and bookmakers."""

from __future__ import annotations

from typing import Optional

SPORTS = {
    "NBA": "basketball_nba",
    "NFL": "americanfootball_nfl",
    "MLB": "baseball_mlb",
    "NHL": "icehockey_nhl",
    "NCAAF": "americanfootball_ncaaf",
    "NCAAB": "basketball_ncaab",
    "UFC": "mma_mixed_martial_arts",
    "EPL": "soccer_epl",
}

GAME_MARKETS = ("h2h", "spreads", "totals")

ALTERNATE_MARKETS = {
    "spreads": "alternate_spreads",
    "totals": "alternate_totals",
}

PLAYER_MARKETS: dict[str, tuple[str, ...]] = {
    "basketball_nba": (
        "player_points",
        "player_rebounds",
        "player_assists",
        "player_threes",
        "player_steals",
        "player_blocks",
        "player_points_rebounds_assists",
        "player_points_rebounds",
        "player_points_assists",
        "player_rebounds_assists",
    ),
    "americanfootball_nfl": (
        "player_pass_yds",
        "player_pass_tds",
        "player_rush_yds",
        "player_recv_yds",
        "player_receptions",
    ),
    "baseball_mlb": (
        "pitcher_strikeouts",
        "batter_hits",
        "batter_home_runs",
        "batter_runs",
        "batter_rbis",
        "batter_total_bases",
    ),
    "icehockey_nhl": (
        "player_points_nhl",
        "player_goals",
        "player_assists_nhl",
        "player_shots",
        "player_saves",
    ),
}

PLAYER_MARKET_PREFIXES = ("player_", "pitcher_", "batter_")

REGIONS = ("us", "us2", "uk", "eu", "au")

# Bookmaker whose prices anchor the consensus
SHARP_BOOKMAKER = "pinnacle"

# error_code in the 401 body when the monthly quota is spent
QUOTA_ERROR_CODE = "OUT_OF_USAGE_CREDITS"


def is_player_market(market_key: str) -> bool:
    return any(prefix in market_key for prefix in PLAYER_MARKET_PREFIXES)


def is_alternate_market(market_key: str) -> bool:
    return market_key.startswith("alternate_") or market_key.endswith("_alternate")


def alternate_market_key(market_key: str) -> Optional[str]:
    """Alternate-line market for a standard market, if the provider has one."""
    if market_key in ALTERNATE_MARKETS:
        return ALTERNATE_MARKETS[market_key]
    if is_player_market(market_key) and not market_key.endswith("_alternate"):
        return f"{market_key}_alternate"
    return None


def player_markets_for(sport: str) -> list[str]:
    return list(PLAYER_MARKETS.get(sport, ()))
