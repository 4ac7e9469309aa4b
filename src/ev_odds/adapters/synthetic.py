"""
Deterministic synthetic odds, served when the upstream quota is exhausted.

Payloads mirror The Odds API JSON shape so they pass through the same
validation as live responses. Every price is derived from a random.Random
seeded on (seed, event, bookmaker, market): the same request always yields
the same odds, while bookmakers disagree enough for consensus and EV
detection to have something to find.
"""

from __future__ import annotations

import math
import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from ev_odds.constants import SPORTS, is_player_market
from ev_odds.core.odds_math import prob_to_american, round_to_standard_american

REGION_BOOKMAKERS: dict[str, list[str]] = {
    "us": ["draftkings", "fanduel", "betmgm", "caesars", "pointsbet"],
    "us2": ["espnbet", "betrivers", "fanatics"],
    "uk": ["williamhill", "betfair_ex_uk", "skybet"],
    "eu": ["pinnacle", "unibet_eu", "betclic"],
    "au": ["sportsbet", "tab", "ladbrokes_au"],
}

BOOKMAKER_TITLES = {
    "draftkings": "DraftKings",
    "fanduel": "FanDuel",
    "betmgm": "BetMGM",
    "caesars": "Caesars",
    "pointsbet": "PointsBet (US)",
    "espnbet": "ESPN BET",
    "betrivers": "BetRivers",
    "fanatics": "Fanatics",
    "williamhill": "William Hill",
    "betfair_ex_uk": "Betfair",
    "skybet": "Sky Bet",
    "pinnacle": "Pinnacle",
    "unibet_eu": "Unibet",
    "betclic": "Betclic",
    "sportsbet": "SportsBet",
    "tab": "TAB",
    "ladbrokes_au": "Ladbrokes",
}

SPORT_CATALOG: dict[str, tuple[str, str, str]] = {
    SPORTS["NBA"]: ("Basketball", "NBA", "US Basketball"),
    SPORTS["NFL"]: ("American Football", "NFL", "US Football"),
    SPORTS["MLB"]: ("Baseball", "MLB", "US Baseball"),
    SPORTS["NHL"]: ("Ice Hockey", "NHL", "US Ice Hockey"),
}

MATCHUPS: dict[str, list[tuple[str, str]]] = {
    SPORTS["NBA"]: [
        ("Los Angeles Lakers", "Golden State Warriors"),
        ("Boston Celtics", "Brooklyn Nets"),
        ("Miami Heat", "Philadelphia 76ers"),
    ],
    SPORTS["NFL"]: [
        ("Kansas City Chiefs", "Buffalo Bills"),
        ("Dallas Cowboys", "Philadelphia Eagles"),
    ],
    SPORTS["MLB"]: [
        ("New York Yankees", "Boston Red Sox"),
        ("Los Angeles Dodgers", "San Francisco Giants"),
    ],
    SPORTS["NHL"]: [
        ("Toronto Maple Leafs", "Montreal Canadiens"),
        ("Boston Bruins", "New York Rangers"),
    ],
}

ROSTERS: dict[str, tuple[str, str]] = {
    "Los Angeles Lakers": ("LeBron James", "Anthony Davis"),
    "Golden State Warriors": ("Stephen Curry", "Draymond Green"),
    "Boston Celtics": ("Jayson Tatum", "Jaylen Brown"),
    "Brooklyn Nets": ("Cam Thomas", "Nic Claxton"),
    "Miami Heat": ("Bam Adebayo", "Tyler Herro"),
    "Philadelphia 76ers": ("Joel Embiid", "Tyrese Maxey"),
    "Kansas City Chiefs": ("Patrick Mahomes", "Travis Kelce"),
    "Buffalo Bills": ("Josh Allen", "James Cook"),
    "Dallas Cowboys": ("Dak Prescott", "CeeDee Lamb"),
    "Philadelphia Eagles": ("Jalen Hurts", "Saquon Barkley"),
    "New York Yankees": ("Aaron Judge", "Giancarlo Stanton"),
    "Boston Red Sox": ("Rafael Devers", "Jarren Duran"),
    "Los Angeles Dodgers": ("Shohei Ohtani", "Mookie Betts"),
    "San Francisco Giants": ("Matt Chapman", "Heliot Ramos"),
    "Toronto Maple Leafs": ("Auston Matthews", "Mitch Marner"),
    "Montreal Canadiens": ("Nick Suzuki", "Cole Caufield"),
    "Boston Bruins": ("David Pastrnak", "Brad Marchand"),
    "New York Rangers": ("Artemi Panarin", "Mika Zibanejad"),
}

TOTAL_BASELINES = {
    SPORTS["NBA"]: 221.5,
    SPORTS["NFL"]: 45.5,
    SPORTS["MLB"]: 8.5,
    SPORTS["NHL"]: 6.5,
}

PROP_LINE_RANGES = {
    "player_points": (12, 30),
    "player_rebounds": (3, 12),
    "player_assists": (2, 10),
    "player_pass_yds": (180, 300),
    "player_rush_yds": (35, 110),
    "player_recv_yds": (30, 95),
}

# Split of the margin across two sides, and per-book price noise
_HALF_VIG = 0.0225
_NOISE = 0.02


def _iso(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _quote(prob: float) -> int:
    prob = min(max(prob, 0.05), 0.95)
    return round_to_standard_american(prob_to_american(prob))


class SyntheticOddsSource:
    """Generates provider-shaped payloads without network access."""

    def __init__(self, seed: str = "ev-odds", now: Optional[datetime] = None) -> None:
        self.seed = seed
        self._fixed_now = now

    def _now(self) -> datetime:
        if self._fixed_now is not None:
            return self._fixed_now
        return datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)

    def _rng(self, *parts: str) -> random.Random:
        return random.Random(":".join((self.seed, *parts)))

    # ── Catalog ────────────────────────────────────────────────────────────

    def sports(self) -> list[dict]:
        return [
            {
                "key": key,
                "group": group,
                "title": title,
                "description": description,
                "active": True,
                "has_outrights": False,
            }
            for key, (group, title, description) in SPORT_CATALOG.items()
        ]

    def events(self, sport: str) -> list[dict]:
        title = SPORT_CATALOG.get(sport, ("", sport, ""))[1]
        now = self._now()
        short = sport.split("_")[-1]
        return [
            {
                "id": f"synthetic-{short}-{i + 1}",
                "sport_key": sport,
                "sport_title": title,
                "commence_time": _iso(now + timedelta(days=1 + i % 2)),
                "home_team": home,
                "away_team": away,
            }
            for i, (home, away) in enumerate(MATCHUPS.get(sport, []))
        ]

    # ── Odds ───────────────────────────────────────────────────────────────

    def odds(
        self,
        sport: str,
        markets: list[str],
        regions: list[str],
        bookmakers: Optional[list[str]] = None,
    ) -> list[dict]:
        return [self._priced(event, markets, regions, bookmakers) for event in self.events(sport)]

    def event_odds(self, sport: str, event_id: str, markets: list[str], regions: list[str]) -> Optional[dict]:
        for event in self.events(sport):
            if event["id"] == event_id:
                return self._priced(event, markets, regions, None)
        return None

    def _priced(
        self,
        event: dict,
        markets: list[str],
        regions: list[str],
        only: Optional[list[str]],
    ) -> dict:
        keys: list[str] = []
        for region in regions:
            for key in REGION_BOOKMAKERS.get(region, []):
                if key not in keys and (not only or key in only):
                    keys.append(key)

        stamp = _iso(self._now())
        books = []
        for key in keys:
            book_markets = []
            for market in markets:
                outcomes = self._outcomes(event, key, market)
                if outcomes:
                    book_markets.append({"key": market, "last_update": stamp, "outcomes": outcomes})
            books.append({
                "key": key,
                "title": BOOKMAKER_TITLES.get(key, key.title()),
                "last_update": stamp,
                "markets": book_markets,
            })
        return {**event, "bookmakers": books}

    def _fair_home_prob(self, event: dict) -> float:
        return self._rng(event["id"]).uniform(0.3, 0.7)

    def _two_way(self, rng: random.Random, prob: float) -> tuple[int, int]:
        first = prob + _HALF_VIG + rng.uniform(-_NOISE, _NOISE)
        second = (1 - prob) + _HALF_VIG + rng.uniform(-_NOISE, _NOISE)
        return _quote(first), _quote(second)

    def _outcomes(self, event: dict, bookmaker: str, market: str) -> list[dict]:
        rng = self._rng(event["id"], bookmaker, market)
        home, away = event["home_team"], event["away_team"]
        p_home = self._fair_home_prob(event)

        if market == "h2h":
            home_price, away_price = self._two_way(rng, p_home)
            return [
                {"name": home, "price": home_price},
                {"name": away, "price": away_price},
            ]

        if market in ("spreads", "alternate_spreads"):
            spread = round((0.5 - p_home) * 20 * 2) / 2 or -0.5
            shifts = [0.0] if market == "spreads" else [-2.0, -1.0, 1.0, 2.0]
            outcomes = []
            for shift in shifts:
                line = spread + shift
                # Each extra point on the home line moves the cover chance ~3%
                home_price, away_price = self._two_way(rng, 0.5 + 0.03 * shift)
                outcomes.append({"name": home, "price": home_price, "point": line})
                outcomes.append({"name": away, "price": away_price, "point": -line})
            return outcomes

        if market in ("totals", "alternate_totals"):
            baseline = TOTAL_BASELINES.get(event["sport_key"], 50.5)
            total = baseline + self._rng(event["id"], "total").randint(-3, 3)
            shifts = [0.0] if market == "totals" else [-2.0, -1.0, 1.0, 2.0]
            outcomes = []
            for shift in shifts:
                over_price, under_price = self._two_way(rng, 0.5 - 0.03 * shift)
                outcomes.append({"name": "Over", "price": over_price, "point": total + shift})
                outcomes.append({"name": "Under", "price": under_price, "point": total + shift})
            return outcomes

        if is_player_market(market):
            return self._prop_outcomes(event, bookmaker, market)

        return []

    def _prop_outcomes(self, event: dict, bookmaker: str, market: str) -> list[dict]:
        base_market = market.removesuffix("_alternate")
        low, high = PROP_LINE_RANGES.get(base_market, (0, 6))
        outcomes = []
        for team in (event["home_team"], event["away_team"]):
            for player in ROSTERS.get(team, ()):
                line = math.floor(self._rng(event["id"], player, base_market).uniform(low, high)) + 0.5
                over_price, under_price = self._two_way(self._rng(event["id"], bookmaker, market, player), 0.5)
                outcomes.append({"name": "Over", "description": player, "price": over_price, "point": line})
                outcomes.append({"name": "Under", "description": player, "price": under_price, "point": line})
        return outcomes
