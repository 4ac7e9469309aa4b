"""Builders and in-memory fakes shared by the test modules."""

import fnmatch
from datetime import datetime, timedelta, timezone
from typing import Optional

from redis.exceptions import ConnectionError as RedisConnectionError

from ev_odds.models.odds import BookmakerQuote, EventOdds, Market, Outcome

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for TTL checks."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """In-memory stand-in for the redis.asyncio calls the cache store makes."""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock or FakeClock()
        self.down = False
        self._data: dict[str, tuple[str, Optional[float]]] = {}

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("store unavailable")

    def _live(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self.clock.now >= expires_at:
            del self._data[key]
            return None
        return value

    def ttl(self, key: str) -> Optional[float]:
        """Seconds left before `key` expires; None when it never expires or is missing."""
        if self._live(key) is None:
            return None
        expires_at = self._data[key][1]
        return None if expires_at is None else expires_at - self.clock.now

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self._live(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._check()
        self._data[key] = (value, self.clock.now + ex if ex else None)
        return True

    async def incr(self, key: str) -> int:
        self._check()
        current = self._live(key)
        expires_at = self._data[key][1] if current is not None else None
        count = int(current or 0) + 1
        self._data[key] = (str(count), expires_at)
        return count

    async def expire(self, key: str, seconds: int) -> bool:
        self._check()
        value = self._live(key)
        if value is None:
            return False
        self._data[key] = (value, self.clock.now + seconds)
        return True

    async def keys(self, pattern: str = "*") -> list[str]:
        self._check()
        return [k for k in list(self._data) if self._live(k) is not None and fnmatch.fnmatchcase(k, pattern)]

    async def aclose(self) -> None:
        pass


def make_bookmaker(
    key: str,
    markets: dict[str, list[tuple]],
    last_update: Optional[datetime] = None,
    region: Optional[str] = None,
) -> BookmakerQuote:
    """
    Build a bookmaker quote.

    `markets` maps a market key to outcomes given as (name, price),
    (name, price, point) or (name, price, point, description).
    """
    built = []
    for market_key, outcomes in markets.items():
        built.append(Market(
            key=market_key,
            last_update=last_update,
            outcomes=[
                Outcome(
                    name=o[0],
                    price=o[1],
                    point=o[2] if len(o) > 2 else None,
                    description=o[3] if len(o) > 3 else None,
                )
                for o in outcomes
            ],
        ))
    return BookmakerQuote(
        key=key,
        title=key.title(),
        last_update=last_update,
        markets=built,
        region=region,
        regions=[region] if region else [],
    )


def make_event(
    event_id: str = "evt-1",
    bookmakers: Optional[list[BookmakerQuote]] = None,
    commence_time: Optional[datetime] = None,
    completed: bool = False,
    sport: str = "basketball_nba",
    home: str = "Los Angeles Lakers",
    away: str = "Golden State Warriors",
    scores: Optional[list[dict]] = None,
) -> EventOdds:
    data = {
        "id": event_id,
        "sport_key": sport,
        "sport_title": "NBA",
        "commence_time": commence_time or NOW + timedelta(days=1),
        "home_team": home,
        "away_team": away,
        "completed": completed,
        "bookmakers": bookmakers or [],
    }
    if scores is not None:
        data["scores"] = scores
    return EventOdds.model_validate(data)


def odds_payload(
    event_id: str,
    bookmakers: dict[str, dict[str, list[tuple]]],
    commence_time: str = "2026-10-17T00:00:00Z",
    sport: str = "basketball_nba",
    home: str = "Los Angeles Lakers",
    away: str = "Golden State Warriors",
) -> dict:
    """Raw provider JSON for one event, in the shape The Odds API returns."""
    return {
        "id": event_id,
        "sport_key": sport,
        "sport_title": "NBA",
        "commence_time": commence_time,
        "home_team": home,
        "away_team": away,
        "bookmakers": [
            {
                "key": key,
                "title": key.title(),
                "last_update": "2026-10-16T11:55:00Z",
                "markets": [
                    {
                        "key": market_key,
                        "last_update": "2026-10-16T11:55:00Z",
                        "outcomes": [
                            {
                                "name": o[0],
                                "price": o[1],
                                **({"point": o[2]} if len(o) > 2 else {}),
                                **({"description": o[3]} if len(o) > 3 else {}),
                            }
                            for o in outcomes
                        ],
                    }
                    for market_key, outcomes in markets.items()
                ],
            }
            for key, markets in bookmakers.items()
        ],
    }


