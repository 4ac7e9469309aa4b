"""Sportsbook odds models, validated at the provider boundary."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator

from ev_odds.constants import is_alternate_market


class Sport(BaseModel):
    """A sport the provider carries odds for."""
    key: str
    group: str = ""
    title: str = ""
    description: str = ""
    active: bool = True
    has_outrights: bool = False


class Scores(BaseModel):
    """Live score attached to an in-progress event."""
    home_score: Optional[float] = None
    away_score: Optional[float] = None

    @property
    def has_score(self) -> bool:
        return self.home_score is not None or self.away_score is not None


class Event(BaseModel):
    """
    A scheduled game.

    Identity is the provider's event id; snapshots are re-fetched, never mutated.
    """
    id: str
    sport_key: str
    sport_title: str = ""
    commence_time: datetime
    home_team: str = ""
    away_team: str = ""
    completed: bool = False
    scores: Optional[Scores] = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_scores(cls, data: Any) -> Any:
        # The scores endpoint returns [{"name": team, "score": "102"}, ...]
        if not isinstance(data, dict) or not isinstance(data.get("scores"), list):
            return data
        data = dict(data)
        by_team = {s.get("name"): s.get("score") for s in data["scores"] if isinstance(s, dict)}
        data["scores"] = {
            "home_score": by_team.get(data.get("home_team")),
            "away_score": by_team.get(data.get("away_team")),
        }
        return data

    @property
    def name(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """Started and not completed, or carrying score data."""
        now = now or datetime.now(timezone.utc)
        commence = self.commence_time
        if commence.tzinfo is None:
            commence = commence.replace(tzinfo=timezone.utc)
        if commence < now:
            return not self.completed
        return self.scores is not None and self.scores.has_score


class Outcome(BaseModel):
    """
    One priced selection within a market.

    `description` carries the player name for player props, where several
    players share the same Over/Under outcome names.
    """
    name: str
    price: float = Field(description="American odds, e.g. -110 or +150")
    point: Optional[float] = None
    description: Optional[str] = None


class Market(BaseModel):
    """A market (h2h, spreads, totals, player prop) offered by one bookmaker."""
    key: str
    last_update: Optional[datetime] = None
    outcomes: list[Outcome] = Field(default_factory=list)
    is_alternate: bool = False

    @model_validator(mode="after")
    def _flag_alternate(self) -> Market:
        if is_alternate_market(self.key):
            self.is_alternate = True
        return self

    @property
    def identity(self) -> tuple[str, bool]:
        return (self.key, self.is_alternate)


class BookmakerQuote(BaseModel):
    """
    A bookmaker's markets for one event.

    `region` is the region the quote was retrieved from; after a merge it is
    the last contributing region and `regions` lists all of them.
    """
    key: str
    title: str = ""
    last_update: Optional[datetime] = None
    markets: list[Market] = Field(default_factory=list)
    region: Optional[str] = None
    regions: list[str] = Field(default_factory=list)

    def market(self, key: str) -> Optional[Market]:
        for market in self.markets:
            if market.key == key:
                return market
        return None

    def has_market(self, key: str) -> bool:
        return self.market(key) is not None


class EventOdds(Event):
    """An event together with every bookmaker's quotes."""
    bookmakers: list[BookmakerQuote] = Field(default_factory=list)

    def bookmakers_with_market(self, key: str) -> list[BookmakerQuote]:
        return [b for b in self.bookmakers if b.has_market(key)]


# Player props share the event-odds shape
PlayerProps = EventOdds
