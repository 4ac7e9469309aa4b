"""
Line matching across bookmakers.

Point-based markets (spreads, totals, props) only compare like for like:
two outcomes share a line when their points agree within POINT_TOLERANCE,
which absorbs float noise on half-point lines.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from ev_odds.constants import alternate_market_key
from ev_odds.models.odds import BookmakerQuote, Market, Outcome

POINT_TOLERANCE = 0.01


def points_match(a: Optional[float], b: Optional[float], tolerance: float = POINT_TOLERANCE) -> bool:
    if a is None or b is None:
        return False
    return abs(a - b) < tolerance


def outcome_matches(
    outcome: Outcome,
    name: str,
    point: Optional[float] = None,
    description: Optional[str] = None,
) -> bool:
    """
    Whether `outcome` is the same selection as (name, point, description).

    Without a target point only the name is compared. A description (player
    name) is compared only when the target carries one.
    """
    if outcome.name != name:
        return False
    if description is not None and outcome.description != description:
        return False
    if point is None:
        return True
    return points_match(outcome.point, point)


def find_outcome(
    market: Market,
    name: str,
    point: Optional[float] = None,
    description: Optional[str] = None,
) -> Optional[Outcome]:
    for outcome in market.outcomes:
        if outcome_matches(outcome, name, point, description):
            return outcome
    return None


class LineQuote(BaseModel):
    """One bookmaker's price at a target line, standard or alternate."""
    bookmaker: str
    point: Optional[float] = None
    price: Optional[float] = None
    is_alternate: bool = False

    @property
    def available(self) -> bool:
        return self.price is not None


def _line_in(market: Optional[Market], target_point: float, selection: Optional[str]) -> Optional[Outcome]:
    if market is None:
        return None
    for outcome in market.outcomes:
        if selection is not None and outcome.name != selection:
            continue
        if points_match(outcome.point, target_point):
            return outcome
    return None


def find_matching_lines(
    target_point: float,
    market: str,
    bookmakers: list[BookmakerQuote],
    selection: Optional[str] = None,
) -> list[LineQuote]:
    """
    Price of `target_point` at each bookmaker.

    The standard market is preferred; the alternate-line market fills in
    when the standard line sits elsewhere. `selection` restricts the match
    to one side (e.g. "Over" for totals).
    """
    alternate_key = alternate_market_key(market)
    lines: list[LineQuote] = []

    for bookmaker in bookmakers:
        outcome = _line_in(bookmaker.market(market), target_point, selection)
        is_alternate = False
        if outcome is None and alternate_key:
            outcome = _line_in(bookmaker.market(alternate_key), target_point, selection)
            is_alternate = outcome is not None

        if outcome is None:
            lines.append(LineQuote(bookmaker=bookmaker.key))
        else:
            lines.append(LineQuote(
                bookmaker=bookmaker.key,
                point=outcome.point,
                price=outcome.price,
                is_alternate=is_alternate,
            ))

    return lines


def best_line(lines: list[LineQuote]) -> Optional[LineQuote]:
    """Highest price among the available lines (American odds order)."""
    available = [line for line in lines if line.available]
    if not available:
        return None
    return max(available, key=lambda line: line.price)  # type: ignore[arg-type, return-value]


class LineComparison(BaseModel):
    """Every bookmaker's price at one target line, plus the best of them."""
    event_id: str
    market: str
    point: float
    selection: Optional[str] = None
    lines: list[LineQuote]
    best: Optional[LineQuote] = None

    @classmethod
    def build(
        cls,
        event_id: str,
        market: str,
        point: float,
        bookmakers: list[BookmakerQuote],
        selection: Optional[str] = None,
    ) -> LineComparison:
        lines = find_matching_lines(point, market, bookmakers, selection)
        return cls(
            event_id=event_id,
            market=market,
            point=point,
            selection=selection,
            lines=lines,
            best=best_line(lines),
        )
