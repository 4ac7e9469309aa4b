"""
EV detector – compares every bookmaker offer to the consensus price.

For each event × market × outcome × bookmaker the consensus is computed
without that bookmaker, converted to a win probability, and applied to the
offered decimal odds. Offers at or above the EV threshold become ranked
EVOpportunity records.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog

from ev_odds.core.consensus import ConsensusEngine
from ev_odds.core.odds_math import expected_value_pct
from ev_odds.models.odds import EventOdds, Outcome
from ev_odds.models.opportunity import ConsensusMethod, EVOpportunity

logger = structlog.get_logger()

# A consensus needs somebody other than the bookmaker being judged
MIN_BOOKMAKERS_PER_MARKET = 2


def _format_point(point: float) -> str:
    return f"{point:g}"


def selection_label(outcome: Outcome) -> str:
    """Human-readable selection, e.g. "Over 221.5" or "LeBron James Over 25.5"."""
    label = outcome.name
    if outcome.point is not None:
        label = f"{label} {_format_point(outcome.point)}"
    if outcome.description:
        label = f"{outcome.description} {label}"
    return label


def opportunity_id(event_id: str, market: str, outcome: Outcome, bookmaker: str) -> str:
    parts = [event_id, market]
    if outcome.description:
        parts.append(outcome.description)
    parts += [outcome.name, _format_point(outcome.point or 0), bookmaker]
    return "-".join(parts)


class EVDetector:
    """
    Finds offers priced better than consensus.

    Stateless apart from its configuration; one detector may serve many
    concurrent scans.
    """

    def __init__(
        self,
        ev_threshold: float = 2.0,
        include_live: bool = False,
        method: ConsensusMethod = ConsensusMethod.WEIGHTED,
        sharp_bookmakers: Optional[list[str]] = None,
        min_bookmakers: int = MIN_BOOKMAKERS_PER_MARKET,
    ) -> None:
        self.ev_threshold = ev_threshold
        self.include_live = include_live
        self.method = method
        self.sharp_bookmakers = sharp_bookmakers
        self.min_bookmakers = min_bookmakers

    def _engine(self, sport: str) -> ConsensusEngine:
        if self.sharp_bookmakers:
            return ConsensusEngine(sport, sharp_bookmakers=self.sharp_bookmakers)
        return ConsensusEngine(sport)

    def detect(
        self,
        events: list[EventOdds],
        sport: str,
        markets: list[str],
        now: Optional[datetime] = None,
    ) -> list[EVOpportunity]:
        """
        Scan events for opportunities.

        Args:
            events: Merged odds for one sport
            sport: Sport key (selects the weight table)
            markets: Market keys to evaluate
            now: Reference time for liveness (defaults to current UTC)

        Returns:
            Opportunities sorted by EV, highest first
        """
        now = now or datetime.now(timezone.utc)
        engine = self._engine(sport)
        opportunities: list[EVOpportunity] = []

        for event in events:
            if not any(len(event.bookmakers_with_market(m)) >= self.min_bookmakers for m in markets):
                continue

            live = event.is_live(now)
            if live and not self.include_live:
                logger.debug("skipping_live_event", event_id=event.id, event_name=event.name)
                continue

            for market_key in markets:
                opportunities.extend(self._scan_market(engine, event, market_key, live, now))

        opportunities.sort(key=lambda o: o.ev, reverse=True)
        return opportunities

    def _scan_market(
        self,
        engine: ConsensusEngine,
        event: EventOdds,
        market_key: str,
        live: bool,
        now: datetime,
    ) -> list[EVOpportunity]:
        offering = event.bookmakers_with_market(market_key)
        if len(offering) < self.min_bookmakers:
            return []

        found: list[EVOpportunity] = []
        for bookmaker in offering:
            # In sharp mode the sharp books are the reference, not candidates
            if self.method is ConsensusMethod.SHARP and engine.is_sharp(bookmaker.key):
                continue

            market = bookmaker.market(market_key)
            if market is None:
                continue

            for outcome in market.outcomes:
                consensus = engine.compute(
                    self.method,
                    offering,
                    market_key,
                    outcome.name,
                    point=outcome.point,
                    description=outcome.description,
                    exclude=bookmaker.key,
                )
                if not consensus.found:
                    continue

                ev = expected_value_pct(outcome.price, consensus.price)
                if ev < self.ev_threshold:
                    continue

                found.append(EVOpportunity(
                    id=opportunity_id(event.id, market_key, outcome, bookmaker.key),
                    event_id=event.id,
                    event_name=event.name,
                    market=market_key,
                    selection=selection_label(outcome),
                    player_name=outcome.description,
                    point=outcome.point,
                    bookmaker=bookmaker.key,
                    odds=outcome.price,
                    consensus_odds=consensus.price,
                    ev=ev,
                    timestamp=now,
                    commence_time=event.commence_time,
                    is_live=live,
                    region=bookmaker.region or "unknown",
                    comparison_method=self.method,
                    contributors=consensus.contributors,
                ))

        return found
