"""
Consensus engine – reference ("true") prices from many bookmakers.

Three interchangeable strategies:
- simple:   median of every other bookmaker's price
- sharp:    the designated sharp book verbatim, else the mean of the
            caller's sharp books, else simple
- weighted: weighted mean using the static weight tables, quantized onto a
            quotable American price

Every strategy returns a ConsensusResult; a price of NO_CONSENSUS means there
was not enough data, which callers skip rather than treat as an error.
"""

from __future__ import annotations

import statistics
from typing import Callable, Optional

import structlog

from ev_odds.constants import SHARP_BOOKMAKER
from ev_odds.core.lines import find_outcome
from ev_odds.core.odds_math import round_to_standard_american
from ev_odds.core.weights import get_bookmaker_weight
from ev_odds.models.odds import BookmakerQuote
from ev_odds.models.opportunity import ConsensusMethod, ConsensusResult

logger = structlog.get_logger()

WeightLookup = Callable[[str, str, str], float]


class ConsensusEngine:
    """
    Computes consensus prices for one sport.

    All methods take the bookmakers offering the market, the target outcome
    (name, optional point, optional player description) and the bookmaker
    under evaluation, whose own price never contributes.
    """

    def __init__(
        self,
        sport: str,
        sharp_bookmaker: str = SHARP_BOOKMAKER,
        sharp_bookmakers: Optional[list[str]] = None,
        weight_lookup: WeightLookup = get_bookmaker_weight,
        missing_sharp_multiplier: float = 1.5,
        min_weighted_bookmakers: int = 2,
    ) -> None:
        self.sport = sport
        self.sharp_bookmaker = sharp_bookmaker.lower()
        self.sharp_bookmakers = [b.lower() for b in (sharp_bookmakers or [sharp_bookmaker])]
        self._weight_lookup = weight_lookup
        self.missing_sharp_multiplier = missing_sharp_multiplier
        self.min_weighted_bookmakers = min_weighted_bookmakers

    def is_sharp(self, bookmaker_key: str) -> bool:
        return bookmaker_key.lower() in self.sharp_bookmakers

    def _prices(
        self,
        bookmakers: list[BookmakerQuote],
        market_key: str,
        name: str,
        point: Optional[float],
        description: Optional[str],
        exclude: Optional[str],
    ) -> list[tuple[str, float]]:
        prices: list[tuple[str, float]] = []
        for bookmaker in bookmakers:
            if exclude is not None and bookmaker.key == exclude:
                continue
            market = bookmaker.market(market_key)
            if market is None:
                continue
            outcome = find_outcome(market, name, point, description)
            if outcome is not None:
                prices.append((bookmaker.key, outcome.price))
        return prices

    # ── Strategies ─────────────────────────────────────────────────────────

    def simple(
        self,
        bookmakers: list[BookmakerQuote],
        market_key: str,
        name: str,
        point: Optional[float] = None,
        description: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> ConsensusResult:
        """Median price; the mean of the middle two for an even count."""
        prices = self._prices(bookmakers, market_key, name, point, description, exclude)
        if not prices:
            return ConsensusResult.none(ConsensusMethod.SIMPLE)

        return ConsensusResult(
            price=statistics.median(price for _, price in prices),
            method=ConsensusMethod.SIMPLE,
            contributors={key: 1.0 for key, _ in prices},
        )

    def sharp(
        self,
        bookmakers: list[BookmakerQuote],
        market_key: str,
        name: str,
        point: Optional[float] = None,
        description: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> ConsensusResult:
        """Sharp-book anchor, falling back to the simple median."""
        prices = self._prices(bookmakers, market_key, name, point, description, exclude)

        for key, price in prices:
            if key.lower() == self.sharp_bookmaker:
                return ConsensusResult(
                    price=price,
                    method=ConsensusMethod.SHARP,
                    contributors={key: 1.0},
                )

        sharp_prices = [(key, price) for key, price in prices if self.is_sharp(key)]
        if sharp_prices:
            return ConsensusResult(
                price=sum(price for _, price in sharp_prices) / len(sharp_prices),
                method=ConsensusMethod.SHARP,
                contributors={key: 1.0 for key, _ in sharp_prices},
            )

        return self.simple(bookmakers, market_key, name, point, description, exclude)

    def weighted(
        self,
        bookmakers: list[BookmakerQuote],
        market_key: str,
        name: str,
        point: Optional[float] = None,
        description: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> ConsensusResult:
        """
        Weighted mean of the other bookmakers' prices.

        Without the sharp reference book every weight is scaled by
        `missing_sharp_multiplier`. Requires `min_weighted_bookmakers`
        contributors and rounds onto a standard American price.
        """
        available = [b.key for b in bookmakers if exclude is None or b.key != exclude]
        if len(available) < self.min_weighted_bookmakers:
            logger.debug(
                "consensus_insufficient_bookmakers",
                sport=self.sport,
                market=market_key,
                available=available,
            )
            return ConsensusResult.none(ConsensusMethod.WEIGHTED)

        has_sharp = any(key.lower() == self.sharp_bookmaker for key in available)
        multiplier = 1.0 if has_sharp else self.missing_sharp_multiplier

        weighted: dict[str, tuple[float, float]] = {}
        for key, price in self._prices(bookmakers, market_key, name, point, description, exclude):
            weight = self._weight_lookup(key, self.sport, market_key) * multiplier
            weighted[key] = (price, weight)

        if len(weighted) < self.min_weighted_bookmakers:
            logger.debug(
                "consensus_insufficient_prices",
                sport=self.sport,
                market=market_key,
                outcome=name,
                point=point,
                contributors=len(weighted),
            )
            return ConsensusResult.none(ConsensusMethod.WEIGHTED)

        total_weight = sum(weight for _, weight in weighted.values())
        raw = sum(price * weight for price, weight in weighted.values()) / total_weight
        rounded = round_to_standard_american(raw)

        logger.debug(
            "consensus_weighted",
            sport=self.sport,
            market=market_key,
            outcome=name,
            point=point,
            raw=round(raw, 2),
            rounded=rounded,
        )
        return ConsensusResult(
            price=rounded,
            method=ConsensusMethod.WEIGHTED,
            contributors={key: weight for key, (_, weight) in weighted.items()},
        )

    def compute(
        self,
        method: ConsensusMethod,
        bookmakers: list[BookmakerQuote],
        market_key: str,
        name: str,
        point: Optional[float] = None,
        description: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> ConsensusResult:
        """Dispatch to the strategy named by `method`."""
        if method is ConsensusMethod.SHARP:
            return self.sharp(bookmakers, market_key, name, point, description, exclude)
        if method is ConsensusMethod.WEIGHTED:
            return self.weighted(bookmakers, market_key, name, point, description, exclude)
        return self.simple(bookmakers, market_key, name, point, description, exclude)
