"""
Engine entry points.

Every read is cache-aside: the cache is checked first, the upstream adapter
is called on a miss, and the result is written back under the same key the
read used. Every entry point returns an ApiResponse envelope; upstream
failures become `success=False`, never an exception.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError

from ev_odds.adapters.odds_api import DataSourceMode, OddsAPIAdapter
from ev_odds.cache.store import CacheKeys, CacheStore, CacheTTL
from ev_odds.cache.usage import RequestCounter
from ev_odds.config import Settings, get_settings
from ev_odds.constants import (
    GAME_MARKETS,
    SHARP_BOOKMAKER,
    SPORTS,
    alternate_market_key,
    player_markets_for,
)
from ev_odds.core import kelly
from ev_odds.core.detector import EVDetector
from ev_odds.core.lines import LineComparison
from ev_odds.core.merge import merge_region_odds, tag_region
from ev_odds.errors import OddsAPIError
from ev_odds.models.odds import Event, EventOdds, PlayerProps, Sport
from ev_odds.models.opportunity import ConsensusMethod, EVScanResult, SportScanSummary
from ev_odds.models.response import ApiResponse, DataSource, UsageStats
from ev_odds.observability.logging import scan_context

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_REGIONS = ["us"]

_SPORTS = TypeAdapter(list[Sport])
_EVENTS = TypeAdapter(list[Event])
_EVENT_ODDS_LIST = TypeAdapter(list[EventOdds])
_EVENT_ODDS = TypeAdapter(EventOdds)


class OddsService:
    """
    Cache-aside facade over the odds adapter and the consensus/EV core.

    Holds no per-request state; concurrent calls share the adapter (and its
    rate limiter) and the cache store.
    """

    def __init__(
        self,
        adapter: OddsAPIAdapter,
        cache: CacheStore,
        counter: Optional[RequestCounter] = None,
        ttl: Optional[CacheTTL] = None,
    ) -> None:
        self.adapter = adapter
        self.cache = cache
        self.counter = counter
        self.ttl = ttl or CacheTTL()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> OddsService:
        settings = settings or get_settings()
        cache = CacheStore.from_settings(settings)
        counter = RequestCounter(cache)
        adapter = OddsAPIAdapter.from_settings(settings, usage=counter)
        return cls(adapter, cache, counter)

    async def close(self) -> None:
        await self.adapter.close()
        await self.cache.close()

    async def __aenter__(self) -> OddsService:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def data_source_mode(self) -> DataSourceMode:
        return self.adapter.mode

    def reset_data_source(self) -> None:
        self.adapter.reset_data_source()

    # ── Cache-aside ────────────────────────────────────────────────────────

    async def _read_through(
        self,
        key: str,
        ttl: int,
        schema: TypeAdapter[T],
        fetch: Callable[[], Awaitable[T]],
        force_refresh: bool = False,
    ) -> tuple[T, DataSource]:
        if not force_refresh:
            cached = await self.cache.get(key)
            if cached is not None:
                try:
                    return schema.validate_python(cached), DataSource.CACHE
                except ValidationError:
                    logger.warning("cache_entry_invalid", key=key)

        value = await fetch()
        # Synthetic odds must not outlive a reset
        if self.adapter.degraded:
            logger.debug("cache_write_skipped_degraded", key=key)
        else:
            await self.cache.set(key, schema.dump_python(value, mode="json"), ttl)
        return value, DataSource.API

    # ── Catalog ────────────────────────────────────────────────────────────

    async def get_sports(self) -> ApiResponse[list[Sport]]:
        try:
            sports, source = await self._read_through(
                CacheKeys.SPORTS, self.ttl.sports, _SPORTS, self.adapter.fetch_sports
            )
        except OddsAPIError as e:
            logger.warning("get_sports_failed", error=str(e))
            return ApiResponse.fail(str(e))
        return ApiResponse[list[Sport]].ok(sports, source)

    async def get_events(self, sport: str) -> ApiResponse[list[Event]]:
        try:
            events, source = await self._read_through(
                CacheKeys.events(sport),
                self.ttl.events,
                _EVENTS,
                lambda: self.adapter.fetch_events(sport),
            )
        except OddsAPIError as e:
            logger.warning("get_events_failed", sport=sport, error=str(e))
            return ApiResponse.fail(str(e))
        return ApiResponse[list[Event]].ok(events, source)

    # ── Odds ───────────────────────────────────────────────────────────────

    async def get_odds(
        self,
        sport: str,
        markets: list[str],
        regions: Optional[list[str]] = None,
        bookmakers: Optional[list[str]] = None,
        force_refresh: bool = False,
    ) -> ApiResponse[list[EventOdds]]:
        """Odds for every event in a sport, tagged with their region when only one was asked for."""
        regions = list(regions or DEFAULT_REGIONS)

        async def fetch() -> list[EventOdds]:
            events = await self.adapter.fetch_odds(sport, markets, regions, bookmakers)
            if len(regions) == 1:
                return tag_region(events, regions[0])
            return events

        try:
            events, source = await self._read_through(
                CacheKeys.sport_odds(sport, markets, regions, bookmakers),
                self.ttl.sport_odds,
                _EVENT_ODDS_LIST,
                fetch,
                force_refresh=force_refresh,
            )
        except OddsAPIError as e:
            logger.warning("get_odds_failed", sport=sport, regions=regions, error=str(e))
            return ApiResponse.fail(str(e))
        return ApiResponse[list[EventOdds]].ok(events, source)

    async def get_event_odds(
        self,
        sport: str,
        event_id: str,
        markets: list[str],
        regions: Optional[list[str]] = None,
    ) -> ApiResponse[EventOdds]:
        regions = list(regions or DEFAULT_REGIONS)
        try:
            odds, source = await self._read_through(
                CacheKeys.game_odds(event_id, markets, regions),
                self.ttl.game_odds,
                _EVENT_ODDS,
                lambda: self.adapter.fetch_event_odds(sport, event_id, markets, regions),
            )
        except OddsAPIError as e:
            logger.warning("get_event_odds_failed", event_id=event_id, error=str(e))
            return ApiResponse.fail(str(e))
        return ApiResponse[EventOdds].ok(odds, source)

    async def get_player_props(
        self,
        sport: str,
        event_id: str,
        markets: Optional[list[str]] = None,
        regions: Optional[list[str]] = None,
    ) -> ApiResponse[PlayerProps]:
        markets = list(markets or player_markets_for(sport))
        regions = list(regions or DEFAULT_REGIONS)
        if not markets:
            return ApiResponse.fail(f"no player prop markets known for {sport}")
        try:
            props, source = await self._read_through(
                CacheKeys.player_props(event_id, markets, regions),
                self.ttl.player_props,
                _EVENT_ODDS,
                lambda: self.adapter.fetch_player_props(sport, event_id, markets, regions),
            )
        except OddsAPIError as e:
            logger.warning("get_player_props_failed", event_id=event_id, error=str(e))
            return ApiResponse.fail(str(e))
        return ApiResponse[PlayerProps].ok(props, source)

    # ── EV detection ───────────────────────────────────────────────────────

    async def find_ev_opportunities(
        self,
        sport: str,
        markets: list[str],
        ev_threshold: float = 2.0,
        force_refresh: bool = False,
        include_live: bool = False,
        regions: Optional[list[str]] = None,
        method: ConsensusMethod = ConsensusMethod.WEIGHTED,
        sharp_bookmakers: Optional[list[str]] = None,
    ) -> ApiResponse[EVScanResult]:
        """
        Scan a sport for offers priced better than consensus.

        Regions are fetched concurrently and merged. A region that fails is
        listed in `failed_regions` and the scan continues with the rest; when
        every region fails the result is an empty, uncached scan.
        """
        regions = list(regions or DEFAULT_REGIONS)
        try:
            method = ConsensusMethod(method)
        except ValueError as e:
            return ApiResponse.fail(str(e))
        sharp_bookmakers = list(sharp_bookmakers or [SHARP_BOOKMAKER])
        key = CacheKeys.ev_opportunities(
            sport,
            markets,
            ev_threshold,
            include_live,
            regions,
            method.value,
            sharp_bookmakers if method is ConsensusMethod.SHARP else None,
        )

        if not force_refresh:
            cached = await self.cache.get(key)
            if cached is not None:
                try:
                    result = EVScanResult.model_validate(cached)
                except ValidationError:
                    logger.warning("cache_entry_invalid", key=key)
                else:
                    result.source = DataSource.CACHE
                    return ApiResponse[EVScanResult].ok(result, DataSource.CACHE)

        with scan_context(sport=sport, method=method.value):
            responses = await asyncio.gather(*(
                self.get_odds(sport, markets, [region], force_refresh=force_refresh)
                for region in regions
            ))

            region_results: list[tuple[str, list[EventOdds]]] = []
            failed: list[str] = []
            errors: list[str] = []
            for region, response in zip(regions, responses):
                if response.success and response.data is not None:
                    region_results.append((region, response.data))
                else:
                    failed.append(region)
                    errors.extend(f"{region}: {error}" for error in response.errors)
                    logger.warning("region_fetch_failed", region=region, errors=response.errors)

            detector = EVDetector(
                ev_threshold=ev_threshold,
                include_live=include_live,
                method=method,
                sharp_bookmakers=sharp_bookmakers,
            )
            opportunities = detector.detect(merge_region_odds(region_results), sport, markets)
            result = EVScanResult(opportunities=opportunities, source=DataSource.API, failed_regions=failed)

            # Partial and synthetic scans are returned but not cached
            if not failed and not self.adapter.degraded:
                await self.cache.set(key, result.model_dump(mode="json"), self.ttl.ev_opportunities)

            logger.info(
                "ev_scan_complete",
                markets=markets,
                regions=regions,
                opportunities=len(opportunities),
                failed_regions=failed,
            )
            return ApiResponse[EVScanResult](success=True, data=result, errors=errors, source=DataSource.API)

    async def find_prop_ev_opportunities(
        self,
        sport: str,
        event_id: str,
        markets: Optional[list[str]] = None,
        ev_threshold: float = 2.0,
        regions: Optional[list[str]] = None,
        method: ConsensusMethod = ConsensusMethod.WEIGHTED,
        sharp_bookmakers: Optional[list[str]] = None,
        include_live: bool = False,
    ) -> ApiResponse[EVScanResult]:
        """EV scan over one event's player props."""
        try:
            method = ConsensusMethod(method)
        except ValueError as e:
            return ApiResponse.fail(str(e))
        markets = list(markets or player_markets_for(sport))
        props = await self.get_player_props(sport, event_id, markets, regions)
        if not props.success or props.data is None:
            return ApiResponse.fail(*props.errors)

        event = props.data
        regions = list(regions or DEFAULT_REGIONS)
        if len(regions) == 1:
            event = tag_region([event], regions[0])[0]

        detector = EVDetector(
            ev_threshold=ev_threshold,
            include_live=include_live,
            method=method,
            sharp_bookmakers=sharp_bookmakers,
        )
        opportunities = detector.detect([event], sport, markets)
        source = props.source or DataSource.API
        logger.info("prop_scan_complete", event_id=event_id, opportunities=len(opportunities))
        return ApiResponse[EVScanResult].ok(
            EVScanResult(opportunities=opportunities, source=source),
            source,
        )

    async def scan_all_sports(
        self,
        sports: Optional[list[str]] = None,
        markets: Optional[list[str]] = None,
        ev_threshold: float = 2.0,
        regions: Optional[list[str]] = None,
        method: ConsensusMethod = ConsensusMethod.WEIGHTED,
    ) -> ApiResponse[list[SportScanSummary]]:
        """
        Rescan every sport with a forced refresh, rewarming the EV cache.

        One sport failing does not stop the others; its summary carries the
        errors instead.
        """
        sports = list(sports or SPORTS.values())
        markets = list(markets or GAME_MARKETS)

        responses = await asyncio.gather(*(
            self.find_ev_opportunities(
                sport,
                markets,
                ev_threshold=ev_threshold,
                force_refresh=True,
                regions=regions,
                method=method,
            )
            for sport in sports
        ))

        summaries: list[SportScanSummary] = []
        for sport, response in zip(sports, responses):
            result = response.data
            if not response.success or result is None:
                summaries.append(SportScanSummary(sport=sport, success=False, errors=response.errors))
                continue
            summaries.append(SportScanSummary(
                sport=sport,
                success=True,
                opportunities=len(result.opportunities),
                best_ev=result.opportunities[0].ev if result.opportunities else None,
                failed_regions=result.failed_regions,
                errors=response.errors,
            ))

        logger.info(
            "scan_all_complete",
            sports=len(sports),
            opportunities=sum(s.opportunities for s in summaries),
        )
        return ApiResponse[list[SportScanSummary]].ok(summaries, DataSource.API)

    # ── Lines ──────────────────────────────────────────────────────────────

    async def compare_lines(
        self,
        sport: str,
        event_id: str,
        market: str,
        point: float,
        selection: Optional[str] = None,
        regions: Optional[list[str]] = None,
    ) -> ApiResponse[LineComparison]:
        """Each bookmaker's price at `point`, standard line first, alternate otherwise."""
        markets = [market]
        alternate = alternate_market_key(market)
        if alternate:
            markets.append(alternate)

        odds = await self.get_event_odds(sport, event_id, markets, regions)
        if not odds.success or odds.data is None:
            return ApiResponse.fail(*odds.errors)

        comparison = LineComparison.build(event_id, market, point, odds.data.bookmakers, selection)
        return ApiResponse[LineComparison].ok(comparison, odds.source)

    # ── Sizing & accounting ────────────────────────────────────────────────

    @staticmethod
    def kelly_stake(
        bankroll: float,
        offered_odds: float,
        reference_odds: float,
        fraction: float = kelly.DEFAULT_KELLY_FRACTION,
    ) -> ApiResponse[kelly.KellyStake]:
        try:
            stake = kelly.kelly_stake(bankroll, offered_odds, reference_odds, fraction)
        except ValueError as e:
            return ApiResponse.fail(str(e))
        return ApiResponse[kelly.KellyStake].ok(stake)

    async def get_usage_stats(self) -> ApiResponse[UsageStats]:
        if self.counter is None:
            return ApiResponse[UsageStats].ok(UsageStats())
        return ApiResponse[UsageStats].ok(await self.counter.stats())
