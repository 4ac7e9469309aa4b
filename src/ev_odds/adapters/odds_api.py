"""
The Odds API adapter.

Fetches events, odds and player props from The Odds API aggregator.
https://the-odds-api.com/

Calls through one adapter instance are serialized and spaced at least
MIN_REQUEST_INTERVAL apart. When the provider reports the monthly quota is
spent the adapter switches to DEGRADED mode for good (until reset): a flag
file is written, and every later call is answered by the synthetic source
without touching the network.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ev_odds.adapters.synthetic import SyntheticOddsSource
from ev_odds.cache.usage import RequestCounter
from ev_odds.config import Settings
from ev_odds.constants import QUOTA_ERROR_CODE
from ev_odds.errors import OddsAPIError, QuotaExhaustedError
from ev_odds.models.odds import Event, EventOdds, PlayerProps, Sport

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

DEFAULT_BASE_URL = "https://api.the-odds-api.com/v4"

# Seconds between outbound calls, shared by every caller of one adapter
MIN_REQUEST_INTERVAL = 1.0


class DataSourceMode(str, Enum):
    """Where the adapter gets its data. LIVE -> DEGRADED is one-way until reset."""
    LIVE = "live"
    DEGRADED = "degraded"


def _parse_list(model: type[ModelT], payload: Any, kind: str) -> list[ModelT]:
    """Validate a list payload item by item, skipping malformed entries."""
    if not isinstance(payload, list):
        raise OddsAPIError(f"expected a list of {kind}, got {type(payload).__name__}")
    items: list[ModelT] = []
    for raw in payload:
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "odds_payload_item_skipped",
                kind=kind,
                item_id=raw.get("id") if isinstance(raw, dict) else None,
                errors=e.error_count(),
            )
    return items


def _header_int(resp: httpx.Response, name: str) -> Optional[int]:
    value = resp.headers.get(name)
    if value is None:
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


class OddsAPIAdapter:
    """
    The Odds API adapter for fetching sportsbook odds.

    Read-only, no execution capabilities.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        min_request_interval: float = MIN_REQUEST_INTERVAL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        usage: Optional[RequestCounter] = None,
        flag_path: Optional[Path] = None,
        mode: Optional[DataSourceMode] = None,
        synthetic: Optional[SyntheticOddsSource] = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._min_delay = min_request_interval
        self._transport = transport
        self._usage = usage
        self._flag_path = flag_path
        self._synthetic = synthetic or SyntheticOddsSource()

        self._client: Optional[httpx.AsyncClient] = None
        self._lock = asyncio.Lock()
        self._last_request_time = 0.0

        if mode is None:
            flagged = flag_path is not None and flag_path.exists()
            mode = DataSourceMode.DEGRADED if flagged else DataSourceMode.LIVE
        self._mode = mode

        self.requests_remaining: Optional[int] = None
        self.requests_used: Optional[int] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        usage: Optional[RequestCounter] = None,
        **kwargs: Any,
    ) -> OddsAPIAdapter:
        """Build from settings; without an API key the adapter starts DEGRADED."""
        if not settings.odds_api_configured:
            kwargs.setdefault("mode", DataSourceMode.DEGRADED)
        return cls(
            api_key=settings.odds_api_key,
            base_url=settings.odds_api_base_url,
            timeout=settings.odds_api_timeout_seconds,
            usage=usage,
            flag_path=settings.fallback_flag_path,
            **kwargs,
        )

    # ── Connection ─────────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Initialize connection."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout, connect=10.0),
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> OddsAPIAdapter:
        await self.connect()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # ── Data source mode ───────────────────────────────────────────────────

    @property
    def mode(self) -> DataSourceMode:
        return self._mode

    @property
    def degraded(self) -> bool:
        return self._mode is DataSourceMode.DEGRADED

    def _degrade(self) -> None:
        if self._mode is DataSourceMode.DEGRADED:
            return
        self._mode = DataSourceMode.DEGRADED
        logger.warning("odds_api_quota_exhausted", fallback="synthetic")
        if self._flag_path is None:
            return
        try:
            self._flag_path.write_text(datetime.now(timezone.utc).isoformat())
        except OSError as e:
            logger.warning("fallback_flag_write_failed", path=str(self._flag_path), error=str(e))

    def reset_data_source(self) -> None:
        """Return to LIVE mode and clear the durable fallback flag."""
        self._mode = DataSourceMode.LIVE
        if self._flag_path is not None:
            self._flag_path.unlink(missing_ok=True)
        logger.info("odds_api_data_source_reset")

    # ── HTTP ───────────────────────────────────────────────────────────────

    async def _throttle(self) -> None:
        elapsed = time.monotonic() - self._last_request_time
        if elapsed < self._min_delay:
            await asyncio.sleep(self._min_delay - elapsed)
        self._last_request_time = time.monotonic()

    @retry(
        retry=retry_if_exception_type(httpx.ConnectError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def _send(self, path: str, params: dict) -> httpx.Response:
        assert self._client is not None
        return await self._client.get(path, params=params)

    def _raise_for_status(self, path: str, resp: httpx.Response) -> None:
        if resp.is_success:
            return
        body = resp.text
        if resp.status_code == 401 and QUOTA_ERROR_CODE in body:
            raise QuotaExhaustedError(body, resp.status_code)
        raise OddsAPIError(body or resp.reason_phrase or path, resp.status_code)

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        await self.connect()

        query = dict(params or {})
        query["apiKey"] = self._api_key

        # Held across the wait and the call so concurrent callers queue
        async with self._lock:
            await self._throttle()
            try:
                resp = await self._send(path, query)
            except httpx.HTTPError as e:
                raise OddsAPIError(f"request to {path} failed: {e}") from e

        self._raise_for_status(path, resp)

        self.requests_remaining = _header_int(resp, "x-requests-remaining")
        self.requests_used = _header_int(resp, "x-requests-used")
        logger.debug(
            "odds_api_request",
            path=path,
            remaining=self.requests_remaining,
            used=self.requests_used,
        )
        if self._usage is not None:
            await self._usage.record_request()

        try:
            return resp.json()
        except ValueError as e:
            raise OddsAPIError(f"invalid JSON from {path}", resp.status_code) from e

    async def _fetch(self, path: str, params: Optional[dict], fallback: Callable[[], Any]) -> Any:
        """Live request, or the synthetic equivalent once quota is exhausted."""
        if self._mode is DataSourceMode.LIVE:
            try:
                return await self._get(path, params)
            except QuotaExhaustedError:
                self._degrade()
        return fallback()

    # ── Endpoints ──────────────────────────────────────────────────────────

    async def fetch_sports(self) -> list[Sport]:
        """List in-season sports."""
        payload = await self._fetch("/sports", None, self._synthetic.sports)
        return _parse_list(Sport, payload, "sports")

    async def fetch_events(self, sport: str) -> list[Event]:
        """
        List upcoming events for a sport.

        Args:
            sport: Sport key (e.g., "basketball_nba")
        """
        payload = await self._fetch(
            f"/sports/{sport}/events",
            {"dateFormat": "iso"},
            lambda: self._synthetic.events(sport),
        )
        return _parse_list(Event, payload, "events")

    async def fetch_odds(
        self,
        sport: str,
        markets: list[str],
        regions: list[str],
        bookmakers: Optional[list[str]] = None,
    ) -> list[EventOdds]:
        """
        Get odds for all events in a sport.

        Args:
            sport: Sport key
            markets: Market keys (h2h, spreads, totals, ...)
            regions: Region codes (us, us2, uk, eu, au)
            bookmakers: Optional bookmaker keys; overrides regions upstream
        """
        params = {
            "markets": ",".join(markets),
            "regions": ",".join(regions),
            "dateFormat": "iso",
            "oddsFormat": "american",
        }
        if bookmakers:
            params["bookmakers"] = ",".join(bookmakers)

        payload = await self._fetch(
            f"/sports/{sport}/odds",
            params,
            lambda: self._synthetic.odds(sport, markets, regions, bookmakers),
        )
        return _parse_list(EventOdds, payload, "event odds")

    async def fetch_event_odds(
        self,
        sport: str,
        event_id: str,
        markets: list[str],
        regions: list[str],
    ) -> EventOdds:
        """Odds for a single event, including markets only served per event."""
        params = {
            "markets": ",".join(markets),
            "regions": ",".join(regions),
            "dateFormat": "iso",
            "oddsFormat": "american",
        }
        payload = await self._fetch(
            f"/sports/{sport}/events/{event_id}/odds",
            params,
            lambda: self._synthetic.event_odds(sport, event_id, markets, regions),
        )
        if payload is None:
            raise OddsAPIError(f"event {event_id} not found", 404)
        try:
            return EventOdds.model_validate(payload)
        except ValidationError as e:
            raise OddsAPIError(f"malformed odds payload for event {event_id}") from e

    async def fetch_player_props(
        self,
        sport: str,
        event_id: str,
        markets: list[str],
        regions: list[str],
    ) -> PlayerProps:
        """Player prop markets for one event."""
        return await self.fetch_event_odds(sport, event_id, markets, regions)

    async def fetch_player_props_for_events(
        self,
        sport: str,
        event_ids: list[str],
        markets: list[str],
        regions: list[str],
    ) -> tuple[list[PlayerProps], list[str]]:
        """
        Player props for several events, fetched one after another.

        Returns:
            (props for the events that succeeded, one error message per failure)
        """
        props: list[PlayerProps] = []
        errors: list[str] = []
        for event_id in event_ids:
            try:
                props.append(await self.fetch_player_props(sport, event_id, markets, regions))
            except OddsAPIError as e:
                logger.warning("player_props_fetch_failed", event_id=event_id, error=str(e))
                errors.append(f"{event_id}: {e}")
        return props, errors
