"""Tests for The Odds API adapter."""

import asyncio
import time

import httpx
import pytest
from tenacity import wait_none

from builders import odds_payload
from ev_odds.adapters.odds_api import DataSourceMode, OddsAPIAdapter
from ev_odds.adapters.synthetic import SyntheticOddsSource
from ev_odds.cache.usage import RequestCounter
from ev_odds.errors import OddsAPIError, QuotaExhaustedError

NBA = "basketball_nba"
QUOTA_BODY = '{"message": "Usage quota has been reached", "error_code": "OUT_OF_USAGE_CREDITS"}'


class Recorder:
    """MockTransport handler that records requests and replays a canned response."""

    def __init__(self, status=200, payload=None, headers=None, body=None):
        self.status = status
        self.payload = payload if payload is not None else []
        self.headers = headers or {}
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is not None:
            return httpx.Response(self.status, text=self.body, headers=self.headers)
        return httpx.Response(self.status, json=self.payload, headers=self.headers)


def make_adapter(handler, **kwargs) -> OddsAPIAdapter:
    kwargs.setdefault("min_request_interval", 0.0)
    return OddsAPIAdapter(
        api_key="test-key",
        base_url="https://odds.test/v4",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestRequests:
    """Request shape and response parsing."""

    @pytest.mark.asyncio
    async def test_fetch_odds_params(self):
        handler = Recorder(payload=[odds_payload("evt-1", {"draftkings": {"h2h": [("Los Angeles Lakers", -110)]}})])
        async with make_adapter(handler) as adapter:
            events = await adapter.fetch_odds(NBA, ["h2h", "spreads"], ["us", "eu"], bookmakers=["pinnacle"])

        request = handler.requests[0]
        assert request.url.path == "/v4/sports/basketball_nba/odds"
        params = request.url.params
        assert params["apiKey"] == "test-key"
        assert params["markets"] == "h2h,spreads"
        assert params["regions"] == "us,eu"
        assert params["oddsFormat"] == "american"
        assert params["dateFormat"] == "iso"
        assert params["bookmakers"] == "pinnacle"

        assert len(events) == 1
        assert events[0].bookmakers[0].markets[0].outcomes[0].price == -110

    @pytest.mark.asyncio
    async def test_fetch_events(self):
        handler = Recorder(payload=[
            {
                "id": "evt-1",
                "sport_key": NBA,
                "commence_time": "2026-10-17T00:00:00Z",
                "home_team": "Los Angeles Lakers",
                "away_team": "Golden State Warriors",
            }
        ])
        async with make_adapter(handler) as adapter:
            events = await adapter.fetch_events(NBA)
        assert handler.requests[0].url.path == "/v4/sports/basketball_nba/events"
        assert events[0].name == "Golden State Warriors @ Los Angeles Lakers"

    @pytest.mark.asyncio
    async def test_fetch_sports(self):
        handler = Recorder(payload=[{"key": NBA, "group": "Basketball", "title": "NBA"}])
        async with make_adapter(handler) as adapter:
            sports = await adapter.fetch_sports()
        assert [s.key for s in sports] == [NBA]

    @pytest.mark.asyncio
    async def test_fetch_event_odds_path(self):
        handler = Recorder(payload=odds_payload("evt-7", {"fanduel": {"player_points": [("Over", -115, 24.5, "Jayson Tatum")]}}))
        async with make_adapter(handler) as adapter:
            props = await adapter.fetch_player_props(NBA, "evt-7", ["player_points"], ["us"])
        assert handler.requests[0].url.path == "/v4/sports/basketball_nba/events/evt-7/odds"
        assert props.bookmakers[0].markets[0].outcomes[0].description == "Jayson Tatum"

    @pytest.mark.asyncio
    async def test_malformed_event_skipped(self):
        handler = Recorder(payload=[
            odds_payload("evt-1", {"draftkings": {"h2h": [("A", -110)]}}),
            {"id": "evt-2", "sport_key": NBA},
        ])
        async with make_adapter(handler) as adapter:
            events = await adapter.fetch_odds(NBA, ["h2h"], ["us"])
        assert [e.id for e in events] == ["evt-1"]

    @pytest.mark.asyncio
    async def test_non_list_payload_rejected(self):
        async with make_adapter(Recorder(payload={"message": "unexpected"})) as adapter:
            with pytest.raises(OddsAPIError):
                await adapter.fetch_odds(NBA, ["h2h"], ["us"])

    @pytest.mark.asyncio
    async def test_quota_headers(self):
        handler = Recorder(headers={"x-requests-remaining": "480", "x-requests-used": "20"})
        async with make_adapter(handler) as adapter:
            await adapter.fetch_sports()
            assert adapter.requests_remaining == 480
            assert adapter.requests_used == 20


class TestFailures:
    """Typed failures for everything except quota exhaustion."""

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with make_adapter(Recorder(status=500, body="upstream exploded")) as adapter:
            with pytest.raises(OddsAPIError) as exc:
                await adapter.fetch_odds(NBA, ["h2h"], ["us"])
        assert exc.value.status_code == 500
        assert adapter.mode is DataSourceMode.LIVE

    @pytest.mark.asyncio
    async def test_plain_unauthorized_is_not_quota(self):
        async with make_adapter(Recorder(status=401, body='{"message": "Invalid API key"}')) as adapter:
            with pytest.raises(OddsAPIError) as exc:
                await adapter.fetch_sports()
        assert not isinstance(exc.value, QuotaExhaustedError)
        assert adapter.mode is DataSourceMode.LIVE

    @pytest.mark.asyncio
    async def test_connect_error_retried_then_wrapped(self, monkeypatch):
        monkeypatch.setattr(OddsAPIAdapter._send.retry, "wait", wait_none())
        attempts = []

        def handler(request):
            attempts.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        async with make_adapter(handler) as adapter:
            with pytest.raises(OddsAPIError):
                await adapter.fetch_sports()
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_props_for_events_collects_failures(self):
        def handler(request):
            if "/events/bad/" in request.url.path:
                return httpx.Response(404, text="event not found")
            event_id = request.url.path.split("/")[-2]
            return httpx.Response(200, json=odds_payload(event_id, {}))

        async with make_adapter(handler) as adapter:
            props, errors = await adapter.fetch_player_props_for_events(
                NBA, ["good-1", "bad", "good-2"], ["player_points"], ["us"]
            )
        assert [p.id for p in props] == ["good-1", "good-2"]
        assert len(errors) == 1
        assert errors[0].startswith("bad:")


class TestDegradedMode:
    """Quota exhaustion switches to synthetic data for good."""

    @pytest.mark.asyncio
    async def test_quota_exhaustion_falls_back(self, tmp_path):
        flag = tmp_path / "fallback.flag"
        handler = Recorder(status=401, body=QUOTA_BODY)
        async with make_adapter(handler, flag_path=flag) as adapter:
            events = await adapter.fetch_odds(NBA, ["h2h"], ["us"])

            assert adapter.mode is DataSourceMode.DEGRADED
            assert flag.exists()
            assert events
            assert {b.key for b in events[0].bookmakers} == {"draftkings", "fanduel", "betmgm", "caesars", "pointsbet"}

            # no further upstream calls
            await adapter.fetch_odds(NBA, ["h2h"], ["us"])
            await adapter.fetch_events(NBA)
            assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_degraded_requests_not_counted(self, cache, tmp_path):
        counter = RequestCounter(cache)
        handler = Recorder(status=401, body=QUOTA_BODY)
        async with make_adapter(handler, usage=counter, flag_path=tmp_path / "flag") as adapter:
            await adapter.fetch_sports()
            await adapter.fetch_sports()
        assert (await counter.stats()).today == 0

    @pytest.mark.asyncio
    async def test_flag_file_survives_restart(self, tmp_path):
        flag = tmp_path / "fallback.flag"
        flag.write_text("2026-10-16T00:00:00+00:00")
        handler = Recorder()
        async with make_adapter(handler, flag_path=flag) as adapter:
            assert adapter.mode is DataSourceMode.DEGRADED
            sports = await adapter.fetch_sports()
        assert sports
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_reset(self, tmp_path):
        flag = tmp_path / "fallback.flag"
        flag.write_text("x")
        handler = Recorder(payload=[{"key": NBA}])
        async with make_adapter(handler, flag_path=flag) as adapter:
            adapter.reset_data_source()
            assert adapter.mode is DataSourceMode.LIVE
            assert not flag.exists()
            await adapter.fetch_sports()
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_unknown_synthetic_event(self):
        async with make_adapter(Recorder(), mode=DataSourceMode.DEGRADED) as adapter:
            with pytest.raises(OddsAPIError) as exc:
                await adapter.fetch_event_odds(NBA, "no-such-event", ["h2h"], ["us"])
        assert exc.value.status_code == 404


class TestAccountingAndThrottle:
    """Request counting and the shared rate limit."""

    @pytest.mark.asyncio
    async def test_successful_requests_counted(self, cache):
        counter = RequestCounter(cache)
        async with make_adapter(Recorder(), usage=counter) as adapter:
            await adapter.fetch_sports()
            await adapter.fetch_sports()
        assert (await counter.stats()).today == 2

    @pytest.mark.asyncio
    async def test_failed_requests_not_counted(self, cache):
        counter = RequestCounter(cache)
        async with make_adapter(Recorder(status=500, body="no"), usage=counter) as adapter:
            with pytest.raises(OddsAPIError):
                await adapter.fetch_sports()
        assert (await counter.stats()).today == 0

    @pytest.mark.asyncio
    async def test_concurrent_calls_are_spaced(self):
        stamps = []

        def handler(request):
            stamps.append(time.monotonic())
            return httpx.Response(200, json=[])

        async with make_adapter(handler, min_request_interval=0.05) as adapter:
            await asyncio.gather(*(adapter.fetch_sports() for _ in range(4)))

        assert len(stamps) == 4
        gaps = [b - a for a, b in zip(stamps, stamps[1:])]
        assert all(gap >= 0.045 for gap in gaps)


class TestSyntheticSource:
    """Deterministic synthetic payloads."""

    def test_deterministic(self, now):
        markets = ["h2h", "spreads", "totals"]
        first = SyntheticOddsSource(seed="s", now=now).odds(NBA, markets, ["us", "eu"])
        second = SyntheticOddsSource(seed="s", now=now).odds(NBA, markets, ["us", "eu"])
        assert first == second

    def test_seed_changes_prices(self, now):
        first = SyntheticOddsSource(seed="a", now=now).odds(NBA, ["h2h"], ["us"])
        second = SyntheticOddsSource(seed="b", now=now).odds(NBA, ["h2h"], ["us"])
        assert first != second

    def test_region_rosters(self):
        events = SyntheticOddsSource().odds(NBA, ["h2h"], ["uk", "au"])
        keys = {bk["key"] for bk in events[0]["bookmakers"]}
        assert keys == {"williamhill", "betfair_ex_uk", "skybet", "sportsbet", "tab", "ladbrokes_au"}

    def test_prices_are_legal(self):
        events = SyntheticOddsSource().odds(NBA, ["h2h", "alternate_spreads", "player_points"], ["us"])
        for event in events:
            for bookmaker in event["bookmakers"]:
                for market in bookmaker["markets"]:
                    for outcome in market["outcomes"]:
                        assert abs(outcome["price"]) >= 100

    def test_props_carry_player(self):
        event = SyntheticOddsSource().event_odds(NBA, "synthetic-nba-1", ["player_points"], ["us"])
        outcomes = event["bookmakers"][0]["markets"][0]["outcomes"]
        assert {o["name"] for o in outcomes} == {"Over", "Under"}
        assert "LeBron James" in {o["description"] for o in outcomes}
