"""
Cache-aside store over a Redis-compatible key-value service.

Values are JSON documents; every write carries an explicit TTL so no entry
outlives its expiry. The cache is advisory: store failures are logged and
behave like a miss (reads) or a no-op (writes), never an exception.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ev_odds.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class CacheTTL:
    """Expiry in seconds per resource type."""

    sports: int = 24 * 60 * 60
    events: int = 15 * 60
    game_odds: int = 5 * 60
    sport_odds: int = 5 * 60
    player_props: int = 5 * 60
    ev_opportunities: int = 5 * 60
    api_requests: int = 2 * 24 * 60 * 60


def _join(values: list[str]) -> str:
    return ",".join(values)


class CacheKeys:
    """Key schema, one builder per resource type."""

    SPORTS = "sports"

    @staticmethod
    def events(sport: str) -> str:
        return f"events:{sport}"

    @staticmethod
    def sport_odds(
        sport: str,
        markets: list[str],
        regions: list[str],
        bookmakers: Optional[list[str]] = None,
    ) -> str:
        books = _join(bookmakers) if bookmakers else "all"
        return f"odds:sport:{sport}:{_join(markets)}:{_join(regions)}:{books}"

    @staticmethod
    def game_odds(event_id: str, markets: list[str], regions: list[str]) -> str:
        return f"odds:game:{event_id}:{_join(markets)}:{_join(regions)}"

    @staticmethod
    def player_props(event_id: str, markets: list[str], regions: list[str]) -> str:
        return f"odds:props:{event_id}:{_join(markets)}:{_join(regions)}"

    @staticmethod
    def ev_opportunities(
        sport: str,
        markets: list[str],
        threshold: float,
        include_live: bool,
        regions: list[str],
        method: str,
        sharp_bookmakers: Optional[list[str]] = None,
    ) -> str:
        """The sharp list is part of the key only when it anchors the consensus."""
        live = "live" if include_live else "pregame"
        key = f"ev:opportunities:{sport}:{_join(markets)}:{threshold:g}:{live}:{_join(regions)}:{method}"
        if sharp_bookmakers:
            key = f"{key}:{_join(sorted(b.lower() for b in sharp_bookmakers))}"
        return key

    @staticmethod
    def api_requests(date_key: str) -> str:
        return f"api:requests:{date_key}"


class CacheStore:
    """
    Async JSON cache.

    With no client (caching disabled) every read misses and every write is
    dropped, so callers always fall through to the upstream source.
    """

    def __init__(self, client: Optional[Redis] = None) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheStore:
        if not settings.cache_configured:
            logger.info("cache_disabled")
            return cls(None)
        client = Redis.from_url(
            settings.redis_url,
            password=settings.redis_token or None,
            decode_responses=True,
        )
        return cls(client)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on a miss."""
        if self._client is None:
            return None
        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_value_corrupt", key=key)
            return None

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Store a JSON-serializable value for `ttl` seconds."""
        if ttl <= 0:
            raise ValueError(f"ttl must be > 0, got {ttl}")
        if self._client is None:
            return False
        try:
            await self._client.set(key, json.dumps(value), ex=ttl)
        except (RedisError, OSError) as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
            return False
        return True

    async def increment(self, key: str) -> Optional[int]:
        """Atomically increment a counter; None when the store is unavailable."""
        if self._client is None:
            return None
        try:
            return int(await self._client.incr(key))
        except (RedisError, OSError) as e:
            logger.warning("cache_incr_failed", key=key, error=str(e))
            return None

    async def expire(self, key: str, seconds: int) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.expire(key, seconds))
        except (RedisError, OSError) as e:
            logger.warning("cache_expire_failed", key=key, error=str(e))
            return False

    async def list_keys(self, pattern: str = "*") -> list[str]:
        """Keys matching a glob pattern. Maintenance and tests only."""
        if self._client is None:
            return []
        try:
            return list(await self._client.keys(pattern))
        except (RedisError, OSError) as e:
            logger.warning("cache_keys_failed", pattern=pattern, error=str(e))
            return []

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
