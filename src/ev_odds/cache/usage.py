"""Daily upstream request counters for quota monitoring."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

from ev_odds.cache.store import CacheKeys, CacheStore, CacheTTL
from ev_odds.models.response import UsageStats


def date_key(moment: Optional[datetime] = None) -> str:
    """UTC calendar date, e.g. "2026-10-16"."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%d")


class RequestCounter:
    """
    Counts upstream requests per UTC day.

    Counters live in the cache store and expire on their own; the TTL is set
    only by the first increment of a day so later calls do not extend it.
    """

    def __init__(self, cache: CacheStore, ttl: int = CacheTTL.api_requests) -> None:
        self._cache = cache
        self._ttl = ttl

    async def increment_and_get(self, day: str) -> Optional[int]:
        key = CacheKeys.api_requests(day)
        count = await self._cache.increment(key)
        if count == 1:
            await self._cache.expire(key, self._ttl)
        return count

    async def record_request(self, now: Optional[datetime] = None) -> Optional[int]:
        """Count one request against today's total."""
        return await self.increment_and_get(date_key(now))

    async def stats(self, now: Optional[datetime] = None) -> UsageStats:
        now = now or datetime.now(timezone.utc)
        today, yesterday = await asyncio.gather(
            self._cache.get(CacheKeys.api_requests(date_key(now))),
            self._cache.get(CacheKeys.api_requests(date_key(now - timedelta(days=1)))),
        )
        return UsageStats(today=int(today or 0), yesterday=int(yesterday or 0))
