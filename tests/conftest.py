"""
Pytest fixtures for testing.
"""

from datetime import datetime

import pytest

from builders import NOW, FakeClock, FakeRedis
from ev_odds.cache.store import CacheStore


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def cache(fake_redis) -> CacheStore:
    """Cache store over the in-memory fake."""
    return CacheStore(fake_redis)
