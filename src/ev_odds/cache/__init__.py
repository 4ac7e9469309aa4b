"""Cache-aside storage and request accounting."""

from ev_odds.cache.store import CacheKeys, CacheStore, CacheTTL
from ev_odds.cache.usage import RequestCounter, date_key

__all__ = ["CacheKeys", "CacheStore", "CacheTTL", "RequestCounter", "date_key"]
