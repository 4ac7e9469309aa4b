"""
Merge odds snapshots fetched independently per region.

Each region response lists events with the bookmakers licensed there. The
merge produces one entry per event whose bookmakers are the union across
regions; a bookmaker seen in several regions keeps one entry carrying the
union of its markets, de-duplicated by (market key, alternate flag).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import structlog

from ev_odds.models.odds import BookmakerQuote, EventOdds, Market

logger = structlog.get_logger()


def tag_region(events: list[EventOdds], region: str) -> list[EventOdds]:
    """Copies of `events` with every bookmaker tagged as retrieved from `region`."""
    tagged: list[EventOdds] = []
    for event in events:
        copy = event.model_copy(deep=True)
        for bookmaker in copy.bookmakers:
            bookmaker.region = region
            if region not in bookmaker.regions:
                bookmaker.regions.append(region)
        tagged.append(copy)
    return tagged


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _rank(market: Market) -> tuple:
    # Freshest first, then the fuller market, then content for a stable total order
    return (
        market.last_update is not None,
        market.last_update or _EPOCH,
        len(market.outcomes),
        market.model_dump_json(),
    )


def merge_markets(existing: list[Market], incoming: list[Market]) -> list[Market]:
    """
    Union two market lists.

    On an identity collision the more recently updated market is kept. Ties
    (equal or missing timestamps) are broken on the market's content, so the
    result does not depend on which list arrived first.
    """
    merged: dict[tuple[str, bool], Market] = {}
    for market in [*existing, *incoming]:
        current = merged.get(market.identity)
        if current is None or _rank(market) > _rank(current):
            merged[market.identity] = market
    return list(merged.values())


def _latest(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def _merge_bookmakers(target: EventOdds, incoming: list[BookmakerQuote], region: Optional[str]) -> None:
    by_key = {b.key: b for b in target.bookmakers}

    for bookmaker in incoming:
        current = by_key.get(bookmaker.key)
        if current is None:
            bookmaker.markets = merge_markets([], bookmaker.markets)
            target.bookmakers.append(bookmaker)
            by_key[bookmaker.key] = bookmaker
            continue

        # last region wins the single-region tag
        if region is not None:
            current.region = region
        for r in bookmaker.regions:
            if r not in current.regions:
                current.regions.append(r)
        current.markets = merge_markets(current.markets, bookmaker.markets)
        current.last_update = _latest(current.last_update, bookmaker.last_update)


def merge_region_odds(region_results: list[tuple[str, list[EventOdds]]]) -> list[EventOdds]:
    """
    Merge per-region odds into one list of events.

    Args:
        region_results: (region, events) pairs in caller-supplied region order

    Returns:
        Events present in at least one region, in first-seen order
    """
    merged: dict[str, EventOdds] = {}

    for region, events in region_results:
        for event in tag_region(events, region):
            target = merged.get(event.id)
            if target is None:
                target = event.model_copy(update={"bookmakers": []})
                merged[event.id] = target
            _merge_bookmakers(target, event.bookmakers, region)

    logger.debug(
        "regions_merged",
        regions=[region for region, _ in region_results],
        events=len(merged),
    )
    return list(merged.values())
