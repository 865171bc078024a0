"""
Acquisition context: the mutable state shared by elevation and water lookups.

One context is created by the caller (normally ReliefManager) and passed by
reference into every acquisition call. Nothing here is module-global.
Access is single-threaded; share a context across worker threads only
behind a lock.
"""

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any

from ..constants import (
    MAX_DAILY_REQUESTS,
    TILE_CACHE_MAX_ENTRIES,
    WATER_CACHE_MAX_ENTRIES,
)
from .tile_cache import BoundedCache, TileCache

logger = logging.getLogger(__name__)


@dataclass
class RequestStats:
    daily_count: int
    remaining: int
    cached_tiles: int
    cached_water_results: int


@dataclass
class AcquisitionContext:
    """Caches, counters and the HTTP session used during acquisition."""

    session: Any = None  # aiohttp.ClientSession
    tile_cache: TileCache = field(default_factory=lambda: TileCache(TILE_CACHE_MAX_ENTRIES))
    water_cache: BoundedCache[str, bool] = field(
        default_factory=lambda: BoundedCache(WATER_CACHE_MAX_ENTRIES)
    )
    max_daily_requests: int = MAX_DAILY_REQUESTS
    daily_request_count: int = 0
    request_day: dt.date = field(default_factory=dt.date.today)
    last_request_time: float | None = None  # loop.time() of the last paced request
    # Tile downloads in flight, keyed by TileKey, shared by concurrent fetches
    pending_tiles: dict[Any, Any] = field(default_factory=dict)

    def roll_day(self, today: dt.date | None = None) -> None:
        """Reset the daily counter when the calendar day changes."""
        today = today or dt.date.today()
        if today != self.request_day:
            logger.info(
                f"New request day {today}: resetting counter ({self.daily_request_count} used)"
            )
            self.request_day = today
            self.daily_request_count = 0

    @property
    def quota_exhausted(self) -> bool:
        return self.daily_request_count >= self.max_daily_requests

    def request_stats(self) -> RequestStats:
        return RequestStats(
            daily_count=self.daily_request_count,
            remaining=max(0, self.max_daily_requests - self.daily_request_count),
            cached_tiles=len(self.tile_cache),
            cached_water_results=len(self.water_cache),
        )

    def clear_caches(self) -> None:
        tiles = self.tile_cache.clear()
        water = self.water_cache.clear()
        logger.info(f"Cleared caches ({tiles} tiles, {water} water results removed)")
