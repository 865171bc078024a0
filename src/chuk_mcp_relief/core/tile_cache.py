"""
Bounded caches for decoded elevation tiles and water lookups.

Eviction is insertion-ordered (FIFO): when full, the oldest-inserted entry
is dropped. Reads do not refresh an entry's position.
"""

import logging
import math
import time
from collections.abc import Hashable, Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import numpy as np
from numpy.typing import NDArray

from ..constants import (
    DECODE_NEIGHBORHOOD_RADIUS,
    TERRAIN_RGB_OFFSET,
    TERRAIN_RGB_SCALE,
    TILE_CACHE_MAX_ENTRIES,
    ErrorMessages,
)
from ..errors import NoValidSamplesError

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CachedTile:
    """A decoded RGBA raster (height x width x 4)."""

    pixels: NDArray[np.integer[Any]]
    timestamp: float = field(default_factory=time.time)

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])


class BoundedCache(Generic[K, V]):
    """Dict-backed cache holding at most ``max_entries`` items."""

    def __init__(self, max_entries: int = TILE_CACHE_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._entries.get(key)

    def put(self, key: K, value: V) -> None:
        if key in self._entries:
            self._entries[key] = value
            return
        while len(self._entries) >= self.max_entries:
            oldest_key = next(iter(self._entries))
            del self._entries[oldest_key]
            logger.debug(f"Evicted oldest cache entry: {oldest_key}")
        self._entries[key] = value

    def clear(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        return removed

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[K]:
        return iter(self._entries)


class TileCache(BoundedCache[Any, CachedTile]):
    """Cache of decoded tiles keyed by TileKey."""


# ---------------------------------------------------------------------------
# Terrain-RGB decoding
# ---------------------------------------------------------------------------


def terrain_rgb_to_elevation(r: int, g: int, b: int) -> float:
    """
    elevation = -10000 + (R*65536 + G*256 + B) * 0.1

    Raises:
        ValueError: if a channel is outside 0..255
    """
    for channel in (r, g, b):
        if not 0 <= channel <= 255:
            raise ValueError(f"Channel value {channel} outside 0..255")
    return TERRAIN_RGB_OFFSET + (r * 65536.0 + g * 256.0 + b) * TERRAIN_RGB_SCALE


def decode_elevation(tile: CachedTile, pixel_x: float, pixel_y: float) -> float:
    """
    Mean elevation of the 3x3 neighbourhood around a pixel.

    The centre pixel is clamped into the raster; neighbours outside it and
    non-finite or out-of-channel-range decodes are skipped.

    Args:
        tile: Decoded RGBA tile
        pixel_x: Column (fractional values are floored)
        pixel_y: Row (fractional values are floored)

    Returns:
        Mean elevation in metres (unrounded)

    Raises:
        NoValidSamplesError: if no neighbour yields a valid elevation
    """
    width, height = tile.width, tile.height
    cx = min(max(int(math.floor(pixel_x)), 0), width - 1)
    cy = min(max(int(math.floor(pixel_y)), 0), height - 1)

    radius = DECODE_NEIGHBORHOOD_RADIUS
    elevations = []
    for y in range(cy - radius, cy + radius + 1):
        for x in range(cx - radius, cx + radius + 1):
            if x < 0 or x >= width or y < 0 or y >= height:
                continue
            r, g, b = (int(v) for v in tile.pixels[y, x, :3])
            try:
                elevation = terrain_rgb_to_elevation(r, g, b)
            except ValueError:
                continue
            if math.isfinite(elevation):
                elevations.append(elevation)

    if not elevations:
        raise NoValidSamplesError(ErrorMessages.NO_VALID_SAMPLES)

    return sum(elevations) / len(elevations)
