"""
Geodesy helpers: Web-Mercator tile math, bounding boxes and sample grids.

All functions are pure. Tile math is singular at the poles; callers keep
latitudes inside the configured geographic bounds.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple

from ..constants import (
    COORDINATE_PRECISION,
    KM_PER_DEGREE,
    TILE_SIZE,
    TILE_ZOOM,
    ErrorMessages,
)


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 position in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not is_valid_coordinate(self.latitude, self.longitude):
            raise ValueError(
                ErrorMessages.INVALID_COORDINATE.format(self.latitude, self.longitude)
            )


@dataclass(frozen=True)
class BoundingBox:
    """Geographic box derived from a center and an edge length."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @property
    def lat_span(self) -> float:
        return self.max_lat - self.min_lat

    @property
    def lon_span(self) -> float:
        return self.max_lon - self.min_lon

    def contains(self, coord: Coordinate) -> bool:
        return (
            self.min_lat <= coord.latitude <= self.max_lat
            and self.min_lon <= coord.longitude <= self.max_lon
        )

    def as_dict(self) -> dict[str, float]:
        return {
            "min_lat": self.min_lat,
            "max_lat": self.max_lat,
            "min_lon": self.min_lon,
            "max_lon": self.max_lon,
        }


class TileKey(NamedTuple):
    zoom: int
    x: int
    y: int


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """Check that lat/lon are finite and inside WGS84 ranges."""
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def round_coordinate(value: float) -> float:
    """Round to 6 decimal places (~10 cm)."""
    return round(value, COORDINATE_PRECISION)


# ---------------------------------------------------------------------------
# Tile math
# ---------------------------------------------------------------------------


def _fractional_tile(lat: float, lon: float, zoom: int) -> tuple[float, float]:
    n = 2.0**zoom
    lat_rad = math.radians(lat)
    x_tile = (lon + 180.0) / 360.0 * n
    y_tile = (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0 * n
    return x_tile, y_tile


def to_tile(lat: float, lon: float, zoom: int = TILE_ZOOM) -> tuple[int, int]:
    """
    Convert lat/lon to the (x, y) index of the containing tile.

    Args:
        lat: Latitude in degrees, strictly inside (-90, 90)
        lon: Longitude in degrees
        zoom: Zoom level

    Returns:
        Tuple of (tile_x, tile_y)
    """
    x_tile, y_tile = _fractional_tile(lat, lon, zoom)
    return math.floor(x_tile), math.floor(y_tile)


def position_in_tile(
    lat: float,
    lon: float,
    zoom: int,
    tile_x: int,
    tile_y: int,
    tile_size: int = TILE_SIZE,
) -> tuple[float, float]:
    """
    Fractional pixel offset of lat/lon inside tile (tile_x, tile_y).

    For the tile returned by ``to_tile`` both offsets lie in [0, tile_size).
    """
    x_tile, y_tile = _fractional_tile(lat, lon, zoom)
    return (x_tile - tile_x) * tile_size, (y_tile - tile_y) * tile_size


def tile_key_for(lat: float, lon: float, zoom: int = TILE_ZOOM) -> TileKey:
    """Key of the tile covering a coordinate."""
    x, y = to_tile(lat, lon, zoom)
    return TileKey(zoom, x, y)


# ---------------------------------------------------------------------------
# Areas & grids
# ---------------------------------------------------------------------------


def _shift_inside(mid: float, half: float, limit: float) -> tuple[float, float]:
    """Interval of half-width ``half`` around ``mid``, moved back inside [-limit, limit]."""
    half = min(half, limit)
    low, high = mid - half, mid + half
    if low < -limit:
        return -limit, -limit + 2 * half
    if high > limit:
        return limit - 2 * half, limit
    return low, high


def bounding_box(center: Coordinate, size_km: float) -> BoundingBox:
    """
    Equirectangular box of edge ``size_km`` around ``center``.

    Longitude degrees are scaled by 1/cos(latitude).
    A box that would cross a pole or the antimeridian is shifted inward
    so every corner stays a valid coordinate.
    """
    if size_km <= 0:
        raise ValueError(ErrorMessages.INVALID_SIZE.format(size_km))

    km_to_degree = 1.0 / KM_PER_DEGREE
    lon_km_to_degree = km_to_degree / math.cos(math.radians(center.latitude))

    half_lat = size_km * km_to_degree / 2.0
    half_lon = size_km * lon_km_to_degree / 2.0

    min_lat, max_lat = _shift_inside(center.latitude, half_lat, 90.0)
    min_lon, max_lon = _shift_inside(center.longitude, half_lon, 180.0)

    return BoundingBox(
        min_lat=round_coordinate(min_lat),
        max_lat=round_coordinate(max_lat),
        min_lon=round_coordinate(min_lon),
        max_lon=round_coordinate(max_lon),
    )


def coordinate_grid(center: Coordinate, size_km: float, resolution: int) -> list[Coordinate]:
    """
    Regular ``resolution x resolution`` grid covering the box around center.

    Points are row-major from (min_lat, min_lon).
    """
    if resolution < 2:
        raise ValueError(ErrorMessages.INVALID_RESOLUTION.format(resolution))

    bbox = bounding_box(center, size_km)
    lat_step = bbox.lat_span / (resolution - 1)
    lon_step = bbox.lon_span / (resolution - 1)

    grid = []
    for i in range(resolution):
        for j in range(resolution):
            grid.append(
                Coordinate(
                    latitude=round_coordinate(bbox.min_lat + i * lat_step),
                    longitude=round_coordinate(bbox.min_lon + j * lon_step),
                )
            )
    return grid


def sort_by_tile(coords: list[Coordinate], zoom: int = TILE_ZOOM) -> list[Coordinate]:
    """Order coordinates by tile row then column so cached tiles are reused."""

    def _key(coord: Coordinate) -> tuple[int, int]:
        x, y = to_tile(coord.latitude, coord.longitude, zoom)
        return y, x

    return sorted(coords, key=_key)
