"""
Land/water heuristics.

A coarse continental-box lookup filters obvious ocean points; providers that
support it refine the answer with a water-layer query. Results are cached in
the acquisition context keyed by the coordinate rounded to 4 decimals.
"""

import logging
import random
from dataclasses import dataclass

from ..constants import (
    FOCUSED_REGION_ATTEMPTS,
    FOCUSED_REGIONS,
    LAND_MASSES,
    LAST_RESORT_REGION,
    RANDOM_LAND_ATTEMPTS,
    WATER_CACHE_PRECISION,
    WATER_CONFIDENCE,
    WaterMethod,
)
from ..errors import AcquisitionError
from ..models.config import GeographicSettings
from .context import AcquisitionContext
from .geodesy import Coordinate, round_coordinate
from .providers import ElevationProvider

logger = logging.getLogger(__name__)


@dataclass
class WaterDetectionResult:
    is_water: bool
    method: str
    confidence: float


def is_on_land(coord: Coordinate) -> bool:
    """True if the coordinate lies inside any continental box (edges inclusive)."""
    lat, lon = coord.latitude, coord.longitude
    for min_lat, max_lat, min_lon, max_lon in LAND_MASSES.values():
        if min_lat <= lat <= max_lat and min_lon <= lon <= max_lon:
            return True
    return False


def is_likely_water(coord: Coordinate) -> bool:
    """Coarse check: outside every continental box means water."""
    return not is_on_land(coord)


def water_cache_key(coord: Coordinate) -> str:
    p = WATER_CACHE_PRECISION
    return f"{coord.latitude:.{p}f},{coord.longitude:.{p}f}"


async def check_coordinate_is_water(
    coord: Coordinate,
    context: AcquisitionContext,
    provider: ElevationProvider | None = None,
) -> WaterDetectionResult:
    """
    Escalating water check: cache, land boxes, provider query, default land.

    Args:
        coord: Coordinate to check
        context: Acquisition context holding the water cache
        provider: Provider offering a fine-grained water query, if any

    Returns:
        WaterDetectionResult with the method that decided and its confidence
    """
    key = water_cache_key(coord)
    cached = context.water_cache.get(key)
    if cached is not None:
        return WaterDetectionResult(cached, WaterMethod.CACHE, WATER_CONFIDENCE[WaterMethod.CACHE])

    if is_likely_water(coord):
        context.water_cache.put(key, True)
        return WaterDetectionResult(
            True, WaterMethod.LAND_BOUNDS, WATER_CONFIDENCE[WaterMethod.LAND_BOUNDS]
        )

    if provider is not None:
        try:
            answer = await provider.query_water(coord)
        except AcquisitionError as e:
            logger.warning(f"Water query failed at ({coord.latitude}, {coord.longitude}): {e}")
            answer = None
        if answer is not None:
            context.water_cache.put(key, answer)
            return WaterDetectionResult(
                answer, WaterMethod.TILEQUERY, WATER_CONFIDENCE[WaterMethod.TILEQUERY]
            )

    context.water_cache.put(key, False)
    return WaterDetectionResult(
        False, WaterMethod.DEFAULT_LAND, WATER_CONFIDENCE[WaterMethod.DEFAULT_LAND]
    )


# ---------------------------------------------------------------------------
# Random land coordinates
# ---------------------------------------------------------------------------


def _random_in(rng: random.Random, bounds: tuple[float, float, float, float]) -> Coordinate:
    min_lat, max_lat, min_lon, max_lon = bounds
    return Coordinate(
        latitude=round_coordinate(min_lat + rng.random() * (max_lat - min_lat)),
        longitude=round_coordinate(min_lon + rng.random() * (max_lon - min_lon)),
    )


def random_land_coordinate(geo: GeographicSettings, rng: random.Random) -> Coordinate:
    """
    Pick a random coordinate that passes the coarse land check.

    Tries uniformly inside the configured bounds first, then focused
    continental regions, and finally returns any point inside Europe.
    """
    bounds = (geo.min_latitude, geo.max_latitude, geo.min_longitude, geo.max_longitude)
    for attempt in range(RANDOM_LAND_ATTEMPTS):
        coord = _random_in(rng, bounds)
        if is_on_land(coord):
            logger.info(
                f"Found land coordinate after {attempt + 1} attempts: "
                f"{coord.latitude}, {coord.longitude}"
            )
            return coord

    logger.info("No land coordinate found in configured bounds, using focused search")
    for name, region in FOCUSED_REGIONS:
        for _ in range(FOCUSED_REGION_ATTEMPTS):
            coord = _random_in(rng, region)
            if is_on_land(coord):
                logger.info(f"Found land coordinate in {name}: {coord.latitude}, {coord.longitude}")
                return coord

    logger.warning("Focused search failed, falling back to a point in Europe")
    return _random_in(rng, LAST_RESORT_REGION)
