"""
Area validation: decides whether a candidate location is worth rendering.

A coarse 4x4 grid over half the configured area is checked for water and
elevation concurrently. The candidate is rejected, in this order, if the
center is water, more than 85% of the grid is water, fewer than 3 points
return an elevation, or the elevation range is below the configured minimum.
"""

import asyncio
import logging
from dataclasses import dataclass

from ..constants import (
    MAX_WATER_PERCENTAGE,
    MIN_VALID_SAMPLES,
    VALIDATION_AREA_FACTOR,
    VALIDATION_GRID_SIZE,
    ErrorMessages,
    SuccessMessages,
)
from ..errors import (
    AreaValidationError,
    CenterOnWaterError,
    InsufficientRangeError,
    InsufficientSamplesError,
    NoValidSamplesError,
    ProviderError,
    RateLimitedError,
    TileDecodeError,
    WaterDominantError,
    WaterIndicatedError,
)
from ..models.config import GeographicSettings
from .context import AcquisitionContext
from .geodesy import Coordinate, coordinate_grid
from .providers import ElevationProvider
from .water import WaterDetectionResult, check_coordinate_is_water

logger = logging.getLogger(__name__)

# Per-point failures that only mean "no elevation here"
SAMPLE_FAILURES = (
    ProviderError,
    RateLimitedError,
    WaterIndicatedError,
    TileDecodeError,
    NoValidSamplesError,
)


@dataclass
class ValidationResult:
    is_valid: bool
    reason: str | None = None
    summary: str | None = None
    water_percentage: float | None = None
    elevation_range: float | None = None
    valid_samples: int = 0
    error: AreaValidationError | None = None

    def raise_for_rejection(self) -> None:
        """Raise the typed rejection, if any."""
        if self.error is not None:
            raise self.error


def _reject(error: AreaValidationError, **fields) -> ValidationResult:
    logger.info(f"Area rejected: {error.reason}")
    return ValidationResult(is_valid=False, reason=error.reason, error=error, **fields)


def water_verdict(water_percentage: float) -> bool:
    """True when the water share is acceptable (strictly above the limit is rejected)."""
    return not water_percentage > MAX_WATER_PERCENTAGE


async def _sample_point(
    coord: Coordinate,
    context: AcquisitionContext,
    provider: ElevationProvider,
) -> tuple[WaterDetectionResult, float | None]:
    async def _elevation() -> float | None:
        try:
            sample = await provider.fetch_with_retry(coord)
        except SAMPLE_FAILURES as e:
            logger.debug(f"No elevation at ({coord.latitude}, {coord.longitude}): {e}")
            return None
        return sample.elevation

    water, elevation = await asyncio.gather(
        check_coordinate_is_water(coord, context, provider),
        _elevation(),
    )
    return water, elevation


async def validate_area(
    center: Coordinate,
    geo: GeographicSettings,
    provider: ElevationProvider,
    context: AcquisitionContext,
) -> ValidationResult:
    """
    Validate a candidate center coordinate.

    Args:
        center: Candidate center
        geo: Geographic settings (area size, minimum elevation range)
        provider: Elevation provider
        context: Acquisition context shared with the provider

    Returns:
        ValidationResult; rejected results carry a typed AreaValidationError
    """
    grid = coordinate_grid(center, geo.area_size_km * VALIDATION_AREA_FACTOR, VALIDATION_GRID_SIZE)
    results = await asyncio.gather(*(_sample_point(c, context, provider) for c in grid))

    water_count = sum(1 for water, _ in results if water.is_water)
    water_percentage = water_count / len(results) * 100

    center_water = await check_coordinate_is_water(center, context, provider)
    if center_water.is_water:
        return _reject(
            CenterOnWaterError(
                ErrorMessages.CENTER_ON_WATER.format(
                    center_water.method, center_water.confidence * 100
                )
            ),
            water_percentage=water_percentage,
        )

    if not water_verdict(water_percentage):
        return _reject(
            WaterDominantError(
                ErrorMessages.WATER_DOMINANT.format(water_percentage), water_percentage
            ),
            water_percentage=water_percentage,
        )

    elevations = [e for _, e in results if e is not None]
    if len(elevations) < MIN_VALID_SAMPLES:
        return _reject(
            InsufficientSamplesError(
                ErrorMessages.INSUFFICIENT_SAMPLES.format(len(elevations), MIN_VALID_SAMPLES),
                len(elevations),
            ),
            water_percentage=water_percentage,
            valid_samples=len(elevations),
        )

    elevation_range = max(elevations) - min(elevations)
    if elevation_range < geo.min_elevation_range_m:
        return _reject(
            InsufficientRangeError(
                ErrorMessages.INSUFFICIENT_RANGE.format(elevation_range, geo.min_elevation_range_m),
                elevation_range,
            ),
            water_percentage=water_percentage,
            elevation_range=elevation_range,
            valid_samples=len(elevations),
        )

    summary = SuccessMessages.VALIDATION_PASSED.format(water_percentage, elevation_range)
    logger.info(f"Area validation passed: {summary}")
    return ValidationResult(
        is_valid=True,
        summary=summary,
        water_percentage=water_percentage,
        elevation_range=elevation_range,
        valid_samples=len(elevations),
    )
