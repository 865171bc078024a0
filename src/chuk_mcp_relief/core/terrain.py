"""
Terrain classification and adaptive render parameters.

Both functions are pure: the same statistics and style always give the same
result.
"""

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from ..constants import (
    AMPLIFICATION_RANGE_NORM_M,
    BASE_AMPLIFICATION,
    DEFAULT_RENDER_PARAMS,
    HIGH_VARIABILITY_M,
    LARGE_RANGE_M,
    LOW_VARIABILITY_M,
    MAX_NUM_LINES,
    SMALL_RANGE_M,
    TERRAIN_ADJUSTMENTS,
    TERRAIN_THRESHOLDS,
    RenderStyle,
)

UNKNOWN_TERRAIN = "unknown"

_ALTITUDE_PREFIX = re.compile(r"^(low|high)-")


def round_half_up(value: float) -> int:
    """Round .5 upwards (``round`` would round half to even)."""
    return int(math.floor(value + 0.5))


@dataclass
class TerrainAnalysis:
    terrain_type: str
    elevation_range: float
    average_elevation: float
    elevation_variability: float

    @property
    def base_type(self) -> str:
        """Terrain type without its altitude prefix."""
        return _ALTITUDE_PREFIX.sub("", self.terrain_type)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RenderParams:
    horizon_position: float
    perspective_exponent: float
    amplification: float
    peak_emphasis: float
    num_lines: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def classify_range(elevation_range: float) -> str:
    """Base category from the elevation range; each threshold is an upper bound."""
    if elevation_range < TERRAIN_THRESHOLDS["flat"]:
        return "flat"
    if elevation_range < TERRAIN_THRESHOLDS["rolling"]:
        return "rolling"
    if elevation_range < TERRAIN_THRESHOLDS["hilly"]:
        return "hilly"
    return "mountainous"


def analyze_elevations(elevations: Sequence[float]) -> TerrainAnalysis:
    """
    Classify a set of elevations.

    Args:
        elevations: Elevation values in metres

    Returns:
        TerrainAnalysis with range, mean and population standard deviation.
        An empty input gives terrain type "unknown" and zero statistics.
    """
    if not elevations:
        return TerrainAnalysis(UNKNOWN_TERRAIN, 0.0, 0.0, 0.0)

    low = min(elevations)
    high = max(elevations)
    elevation_range = high - low
    mean = sum(elevations) / len(elevations)
    variance = sum((e - mean) ** 2 for e in elevations) / len(elevations)

    terrain_type = classify_range(elevation_range)
    if mean < TERRAIN_THRESHOLDS["low_altitude"]:
        terrain_type = "low-" + terrain_type
    elif mean > TERRAIN_THRESHOLDS["high_altitude"]:
        terrain_type = "high-" + terrain_type

    return TerrainAnalysis(
        terrain_type=terrain_type,
        elevation_range=float(elevation_range),
        average_elevation=float(mean),
        elevation_variability=math.sqrt(variance),
    )


def analyze_terrain(points: Iterable[Any]) -> TerrainAnalysis:
    """Classify anything carrying an ``elevation`` attribute (samples or points)."""
    return analyze_elevations([p.elevation for p in points])


def derive_render_params(analysis: TerrainAnalysis, style: str) -> RenderParams:
    """
    Adapt render parameters to the terrain.

    Only the perspective style is adapted; every other style gets the
    defaults unchanged.
    """
    params = dict(DEFAULT_RENDER_PARAMS)
    num_lines: float = params["num_lines"]

    if style == RenderStyle.PERSPECTIVE:
        adjust = TERRAIN_ADJUSTMENTS.get(analysis.base_type, TERRAIN_ADJUSTMENTS["rolling"])

        params["horizon_position"] = adjust["horizon_position"]
        params["perspective_exponent"] = adjust["perspective_exponent"]
        params["peak_emphasis"] = adjust["peak_emphasis"]

        range_norm = min(1.0, analysis.elevation_range / AMPLIFICATION_RANGE_NORM_M)
        base_amplification = BASE_AMPLIFICATION * adjust["amplification_factor"]
        params["amplification"] = base_amplification * (0.5 + 0.5 * (1 - range_norm))

        num_lines = math.floor(num_lines * adjust["line_multiplier"])

        if "low-" in analysis.terrain_type:
            params["amplification"] *= 0.7
            params["horizon_position"] *= 0.9
            num_lines = min(MAX_NUM_LINES, num_lines * 1.15)
        elif "high-" in analysis.terrain_type:
            params["perspective_exponent"] *= 0.9
            params["amplification"] *= 1.05

        if analysis.elevation_variability > HIGH_VARIABILITY_M:
            params["peak_emphasis"] *= 0.9
        elif analysis.elevation_variability < LOW_VARIABILITY_M:
            params["peak_emphasis"] *= 1.1
            num_lines = min(MAX_NUM_LINES, num_lines * 1.1)

        if analysis.elevation_range < SMALL_RANGE_M:
            params["amplification"] = min(params["amplification"], 300.0)
            params["horizon_position"] = min(params["horizon_position"], 0.35)
        elif analysis.elevation_range > LARGE_RANGE_M:
            params["amplification"] = max(params["amplification"], 600.0)
            params["horizon_position"] = max(params["horizon_position"], 0.65)

    return RenderParams(
        horizon_position=params["horizon_position"],
        perspective_exponent=params["perspective_exponent"],
        amplification=params["amplification"],
        peak_emphasis=params["peak_emphasis"],
        num_lines=round_half_up(num_lines),
    )
