"""
Analysis tools: terrain classification and area validation.
"""

import logging

from ...constants import ErrorMessages, SuccessMessages
from ...core.geodesy import Coordinate
from ...core.relief import resolve_style
from ...models.responses import (
    ErrorResponse,
    RenderParamsInfo,
    TerrainAnalysisResponse,
    ValidationResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_analysis_tools(mcp, manager):
    """Register analysis tools with the MCP server."""

    @mcp.tool()
    async def relief_classify_terrain(
        elevations: list[float],
        style: str | None = None,
        output_mode: str = "json",
    ) -> str:
        """Classify a set of elevations and show the render parameters they lead to.

        Categories are flat, rolling, hilly and mountainous by elevation range,
        prefixed low- (mean below 200m) or high- (mean above 1000m).

        Args:
            elevations: Elevation values in metres
            style: Render style to derive parameters for (default: configured style)
            output_mode: "json" or "text"

        Returns:
            Terrain type, statistics and adaptive render parameters
        """
        try:
            if not elevations:
                raise ValueError(ErrorMessages.NO_ELEVATIONS)

            analysis, params = manager.classify(elevations, style)
            response = TerrainAnalysisResponse(
                terrain_type=analysis.terrain_type,
                elevation_range=analysis.elevation_range,
                average_elevation=analysis.average_elevation,
                elevation_variability=analysis.elevation_variability,
                sample_count=len(elevations),
                style=resolve_style(style or manager.config.image.default_style),
                render_params=RenderParamsInfo(**params.to_dict()),
                message=SuccessMessages.TERRAIN_CLASSIFIED.format(
                    analysis.terrain_type, analysis.elevation_range
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_classify_terrain failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def relief_validate_area(
        lat: float,
        lon: float,
        output_mode: str = "json",
    ) -> str:
        """Check whether the area around a coordinate is worth rendering.

        Samples a 4x4 grid over half the configured area. The area is rejected
        when the center is water, more than 85% of the grid is water, fewer
        than 3 points return an elevation, or the elevation range is too small.

        Args:
            lat: Latitude of the candidate center
            lon: Longitude of the candidate center
            output_mode: "json" or "text"

        Returns:
            Verdict with water percentage, elevation range and rejection reason
        """
        try:
            result = await manager.validate(Coordinate(lat, lon))
            response = ValidationResponse(
                lat=lat,
                lon=lon,
                is_valid=result.is_valid,
                reason=result.reason,
                rejection_type=type(result.error).__name__ if result.error else None,
                water_percentage=result.water_percentage,
                elevation_range=result.elevation_range,
                valid_samples=result.valid_samples,
                message=result.summary if result.is_valid else result.reason,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_validate_area failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
