"""
Render tools: relief image generation.
"""

import logging

from ...constants import ErrorMessages, SuccessMessages
from ...core.geodesy import Coordinate
from ...models.responses import ErrorResponse, GenerationResponse, format_response

logger = logging.getLogger(__name__)


def register_render_tools(mcp, manager):
    """Register render tools with the MCP server."""

    @mcp.tool()
    async def relief_generate(
        lat: float | None = None,
        lon: float | None = None,
        style: str | None = None,
        seed: int | None = None,
        output_mode: str = "json",
    ) -> str:
        """Render a stylized relief image of the terrain around a location.

        With lat and lon the image is centered there. Without them a random
        land location is chosen, validated, and retried up to 10 times until
        one has enough land and elevation range.

        Args:
            lat: Center latitude (omit together with lon for a random location)
            lon: Center longitude (omit together with lat for a random location)
            style: perspective (default), graph or dotgrid; unknown names fall back to dotgrid
            seed: Noise seed; the same seed and data give a byte-identical image
            output_mode: "json" or "text"

        Returns:
            File path, artifact reference, terrain type and elevation statistics
        """
        try:
            if (lat is None) != (lon is None):
                raise ValueError(ErrorMessages.PARTIAL_COORDINATE)

            if lat is None:
                result = await manager.generate_random(style=style, seed=seed)
            else:
                result = await manager.generate_from_coordinate(
                    Coordinate(lat, lon), style=style, seed=seed
                )

            stats = result.elevation_stats
            bbox = result.bbox
            response = GenerationResponse(
                file_path=result.file_path,
                artifact_ref=result.artifact_ref,
                lat=result.center.latitude,
                lon=result.center.longitude,
                bbox=[bbox.min_lon, bbox.min_lat, bbox.max_lon, bbox.max_lat],
                elevation_range=[stats.min, stats.max],
                average_elevation=stats.avg,
                style=result.style,
                terrain_type=result.terrain_type,
                points_sampled=result.points_sampled,
                attempts=result.attempts,
                seed=result.seed,
                timestamp=result.timestamp,
                message=SuccessMessages.GENERATED.format(
                    result.style, result.terrain_type, result.file_path
                ),
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_generate failed: {e}")
            return format_response(
                ErrorResponse(error=str(e), error_type=type(e).__name__), output_mode
            )
