"""
Discovery tools: server status and capabilities.

These tools require no network I/O and report the configured providers,
render styles and storage.
"""

import logging
import os

from ...constants import (
    ALL_STYLES,
    TERRAIN_TYPES,
    EnvVar,
    ServerConfig,
    StorageProvider,
)
from ...models.responses import (
    CapabilitiesResponse,
    ErrorResponse,
    ProviderInfo,
    StatusResponse,
    format_response,
)

logger = logging.getLogger(__name__)


def register_discovery_tools(mcp, manager):
    """Register discovery tools with the MCP server."""

    @mcp.tool()
    async def relief_status(output_mode: str = "json") -> str:
        """Get server status including elevation provider, request quota, caches and storage.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Server status information
        """
        try:
            provider = os.environ.get(EnvVar.ARTIFACTS_PROVIDER, StorageProvider.MEMORY)

            store_available = False
            try:
                store_available = manager._get_store() is not None
            except Exception as e:
                logger.debug(f"Artifact store lookup failed: {e}")

            stats = manager.request_stats()
            response = StatusResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                provider=manager.config.elevation.provider,
                storage_provider=provider,
                artifact_store_available=store_available,
                daily_requests=stats.daily_count,
                remaining_requests=stats.remaining,
                cached_tiles=stats.cached_tiles,
                cached_water_results=stats.cached_water_results,
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_status failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)

    @mcp.tool()
    async def relief_capabilities(output_mode: str = "json") -> str:
        """Get full server capabilities including elevation providers, render styles,
        terrain categories and image settings.

        Args:
            output_mode: "json" for structured data, "text" for human-readable summary

        Returns:
            Complete server capabilities
        """
        try:
            providers = [ProviderInfo(**p) for p in manager.list_providers()]
            info = manager.describe()

            response = CapabilitiesResponse(
                server=ServerConfig.NAME,
                version=ServerConfig.VERSION,
                providers=providers,
                default_provider=info["provider"],
                styles=ALL_STYLES,
                default_style=info["default_style"],
                fallback_style=info["fallback_style"],
                terrain_types=TERRAIN_TYPES,
                image_size=info["image_size"],
                area_size_km=info["area_size_km"],
                resolution=info["resolution"],
                tool_count=5,
                llm_guidance=(
                    "Use relief_generate with lat/lon to render a specific place, or "
                    "without coordinates to pick a random land location. "
                    "Use relief_validate_area first to check a place is not water and "
                    "has enough elevation range. "
                    "Use relief_classify_terrain to see how elevations will be classified. "
                    "Styles: perspective (marker-pen contours), graph, dotgrid. "
                    "Pass the same seed to reproduce an image exactly."
                ),
                message=f"{ServerConfig.NAME} v{ServerConfig.VERSION} capabilities",
            )
            return format_response(response, output_mode)

        except Exception as e:
            logger.error(f"relief_capabilities failed: {e}")
            return format_response(ErrorResponse(error=str(e)), output_mode)
