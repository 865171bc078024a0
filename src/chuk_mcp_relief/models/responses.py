"""
Response models for chuk-mcp-relief tools.

All tool responses are Pydantic models for type safety and consistent API.
"""

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ServerConfig


def format_response(model: BaseModel, output_mode: str = "json") -> str:
    """Format a response model as JSON or human-readable text.

    Args:
        model: Pydantic response model instance
        output_mode: "json" (default) or "text"

    Returns:
        Formatted string
    """
    if output_mode == "text" and hasattr(model, "to_text"):
        return str(model.to_text())
    return str(model.model_dump_json())


class ErrorResponse(BaseModel):
    """Error response model for tool failures."""

    model_config = ConfigDict(extra="forbid")

    error: str = Field(..., description="Error message describing what went wrong")
    error_type: str | None = Field(None, description="Exception class name")

    def to_text(self) -> str:
        return f"Error: {self.error}"


# ---------------------------------------------------------------------------
# Discovery responses
# ---------------------------------------------------------------------------


class ProviderInfo(BaseModel):
    """Summary information about an elevation provider."""

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Provider identifier (e.g., opentopodata)")
    name: str = Field(..., description="Human-readable provider name")
    kind: str = Field(..., description="point (one request per coordinate) or tile (raster tiles)")
    requires_api_key: bool = Field(..., description="Whether an API key is needed")
    water_query: bool = Field(..., description="Whether the provider offers a water-layer query")

    def to_text(self) -> str:
        key = "API key required" if self.requires_api_key else "no API key"
        return f"{self.id}: {self.name} ({self.kind}, {key})"


class StatusResponse(BaseModel):
    """Response model for server status queries."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(default=ServerConfig.NAME, description="Server name")
    version: str = Field(default=ServerConfig.VERSION, description="Server version")
    provider: str = Field(..., description="Active elevation provider")
    storage_provider: str = Field(..., description="Active storage provider (memory/filesystem/s3)")
    artifact_store_available: bool = Field(
        default=False, description="Whether artifact store is available"
    )
    daily_requests: int = Field(0, description="Provider requests made today", ge=0)
    remaining_requests: int = Field(0, description="Requests left in today's quota", ge=0)
    cached_tiles: int = Field(0, description="Decoded tiles in cache", ge=0)
    cached_water_results: int = Field(0, description="Water lookups in cache", ge=0)

    def to_text(self) -> str:
        store_status = "available" if self.artifact_store_available else "not available"
        lines = [
            f"{self.server} v{self.version}",
            f"Provider: {self.provider}",
            f"Storage: {self.storage_provider}",
            f"Artifact store: {store_status}",
            f"Requests today: {self.daily_requests} ({self.remaining_requests} remaining)",
            f"Cache: {self.cached_tiles} tiles, {self.cached_water_results} water results",
        ]
        return "\n".join(lines)


class CapabilitiesResponse(BaseModel):
    """Response model for server capabilities listing."""

    model_config = ConfigDict(extra="forbid")

    server: str = Field(..., description="Server name")
    version: str = Field(..., description="Server version")
    providers: list[ProviderInfo] = Field(..., description="Available elevation providers")
    default_provider: str = Field(..., description="Configured elevation provider")
    styles: list[str] = Field(..., description="Available render styles")
    default_style: str = Field(..., description="Style used when none is given")
    fallback_style: str = Field(..., description="Style used for unknown style names")
    terrain_types: list[str] = Field(..., description="Base terrain categories")
    image_size: list[int] = Field(..., description="Output image [width, height]")
    area_size_km: float = Field(..., description="Edge length of the rendered area")
    resolution: int = Field(..., description="Samples per grid edge")
    tool_count: int = Field(..., description="Number of available tools", ge=0)
    llm_guidance: str = Field(..., description="LLM-friendly usage guidance for the server")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            f"{self.server} v{self.version}",
            f"Tools: {self.tool_count}",
            f"Provider: {self.default_provider}",
            f"Providers: {', '.join(p.id for p in self.providers)}",
            f"Styles: {', '.join(self.styles)} (default {self.default_style})",
            f"Terrain types: {', '.join(self.terrain_types)}",
            f"Image: {self.image_size[0]}x{self.image_size[1]}",
            f"Area: {self.area_size_km}km, {self.resolution}x{self.resolution} samples",
            f"Guidance: {self.llm_guidance}",
        ]
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Analysis responses
# ---------------------------------------------------------------------------


class RenderParamsInfo(BaseModel):
    model_config = ConfigDict(extra="forbid")

    horizon_position: float = Field(..., description="Horizon as a fraction of drawing height")
    perspective_exponent: float = Field(
        ..., description="Exponent compressing lines near the horizon"
    )
    amplification: float = Field(..., description="Height amplification in base pixels")
    peak_emphasis: float = Field(..., description="Power applied to the heightfield")
    num_lines: int = Field(..., description="Number of contour lines", ge=0)


class TerrainAnalysisResponse(BaseModel):
    """Response model for terrain classification."""

    model_config = ConfigDict(extra="forbid")

    terrain_type: str = Field(..., description="Category, optionally prefixed low-/high-")
    elevation_range: float = Field(..., description="Max minus min elevation in metres")
    average_elevation: float = Field(..., description="Mean elevation in metres")
    elevation_variability: float = Field(..., description="Population standard deviation")
    sample_count: int = Field(..., description="Number of elevations classified", ge=0)
    style: str = Field(..., description="Style the render parameters were derived for")
    render_params: RenderParamsInfo = Field(..., description="Adaptive render parameters")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        p = self.render_params
        lines = [
            self.message,
            f"Mean: {self.average_elevation:.0f}m, std dev: {self.elevation_variability:.1f}m",
            f"Samples: {self.sample_count}",
            f"Render params ({self.style}): horizon {p.horizon_position:.2f}, "
            f"exponent {p.perspective_exponent:.2f}, amplification {p.amplification:.0f}, "
            f"peak emphasis {p.peak_emphasis:.2f}, {p.num_lines} lines",
        ]
        return "\n".join(lines)


class ValidationResponse(BaseModel):
    """Response model for area validation."""

    model_config = ConfigDict(extra="forbid")

    lat: float = Field(..., description="Latitude of the candidate center")
    lon: float = Field(..., description="Longitude of the candidate center")
    is_valid: bool = Field(..., description="Whether the area is suitable for rendering")
    reason: str | None = Field(None, description="Why the area was rejected")
    rejection_type: str | None = Field(None, description="Rejection class name")
    water_percentage: float | None = Field(
        None, description="Share of sample grid on water", ge=0, le=100
    )
    elevation_range: float | None = Field(None, description="Elevation range of the sample grid")
    valid_samples: int = Field(0, description="Grid points that returned an elevation", ge=0)
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        verdict = "valid" if self.is_valid else "rejected"
        lines = [f"Area at ({self.lat}, {self.lon}): {verdict}", self.message]
        if self.water_percentage is not None:
            lines.append(f"Water: {self.water_percentage:.1f}%")
        if self.elevation_range is not None:
            lines.append(f"Elevation range: {self.elevation_range:.0f}m")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Render responses
# ---------------------------------------------------------------------------


class GenerationResponse(BaseModel):
    """Response model for relief generation."""

    model_config = ConfigDict(extra="forbid")

    file_path: str = Field(..., description="Path of the written PNG")
    artifact_ref: str | None = Field(None, description="Artifact store reference for the PNG")
    lat: float = Field(..., description="Latitude of the rendered center")
    lon: float = Field(..., description="Longitude of the rendered center")
    bbox: list[float] = Field(..., description="Rendered area [min_lon, min_lat, max_lon, max_lat]")
    elevation_range: list[float] = Field(..., description="[min, max] elevation in metres")
    average_elevation: float = Field(..., description="Mean elevation in metres")
    style: str = Field(..., description="Render style used")
    terrain_type: str = Field(..., description="Terrain classification of the area")
    points_sampled: int = Field(..., description="Elevation samples used", ge=0)
    attempts: int = Field(1, description="Candidate locations tried", ge=1)
    seed: int = Field(..., description="Noise seed (same seed, same image)")
    timestamp: str = Field(..., description="Generation timestamp")
    message: str = Field(..., description="Operation result message")

    def to_text(self) -> str:
        lines = [
            self.message,
            f"Center: ({self.lat}, {self.lon})",
            f"Terrain: {self.terrain_type}",
            f"Elevation: {self.elevation_range[0]:.0f}m to {self.elevation_range[1]:.0f}m "
            f"(mean {self.average_elevation:.0f}m, {self.points_sampled} samples)",
            f"Seed: {self.seed}",
        ]
        if self.artifact_ref:
            lines.append(f"Artifact: {self.artifact_ref}")
        return "\n".join(lines)
