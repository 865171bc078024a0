"""
Runtime configuration for chuk-mcp-relief.

Defaults come from constants; environment variables override them.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    ALL_PROVIDER_IDS,
    ALL_STYLES,
    DEFAULT_AREA_SIZE_KM,
    DEFAULT_GRID_RESOLUTION,
    DEFAULT_MAX_LATITUDE,
    DEFAULT_MAX_LONGITUDE,
    DEFAULT_MIN_ELEVATION_RANGE_M,
    DEFAULT_MIN_LATITUDE,
    DEFAULT_MIN_LONGITUDE,
    DEFAULT_PROVIDER,
    DEFAULT_SCALE_FACTOR,
    DEFAULT_STYLE,
    ELEVATION_PROVIDERS,
    GRID_RETRY_DELAY_MS,
    RATE_LIMIT_ATTEMPTS,
    RENDER_SIZE,
    REQUEST_TIMEOUT_MS,
    EnvVar,
    ErrorMessages,
)


class ElevationSettings(BaseModel):
    """Elevation provider settings."""

    model_config = ConfigDict(extra="forbid")

    provider: str = Field(DEFAULT_PROVIDER, description="Elevation provider id")
    api_key: str | None = Field(None, description="Provider API key (mapbox)")
    base_url: str | None = Field(None, description="Override of the provider base URL")
    request_timeout_ms: int = Field(REQUEST_TIMEOUT_MS, description="Per-request timeout", gt=0)
    retry_attempts: int = Field(RATE_LIMIT_ATTEMPTS, description="Attempts per grid point", ge=1)
    retry_delay_ms: int = Field(GRID_RETRY_DELAY_MS, description="Delay before a retry", ge=0)

    @field_validator("provider")
    @classmethod
    def _normalise_provider(cls, value: str) -> str:
        value = value.lower()
        if value not in ELEVATION_PROVIDERS:
            raise ValueError(
                ErrorMessages.UNKNOWN_PROVIDER.format(value, ", ".join(ALL_PROVIDER_IDS))
            )
        return value

    @property
    def effective_base_url(self) -> str:
        return self.base_url or ELEVATION_PROVIDERS[self.provider]["base_url"]


class GeographicSettings(BaseModel):
    """Where candidate locations may come from and how they are sampled."""

    model_config = ConfigDict(extra="forbid")

    min_latitude: float = Field(DEFAULT_MIN_LATITUDE, ge=-90, le=90)
    max_latitude: float = Field(DEFAULT_MAX_LATITUDE, ge=-90, le=90)
    min_longitude: float = Field(DEFAULT_MIN_LONGITUDE, ge=-180, le=180)
    max_longitude: float = Field(DEFAULT_MAX_LONGITUDE, ge=-180, le=180)
    area_size_km: float = Field(DEFAULT_AREA_SIZE_KM, description="Rendered area edge", gt=0)
    resolution: int = Field(DEFAULT_GRID_RESOLUTION, description="Samples per grid edge", ge=2)
    min_elevation_range_m: float = Field(
        DEFAULT_MIN_ELEVATION_RANGE_M, description="Minimum range for an interesting render", ge=0
    )


class ImageSettings(BaseModel):
    """Output image settings."""

    model_config = ConfigDict(extra="forbid")

    width: int = Field(RENDER_SIZE, gt=0)
    height: int = Field(RENDER_SIZE, gt=0)
    default_style: str = Field(DEFAULT_STYLE)
    scale_factor: float = Field(DEFAULT_SCALE_FACTOR, gt=0)

    @field_validator("default_style")
    @classmethod
    def _check_style(cls, value: str) -> str:
        if value not in ALL_STYLES:
            raise ValueError(ErrorMessages.INVALID_STYLE.format(value, ", ".join(ALL_STYLES)))
        return value


class SystemSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    output_dir: str = Field("./cache", description="Directory for rendered images")
    log_level: str = Field("INFO")
    seed: int | None = Field(None, description="Seed for noise and location choice")


class ReliefConfig(BaseModel):
    """Complete runtime configuration."""

    model_config = ConfigDict(extra="forbid")

    elevation: ElevationSettings = Field(default_factory=ElevationSettings)
    geographic: GeographicSettings = Field(default_factory=GeographicSettings)
    image: ImageSettings = Field(default_factory=ImageSettings)
    system: SystemSettings = Field(default_factory=SystemSettings)


def load_config(env: Mapping[str, str] | None = None) -> ReliefConfig:
    """
    Build a ReliefConfig from environment variables over the defaults.

    Args:
        env: Mapping to read instead of os.environ (used by tests)

    Returns:
        Validated configuration
    """
    env = os.environ if env is None else env

    elevation: dict = {}
    if env.get(EnvVar.ELEVATION_PROVIDER):
        elevation["provider"] = env[EnvVar.ELEVATION_PROVIDER]
    if env.get(EnvVar.ELEVATION_API_KEY):
        elevation["api_key"] = env[EnvVar.ELEVATION_API_KEY]
    if env.get(EnvVar.ELEVATION_BASE_URL):
        elevation["base_url"] = env[EnvVar.ELEVATION_BASE_URL]

    image: dict = {}
    if env.get(EnvVar.STYLE):
        image["default_style"] = env[EnvVar.STYLE]

    system: dict = {}
    if env.get(EnvVar.OUTPUT_DIR):
        system["output_dir"] = env[EnvVar.OUTPUT_DIR]
    if env.get(EnvVar.LOG_LEVEL):
        system["log_level"] = env[EnvVar.LOG_LEVEL].upper()
    if env.get(EnvVar.SEED):
        system["seed"] = int(env[EnvVar.SEED])

    return ReliefConfig(
        elevation=ElevationSettings(**elevation),
        image=ImageSettings(**image),
        system=SystemSettings(**system),
    )
