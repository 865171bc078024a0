"""Configuration, wire schemas and response models for chuk-mcp-relief."""

from .config import ReliefConfig, load_config
from .responses import (
    CapabilitiesResponse,
    ErrorResponse,
    GenerationResponse,
    ProviderInfo,
    RenderParamsInfo,
    StatusResponse,
    TerrainAnalysisResponse,
    ValidationResponse,
    format_response,
)

__all__ = [
    "ReliefConfig",
    "load_config",
    "ErrorResponse",
    "ProviderInfo",
    "StatusResponse",
    "CapabilitiesResponse",
    "RenderParamsInfo",
    "TerrainAnalysisResponse",
    "ValidationResponse",
    "GenerationResponse",
    "format_response",
]
