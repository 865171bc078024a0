"""
Wire schemas for elevation and water provider responses.

Parsing goes through these models so that a malformed payload becomes one
ProviderError at the boundary instead of a KeyError deep in the pipeline.
"""

from pydantic import BaseModel, ConfigDict, Field


class OpenTopoDataLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    lat: float
    lng: float


class OpenTopoDataResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    location: OpenTopoDataLocation
    elevation: float | None = Field(None, description="Metres; null where the dataset has no data")
    dataset: str | None = None


class OpenTopoDataResponse(BaseModel):
    """Body of GET /v1/<dataset>?locations=lat,lon"""

    model_config = ConfigDict(extra="ignore")

    status: str = "OK"
    results: list[OpenTopoDataResult] = Field(default_factory=list)
    error: str | None = None


class TilequeryFeature(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = "Feature"
    properties: dict = Field(default_factory=dict)


class TilequeryResponse(BaseModel):
    """Body of the Mapbox Tilequery endpoint (a GeoJSON FeatureCollection)."""

    model_config = ConfigDict(extra="ignore")

    type: str = "FeatureCollection"
    features: list[TilequeryFeature] = Field(default_factory=list)
