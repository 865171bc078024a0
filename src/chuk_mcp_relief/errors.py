"""
Exception hierarchy for chuk-mcp-relief.

Three families mirror the stages of a generation run:

- ``AcquisitionError``: elevation / water data could not be obtained.
- ``AreaValidationError``: a candidate location was judged unsuitable.
- ``RenderError``: a render attempt cannot proceed.
"""

from .constants import DEFAULT_RETRY_AFTER_MS


class ReliefError(Exception):
    """Base exception for relief generation errors."""


# ---------------------------------------------------------------------------
# Acquisition
# ---------------------------------------------------------------------------


class AcquisitionError(ReliefError):
    """Network, provider or response-format failure."""


class ProviderError(AcquisitionError):
    """The provider answered with an error status or an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(AcquisitionError):
    """The provider asked us to slow down (HTTP 429 or local pacing)."""

    def __init__(self, message: str, retry_after_ms: int = DEFAULT_RETRY_AFTER_MS):
        self.retry_after_ms = retry_after_ms
        super().__init__(message)


class QuotaExceededError(RateLimitedError):
    """The daily request quota is exhausted; retrying today is pointless."""


class UnknownProviderError(AcquisitionError):
    pass


class MissingApiKeyError(AcquisitionError):
    pass


class WaterIndicatedError(AcquisitionError):
    """The provider reports the coordinate as water; no elevation exists."""


# ---------------------------------------------------------------------------
# Area validation
# ---------------------------------------------------------------------------


class AreaValidationError(ReliefError):
    """A candidate area was rejected. Never retried internally."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class CenterOnWaterError(AreaValidationError):
    pass


class WaterDominantError(AreaValidationError):
    def __init__(self, reason: str, water_percentage: float):
        self.water_percentage = water_percentage
        super().__init__(reason)


class InsufficientSamplesError(AreaValidationError):
    def __init__(self, reason: str, valid_samples: int):
        self.valid_samples = valid_samples
        super().__init__(reason)


class InsufficientRangeError(AreaValidationError):
    def __init__(self, reason: str, elevation_range: float):
        self.elevation_range = elevation_range
        super().__init__(reason)


class NoSuitableLocationFoundError(AreaValidationError):
    def __init__(self, reason: str, attempts: int):
        self.attempts = attempts
        super().__init__(reason)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderError(ReliefError):
    """Fatal to the current render attempt."""


class EmptyPointSetError(RenderError):
    pass


class TileDecodeError(RenderError):
    pass


class NoValidSamplesError(RenderError):
    pass
