"""
Elevation providers.

Two variants share one interface:

- ``PointQueryProvider`` (OpenTopoData): one HTTP request per coordinate,
  paced to at most one request per second with a hard daily quota.
- ``TerrainTileProvider`` (Mapbox Terrain-DEM): fetches a terrain-RGB tile,
  caches the decoded raster and extracts elevations from it.

Both report HTTP 429 as RateLimitedError. ``fetch_with_retry`` allows exactly
one retry for rate limits; every other error propagates immediately.
"""

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import aiohttp
import numpy as np
from PIL import Image
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
)

from ..constants import (
    ALL_PROVIDER_IDS,
    DEFAULT_RETRY_AFTER_MS,
    ELEVATION_PROVIDERS,
    MAPBOX_TILEQUERY_URL,
    MIN_REQUEST_INTERVAL_MS,
    RATE_LIMIT_ATTEMPTS,
    TILE_SIZE,
    TILE_ZOOM,
    TILEQUERY_LAYER,
    TILEQUERY_RADIUS_M,
    ElevationProviderId,
    ErrorMessages,
)
from ..errors import (
    MissingApiKeyError,
    ProviderError,
    QuotaExceededError,
    RateLimitedError,
    TileDecodeError,
    UnknownProviderError,
    WaterIndicatedError,
)
from ..models.config import ElevationSettings
from ..models.schemas import OpenTopoDataResponse, TilequeryResponse
from .context import AcquisitionContext
from .geodesy import Coordinate, TileKey, position_in_tile, tile_key_for
from .tile_cache import CachedTile, decode_elevation

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]

HTTP_TOO_MANY_REQUESTS = 429


@dataclass
class ElevationSample:
    """Elevation at a coordinate, rounded to whole metres."""

    coordinate: Coordinate
    elevation: float
    from_cache: bool = False


def parse_retry_after(value: str | None) -> int:
    """Convert a Retry-After header (seconds) to milliseconds."""
    if not value:
        return DEFAULT_RETRY_AFTER_MS
    try:
        return max(0, int(float(value) * 1000))
    except ValueError:
        return DEFAULT_RETRY_AFTER_MS


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, RateLimitedError) and not isinstance(exc, QuotaExceededError)


def _wait_retry_after(retry_state: RetryCallState) -> float:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    retry_after_ms = getattr(exc, "retry_after_ms", DEFAULT_RETRY_AFTER_MS)
    return retry_after_ms / 1000.0


class ElevationProvider(ABC):
    """Base class for elevation sources."""

    provider_id: str = ""
    paced: bool = False

    def __init__(
        self,
        settings: ElevationSettings,
        context: AcquisitionContext,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.context = context
        self._sleep = sleep

    @property
    def base_url(self) -> str:
        return self.settings.effective_base_url

    @abstractmethod
    async def fetch(self, coord: Coordinate) -> ElevationSample:
        """Fetch one elevation. Raises an AcquisitionError subclass on failure."""

    async def query_water(self, coord: Coordinate) -> bool | None:
        """Fine-grained water lookup. None means this provider cannot tell."""
        return None

    async def fetch_with_retry(self, coord: Coordinate) -> ElevationSample:
        """``fetch`` with one retry for rate-limit errors, honouring Retry-After."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(RATE_LIMIT_ATTEMPTS),
            wait=_wait_retry_after,
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(
                        f"Retrying rate-limited request for "
                        f"({coord.latitude}, {coord.longitude})"
                    )
                return await self.fetch(coord)
        raise AssertionError("unreachable")  # pragma: no cover

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _session(self) -> aiohttp.ClientSession:
        if self.context.session is None:
            self.context.session = aiohttp.ClientSession()
        return self.context.session

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(total=self.settings.request_timeout_ms / 1000.0)

    async def _get(self, url: str, params: dict | None, accept: str) -> tuple[int, Any, bytes]:
        """GET a URL, returning (status, headers, body). Network failures become ProviderError."""
        session = self._session()
        try:
            async with session.get(
                url,
                params=params,
                headers={"Accept": accept},
                timeout=self._timeout(),
            ) as resp:
                body = await resp.read()
                return resp.status, resp.headers, body
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderError(f"Request to {url} failed: {e}") from e

    def _raise_for_status(self, status: int, headers: Any) -> None:
        if status == HTTP_TOO_MANY_REQUESTS:
            wait_ms = parse_retry_after(headers.get("Retry-After") if headers else None)
            logger.warning(f"{self.provider_id} rate limit exceeded, suggested wait {wait_ms}ms")
            raise RateLimitedError(ErrorMessages.RATE_LIMITED.format(wait_ms), wait_ms)
        if not 200 <= status < 300:
            raise ProviderError(ErrorMessages.PROVIDER_HTTP.format(status), status_code=status)


class PointQueryProvider(ElevationProvider):
    """OpenTopoData: paced per-point queries under a daily quota."""

    provider_id = ElevationProviderId.OPENTOPODATA
    paced = True

    def __init__(
        self,
        settings: ElevationSettings,
        context: AcquisitionContext,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] | None = None,
    ) -> None:
        super().__init__(settings, context, sleep)
        self._clock = clock
        self.dataset = ELEVATION_PROVIDERS[self.provider_id]["dataset"]

    def _now(self) -> float:
        if self._clock is not None:
            return self._clock()
        return asyncio.get_running_loop().time()

    async def _pace(self) -> None:
        # The slot is reserved before sleeping so concurrent callers queue up
        ctx = self.context
        now = self._now()
        slot = now
        if ctx.last_request_time is not None:
            slot = max(now, ctx.last_request_time + MIN_REQUEST_INTERVAL_MS / 1000.0)
        ctx.last_request_time = slot
        if slot > now:
            wait_ms = (slot - now) * 1000.0
            logger.debug(f"Rate limit protection: waiting {wait_ms:.0f}ms before request")
            await self._sleep(slot - now)

    async def fetch(self, coord: Coordinate) -> ElevationSample:
        ctx = self.context
        ctx.roll_day()
        if ctx.quota_exhausted:
            logger.error(f"Daily {self.provider_id} request limit exceeded")
            raise QuotaExceededError(
                ErrorMessages.QUOTA_EXCEEDED.format(ctx.max_daily_requests)
            )

        # Counted before pacing so concurrent callers see the reservation
        ctx.daily_request_count += 1
        await self._pace()

        url = f"{self.base_url}{self.dataset}"
        status, headers, body = await self._get(
            url,
            {"locations": f"{coord.latitude},{coord.longitude}"},
            "application/json",
        )
        self._raise_for_status(status, headers)

        try:
            parsed = OpenTopoDataResponse.model_validate_json(body)
        except ValidationError as e:
            raise ProviderError(ErrorMessages.MALFORMED_RESPONSE.format(self.provider_id, e)) from e

        if parsed.error or not parsed.results:
            raise ProviderError(
                parsed.error or ErrorMessages.NO_RESULTS.format(coord.latitude, coord.longitude)
            )

        elevation = parsed.results[0].elevation
        if elevation is None:
            raise WaterIndicatedError(
                ErrorMessages.WATER_INDICATED.format(coord.latitude, coord.longitude)
            )

        return ElevationSample(coordinate=coord, elevation=float(round(elevation)))


class TerrainTileProvider(ElevationProvider):
    """Mapbox Terrain-DEM: decoded terrain-RGB tiles shared through the tile cache."""

    provider_id = ElevationProviderId.MAPBOX
    paced = False

    def __init__(
        self,
        settings: ElevationSettings,
        context: AcquisitionContext,
        sleep: SleepFn = asyncio.sleep,
        zoom: int = TILE_ZOOM,
        tile_size: int = TILE_SIZE,
    ) -> None:
        super().__init__(settings, context, sleep)
        self.zoom = zoom
        self.tile_size = tile_size
        self.tileset = ELEVATION_PROVIDERS[self.provider_id]["tileset"]

    def _api_key(self) -> str:
        if not self.settings.api_key:
            raise MissingApiKeyError(
                ErrorMessages.MISSING_API_KEY.format(ELEVATION_PROVIDERS[self.provider_id]["name"])
            )
        return self.settings.api_key

    def _tile_url(self, key: TileKey) -> str:
        return f"{self.base_url}v4/{self.tileset}/{key.zoom}/{key.x}/{key.y}@2x.pngraw"

    def _extract(self, tile: CachedTile, coord: Coordinate, key: TileKey) -> float:
        px, py = position_in_tile(
            coord.latitude, coord.longitude, key.zoom, key.x, key.y, tile.width
        )
        return float(round(decode_elevation(tile, px, py)))

    async def fetch(self, coord: Coordinate) -> ElevationSample:
        key = tile_key_for(coord.latitude, coord.longitude, self.zoom)

        cached = self.context.tile_cache.get(key)
        if cached is not None:
            return ElevationSample(
                coordinate=coord,
                elevation=self._extract(cached, coord, key),
                from_cache=True,
            )

        api_key = self._api_key()
        pending = self.context.pending_tiles
        task = pending.get(key)
        shared = task is not None
        if task is None:
            task = asyncio.create_task(self._download_tile(key, api_key))
            pending[key] = task

        tile = await task
        return ElevationSample(
            coordinate=coord,
            elevation=self._extract(tile, coord, key),
            from_cache=shared,
        )

    async def _download_tile(self, key: TileKey, api_key: str) -> CachedTile:
        try:
            status, headers, body = await self._get(
                self._tile_url(key), {"access_token": api_key}, "image/png"
            )
            self._raise_for_status(status, headers)
            tile = decode_tile(body, key)
        finally:
            self.context.pending_tiles.pop(key, None)

        self.context.tile_cache.put(key, tile)
        logger.debug(f"Cached tile {key} ({len(self.context.tile_cache)} tiles cached)")
        return tile

    async def query_water(self, coord: Coordinate) -> bool | None:
        api_key = self._api_key()
        url = MAPBOX_TILEQUERY_URL.format(lon=coord.longitude, lat=coord.latitude)
        status, headers, body = await self._get(
            url,
            {"radius": TILEQUERY_RADIUS_M, "layers": TILEQUERY_LAYER, "access_token": api_key},
            "application/json",
        )
        self._raise_for_status(status, headers)
        try:
            parsed = TilequeryResponse.model_validate_json(body)
        except ValidationError as e:
            raise ProviderError(ErrorMessages.MALFORMED_RESPONSE.format("tilequery", e)) from e
        return len(parsed.features) > 0


def decode_tile(data: bytes, key: TileKey | None = None) -> CachedTile:
    """Decode PNG bytes into an RGBA CachedTile."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            pixels = np.asarray(img.convert("RGBA"), dtype=np.uint8)
    except Exception as e:
        raise TileDecodeError(ErrorMessages.TILE_DECODE.format(key, e)) from e
    if pixels.ndim != 3 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise TileDecodeError(ErrorMessages.TILE_DECODE.format(key, "empty raster"))
    return CachedTile(pixels=pixels)


_PROVIDERS: dict[str, type[ElevationProvider]] = {
    ElevationProviderId.OPENTOPODATA: PointQueryProvider,
    ElevationProviderId.MAPBOX: TerrainTileProvider,
}


def get_provider(
    settings: ElevationSettings,
    context: AcquisitionContext,
    sleep: SleepFn = asyncio.sleep,
) -> ElevationProvider:
    """Instantiate the provider named in settings."""
    provider_cls = _PROVIDERS.get(settings.provider.lower())
    if provider_cls is None:
        raise UnknownProviderError(
            ErrorMessages.UNKNOWN_PROVIDER.format(settings.provider, ", ".join(ALL_PROVIDER_IDS))
        )
    return provider_cls(settings, context, sleep=sleep)
