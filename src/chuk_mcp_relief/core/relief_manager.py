"""
Relief Manager: central orchestrator for relief generation.

Owns the acquisition context and elevation provider, runs area validation,
fetches the full-resolution grid, renders, writes the PNG and stores it in
the artifact store when one is configured. Rendering runs in a worker thread
via asyncio.to_thread().
"""

import asyncio
import datetime as dt
import logging
import random
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_fixed

from ..constants import (
    ALL_PROVIDER_IDS,
    ALL_STYLES,
    DEFAULT_CONTOUR_LINES,
    DEFAULT_CONTOUR_WIDTH,
    DEFAULT_NOISE_SEED,
    DEFAULT_RENDER_PADDING,
    ELEVATION_PROVIDERS,
    FALLBACK_STYLE,
    GRID_FETCH_DELAY_MS,
    MAX_GENERATION_ATTEMPTS,
    MIN_VALID_SAMPLES,
    ErrorMessages,
    SuccessMessages,
)
from ..errors import (
    AreaValidationError,
    CenterOnWaterError,
    InsufficientSamplesError,
    NoSuitableLocationFoundError,
    ProviderError,
    QuotaExceededError,
    WaterIndicatedError,
)
from ..models.config import ReliefConfig, load_config
from ..render.base import RenderOptions
from .context import AcquisitionContext, RequestStats
from .geodesy import BoundingBox, Coordinate, bounding_box, coordinate_grid, sort_by_tile
from .providers import ElevationProvider, ElevationSample, SleepFn, get_provider
from .relief import render_relief, resolve_style
from .terrain import RenderParams, TerrainAnalysis, analyze_elevations, derive_render_params
from .validation import SAMPLE_FAILURES, ValidationResult, validate_area
from .water import check_coordinate_is_water, random_land_coordinate

logger = logging.getLogger(__name__)


@dataclass
class ElevationStats:
    min: float
    max: float
    avg: float


@dataclass
class GenerationResult:
    """Result of a relief generation run."""

    file_path: str
    center: Coordinate
    bbox: BoundingBox
    elevation_stats: ElevationStats
    style: str
    timestamp: str
    terrain_type: str
    points_sampled: int
    artifact_ref: str | None = None
    attempts: int = 1
    seed: int = DEFAULT_NOISE_SEED

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _is_transport_failure(exc: BaseException) -> bool:
    return isinstance(exc, ProviderError) and exc.status_code is None


def file_timestamp(now: dt.datetime | None = None) -> str:
    """UTC ISO timestamp safe for file names (``:`` and ``.`` become ``-``)."""
    now = now or dt.datetime.now(dt.timezone.utc)
    iso = now.astimezone(dt.timezone.utc).isoformat(timespec="milliseconds")
    iso = iso.replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


class ReliefManager:
    """Central manager for relief generation."""

    def __init__(
        self,
        config: ReliefConfig | None = None,
        context: AcquisitionContext | None = None,
        provider: ElevationProvider | None = None,
        sleep: SleepFn = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or load_config()
        self.context = context or AcquisitionContext()
        self._sleep = sleep
        self.provider = provider or get_provider(self.config.elevation, self.context, sleep)
        self._rng = rng or random.Random(self.config.system.seed)

    # ------------------------------------------------------------------
    # Discovery (sync, no I/O)
    # ------------------------------------------------------------------

    def list_providers(self) -> list[dict]:
        return [
            {
                "id": p["id"],
                "name": p["name"],
                "kind": p["kind"],
                "requires_api_key": p["requires_api_key"],
                "water_query": p["water_query"],
            }
            for p in ELEVATION_PROVIDERS.values()
        ]

    def describe(self) -> dict:
        """Active configuration summary."""
        return {
            "provider": self.config.elevation.provider,
            "providers": list(ALL_PROVIDER_IDS),
            "styles": list(ALL_STYLES),
            "default_style": self.config.image.default_style,
            "fallback_style": FALLBACK_STYLE,
            "image_size": [self.config.image.width, self.config.image.height],
            "area_size_km": self.config.geographic.area_size_km,
            "resolution": self.config.geographic.resolution,
            "min_elevation_range_m": self.config.geographic.min_elevation_range_m,
            "output_dir": self.config.system.output_dir,
        }

    def request_stats(self) -> RequestStats:
        return self.context.request_stats()

    def classify(
        self, elevations: list[float], style: str | None = None
    ) -> tuple[TerrainAnalysis, RenderParams]:
        """Classify elevations and derive render parameters for a style."""
        analysis = analyze_elevations(elevations)
        style = resolve_style(style or self.config.image.default_style)
        params = derive_render_params(analysis, style)
        logger.info(
            SuccessMessages.TERRAIN_CLASSIFIED.format(
                analysis.terrain_type, analysis.elevation_range
            )
        )
        return analysis, params

    # ------------------------------------------------------------------
    # Validation & acquisition
    # ------------------------------------------------------------------

    async def validate(self, center: Coordinate) -> ValidationResult:
        return await validate_area(center, self.config.geographic, self.provider, self.context)

    async def _fetch_point(self, coord: Coordinate) -> ElevationSample:
        settings = self.config.elevation
        retrying = AsyncRetrying(
            stop=stop_after_attempt(settings.retry_attempts),
            wait=wait_fixed(settings.retry_delay_ms / 1000.0),
            retry=retry_if_exception(_is_transport_failure),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self.provider.fetch_with_retry(coord)
        raise AssertionError("unreachable")  # pragma: no cover

    async def acquire_grid(self, grid: list[Coordinate]) -> list[ElevationSample]:
        """
        Fetch elevations for a grid one coordinate at a time.

        Paced providers wait between requests unless the previous answer came
        from cache. Water points and failed points are skipped; an exhausted
        daily quota stops acquisition with whatever was collected.
        """
        if not self.provider.paced:
            grid = sort_by_tile(grid)
            logger.info("Sorted coordinates by tile for cache reuse")

        samples: list[ElevationSample] = []
        previous_cached = True
        for i, coord in enumerate(grid):
            if i > 0 and self.provider.paced and not previous_cached:
                await self._sleep(GRID_FETCH_DELAY_MS / 1000.0)
            previous_cached = False
            try:
                sample = await self._fetch_point(coord)
            except QuotaExceededError as e:
                logger.error(f"Stopping acquisition after {i} points: {e}")
                break
            except WaterIndicatedError:
                logger.debug(f"Point ({coord.latitude}, {coord.longitude}) is water, skipping")
                continue
            except SAMPLE_FAILURES as e:
                logger.warning(
                    f"Error fetching elevation at ({coord.latitude}, {coord.longitude}): {e}"
                )
                continue
            previous_cached = sample.from_cache
            samples.append(sample)

        stats = self.context.request_stats()
        logger.info(
            f"Retrieved elevation data for {len(samples)}/{len(grid)} points "
            f"({stats.daily_count} requests today, {stats.cached_tiles} tiles cached)"
        )
        return samples

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_from_coordinate(
        self,
        center: Coordinate,
        style: str | None = None,
        seed: int | None = None,
        resolution: int | None = None,
        skip_water_check: bool = False,
        show_debug_text: bool = False,
    ) -> GenerationResult:
        """
        Render a relief image around a coordinate.

        Raises:
            CenterOnWaterError: if the center is water (unless skipped)
            InsufficientSamplesError: if fewer than 3 elevations were collected
        """
        logger.info(f"Generating relief for coordinates: {center.latitude}, {center.longitude}")

        if not skip_water_check:
            water = await check_coordinate_is_water(center, self.context, self.provider)
            if water.is_water:
                raise CenterOnWaterError(
                    ErrorMessages.CENTER_ON_WATER.format(water.method, water.confidence * 100)
                )

        geo = self.config.geographic
        resolution = resolution or geo.resolution
        bbox = bounding_box(center, geo.area_size_km)
        grid = coordinate_grid(center, geo.area_size_km, resolution)
        logger.info(f"Generated grid with {len(grid)} points over {geo.area_size_km}km")

        samples = await self.acquire_grid(grid)
        if len(samples) < MIN_VALID_SAMPLES:
            raise InsufficientSamplesError(
                ErrorMessages.INSUFFICIENT_SAMPLES.format(len(samples), MIN_VALID_SAMPLES),
                len(samples),
            )

        elevations = [s.elevation for s in samples]
        stats = ElevationStats(
            min=min(elevations), max=max(elevations), avg=sum(elevations) / len(elevations)
        )
        analysis = analyze_elevations(elevations)

        resolved_style = resolve_style(style or self.config.image.default_style)
        if seed is None:
            seed = self.config.system.seed
            if seed is None:
                seed = DEFAULT_NOISE_SEED

        image = self.config.image
        options = RenderOptions(
            style=resolved_style,
            width=image.width,
            height=image.height,
            padding=DEFAULT_RENDER_PADDING * image.scale_factor,
            invert_y=True,
            scale_factor=image.scale_factor,
            contour_lines=DEFAULT_CONTOUR_LINES,
            contour_width=DEFAULT_CONTOUR_WIDTH,
            grid_resolution=resolution,
            show_debug_text=show_debug_text,
            seed=seed,
        )

        canvas = await asyncio.to_thread(render_relief, samples, bbox, options)
        png = await asyncio.to_thread(canvas.encode)

        timestamp = file_timestamp()
        file_name = f"relief_{resolved_style}_{timestamp}.png"
        file_path = Path(self.config.system.output_dir) / "images" / file_name
        await asyncio.to_thread(self._write_file, file_path, png)

        artifact_ref = await self._store_image(
            png,
            {
                "type": "relief_image",
                "style": resolved_style,
                "center": [center.latitude, center.longitude],
                "bbox": bbox.as_dict(),
                "terrain_type": analysis.terrain_type,
                "seed": seed,
            },
        )

        logger.info(
            SuccessMessages.GENERATED.format(resolved_style, analysis.terrain_type, file_path)
        )
        return GenerationResult(
            file_path=str(file_path),
            center=center,
            bbox=bbox,
            elevation_stats=stats,
            style=resolved_style,
            timestamp=timestamp,
            terrain_type=analysis.terrain_type,
            points_sampled=len(samples),
            artifact_ref=artifact_ref,
            seed=seed,
        )

    async def generate_random(
        self,
        style: str | None = None,
        seed: int | None = None,
        max_attempts: int = MAX_GENERATION_ATTEMPTS,
    ) -> GenerationResult:
        """
        Pick random land locations until one validates, then render it.

        Raises:
            NoSuitableLocationFoundError: after ``max_attempts`` rejected candidates
        """
        for attempt in range(1, max_attempts + 1):
            center = random_land_coordinate(self.config.geographic, self._rng)
            logger.info(
                f"Attempt {attempt}/{max_attempts}: candidate {center.latitude}, {center.longitude}"
            )

            validation = await self.validate(center)
            if not validation.is_valid:
                logger.info(f"Location rejected: {validation.reason}. Trying again...")
                continue

            try:
                result = await self.generate_from_coordinate(
                    center, style=style, seed=seed, skip_water_check=True
                )
            except AreaValidationError as e:
                logger.info(f"Generation rejected: {e.reason}. Trying again...")
                continue
            result.attempts = attempt
            return result

        raise NoSuitableLocationFoundError(
            ErrorMessages.NO_SUITABLE_LOCATION.format(max_attempts), max_attempts
        )

    async def close(self) -> None:
        """Close the HTTP session, if one was opened."""
        session = self.context.session
        if session is not None:
            await session.close()
            self.context.session = None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def _get_store(self) -> Any:
        """Get the artifact store instance (None when not configured)."""
        from chuk_mcp_server import get_artifact_store

        return get_artifact_store()

    async def _store_image(self, data: bytes, metadata: dict) -> str | None:
        """Store a rendered PNG in the artifact store, if one is configured."""
        store = self._get_store()
        if store is None:
            logger.info("No artifact store configured, image kept on disk only")
            return None
        try:
            ref = f"relief/{uuid.uuid4().hex[:12]}.png"
            await store.store(
                ref,
                data,
                mime_type="image/png",
                metadata=metadata,
                summary=f"Relief image ({metadata.get('style', 'unknown')})",
            )
            return ref
        except Exception as e:
            logger.error(f"Failed to store image: {e}")
            raise
