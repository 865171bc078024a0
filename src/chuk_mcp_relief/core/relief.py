"""
Relief rendering entry point: normalization and style dispatch.
"""

import logging
from collections.abc import Sequence

from ..constants import ALL_STYLES, FALLBACK_STYLE, ErrorMessages, RenderStyle
from ..errors import EmptyPointSetError
from ..render.base import ElevationPoint, Renderer, RenderOptions
from ..render.canvas import Canvas
from ..render.dotgrid import DotGridRenderer
from ..render.graph import GraphRenderer
from ..render.perspective import PerspectiveRenderer
from ..render.transform import make_transformer
from .geodesy import BoundingBox
from .providers import ElevationSample

logger = logging.getLogger(__name__)


def resolve_style(style: str | None) -> str:
    """Map a style name onto a known style; unknown names become dotgrid."""
    if style in ALL_STYLES:
        return style
    logger.warning(f"Unknown style '{style}', falling back to {FALLBACK_STYLE}")
    return FALLBACK_STYLE


def create_renderer(style: str, seed: int | None = None) -> Renderer:
    style = resolve_style(style)
    if style == RenderStyle.PERSPECTIVE:
        return PerspectiveRenderer(seed)
    if style == RenderStyle.GRAPH:
        return GraphRenderer()
    return DotGridRenderer()


def normalize_samples(
    samples: Sequence[ElevationSample],
    bbox: BoundingBox,
    width: int,
    height: int,
    padding: float = 0.0,
    invert_y: bool = True,
) -> list[ElevationPoint]:
    """
    Place samples on the canvas and rescale elevations into [0, 1].

    The lowest sample maps to 0 and the highest to 1; when every sample has
    the same elevation all of them get 0.5.
    """
    if not samples:
        return []

    transform = make_transformer(bbox, width, height, padding, invert_y)
    elevations = [s.elevation for s in samples]
    low, high = min(elevations), max(elevations)
    elevation_range = high - low
    logger.info(f"Elevation range: {low}m to {high}m")

    points = []
    for sample in samples:
        x, y = transform(sample.coordinate)
        normalized = (sample.elevation - low) / elevation_range if elevation_range > 0 else 0.5
        points.append(
            ElevationPoint(
                x=x,
                y=y,
                elevation=sample.elevation,
                normalized_elevation=normalized,
                coordinate=sample.coordinate,
            )
        )
    return points


def render_relief(
    samples: Sequence[ElevationSample],
    bbox: BoundingBox,
    options: RenderOptions,
    renderer: Renderer | None = None,
) -> Canvas:
    """
    Render samples into a new canvas.

    Args:
        samples: Elevation samples inside ``bbox``
        bbox: Geographic extent of the image
        options: Size, style and tuning options
        renderer: Pre-built renderer (one is created from ``options.style`` otherwise)

    Returns:
        The drawn canvas

    Raises:
        EmptyPointSetError: if ``samples`` is empty
    """
    if not samples:
        raise EmptyPointSetError(ErrorMessages.EMPTY_POINTS)

    canvas = Canvas(options.width, options.height, options.background)
    points = normalize_samples(
        samples, bbox, options.width, options.height, options.padding, options.invert_y
    )
    renderer = renderer or create_renderer(options.style, options.seed)
    logger.info(f"Rendering {len(points)} points with {renderer.name} renderer")
    renderer.render(canvas, points, options)
    return canvas
