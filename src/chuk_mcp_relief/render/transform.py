"""
Coordinate-to-canvas transformer.

Linear map from a geographic bounding box into the padded drawing rectangle.
"""

from collections.abc import Callable
from typing import NamedTuple

from ..constants import ErrorMessages
from ..core.geodesy import BoundingBox, Coordinate


class CanvasPoint(NamedTuple):
    x: float
    y: float


def make_transformer(
    bbox: BoundingBox,
    width: int,
    height: int,
    padding: float = 0.0,
    invert_y: bool = True,
) -> Callable[[Coordinate], CanvasPoint]:
    """
    Build a Coordinate -> CanvasPoint projection.

    Args:
        bbox: Geographic extent mapped onto the drawing rectangle
        width: Canvas width in pixels
        height: Canvas height in pixels
        padding: Margin on every side
        invert_y: Increasing latitude moves toward the top of the canvas

    Raises:
        ValueError: if the bounding box has zero width or height
    """
    lat_range = bbox.max_lat - bbox.min_lat
    lon_range = bbox.max_lon - bbox.min_lon
    if lat_range == 0 or lon_range == 0:
        raise ValueError(ErrorMessages.DEGENERATE_BBOX)

    effective_width = width - padding * 2
    effective_height = height - padding * 2

    def transform(coord: Coordinate) -> CanvasPoint:
        norm_x = (coord.longitude - bbox.min_lon) / lon_range
        norm_y = (coord.latitude - bbox.min_lat) / lat_range
        if invert_y:
            norm_y = 1 - norm_y
        return CanvasPoint(padding + norm_x * effective_width, padding + norm_y * effective_height)

    return transform
