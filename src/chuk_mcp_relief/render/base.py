"""
Shared render types: points, options and the renderer interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..constants import (
    DEFAULT_BACKGROUND,
    DEFAULT_NOISE_SEED,
    DEFAULT_STYLE,
    RENDER_SIZE,
)
from ..core.geodesy import Coordinate
from .canvas import Canvas


@dataclass
class ElevationPoint:
    """An elevation sample placed on the canvas."""

    x: float
    y: float
    elevation: float
    normalized_elevation: float  # [0, 1] against the sample set's min/max
    coordinate: Coordinate | None = None


@dataclass
class RenderOptions:
    style: str = DEFAULT_STYLE
    width: int = RENDER_SIZE
    height: int = RENDER_SIZE
    background: str = DEFAULT_BACKGROUND
    padding: float = 0.0
    invert_y: bool = True
    scale_factor: float = 1.0
    contour_lines: int | None = None
    contour_width: float | None = None
    grid_resolution: int | None = None
    show_debug_text: bool = False
    seed: int = DEFAULT_NOISE_SEED


class Renderer(ABC):
    """Draws elevation points onto a canvas in place."""

    name: str = ""

    @abstractmethod
    def render(self, canvas: Canvas, points: list[ElevationPoint], options: RenderOptions) -> None:
        """Draw ``points``. Must tolerate an empty list."""
