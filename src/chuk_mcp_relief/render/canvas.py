"""
Drawing surface backed by a Pillow RGBA image.

Opaque primitives draw straight onto the image. Semi-transparent strokes are
drawn onto a cropped overlay and alpha-composited, so one stroke never
blends with itself where its segments overlap.
"""

import io
import math
from collections.abc import Sequence
from PIL import Image, ImageColor, ImageDraw, ImageFont

from ..constants import DEFAULT_BACKGROUND

Color = str | tuple[int, int, int]
Point = tuple[float, float]

CURVE_STEPS = 8


def to_rgba(color: Color, alpha: float = 1.0) -> tuple[int, int, int, int]:
    """Resolve a colour name, hex string or RGB tuple to an RGBA tuple."""
    if isinstance(color, str):
        rgb = ImageColor.getrgb(color)[:3]
    else:
        rgb = tuple(color[:3])
    a = int(round(max(0.0, min(1.0, alpha)) * 255))
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]), a)


def quadratic_points(p0: Point, control: Point, p1: Point, steps: int = CURVE_STEPS) -> list[Point]:
    """Flatten a quadratic Bezier into ``steps`` line segments (excluding p0)."""
    points = []
    for k in range(1, steps + 1):
        t = k / steps
        mt = 1 - t
        x = mt * mt * p0[0] + 2 * mt * t * control[0] + t * t * p1[0]
        y = mt * mt * p0[1] + 2 * mt * t * control[1] + t * t * p1[1]
        points.append((x, y))
    return points


class Canvas:
    """Width/height addressable 2D canvas."""

    def __init__(self, width: int, height: int, background: Color = DEFAULT_BACKGROUND):
        if width <= 0 or height <= 0:
            raise ValueError(f"Canvas size must be positive, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.image = Image.new("RGBA", (self.width, self.height), to_rgba(background))

    @property
    def _draw(self) -> ImageDraw.ImageDraw:
        return ImageDraw.Draw(self.image)

    # ------------------------------------------------------------------
    # Fills
    # ------------------------------------------------------------------

    def fill(self, color: Color) -> None:
        self.fill_rect(0, 0, self.width, self.height, color)

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None:
        self._draw.rectangle([x, y, x + w - 1, y + h - 1], fill=to_rgba(color))

    def fill_circle(self, cx: float, cy: float, radius: float, color: Color) -> None:
        box = [cx - radius, cy - radius, cx + radius, cy + radius]
        self._draw.ellipse(box, fill=to_rgba(color))

    def fill_polygon(self, points: Sequence[Point], color: Color) -> None:
        if len(points) < 3:
            return
        self._draw.polygon([(float(x), float(y)) for x, y in points], fill=to_rgba(color))

    # ------------------------------------------------------------------
    # Strokes
    # ------------------------------------------------------------------

    def stroke_line(
        self,
        start: Point,
        end: Point,
        color: Color,
        width: float = 1.0,
        alpha: float = 1.0,
        round_cap: bool = False,
    ) -> None:
        self.stroke_path([start, end], color, [width], alpha=alpha, round_cap=round_cap)

    def stroke_path(
        self,
        points: Sequence[Point],
        color: Color,
        widths: Sequence[float],
        alpha: float = 1.0,
        round_cap: bool = True,
    ) -> None:
        """
        Stroke a polyline.

        Args:
            points: Vertices in canvas pixels
            color: Stroke colour
            widths: One width per segment, or a single width for all of them
            alpha: Stroke opacity in [0, 1]
            round_cap: Draw round caps and joins at every vertex
        """
        if len(points) < 2:
            return
        if len(widths) == 1:
            widths = list(widths) * (len(points) - 1)

        max_width = max(widths)
        margin = max_width / 2 + 2
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        left = max(0, int(math.floor(min(xs) - margin)))
        top = max(0, int(math.floor(min(ys) - margin)))
        right = min(self.width, int(math.ceil(max(xs) + margin)))
        bottom = min(self.height, int(math.ceil(max(ys) + margin)))
        if right <= left or bottom <= top:
            return

        rgba = to_rgba(color, alpha)
        if alpha >= 1.0:
            self._stroke_onto(self._draw, points, widths, rgba, (0, 0), round_cap)
            return

        overlay = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
        self._stroke_onto(ImageDraw.Draw(overlay), points, widths, rgba, (left, top), round_cap)
        self.image.alpha_composite(overlay, dest=(left, top))

    @staticmethod
    def _stroke_onto(
        draw: ImageDraw.ImageDraw,
        points: Sequence[Point],
        widths: Sequence[float],
        rgba: tuple[int, int, int, int],
        origin: tuple[int, int],
        round_cap: bool,
    ) -> None:
        ox, oy = origin
        shifted = [(x - ox, y - oy) for x, y in points]
        for (x0, y0), (x1, y1), w in zip(shifted, shifted[1:], widths):
            pixel_width = max(1, int(round(w)))
            draw.line([(x0, y0), (x1, y1)], fill=rgba, width=pixel_width)
            if round_cap and pixel_width > 2:
                r = w / 2
                draw.ellipse([x0 - r, y0 - r, x0 + r, y0 + r], fill=rgba)
                draw.ellipse([x1 - r, y1 - r, x1 + r, y1 + r], fill=rgba)

    # ------------------------------------------------------------------
    # Text & output
    # ------------------------------------------------------------------

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        color: Color,
        size: int = 12,
        align: str = "left",
    ) -> None:
        """
        Draw text with the bundled default font.

        ``y`` is the bottom of the text; ``align`` is "left" or "center"
        relative to ``x``.
        """
        font = ImageFont.load_default(size=max(1, int(size)))
        draw = self._draw
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        if align == "center":
            x -= (right - left) / 2
        draw.text((x, y - bottom), text, fill=to_rgba(color), font=font)

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        return self.image.getpixel((x, y))

    def encode(self, fmt: str = "PNG") -> bytes:
        """Encode the canvas (PNG by default)."""
        buf = io.BytesIO()
        image = self.image if fmt.upper() == "PNG" else self.image.convert("RGB")
        image.save(buf, format=fmt)
        return buf.getvalue()
