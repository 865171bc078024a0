"""
Marker-pen stroke synthesis.

A contour is drawn as several overlapping, semi-transparent strokes. Each
stroke follows one of three hand-drawn variations of the contour: resampled,
smoothed, then perturbed with value noise whose amplitude follows a sine
curve along the line and grows at sharp turns. All randomness comes from the
supplied ValueNoise, so output is fully determined by its seed.
"""

import logging
import math
from collections.abc import Sequence

from ..constants import MARKER_PEN_CONFIG
from ..core.noise import ValueNoise
from .canvas import Canvas, Point, quadratic_points

logger = logging.getLogger(__name__)


def smooth_points(points: Sequence[Point]) -> list[Point]:
    """Weighted 0.15 / 0.7 / 0.15 running average; endpoints are kept."""
    if len(points) < 3:
        return list(points)

    smoothed = [points[0]]
    for prev, curr, nxt in zip(points, points[1:], points[2:]):
        smoothed.append(
            (
                prev[0] * 0.15 + curr[0] * 0.7 + nxt[0] * 0.15,
                prev[1] * 0.15 + curr[1] * 0.7 + nxt[1] * 0.15,
            )
        )
    smoothed.append(points[-1])
    return smoothed


def _turn_variation(prev: Point, curr: Point, nxt: Point) -> float:
    dx1, dy1 = curr[0] - prev[0], curr[1] - prev[1]
    dx2, dy2 = nxt[0] - curr[0], nxt[1] - curr[1]
    len1 = math.hypot(dx1, dy1) or 1.0
    len2 = math.hypot(dx2, dy2) or 1.0
    dot = (dx1 * dx2 + dy1 * dy2) / (len1 * len2)
    return 1.0 + (1.0 - abs(dot)) * 1.3


def hand_drawn_path(
    points: Sequence[Point],
    noise: ValueNoise,
    seed: float,
    offset: float = 0.0,
    scale_factor: float = 1.0,
) -> list[Point]:
    """
    Resample, smooth and perturb a contour.

    Args:
        points: Contour vertices
        noise: Noise source
        seed: Per-variation seed (shifts the noise domain)
        offset: Variation index (shifts the noise domain vertically)
        scale_factor: Output scale relative to the base render size

    Returns:
        Perturbed vertices (empty for empty input)
    """
    if not points:
        return []

    target = MARKER_PEN_CONFIG["base_point_count"] * math.sqrt(scale_factor)
    rate = max(1, int(len(points) / target))
    sampled = list(points[::rate])
    if sampled[-1] is not points[-1]:
        sampled.append(points[-1])

    smoothed = smooth_points(sampled)
    last = len(smoothed) - 1
    wobble_amount = MARKER_PEN_CONFIG["wobble_amount"] / math.sqrt(scale_factor) * 0.85

    result = []
    for i, (x, y) in enumerate(smoothed):
        t = i / last if last > 0 else 0.0
        wobble = math.sin(t * math.pi) * wobble_amount

        noise_x = noise.get(t * 2 + seed * 0.1, offset * 2) * 2 - 1
        noise_y = noise.get(t * 2 + seed * 0.1 + 100, offset * 2 + 200) * 2 - 1

        variation = 1.0
        if 0 < i < last:
            variation = _turn_variation(smoothed[i - 1], smoothed[i], smoothed[i + 1])

        result.append(
            (
                x + noise_x * wobble * variation * 0.6 * scale_factor,
                y + noise_y * wobble * variation * 0.7 * scale_factor,
            )
        )
    return result


def draw_occlusion_mask(
    canvas: Canvas,
    contour: Sequence[Point],
    padding: float,
    scale_factor: float = 1.0,
) -> None:
    """Fill the region below a contour so nearer lines hide farther ones."""
    if not contour:
        return
    end_cap = MARKER_PEN_CONFIG["end_cap_size"] * scale_factor
    last = len(contour) - 1

    polygon: list[Point] = [(padding, canvas.height)]
    for i, (x, y) in enumerate(contour):
        if i == 0:
            polygon.append((x - end_cap, y))
        elif i == last:
            polygon.append((x + end_cap, y))
        else:
            polygon.append((x, y))
    polygon.append((canvas.width - padding, canvas.height))
    canvas.fill_polygon(polygon, MARKER_PEN_CONFIG["mask_color"])


def draw_marker_line(
    canvas: Canvas,
    contour: Sequence[Point],
    line_index: int,
    total_lines: int,
    noise: ValueNoise,
    padding: float,
    scale_factor: float = 1.0,
    mask: bool = False,
) -> int:
    """
    Draw one contour with the marker-pen effect.

    Nearer lines (higher ``line_index``) are wider and more opaque.

    Returns:
        Number of strokes drawn
    """
    if not contour:
        logger.warning(f"No points for contour line {line_index}")
        return 0

    if mask:
        draw_occlusion_mask(canvas, contour, padding, scale_factor)

    position = line_index / (total_lines - 1) if total_lines > 1 else 1.0
    line_seed = line_index * 100

    width_min, width_max = MARKER_PEN_CONFIG["base_width"]
    position_width = (width_min + (width_max - width_min) * position**0.7) * scale_factor
    base_width = position_width * (0.9 + noise.get(line_seed, 0) * 0.2)

    count_min, count_max = MARKER_PEN_CONFIG["stroke_count"]
    stroke_count = math.floor(count_min + (count_max - count_min) * noise.get(line_seed + 50, 0))
    stroke_count = min(count_max, max(count_min, stroke_count))

    opacity_min, opacity_max = MARKER_PEN_CONFIG["opacity"]
    base_opacity = opacity_min + (opacity_max - opacity_min) * (position * 0.7 + 0.3)

    variations = []
    for v in range(MARKER_PEN_CONFIG["path_variations"]):
        path = hand_drawn_path(contour, noise, line_seed + v * 1000, v, scale_factor)
        if path:
            variations.append(path)

    drawn = 0
    for s in range(stroke_count):
        ratio = s / (stroke_count - 1) if stroke_count > 1 else 0.5
        center = ratio * 2 - 1
        path = variations[min(len(variations) - 1, int(ratio * len(variations)))]
        if len(path) < 2:
            continue

        _draw_stroke(
            canvas,
            path,
            width=base_width * (1.0 - 0.2 * abs(center)),
            opacity=max(0.2, base_opacity - abs(center) * 0.15),
            h_offset=center * base_width * MARKER_PEN_CONFIG["stroke_overlap"],
            v_offset=center * 0.6 * scale_factor,
            stroke_index=s,
            line_index=line_index,
            noise=noise,
            scale_factor=scale_factor,
        )
        drawn += 1
    return drawn


def _draw_stroke(
    canvas: Canvas,
    path: Sequence[Point],
    width: float,
    opacity: float,
    h_offset: float,
    v_offset: float,
    stroke_index: int,
    line_index: int,
    noise: ValueNoise,
    scale_factor: float,
) -> None:
    curve_interval = math.floor(math.sqrt(scale_factor))
    jitter = MARKER_PEN_CONFIG["control_point_randomness"] * scale_factor
    last = len(path) - 1

    vertices: list[Point] = [(path[0][0] + h_offset, path[0][1] + v_offset)]
    widths: list[float] = []
    last_curve = False

    for j in range(1, len(path)):
        prev, curr = path[j - 1], path[j]
        progress = j / last

        segment_seed = j * 0.03 + stroke_index * 0.7 + line_index * 0.13
        segment_noise = noise.get(segment_seed, segment_seed * 0.5)
        segment_width = width * (0.85 + segment_noise * 0.3 * math.sin(progress * math.pi))

        # no curves below scale 1
        use_curve = curve_interval > 0 and j % curve_interval == 0 and not last_curve
        last_curve = use_curve

        end = (curr[0] + h_offset, curr[1] + v_offset)
        if use_curve:
            cx = prev[0] + (curr[0] - prev[0]) * 0.5 + (
                noise.get(j + stroke_index * 0.3, line_index * 0.25) * 2 - 1
            ) * jitter
            cy = prev[1] + (curr[1] - prev[1]) * 0.5 + (
                noise.get(j + stroke_index * 0.5, line_index * 0.35) * 2 - 1
            ) * jitter
            flattened = quadratic_points(vertices[-1], (cx + h_offset, cy + v_offset), end)
            vertices.extend(flattened)
            widths.extend([segment_width] * len(flattened))
        else:
            vertices.append(end)
            widths.append(segment_width)

    canvas.stroke_path(
        vertices, MARKER_PEN_CONFIG["color"], widths, alpha=opacity, round_cap=True
    )
