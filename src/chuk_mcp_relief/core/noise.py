"""
Seeded 2D value noise.

``ValueNoise(seed).get(x, y)`` is a pure function of (seed, x, y): a
sine-based lattice hash, smoothstep interpolation between the four lattice
corners and three octaves weighted 0.6 / 0.3 / 0.1. The hash keeps the sign
of ``sin``, so values fall roughly in (-1, 1) rather than [0, 1].
"""

import math

from ..constants import (
    DEFAULT_NOISE_SEED,
    NOISE_HASH_MULTIPLIER,
    NOISE_LATTICE_X,
    NOISE_LATTICE_Y,
    NOISE_OCTAVES,
)


class ValueNoise:
    """Deterministic multi-octave value noise."""

    def __init__(self, seed: float = DEFAULT_NOISE_SEED):
        self.seed = float(seed)

    @staticmethod
    def _hash(x: float) -> float:
        # fmod keeps the sign of the dividend
        return math.fmod(math.sin(x) * NOISE_HASH_MULTIPLIER, 1.0)

    def _corner(self, ix: float, iy: float) -> float:
        return self._hash((ix + self.seed) * NOISE_LATTICE_X + (iy + self.seed) * NOISE_LATTICE_Y)

    def noise2d(self, x: float, y: float) -> float:
        nx = math.floor(x)
        ny = math.floor(y)
        fx = x - nx
        fy = y - ny

        a = self._corner(nx, ny)
        b = self._corner(nx + 1, ny)
        c = self._corner(nx, ny + 1)
        d = self._corner(nx + 1, ny + 1)

        sx = fx * fx * (3 - 2 * fx)
        sy = fy * fy * (3 - 2 * fy)

        return a + (b - a) * sx + (c - a) * sy + (a - b - c + d) * sx * sy

    def get(self, x: float, y: float) -> float:
        """Sum of the octaves at (x, y)."""
        return sum(self.noise2d(x * freq, y * freq) * weight for freq, weight in NOISE_OCTAVES)
