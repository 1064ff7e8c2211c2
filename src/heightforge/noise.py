"""Coherent gradient noise for terrain generation.

Provides improved Perlin noise with a seeded permutation table and
an fBm-style octave sum on top of it. All functions accept numpy arrays
so whole grids are sampled in one call.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

PERIOD = 256


def fade(t: NDArray[np.float64]) -> NDArray[np.float64]:
    """Quintic smootherstep curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def lerp(t: NDArray[np.float64], a: NDArray[np.float64], b: NDArray[np.float64]) -> NDArray[np.float64]:
    """Linear interpolation from a to b by t."""
    return a + t * (b - a)


def _grad(
    hash_: NDArray[np.int64],
    x: NDArray[np.float64],
    y: NDArray[np.float64],
    z: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Dot product of (x, y, z) with one of the 12 cube-edge gradients.

    The low 4 bits of the hash pick the gradient.
    """
    h = hash_ & 15
    u = np.where(h < 8, x, y)
    v = np.where(h < 4, y, np.where((h == 12) | (h == 14), x, z))
    return np.where((h & 1) == 0, u, -u) + np.where((h & 2) == 0, v, -v)


def build_permutation(seed: int) -> NDArray[np.int64]:
    """Build the doubled 512-entry permutation table for a seed.

    Shuffles 0..255 with Fisher-Yates, drawing each swap index from a
    seeded generator, then repeats the result so lookups of the form
    perm[perm[i] + j] never need to wrap.

    Args:
        seed: Random seed.

    Returns:
        Read-only int64 array of length 512.
    """
    rng = np.random.default_rng(seed)
    p = np.arange(PERIOD, dtype=np.int64)

    for i in range(PERIOD - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        p[i], p[j] = p[j], p[i]

    table = np.concatenate([p, p])
    table.flags.writeable = False
    return table


class PerlinNoise:
    """Seeded improved Perlin noise generator.

    The permutation table is fixed at construction, so sampling is a pure
    function of the input coordinates and the same seed always produces
    the same field.
    """

    def __init__(self, seed: int = 0):
        self.seed = seed
        self._perm = build_permutation(seed)

    @property
    def permutation(self) -> NDArray[np.int64]:
        """The 512-entry lookup table (read-only)."""
        return self._perm

    def noise3(self, x: ArrayLike, y: ArrayLike, z: ArrayLike) -> NDArray[np.float64]:
        """Sample 3D noise at broadcastable coordinate arrays.

        Args:
            x: X coordinates.
            y: Y coordinates.
            z: Z coordinates.

        Returns:
            Noise values in [-1, 1] with the broadcast shape of the inputs.
        """
        x, y, z = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64),
            np.asarray(y, dtype=np.float64),
            np.asarray(z, dtype=np.float64),
        )
        p = self._perm

        x_floor = np.floor(x)
        y_floor = np.floor(y)
        z_floor = np.floor(z)

        # Unit cube containing the point
        xi = x_floor.astype(np.int64) & (PERIOD - 1)
        yi = y_floor.astype(np.int64) & (PERIOD - 1)
        zi = z_floor.astype(np.int64) & (PERIOD - 1)

        # Position inside the cube
        x = x - x_floor
        y = y - y_floor
        z = z - z_floor

        u = fade(x)
        v = fade(y)
        w = fade(z)

        # Hash the 8 cube corners
        a = p[xi] + yi
        aa = p[a] + zi
        ab = p[a + 1] + zi
        b = p[xi + 1] + yi
        ba = p[b] + zi
        bb = p[b + 1] + zi

        result = lerp(
            w,
            lerp(
                v,
                lerp(u, _grad(p[aa], x, y, z), _grad(p[ba], x - 1, y, z)),
                lerp(u, _grad(p[ab], x, y - 1, z), _grad(p[bb], x - 1, y - 1, z)),
            ),
            lerp(
                v,
                lerp(u, _grad(p[aa + 1], x, y, z - 1), _grad(p[ba + 1], x - 1, y, z - 1)),
                lerp(
                    u,
                    _grad(p[ab + 1], x, y - 1, z - 1),
                    _grad(p[bb + 1], x - 1, y - 1, z - 1),
                ),
            ),
        )
        return np.clip(result, -1.0, 1.0)

    def octave_noise(
        self,
        x: ArrayLike,
        y: ArrayLike,
        z: ArrayLike,
        octaves: int,
        persistence: float,
    ) -> NDArray[np.float64]:
        """Sum several octaves of noise at doubling frequencies.

        Each octave's amplitude is the previous one times persistence. The
        sum is divided by the total amplitude, keeping the result in
        roughly [-1, 1].

        Args:
            x: X coordinates.
            y: Y coordinates.
            z: Z coordinates.
            octaves: Number of noise layers (>= 1).
            persistence: Amplitude multiplier between octaves.

        Returns:
            Normalized fractal noise values.

        Raises:
            ValueError: If octaves < 1.
        """
        if octaves < 1:
            raise ValueError(f"octaves must be >= 1, got {octaves}")

        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)

        total = np.zeros(np.broadcast_shapes(x.shape, y.shape, z.shape), dtype=np.float64)
        frequency = 1.0
        amplitude = 1.0
        max_value = 0.0

        for _ in range(octaves):
            total += self.noise3(x * frequency, y * frequency, z * frequency) * amplitude
            max_value += amplitude
            amplitude *= persistence
            frequency *= 2.0

        return total / max_value

    def sample3(self, x: float, y: float, z: float) -> float:
        """Sample noise at a single point."""
        return float(self.noise3(x, y, z))

    def sample_octaves(
        self, x: float, y: float, z: float, octaves: int, persistence: float
    ) -> float:
        """Sample octave noise at a single point."""
        return float(self.octave_noise(x, y, z, octaves, persistence))
