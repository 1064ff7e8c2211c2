"""Height field generation pipeline and surface queries."""

import logging
import math

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import ndimage

from .config import RiverConfig, TerrainConfig
from .exceptions import InvalidDimensionsError, MeshNotGeneratedError
from .mesh import TerrainMesh, build_mesh
from .noise import PerlinNoise

logger = logging.getLogger(__name__)

# 3x3 Moore neighbourhood
_NEIGHBOURHOOD = np.ones((3, 3), dtype=np.float64)

# Grid coordinates this close to an integer are treated as lying on it
GRID_SNAP_TOLERANCE = 1e-9


def snap_to_grid(grid: ArrayLike) -> NDArray[np.float64]:
    """Round grid coordinates that differ from an integer only by division error.

    world / scale can land a few ULPs off the sample it names (3 * 0.1 / 0.1
    is 3.0000000000000004), which would give a non-zero interpolation
    fraction or even the neighbouring cell.
    """
    grid = np.asarray(grid, dtype=np.float64)
    nearest = np.round(grid)
    return np.where(np.abs(grid - nearest) <= GRID_SNAP_TOLERANCE, nearest, grid)


def box_smooth(elevations: NDArray[np.float64]) -> NDArray[np.float64]:
    """One pass of 3x3 mean smoothing.

    Every cell becomes the mean of the in-bounds cells of its Moore
    neighbourhood, so corners average 4 cells and edges 6. Reads only the
    input array and returns a new one.

    Args:
        elevations: 2D elevation array.

    Returns:
        Smoothed copy.
    """
    sums = ndimage.convolve(elevations, _NEIGHBOURHOOD, mode="constant", cval=0.0)
    counts = ndimage.convolve(
        np.ones_like(elevations), _NEIGHBOURHOOD, mode="constant", cval=0.0
    )
    return sums / counts


def river_profile(
    width: int,
    depth: int,
    river: RiverConfig,
) -> NDArray[np.float64]:
    """Compute the depth carved at each cell by a meandering river.

    The channel centre follows z = depth / 2 + meander * sin(frequency * x / width).
    Within river.width cells of the centre the cut is river.depth * influence^2,
    with influence falling linearly from 1 at the centre to 0 at the bank.

    Args:
        width: Samples along x.
        depth: Samples along z.
        river: River parameters.

    Returns:
        Non-negative array of shape (width, depth) to subtract from elevations.
    """
    xs = np.arange(width, dtype=np.float64)[:, np.newaxis]
    zs = np.arange(depth, dtype=np.float64)[np.newaxis, :]

    center = depth / 2 + river.meander * np.sin(river.frequency * xs / width)
    distance = np.abs(zs - center)

    influence = np.where(distance < river.width, 1.0 - distance / river.width, 0.0)
    return river.depth * influence * influence


class HeightField:
    """Grid of elevation samples with a derived render mesh.

    Elevations are stored as a (width, height) array indexed [x, z]. The
    mesh is rebuilt on demand and dropped whenever elevations change.
    """

    def __init__(
        self,
        width: int,
        height: int,
        scale: float = 1.0,
        height_scale: float = 1.0,
    ):
        if width < 2 or height < 2:
            raise InvalidDimensionsError(
                f"Height field needs at least 2x2 samples, got {width}x{height}"
            )
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")

        self.width = width
        self.height = height
        self.scale = scale
        self.height_scale = height_scale

        self._elevations = np.zeros((width, height), dtype=np.float64)
        self._mesh: TerrainMesh | None = None

    @classmethod
    def generate_from_config(cls, config: TerrainConfig) -> "HeightField":
        """Create a height field and run the full pipeline from a config."""
        field = cls(
            config.width,
            config.height,
            scale=config.scale,
            height_scale=config.height_scale,
        )
        field.generate(
            config.seed,
            config.noise.noise_scale,
            config.noise.octaves,
            config.noise.persistence,
            smoothing_iterations=config.smoothing.iterations,
            river=config.river,
        )
        return field

    @property
    def elevations(self) -> NDArray[np.float64]:
        """Read-only view of the raw (unscaled) elevations."""
        view = self._elevations.view()
        view.flags.writeable = False
        return view

    @property
    def mesh(self) -> TerrainMesh | None:
        """Mesh built by the last generate_mesh() call, or None if stale."""
        return self._mesh

    def require_mesh(self) -> TerrainMesh:
        """Return the current mesh.

        Raises:
            MeshNotGeneratedError: If elevations changed since the last build.
        """
        if self._mesh is None:
            raise MeshNotGeneratedError(
                "Mesh has not been generated; call generate() or generate_mesh() first"
            )
        return self._mesh

    @property
    def bounds(self) -> tuple[float, float]:
        """World-space extent along x and z."""
        return ((self.width - 1) * self.scale, (self.height - 1) * self.scale)

    @property
    def center(self) -> tuple[float, float]:
        """World-space (x, z) centre of the terrain."""
        extent_x, extent_z = self.bounds
        return (extent_x / 2, extent_z / 2)

    @property
    def min_height(self) -> float:
        return float(self._elevations.min() * self.height_scale)

    @property
    def max_height(self) -> float:
        return float(self._elevations.max() * self.height_scale)

    def set_elevations(self, elevations: ArrayLike) -> None:
        """Replace all elevations with a (width, height) array.

        Raises:
            ValueError: If the array shape doesn't match the field.
        """
        data = np.array(elevations, dtype=np.float64)
        if data.shape != (self.width, self.height):
            raise ValueError(
                f"Expected elevations of shape {(self.width, self.height)}, got {data.shape}"
            )
        self._swap(data)

    def generate(
        self,
        seed: int,
        noise_scale: float,
        octaves: int,
        persistence: float,
        *,
        smoothing_iterations: int = 3,
        river: RiverConfig | None = None,
    ) -> None:
        """Run the full generation pipeline and rebuild the mesh.

        Args:
            seed: Noise seed.
            noise_scale: Noise periods spanned by the whole field.
            octaves: Number of noise octaves.
            persistence: Amplitude multiplier per octave.
            smoothing_iterations: Number of 3x3 mean passes.
            river: River parameters (defaults to RiverConfig()).
        """
        if river is None:
            river = RiverConfig()

        logger.info(
            f"Generating {self.width}x{self.height} height field with seed {seed}"
        )

        logger.info("Stage A: Sampling noise...")
        self.fill_noise(PerlinNoise(seed), noise_scale, octaves, persistence)

        logger.info(f"Stage B: Smoothing ({smoothing_iterations} iterations)...")
        self.smooth(smoothing_iterations)

        if river.enabled:
            logger.info("Stage C: Carving river...")
            self.carve_river(river)

        logger.info("Stage D: Building mesh...")
        self.generate_mesh()

        logger.info(
            f"Elevation range: {self._elevations.min():.3f} to {self._elevations.max():.3f}"
        )

    def fill_noise(
        self,
        noise: PerlinNoise,
        noise_scale: float,
        octaves: int,
        persistence: float,
    ) -> None:
        """Overwrite elevations with octave noise sampled on the z = 0 plane."""
        xs = np.arange(self.width, dtype=np.float64) / self.width * noise_scale
        zs = np.arange(self.height, dtype=np.float64) / self.height * noise_scale
        grid_x, grid_z = np.meshgrid(xs, zs, indexing="ij")

        self._swap(noise.octave_noise(grid_x, grid_z, 0.0, octaves, persistence))

    def smooth(self, iterations: int = 3) -> None:
        """Apply 3x3 mean smoothing the given number of times."""
        current = self._elevations
        for _ in range(iterations):
            current = box_smooth(current)
        self._swap(current)

    def carve_river(self, river: RiverConfig | None = None) -> None:
        """Lower elevations along a meandering river channel."""
        if river is None:
            river = RiverConfig()
        cut = river_profile(self.width, self.height, river)
        logger.debug(f"River cuts {np.count_nonzero(cut)} cells")
        self._swap(self._elevations - cut)

    def generate_mesh(self) -> TerrainMesh:
        """Rebuild the mesh from the current elevations."""
        self._mesh = build_mesh(self._elevations, self.scale, self.height_scale)
        return self._mesh

    def get_height_at(self, world_x: float, world_z: float) -> float:
        """Interpolated terrain height at a world position.

        Uses the same scale factors as the mesh, so grid-aligned queries
        return vertex heights exactly.

        Args:
            world_x: World x coordinate.
            world_z: World z coordinate.

        Returns:
            Bilinearly interpolated height, or 0.0 outside the terrain.
        """
        grid_x = float(snap_to_grid(world_x / self.scale))
        grid_z = float(snap_to_grid(world_z / self.scale))

        if not (0 <= grid_x < self.width - 1 and 0 <= grid_z < self.height - 1):
            return 0.0

        x0 = math.floor(grid_x)
        z0 = math.floor(grid_z)
        fx = grid_x - x0
        fz = grid_z - z0

        e = self._elevations
        near = e[x0, z0] + (e[x0 + 1, z0] - e[x0, z0]) * fx
        far = e[x0, z0 + 1] + (e[x0 + 1, z0 + 1] - e[x0, z0 + 1]) * fx
        return float((near + (far - near) * fz) * self.height_scale)

    def get_heights_at(self, world_x: ArrayLike, world_z: ArrayLike) -> NDArray[np.float64]:
        """Vectorized get_height_at over arrays of world coordinates."""
        grid_x, grid_z = np.broadcast_arrays(
            snap_to_grid(np.asarray(world_x, dtype=np.float64) / self.scale),
            snap_to_grid(np.asarray(world_z, dtype=np.float64) / self.scale),
        )
        inside = (
            (grid_x >= 0)
            & (grid_x < self.width - 1)
            & (grid_z >= 0)
            & (grid_z < self.height - 1)
        )

        # Clamp outside points to a valid cell; they are masked afterwards
        x0 = np.where(inside, np.floor(grid_x), 0).astype(np.int64)
        z0 = np.where(inside, np.floor(grid_z), 0).astype(np.int64)
        fx = np.where(inside, grid_x - x0, 0.0)
        fz = np.where(inside, grid_z - z0, 0.0)

        e = self._elevations
        near = e[x0, z0] + (e[x0 + 1, z0] - e[x0, z0]) * fx
        far = e[x0, z0 + 1] + (e[x0 + 1, z0 + 1] - e[x0, z0 + 1]) * fx
        heights = (near + (far - near) * fz) * self.height_scale
        return np.where(inside, heights, 0.0)

    def _swap(self, elevations: NDArray[np.float64]) -> None:
        """Install a new elevation buffer and invalidate the mesh."""
        self._elevations = elevations
        self._mesh = None
