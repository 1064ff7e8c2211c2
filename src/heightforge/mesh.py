"""Triangulation of height fields into indexed render meshes."""

import logging
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

# Y component of every central-difference normal before normalization
NORMAL_UP_COMPONENT = 2.0


@dataclass(frozen=True, eq=False)
class TerrainMesh:
    """Indexed triangle-list mesh built from a height field.

    Vertex i corresponds to grid cell (x, z) with i = x * depth + z, where
    depth is the number of samples along z.
    """

    positions: NDArray[np.float64]
    normals: NDArray[np.float64]
    uvs: NDArray[np.float64]
    indices: NDArray[np.uint32]

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def index_count(self) -> int:
        return len(self.indices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def triangles(self) -> NDArray[np.uint32]:
        """Indices grouped as (triangle_count, 3)."""
        return self.indices.reshape(-1, 3)

    def interleaved(self) -> NDArray[np.float32]:
        """Pack vertices as px py pz nx ny nz u v rows for upload to a renderer."""
        return np.hstack([self.positions, self.normals, self.uvs]).astype(np.float32)


def compute_normals(elevations: NDArray[np.float64]) -> NDArray[np.float64]:
    """Compute per-sample unit normals by central differences.

    Border samples reuse their own value for the missing neighbour.

    Args:
        elevations: 2D array indexed [x, z].

    Returns:
        Array of shape (width, depth, 3).
    """
    padded = np.pad(elevations, 1, mode="edge")
    left = padded[:-2, 1:-1]
    right = padded[2:, 1:-1]
    back = padded[1:-1, :-2]
    front = padded[1:-1, 2:]

    normals = np.stack(
        [left - right, np.full_like(elevations, NORMAL_UP_COMPONENT), back - front],
        axis=-1,
    )
    normals /= np.linalg.norm(normals, axis=-1, keepdims=True)
    return normals


def build_indices(width: int, depth: int) -> NDArray[np.uint32]:
    """Build the triangle-list index buffer for a width x depth grid.

    Each cell emits (top_left, top_right, bottom_left) and
    (top_right, bottom_right, bottom_left). Cells are visited x-major.

    Args:
        width: Samples along x.
        depth: Samples along z.

    Returns:
        Flat index array of length 6 * (width - 1) * (depth - 1).
    """
    x, z = np.meshgrid(np.arange(width - 1), np.arange(depth - 1), indexing="ij")

    top_left = x * depth + z
    top_right = (x + 1) * depth + z
    bottom_left = top_left + 1
    bottom_right = top_right + 1

    cells = np.stack(
        [top_left, top_right, bottom_left, top_right, bottom_right, bottom_left],
        axis=-1,
    )
    return cells.reshape(-1).astype(np.uint32)


def build_mesh(
    elevations: NDArray[np.float64],
    scale: float,
    height_scale: float,
) -> TerrainMesh:
    """Triangulate a height field.

    Args:
        elevations: 2D array indexed [x, z], at least 2x2.
        scale: Horizontal distance between neighbouring samples.
        height_scale: Multiplier applied to elevations for vertex heights.

    Returns:
        TerrainMesh with one vertex per sample.
    """
    width, depth = elevations.shape
    xs, zs = np.meshgrid(
        np.arange(width, dtype=np.float64),
        np.arange(depth, dtype=np.float64),
        indexing="ij",
    )

    positions = np.stack(
        [xs * scale, elevations * height_scale, zs * scale], axis=-1
    ).reshape(-1, 3)
    normals = compute_normals(elevations).reshape(-1, 3)
    uvs = np.stack([xs / (width - 1), zs / (depth - 1)], axis=-1).reshape(-1, 2)
    indices = build_indices(width, depth)

    logger.debug(
        f"Built mesh: {len(positions)} vertices, {len(indices) // 3} triangles"
    )

    return TerrainMesh(positions=positions, normals=normals, uvs=uvs, indices=indices)
