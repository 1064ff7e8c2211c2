"""Post-generation mesh validation."""

import logging

import numpy as np

from .mesh import TerrainMesh

logger = logging.getLogger(__name__)

NORMAL_TOLERANCE = 1e-6


class ValidationResult:
    """Result of mesh validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_mesh(mesh: TerrainMesh, width: int, height: int) -> ValidationResult:
    """Check a generated mesh against the grid it was built from.

    Args:
        mesh: Mesh to check.
        width: Grid samples along x.
        height: Grid samples along z.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    _check_counts(mesh, width, height, result)
    indices_valid = _check_index_range(mesh, result)
    _check_normals(mesh, result)
    _check_uvs(mesh, result)
    if indices_valid:
        _check_degenerate_triangles(mesh, result)

    if result.passed:
        logger.info("Mesh validation passed")
    else:
        logger.warning(f"Mesh validation failed with {len(result.errors)} errors")
        for error in result.errors:
            logger.error(f"  - {error}")

    for warning in result.warnings:
        logger.warning(f"  - {warning}")

    return result


def _check_counts(
    mesh: TerrainMesh, width: int, height: int, result: ValidationResult
) -> None:
    """Check vertex and index counts match the grid."""
    expected_vertices = width * height
    expected_indices = 6 * (width - 1) * (height - 1)

    if mesh.vertex_count != expected_vertices:
        result.add_error(
            f"Vertex count {mesh.vertex_count} != {expected_vertices}"
        )
    if mesh.index_count != expected_indices:
        result.add_error(f"Index count {mesh.index_count} != {expected_indices}")
    if not (len(mesh.normals) == len(mesh.uvs) == mesh.vertex_count):
        result.add_error("Normal/UV arrays don't match vertex count")


def _check_index_range(mesh: TerrainMesh, result: ValidationResult) -> bool:
    """Check every index addresses an existing vertex."""
    if mesh.index_count and int(mesh.indices.max()) >= mesh.vertex_count:
        result.add_error(
            f"Index {int(mesh.indices.max())} out of range for {mesh.vertex_count} vertices"
        )
        return False
    return True


def _check_normals(mesh: TerrainMesh, result: ValidationResult) -> None:
    """Check normals are unit length and point upward."""
    lengths = np.linalg.norm(mesh.normals, axis=1)
    bad = np.count_nonzero(np.abs(lengths - 1.0) > NORMAL_TOLERANCE)
    if bad:
        result.add_error(f"{bad} normals are not unit length")

    downward = np.count_nonzero(mesh.normals[:, 1] <= 0)
    if downward:
        result.add_error(f"{downward} normals point downward")


def _check_uvs(mesh: TerrainMesh, result: ValidationResult) -> None:
    """Check texture coordinates lie in [0, 1]."""
    outside = np.count_nonzero((mesh.uvs < 0) | (mesh.uvs > 1))
    if outside:
        result.add_error(f"{outside} texture coordinates outside [0, 1]")


def _check_degenerate_triangles(mesh: TerrainMesh, result: ValidationResult) -> None:
    """Warn about zero-area triangles."""
    tris = mesh.positions[mesh.triangles.astype(np.int64)]
    cross = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
    degenerate = np.count_nonzero(np.linalg.norm(cross, axis=1) == 0)
    if degenerate:
        result.add_warning(f"{degenerate} degenerate triangles")
