"""Tests for post-generation mesh validation."""

import dataclasses

import numpy as np

from heightforge.heightfield import HeightField
from heightforge.validation import validate_mesh


class TestValidateMesh:
    """Tests for validate_mesh."""

    def test_generated_mesh_passes(self, generated_field: HeightField) -> None:
        """A freshly generated mesh has no errors or warnings."""
        result = validate_mesh(generated_field.require_mesh(), 16, 12)
        assert result.passed
        assert result.errors == []
        assert result.warnings == []

    def test_wrong_dimensions(self, flat_field: HeightField) -> None:
        """Counts are checked against the grid size."""
        result = validate_mesh(flat_field.require_mesh(), 5, 4)
        assert not result.passed
        assert any("Vertex count" in e for e in result.errors)
        assert any("Index count" in e for e in result.errors)

    def test_index_out_of_range(self, flat_field: HeightField) -> None:
        """Indices past the last vertex are reported."""
        mesh = flat_field.require_mesh()
        indices = mesh.indices.copy()
        indices[-1] = 99
        broken = dataclasses.replace(mesh, indices=indices)

        result = validate_mesh(broken, 4, 4)
        assert not result.passed
        assert any("out of range" in e for e in result.errors)

    def test_index_out_of_range_skips_triangle_checks(
        self, flat_field: HeightField
    ) -> None:
        """Bad indices are reported without crashing the degenerate-triangle check."""
        mesh = flat_field.require_mesh()
        indices = mesh.indices.copy()
        indices[:3] = [0, 0, 1000]
        broken = dataclasses.replace(mesh, indices=indices)

        result = validate_mesh(broken, 4, 4)
        assert not result.passed
        assert result.errors == ["Index 1000 out of range for 16 vertices"]
        assert result.warnings == []

    def test_bad_normals(self, flat_field: HeightField) -> None:
        """Non-unit and downward normals are reported."""
        mesh = flat_field.require_mesh()
        normals = mesh.normals.copy()
        normals[0] = [0.0, 2.0, 0.0]
        normals[1] = [0.0, -1.0, 0.0]
        broken = dataclasses.replace(mesh, normals=normals)

        result = validate_mesh(broken, 4, 4)
        assert any("unit length" in e for e in result.errors)
        assert any("downward" in e for e in result.errors)

    def test_uv_out_of_range(self, flat_field: HeightField) -> None:
        """Texture coordinates outside [0, 1] are reported."""
        mesh = flat_field.require_mesh()
        uvs = mesh.uvs.copy()
        uvs[3] = [1.5, -0.1]
        broken = dataclasses.replace(mesh, uvs=uvs)

        result = validate_mesh(broken, 4, 4)
        assert any("texture coordinates" in e for e in result.errors)

    def test_degenerate_triangle_warning(self, flat_field: HeightField) -> None:
        """Zero-area triangles only warn."""
        mesh = flat_field.require_mesh()
        indices = mesh.indices.copy()
        indices[:3] = [0, 0, 1]
        broken = dataclasses.replace(mesh, indices=indices)

        result = validate_mesh(broken, 4, 4)
        assert result.passed
        assert any("degenerate" in w for w in result.warnings)
