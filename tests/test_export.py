"""Tests for OBJ and FBX-style geometry export."""

from pathlib import Path

import numpy as np
import pytest

from heightforge.exceptions import ExportError
from heightforge.export import (
    export_fbx_like,
    export_mesh,
    export_obj,
    polygon_vertex_index,
    write_material,
)
from heightforge.heightfield import HeightField


def _count_prefix(lines: list[str], prefix: str) -> int:
    return sum(1 for line in lines if line.startswith(prefix + " "))


class TestExportObj:
    """Tests for Wavefront OBJ output."""

    def test_round_trip_scenario(self, tmp_path: Path) -> None:
        """8x8 seed-42 terrain is reproducible and exports 98 faces."""
        a = HeightField(8, 8)
        b = HeightField(8, 8)
        a.generate(seed=42, noise_scale=4.0, octaves=3, persistence=0.5)
        b.generate(seed=42, noise_scale=4.0, octaves=3, persistence=0.5)
        assert a.elevations.tobytes() == b.elevations.tobytes()

        path = tmp_path / "terrain.obj"
        export_obj(a.require_mesh(), path)
        lines = path.read_text(encoding="utf-8").splitlines()

        assert _count_prefix(lines, "v") == 64
        assert _count_prefix(lines, "vt") == 64
        assert _count_prefix(lines, "vn") == 64
        assert _count_prefix(lines, "f") == 98

    def test_faces_are_one_based(self, flat_field: HeightField, tmp_path: Path) -> None:
        """Face lines reuse one 1-based index for position, uv and normal."""
        path = tmp_path / "flat.obj"
        export_obj(flat_field.require_mesh(), path)
        faces = [l for l in path.read_text().splitlines() if l.startswith("f ")]
        assert faces[0] == "f 1/1/1 5/5/5 2/2/2"
        assert faces[1] == "f 5/5/5 6/6/6 2/2/2"

    def test_vertex_order_preserved(self, ramp_field: HeightField, tmp_path: Path) -> None:
        """v lines follow stored vertex order."""
        mesh = ramp_field.require_mesh()
        path = tmp_path / "ramp.obj"
        export_obj(mesh, path)

        vertices = [l for l in path.read_text().splitlines() if l.startswith("v ")]
        parsed = np.array([[float(v) for v in l.split()[1:]] for l in vertices])
        np.testing.assert_allclose(parsed, mesh.positions, atol=1e-6)

    def test_lines_newline_terminated(self, flat_field: HeightField, tmp_path: Path) -> None:
        """The file ends with a newline and uses LF only."""
        path = tmp_path / "flat.obj"
        export_obj(flat_field.require_mesh(), path)
        data = path.read_bytes()
        assert data.endswith(b"\n")
        assert b"\r" not in data

    def test_material_references(self, flat_field: HeightField, tmp_path: Path) -> None:
        """mtllib and usemtl are written when requested."""
        path = tmp_path / "flat.obj"
        export_obj(
            flat_field.require_mesh(),
            path,
            material_name="Ground",
            mtl_name="flat.mtl",
        )
        text = path.read_text()
        assert "mtllib flat.mtl\n" in text
        assert "usemtl Ground\n" in text

    def test_missing_directory_raises(self, flat_field: HeightField, tmp_path: Path) -> None:
        """Write failures surface as ExportError."""
        with pytest.raises(ExportError):
            export_obj(flat_field.require_mesh(), tmp_path / "missing" / "out.obj")


class TestWriteMaterial:
    """Tests for companion MTL files."""

    def test_material_block(self, tmp_path: Path) -> None:
        """Material file defines the named material."""
        path = tmp_path / "terrain.mtl"
        write_material(path, name="TerrainMaterial")
        lines = path.read_text().splitlines()
        assert "newmtl TerrainMaterial" in lines
        assert "illum 2" in lines
        assert not any(l.startswith("map_Kd") for l in lines)

    def test_texture(self, tmp_path: Path) -> None:
        """A diffuse texture adds map_Kd."""
        path = tmp_path / "terrain.mtl"
        write_material(path, texture="grass.png")
        assert "map_Kd grass.png" in path.read_text().splitlines()


class TestExportFbxLike:
    """Tests for FBX-style ASCII output."""

    def test_polygon_terminators(self) -> None:
        """The last corner of each triangle is stored as -(i + 1)."""
        encoded = polygon_vertex_index(np.array([0, 4, 1, 4, 5, 1], dtype=np.uint32))
        np.testing.assert_array_equal(encoded, [0, 4, -2, 4, 5, -2])

    def test_terminator_recovers_index(self) -> None:
        """Decoding a terminator gives back the original index."""
        indices = np.array([7, 8, 0, 3, 2, 9], dtype=np.uint32)
        encoded = polygon_vertex_index(indices)
        decoded = np.where(encoded < 0, -encoded - 1, encoded)
        np.testing.assert_array_equal(decoded, indices)

    def test_structure(self, flat_field: HeightField, tmp_path: Path) -> None:
        """Output has a header, a geometry node and flattened arrays."""
        path = tmp_path / "flat.fbx"
        export_fbx_like(flat_field.require_mesh(), path)
        text = path.read_text(encoding="utf-8")

        assert text.startswith("; FBX 7.4.0 project file")
        assert "FBXHeaderExtension:" in text
        assert '"Geometry::Terrain", "Mesh"' in text
        assert "Vertices: *48 {" in text
        assert "PolygonVertexIndex: *54 {" in text
        assert "Normals: *48 {" in text
        assert "UV: *32 {" in text

    def test_index_array_content(self, flat_field: HeightField, tmp_path: Path) -> None:
        """The index array starts with the first cell's triangles."""
        path = tmp_path / "flat.fbx"
        export_fbx_like(flat_field.require_mesh(), path)
        lines = path.read_text().splitlines()

        header = next(i for i, l in enumerate(lines) if "PolygonVertexIndex" in l)
        values = lines[header + 1].strip().removeprefix("a: ").split(",")
        assert values[:6] == ["0", "4", "-2", "4", "5", "-2"]
        assert len(values) == 54

    def test_missing_directory_raises(self, flat_field: HeightField, tmp_path: Path) -> None:
        """Write failures surface as ExportError."""
        with pytest.raises(ExportError):
            export_fbx_like(flat_field.require_mesh(), tmp_path / "missing" / "out.fbx")


class TestExportMesh:
    """Tests for format dispatch."""

    def test_obj_writes_material(self, flat_field: HeightField, tmp_path: Path) -> None:
        """OBJ export also writes a .mtl next to it."""
        written = export_mesh(flat_field.require_mesh(), tmp_path / "t.obj")
        assert written == [tmp_path / "t.obj", tmp_path / "t.mtl"]
        assert "mtllib t.mtl" in (tmp_path / "t.obj").read_text()
        assert (tmp_path / "t.mtl").exists()

    def test_fbx_from_suffix(self, flat_field: HeightField, tmp_path: Path) -> None:
        """The .fbx suffix selects the FBX-style writer."""
        written = export_mesh(flat_field.require_mesh(), tmp_path / "t.fbx")
        assert written == [tmp_path / "t.fbx", tmp_path / "t.mtl"]
        assert (tmp_path / "t.fbx").read_text().startswith("; FBX")
        assert "newmtl TerrainMaterial" in (tmp_path / "t.mtl").read_text()

    def test_texture_passed_to_material(
        self, flat_field: HeightField, tmp_path: Path
    ) -> None:
        """A texture ends up as map_Kd in the companion material."""
        export_mesh(flat_field.require_mesh(), tmp_path / "t.obj", texture="grass.png")
        assert "map_Kd grass.png" in (tmp_path / "t.mtl").read_text().splitlines()

    def test_explicit_format_overrides_suffix(
        self, flat_field: HeightField, tmp_path: Path
    ) -> None:
        """An explicit format wins over the suffix."""
        export_mesh(flat_field.require_mesh(), tmp_path / "t.txt", "fbx")
        assert (tmp_path / "t.txt").read_text().startswith("; FBX")

    def test_unknown_format(self, flat_field: HeightField, tmp_path: Path) -> None:
        """Unknown formats are rejected."""
        with pytest.raises(ValueError):
            export_mesh(flat_field.require_mesh(), tmp_path / "t.stl")
        assert not (tmp_path / "t.mtl").exists()
