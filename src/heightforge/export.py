"""Geometry export: Wavefront OBJ/MTL and FBX-style ASCII text."""

from pathlib import Path
from typing import Iterable

import numpy as np
import structlog
from numpy.typing import NDArray

from .exceptions import ExportError
from .mesh import TerrainMesh

logger = structlog.get_logger()

DEFAULT_MATERIAL = "TerrainMaterial"

EXPORT_FORMATS = ("obj", "fbx")


def _fmt(value: float) -> str:
    return f"{value:.6f}"


def _rows(prefix: str, array: NDArray[np.float64]) -> Iterable[str]:
    for row in array:
        yield prefix + " " + " ".join(_fmt(v) for v in row)


def _flat(array: NDArray) -> str:
    if np.issubdtype(array.dtype, np.integer):
        return ",".join(str(int(v)) for v in array.reshape(-1))
    return ",".join(_fmt(v) for v in array.reshape(-1))


def _write_lines(path: Path, lines: Iterable[str]) -> None:
    """Write newline-terminated UTF-8 lines, mapping OS errors to ExportError."""
    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            for line in lines:
                f.write(line)
                f.write("\n")
    except OSError as exc:
        logger.error("export_failed", path=str(path), error=str(exc))
        raise ExportError(f"Failed to write {path}: {exc}") from exc


def _obj_lines(
    mesh: TerrainMesh,
    material_name: str | None,
    mtl_name: str | None,
) -> Iterable[str]:
    yield "# heightforge terrain"
    yield f"# {mesh.vertex_count} vertices, {mesh.triangle_count} triangles"
    if mtl_name:
        yield f"mtllib {mtl_name}"

    yield from _rows("v", mesh.positions)
    yield from _rows("vt", mesh.uvs)
    yield from _rows("vn", mesh.normals)

    if material_name:
        yield f"usemtl {material_name}"

    # OBJ indices are 1-based; position, uv and normal share one index
    for a, b, c in mesh.triangles.astype(np.int64) + 1:
        yield f"f {a}/{a}/{a} {b}/{b}/{b} {c}/{c}/{c}"


def export_obj(
    mesh: TerrainMesh,
    path: Path,
    *,
    material_name: str | None = None,
    mtl_name: str | None = None,
) -> None:
    """Write a mesh as a Wavefront OBJ file.

    Vertices are written in stored order so one index addresses the
    position, texture coordinate and normal of a corner.

    Args:
        mesh: Mesh to export.
        path: Output .obj path.
        material_name: Optional material to reference with usemtl.
        mtl_name: Optional material library file to reference with mtllib.

    Raises:
        ExportError: If the file can't be written.
    """
    path = Path(path)
    _write_lines(path, _obj_lines(mesh, material_name, mtl_name))
    logger.info(
        "obj_exported",
        path=str(path),
        vertices=mesh.vertex_count,
        triangles=mesh.triangle_count,
    )


def write_material(
    path: Path,
    *,
    name: str = DEFAULT_MATERIAL,
    texture: str | None = None,
) -> None:
    """Write a companion .mtl file with a single diffuse material.

    Args:
        path: Output .mtl path.
        name: Material name referenced from the OBJ.
        texture: Optional diffuse texture path (map_Kd).

    Raises:
        ExportError: If the file can't be written.
    """
    path = Path(path)
    lines = [
        "# Material file for terrain",
        f"newmtl {name}",
        "Ns 96.078431",
        "Ka 1.000000 1.000000 1.000000",
        "Kd 0.640000 0.640000 0.640000",
        "Ks 0.500000 0.500000 0.500000",
        "Ke 0.000000 0.000000 0.000000",
        "Ni 1.000000",
        "d 1.000000",
        "illum 2",
    ]
    if texture:
        lines.append(f"map_Kd {texture}")

    _write_lines(path, lines)
    logger.debug("material_written", path=str(path), material=name)


def polygon_vertex_index(indices: NDArray[np.uint32]) -> NDArray[np.int64]:
    """Encode a triangle list with FBX-style polygon terminators.

    The last index of every triangle is stored as -(index + 1).
    """
    encoded = indices.astype(np.int64).reshape(-1, 3).copy()
    encoded[:, 2] = -(encoded[:, 2] + 1)
    return encoded.reshape(-1)


def _fbx_array(name: str, values: NDArray, indent: str) -> Iterable[str]:
    yield f"{indent}{name}: *{values.size} {{"
    yield f"{indent}\ta: {_flat(values)}"
    yield f"{indent}}}"


def _fbx_layer(
    kind: str,
    layer_name: str,
    array_name: str,
    values: NDArray,
) -> Iterable[str]:
    indent = "\t\t"
    yield f"{indent}{kind}: 0 {{"
    yield f"{indent}\tVersion: 101"
    yield f'{indent}\tName: "{layer_name}"'
    yield f'{indent}\tMappingInformationType: "ByVertice"'
    yield f'{indent}\tReferenceInformationType: "Direct"'
    yield from _fbx_array(array_name, values, indent + "\t")
    yield f"{indent}}}"


def _fbx_lines(mesh: TerrainMesh) -> Iterable[str]:
    yield "; FBX 7.4.0 project file"
    yield "; Generated by heightforge"
    yield "; ----------------------------------------------------"
    yield ""
    yield "FBXHeaderExtension:  {"
    yield "\tFBXHeaderVersion: 1003"
    yield "\tFBXVersion: 7400"
    yield '\tCreator: "heightforge"'
    yield "}"
    yield ""
    yield "Objects:  {"
    yield '\tGeometry: 1000, "Geometry::Terrain", "Mesh" {'
    yield from _fbx_array("Vertices", mesh.positions, "\t\t")
    yield from _fbx_array(
        "PolygonVertexIndex", polygon_vertex_index(mesh.indices), "\t\t"
    )
    yield "\t\tGeometryVersion: 124"
    yield from _fbx_layer("LayerElementNormal", "", "Normals", mesh.normals)
    yield from _fbx_layer("LayerElementUV", "UVMap", "UV", mesh.uvs)
    yield "\t}"
    yield "}"


def export_fbx_like(mesh: TerrainMesh, path: Path) -> None:
    """Write a mesh as FBX-style ASCII text.

    The output has the shape of an ASCII FBX geometry node (header,
    flattened vertex array, terminated polygon indices, normal and UV
    layers) but is not validated against real FBX readers.

    Args:
        mesh: Mesh to export.
        path: Output .fbx path.

    Raises:
        ExportError: If the file can't be written.
    """
    path = Path(path)
    _write_lines(path, _fbx_lines(mesh))
    logger.info(
        "fbx_exported",
        path=str(path),
        vertices=mesh.vertex_count,
        triangles=mesh.triangle_count,
    )


def export_mesh(
    mesh: TerrainMesh,
    path: Path,
    fmt: str | None = None,
    *,
    texture: str | None = None,
) -> list[Path]:
    """Export a mesh, choosing the format from fmt or the file suffix.

    Both formats also write a .mtl file next to the mesh. Only the OBJ
    references it through mtllib.

    Args:
        mesh: Mesh to export.
        path: Output path.
        fmt: "obj" or "fbx"; inferred from the suffix when None.
        texture: Optional diffuse texture path written to the material as map_Kd.

    Returns:
        Paths of all files written, mesh first.

    Raises:
        ValueError: If the format is unknown.
        ExportError: If a file can't be written.
    """
    path = Path(path)
    fmt = (fmt or path.suffix.lstrip(".")).lower()
    mtl_path = path.with_suffix(".mtl")

    if fmt == "obj":
        export_obj(mesh, path, material_name=DEFAULT_MATERIAL, mtl_name=mtl_path.name)
    elif fmt == "fbx":
        export_fbx_like(mesh, path)
    else:
        raise ValueError(
            f"Unknown export format {fmt!r}; expected one of {', '.join(EXPORT_FORMATS)}"
        )

    write_material(mtl_path, name=DEFAULT_MATERIAL, texture=texture)
    return [path, mtl_path]
