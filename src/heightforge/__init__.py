"""Procedural terrain generation package.

This package implements noise-based height field generation, including
smoothing, river carving, mesh triangulation, height queries, and export
to OBJ/FBX-style text and grayscale heightmaps.
"""

from .config import NoiseConfig, RiverConfig, SmoothingConfig, TerrainConfig, load_config
from .exceptions import (
    ExportError,
    HeightForgeError,
    InvalidDimensionsError,
    MeshNotGeneratedError,
)
from .export import export_fbx_like, export_mesh, export_obj, write_material
from .heightfield import HeightField
from .mesh import TerrainMesh, build_mesh
from .noise import PerlinNoise
from .validation import ValidationResult, validate_mesh
from .visualize import render_heightmap, save_heightmap_png

__all__ = [
    "ExportError",
    "HeightField",
    "HeightForgeError",
    "InvalidDimensionsError",
    "MeshNotGeneratedError",
    "NoiseConfig",
    "PerlinNoise",
    "RiverConfig",
    "SmoothingConfig",
    "TerrainConfig",
    "TerrainMesh",
    "ValidationResult",
    "build_mesh",
    "export_fbx_like",
    "export_mesh",
    "export_obj",
    "load_config",
    "render_heightmap",
    "save_heightmap_png",
    "validate_mesh",
    "write_material",
]
