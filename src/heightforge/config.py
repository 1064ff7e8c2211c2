"""Terrain generation configuration models and TOML loading."""

import math
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field


class NoiseConfig(BaseModel):
    """Fractal noise parameters for the elevation fill."""

    noise_scale: float = Field(
        default=4.0, gt=0, description="Noise periods spanned by the whole field"
    )
    octaves: int = Field(default=4, ge=1, description="Number of noise octaves")
    persistence: float = Field(
        default=0.5, gt=0, lt=1, description="Amplitude multiplier per octave"
    )


class SmoothingConfig(BaseModel):
    """Box smoothing applied after the noise fill."""

    iterations: int = Field(default=3, ge=0, description="Number of 3x3 mean passes")


class RiverConfig(BaseModel):
    """Meandering river channel carved across the field."""

    enabled: bool = Field(default=True, description="Carve the river channel")
    width: float = Field(default=6.0, gt=0, description="Half-width of the channel in cells")
    depth: float = Field(default=0.3, ge=0, description="Depth at the centerline")
    meander: float = Field(
        default=8.0, description="Amplitude of the centerline sine wave in cells"
    )
    frequency: float = Field(
        default=3.0 * math.pi, description="Angular frequency of the meander across the field"
    )


class TerrainConfig(BaseModel):
    """Complete terrain generation configuration."""

    seed: int = Field(default=42, description="Random seed for reproducibility")
    width: int = Field(default=64, ge=2, description="Samples along the x axis")
    height: int = Field(default=64, ge=2, description="Samples along the z axis")
    scale: float = Field(default=1.0, gt=0, description="World units between samples")
    height_scale: float = Field(default=1.0, description="Vertical scale factor")

    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)
    river: RiverConfig = Field(default_factory=RiverConfig)


def load_config(config_path: Path) -> TerrainConfig:
    """Load terrain configuration from a TOML file.

    Missing tables and keys fall back to their defaults.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed TerrainConfig.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If a value is out of range.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return TerrainConfig.model_validate(data)
