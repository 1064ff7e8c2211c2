"""Grayscale rendering of height fields."""

import logging
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from PIL import Image

from .exceptions import ExportError

logger = logging.getLogger(__name__)


def render_heightmap(elevations: NDArray[np.float64]) -> NDArray[np.uint8]:
    """Map elevations linearly onto 0-255 gray levels.

    The lowest sample becomes 0 and the highest 255. A flat field maps
    every pixel to 0.

    Args:
        elevations: 2D array indexed [x, z].

    Returns:
        Image-layout array of shape (height, width), one pixel per sample.
    """
    elevations = np.asarray(elevations, dtype=np.float64)
    lowest = elevations.min()
    highest = elevations.max()

    value_range = highest - lowest
    if value_range == 0:
        value_range = 1.0

    normalized = (elevations - lowest) / value_range
    gray = (normalized * 255).astype(np.uint8)

    # [x, z] -> rows of z, columns of x
    return np.ascontiguousarray(gray.T)


def save_heightmap_png(elevations: NDArray[np.float64], path: Path) -> None:
    """Render elevations and save them as an 8-bit grayscale PNG.

    Args:
        elevations: 2D array indexed [x, z].
        path: Output .png path.

    Raises:
        ExportError: If the image can't be written.
    """
    path = Path(path)
    img = Image.fromarray(render_heightmap(elevations))
    try:
        img.save(path, format="PNG")
    except OSError as exc:
        raise ExportError(f"Failed to write heightmap {path}: {exc}") from exc

    logger.info(f"Saved heightmap to {path} ({img.width}x{img.height})")
