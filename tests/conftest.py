"""Shared test fixtures for terrain tests."""

import numpy as np
import pytest

from heightforge.heightfield import HeightField


@pytest.fixture
def generated_field() -> HeightField:
    """16x12 field generated with non-unit scales."""
    field = HeightField(16, 12, scale=2.0, height_scale=8.0)
    field.generate(seed=7, noise_scale=4.0, octaves=3, persistence=0.5)
    return field


@pytest.fixture
def ramp_field() -> HeightField:
    """6x5 field where elevation equals x + 10 * z.

    A plane is reproduced exactly by bilinear interpolation, so
    off-grid queries have a closed-form answer.
    """
    field = HeightField(6, 5, scale=0.5, height_scale=2.0)
    xs, zs = np.meshgrid(np.arange(6), np.arange(5), indexing="ij")
    field.set_elevations(xs + 10.0 * zs)
    field.generate_mesh()
    return field


@pytest.fixture
def flat_field() -> HeightField:
    """4x4 field of zeros with a built mesh."""
    field = HeightField(4, 4)
    field.generate_mesh()
    return field
