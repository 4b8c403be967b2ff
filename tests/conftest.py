"""Shared fixtures for the faradaylab test suite."""
from __future__ import annotations

from typing import Optional

import numpy as np
import pytest

from faradaylab.analysis.field_data import generate_bar_magnet_field_data
from faradaylab.analysis.field_grid import BarMagnetFieldData, FieldGrid
from faradaylab.analysis.magnets import Magnet
from faradaylab.model.geometry_primitives import Vector2


class UniformMagnet(Magnet):
    """Magnet with the same local field (strength, 0) everywhere."""

    def __init__(
        self,
        strength: float = 10.0,
        rotation: float = 0.0,
        position: Optional[Vector2] = None,
        inside: bool = False,
    ) -> None:
        super().__init__((0.0, 1000.0), strength, position, rotation)
        self.inside = inside

    def local_field(self, local_point: Vector2, out: Vector2) -> Vector2:
        return out.set_xy(self._strength, 0.0)

    def is_inside_local(self, local_point: Vector2) -> bool:
        return self.inside


def linear_field(x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """A field that bilinear interpolation reproduces exactly."""
    return 1.0 + 0.1 * x + 0.2 * y, 0.05 * x - 0.1 * y


def make_linear_grid(name: str, width: int, height: int, spacing: float) -> FieldGrid:
    xs = np.arange(width) * spacing
    ys = np.arange(height) * spacing
    gx, gy = np.meshgrid(xs, ys, indexing="ij")
    bx, by = linear_field(gx, gy)
    return FieldGrid(name, bx, by, spacing)


@pytest.fixture
def linear_field_data() -> BarMagnetFieldData:
    """Small nested grids holding the same linear field."""
    return BarMagnetFieldData(
        make_linear_grid("internal", 3, 3, 5.0),
        make_linear_grid("external_near", 5, 5, 5.0),
        make_linear_grid("external_far", 5, 5, 10.0),
        reference_strength=225.0,
    )


@pytest.fixture(scope="session")
def field_data() -> BarMagnetFieldData:
    """Bar magnet tables, generated once per session with a coarse quadrature."""
    return generate_bar_magnet_field_data(n_radial=8, n_angular=24)


@pytest.fixture
def uniform_magnet() -> UniformMagnet:
    return UniformMagnet()


@pytest.fixture
def make_uniform_magnet():
    """Factory for UniformMagnet instances with custom strength, rotation or position."""
    return UniformMagnet
