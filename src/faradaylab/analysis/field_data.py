"""
Bar Magnet Field Data
=====================
Produces the three lookup tables used by `BarMagnet`.

Why is this file needed?
------------------------
1. The runtime never computes a bar magnet field from first principles, it
   only interpolates tables. Those tables have to come from somewhere: this
   module computes them offline and `faradaylab.model.io` stores them as a
   versioned HDF5 asset.
2. When the asset is absent (fresh checkout, tests) the tables are generated
   in memory once per process.

Physical model
--------------
The magnet is a uniformly magnetized cylinder (radius = half the magnet
height, length = magnet width) magnetized along +x. Its field is that of two
discs of magnetic surface charge at the pole faces (+M on the north face at
+x, -M on the south face), integrated numerically; inside the magnet B = H + M.
The result is normalized so that the field at the center equals the reference
strength, and clipped so that no sample exceeds it.
"""
from __future__ import annotations

import functools
import logging
import os
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np

from faradaylab import config
from faradaylab.analysis.field_grid import BarMagnetFieldData, FieldGrid
from faradaylab.analysis.gauss import disc_quadrature
from faradaylab.model.io import load_field_data

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

REFERENCE_STRENGTH = 225.0  # G
MAGNET_WIDTH = 250.0
MAGNET_HEIGHT = 50.0
DATA_VERSION = "1"


@dataclass(frozen=True)
class GridSpec:
    """Layout of one table: number of samples along x and y, and their spacing."""
    name: str
    width: int
    height: int
    spacing: float
    include_surface: bool = False

    @property
    def max_x(self) -> float:
        return self.spacing * (self.width - 1)

    @property
    def max_y(self) -> float:
        return self.spacing * (self.height - 1)


INTERNAL_GRID = GridSpec("internal", width=26, height=6, spacing=5.0, include_surface=True)
EXTERNAL_NEAR_GRID = GridSpec("external_near", width=101, height=81, spacing=5.0)
EXTERNAL_FAR_GRID = GridSpec("external_far", width=126, height=101, spacing=20.0)


class PoleFaceModel:
    """
    Field of a uniformly magnetized cylinder, evaluated in the plane z = 0.

    Units are arbitrary (mu0 = 1, M = 1); `generate_bar_magnet_field_data`
    rescales them to gauss.
    """

    def __init__(
        self,
        half_length: float = MAGNET_WIDTH / 2,
        radius: float = MAGNET_HEIGHT / 2,
        n_radial: int = 20,
        n_angular: int = 48,
        chunk_size: int = 2048,
    ) -> None:
        self.half_length = half_length
        self.radius = radius
        self.chunk_size = chunk_size
        self._u, self._v, self._weights = disc_quadrature(radius, n_radial, n_angular)

    def magnetization_weight(
        self,
        x: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
        include_surface: bool,
    ) -> npt.NDArray[np.float64]:
        """
        Fraction of M to add to H at each point: 1 inside, 1/2 on a pole face, 0 outside.

        Points on the side of the cylinder count as inside only when
        `include_surface` is set (the internal table describes the inside of
        the magnet, the external tables its outside).
        """
        ax = np.abs(x)
        ay = np.abs(y)
        within_radius = ay <= self.radius if include_surface else ay < self.radius
        inside = within_radius & (ax < self.half_length)
        on_face = within_radius & (ax == self.half_length)
        return np.where(inside, 1.0, np.where(on_face, 0.5, 0.0))

    def h_field(
        self,
        x: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Demagnetizing field H of both pole faces at the points (x, y, 0)."""
        hx = np.zeros_like(x)
        hy = np.zeros_like(y)
        for start in range(0, x.size, self.chunk_size):
            stop = min(start + self.chunk_size, x.size)
            px = x[start:stop, np.newaxis]
            py = y[start:stop, np.newaxis]
            for face_x, charge in ((self.half_length, 1.0), (-self.half_length, -1.0)):
                dx = px - face_x
                dy = py - self._u[np.newaxis, :]
                dist2 = dx * dx + dy * dy + self._v[np.newaxis, :] ** 2
                kernel = self._weights[np.newaxis, :] / (dist2 * np.sqrt(dist2))
                scale = charge / (4.0 * np.pi)
                hx[start:stop] += scale * np.sum(kernel * dx, axis=1)
                hy[start:stop] += scale * np.sum(kernel * dy, axis=1)
        return hx, hy

    def b_field(
        self,
        x: npt.NDArray[np.float64],
        y: npt.NDArray[np.float64],
        include_surface: bool = False,
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Flux density B = H + M at the points (x, y, 0)."""
        hx, hy = self.h_field(x, y)
        return hx + self.magnetization_weight(x, y, include_surface), hy


def compute_grid(
    spec: GridSpec,
    model: PoleFaceModel,
    scale: float,
    reference_strength: float,
) -> FieldGrid:
    """
    Sample `model` on the nodes of `spec` and build a FieldGrid in gauss.

    Args:
        spec: Grid layout.
        model: Field model in normalized units.
        scale: Factor from normalized units to gauss.
        reference_strength: Upper bound for the sample magnitudes.

    Returns:
        The table, with By exactly zero on the magnet axis.
    """
    xs = np.arange(spec.width, dtype=np.float64) * spec.spacing
    ys = np.arange(spec.height, dtype=np.float64) * spec.spacing
    gx, gy = np.meshgrid(xs, ys, indexing="ij")

    bx, by = model.b_field(gx.ravel(), gy.ravel(), include_surface=spec.include_surface)
    bx = bx.reshape(gx.shape) * scale
    by = by.reshape(gx.shape) * scale

    # On the axis By vanishes by symmetry; remove quadrature noise
    by[:, 0] = 0.0

    magnitude = np.hypot(bx, by)
    factor = np.where(magnitude > reference_strength, reference_strength / np.maximum(magnitude, 1e-300), 1.0)
    clipped = int(np.count_nonzero(magnitude > reference_strength))
    if clipped:
        logger.debug(f"Grid '{spec.name}': clipped {clipped} samples to {reference_strength} G")

    return FieldGrid(spec.name, bx * factor, by * factor, spec.spacing)


def generate_bar_magnet_field_data(
    reference_strength: float = REFERENCE_STRENGTH,
    n_radial: int = 20,
    n_angular: int = 48,
) -> BarMagnetFieldData:
    """
    Compute the internal, near and far tables for the standard bar magnet.

    Args:
        reference_strength: Field at the magnet center, in gauss.
        n_radial: Radial Gauss points per pole face.
        n_angular: Angular samples per pole face.

    Returns:
        The complete data set.
    """
    logger.info(f"Generating bar magnet field tables ({reference_strength} G, "
                f"{n_radial}x{n_angular} quadrature per pole face)")
    model = PoleFaceModel(n_radial=n_radial, n_angular=n_angular)

    center_bx, _ = model.b_field(np.zeros(1), np.zeros(1), include_surface=True)
    scale = reference_strength / float(center_bx[0])

    grids = [compute_grid(spec, model, scale, reference_strength)
             for spec in (INTERNAL_GRID, EXTERNAL_NEAR_GRID, EXTERNAL_FAR_GRID)]
    return BarMagnetFieldData(*grids, reference_strength=reference_strength, version=DATA_VERSION)


@functools.lru_cache(maxsize=None)
def load_bar_magnet_field_data(path: Optional[str] = None) -> BarMagnetFieldData:
    """
    The bar magnet tables, shared by every BarMagnet in the process.

    Reads the HDF5 asset when it exists, otherwise generates the tables.

    Args:
        path: HDF5 file to read. Defaults to `config.FIELD_DATA_PATH`.
    """
    path = path or config.FIELD_DATA_PATH
    if os.path.exists(path):
        return load_field_data(path)
    logger.info(f"Field data asset not found at {path}, generating tables in memory")
    return generate_bar_magnet_field_data()
