"""
Bar magnet field tables.

The field of the bar magnet is not computed at runtime. It is read from three
precomputed grids that cover the first quadrant (x >= 0, y >= 0) of the
magnet's local frame:

    internal       fine grid over the body of the magnet
    external_near  fine grid around the magnet
    external_far   coarse grid far from the magnet

Each grid stores Bx and By samples indexed as ``[column][row]``, so the first
axis runs along x. Values are stored for a magnet of `reference_strength`
gauss and are scaled linearly by the caller.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


class FieldGrid:
    """
    One immutable table of field samples with bilinear interpolation.
    """

    def __init__(
        self,
        name: str,
        bx: npt.ArrayLike,
        by: npt.ArrayLike,
        spacing: float,
    ) -> None:
        """
        Args:
            name: Grid name, used in logs and as the HDF5 group name.
            bx: Bx samples, shape (width, height).
            by: By samples, shape (width, height).
            spacing: Distance between neighbouring samples, in both x and y.

        Raises:
            ValueError: If the arrays differ in shape, are empty, or the spacing
                is not positive.
        """
        bx_array = np.array(bx, dtype=np.float64)
        by_array = np.array(by, dtype=np.float64)

        if bx_array.ndim != 2 or bx_array.shape != by_array.shape:
            raise ValueError(
                f"Grid '{name}': bx {bx_array.shape} and by {by_array.shape} must be 2D arrays of equal shape."
            )
        if bx_array.shape[0] < 2 or bx_array.shape[1] < 2:
            raise ValueError(f"Grid '{name}' needs at least 2x2 samples, got {bx_array.shape}.")
        if spacing <= 0:
            raise ValueError(f"Grid '{name}' spacing must be positive, got {spacing}.")

        bx_array.setflags(write=False)
        by_array.setflags(write=False)

        self.name = name
        self.bx = bx_array
        self.by = by_array
        self.spacing = float(spacing)
        self.max_x = self.spacing * (self.width - 1)
        self.max_y = self.spacing * (self.height - 1)

        # Plain lists are much faster than numpy scalar indexing in the per-sample hot path.
        self._bx_rows: list[list[float]] = bx_array.tolist()
        self._by_rows: list[list[float]] = by_array.tolist()

    @property
    def width(self) -> int:
        return self.bx.shape[0]

    @property
    def height(self) -> int:
        return self.bx.shape[1]

    @property
    def max_magnitude(self) -> float:
        return float(np.max(np.hypot(self.bx, self.by)))

    def contains(self, x: float, y: float) -> bool:
        """True if (x, y) lies within the extent of this grid."""
        return 0.0 <= x <= self.max_x and 0.0 <= y <= self.max_y

    def lookup(self, x: float, y: float) -> tuple[float, float]:
        """
        Interpolated (Bx, By) at a first-quadrant point.

        Returns (0, 0) when the point is outside the grid.
        """
        if not self.contains(x, y):
            return 0.0, 0.0
        return self._interpolate(x, y, self._bx_rows), self._interpolate(x, y, self._by_rows)

    def _interpolate(self, x: float, y: float, values: list[list[float]]) -> float:
        column = int(math.floor(x / self.spacing))
        if column == self.width - 1:
            column -= 1
        row = int(math.floor(y / self.spacing))
        if row == self.height - 1:
            row -= 1

        # Fractional position inside the cell, so a point on a node returns the node value exactly
        fx = (x - column * self.spacing) / self.spacing
        fy = (y - row * self.spacing) / self.spacing

        f00 = values[column][row]
        f10 = values[column + 1][row]
        f01 = values[column][row + 1]
        f11 = values[column + 1][row + 1]

        return (
            f00 * (1.0 - fx) * (1.0 - fy)
            + f10 * fx * (1.0 - fy)
            + f01 * (1.0 - fx) * fy
            + f11 * fx * fy
        )

    def __repr__(self) -> str:
        return f"FieldGrid(name={self.name!r}, size=({self.width}, {self.height}), spacing={self.spacing})"


@dataclass(frozen=True)
class BarMagnetFieldData:
    """
    The three grids of a bar magnet field data set.

    Attributes:
        internal: Grid covering the inside of the magnet.
        external_near: Grid around the magnet, contains `internal`.
        external_far: Coarse grid, contains `external_near`.
        reference_strength: Magnet strength (G) the tables were generated for.
        version: Data set version string.
    """
    internal: FieldGrid
    external_near: FieldGrid
    external_far: FieldGrid
    reference_strength: float
    version: str = "1"

    def __post_init__(self) -> None:
        if self.reference_strength <= 0:
            raise ValueError(f"Reference strength must be positive, got {self.reference_strength}.")
        for grid in self.grids:
            # Small tolerance for values that went through a file round trip
            if grid.max_magnitude > self.reference_strength * (1.0 + 1e-9):
                raise ValueError(
                    f"Grid '{grid.name}' holds a field of {grid.max_magnitude:.3f} G, "
                    f"above the reference strength {self.reference_strength} G."
                )
        logger.debug(f"Field data version {self.version}: {', '.join(repr(grid) for grid in self.grids)}")

    @property
    def grids(self) -> tuple[FieldGrid, FieldGrid, FieldGrid]:
        return self.internal, self.external_near, self.external_far

    def choose_grid(self, x: float, y: float) -> FieldGrid | None:
        """The finest grid that contains (x, y), or None outside all of them."""
        for grid in self.grids:
            if grid.contains(x, y):
                return grid
        return None

    def lookup(self, x: float, y: float) -> tuple[float, float]:
        """
        Unscaled (Bx, By) at a first-quadrant point of the magnet's frame.

        Args:
            x: Local x coordinate, must be >= 0.
            y: Local y coordinate, must be >= 0.

        Returns:
            The interpolated field, or exactly (0, 0) beyond the far grid.
        """
        assert x >= 0 and y >= 0, f"lookup expects a first-quadrant point, got ({x}, {y})"
        grid = self.choose_grid(x, y)
        if grid is None:
            return 0.0, 0.0
        return grid.lookup(x, y)
