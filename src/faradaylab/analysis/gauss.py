from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import scipy.special

if TYPE_CHECKING:
    import numpy.typing as npt


def gauss_points_weights_edge(n_points: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Generate Gauss-Legendre points and weights on the reference interval [-1, 1].

    Args:
        n_points: Number of integration points.

    Raises:
        ValueError: If `n_points` is smaller than 1.

    Returns:
        A tuple containing the Gauss points and weights.
    """
    if n_points < 1:
        raise ValueError(f"Unsupported number of Gauss points: {n_points}. "
                         f"'n_points' must be at least 1.")
    points, weights = scipy.special.roots_legendre(n_points)
    return np.asarray(points, dtype=np.float64), np.asarray(weights, dtype=np.float64)


def gauss_points_weights_interval(
    n_points: int,
    start: float,
    end: float,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Gauss-Legendre points and weights mapped onto [start, end].
    """
    points, weights = gauss_points_weights_edge(n_points)
    half_length = 0.5 * (end - start)
    midpoint = 0.5 * (end + start)
    return midpoint + half_length * points, half_length * weights


def disc_quadrature(
    radius: float,
    n_radial: int,
    n_angular: int,
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Integration rule over a disc of `radius` centered at the origin.

    Gauss-Legendre in the radial direction, uniform (trapezoidal, exact for
    periodic integrands) in the angular direction.

    Args:
        radius: Disc radius.
        n_radial: Number of radial Gauss points.
        n_angular: Number of angular samples.

    Returns:
        Flattened arrays (u, v, weights): coordinates in the disc plane and the
        area weights, so that sum(weights * f(u, v)) approximates the integral.
    """
    r, w_r = gauss_points_weights_interval(n_radial, 0.0, radius)
    phi = np.arange(n_angular, dtype=np.float64) * (2.0 * np.pi / n_angular)
    w_phi = 2.0 * np.pi / n_angular

    rr, pp = np.meshgrid(r, phi, indexing="ij")
    u = rr * np.cos(pp)
    v = rr * np.sin(pp)
    # Jacobian of polar coordinates
    weights = np.outer(w_r * r, np.full(n_angular, w_phi))
    return u.ravel(), v.ravel(), weights.ravel()
