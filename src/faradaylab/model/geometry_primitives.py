"""
Geometric Primitives for field evaluation and coil paths.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import math


@dataclass
class Vector2:
    """
    A vector in the 2D simulation plane (y axis points down, as on screen).

    Arithmetic returns new vectors. `set_xy`, `set` and the `*_in_place`
    methods mutate, so a Vector2 can serve as an output buffer.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2) -> Vector2:
        return Vector2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2) -> Vector2:
        return Vector2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2:
        return Vector2(self.x * scalar, self.y * scalar)

    def __neg__(self) -> Vector2:
        return Vector2(-self.x, -self.y)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    @property
    def angle(self) -> float:
        """Angle from the +x axis in radians, in (-pi, pi]."""
        return math.atan2(self.y, self.x)

    def copy(self) -> Vector2:
        return Vector2(self.x, self.y)

    def set_xy(self, x: float, y: float) -> Vector2:
        self.x = x
        self.y = y
        return self

    def set(self, other: Vector2) -> Vector2:
        return self.set_xy(other.x, other.y)

    def distance(self, other: Vector2) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def rotated(self, angle_rad: float) -> Vector2:
        """Rotate vector around the origin."""
        return self.copy().rotate_in_place(angle_rad)

    def rotate_in_place(self, angle_rad: float) -> Vector2:
        cos_a = math.cos(angle_rad)
        sin_a = math.sin(angle_rad)
        x = self.x * cos_a - self.y * sin_a
        y = self.x * sin_a + self.y * cos_a
        return self.set_xy(x, y)

    def set_magnitude_in_place(self, magnitude: float) -> Vector2:
        """Scale to `magnitude`. A zero vector stays zero."""
        current = self.magnitude
        if current == 0.0:
            return self
        scale = magnitude / current
        return self.set_xy(self.x * scale, self.y * scale)


@dataclass(frozen=True)
class QuadraticBezier:
    """
    Quadratic Bezier curve.

    The parameter runs backwards along the curve: t=1 is `start` and t=0 is
    `end`, which is how charges measure their position on a coil segment.
    """
    start: Vector2
    control: Vector2
    end: Vector2

    def evaluate(self, t: float, out: Optional[Vector2] = None) -> Vector2:
        """
        Point on the curve.

        Args:
            t: Curve parameter in [0, 1].
            out: Optional vector to write the result into.

        Raises:
            ValueError: If `t` is outside [0, 1].

        Returns:
            The point at `t`.
        """
        if not 0.0 <= t <= 1.0:
            raise ValueError(f"Bezier parameter {t} is outside [0, 1].")
        if out is None:
            out = Vector2()
        u = 1.0 - t
        x = (self.start.x * t * t) + (self.control.x * 2 * t * u) + (self.end.x * u * u)
        y = (self.start.y * t * t) + (self.control.y * 2 * t * u) + (self.end.y * u * u)
        return out.set_xy(x, y)
