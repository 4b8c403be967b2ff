"""
Instruments: read-only views of the simulation state that the user looks at.
"""
from __future__ import annotations

import math
from typing import Optional, TYPE_CHECKING

from faradaylab import config
from faradaylab.model.geometry_primitives import Vector2
from faradaylab.utils import clamp, linear

if TYPE_CHECKING:
    from faradaylab.analysis.coil import Coil
    from faradaylab.analysis.magnets import Magnet


class FieldMeter:
    """Measures the field of a magnet at a movable probe position."""

    def __init__(self, magnet: Magnet, position: Optional[Vector2] = None) -> None:
        self.magnet = magnet
        self.position = position.copy() if position is not None else Vector2()
        self._field = Vector2()

    def set_position(self, x: float, y: float) -> None:
        self.position.set_xy(x, y)

    @property
    def field(self) -> Vector2:
        return self.magnet.field_at(self.position, self._field).copy()

    @property
    def magnitude(self) -> float:
        return self.magnet.field_at(self.position, self._field).magnitude

    @property
    def angle(self) -> float:
        """Direction of the field in radians. Zero for a zero field."""
        return self.magnet.field_at(self.position, self._field).angle


class LightBulb:
    """A bulb connected to a coil. Brightness follows the magnitude of the current."""

    def __init__(self, coil: Coil) -> None:
        self.coil = coil

    @property
    def brightness(self) -> float:
        """Brightness in [0, 1]."""
        amplitude = abs(self.coil.current_amplitude)
        if amplitude < config.NORMALIZED_CURRENT_THRESHOLD:
            return 0.0
        return amplitude


class Voltmeter:
    """
    A meter connected to a coil.

    The needle follows the current directly. When the current drops to zero
    the needle jiggles back to zero over a few ticks, like a real analog meter.
    """

    ZERO_NEEDLE_ANGLE = 0.0
    MAX_NEEDLE_ANGLE = math.radians(90)
    NEEDLE_JIGGLE_ANGLE = math.radians(3)
    NEEDLE_JIGGLE_THRESHOLD = math.radians(0.5)
    # Fraction of the needle's distance from zero that is reversed each tick
    NEEDLE_LIVELINESS = 0.6

    def __init__(self, coil: Coil) -> None:
        self.coil = coil
        self.needle_angle = self.ZERO_NEEDLE_ANGLE

    def reset(self) -> None:
        self.needle_angle = self.ZERO_NEEDLE_ANGLE

    def desired_needle_angle(self) -> float:
        amplitude = self.coil.current_amplitude
        if abs(amplitude) < config.NORMALIZED_CURRENT_THRESHOLD:
            amplitude = 0.0
        return linear(-1.0, 1.0, -self.MAX_NEEDLE_ANGLE, self.MAX_NEEDLE_ANGLE, amplitude)

    def step(self, dt: float) -> None:
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"
        desired = self.desired_needle_angle()
        delta_angle = math.fmod(desired - self.needle_angle, 2 * math.pi)

        if delta_angle == 0:
            return
        if desired != self.ZERO_NEEDLE_ANGLE:
            self.needle_angle = desired
        elif abs(delta_angle) < self.NEEDLE_JIGGLE_THRESHOLD:
            self.needle_angle = self.ZERO_NEEDLE_ANGLE
        else:
            # Settle toward zero, a little closer each tick
            jiggle = -delta_angle * self.NEEDLE_LIVELINESS
            self.needle_angle = clamp(jiggle, -self.NEEDLE_JIGGLE_ANGLE, self.NEEDLE_JIGGLE_ANGLE)
