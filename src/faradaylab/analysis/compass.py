from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from faradaylab import config
from faradaylab.analysis.magnets import Magnet
from faradaylab.model.geometry_primitives import Vector2

logger = logging.getLogger(__name__)


class Compass(ABC):
    """
    Abstract base class for a compass whose needle follows a magnet's field.

    Each tick the field at the compass position is sampled; subclasses decide
    how the needle responds to it. A zero field leaves the needle where it is.
    """

    def __init__(self, magnet: Magnet, position: Optional[Vector2] = None) -> None:
        """
        Args:
            magnet: Magnet whose field the compass reads.
            position: Position of the compass center.
        """
        self.magnet = magnet
        self._position = position.copy() if position is not None else Vector2()
        self._initial_position = self._position.copy()
        self.angle = 0.0
        self.enabled = True
        self._field = Vector2()

    @property
    def position(self) -> Vector2:
        return self._position.copy()

    def set_position(self, x: float, y: float) -> None:
        self._position.set_xy(x, y)

    def reset(self) -> None:
        self._position.set(self._initial_position)
        self.angle = 0.0
        self.enabled = True

    def step(self, dt: float) -> None:
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"
        if not self.enabled:
            return
        field = self.magnet.field_at(self._position, self._field)
        if field.magnitude != 0:
            self.update_angle(field, dt)

    @abstractmethod
    def update_angle(self, field: Vector2, dt: float) -> None:
        """
        Move the needle in response to a non-zero field.

        Args:
            field: Field at the compass position.
            dt: Tick length.
        """
        raise NotImplementedError

    def start_moving_now(self) -> None:
        """Nudge the needle so that it reacts at once to a sudden change of field."""


class ImmediateCompass(Compass):
    """Needle that points along the field at all times."""

    def update_angle(self, field: Vector2, dt: float) -> None:
        self.angle = field.angle


class IncrementalCompass(Compass):
    """
    Needle that takes the shortest way to the field direction, turning at
    most MAX_DELTA_ANGLE per tick.
    """

    MAX_DELTA_ANGLE = math.radians(45)

    def update_angle(self, field: Vector2, dt: float) -> None:
        field_angle = field.angle
        delta_angle = field_angle - self.angle
        if delta_angle == 0:
            return

        # Normalize to (-2*pi, 2*pi), then to [-pi, pi]
        if abs(delta_angle) >= 2 * math.pi:
            delta_angle = math.fmod(delta_angle, 2 * math.pi)
        if delta_angle > math.pi:
            delta_angle -= 2 * math.pi
        elif delta_angle < -math.pi:
            delta_angle += 2 * math.pi

        if abs(delta_angle) < self.MAX_DELTA_ANGLE:
            self.angle = field_angle
        else:
            self.angle = self.angle + math.copysign(self.MAX_DELTA_ANGLE, delta_angle)


class KinematicCompass(Compass):
    """
    Needle with inertia, integrated with the Verlet algorithm.

    The needle overshoots and wobbles before it settles. The angle difference
    is a plain remainder, not the shortest path, so a needle that is several
    turns away from the field unwinds through those turns.
    """

    # Below this difference the needle snaps to the field
    THRESHOLD = math.radians(0.2)
    # Increase to make the compass more sensitive to weak fields
    SENSITIVITY = 0.01
    # Increase to make the needle wobble less
    DAMPING = 0.08
    # Angular velocity given by start_moving_now, radians per tick
    KICK_START_VELOCITY = 0.03

    def __init__(
        self,
        magnet: Magnet,
        position: Optional[Vector2] = None,
        max_field_magnitude: Optional[float] = None,
    ) -> None:
        """
        Args:
            magnet: Magnet whose field the compass reads.
            position: Position of the compass center.
            max_field_magnitude: If set, fields stronger than this (G) align the
                needle at once instead of making it spin wildly.
        """
        super().__init__(magnet, position)
        self.max_field_magnitude = max_field_magnitude
        self.angular_velocity = 0.0
        self.angular_acceleration = 0.0

    def reset(self) -> None:
        super().reset()
        self.angular_velocity = 0.0
        self.angular_acceleration = 0.0

    def start_moving_now(self) -> None:
        self.angular_velocity = self.KICK_START_VELOCITY
        logger.debug(f"Compass needle kicked at angle {self.angle:.3f} rad")

    def update_angle(self, field: Vector2, dt: float) -> None:
        magnitude = field.magnitude
        field_angle = field.angle
        phi = math.fmod(field_angle - self.angle, 2 * math.pi)
        if phi == 0:
            return

        if (
            abs(phi) < self.THRESHOLD
            or (self.max_field_magnitude is not None and magnitude > self.max_field_magnitude)
            or self.magnet.is_inside(self._position)
        ):
            self.angle = field_angle
            self.angular_velocity = 0.0
            self.angular_acceleration = 0.0
            return

        torque = self.SENSITIVITY * math.sin(phi) * magnitude

        # Verlet
        alpha = torque - (self.DAMPING * self.angular_velocity)
        self.angle = self.angle + (self.angular_velocity * dt) + (0.5 * alpha * dt * dt)
        omega_temp = self.angular_velocity + (alpha * dt)
        alpha_temp = torque - (self.DAMPING * omega_temp)
        self.angular_velocity = self.angular_velocity + (0.5 * (alpha + alpha_temp) * dt)
        self.angular_acceleration = alpha_temp
