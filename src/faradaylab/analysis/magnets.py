from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from faradaylab import config
from faradaylab.analysis.field_data import MAGNET_HEIGHT, MAGNET_WIDTH, load_bar_magnet_field_data
from faradaylab.analysis.field_grid import BarMagnetFieldData
from faradaylab.model.geometry_primitives import Vector2
from faradaylab.utils import check_in_range

logger = logging.getLogger(__name__)


class Magnet(ABC):
    """
    Abstract base class for anything that produces a magnetic field.

    The field is evaluated in the magnet's local frame, where the north pole
    points along +x, by `local_field`. This class handles the transform between
    the global and local frames and limits the returned magnitude to the
    magnet's strength.
    """

    def __init__(
        self,
        strength_range: tuple[float, float],
        strength: float,
        position: Optional[Vector2] = None,
        rotation: float = 0.0,
    ) -> None:
        """
        Args:
            strength_range: Allowed strength, in gauss.
            strength: Initial strength, in gauss.
            position: Position of the magnet's center.
            rotation: Rotation about the center, in radians.

        Raises:
            ValueError: If `strength` is outside `strength_range`.
        """
        check_in_range("Strength", strength, strength_range)
        self.strength_range = strength_range
        self._strength = strength
        self._position = position.copy() if position is not None else Vector2()
        self._rotation = rotation

        self._initial_strength = strength
        self._initial_position = self._position.copy()
        self._initial_rotation = rotation

        # Scratch vectors for the frame transform
        self._local_point = Vector2()

    @property
    def strength(self) -> float:
        return self._strength

    def set_strength(self, strength: float) -> None:
        check_in_range("Strength", strength, self.strength_range)
        self._strength = strength

    @property
    def position(self) -> Vector2:
        return self._position.copy()

    def set_position(self, x: float, y: float) -> None:
        self._position.set_xy(x, y)

    @property
    def rotation(self) -> float:
        return self._rotation

    def set_rotation(self, rotation: float) -> None:
        self._rotation = rotation

    def flip_polarity(self) -> None:
        """Swap the north and south poles by rotating half a turn."""
        self._rotation = (self._rotation + math.pi) % (2 * math.pi)
        logger.debug(f"{type(self).__name__} polarity flipped, rotation now {self._rotation:.3f} rad")

    def reset(self) -> None:
        self._strength = self._initial_strength
        self._position.set(self._initial_position)
        self._rotation = self._initial_rotation

    def to_local(self, point: Vector2, out: Optional[Vector2] = None) -> Vector2:
        """Express a global point in the magnet's frame."""
        if out is None:
            out = Vector2()
        out.set_xy(point.x - self._position.x, point.y - self._position.y)
        return out.rotate_in_place(-self._rotation)

    def field_at(self, point: Vector2, out: Optional[Vector2] = None) -> Vector2:
        """
        Field vector at a global point, in gauss.

        Args:
            point: Global position.
            out: Optional vector to write the result into.

        Returns:
            The field. Its magnitude never exceeds `strength`.
        """
        if out is None:
            out = Vector2()
        local_point = self.to_local(point, self._local_point)
        self.local_field(local_point, out)
        out.rotate_in_place(self._rotation)

        if out.magnitude > self._strength:
            out.set_magnitude_in_place(self._strength)
        return out

    def is_inside(self, point: Vector2) -> bool:
        """True if the global point is inside the body of the magnet."""
        return self.is_inside_local(self.to_local(point, Vector2()))

    @abstractmethod
    def local_field(self, local_point: Vector2, out: Vector2) -> Vector2:
        """
        Field at a point of the magnet's frame, before rotation and clamping.

        Args:
            local_point: Point relative to the magnet center, unrotated.
            out: Vector to write the result into.

        Returns:
            `out`.
        """
        raise NotImplementedError

    @abstractmethod
    def is_inside_local(self, local_point: Vector2) -> bool:
        raise NotImplementedError


class BarMagnet(Magnet):
    """
    Permanent bar magnet whose field comes from precomputed tables.
    """

    STRENGTH_RANGE = (0.0, 300.0)
    DEFAULT_STRENGTH = 225.0

    def __init__(
        self,
        position: Optional[Vector2] = None,
        rotation: float = 0.0,
        strength: float = DEFAULT_STRENGTH,
        field_data: Optional[BarMagnetFieldData] = None,
    ) -> None:
        super().__init__(self.STRENGTH_RANGE, strength, position, rotation)
        self.field_data = field_data if field_data is not None else load_bar_magnet_field_data()
        self.width = MAGNET_WIDTH
        self.height = MAGNET_HEIGHT

    def local_field(self, local_point: Vector2, out: Vector2) -> Vector2:
        # The tables cover one quadrant. Bx is symmetric in both axes, By is not.
        x = local_point.x
        y = local_point.y
        bx, by = self.field_data.lookup(abs(x), abs(y))
        if (x > 0 and y < 0) or (x < 0 and y > 0):
            by = -by

        scale = self._strength / self.field_data.reference_strength
        return out.set_xy(bx * scale, by * scale)

    def is_inside_local(self, local_point: Vector2) -> bool:
        return abs(local_point.x) <= self.width / 2 and abs(local_point.y) <= self.height / 2


class Turbine(BarMagnet):
    """
    A bar magnet mounted on a water wheel.

    Water flow turns the magnet; a full flow rate corresponds to MAX_RPM.
    """

    FLOW_RATE_RANGE = (0.0, 100.0)  # %
    MAX_RPM = 100.0
    # Rotation per tick at 100% flow
    MAX_DELTA_ANGLE = 2 * math.pi * (MAX_RPM / (config.FRAMES_PER_SECOND * 60))

    def __init__(
        self,
        position: Optional[Vector2] = None,
        rotation: float = 0.0,
        strength: float = BarMagnet.DEFAULT_STRENGTH,
        flow_rate: float = 0.0,
        field_data: Optional[BarMagnetFieldData] = None,
    ) -> None:
        super().__init__(position, rotation, strength, field_data)
        check_in_range("Flow rate", flow_rate, self.FLOW_RATE_RANGE)
        self.flow_rate = flow_rate
        self._initial_flow_rate = flow_rate

    def set_flow_rate(self, flow_rate: float) -> None:
        check_in_range("Flow rate", flow_rate, self.FLOW_RATE_RANGE)
        self.flow_rate = flow_rate
        logger.debug(f"Turbine flow rate set to {flow_rate:.1f}%, {self.rpm:.1f} RPM")

    @property
    def rpm(self) -> float:
        return (self.flow_rate / 100) * self.MAX_RPM

    def reset(self) -> None:
        super().reset()
        self.flow_rate = self._initial_flow_rate

    def step(self, dt: float) -> None:
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"
        if self.flow_rate == 0:
            return
        delta_angle = dt * (self.flow_rate / 100) * self.MAX_DELTA_ANGLE

        # Clockwise on screen; keep the angle small so it never loses precision
        rotation = self._rotation - delta_angle
        self._rotation = math.copysign(abs(rotation) % (2 * math.pi), rotation)
