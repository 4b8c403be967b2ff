from __future__ import annotations

import logging
import math
from enum import StrEnum
from typing import Optional

from faradaylab import config
from faradaylab.analysis.charges import CurrentFlow
from faradaylab.analysis.coil import Coil
from faradaylab.analysis.current_sources import ACPowerSupply, CurrentSource, DCPowerSupply
from faradaylab.analysis.magnets import Magnet
from faradaylab.model.geometry_primitives import Vector2

logger = logging.getLogger(__name__)


class CoilMagnet(Magnet):
    """
    A coil with current flowing through it, acting as a magnet.

    The field is modelled in two zones around the coil center:

    * inside the loop's bounding square (side 2R + wire_width/2) the field is
      uniform, (strength, 0);
    * outside it falls off like a dipole whose moment m = strength * R**3 / 2
      matches the inside field at the loop's edge:

          Bx = m/r**3 * (3 cos**2 - 1)
          By = m/r**3 * 3 cos sin

    This is only valid near the coil, which is all the simulation needs.
    """

    def __init__(
        self,
        coil: Coil,
        strength_range: tuple[float, float],
        strength: float = 0.0,
        position: Optional[Vector2] = None,
        rotation: float = 0.0,
    ) -> None:
        super().__init__(strength_range, strength, position, rotation)
        self.coil = coil

    @property
    def half_side(self) -> float:
        """Half the side of the square treated as inside the coil."""
        return self.coil.loop_radius + self.coil.wire_width / 4

    def is_inside_local(self, local_point: Vector2) -> bool:
        half_side = self.half_side
        return abs(local_point.x) <= half_side and abs(local_point.y) <= half_side

    def local_field(self, local_point: Vector2, out: Vector2) -> Vector2:
        if self.is_inside_local(local_point):
            return out.set_xy(self._strength, 0.0)

        x = local_point.x
        y = local_point.y
        distance = math.sqrt(x * x + y * y)
        if distance == 0:
            return out.set_xy(0.0, 0.0)

        radius = self.coil.loop_radius
        magnetic_moment = self._strength * radius * radius * radius / 2

        cos_theta = x / distance
        sin_theta = y / distance
        k = magnetic_moment / (distance * distance * distance)
        bx = k * ((3 * cos_theta * cos_theta) - 1)
        by = k * (3 * cos_theta * sin_theta)
        return out.set_xy(bx, by)


class CurrentSourceType(StrEnum):
    DC = "dc"
    AC = "ac"


class Electromagnet(CoilMagnet):
    """
    A coil connected to a DC or AC power supply.

    Strength and polarity follow the current: strength is |amplitude| times
    the maximum strength, and a negative current flips the poles.
    """

    STRENGTH_RANGE = (0.0, 300.0)
    WIRE_WIDTH = 16.0
    LOOP_SPACING = WIRE_WIDTH
    # The source coil has a fixed radius of 50
    MAX_LOOP_AREA = math.pi * 50 * 50

    def __init__(
        self,
        position: Optional[Vector2] = None,
        current_source_type: CurrentSourceType = CurrentSourceType.DC,
        current_flow: CurrentFlow = CurrentFlow.ELECTRON,
    ) -> None:
        coil = Coil(
            max_loop_area=self.MAX_LOOP_AREA,
            loop_area_percent_range=(100.0, 100.0, 100.0),
            number_of_loops_range=(1, 4, 4),
            wire_width=self.WIRE_WIDTH,
            loop_spacing=self.LOOP_SPACING,
            current_flow=current_flow,
        )
        super().__init__(coil, self.STRENGTH_RANGE, 0.0, position, 0.0)
        self.dc_power_supply = DCPowerSupply()
        self.ac_power_supply = ACPowerSupply()
        self._initial_source_type = current_source_type
        self.current_source_type = current_source_type
        self._update_from_current_source()

    @property
    def current_source(self) -> CurrentSource:
        if self.current_source_type is CurrentSourceType.AC:
            return self.ac_power_supply
        return self.dc_power_supply

    def set_current_source(self, current_source_type: CurrentSourceType) -> None:
        self.current_source_type = CurrentSourceType(current_source_type)
        self._update_from_current_source()
        logger.info(f"Electromagnet switched to {self.current_source_type.value} supply")

    def set_voltage(self, voltage: float) -> None:
        """Set the battery voltage. Only the DC supply has a user-controlled voltage."""
        self.dc_power_supply.set_voltage(voltage)
        self._update_from_current_source()

    def set_strength(self, strength: float) -> None:
        raise TypeError("Electromagnet strength follows its current; set the voltage instead.")

    def reset(self) -> None:
        super().reset()
        self.dc_power_supply.reset()
        self.ac_power_supply.reset()
        self.current_source_type = self._initial_source_type
        self.coil.reset()
        self._update_from_current_source()

    def step(self, dt: float) -> None:
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"
        if self.current_source_type is CurrentSourceType.AC:
            self.ac_power_supply.step(dt)
        self._update_from_current_source()
        self.coil.step(dt)

    def _update_from_current_source(self) -> None:
        amplitude = self.current_source.current_amplitude
        self.coil.set_current_amplitude(amplitude)
        self._strength = abs(amplitude) * self.STRENGTH_RANGE[1]
        self._rotation = 0.0 if amplitude >= 0 else math.pi
