"""
Pickup Coil (Faraday's Law)
===========================
A coil that samples a magnet's field and turns the change of magnetic flux
through it into an induced EMF and a normalized current.

Two approximations here are calibrated by eye and must stay as they are,
because every `max_emf` value in `faradaylab.model.state` was tuned against
them:

1. Transition smoothing. A sample that falls inside a magnet returns a field
   exactly equal to the magnet strength. Such samples are multiplied by
   `transition_smoothing_scale` so that the EMF does not jump when a magnet
   edge crosses a sample point.
2. Effective loop area. The field is only sampled along the coil's vertical
   axis, so the loop is treated as a thin rectangle of width `min_loop_radius`
   and height `2 * loop_radius` rather than a disc.
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Optional

from faradaylab import config
from faradaylab.analysis.charges import CurrentFlow
from faradaylab.analysis.coil import Coil
from faradaylab.analysis.instruments import LightBulb, Voltmeter
from faradaylab.analysis.magnets import Magnet
from faradaylab.model.geometry_primitives import Vector2
from faradaylab.utils import check_in_range, clamp

logger = logging.getLogger(__name__)

WIRE_WIDTH = 16.0
LOOP_SPACING = 1.5 * WIRE_WIDTH  # loosely packed loops
MAX_LOOP_AREA = math.pi * 150 * 150
MAX_EMF_RANGE = (10_000.0, 5_000_000.0)
TRANSITION_SMOOTHING_SCALE_RANGE = (0.1, 1.0)


class SamplePointsStrategy(ABC):
    """
    Decides where along its vertical axis a coil samples the field.
    """

    def create_sample_points(self, loop_radius: float) -> list[Vector2]:
        """
        Sample points for a loop of `loop_radius`, as offsets from the coil center.

        Points are ordered: the center first, then pairs above and below it.

        Raises:
            ValueError: If the points do not include the center.
        """
        points = self._create_points(loop_radius)
        if not any(p.x == 0 and p.y == 0 for p in points):
            raise ValueError(f"{type(self).__name__} did not create a sample point at the coil center.")
        return points

    @abstractmethod
    def _create_points(self, loop_radius: float) -> list[Vector2]:
        raise NotImplementedError

    @staticmethod
    def _points_on_vertical_axis(count_per_side: int, spacing: float) -> list[Vector2]:
        points = [Vector2(0, 0)]
        for i in range(1, count_per_side + 1):
            y = i * spacing
            points.append(Vector2(0, y))
            points.append(Vector2(0, -y))
        return points


class FixedNumberOfSamplePointsStrategy(SamplePointsStrategy):
    """
    A fixed, odd number of points spread over the loop's diameter. The
    spacing grows with the loop radius.
    """

    def __init__(self, number_of_sample_points: int = 9) -> None:
        if number_of_sample_points < 1 or number_of_sample_points % 2 == 0:
            raise ValueError(f"Number of sample points must be odd and positive, got {number_of_sample_points}.")
        self.number_of_sample_points = number_of_sample_points

    def _create_points(self, loop_radius: float) -> list[Vector2]:
        count_per_side = (self.number_of_sample_points - 1) // 2
        if count_per_side == 0:
            return [Vector2(0, 0)]
        return self._points_on_vertical_axis(count_per_side, loop_radius / count_per_side)


class FixedSpacingSamplePointsStrategy(SamplePointsStrategy):
    """
    Points a fixed distance apart. The number of points grows with the loop radius.
    """

    def __init__(self, spacing: float) -> None:
        if spacing <= 0:
            raise ValueError(f"Sample point spacing must be positive, got {spacing}.")
        self.spacing = spacing

    def _create_points(self, loop_radius: float) -> list[Vector2]:
        return self._points_on_vertical_axis(math.trunc(loop_radius / self.spacing), self.spacing)


class PickupCoil:
    """
    Coil in which a magnet induces a current.

    Attributes:
        flux: Magnetic flux through the coil after the last step.
        delta_flux: Change of flux during the last step.
        emf: Induced EMF during the last step.
        max_emf: EMF that maps to a normalized current of 1.
        largest_emf: Largest |emf| seen so far, for calibrating `max_emf`.
    """

    def __init__(
        self,
        magnet: Magnet,
        position: Optional[Vector2] = None,
        max_emf: float = 1_500_000.0,
        transition_smoothing_scale: float = 1.0,
        sample_points_strategy: Optional[SamplePointsStrategy] = None,
        loop_area_percent_range: tuple[float, float, float] = (20.0, 100.0, 50.0),
        number_of_loops_range: tuple[int, int, int] = (1, 3, 2),
        charge_speed_scale: float = 1.0,
        current_flow: CurrentFlow = CurrentFlow.ELECTRON,
    ) -> None:
        """
        Args:
            magnet: Source of the field.
            position: Position of the coil center.
            max_emf: Calibration constant, see class attributes.
            transition_smoothing_scale: Scale for samples inside the magnet, in (0, 1].
            sample_points_strategy: Where to sample the field. Defaults to 9 points.
            loop_area_percent_range: (min, max, default) loop area in percent of the maximum.
            number_of_loops_range: (min, max, default) number of loops.
            charge_speed_scale: Global multiplier on charge speed.
            current_flow: Direction convention for the charges.
        """
        check_in_range("Maximum EMF", max_emf, MAX_EMF_RANGE)
        check_in_range("Transition smoothing scale", transition_smoothing_scale, TRANSITION_SMOOTHING_SCALE_RANGE)

        self.magnet = magnet
        self._position = position.copy() if position is not None else Vector2()
        self._initial_position = self._position.copy()
        self.max_emf = max_emf
        self.transition_smoothing_scale = transition_smoothing_scale
        self.sample_points_strategy = sample_points_strategy or FixedNumberOfSamplePointsStrategy(9)

        self.coil = Coil(
            max_loop_area=MAX_LOOP_AREA,
            loop_area_percent_range=loop_area_percent_range,
            number_of_loops_range=number_of_loops_range,
            wire_width=WIRE_WIDTH,
            loop_spacing=LOOP_SPACING,
            charge_speed_scale=charge_speed_scale,
            current_flow=current_flow,
        )
        self.light_bulb = LightBulb(self.coil)
        self.voltmeter = Voltmeter(self.coil)

        self.flux = 0.0
        self.delta_flux = 0.0
        self.emf = 0.0
        self.largest_emf = 0.0

        self._sample_point = Vector2()
        self._sample_field = Vector2()
        self.sample_points = self.sample_points_strategy.create_sample_points(self.coil.loop_radius)
        self._sample_points_radius = self.coil.loop_radius

        # Start from the flux of the initial configuration so the first step has no EMF spike
        self.flux = self._compute_flux()

    @property
    def position(self) -> Vector2:
        return self._position.copy()

    def set_position(self, x: float, y: float) -> None:
        self._position.set_xy(x, y)

    @property
    def normalized_current(self) -> float:
        return self.coil.current_amplitude

    @property
    def min_loop_radius(self) -> float:
        return self.coil.loop_radius_range[0]

    def set_number_of_loops(self, number_of_loops: int) -> None:
        self.coil.set_number_of_loops(number_of_loops)

    def set_loop_radius(self, loop_radius: float) -> None:
        self.coil.set_loop_radius(loop_radius)

    def set_max_emf(self, max_emf: float) -> None:
        check_in_range("Maximum EMF", max_emf, MAX_EMF_RANGE)
        self.max_emf = max_emf

    def set_transition_smoothing_scale(self, scale: float) -> None:
        check_in_range("Transition smoothing scale", scale, TRANSITION_SMOOTHING_SCALE_RANGE)
        self.transition_smoothing_scale = scale

    def reset(self) -> None:
        self._position.set(self._initial_position)
        self.coil.reset()
        self.voltmeter.reset()
        self.delta_flux = 0.0
        self.emf = 0.0
        self.largest_emf = 0.0
        self.flux = self._compute_flux()

    def step(self, dt: float) -> None:
        """
        Recompute the EMF from the change of flux since the last tick, then
        move the instruments and charges.

        Args:
            dt: Tick length, always `config.CONSTANT_DT`.
        """
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"
        self._update_emf(dt)
        self.voltmeter.step(dt)
        self.coil.step(dt)

    def _update_emf(self, dt: float) -> None:
        flux = self._compute_flux()
        self.delta_flux = flux - self.flux
        self.flux = flux

        # Faraday's Law
        self.emf = -self.delta_flux / dt
        self.coil.set_current_amplitude(clamp(self.emf / self.max_emf, -1.0, 1.0))
        self._calibrate(self.emf)

    def _compute_flux(self) -> float:
        if self.coil.loop_radius != self._sample_points_radius:
            self.sample_points = self.sample_points_strategy.create_sample_points(self.coil.loop_radius)
            self._sample_points_radius = self.coil.loop_radius

        magnet_strength = self.magnet.strength
        sum_bx = 0.0
        for offset in self.sample_points:
            self._sample_point.set_xy(self._position.x + offset.x, self._position.y + offset.y)
            self.magnet.field_at(self._sample_point, self._sample_field)

            # Only the component perpendicular to the face of the coil contributes
            bx = self._sample_field.x
            if abs(bx) == magnet_strength:
                bx *= self.transition_smoothing_scale
            sum_bx += bx

        average_bx = sum_bx / len(self.sample_points) if self.sample_points else 0.0

        effective_loop_area = self.min_loop_radius * (2 * self.coil.loop_radius)
        loop_flux = effective_loop_area * average_bx
        return self.coil.number_of_loops * loop_flux

    def _calibrate(self, emf: float) -> None:
        """Track the largest EMF. `max_emf` is never changed here."""
        abs_emf = abs(emf)
        if abs_emf > self.largest_emf:
            self.largest_emf = abs_emf
            if abs_emf > self.max_emf:
                logger.warning(f"EMF {abs_emf:.1f} exceeds max_emf {self.max_emf:.1f}; "
                               f"normalized current is clipped")
