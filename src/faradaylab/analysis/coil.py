"""
Coil geometry.

A coil is drawn as a sequence of quadratic Bezier segments that together
form a pseudo-3D helix: for each loop a back half (behind the magnet) and a
front half, plus a wire end on each side. Charges walk this path, so the
order of the segments is the order in which charge flows through the wire.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Iterator, Optional, TYPE_CHECKING

from faradaylab import config
from faradaylab.analysis.charges import ChargeTransport, CurrentFlow
from faradaylab.model.geometry_primitives import QuadraticBezier, Vector2
from faradaylab.utils import check_in_range

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# Distance between charges along a loop, which sets how many charges a segment holds
CHARGE_SPACING = 25
CHARGES_IN_LEFT_END = 2
CHARGES_IN_RIGHT_END = 2

CURRENT_AMPLITUDE_RANGE = (-1.0, 1.0)


class CoilLayer(StrEnum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"


@dataclass(frozen=True)
class CoilSegment:
    """
    One piece of wire: a quadratic Bezier from `start` (t=1) to `end` (t=0).

    Attributes:
        start: First point visited by forward travel.
        control: Bezier control point.
        end: Last point visited by forward travel.
        layer: Whether the segment is drawn behind or in front of the magnet.
        speed_scale: Multiplier on charge speed, so that charges on segments
            of different length appear to move at the same speed.
    """
    start: Vector2
    control: Vector2
    end: Vector2
    layer: CoilLayer
    speed_scale: float = 1.0
    curve: QuadraticBezier = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.speed_scale <= 0:
            raise ValueError(f"Segment speed scale must be positive, got {self.speed_scale}.")
        object.__setattr__(self, "curve", QuadraticBezier(self.start, self.control, self.end))

    def evaluate(self, t: float, out: Optional[Vector2] = None) -> Vector2:
        return self.curve.evaluate(t, out)


class CoilPath:
    """
    Ordered, immutable sequence of CoilSegments. Index order is the direction
    of forward travel, and the path wraps from the last segment to the first.
    """

    def __init__(self, segments: list[CoilSegment]) -> None:
        if not segments:
            raise ValueError("A coil path needs at least one segment.")
        self._segments = tuple(segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index: int) -> CoilSegment:
        return self._segments[index]

    def __iter__(self) -> Iterator[CoilSegment]:
        return iter(self._segments)

    @classmethod
    def create(
        cls,
        number_of_loops: int,
        loop_radius: float,
        wire_width: float,
        loop_spacing: float,
    ) -> CoilPath:
        """
        Lay out the segments of a coil centered at the origin, from left to right.

        The constants below were tuned by eye so that adjacent segments join
        smoothly. Change them only with a visual check.

        Args:
            number_of_loops: Number of loops, at least 1.
            loop_radius: Radius of each loop.
            wire_width: Width of the wire.
            loop_spacing: Gap between neighbouring loops.

        Returns:
            The coil path.
        """
        if number_of_loops < 1:
            raise ValueError(f"A coil needs at least one loop, got {number_of_loops}.")
        if loop_radius <= 0:
            raise ValueError(f"Loop radius must be positive, got {loop_radius}.")

        r = loop_radius
        loop_center_spacing = wire_width + loop_spacing
        # Keep the coil centered
        x_start = -(loop_center_spacing * (number_of_loops - 1) / 2)
        end_speed_scale = (r / CHARGE_SPACING) / CHARGES_IN_LEFT_END

        segments: list[CoilSegment] = []
        for i in range(number_of_loops):
            x_offset = x_start + (i * loop_center_spacing)

            if i == 0:
                # Left wire end
                end = Vector2(-loop_center_spacing / 2 + x_offset, -r)
                start = Vector2(end.x - 15, end.y - 40)
                control = Vector2(end.x - 20, end.y - 20)
                segments.append(CoilSegment(start, control, end, CoilLayer.BACKGROUND, end_speed_scale))

                # Back top, joined to the wire end
                segments.append(CoilSegment(
                    Vector2(-loop_center_spacing / 2 + x_offset, -r),
                    Vector2((r * 0.15) + x_offset, -r * 0.70),
                    Vector2((r * 0.25) + x_offset, 0),
                    CoilLayer.BACKGROUND,
                ))
            else:
                # Back top, joined to the previous loop
                segments.append(CoilSegment(
                    Vector2(-loop_center_spacing + x_offset, -r),
                    Vector2((r * 0.15) + x_offset, -r * 1.20),
                    Vector2((r * 0.25) + x_offset, 0),
                    CoilLayer.BACKGROUND,
                ))

            # Back bottom
            segments.append(CoilSegment(
                Vector2((r * 0.25) + x_offset, 0),
                Vector2((r * 0.35) + x_offset, r * 1.20),
                Vector2(x_offset, r),
                CoilLayer.BACKGROUND,
            ))

            # Front bottom
            segments.append(CoilSegment(
                Vector2(x_offset, r),
                Vector2((-r * 0.25) + x_offset, r * 0.80),
                Vector2((-r * 0.25) + x_offset, 0),
                CoilLayer.FOREGROUND,
            ))

            # Front top
            segments.append(CoilSegment(
                Vector2((-r * 0.25) + x_offset, 0),
                Vector2((-r * 0.25) + x_offset, -r * 0.80),
                Vector2(x_offset, -r),
                CoilLayer.FOREGROUND,
            ))

            if i == number_of_loops - 1:
                # Right wire end
                start = Vector2(x_offset, -r)
                end = Vector2(start.x + 15, start.y - 40)
                control = Vector2(start.x + 20, start.y - 20)
                segments.append(CoilSegment(start, control, end, CoilLayer.FOREGROUND, end_speed_scale))

        return cls(segments)


class Coil:
    """
    A coil of wire: its geometry, the current through it, and the charges
    that visualize that current.
    """

    def __init__(
        self,
        max_loop_area: float,
        loop_area_percent_range: tuple[float, float, float] = (100.0, 100.0, 100.0),
        number_of_loops_range: tuple[int, int, int] = (1, 3, 2),
        wire_width: float = 16.0,
        loop_spacing: float = 8.0,
        charge_speed_scale: float = 1.0,
        charges_visible: bool = True,
        current_flow: CurrentFlow = CurrentFlow.ELECTRON,
    ) -> None:
        """
        Args:
            max_loop_area: Area of a loop at 100%.
            loop_area_percent_range: (min, max, default) loop area, in percent of `max_loop_area`.
            number_of_loops_range: (min, max, default) number of loops.
            wire_width: Width of the wire.
            loop_spacing: Horizontal gap between loops, zero is tightly packed.
            charge_speed_scale: Global multiplier on charge speed.
            charges_visible: Whether charges are moved on each step.
            current_flow: Direction convention used to move the charges.
        """
        if wire_width < 0 or loop_spacing < 0:
            raise ValueError(f"Invalid wire width {wire_width} or loop spacing {loop_spacing}.")
        if max_loop_area <= 0:
            raise ValueError(f"Maximum loop area must be positive, got {max_loop_area}.")

        min_percent, max_percent, default_percent = loop_area_percent_range
        min_loops, max_loops, default_loops = number_of_loops_range

        self.max_loop_area = max_loop_area
        self.wire_width = wire_width
        self.loop_spacing = loop_spacing
        self.number_of_loops_range = (min_loops, max_loops)
        # Convert range from area to radius: r = sqrt(A / pi)
        self.loop_radius_range = (
            math.sqrt((min_percent / 100) * max_loop_area / math.pi),
            math.sqrt((max_percent / 100) * max_loop_area / math.pi),
        )

        self._default_number_of_loops = default_loops
        self._default_loop_radius = math.sqrt((default_percent / 100) * max_loop_area / math.pi)
        check_in_range("Number of loops", default_loops, self.number_of_loops_range)
        check_in_range("Loop radius", self._default_loop_radius, self.loop_radius_range)

        self._number_of_loops = default_loops
        self._loop_radius = self._default_loop_radius
        self._current_amplitude = 0.0
        self.charges_visible = charges_visible
        self._default_charges_visible = charges_visible

        self.path = CoilPath.create(self._number_of_loops, self._loop_radius, wire_width, loop_spacing)
        self.charges = ChargeTransport(self.path, self._charges_per_segment(), charge_speed_scale, current_flow)

    @property
    def number_of_loops(self) -> int:
        return self._number_of_loops

    def set_number_of_loops(self, number_of_loops: int) -> None:
        if int(number_of_loops) != number_of_loops:
            raise ValueError(f"Number of loops must be an integer, got {number_of_loops}.")
        check_in_range("Number of loops", number_of_loops, self.number_of_loops_range)
        if number_of_loops != self._number_of_loops:
            self._number_of_loops = int(number_of_loops)
            self._rebuild()

    @property
    def loop_radius(self) -> float:
        return self._loop_radius

    def set_loop_radius(self, loop_radius: float) -> None:
        check_in_range("Loop radius", loop_radius, self.loop_radius_range)
        if loop_radius != self._loop_radius:
            self._loop_radius = loop_radius
            self._rebuild()

    @property
    def loop_area(self) -> float:
        return math.pi * self._loop_radius * self._loop_radius

    @property
    def loop_area_percent(self) -> float:
        return 100 * self.loop_area / self.max_loop_area

    def set_loop_area_percent(self, percent: float) -> None:
        self.set_loop_radius(math.sqrt((percent / 100) * self.max_loop_area / math.pi))

    @property
    def current_amplitude(self) -> float:
        return self._current_amplitude

    def set_current_amplitude(self, current_amplitude: float) -> None:
        check_in_range("Current amplitude", current_amplitude, CURRENT_AMPLITUDE_RANGE)
        self._current_amplitude = current_amplitude

    def reset(self) -> None:
        self._number_of_loops = self._default_number_of_loops
        self._loop_radius = self._default_loop_radius
        self._current_amplitude = 0.0
        self.charges_visible = self._default_charges_visible
        self._rebuild()

    def step(self, dt: float) -> None:
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"
        if self._current_amplitude != 0 and self.charges_visible:
            self.charges.step(dt, self._current_amplitude)
        else:
            self.charges.speed_and_direction = 0.0

    def charge_positions(self, origin: Vector2) -> npt.NDArray[np.float64]:
        """World positions of all charges, shape (n, 2), for a coil centered at `origin`."""
        positions = self.charges.positions()
        positions[:, 0] += origin.x
        positions[:, 1] += origin.y
        return positions

    def _charges_per_segment(self) -> list[int]:
        counts = []
        last = len(self.path) - 1
        for index in range(len(self.path)):
            if index == 0:
                counts.append(CHARGES_IN_LEFT_END)
            elif index == last:
                counts.append(CHARGES_IN_RIGHT_END)
            else:
                counts.append(max(1, int(math.floor(self._loop_radius / CHARGE_SPACING))))
        return counts

    def _rebuild(self) -> None:
        logger.debug(f"Rebuilding coil: {self._number_of_loops} loops, radius {self._loop_radius:.2f}")
        self.path = CoilPath.create(self._number_of_loops, self._loop_radius, self.wire_width, self.loop_spacing)
        self.charges.rebuild(self.path, self._charges_per_segment())
