"""
Charge transport along a coil.

Charges are markers that show the direction and relative speed of the current
in a coil. Each one sits on a coil segment at a position in [0, 1], where 1 is
the segment's start and 0 its end.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np

from faradaylab import config
from faradaylab.model.geometry_primitives import Vector2

if TYPE_CHECKING:
    import numpy.typing as npt

    from faradaylab.analysis.coil import CoilLayer, CoilPath

logger = logging.getLogger(__name__)

# Largest change of segment position in one tick, at full current and unit speed scales
MAX_SEGMENT_POSITION_DELTA = 0.15


class CurrentFlow(StrEnum):
    """Which way charges are drawn to move."""
    ELECTRON = "electron"
    CONVENTIONAL = "conventional"

    @property
    def sign(self) -> int:
        # Position 1 is the segment start, so moving forward decreases the position
        return -1 if self is CurrentFlow.ELECTRON else 1


@dataclass
class ChargedParticle:
    """
    A charge marker on a coil path.

    Attributes:
        segment_index: Index of the segment the charge is on.
        segment_position: Position on that segment, 1 at its start and 0 at its end.
        position: Cached point on the segment, relative to the coil center.
    """
    segment_index: int
    segment_position: float
    position: Vector2 = field(default_factory=Vector2)


def normalized_current_to_speed(normalized_current: float) -> float:
    """Signed charge speed in [-1, 1]; currents below the threshold do not move charges."""
    if abs(normalized_current) < config.NORMALIZED_CURRENT_THRESHOLD:
        return 0.0
    # Identity mapping of [-1, 1] onto [-1, 1], kept as a function so the curve can be tuned
    return normalized_current


class ChargeTransport:
    """
    Moves every charge of a coil along its path, once per tick.
    """

    def __init__(
        self,
        path: CoilPath,
        charges_per_segment: list[int],
        speed_scale: float = 1.0,
        current_flow: CurrentFlow = CurrentFlow.ELECTRON,
    ) -> None:
        """
        Args:
            path: Path to walk.
            charges_per_segment: Number of charges to place on each segment.
            speed_scale: Global multiplier on charge speed.
            current_flow: Convention that decides the direction of motion.
        """
        if speed_scale <= 0:
            raise ValueError(f"Speed scale must be positive, got {speed_scale}.")
        self.speed_scale = speed_scale
        self.current_flow = current_flow
        self.speed_and_direction = 0.0
        self.path = path
        self.particles: list[ChargedParticle] = []
        self.rebuild(path, charges_per_segment)

    def rebuild(self, path: CoilPath, charges_per_segment: list[int]) -> None:
        """
        Replace all charges with an evenly spread set on a new path.

        Raises:
            ValueError: If the counts do not match the segments.
        """
        if len(charges_per_segment) != len(path):
            raise ValueError(
                f"Got charge counts for {len(charges_per_segment)} segments, path has {len(path)}."
            )
        self.path = path
        self.particles = []
        for segment_index, count in enumerate(charges_per_segment):
            for i in range(count):
                particle = ChargedParticle(segment_index, i / count)
                path[segment_index].evaluate(particle.segment_position, particle.position)
                self.particles.append(particle)
        logger.debug(f"Placed {len(self.particles)} charges on {len(path)} segments")

    def layer_of(self, particle: ChargedParticle) -> CoilLayer:
        return self.path[particle.segment_index].layer

    def positions(self) -> npt.NDArray[np.float64]:
        """Positions of all charges relative to the coil center, shape (n, 2)."""
        return np.array([[p.position.x, p.position.y] for p in self.particles], dtype=np.float64).reshape(-1, 2)

    def step(self, dt: float, normalized_current: float) -> None:
        """
        Advance every charge.

        Args:
            dt: Tick length, always `config.CONSTANT_DT`.
            normalized_current: Current in the coil, in [-1, 1].
        """
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"
        self.speed_and_direction = normalized_current_to_speed(normalized_current)
        if self.speed_and_direction == 0:
            return

        sign = self.current_flow.sign
        for particle in self.particles:
            segment = self.path[particle.segment_index]
            delta_position = (sign * dt * MAX_SEGMENT_POSITION_DELTA * self.speed_and_direction *
                              self.speed_scale * segment.speed_scale)
            new_position = particle.segment_position + delta_position

            if new_position <= 0 or new_position >= 1:
                self._move_to_adjacent_segment(particle, new_position)
            else:
                particle.segment_position = new_position

            self.path[particle.segment_index].evaluate(particle.segment_position, particle.position)

    def _move_to_adjacent_segment(self, particle: ChargedParticle, new_position: float) -> None:
        """
        Carry a charge past the end (position <= 0) or start (position >= 1) of its segment.

        The overshoot is rescaled by the ratio of the segments' speed scales, and
        may skip several short segments. A valid coil never needs more hops than
        it has segments.

        Raises:
            RuntimeError: If the charge does not settle within that many hops.
        """
        n_segments = len(self.path)
        index = particle.segment_index
        position = new_position

        for _ in range(n_segments):
            old_speed_scale = self.path[index].speed_scale
            if position <= 0:
                # Forward, onto the start of the next segment
                index = (index + 1) % n_segments
                overshoot = abs(position * self.path[index].speed_scale / old_speed_scale)
                position = 1 - overshoot
                if position >= 0:
                    break
            else:
                # Backward, onto the end of the previous segment
                index = (index - 1) % n_segments
                overshoot = abs((1 - position) * self.path[index].speed_scale / old_speed_scale)
                position = overshoot
                if position <= 1:
                    break
        else:
            raise RuntimeError(
                f"Charge did not settle after {n_segments} segment transitions "
                f"(segment {particle.segment_index}, position {new_position})."
            )

        particle.segment_index = index
        particle.segment_position = position
