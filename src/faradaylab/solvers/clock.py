"""Fixed-tick simulation clock.

Wall-clock time from the renderer is accumulated, and the physics is advanced
in whole ticks of 1/FRAMES_PER_SECOND seconds. Every tick hands listeners the
same dt (`config.CONSTANT_DT`), so results do not depend on the frame rate.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from faradaylab import config

logger = logging.getLogger(__name__)

TickListener = Callable[[float], None]

# Rounding slack when comparing accumulated wall time with one tick
TICK_TOLERANCE = 1e-9


class FixedStepClock:
    """
    Turns variable wall-clock deltas into constant logical ticks.

    Attributes:
        seconds_per_tick: Wall time covered by one tick.
        accumulated_time: Wall time not yet consumed by a tick.
        tick_count: Ticks emitted since construction or reset.
        is_playing: While False, `advance` ignores time. `step_once` still works.
    """

    def __init__(
        self,
        frames_per_second: int = config.FRAMES_PER_SECOND,
        max_wall_dt: Optional[float] = None,
    ) -> None:
        """
        Args:
            frames_per_second: Logical tick rate.
            max_wall_dt: If set, longer wall deltas (e.g. after the app was in
                the background) are cut to this many seconds.
        """
        if frames_per_second <= 0:
            raise ValueError(f"Frames per second must be positive, got {frames_per_second}.")
        self.seconds_per_tick = 1.0 / frames_per_second
        self.max_wall_dt = max_wall_dt
        self.accumulated_time = 0.0
        self.tick_count = 0
        self.is_playing = True
        self._listeners: list[TickListener] = []

    def add_listener(self, listener: TickListener) -> None:
        """Register a callback that receives dt on every tick, in registration order."""
        self._listeners.append(listener)

    def remove_listener(self, listener: TickListener) -> None:
        self._listeners.remove(listener)

    def reset(self) -> None:
        self.accumulated_time = 0.0
        self.tick_count = 0

    def advance(self, wall_dt: float) -> int:
        """
        Add wall time and emit as many ticks as it covers.

        Args:
            wall_dt: Seconds since the previous call.

        Raises:
            ValueError: If `wall_dt` is negative.

        Returns:
            Number of ticks emitted.
        """
        if wall_dt < 0:
            raise ValueError(f"Wall time delta must not be negative, got {wall_dt}.")
        if not self.is_playing:
            return 0
        if self.max_wall_dt is not None and wall_dt > self.max_wall_dt:
            logger.debug(f"Clamping wall dt {wall_dt:.3f}s to {self.max_wall_dt:.3f}s")
            wall_dt = self.max_wall_dt

        self.accumulated_time += wall_dt
        ticks = 0
        while self.accumulated_time >= self.seconds_per_tick - TICK_TOLERANCE:
            self.accumulated_time = max(0.0, self.accumulated_time - self.seconds_per_tick)
            self._emit()
            ticks += 1
        return ticks

    def step_once(self) -> None:
        """Emit a single tick, e.g. for a 'step' button while paused."""
        self._emit()

    def _emit(self) -> None:
        self.tick_count += 1
        for listener in self._listeners:
            listener(config.CONSTANT_DT)
