"""
Current sources for the electromagnet.

A source holds a voltage; its current amplitude is the voltage normalized to
the source's maximum voltage, in [-1, 1].
"""
from __future__ import annotations

import math
from abc import ABC

from faradaylab import config
from faradaylab.utils import check_in_range


class CurrentSource(ABC):
    """Base class for voltage sources that drive a coil."""

    def __init__(self, max_voltage: float, initial_voltage: float) -> None:
        if max_voltage <= 0:
            raise ValueError(f"Maximum voltage must be positive, got {max_voltage}.")
        self.max_voltage = max_voltage
        self.voltage_range = (-max_voltage, max_voltage)
        check_in_range("Voltage", initial_voltage, self.voltage_range)
        self._voltage = initial_voltage
        self._initial_voltage = initial_voltage

    @property
    def voltage(self) -> float:
        return self._voltage

    @property
    def current_amplitude(self) -> float:
        return self._voltage / self.max_voltage

    def reset(self) -> None:
        self._voltage = self._initial_voltage

    def step(self, dt: float) -> None:
        """Advance the source by one tick. Sources with a constant voltage do nothing."""
        assert dt == config.CONSTANT_DT, f"invalid dt={dt}"


class DCPowerSupply(CurrentSource):
    """A battery whose voltage is set by the user, in [-10, 10] V."""

    MAX_VOLTAGE = 10.0

    def __init__(self, initial_voltage: float = MAX_VOLTAGE) -> None:
        super().__init__(self.MAX_VOLTAGE, initial_voltage)

    def set_voltage(self, voltage: float) -> None:
        check_in_range("Voltage", voltage, self.voltage_range)
        self._voltage = voltage


class ACPowerSupply(CurrentSource):
    """
    Sinusoidal source. The user controls the peak voltage and the frequency;
    the voltage itself changes every tick.
    """

    MAX_VOLTAGE = 110.0
    INITIAL_PEAK_VOLTAGE = 55.0
    FREQUENCY_RANGE = (0.05, 1.0)
    DEFAULT_FREQUENCY = 0.5
    # A full cycle at frequency 1 takes this many ticks.
    MIN_STEPS_PER_CYCLE = 10

    def __init__(self) -> None:
        super().__init__(self.MAX_VOLTAGE, 0.0)
        self.peak_voltage = self.INITIAL_PEAK_VOLTAGE
        self.frequency = self.DEFAULT_FREQUENCY
        self.angle = 0.0
        # Change of angle during the last step, in radians
        self.step_angle = 0.0

    def set_peak_voltage(self, peak_voltage: float) -> None:
        check_in_range("Peak voltage", peak_voltage, (0.0, self.MAX_VOLTAGE))
        self.peak_voltage = peak_voltage

    def set_frequency(self, frequency: float) -> None:
        check_in_range("Frequency", frequency, self.FREQUENCY_RANGE)
        self.frequency = frequency
        # Restart the cycle so the voltage does not jump
        self.angle = 0.0

    @property
    def delta_angle(self) -> float:
        return (2 * math.pi * self.frequency) / self.MIN_STEPS_PER_CYCLE

    def reset(self) -> None:
        super().reset()
        self.peak_voltage = self.INITIAL_PEAK_VOLTAGE
        self.frequency = self.DEFAULT_FREQUENCY
        self.angle = 0.0
        self.step_angle = 0.0

    def step(self, dt: float) -> None:
        super().step(dt)
        if self.peak_voltage == 0:
            self._voltage = 0.0
            return

        next_angle = self.angle + (dt * self.delta_angle)
        self.step_angle = next_angle - self.angle
        self.angle = next_angle % (2 * math.pi)
        self._voltage = self.peak_voltage * math.sin(self.angle)
