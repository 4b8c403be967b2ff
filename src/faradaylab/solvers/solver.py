"""
Scene Solver
============
Assembles the components of a scene and advances them in a fixed order on
every tick of a FixedStepClock:

1. the field source (turbine rotation, electromagnet current),
2. the pickup coil (induction, then its meters and charges),
3. the compass.

Steps are deterministic: the same ticks and the same user inputs always give
bit-identical results, which is what makes a `RunRecord` replayable.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import matplotlib.pyplot as plt

from faradaylab.analysis.compass import Compass, ImmediateCompass, IncrementalCompass, KinematicCompass
from faradaylab.analysis.electromagnet import Electromagnet
from faradaylab.analysis.field_grid import BarMagnetFieldData
from faradaylab.analysis.instruments import FieldMeter
from faradaylab.analysis.magnets import BarMagnet, Magnet, Turbine
from faradaylab.analysis.pickup_coil import (
    FixedNumberOfSamplePointsStrategy,
    FixedSpacingSamplePointsStrategy,
    PickupCoil,
    SamplePointsStrategy,
)
from faradaylab.model.geometry_primitives import Vector2
from faradaylab.model.state import (
    DEFAULT_SCENES,
    CompassType,
    SamplePointsKind,
    SamplePointsSettings,
    SceneSettings,
    SceneType,
)
from faradaylab.solvers.clock import FixedStepClock

logger = logging.getLogger(__name__)


@dataclass
class RunRecord:
    """Per-tick values of a scene, one list per channel."""
    scene: str
    frames_per_second: int = 25
    ticks: List[int] = field(default_factory=list)
    channels: Dict[str, List[float]] = field(default_factory=dict)

    def append(self, tick: int, values: Dict[str, float]) -> None:
        self.ticks.append(tick)
        for name, value in values.items():
            self.channels.setdefault(name, []).append(value)

    def plot(self, channels: Optional[List[str]] = None, filepath: Optional[str] = None) -> None:
        """
        Plot recorded channels against time.

        Args:
            channels: Channel names to plot, all of them by default.
            filepath: Save the figure here instead of showing it.
        """
        names = channels or list(self.channels)
        times = [tick / self.frames_per_second for tick in self.ticks]

        plt.rcParams["figure.constrained_layout.use"] = True
        fig, axes = plt.subplots(len(names), 1, sharex=True, squeeze=False)
        for ax, name in zip(axes[:, 0], names):
            ax.plot(times, self.channels[name], color="black", lw=1, label=name)
            ax.grid(visible=True, which='major', axis='both', linestyle='-', color='gray', lw=0.5)
            ax.minorticks_on()
            ax.grid(visible=True, which='minor', axis='both', linestyle=':', color='gray', lw=0.5)
            ax.legend(loc='best')
        axes[-1, 0].set_xlabel("Time (s)")
        fig.suptitle(f"{self.scene} recorded at {datetime.now().strftime('%d.%m.%Y %H:%M:%S')}")

        if filepath:
            fig.savefig(filepath)
            logger.info(f"Saved plot to: {filepath}")
            plt.close(fig)
        else:
            plt.show()


def create_sample_points_strategy(settings: SamplePointsSettings) -> SamplePointsStrategy:
    if settings.kind is SamplePointsKind.FIXED_NUMBER:
        return FixedNumberOfSamplePointsStrategy(int(settings.value))
    if settings.kind is SamplePointsKind.FIXED_SPACING:
        return FixedSpacingSamplePointsStrategy(float(settings.value))
    raise ValueError(f"Unknown sample points strategy: {settings.kind}")


class Scene:
    """
    A magnet with the coil, compass and meters around it, driven by a clock.
    """

    def __init__(
        self,
        settings: SceneSettings,
        field_data: Optional[BarMagnetFieldData] = None,
        clock: Optional[FixedStepClock] = None,
    ) -> None:
        """
        Args:
            settings: Layout and calibration of the scene.
            field_data: Bar magnet tables, loaded from the asset by default.
            clock: Clock to drive the scene. A new 25 Hz clock by default.
        """
        self.settings = copy.deepcopy(settings)
        self.clock = clock or FixedStepClock()
        self.magnet = self._create_magnet(field_data)

        self.pickup_coil: Optional[PickupCoil] = None
        if self.settings.pickup_coil is not None:
            coil_settings = self.settings.pickup_coil
            self.pickup_coil = PickupCoil(
                self.magnet,
                position=Vector2(*coil_settings.position),
                max_emf=coil_settings.max_emf,
                transition_smoothing_scale=coil_settings.transition_smoothing_scale,
                sample_points_strategy=create_sample_points_strategy(coil_settings.sample_points),
                loop_area_percent_range=coil_settings.loop_area_percent_range,
                charge_speed_scale=coil_settings.charge_speed_scale,
            )

        self.compass = self._create_compass()

        self.field_meter: Optional[FieldMeter] = None
        if self.settings.field_meter_position is not None:
            self.field_meter = FieldMeter(self.magnet, Vector2(*self.settings.field_meter_position))

        self.record: Optional[RunRecord] = None
        self.clock.add_listener(self.step)
        logger.info(f"Created scene '{self.settings.scene}' with {type(self.magnet).__name__}")

    def _create_magnet(self, field_data: Optional[BarMagnetFieldData]) -> Magnet:
        position = Vector2(*self.settings.magnet_position)
        scene = self.settings.scene
        if scene in (SceneType.BAR_MAGNET, SceneType.PICKUP_COIL):
            return BarMagnet(position=position, field_data=field_data)
        if scene in (SceneType.ELECTROMAGNET, SceneType.TRANSFORMER):
            return Electromagnet(position=position)
        if scene is SceneType.GENERATOR:
            return Turbine(position=position, field_data=field_data)
        raise ValueError(f"Unknown scene type: {scene}")

    def _create_compass(self) -> Compass:
        position = Vector2(*self.settings.compass_position)
        compass_type = self.settings.compass_type
        if compass_type is CompassType.IMMEDIATE:
            return ImmediateCompass(self.magnet, position)
        if compass_type is CompassType.INCREMENTAL:
            return IncrementalCompass(self.magnet, position)
        if compass_type is CompassType.KINEMATIC:
            return KinematicCompass(self.magnet, position)
        raise ValueError(f"Unknown compass type: {compass_type}")

    def step(self, dt: float) -> None:
        """Advance every component by one tick, in dependency order."""
        if isinstance(self.magnet, (Turbine, Electromagnet)):
            self.magnet.step(dt)
        if self.pickup_coil is not None:
            self.pickup_coil.step(dt)
        self.compass.step(dt)

        if self.record is not None:
            self.record.append(self.clock.tick_count, self.snapshot())

    def advance(self, wall_dt: float) -> int:
        """Feed wall-clock time to the clock; returns the number of ticks run."""
        return self.clock.advance(wall_dt)

    def run(self, seconds: float) -> int:
        """Run for `seconds` of simulated time, one tick at a time."""
        ticks = int(round(seconds / self.clock.seconds_per_tick))
        for _ in range(ticks):
            self.clock.step_once()
        return ticks

    def start_recording(self) -> RunRecord:
        self.record = RunRecord(
            scene=self.settings.scene.value,
            frames_per_second=int(round(1.0 / self.clock.seconds_per_tick)),
        )
        return self.record

    def snapshot(self) -> Dict[str, float]:
        """Scalar outputs of the scene after the last tick."""
        values = {
            "magnet_strength": self.magnet.strength,
            "magnet_rotation": self.magnet.rotation,
            "compass_angle": self.compass.angle,
        }
        if self.pickup_coil is not None:
            values.update({
                "flux": self.pickup_coil.flux,
                "delta_flux": self.pickup_coil.delta_flux,
                "emf": self.pickup_coil.emf,
                "normalized_current": self.pickup_coil.normalized_current,
                "light_bulb_brightness": self.pickup_coil.light_bulb.brightness,
                "voltmeter_angle": self.pickup_coil.voltmeter.needle_angle,
            })
        if self.field_meter is not None:
            values["field_magnitude"] = self.field_meter.magnitude
        return values

    def reset(self) -> None:
        self.clock.reset()
        self.magnet.reset()
        if self.pickup_coil is not None:
            self.pickup_coil.reset()
        self.compass.reset()
        if self.record is not None:
            self.start_recording()


def create_scene(scene_type: SceneType, field_data: Optional[BarMagnetFieldData] = None) -> Scene:
    """Build one of the standard scenes with its default calibration."""
    return Scene(DEFAULT_SCENES[SceneType(scene_type)], field_data=field_data)
