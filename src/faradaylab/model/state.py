"""
Scene Settings (Configuration)
==============================
This module defines the calibration and layout of each simulation scene.

Why is this file needed?
------------------------
1. Calibration: `max_emf` and the transition smoothing scale were tuned by
   hand for each combination of magnet and coil. They live here, next to the
   positions they were tuned for, instead of being scattered through the code.
2. Persistence: settings serialize to plain dicts (and so to JSON) for
   replaying a run with the same configuration.

Classes:
    SamplePointsSettings: How a pickup coil samples the field.
    PickupCoilSettings: Calibration of a pickup coil.
    SceneSettings: Layout and components of one scene.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any, Dict, Optional


class SceneType(StrEnum):
    BAR_MAGNET = "bar_magnet"
    PICKUP_COIL = "pickup_coil"
    ELECTROMAGNET = "electromagnet"
    TRANSFORMER = "transformer"
    GENERATOR = "generator"


class CompassType(StrEnum):
    IMMEDIATE = "immediate"
    INCREMENTAL = "incremental"
    KINEMATIC = "kinematic"


class SamplePointsKind(StrEnum):
    FIXED_NUMBER = "fixed_number"
    FIXED_SPACING = "fixed_spacing"


@dataclass
class SamplePointsSettings:
    kind: SamplePointsKind = SamplePointsKind.FIXED_NUMBER
    # Number of points for FIXED_NUMBER, spacing for FIXED_SPACING
    value: float = 9

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> SamplePointsSettings:
        return SamplePointsSettings(kind=SamplePointsKind(data["kind"]), value=data["value"])


@dataclass
class PickupCoilSettings:
    position: tuple[float, float] = (500.0, 400.0)
    max_emf: float = 1_500_000.0
    transition_smoothing_scale: float = 1.0
    sample_points: SamplePointsSettings = field(default_factory=SamplePointsSettings)
    loop_area_percent_range: tuple[float, float, float] = (20.0, 100.0, 50.0)
    charge_speed_scale: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["sample_points"] = self.sample_points.to_dict()
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> PickupCoilSettings:
        values = dict(data)
        values["position"] = tuple(values["position"])
        values["loop_area_percent_range"] = tuple(values["loop_area_percent_range"])
        values["sample_points"] = SamplePointsSettings.from_dict(values["sample_points"])
        return PickupCoilSettings(**values)


@dataclass
class SceneSettings:
    scene: SceneType
    magnet_position: tuple[float, float]
    compass_position: tuple[float, float]
    compass_type: CompassType
    pickup_coil: Optional[PickupCoilSettings] = None
    field_meter_position: Optional[tuple[float, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene": self.scene.value,
            "magnet_position": list(self.magnet_position),
            "compass_position": list(self.compass_position),
            "compass_type": self.compass_type.value,
            "pickup_coil": self.pickup_coil.to_dict() if self.pickup_coil else None,
            "field_meter_position": list(self.field_meter_position) if self.field_meter_position else None,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> SceneSettings:
        pickup_coil = data.get("pickup_coil")
        field_meter_position = data.get("field_meter_position")
        return SceneSettings(
            scene=SceneType(data["scene"]),
            magnet_position=tuple(data["magnet_position"]),
            compass_position=tuple(data["compass_position"]),
            compass_type=CompassType(data["compass_type"]),
            pickup_coil=PickupCoilSettings.from_dict(pickup_coil) if pickup_coil else None,
            field_meter_position=tuple(field_meter_position) if field_meter_position else None,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @staticmethod
    def from_json(text: str) -> SceneSettings:
        return SceneSettings.from_dict(json.loads(text))


# y position shared by the components of the pickup coil and generator scenes
_Y_POSITION = 375.0

DEFAULT_SCENES: Dict[SceneType, SceneSettings] = {
    SceneType.BAR_MAGNET: SceneSettings(
        scene=SceneType.BAR_MAGNET,
        magnet_position=(450.0, 300.0),
        compass_position=(150.0, 300.0),
        compass_type=CompassType.KINEMATIC,
        field_meter_position=(450.0, 450.0),
    ),
    SceneType.PICKUP_COIL: SceneSettings(
        scene=SceneType.PICKUP_COIL,
        magnet_position=(200.0, _Y_POSITION),
        compass_position=(635.0, _Y_POSITION),
        compass_type=CompassType.KINEMATIC,
        pickup_coil=PickupCoilSettings(
            position=(500.0, _Y_POSITION),
            max_emf=2_700_000.0,
            transition_smoothing_scale=0.77,
            # One tenth of the bar magnet height
            sample_points=SamplePointsSettings(SamplePointsKind.FIXED_SPACING, 5.0),
            charge_speed_scale=3.0,
        ),
    ),
    SceneType.ELECTROMAGNET: SceneSettings(
        scene=SceneType.ELECTROMAGNET,
        magnet_position=(400.0, 400.0),
        compass_position=(150.0, 200.0),
        compass_type=CompassType.INCREMENTAL,
        field_meter_position=(150.0, 400.0),
    ),
    SceneType.TRANSFORMER: SceneSettings(
        scene=SceneType.TRANSFORMER,
        magnet_position=(200.0, 400.0),
        compass_position=(625.0, 400.0),
        compass_type=CompassType.INCREMENTAL,
        pickup_coil=PickupCoilSettings(
            position=(500.0, 400.0),
            max_emf=3_500_000.0,
            transition_smoothing_scale=0.56,
            sample_points=SamplePointsSettings(SamplePointsKind.FIXED_SPACING, 5.4),
            loop_area_percent_range=(20.0, 100.0, 75.0),
            charge_speed_scale=2.0,
        ),
    ),
    SceneType.GENERATOR: SceneSettings(
        scene=SceneType.GENERATOR,
        magnet_position=(285.0, _Y_POSITION),
        compass_position=(655.0, _Y_POSITION),
        compass_type=CompassType.IMMEDIATE,
        pickup_coil=PickupCoilSettings(
            position=(520.0, _Y_POSITION),
            max_emf=26_000.0,
            transition_smoothing_scale=1.0,
            sample_points=SamplePointsSettings(SamplePointsKind.FIXED_NUMBER, 9),
        ),
    ),
}
