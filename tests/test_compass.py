"""Tests for the three compass behaviours."""
import logging
import math

import pytest

from faradaylab.analysis.compass import ImmediateCompass, IncrementalCompass, KinematicCompass
from faradaylab.model.geometry_primitives import Vector2


@pytest.mark.parametrize("compass_class", [ImmediateCompass, IncrementalCompass, KinematicCompass])
def test_zero_field_holds_angle(make_uniform_magnet, compass_class):
    compass = compass_class(make_uniform_magnet(strength=0.0))
    compass.angle = 0.7
    for _ in range(10):
        compass.step(1)
    assert compass.angle == 0.7


@pytest.mark.parametrize("compass_class", [ImmediateCompass, IncrementalCompass, KinematicCompass])
def test_disabled_compass_does_not_move(make_uniform_magnet, compass_class):
    compass = compass_class(make_uniform_magnet(rotation=1.0))
    compass.enabled = False
    compass.step(1)
    assert compass.angle == 0.0


class TestImmediateCompass:
    def test_points_along_field(self, make_uniform_magnet):
        magnet = make_uniform_magnet(rotation=2.0)
        compass = ImmediateCompass(magnet, Vector2(50, 50))
        compass.step(1)
        assert compass.angle == pytest.approx(2.0)

        magnet.set_rotation(-1.0)
        compass.step(1)
        assert compass.angle == pytest.approx(-1.0)


class TestIncrementalCompass:
    def test_turns_at_most_45_degrees_per_tick(self, make_uniform_magnet):
        compass = IncrementalCompass(make_uniform_magnet(rotation=math.pi / 2 + 0.1))
        compass.step(1)
        assert compass.angle == pytest.approx(math.radians(45))
        compass.step(1)
        assert compass.angle == pytest.approx(math.radians(90))
        compass.step(1)
        assert compass.angle == pytest.approx(math.pi / 2 + 0.1)

    def test_takes_shortest_way(self, make_uniform_magnet):
        compass = IncrementalCompass(make_uniform_magnet(rotation=3.0))
        compass.angle = -3.0
        compass.step(1)
        # -3.0 and 3.0 are 0.28 rad apart across +-pi
        assert compass.angle == pytest.approx(3.0)

    def test_turns_clockwise_when_shorter(self, make_uniform_magnet):
        compass = IncrementalCompass(make_uniform_magnet(rotation=-2.0))
        compass.step(1)
        assert compass.angle == pytest.approx(-math.radians(45))


class TestKinematicCompass:
    def test_settles_on_field_direction(self, make_uniform_magnet):
        magnet = make_uniform_magnet(strength=20.0, rotation=1.0)
        compass = KinematicCompass(magnet)
        field_angle = magnet.field_at(compass.position).angle

        for _ in range(2000):
            compass.step(1)
            if compass.angle == field_angle:
                break

        assert compass.angle == field_angle
        assert compass.angular_velocity == 0.0
        assert compass.angular_acceleration == 0.0

    def test_first_step_follows_torque(self, make_uniform_magnet):
        compass = KinematicCompass(make_uniform_magnet(strength=20.0, rotation=1.0))
        compass.step(1)
        torque = KinematicCompass.SENSITIVITY * math.sin(1.0) * 20.0
        assert compass.angle == pytest.approx(0.5 * torque)
        assert 0 < compass.angular_velocity < torque

    def test_snaps_within_threshold(self, make_uniform_magnet):
        magnet = make_uniform_magnet(strength=20.0, rotation=1.0)
        compass = KinematicCompass(magnet)
        field_angle = magnet.field_at(compass.position).angle
        compass.angle = field_angle - math.radians(0.1)
        compass.step(1)
        assert compass.angle == field_angle

    def test_full_turn_away_is_not_treated_as_aligned(self, make_uniform_magnet):
        magnet = make_uniform_magnet(strength=20.0, rotation=1.0)
        compass = KinematicCompass(magnet)
        field_angle = magnet.field_at(compass.position).angle
        start = field_angle - 2 * math.pi + math.radians(0.1)
        compass.angle = start
        compass.step(1)
        # The difference is almost a full turn, so the needle swings instead of snapping
        assert compass.angle != field_angle
        assert compass.angle != start
        assert compass.angular_velocity != 0.0
        assert compass.angular_velocity < 0.0

    def test_snaps_inside_magnet(self, make_uniform_magnet):
        magnet = make_uniform_magnet(strength=20.0, rotation=1.0, inside=True)
        compass = KinematicCompass(magnet)
        compass.step(1)
        assert compass.angle == pytest.approx(1.0)

    def test_snaps_in_strong_field(self, make_uniform_magnet):
        compass = KinematicCompass(make_uniform_magnet(strength=20.0, rotation=1.0), max_field_magnitude=5.0)
        compass.step(1)
        assert compass.angle == pytest.approx(1.0)

    def test_start_moving_now(self, make_uniform_magnet):
        compass = KinematicCompass(make_uniform_magnet())
        compass.start_moving_now()
        assert compass.angular_velocity == KinematicCompass.KICK_START_VELOCITY

    def test_start_moving_now_is_logged(self, make_uniform_magnet, caplog):
        compass = KinematicCompass(make_uniform_magnet())
        with caplog.at_level(logging.DEBUG, logger="faradaylab"):
            compass.start_moving_now()
        assert "needle kicked" in caplog.text

    def test_reset(self, make_uniform_magnet):
        compass = KinematicCompass(make_uniform_magnet(strength=20.0, rotation=1.0), Vector2(5, 5))
        compass.step(1)
        compass.set_position(100, 100)
        compass.reset()
        assert compass.angle == 0.0
        assert compass.angular_velocity == 0.0
        assert compass.position == Vector2(5, 5)
