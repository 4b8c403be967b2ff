"""Tests for the coil magnet field model, the electromagnet and its power supplies."""
import logging
import math

import pytest

from faradaylab.analysis.current_sources import ACPowerSupply, DCPowerSupply
from faradaylab.analysis.electromagnet import CurrentSourceType, Electromagnet
from faradaylab.model.geometry_primitives import Vector2


@pytest.fixture
def electromagnet():
    return Electromagnet(position=Vector2(400, 400))


class TestCoilMagnet:
    def test_coil_geometry(self, electromagnet):
        assert electromagnet.coil.loop_radius == pytest.approx(50.0)
        assert electromagnet.coil.number_of_loops == 4
        assert electromagnet.half_side == pytest.approx(54.0)

    def test_uniform_inside(self, electromagnet):
        for point in (Vector2(400, 400), Vector2(450, 360), Vector2(353, 447)):
            field = electromagnet.field_at(point)
            assert field.x == pytest.approx(300.0)
            assert field.y == pytest.approx(0.0, abs=1e-9)

    def test_dipole_on_axis(self, electromagnet):
        # m = 300 * 50**3 / 2, Bx = 2m / r**3 on the axis
        field = electromagnet.field_at(Vector2(500, 400))
        assert field.x == pytest.approx(37.5)
        assert field.y == pytest.approx(0.0, abs=1e-9)

    def test_dipole_on_equator(self, electromagnet):
        # Bx = -m / r**3 perpendicular to the axis
        field = electromagnet.field_at(Vector2(400, 500))
        assert field.x == pytest.approx(-18.75)
        assert field.y == pytest.approx(0.0, abs=1e-9)

    def test_dipole_off_axis(self, electromagnet):
        field = electromagnet.field_at(Vector2(460, 480))
        r = 100.0
        cos_theta, sin_theta = 0.6, 0.8
        k = (300.0 * 50**3 / 2) / r**3
        assert field.x == pytest.approx(k * (3 * cos_theta**2 - 1))
        assert field.y == pytest.approx(k * 3 * cos_theta * sin_theta)

    def test_field_never_exceeds_strength(self, electromagnet):
        for x in range(250, 551, 13):
            for y in range(250, 551, 17):
                assert electromagnet.field_at(Vector2(x, y)).magnitude <= 300.0 * (1 + 1e-12)


class TestElectromagnet:
    def test_battery_sets_strength(self, electromagnet):
        assert electromagnet.current_source_type is CurrentSourceType.DC
        assert electromagnet.strength == pytest.approx(300.0)
        assert electromagnet.rotation == 0.0

        electromagnet.set_voltage(5.0)
        assert electromagnet.strength == pytest.approx(150.0)
        assert electromagnet.coil.current_amplitude == pytest.approx(0.5)

    def test_reversed_battery_flips_poles(self, electromagnet):
        electromagnet.set_voltage(-5.0)
        assert electromagnet.strength == pytest.approx(150.0)
        assert electromagnet.rotation == pytest.approx(math.pi)
        field = electromagnet.field_at(Vector2(400, 400))
        assert field.x == pytest.approx(-150.0)

    def test_zero_voltage_gives_no_field(self, electromagnet):
        electromagnet.set_voltage(0.0)
        assert electromagnet.strength == 0.0
        assert electromagnet.field_at(Vector2(400, 400)).magnitude == 0.0

    def test_strength_cannot_be_set_directly(self, electromagnet):
        with pytest.raises(TypeError):
            electromagnet.set_strength(100.0)

    def test_ac_step(self, electromagnet):
        electromagnet.set_current_source(CurrentSourceType.AC)
        assert electromagnet.strength == 0.0

        electromagnet.step(1)
        voltage = 55.0 * math.sin(math.pi / 10)
        assert electromagnet.current_source.voltage == pytest.approx(voltage)
        assert electromagnet.strength == pytest.approx(voltage / 110.0 * 300.0)
        assert electromagnet.rotation == 0.0

    def test_ac_negative_half_cycle_flips_poles(self, electromagnet):
        electromagnet.set_current_source(CurrentSourceType.AC)
        for _ in range(15):
            electromagnet.step(1)
        assert electromagnet.current_source.voltage < 0
        assert electromagnet.rotation == pytest.approx(math.pi)

    def test_supply_switch_is_logged(self, electromagnet, caplog):
        with caplog.at_level(logging.INFO, logger="faradaylab"):
            electromagnet.set_current_source(CurrentSourceType.AC)
        assert "switched to ac supply" in caplog.text

    def test_reset(self, electromagnet):
        electromagnet.set_current_source(CurrentSourceType.AC)
        electromagnet.step(1)
        electromagnet.reset()
        assert electromagnet.current_source_type is CurrentSourceType.DC
        assert electromagnet.strength == pytest.approx(300.0)


class TestCurrentSources:
    def test_dc_range(self):
        supply = DCPowerSupply()
        assert supply.voltage == 10.0
        assert supply.current_amplitude == 1.0
        with pytest.raises(ValueError):
            supply.set_voltage(10.5)

    def test_ac_cycle_length(self):
        supply = ACPowerSupply()
        supply.set_frequency(1.0)
        for _ in range(ACPowerSupply.MIN_STEPS_PER_CYCLE):
            supply.step(1)
        assert supply.voltage == pytest.approx(0.0, abs=1e-9)
        assert supply.step_angle == pytest.approx(2 * math.pi / 10)

    def test_ac_zero_peak(self):
        supply = ACPowerSupply()
        supply.set_peak_voltage(0.0)
        supply.step(1)
        assert supply.voltage == 0.0

    def test_ac_validation(self):
        supply = ACPowerSupply()
        with pytest.raises(ValueError):
            supply.set_frequency(2.0)
        with pytest.raises(ValueError):
            supply.set_peak_voltage(120.0)
