"""Tests for coil geometry and the coil's loop settings."""
import math

import pytest

from faradaylab.analysis.coil import CHARGES_IN_LEFT_END, Coil, CoilLayer, CoilPath
from faradaylab.model.geometry_primitives import Vector2


def make_coil(**kwargs) -> Coil:
    """Coil whose default loop radius is 110."""
    options = dict(
        max_loop_area=math.pi * 110 * 110,
        loop_area_percent_range=(25.0, 100.0, 100.0),
        number_of_loops_range=(1, 3, 2),
    )
    options.update(kwargs)
    return Coil(**options)


class TestCoilPath:
    @pytest.mark.parametrize("loops", [1, 2, 3, 4])
    def test_segment_count(self, loops):
        path = CoilPath.create(loops, 100.0, 16.0, 8.0)
        assert len(path) == 4 * loops + 2

    @pytest.mark.parametrize("loops", [1, 3])
    def test_segments_are_joined(self, loops):
        path = CoilPath.create(loops, 80.0, 16.0, 24.0)
        for previous, segment in zip(path, list(path)[1:]):
            assert segment.start.x == pytest.approx(previous.end.x)
            assert segment.start.y == pytest.approx(previous.end.y)

    def test_layers(self):
        path = CoilPath.create(2, 100.0, 16.0, 8.0)
        layers = [segment.layer for segment in path]
        back, front = CoilLayer.BACKGROUND, CoilLayer.FOREGROUND
        assert layers == [back, back, back, front, front, back, back, front, front, front]

    def test_wire_end_speed_scale(self):
        path = CoilPath.create(2, 100.0, 16.0, 8.0)
        expected = (100.0 / 25) / CHARGES_IN_LEFT_END
        assert path[0].speed_scale == pytest.approx(expected)
        assert path[len(path) - 1].speed_scale == pytest.approx(expected)
        assert all(segment.speed_scale == 1.0 for segment in list(path)[1:-1])

    def test_coil_is_centered(self):
        path = CoilPath.create(3, 100.0, 16.0, 8.0)
        # Front bottom segments start at the loop centers
        centers = [segment.start.x for segment in path if segment.layer is CoilLayer.FOREGROUND][0:-1:2]
        assert sum(centers) == pytest.approx(0.0)

    def test_invalid_geometry_raises(self):
        with pytest.raises(ValueError):
            CoilPath.create(0, 100.0, 16.0, 8.0)
        with pytest.raises(ValueError):
            CoilPath.create(1, 0.0, 16.0, 8.0)


class TestCoil:
    def test_defaults(self):
        coil = make_coil()
        assert coil.number_of_loops == 2
        assert coil.loop_radius == pytest.approx(110.0)
        assert coil.loop_area_percent == pytest.approx(100.0)
        assert coil.loop_radius_range[0] == pytest.approx(55.0)

    def test_charges_follow_geometry(self):
        coil = make_coil()
        # 2 charges in each wire end, floor(110 / 25) on each loop segment
        assert len(coil.charges.particles) == 2 + 2 + 8 * 4

        coil.set_number_of_loops(3)
        assert len(coil.path) == 14
        assert len(coil.charges.particles) == 2 + 2 + 12 * 4

        coil.set_loop_area_percent(25.0)
        assert coil.loop_radius == pytest.approx(55.0)
        assert len(coil.charges.particles) == 2 + 2 + 12 * 2

    def test_out_of_range_settings_raise(self):
        coil = make_coil()
        with pytest.raises(ValueError):
            coil.set_number_of_loops(4)
        with pytest.raises(ValueError):
            coil.set_number_of_loops(1.5)
        with pytest.raises(ValueError):
            coil.set_loop_radius(10.0)
        with pytest.raises(ValueError):
            coil.set_current_amplitude(1.5)

    def test_step_without_current_does_not_move_charges(self):
        coil = make_coil()
        before = coil.charges.positions()
        coil.step(1)
        assert (coil.charges.positions() == before).all()

    def test_charge_speed_drops_to_zero_with_current(self):
        coil = make_coil()
        coil.set_current_amplitude(0.5)
        coil.step(1)
        assert coil.charges.speed_and_direction == pytest.approx(0.5)

        coil.set_current_amplitude(0.0)
        coil.step(1)
        assert coil.charges.speed_and_direction == 0.0

    def test_hidden_charges_report_no_speed(self):
        coil = make_coil()
        coil.set_current_amplitude(0.5)
        coil.step(1)
        coil.charges_visible = False
        coil.step(1)
        assert coil.charges.speed_and_direction == 0.0

    def test_charge_positions_are_offset(self):
        coil = make_coil()
        local = coil.charges.positions()
        world = coil.charge_positions(Vector2(300, 200))
        assert world.shape == local.shape
        assert world[0, 0] == pytest.approx(local[0, 0] + 300)
        assert world[0, 1] == pytest.approx(local[0, 1] + 200)

    def test_reset(self):
        coil = make_coil()
        coil.set_number_of_loops(1)
        coil.set_current_amplitude(0.5)
        coil.reset()
        assert coil.number_of_loops == 2
        assert coil.current_amplitude == 0.0
        assert len(coil.path) == 10
