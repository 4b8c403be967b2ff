"""Tests for the bar magnet field tables and their interpolation."""
import logging

import numpy as np
import pytest

from faradaylab.analysis.field_grid import BarMagnetFieldData, FieldGrid


class TestFieldGrid:
    def test_mismatched_arrays_raise(self):
        """bx and by must have the same shape."""
        with pytest.raises(ValueError):
            FieldGrid("bad", np.zeros((3, 3)), np.zeros((3, 4)), 5.0)

    def test_non_positive_spacing_raises(self):
        with pytest.raises(ValueError):
            FieldGrid("bad", np.zeros((3, 3)), np.zeros((3, 3)), 0.0)

    def test_arrays_are_read_only(self, linear_field_data):
        """Tables are shared, so they must not be writable."""
        with pytest.raises(ValueError):
            linear_field_data.internal.bx[0, 0] = 1.0

    def test_node_lookup_is_exact(self, linear_field_data):
        """A point on a node returns the stored sample without interpolation error."""
        grid = linear_field_data.external_near
        bx, by = grid.lookup(10.0, 5.0)
        assert bx == grid.bx[2, 1]
        assert by == grid.by[2, 1]

    def test_last_node_lookup(self, linear_field_data):
        """The upper edge of the grid maps onto the last cell."""
        grid = linear_field_data.external_near
        bx, by = grid.lookup(grid.max_x, grid.max_y)
        assert bx == pytest.approx(grid.bx[-1, -1])
        assert by == pytest.approx(grid.by[-1, -1])

    def test_bilinear_reproduces_linear_field(self, linear_field_data):
        grid = linear_field_data.external_far
        x, y = 13.7, 28.2
        bx, by = grid.lookup(x, y)
        assert bx == pytest.approx(1.0 + 0.1 * x + 0.2 * y)
        assert by == pytest.approx(0.05 * x - 0.1 * y)

    def test_outside_returns_zero(self, linear_field_data):
        assert linear_field_data.internal.lookup(10.5, 0.0) == (0.0, 0.0)


class TestBarMagnetFieldData:
    def test_grid_choice_prefers_finest(self, linear_field_data):
        assert linear_field_data.choose_grid(5.0, 5.0).name == "internal"
        assert linear_field_data.choose_grid(15.0, 5.0).name == "external_near"
        assert linear_field_data.choose_grid(35.0, 5.0).name == "external_far"
        assert linear_field_data.choose_grid(45.0, 5.0) is None

    def test_lookup_beyond_far_grid_is_zero(self, linear_field_data):
        assert linear_field_data.lookup(100.0, 100.0) == (0.0, 0.0)

    def test_samples_above_reference_strength_raise(self):
        strong = FieldGrid("internal", np.full((2, 2), 300.0), np.zeros((2, 2)), 5.0)
        weak = FieldGrid("external", np.zeros((2, 2)), np.zeros((2, 2)), 5.0)
        with pytest.raises(ValueError):
            BarMagnetFieldData(strong, weak, weak, reference_strength=225.0)

    def test_validated_data_is_logged(self, caplog):
        grid = FieldGrid("internal", np.zeros((2, 2)), np.zeros((2, 2)), 5.0)
        with caplog.at_level(logging.DEBUG, logger="faradaylab"):
            BarMagnetFieldData(grid, grid, grid, reference_strength=225.0, version="2")
        assert "Field data version 2" in caplog.text
        assert "FieldGrid(name='internal'" in caplog.text


class TestGeneratedFieldData:
    def test_center_field_is_reference_strength(self, field_data):
        assert field_data.internal.bx[0, 0] == pytest.approx(field_data.reference_strength)

    def test_all_samples_within_reference_strength(self, field_data):
        for grid in field_data.grids:
            assert grid.max_magnitude <= field_data.reference_strength * (1 + 1e-9)

    def test_by_vanishes_on_axis(self, field_data):
        for grid in field_data.grids:
            assert np.all(grid.by[:, 0] == 0.0)

    def test_field_outside_points_away_from_north_pole(self, field_data):
        """On the axis beyond the north pole the field points along +x."""
        bx, by = field_data.lookup(200.0, 0.0)
        assert bx > 0
        assert by == 0.0

    def test_grid_extents(self, field_data):
        assert field_data.internal.max_x == 125.0
        assert field_data.internal.max_y == 25.0
        assert field_data.external_near.max_x == 500.0
        assert field_data.external_far.max_x == 2500.0
