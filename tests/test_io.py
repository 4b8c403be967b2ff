"""Tests for reading and writing HDF5 files."""
import numpy as np
import pytest

from faradaylab.model.io import load_field_data, load_run_record, save_field_data, save_run_record
from faradaylab.solvers.solver import RunRecord


def test_field_data_round_trip(linear_field_data, tmp_path):
    filepath = str(tmp_path / "field.h5")
    save_field_data(linear_field_data, filepath)
    loaded = load_field_data(filepath)

    assert loaded.reference_strength == linear_field_data.reference_strength
    assert loaded.version == linear_field_data.version
    for original, restored in zip(linear_field_data.grids, loaded.grids):
        assert restored.name == original.name
        assert restored.spacing == original.spacing
        np.testing.assert_array_equal(restored.bx, original.bx)
        np.testing.assert_array_equal(restored.by, original.by)
    assert loaded.lookup(12.5, 7.5) == linear_field_data.lookup(12.5, 7.5)


def test_load_rejects_non_hdf5(tmp_path):
    filepath = tmp_path / "field.h5"
    filepath.write_text("not a field")
    with pytest.raises(ValueError):
        load_field_data(str(filepath))
    with pytest.raises(ValueError):
        load_run_record(str(filepath))


def test_run_record_round_trip(tmp_path):
    record = RunRecord(scene="generator", frames_per_second=25)
    record.append(1, {"emf": 1.5, "flux": 10.0})
    record.append(2, {"emf": -0.5, "flux": 9.5})

    filepath = str(tmp_path / "run.h5")
    save_run_record(record, filepath)
    loaded = load_run_record(filepath)

    assert loaded.scene == "generator"
    assert loaded.frames_per_second == 25
    assert loaded.ticks == [1, 2]
    assert loaded.channels == {"emf": [1.5, -0.5], "flux": [10.0, 9.5]}
