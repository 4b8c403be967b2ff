"""
Input/Output Manager (HDF5)
Handles the bar magnet field data asset and recorded simulation runs (.h5 files).

Field data layout::

    /                 attrs: version, app_version, reference_strength
    /<grid name>/bx   float64 (width, height)
    /<grid name>/by   float64 (width, height)
                      attrs: spacing

Run record layout::

    /                 attrs: app_version, scene, frames_per_second
    /ticks            int64 (n,)
    /channels/<name>  float64 (n,)
"""
from __future__ import annotations

import logging
from importlib.metadata import version, PackageNotFoundError
from typing import TYPE_CHECKING

import h5py
import numpy as np

from faradaylab.analysis.field_grid import BarMagnetFieldData, FieldGrid

if TYPE_CHECKING:
    from faradaylab.solvers.solver import RunRecord

logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("faradaylab")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"

GRID_NAMES = ("internal", "external_near", "external_far")


def save_field_data(data: BarMagnetFieldData, filepath: str) -> None:
    """
    Write the three bar magnet tables to an HDF5 file.

    Args:
        data: Tables to store.
        filepath: Destination .h5 path, overwritten if it exists.
    """
    logger.info(f"Saving field data (version {data.version}) to: {filepath}")
    with h5py.File(filepath, "w") as f:
        f.attrs["version"] = data.version
        f.attrs["app_version"] = APP_VERSION
        f.attrs["reference_strength"] = data.reference_strength

        for grid in data.grids:
            grp = f.create_group(grid.name)
            grp.attrs["spacing"] = grid.spacing
            grp.create_dataset("bx", data=np.asarray(grid.bx), compression="gzip")
            grp.create_dataset("by", data=np.asarray(grid.by), compression="gzip")
            logger.debug(f"Saved grid {grid!r}")


def load_field_data(filepath: str) -> BarMagnetFieldData:
    """
    Read the bar magnet tables from an HDF5 file.

    Raises:
        ValueError: If the file is not HDF5 or the tables violate their invariants.
        KeyError: If a grid or dataset is missing.
    """
    logger.info(f"Loading field data from: {filepath}")
    if not h5py.is_hdf5(filepath):
        msg = f"File '{filepath}' is not a valid HDF5 file."
        logger.error(msg)
        raise ValueError(msg)

    with h5py.File(filepath, "r") as f:
        try:
            grids = []
            for name in GRID_NAMES:
                grp = f[name]
                grids.append(FieldGrid(
                    name,
                    grp["bx"][()],
                    grp["by"][()],
                    float(grp.attrs["spacing"]),
                ))
            reference_strength = float(f.attrs["reference_strength"])
        except KeyError as e:
            logger.error(f"Field data file '{filepath}' is incomplete: {e}")
            raise

        data_version = f.attrs.get("version", "1")
        if isinstance(data_version, bytes):
            data_version = data_version.decode("utf-8")

    return BarMagnetFieldData(*grids, reference_strength=reference_strength, version=str(data_version))


def save_run_record(record: RunRecord, filepath: str) -> None:
    """
    Write the per-tick channels of a recorded run.

    Args:
        record: Recorded run.
        filepath: Destination .h5 path, overwritten if it exists.
    """
    logger.info(f"Saving {len(record.ticks)} recorded ticks to: {filepath}")
    with h5py.File(filepath, "w") as f:
        f.attrs["app_version"] = APP_VERSION
        f.attrs["scene"] = record.scene
        f.attrs["frames_per_second"] = record.frames_per_second
        f.create_dataset("ticks", data=np.asarray(record.ticks, dtype=np.int64))
        grp = f.create_group("channels")
        for name, values in record.channels.items():
            grp.create_dataset(name, data=np.asarray(values, dtype=np.float64), compression="gzip")


def load_run_record(filepath: str) -> RunRecord:
    """Read a run written by `save_run_record`."""
    from faradaylab.solvers.solver import RunRecord

    logger.info(f"Loading run record from: {filepath}")
    if not h5py.is_hdf5(filepath):
        msg = f"File '{filepath}' is not a valid HDF5 file."
        logger.error(msg)
        raise ValueError(msg)

    with h5py.File(filepath, "r") as f:
        scene = f.attrs.get("scene", "")
        if isinstance(scene, bytes):
            scene = scene.decode("utf-8")
        record = RunRecord(scene=str(scene), frames_per_second=int(f.attrs.get("frames_per_second", 25)))
        record.ticks = [int(t) for t in f["ticks"][()]]
        for name, dataset in f["channels"].items():
            record.channels[name] = [float(v) for v in dataset[()]]
    return record
