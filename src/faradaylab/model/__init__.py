"""Data model: geometric primitives, scene settings and HDF5 persistence."""
