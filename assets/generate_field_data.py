import os

from faradaylab.analysis.field_data import generate_bar_magnet_field_data
from faradaylab.logging_config import setup_logging
from faradaylab.model.io import save_field_data

N_RADIAL = 20
N_ANGULAR = 48

setup_logging()

data = generate_bar_magnet_field_data(n_radial=N_RADIAL, n_angular=N_ANGULAR)

for grid in data.grids:
    print(f"{grid.name}: {grid.width}x{grid.height} samples, spacing {grid.spacing}, "
          f"max |B| = {grid.max_magnitude:.2f} G")

save_field_data(data, os.path.join(os.path.dirname(os.path.abspath(__file__)), "bar_magnet_field.h5"))
