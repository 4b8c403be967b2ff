"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and global constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents hardcoded paths scattered throughout the code.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets (field tables) when the app is frozen into an .exe.
3. Timing: Every stepping component agrees on one tick length through the
   constants defined here.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    FIELD_DATA_PATH (str): Absolute path to the bar magnet field tables.
    FRAMES_PER_SECOND (int): Logical tick rate of the simulation clock.
    CONSTANT_DT (float): The dt that every `step` receives.
"""
import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # Development mode: resolve relative to this file
    # config.py is in src/faradaylab/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# Global Constants
ASSETS_PATH: str = get_resource_path("assets")
FIELD_DATA_PATH: str = os.path.join(ASSETS_PATH, "bar_magnet_field.h5")

# Logical clock. dt is one tick, not seconds.
FRAMES_PER_SECOND: int = 25
CONSTANT_DT: float = 1.0

# Below this magnitude a normalized current is treated as zero.
NORMALIZED_CURRENT_THRESHOLD: float = 0.001

if not os.path.exists(ASSETS_PATH):
    logger.debug(f"Assets path not found at {ASSETS_PATH}")
