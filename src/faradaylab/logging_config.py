"""
Logging Configuration
Sets up the package logger for the simulation and its command-line tools.
"""
import logging
import sys
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'

# Third-party loggers that flood DEBUG output (font lookup, HDF5 plugin probing)
NOISY_LOGGERS = ("matplotlib", "h5py")


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the 'faradaylab' logger.

    Args:
        level: Logging level, as a number (logging.DEBUG) or a name ("DEBUG").
        log_file: Optional path to also save logs to. The file is overwritten.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {level}")

    logger = logging.getLogger("faradaylab")
    logger.setLevel(level)

    # Reconfiguring (e.g. several CLI runs in one process) replaces the handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.info(f"Logging initialized at level {logging.getLevelName(level)}.")
    return logger
