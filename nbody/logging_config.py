"""
Logging Configuration
Sets up the loggers for the engine and the viewer.
"""
import logging
import sys
from typing import Optional


NAMESPACES = ("nbody", "core", "rendering", "nbody_main")


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    """
    Configures the project loggers.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file.
    """
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    for name in NAMESPACES:
        logger = logging.getLogger(name)
        logger.setLevel(level)

        # Avoid duplicate output when setup runs more than once
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)

    logging.getLogger("nbody").info("Logging initialized.")
