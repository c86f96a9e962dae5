"""Logging configuration"""

import logging
from pathlib import Path

from authcore.config import Settings, settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(config: Settings = None) -> None:
    """Send log records to the configured log file and to stderr"""
    config = config or settings
    log_file = config.get_log_file()
    # Ensure log directory exists
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ],
        force=True
    )
