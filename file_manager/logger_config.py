import logging
import os
import sys
from pathlib import Path

import config


def setup_logger(name: str = "file_manager") -> logging.Logger:
    logger = logging.getLogger(name)
    # Already configured by an earlier import
    if logger.handlers:
        return logger

    # Create logs directory if it doesn't exist
    logs_dir = Path(os.getenv("FILE_MANAGER_LOG_DIR", config.LOG_DIR))
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.setLevel(logging.DEBUG)

    # Create formatters
    file_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    # File handler (for detailed logging)
    file_handler = logging.FileHandler(logs_dir / "file_manager.log")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    # Console handler (for basic logging)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)

    # Add handlers to logger
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
