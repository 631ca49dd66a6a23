"""Logging configuration and setup for tasktracker."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "tasktracker.log"


def setup_logging(
    level: str = "INFO",
    directory: str | Path = "logs",
    max_size_mb: int = 10,
    backup_count: int = 5,
) -> Path:
    """Configure root logger with file and console handlers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        directory: Directory for log files.
        max_size_mb: Maximum size in MB before rotation.
        backup_count: Number of backup files to keep.

    Returns:
        Path of the rotating log file.
    """
    log_dir = Path(directory)
    log_dir.mkdir(parents=True, exist_ok=True)
    numeric_level = getattr(logging, level.upper())

    # Clear any existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = log_dir / LOG_FILE_NAME
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logging.info(f"Logging initialized: level={level}, directory={log_dir}")
    return log_file
