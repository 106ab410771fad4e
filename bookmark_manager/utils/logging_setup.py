"""
Logging configuration for the Bookmark Manager.

This module sets up logging based on configuration settings.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    console_output: bool = True,
    log_dir: Optional[Path] = None,
) -> Optional[Path]:
    """
    Set up logging configuration.

    Args:
        level: Root log level name (DEBUG, INFO, ...)
        log_file: Optional log file name; a timestamped file is written
            under ``log_dir`` when given
        console_output: Whether to also log to stdout
        log_dir: Directory for log files (defaults to ./logs)

    Returns:
        Path of the log file, or None when file logging is disabled
    """
    handlers = []
    log_path = None

    if log_file:
        log_dir = log_dir or Path.cwd() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = log_dir / f"{Path(log_file).stem}_{timestamp}.log"

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handlers.append(console_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(__name__)
    if log_path:
        logger.info(f"Bookmark Manager starting - Log file: {log_path}")
    logger.info(f"Log level: {level.upper()}")

    # Reduce noise from HTTP libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return log_path
