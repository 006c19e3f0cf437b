"""
Logging configuration for the Bookmark Organizer.

This module sets up logging based on configuration settings.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


def setup_logging(
    config=None, log_file: Optional[str] = None, verbose: bool = False
) -> Optional[Path]:
    """
    Set up logging configuration.

    Args:
        config: OrganizerConfig (or Configuration wrapper) providing the log
            level, whether to log to a file and the data directory
        log_file: Optional log file name override
        verbose: Show debug output on the console

    Returns:
        Path of the log file, or None when file logging is disabled
    """
    organizer_config = getattr(config, "config", config)

    log_level = "INFO"
    log_to_file = True
    data_dir = Path(".bookmark_organizer")
    if organizer_config is not None:
        log_level = organizer_config.logging.level
        log_to_file = organizer_config.logging.log_to_file
        data_dir = organizer_config.storage.data_dir

    if verbose:
        log_level = "DEBUG"

    if log_file is None:
        log_file = "bookmark_organizer.log"

    # Configure logging format
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    handlers = []
    log_path = None

    # File handler
    if log_to_file:
        log_dir = data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        # Create timestamped log file
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = log_dir / f"{Path(log_file).stem}_{timestamp}.log"

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(log_format, date_format))
        handlers.append(file_handler)

    # Console output goes to stderr so command output stays clean
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(log_format, date_format))
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handlers.append(console_handler)

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, log_level.upper()), handlers=handlers, force=True
    )

    logger = logging.getLogger(__name__)
    if log_path:
        logger.info(f"Bookmark Organizer starting - Log file: {log_path}")
    logger.info(f"Log level: {log_level}")

    # Reduce noise from HTTP libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return log_path
