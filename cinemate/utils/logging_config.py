"""
Logging configuration for the recommendation service.

Provides console and rotating file handlers for the API process and
quiets the chatty HTTP client libraries.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional


def setup_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    log_dir: str = "logs",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> None:
    """
    Configure logging for the application.

    Args:
        log_file: Name of log file (default: None, logs to console only)
        level: Logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR')
        log_dir: Directory for log files (default: 'logs')
        max_bytes: Maximum size of log file before rotation (default: 10MB)
        backup_count: Number of backup files to keep (default: 5)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Drop handlers from a previous call so records are not emitted twice
    for handler in list(root_logger.handlers):
        if getattr(handler, "_cinemate", False):
            root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    console_handler._cinemate = True
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        full_log_path = log_path / log_file

        file_handler = RotatingFileHandler(
            full_log_path,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler._cinemate = True
        root_logger.addHandler(file_handler)

        root_logger.info(f"Logging to file: {full_log_path}")

    # Silence noisy libraries
    for noisy in ('httpx', 'httpcore', 'openai', 'urllib3'):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def configure_api_logging(level: str = "INFO", log_file: Optional[str] = None):
    """
    Configure logging for the API process.

    Args:
        level: Logging level name
        log_file: Optional file name under logs/ (console only when None)
    """
    setup_logging(
        log_file=log_file,
        level=level,
        log_dir="logs"
    )
