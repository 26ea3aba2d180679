"""
Logging Configuration for the Compliance Deadline Service.
Provides centralized logging setup.
"""

import os
import logging
import sys
from pathlib import Path
from typing import List, Optional
from logging.handlers import RotatingFileHandler


def setup_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Custom log format string
        log_file: Path to log file, or "none" for stdout only
            (default: /tmp/logs/compliance_deadlines.log)

    Returns:
        Root logger instance
    """
    level = level or os.getenv("LOG_LEVEL", "INFO")
    log_file = log_file or os.getenv("LOG_FILE", "/tmp/logs/compliance_deadlines.log")

    if log_format is None:
        log_format = (
            "%(asctime)s - %(name)s - %(levelname)s - "
            "%(filename)s:%(lineno)d - %(message)s"
        )

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    # LOG_FILE=none keeps logging on stdout only (containers, tests)
    if log_file.lower() != "none":
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5,
                encoding="utf-8"
            )
        )

    # Configure root logger
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=log_format,
        handlers=handlers,
        force=True
    )

    # Set specific loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger = logging.getLogger("compliance_deadlines")
    logger.info(f"Logging configured at {level} level")
    logger.info(f"Log file: {log_file}")

    return logger

