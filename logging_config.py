#!/usr/bin/env python3
"""
Centralized logging configuration for the TuCanChat translator bot.

Every module asks for its own logger via get_logger(__name__); the root
logger is configured once, when this module is first imported.
"""

import logging
import os
import sys
import threading
from typing import Optional


def setup_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    log_to_file: bool = False,
    log_file_path: str = "tucan.log"
) -> logging.Logger:
    """
    Set up logging configuration for the application.

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string for log messages
        log_to_file: Whether to log to file in addition to console
        log_file_path: Path to log file if log_to_file is True

    Returns:
        Configured root logger
    """
    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s'

    formatter = logging.Formatter(format_string)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        file_handler = logging.FileHandler(log_file_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Chatty vendor SDKs
    for noisy in ("botocore", "boto3", "urllib3", "twilio.http_client"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


def install_thread_guard() -> None:
    """Log exceptions that escape background threads instead of losing them."""
    crash_logger = logging.getLogger("crash-guard")

    def _log_unhandled(args):
        if issubclass(args.exc_type, SystemExit):
            return
        crash_logger.error(
            f"UNHANDLED in thread {args.thread.name if args.thread else '?'}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )

    threading.excepthook = _log_unhandled


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


# Configure default logging when module is imported
setup_logging(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    log_to_file=os.getenv("LOG_TO_FILE", "false").lower() == "true",
)
