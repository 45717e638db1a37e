"""
Centralized logging configuration for PrintQueue.

This module provides thread-aware logging with automatic thread context
in all log messages. The queue engine is mutated from Flask request threads
and from the background progress ticker, so knowing which thread produced a
message matters when reading the logs.

Features:
    - Automatic thread name and ID in all log messages
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages
    - Helper functions for getting loggers with consistent naming

Log Format:
    2026-10-19 10:15:30 [INFO    ] [MainThread] print_queue.app - Starting application
    2026-10-19 10:15:37 [INFO    ] [Ticker] print_queue.services.queue_engine - Tick applied 2 changes
    2026-10-19 10:15:38 [INFO    ] [Thread-3] print_queue.job - [PS-123] Job ready

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)
    logger.info("This message includes thread context automatically")

    # Per-job messages
    job_logger = get_job_logger("PS-123")
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "print_queue"
JOB_LOGGER_NAME = f"{APP_LOGGER_NAME}.job"


# =============================================================================
# THREAD CONTEXT FILTER
# =============================================================================

class ThreadContextFilter(logging.Filter):
    """
    Logging filter that adds thread context to all log records.

    This filter adds two attributes to each log record:
        - thread_name: Name of the current thread (e.g., "MainThread", "Ticker")
        - thread_id: Numeric ID of the current thread
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()

        # We add context, we never drop records
        return True


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with thread context.

    This sets up:
    1. Console handler (always enabled) - for immediate feedback
    2. Rotating file handler (optional) - for persistent logs
    3. Error file handler (optional) - for ERROR/CRITICAL only
    4. Thread context filter - adds thread name to all messages

    Args:
        app_name: Name of the root logger (default: "print_queue")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs relative to this file)
        enable_file_logging: Whether to write to log files (default: True)

    Returns:
        Configured root logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False  # Prevent duplicate logs to root logger

    # Remove any existing handlers (allows re-configuration)
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    thread_filter = ThreadContextFilter()

    # ---------------------------------------------------------------------
    # Console Handler (always enabled)
    # ---------------------------------------------------------------------
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    # ---------------------------------------------------------------------
    # File Handlers (optional)
    # ---------------------------------------------------------------------
    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"

        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        file_handler = RotatingFileHandler(
            filename=app_log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB per file
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(thread_filter)
        logger.addHandler(file_handler)

        error_log_file = log_dir / f"{app_name}_error.log"
        error_handler = RotatingFileHandler(
            filename=error_log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(thread_filter)
        logger.addHandler(error_handler)

        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


# =============================================================================
# LOGGER FACTORY FUNCTIONS
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger with the application namespace.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance with thread context support

    Example:
        # In services/queue_engine.py
        logger = get_logger(__name__)
        # Logger name: "print_queue.services.queue_engine"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


class JobLoggerAdapter(logging.LoggerAdapter):
    """Prefixes each message with the job token."""

    def process(self, msg, kwargs):
        return f"[{self.extra['job_token']}] {msg}", kwargs


def get_job_logger(token: str) -> JobLoggerAdapter:
    """
    Get a logger for a specific job.

    Every job shares the one "print_queue.job" logger; the adapter puts the
    token at the front of the message, making it easy to grep the history of
    one order across submission, printing and collection. Loggers registered
    with the logging module live for the whole process, so none is created
    per token.

    Args:
        token: Public job token (e.g. "PS-123")

    Returns:
        Adapter over the shared job logger
    """
    return JobLoggerAdapter(logging.getLogger(JOB_LOGGER_NAME), {"job_token": token})


def set_thread_name(name: str) -> None:
    """
    Set the name of the current thread.

    This name appears in log messages in the [thread_name] field.

    Args:
        name: Thread name to display in logs
    """
    threading.current_thread().name = name
