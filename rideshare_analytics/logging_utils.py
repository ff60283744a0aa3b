#!/usr/bin/env python3
"""
Logging utilities for the Rideshare Trip Analytics system
Provides centralized logging configuration with session-based and time-based rotation
"""

import sys
import io
import logging
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional
from datetime import datetime, timedelta

LOG_FORMAT = '%(asctime)s [%(levelname)8s] %(name)s: %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOGGER_NAME = 'rideshare_analytics'


def cleanup_old_session_logs(session_dir: Path, days_to_keep: int) -> int:
    """
    Clean up old session log files older than specified days

    Args:
        session_dir: Directory containing session logs
        days_to_keep: Number of days to keep session logs

    Returns:
        Number of removed log files
    """
    if not session_dir.exists():
        return 0

    cutoff_date = datetime.now() - timedelta(days=days_to_keep)

    removed_count = 0
    for log_file in session_dir.glob('*_session_*.log'):
        # Filename format: rideshare_analytics_session_20251002_141530.log
        parts = log_file.stem.split('_')
        if len(parts) < 4:
            continue
        try:
            file_date = datetime.strptime(f"{parts[-2]}_{parts[-1]}", '%Y%m%d_%H%M%S')
        except ValueError:
            continue

        if file_date < cutoff_date:
            try:
                log_file.unlink()
                removed_count += 1
            except OSError as e:
                logging.getLogger(DEFAULT_LOGGER_NAME).warning(
                    f"Could not remove old session log {log_file}: {e}"
                )

    return removed_count


def _make_formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def init_file_logging(log_name: str = DEFAULT_LOGGER_NAME,
                      log_subdir: str = 'temp') -> logging.Logger:
    """
    Initialize logging with session-based and optional time/size-based rotation.

    Creates up to three log handlers:
    1. Session log: New file per session with timestamp
    2. Daily rotating log: Rolls over daily, keeps historical logs
    3. Size rotating log: Caps very large single sessions

    Args:
        log_name: Name of the logger and log file
        log_subdir: Subdirectory under project root for log files

    Returns:
        Configured logger instance
    """
    from .config import config

    logger = logging.getLogger(log_name)
    logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    # Clear existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    session_timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    try:
        base_dir = Path(__file__).resolve().parents[1]
        log_dir = base_dir / log_subdir
        session_dir = log_dir / 'sessions'
        session_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        # Fall back to console logging if the log directory is not writable
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(_make_formatter())
        logger.addHandler(console_handler)
        logger.propagate = False
        logger.error(f"Failed to initialize file logging: {e}")
        return logger

    session_log_file = session_dir / f'{log_name}_session_{session_timestamp}.log'
    daily_log_file = log_dir / f'{log_name}_daily.log'
    rotating_log_file = log_dir / f'{log_name}_rotating.log'

    removed = 0
    if config.LOG_AUTO_CLEANUP:
        removed = cleanup_old_session_logs(session_dir, config.LOG_SESSION_CLEANUP_DAYS)

    # 1. SESSION-BASED LOG (new file per run)
    if config.LOG_SESSION_ENABLED:
        session_handler = logging.FileHandler(session_log_file, encoding='utf-8')
        session_handler.setFormatter(_make_formatter())
        logger.addHandler(session_handler)

    # 2. TIME-BASED ROTATING LOG (daily rotation)
    if config.LOG_DAILY_ROTATION:
        daily_handler = TimedRotatingFileHandler(
            daily_log_file,
            when='midnight',
            interval=1,
            backupCount=config.LOG_BACKUP_COUNT,
            encoding='utf-8',
            utc=False
        )
        daily_handler.suffix = '%Y-%m-%d'
        daily_handler.setFormatter(_make_formatter())
        logger.addHandler(daily_handler)

    # 3. SIZE-BASED ROTATING LOG
    if config.LOG_SIZE_ROTATION:
        rotating_handler = RotatingFileHandler(
            rotating_log_file,
            maxBytes=config.LOG_FILE_MAX_BYTES,
            backupCount=3,
            encoding='utf-8'
        )
        rotating_handler.setFormatter(_make_formatter())
        logger.addHandler(rotating_handler)

    logger.propagate = False

    logger.info("=" * 60)
    logger.info(f"🚀 NEW SESSION STARTED: {session_timestamp}")
    if config.LOG_SESSION_ENABLED:
        logger.info(f"📁 Session log: {session_log_file}")
    if config.LOG_DAILY_ROTATION:
        logger.info(f"📅 Daily log: {daily_log_file}")
    if config.LOG_SIZE_ROTATION:
        logger.info(f"🔄 Rotating log: {rotating_log_file}")
    if removed:
        logger.info(f"🧹 Cleaned up {removed} session logs older than "
                    f"{config.LOG_SESSION_CLEANUP_DAYS} days")
    logger.info("=" * 60)

    return logger


class StreamToLogger(io.TextIOBase):
    """
    Custom stream that redirects writes to a logger
    """

    def __init__(self, logger: logging.Logger, level: int):
        self.logger = logger
        self.level = level

    def write(self, buf):
        if not buf:
            return 0
        for line in str(buf).rstrip().splitlines():
            if line:
                self.logger.log(self.level, line)
        return len(buf)

    def flush(self):
        pass


def redirect_streams_to_logger(logger: logging.Logger) -> None:
    """
    Redirect stdout and stderr to the logger

    Args:
        logger: Logger instance to redirect streams to
    """
    sys.stdout = StreamToLogger(logger, logging.INFO)
    sys.stderr = StreamToLogger(logger, logging.ERROR)


def setup_logging(log_name: str = DEFAULT_LOGGER_NAME,
                  log_subdir: Optional[str] = None,
                  redirect_streams: Optional[bool] = None) -> logging.Logger:
    """
    Complete logging setup with file logging and optional stream redirection

    Args:
        log_name: Name of the logger and log file
        log_subdir: Subdirectory under project root for log files (uses config if None)
        redirect_streams: Whether to redirect stdout/stderr to logger (uses config if None)

    Returns:
        Configured logger instance
    """
    from .config import config

    if log_subdir is None:
        log_subdir = config.LOG_DIR
    if redirect_streams is None:
        redirect_streams = config.REDIRECT_STDOUT and config.REDIRECT_STDERR

    logger = init_file_logging(log_name, log_subdir)

    if redirect_streams:
        redirect_streams_to_logger(logger)

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger instance by name

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
