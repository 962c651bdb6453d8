"""
logger_service.py - Health check log file and console logging

This module handles all logging operations:
- HealthLogService: the append-only health log, one line per fact/finding,
  owned by the caller and passed to the Reporter (no global logger state)
- setup_logging(): console output for progress, retries and debug dumps

Health Log Format:
    2026-10-19T14:05:09+00:00 [INFO] Latest block number: 16
    2026-10-19T14:05:09+00:00 [WARNING] No peers connected
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import IO, Optional

import pytz

from ethhealth.config_loader import FALLBACK_LOG_FILE

# Configure module logger
logger = logging.getLogger(__name__)

HEALTH_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"


class RFC3339Formatter(logging.Formatter):
    """Formatter that stamps records with an RFC3339 time in a fixed timezone."""

    def __init__(self, fmt: str = HEALTH_LOG_FORMAT, timezone: str = "UTC"):
        super().__init__(fmt)
        self.tz = pytz.timezone(timezone)

    def formatTime(self, record, datefmt=None):
        created = datetime.fromtimestamp(record.created, tz=pytz.utc)
        return created.astimezone(self.tz).isoformat(timespec="seconds")


class HealthLogService:
    """
    Append-only health log for one run.

    The underlying handler is opened once in the constructor and released by
    close() (or by leaving the `with` block). Uses a private Logger instance
    that is not registered with the logging module, so nothing leaks into
    the root logger.

    Attributes:
        path: File actually written to (after any fallback), None for streams

    Example:
        >>> with HealthLogService("~/.ethereum/health-check.log") as health_log:
        ...     health_log.info("Connected peers: 3")
    """

    def __init__(
        self,
        log_file: Optional[str] = None,
        timezone: str = "UTC",
        stream: Optional[IO[str]] = None
    ):
        """
        Open the health log.

        Args:
            log_file: Path of the log file (parent directories are created)
            timezone: IANA timezone used for timestamps
            stream: Write to this stream instead of a file (tests, stdout)

        Raises:
            OSError: If the log file cannot be opened
        """
        self._logger = logging.Logger("ethhealth.health_log", level=logging.INFO)

        if stream is not None:
            self.path: Optional[str] = None
            self._handler: logging.Handler = logging.StreamHandler(stream)
        else:
            if not log_file:
                raise ValueError("log_file or stream is required")
            self.path = self._prepare_path(log_file)
            self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")

        self._handler.setFormatter(RFC3339Formatter(timezone=timezone))
        self._logger.addHandler(self._handler)
        logger.debug(f"Health log opened: {self.path or 'stream'}")

    @staticmethod
    def _prepare_path(log_file: str) -> str:
        """Create the parent directory, falling back to the working directory."""
        path = Path(log_file).expanduser()
        log_dir = path.parent
        if str(log_dir) in ("", "."):
            return str(path)

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Could not create log directory {log_dir}: {e} - using {FALLBACK_LOG_FILE}")
            return FALLBACK_LOG_FILE
        return str(path)

    def __enter__(self) -> "HealthLogService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Flush and release the log handler."""
        self._logger.removeHandler(self._handler)
        self._handler.close()

    def log(self, level: str, message: str) -> None:
        """
        Write one line.

        Args:
            level: INFO, WARNING or ERROR
            message: The message to log
        """
        self._logger.log(getattr(logging, level.upper(), logging.INFO), message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)

    def error(self, message: str) -> None:
        self._logger.error(message)


def setup_logging(debug: bool = False, quiet: bool = False, stream: Optional[IO[str]] = None) -> None:
    """
    Configure console logging on the root logger.

    Args:
        debug: Show DEBUG records (request/response bodies)
        quiet: Only show warnings and errors, on stderr (used with --json)
        stream: Override the output stream (default: stdout, stderr when quiet)
    """
    if debug:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    if stream is None:
        stream = sys.stderr if quiet else sys.stdout

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    # urllib3 connection chatter is noise even in debug mode
    logging.getLogger("urllib3").setLevel(logging.WARNING)
