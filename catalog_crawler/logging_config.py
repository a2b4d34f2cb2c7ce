"""Structured logging configuration with per-site log files."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from pythonjsonlogger import jsonlogger

from catalog_crawler.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        # Add timestamp in ISO format
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

        # Add log level
        log_record['level'] = record.levelname

        # Add logger name
        log_record['logger'] = record.name

        # Add source location
        log_record['source'] = f"{record.filename}:{record.lineno}"

        site = getattr(record, "site", None)
        if site:
            log_record['site'] = site


class SiteLogFileHandler(logging.Handler):
    """
    Writes records tagged with a ``site`` extra to per-site files.

    Layout: ``<base_dir>/<site>/<YYYY-MM-DD>/<LEVEL>.log``. Records without
    a site are ignored so the handler can sit on the root logger.
    """

    def __init__(self, base_dir: str | Path, level: int = logging.INFO):
        super().__init__(level=level)
        self.base_dir = Path(base_dir)
        self.setFormatter(logging.Formatter("%(asctime)s - [%(site)s] - %(message)s"))

    def log_path(self, record: logging.LogRecord) -> Path:
        day = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d")
        return self.base_dir / record.site / day / f"{record.levelname}.log"

    def emit(self, record: logging.LogRecord) -> None:
        if not getattr(record, "site", None):
            return
        try:
            path = self.log_path(record)
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(self.format(record) + "\n")
        except Exception:
            self.handleError(record)


def setup_logging(base_dir: str | Path | None = None):
    """Configure logging for the application.

    Args:
        base_dir: Optional base directory to place the log folder in.
                  If omitted, uses the current working directory.
    """

    # Create logs directory if it doesn't exist
    logs_dir = (Path(base_dir) if base_dir else Path.cwd()) / settings.log_dir
    logs_dir.mkdir(parents=True, exist_ok=True)

    # Get root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console handler (human-readable for development)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # File handler (JSON)
    json_handler = logging.FileHandler(logs_dir / "app.log")
    json_handler.setLevel(logging.DEBUG)
    json_formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    json_handler.setFormatter(json_formatter)
    root_logger.addHandler(json_handler)

    # Also add a separate file for errors only
    error_handler = logging.FileHandler(logs_dir / "error.log")
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(json_formatter)
    root_logger.addHandler(error_handler)

    # Per-scraper files, one folder per site and day
    root_logger.addHandler(SiteLogFileHandler(logs_dir))

    # httpx and pymongo are chatty at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    return root_logger


class LoggerAdapter(logging.LoggerAdapter):
    """Custom logger adapter that adds context fields to log records."""

    def process(self, msg, kwargs):
        # Add extra context to the message
        extra = kwargs.get('extra', {})
        extra.update(self.extra)
        kwargs['extra'] = extra
        return msg, kwargs


def get_logger(name: str, **context) -> LoggerAdapter:
    """
    Get a logger with optional context fields.

    Args:
        name: Logger name (usually __name__)
        **context: Additional context fields (e.g., site='adams')

    Returns:
        LoggerAdapter with context
    """
    logger = logging.getLogger(name)
    return LoggerAdapter(logger, context)
