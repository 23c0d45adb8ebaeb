"""
Logging setup for the link harvester.
"""

import logging
import json
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone

from .config import LoggingConfig
from ..errors import LogSetupError


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add exception info if present
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Add extra fields
        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(config: LoggingConfig, stream=None) -> logging.Logger:
    """
    Send log records to the console and, durably, to the configured log file.

    The file is opened in append mode so earlier runs are kept.

    Args:
        config: Logging configuration
        stream: Console stream (default stdout)

    Returns:
        Configured root logger

    Raises:
        LogSetupError: if the log file cannot be opened
    """
    log_file = Path(config.file)

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    except OSError as e:
        raise LogSetupError(f"Could not open log file {log_file}: {e}") from e

    if config.json:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(config.format)

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper()))

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Configure third-party loggers
    third_party_loggers = {
        'aiohttp': logging.WARNING,
        'asyncio': logging.WARNING,
        'urllib3': logging.WARNING,
    }

    for logger_name, level in third_party_loggers.items():
        logging.getLogger(logger_name).setLevel(level)

    root_logger.debug(f"Logging to {log_file} at level {config.level}")
    return root_logger


def shutdown_logging(root_logger: Optional[logging.Logger] = None):
    """Flush and close every handler on the root logger."""
    root_logger = root_logger or logging.getLogger()
    for handler in list(root_logger.handlers):
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)
