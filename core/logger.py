"""
==========================================
Centralized logging for the query builder.
==========================================

Provides consistent logging setup across all modules with:
- Console output, colored by level
- Optional file output
- Defaults taken from core.config (LOG_LEVEL, LOG_FILE, LOG_DIR, LOG_COLORS)
- A helper to keep SQL statements on one log line

Example:
    >>> from core.logger import get_logger, setup_logging
    >>>
    >>> setup_logging(log_level='DEBUG', log_file='builder.log')
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.debug(f"Executing: {shorten_sql(sql)}")
"""

import logging
import re
import sys
from pathlib import Path
from typing import Optional

from core.config import config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_WHITESPACE = re.compile(r"\s+")


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps the level name in ANSI color codes.

    Attributes:
        COLORS: Dict mapping log levels to ANSI color codes
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        # Work on a copy so file handlers sharing the record stay uncolored
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname)
        if color:
            colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def shorten_sql(sql: str, max_length: int = 500) -> str:
    """Collapse whitespace in a SQL statement and cap its length for logging.

    Args:
        sql: SQL text
        max_length: Maximum length before truncation

    Returns:
        Single-line SQL text
    """
    flat = _WHITESPACE.sub(" ", sql).strip()
    if len(flat) > max_length:
        return flat[:max_length] + "..."
    return flat


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional logging level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(getattr(logging, level.upper()))

    return logger


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: Optional[bool] = None
) -> None:
    """Configure the root logger with console and/or file handlers.

    Arguments left as None fall back to config.logging.

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name
        log_dir: Directory for the log file
        console_output: If True, log to stdout
        use_colors: If True, color the console level names

    Example:
        >>> setup_logging(log_level='DEBUG', log_file='builder.log', log_dir='logs')
    """
    level_name = (log_level or config.logging.level).upper()
    level = getattr(logging, level_name)
    log_file = log_file or config.logging.log_file
    log_dir = log_dir or config.logging.log_dir
    use_colors = config.logging.use_colors if use_colors is None else use_colors

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        formatter_class = ColoredFormatter if use_colors else logging.Formatter
        console_handler.setFormatter(formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)


def _init_default_logging():
    """Set up logging from config unless the application already did."""
    if not logging.getLogger().handlers:
        setup_logging()


# Auto-initialize on import
_init_default_logging()
