"""
==================================================
Core infrastructure package for the query builder.
==================================================

This package provides centralized configuration management and logging
infrastructure used throughout the query builder.

Modules:
    config: Configuration management from environment variables
    logger: Centralized logging configuration and utilities

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Default driver: {config.database().driver}")
"""

__version__ = "1.0.0"
__all__ = ['get_logger', 'setup_logging', 'shorten_sql', 'config', 'Config', 'ConfigurationError']

from core.config import Config, ConfigurationError, config
from core.logger import get_logger, setup_logging, shorten_sql
