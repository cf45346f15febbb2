"""
=========================================
Configuration management for the builder.
=========================================

Loads all configuration from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

Database connections are described by DB_* variables. Additional named
connections use DB_<NAME>_* variables, e.g. DB_REPORTING_HOST, and are
looked up with config.database('reporting').

Example:
    >>> from core.config import config
    >>>
    >>> # Default connection
    >>> url = config.database().get_connection_url()
    >>>
    >>> # Named connection
    >>> reporting = config.database('reporting')
    >>> print(f"Driver: {reporting.driver}, host: {reporting.host}")
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy.engine import URL

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

# Builder driver names mapped to SQLAlchemy dialect+driver names
SUPPORTED_DRIVERS = {
    'mysql': 'mysql+pymysql',
    'pgsql': 'postgresql+psycopg2',
    'sqlite': 'sqlite',
}

DEFAULT_PORTS = {
    'mysql': 3306,
    'pgsql': 5432,
}


class ConfigurationError(Exception):
    """Exception raised when a requested configuration is missing or invalid."""
    pass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class DatabaseConfig:
    """Database connection settings.

    Attributes:
        driver: Builder driver name (mysql, pgsql, sqlite)
        host: Server hostname or IP address
        port: Server port number (None for the driver default)
        user: Database username
        password: Database password
        database: Database name, or file path for sqlite
        charset: Connection character set
    """

    driver: str
    host: str
    port: Optional[int]
    user: str
    password: str
    database: str
    charset: str = 'utf8'

    def get_connection_url(self) -> URL:
        """Build the SQLAlchemy URL for this connection.

        Returns:
            SQLAlchemy URL object

        Raises:
            ConfigurationError: If the driver is not supported
        """
        if self.driver not in SUPPORTED_DRIVERS:
            raise ConfigurationError(f"Unsupported database driver: {self.driver}")

        if self.driver == 'sqlite':
            return URL.create(drivername='sqlite', database=self.database or None)

        query = {'charset': self.charset} if self.driver == 'mysql' else {
            'client_encoding': self.charset
        }
        return URL.create(
            drivername=SUPPORTED_DRIVERS[self.driver],
            username=self.user or None,
            password=self.password or None,
            host=self.host,
            port=self.port or DEFAULT_PORTS.get(self.driver),
            database=self.database,
            query=query
        )

    @classmethod
    def from_env(cls, prefix: str = 'DB') -> 'DatabaseConfig':
        """Read a connection from <prefix>_* environment variables."""
        port = os.getenv(f'{prefix}_PORT')
        return cls(
            driver=os.getenv(f'{prefix}_DRIVER', 'mysql').strip().lower(),
            host=os.getenv(f'{prefix}_HOST', 'localhost'),
            port=int(port) if port else None,
            user=os.getenv(f'{prefix}_USER', 'root'),
            password=os.getenv(f'{prefix}_PASSWORD', ''),
            database=os.getenv(f'{prefix}_DATABASE', ''),
            charset=os.getenv(f'{prefix}_CHARSET', 'utf8')
        )


@dataclass
class LoggingConfig:
    """Logging settings.

    Attributes:
        level: Root log level name
        log_file: Optional log file name
        log_dir: Directory for the log file
        use_colors: Colored console output
    """

    level: str = 'INFO'
    log_file: Optional[str] = None
    log_dir: str = 'logs'
    use_colors: bool = True


@dataclass
class BuilderConfig:
    """Query builder behavior settings.

    Attributes:
        strict_nesting: Raise on invalid nesting templates instead of
            ignoring them with a warning
        log_sql: Log every executed statement at INFO instead of DEBUG
    """

    strict_nesting: bool = True
    log_sql: bool = False


class Config:
    """Centralized configuration manager.

    Attributes:
        db: Default DatabaseConfig (DB_* variables)
        logging: LoggingConfig instance
        builder: BuilderConfig instance

    Example:
        >>> config = Config()
        >>> config.database().driver
        'mysql'
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.db = DatabaseConfig.from_env('DB')

        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            log_file=os.getenv('LOG_FILE') or None,
            log_dir=os.getenv('LOG_DIR', 'logs'),
            use_colors=_env_bool('LOG_COLORS', True)
        )

        self.builder = BuilderConfig(
            strict_nesting=_env_bool('QB_STRICT_NESTING', True),
            log_sql=_env_bool('QB_LOG_SQL', False)
        )

    def database(self, name: Optional[str] = None) -> DatabaseConfig:
        """Get the configuration of a named connection.

        Args:
            name: Connection name; None or 'default' for DB_* variables

        Returns:
            DatabaseConfig for the connection

        Raises:
            ConfigurationError: If no DB_<NAME>_* variables are defined
        """
        if name is None or name.lower() == 'default':
            return self.db

        prefix = f"DB_{name.strip().upper()}"
        if not any(key.startswith(f"{prefix}_") for key in os.environ):
            raise ConfigurationError(f"Invalid database configuration: {name}")

        return DatabaseConfig.from_env(prefix)


# Global configuration instance
config = Config()
