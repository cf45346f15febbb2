"""
==================================================
Database connectivity and execution utilities.
==================================================

Provides engine creation from configuration and the QueryExecutor, the only
piece of the builder that talks to a database. Builders hand it finished SQL
(plus bound parameters for DML) and get rows or row counts back.

This module abstracts connection and driver details from query building:
    - Connection settings -> SQLAlchemy engine
    - Statement execution with or without bound parameters
    - Driver-aware literal quoting for inline condition values
    - SQLAlchemy errors wrapped into QueryExecutionError

Example:
    >>> from utils.database_utils import QueryExecutor
    >>>
    >>> executor = QueryExecutor.connect({
    ...     'driver': 'sqlite',
    ...     'database': 'app.db'
    ... })
    >>> executor.execute("SELECT 1 AS one")
    [{'one': 1}]
    >>> executor.quote("can't")
    "'can''t'"
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import SUPPORTED_DRIVERS, ConfigurationError, DatabaseConfig, config
from sql.query_builder import quote_literal

logger = logging.getLogger(__name__)

# Dialects that treat backslash as an escape character inside literals
BACKSLASH_ESCAPE_DIALECTS = ('mysql', 'mariadb')


class DatabaseConnectionError(Exception):
    """Exception raised when database connection fails."""
    pass


class UnsupportedDriverError(DatabaseConnectionError):
    """Exception raised for a driver outside mysql, pgsql and sqlite."""
    pass


class QueryExecutionError(Exception):
    """Exception raised when a statement fails to execute.

    Attributes:
        sql: The statement that failed
    """

    def __init__(self, message: str, sql: str):
        super().__init__(message)
        self.sql = sql


@dataclass
class StatementResult:
    """Outcome of a data-modifying statement.

    Attributes:
        rowcount: Rows affected, as reported by the driver
        last_insert_id: Last inserted row id, where the driver reports one
    """

    rowcount: int
    last_insert_id: Optional[Any] = None


def make_quoter(backslash_escapes: bool = False) -> Callable[[str], str]:
    """
    Build the literal quoting primitive for a dialect.

    Args:
        backslash_escapes: Also double backslashes (MySQL/MariaDB)

    Returns:
        Function turning a string into a quoted SQL literal
    """
    if not backslash_escapes:
        return quote_literal

    def quote(value: str) -> str:
        return quote_literal(value.replace("\\", "\\\\"))

    return quote


def create_sqlalchemy_engine(
    db_config: DatabaseConfig,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10
) -> Engine:
    """
    Create a SQLAlchemy engine from a DatabaseConfig.

    Args:
        db_config: Connection settings
        echo: Enable SQLAlchemy statement logging
        pool_size: Connection pool size (server databases only)
        max_overflow: Maximum overflow connections (server databases only)

    Returns:
        Configured SQLAlchemy Engine

    Raises:
        UnsupportedDriverError: If the driver is not mysql, pgsql or sqlite
        DatabaseConnectionError: If the engine cannot be created
    """
    if db_config.driver not in SUPPORTED_DRIVERS:
        raise UnsupportedDriverError(f"Unsupported database driver: {db_config.driver}")

    try:
        url = db_config.get_connection_url()
        if db_config.driver == 'sqlite':
            return create_engine(url, echo=echo)

        return create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True  # Verify connections before using
        )
    except (SQLAlchemyError, ConfigurationError, ImportError) as e:
        raise DatabaseConnectionError(f"Failed to connect to the database: {e}") from e


class QueryExecutor:
    """
    Executes SQL on behalf of the builders.

    Attributes:
        engine: SQLAlchemy engine the statements run on

    Example:
        >>> executor = QueryExecutor.from_config()
        >>> rows = executor.execute("SELECT * FROM users WHERE id = :id", {'id': 1})
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._quote = make_quoter(engine.dialect.name in BACKSLASH_ESCAPE_DIALECTS)

    @classmethod
    def from_config(cls, name: Optional[str] = None, **engine_kwargs) -> 'QueryExecutor':
        """
        Create an executor for a configured connection.

        Args:
            name: Connection name (see Config.database); None for the default
            **engine_kwargs: Passed to create_sqlalchemy_engine

        Returns:
            QueryExecutor instance
        """
        return cls(create_sqlalchemy_engine(config.database(name), **engine_kwargs))

    @classmethod
    def connect(cls, settings: Mapping[str, Any], **engine_kwargs) -> 'QueryExecutor':
        """
        Create an executor from a settings mapping.

        Args:
            settings: Keys driver (default mysql), host, port, database,
                username, password, charset (default utf8)
            **engine_kwargs: Passed to create_sqlalchemy_engine

        Returns:
            QueryExecutor instance
        """
        port = settings.get('port')
        db_config = DatabaseConfig(
            driver=str(settings.get('driver', 'mysql')).lower(),
            host=settings.get('host', 'localhost'),
            port=int(port) if port else None,
            user=settings.get('username', ''),
            password=settings.get('password', ''),
            database=settings.get('database', ''),
            charset=settings.get('charset', 'utf8')
        )
        logger.info(f"Connecting to {db_config.driver} database '{db_config.database}'")
        return cls(create_sqlalchemy_engine(db_config, **engine_kwargs))

    def quote(self, value: str) -> str:
        """Quote a string as a literal for this engine's dialect."""
        return self._quote(value)

    def execute(
        self,
        sql: str,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a statement and return its rows.

        Statements with parameters are bound through SQLAlchemy text();
        statements without are passed to the driver untouched, so inline
        literals are never read as bind markers.

        Args:
            sql: SQL statement
            parameters: Named parameters for :name placeholders

        Returns:
            List of rows as dictionaries (empty for statements without rows)

        Raises:
            QueryExecutionError: If the database rejects the statement
        """
        try:
            with self.engine.begin() as conn:
                result = self._run(conn, sql, parameters)
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error(f"❌ Query failed: {e}")
            raise QueryExecutionError(f"Query failed: {e}", sql) from e

    def modify(
        self,
        sql: str,
        parameters: Optional[Mapping[str, Any]] = None
    ) -> StatementResult:
        """
        Execute a data-modifying statement.

        Args:
            sql: INSERT/UPDATE/DELETE/TRUNCATE statement
            parameters: Named parameters for :name placeholders

        Returns:
            StatementResult with row count and last insert id

        Raises:
            QueryExecutionError: If the database rejects the statement
        """
        try:
            with self.engine.begin() as conn:
                result = self._run(conn, sql, parameters)
                return StatementResult(
                    rowcount=result.rowcount,
                    last_insert_id=getattr(result, 'lastrowid', None)
                )
        except SQLAlchemyError as e:
            logger.error(f"❌ Statement failed: {e}")
            raise QueryExecutionError(f"Statement failed: {e}", sql) from e

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    @staticmethod
    def _run(conn, sql: str, parameters: Optional[Mapping[str, Any]]):
        if parameters:
            return conn.execute(text(sql), dict(parameters))
        return conn.exec_driver_sql(sql, execution_options={'no_parameters': True})
