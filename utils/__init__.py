"""
==========================
Utility Functions Package.
==========================

Database connectivity and statement execution for the query builder.

Modules:
    database_utils: Engine creation, QueryExecutor and driver errors
"""

__version__ = "1.0.0"
__all__ = [
    'QueryExecutor',
    'StatementResult',
    'create_sqlalchemy_engine',
    'make_quoter',
    'DatabaseConnectionError',
    'UnsupportedDriverError',
    'QueryExecutionError'
]

from .database_utils import (
    DatabaseConnectionError,
    QueryExecutionError,
    QueryExecutor,
    StatementResult,
    UnsupportedDriverError,
    create_sqlalchemy_engine,
    make_quoter,
)
