"""
===============================================
SQL construction package for the query builder.
===============================================

This package holds the pure SQL-generation side of the query builder. Nothing
here talks to a database: functions take plain data (or a ClauseStore) and
return SQL text, with parameter maps where values are bound.

The package follows a clear organization:
    - query_builder.py: Clause store, nesting resolver and SELECT assembly
    - dml.py: INSERT/UPDATE/DELETE/TRUNCATE with named placeholders

Architecture:
    - SELECT statements are assembled from a ClauseStore by build_sql()
    - DML builders return (sql, params) tuples for bound execution
    - All SQL generation is pure functions (no side effects)

Example:
    >>> from sql.query_builder import ClauseStore, build_sql
    >>> from sql.dml import insert_builder
    >>>
    >>> store = ClauseStore()
    >>> store.add_select('users')
    >>> store.add_where('age', 30, '>')
    >>> build_sql(store)
    'SELECT * FROM users WHERE (( age > 30 ))'
    >>>
    >>> insert_builder('users', {'name': 'Ann'})
    ('INSERT INTO users (name) VALUES (:name)', {'name': 'Ann'})
"""

__version__ = "1.0.0"
__all__ = [
    # Clause assembly
    'ClauseStore', 'ColumnSpec', 'Direction', 'build_sql',
    'resolve_nested_where', 'sanitize_value', 'quote_literal',
    'InvalidNestingGrammar', 'QueryBuilderError',
    # DML functions
    'insert_builder', 'update_builder', 'delete_builder', 'truncate_builder'
]

from .dml import delete_builder, insert_builder, truncate_builder, update_builder
from .query_builder import (
    ClauseStore,
    ColumnSpec,
    Direction,
    InvalidNestingGrammar,
    QueryBuilderError,
    build_sql,
    quote_literal,
    resolve_nested_where,
    sanitize_value,
)
