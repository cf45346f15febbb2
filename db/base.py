"""
=====================================
Shared base for the fluent builders.
=====================================

BaseQueryBuilder carries everything the structured and raw-chain builders
have in common: the executor, the parameter map, last-query tracking, DML
helpers, result formatting, counting and pagination. Subclasses only decide
how the current SELECT statement is produced (to_sql) and how a page is
applied to a clone (_with_page).

Example:
    >>> from db import QueryBuilder
    >>>
    >>> qb = QueryBuilder(database='reporting')
    >>> user_id = qb.insert('users', {'name': 'Ann', 'age': 31})
    >>> qb.update('users', {'age': 32}, {'id': user_id})
    >>> qb.delete('users', {'age': [18, 30]})
    >>> qb.get_last_query()
    'DELETE FROM users WHERE age >= :age_min AND age <= :age_max'
"""

import copy
import json
import math
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from core.config import config
from core.logger import get_logger, shorten_sql
from sql.dml import delete_builder, insert_builder, truncate_builder, update_builder
from sql.query_builder import count_query_builder, pagination_builder
from utils.database_utils import QueryExecutionError, QueryExecutor

logger = get_logger(__name__)

NO_QUERY_MESSAGE = 'No query executed yet'
RESULT_FORMATS = ('json', 'dataframe')


class BaseQueryBuilder:
    """
    Common state and execution helpers for query builders.

    Attributes:
        executor: QueryExecutor running the statements
        query: Current SQL text (raw SQL or the imperative chain)
        parameters: Named parameters bound when the current query runs
        last_query: Last attempted statement, kept after failures
    """

    def __init__(
        self,
        executor: Optional[QueryExecutor] = None,
        database: Optional[str] = None
    ):
        """
        Args:
            executor: Executor to use; created from config when omitted
            database: Named connection used when no executor is given
        """
        self.executor = executor if executor is not None else QueryExecutor.from_config(database)
        self.query = ""
        self.parameters: Dict[str, Any] = {}
        self.last_query = ""

    # ------------------------------------------------------------------
    # Statement production
    # ------------------------------------------------------------------

    def to_sql(self) -> str:
        """Return the SQL the builder would execute now."""
        return self.query

    def _with_page(self, limit: int, offset: int) -> 'BaseQueryBuilder':
        raise NotImplementedError

    def _without_page(self) -> 'BaseQueryBuilder':
        return self.clone()

    def raw(self, sql: str) -> 'BaseQueryBuilder':
        """Replace the current query with caller-supplied SQL."""
        self.query = sql
        return self

    def quote(self, value: str) -> str:
        return self.executor.quote(value)

    def clone(self) -> 'BaseQueryBuilder':
        """
        Copy the builder for counting or paging.

        All query state is deep-copied; the executor is shared.
        """
        twin = copy.copy(self)
        twin.parameters = copy.deepcopy(self.parameters)
        return twin

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _log_statement(self, sql: str) -> None:
        if config.builder.log_sql:
            logger.info(f"Executing: {shorten_sql(sql)}")
        else:
            logger.debug(f"Executing: {shorten_sql(sql)}")

    def _fetch(self, sql: str, parameters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        self.last_query = sql
        self._log_statement(sql)
        try:
            return self.executor.execute(sql, parameters or None)
        except QueryExecutionError:
            logger.error(f"❌ Failed query: {shorten_sql(sql)}")
            raise

    def _modify(self, sql: str, parameters: Optional[Mapping[str, Any]] = None):
        self.last_query = sql
        self._log_statement(sql)
        try:
            return self.executor.modify(sql, parameters or None)
        except QueryExecutionError:
            logger.error(f"❌ Failed statement: {shorten_sql(sql)}")
            raise

    def execute(self) -> List[Dict[str, Any]]:
        """Execute the current query and return its rows."""
        return self._fetch(self.to_sql(), self.parameters)

    def get(self, fmt: Optional[str] = None):
        """
        Execute the current query and return the results.

        Args:
            fmt: None for a list of dicts, 'json' for a JSON string,
                'dataframe' for a pandas DataFrame

        Returns:
            Query results in the requested format

        Raises:
            ValueError: If fmt is not a supported format
            QueryExecutionError: If the query fails
        """
        if fmt is not None and fmt.lower() not in RESULT_FORMATS:
            raise ValueError(f"Unsupported result format: {fmt}")

        rows = self.execute()

        if fmt is None:
            return rows
        if fmt.lower() == 'json':
            return json.dumps(rows, default=str)
        return pd.DataFrame(rows)

    def get_last_query(self) -> str:
        """Return the last attempted statement."""
        return self.last_query or NO_QUERY_MESSAGE

    # ------------------------------------------------------------------
    # Data modification
    # ------------------------------------------------------------------

    def insert(self, table: str, values: Mapping[str, Any]) -> Any:
        """
        Insert one row.

        Args:
            table: Target table
            values: Column name to value mapping

        Returns:
            Id of the inserted row, where the driver reports one
        """
        sql, params = insert_builder(table, values)
        return self._modify(sql, params).last_insert_id

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        conditions: Mapping[str, Any],
        logical_operator: str = 'AND'
    ) -> int:
        """
        Update rows matching the conditions.

        Condition keys may end with >=, <=, > or < to choose the comparison.

        Returns:
            Number of affected rows
        """
        sql, params = update_builder(table, values, conditions, logical_operator)
        return self._modify(sql, params).rowcount

    def delete(
        self,
        table: str,
        conditions: Mapping[str, Any],
        logical_operator: str = 'AND'
    ) -> int:
        """
        Delete rows matching the conditions.

        A [min, max] value deletes an inclusive range.

        Returns:
            Number of affected rows
        """
        sql, params = delete_builder(table, conditions, logical_operator)
        return self._modify(sql, params).rowcount

    def truncate(self, table: str) -> None:
        """Remove all rows from a table."""
        self._modify(truncate_builder(table))

    # ------------------------------------------------------------------
    # Counting and pagination
    # ------------------------------------------------------------------

    def count_total_items(self) -> int:
        """Count the rows of the current query, ignoring any LIMIT/OFFSET."""
        counter = self._without_page()
        sql = count_query_builder(counter.to_sql())
        counter._log_statement(sql)
        rows = counter.executor.execute(sql, counter.parameters or None)
        if not rows:
            return 0
        return int(next(iter(rows[0].values())))

    def paginate(self, per_page: int, current_page: int = 1) -> Dict[str, Any]:
        """
        Fetch one page of the current query.

        The builder itself is left untouched apart from last_query.

        Args:
            per_page: Number of items per page
            current_page: Page number (1-based)

        Returns:
            Dict with 'data' (rows) and 'pagination' (total_items, per_page,
            current_page, total_pages)
        """
        page = pagination_builder(current_page, per_page)
        total_items = self.count_total_items()

        paged = self._with_page(page['limit'], page['offset'])
        sql = paged.to_sql()
        results = self._fetch(sql, paged.parameters)

        return {
            'data': results,
            'pagination': {
                'total_items': total_items,
                'per_page': per_page,
                'current_page': current_page,
                'total_pages': math.ceil(total_items / per_page),
            },
        }
