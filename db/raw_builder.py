"""
Imperative query builder.

RawQueryBuilder appends each call directly to a running SQL string, in call
order. It is the simple mode for straight-line queries:

    >>> qb = RawQueryBuilder()
    >>> (qb.select('users', ['id', 'name'])
    ...    .join('LEFT', 'orders', 'orders.user_id = users.id')
    ...    .where('age', 30, '>')
    ...    .or_where('name', 'Ann')
    ...    .order_by('id', 'DESC')
    ...    .limit(10))
    >>> qb.to_sql()
    "SELECT id, name FROM users LEFT JOIN orders ON orders.user_id = users.id WHERE age > 30 OR name = 'Ann' ORDER BY id DESC LIMIT 10"

Nothing is reordered, so calls must come in SQL order. Use QueryBuilder when
conditions need grouping or the call order is not fixed.
"""

import re
from typing import Any, Optional, Union

from sql.query_builder import (
    ColumnSpec,
    Columns,
    Direction,
    paginated_sql_builder,
    sanitize_value,
)

from .base import BaseQueryBuilder

WHERE_KEYWORD = re.compile(r"\bWHERE\b", re.IGNORECASE)


class RawQueryBuilder(BaseQueryBuilder):
    """Builds a query by string concatenation, one clause per call."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._has_where = False

    def select(self, table: str, columns: Columns = '*') -> 'RawQueryBuilder':
        """Start a new SELECT statement, discarding the current query."""
        if isinstance(columns, (list, tuple)):
            columns = ", ".join(columns)
        self.query = f"SELECT {columns} FROM {table}"
        self._has_where = False
        return self

    def raw(self, sql: str) -> 'RawQueryBuilder':
        super().raw(sql)
        self._has_where = WHERE_KEYWORD.search(sql) is not None
        return self

    def join(self, join_type: str, table: str, condition: str) -> 'RawQueryBuilder':
        self.query += f" {join_type.upper()} JOIN {table} ON {condition}"
        return self

    def _condition(self, keyword: str, field: str, value: Any, operator: str) -> 'RawQueryBuilder':
        self.query += f" {keyword} {field} {operator} {sanitize_value(value, self.quote)}"
        return self

    def where(self, field: str, value: Any, operator: str = '=') -> 'RawQueryBuilder':
        """Add a condition; WHERE on the first call, AND afterwards."""
        keyword = 'AND' if self._has_where else 'WHERE'
        self._has_where = True
        return self._condition(keyword, field, value, operator)

    def or_where(self, field: str, value: Any, operator: str = '=') -> 'RawQueryBuilder':
        return self._condition('OR', field, value, operator)

    def and_where(self, field: str, value: Any, operator: str = '=') -> 'RawQueryBuilder':
        return self._condition('AND', field, value, operator)

    def group_by(self, columns: Columns) -> 'RawQueryBuilder':
        self.query += " GROUP BY " + ", ".join(ColumnSpec.of(columns).render())
        return self

    def order_by(
        self,
        columns: Columns,
        direction: Optional[Union[str, Direction]] = None
    ) -> 'RawQueryBuilder':
        """Order by one column (ASC by default), a list, or a column -> direction mapping."""
        spec = ColumnSpec.of(columns)
        if spec.kind == 'single' and direction is None:
            direction = Direction.ASC
        self.query += " ORDER BY " + ", ".join(spec.render(direction))
        return self

    def limit(self, number: int) -> 'RawQueryBuilder':
        self.query += f" LIMIT {int(number)}"
        return self

    def offset(self, number: int) -> 'RawQueryBuilder':
        self.query += f" OFFSET {int(number)}"
        return self

    def _with_page(self, limit: int, offset: int) -> 'RawQueryBuilder':
        paged = self.clone()
        paged.query = paginated_sql_builder(paged.query, limit, offset)
        return paged
