"""
=========================================
Structured query builder (clause store).
=========================================

QueryBuilder collects SELECT fragments in a ClauseStore and only turns them
into SQL when build_sql() (or an executing method) is called. Calls can come
in any order; the assembler always emits clauses in SQL order.

Nesting:
    Conditions given a label ('nest1' .. 'nest20') are held back until a
    nesting template places them. Each {{nestN}} token in the template is
    replaced by the parenthesized conditions stored under that label.

Example:
    >>> qb = QueryBuilder()
    >>> (qb.select('testtable', ['id', 'title'])
    ...    .nest_where('({{nest1}}) AND ({{nest2}})')
    ...    .where('id', 1, label='nest1')
    ...    .or_where('title', "can't", label='nest1')
    ...    .where('title', 'go', label='nest2')
    ...    .where('age', '30.5', '>')
    ...    .order_by({'id': 'DESC'}))
    >>> qb.build_sql()
"""

from typing import Any, Optional, Union

from core.config import config
from core.logger import get_logger
from sql.query_builder import (
    ClauseStore,
    Columns,
    Direction,
    InvalidNestingGrammar,
    build_sql,
    paginated_sql_builder,
    resolve_nested_where,
)
from utils.database_utils import QueryExecutor

from .base import BaseQueryBuilder

logger = get_logger(__name__)


class QueryBuilder(BaseQueryBuilder):
    """
    Fluent SELECT builder backed by a ClauseStore.

    Attributes:
        store: ClauseStore holding the accumulated fragments
        strict_nesting: Raise InvalidNestingGrammar for bad templates;
            when False the template is ignored with a warning
    """

    def __init__(
        self,
        executor: Optional[QueryExecutor] = None,
        database: Optional[str] = None,
        strict_nesting: Optional[bool] = None
    ):
        super().__init__(executor=executor, database=database)
        self.store = ClauseStore()
        self.strict_nesting = (
            config.builder.strict_nesting if strict_nesting is None else strict_nesting
        )

    # ------------------------------------------------------------------
    # SELECT / FROM
    # ------------------------------------------------------------------

    def select(self, table: str, columns: Columns = '*') -> 'QueryBuilder':
        """
        Select columns from a table.

        Args:
            table: Table name, added to the FROM clause
            columns: Expression string, or a list replacing the select list

        Returns:
            self
        """
        self.store.add_select(table, columns)
        return self

    def from_(self, source: str) -> 'QueryBuilder':
        """Append a raw FROM source."""
        self.store.add_from(source)
        return self

    def join(self, join_type: str, table: str, condition: str) -> 'QueryBuilder':
        """Append '<TYPE> JOIN <table> ON <condition>' to the FROM clause."""
        self.store.add_join(join_type, table, condition)
        return self

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def where(
        self,
        field: str,
        value: Any,
        operator: str = '=',
        label: Optional[str] = None
    ) -> 'QueryBuilder':
        """
        Add a condition.

        Args:
            field: Column or expression
            value: Compared value; numbers pass through, other values are quoted
            operator: Comparison operator
            label: Nesting label; None for an implicit condition

        Returns:
            self
        """
        self.store.add_where(field, value, operator, label, quote=self.quote)
        return self

    def or_where(
        self,
        field: str,
        value: Any,
        operator: str = '=',
        label: Optional[str] = None
    ) -> 'QueryBuilder':
        """Add a condition joined with OR."""
        self.store.add_where(field, value, operator, label, connective='OR', quote=self.quote)
        return self

    def and_where(
        self,
        field: str,
        value: Any,
        operator: str = '=',
        label: Optional[str] = None
    ) -> 'QueryBuilder':
        """Add a condition joined with AND."""
        self.store.add_where(field, value, operator, label, connective='AND', quote=self.quote)
        return self

    def raw_where(self, condition: str, label: Optional[str] = None) -> 'QueryBuilder':
        """Add caller-written condition text, used as given."""
        self.store.add_raw_where(condition, label)
        return self

    def nest_where(self, template: str) -> 'QueryBuilder':
        """
        Set the nesting template, e.g. '({{nest1}} OR {{nest2}}) AND {{nest3}}'.

        Raises:
            InvalidNestingGrammar: If the template holds anything besides
                whitespace, parentheses, AND, OR and {{nest1}}..{{nest20}},
                and strict_nesting is on
        """
        try:
            self.store.set_nest_template(template)
        except InvalidNestingGrammar as e:
            if self.strict_nesting:
                raise
            logger.warning(f"⚠️ Ignoring nesting template: {e}")
        return self

    # ------------------------------------------------------------------
    # GROUP BY / HAVING / ORDER BY / LIMIT
    # ------------------------------------------------------------------

    def group_by(self, columns: Columns) -> 'QueryBuilder':
        self.store.add_group_by(columns)
        return self

    def having(self, condition: str) -> 'QueryBuilder':
        self.store.add_having(condition)
        return self

    def order_by(
        self,
        columns: Columns,
        direction: Optional[Union[str, Direction]] = None
    ) -> 'QueryBuilder':
        """
        Order by one column, a list of columns, or a column -> direction mapping.

        A single column defaults to ASC.
        """
        self.store.add_order_by(columns, direction)
        return self

    def limit(self, number: int) -> 'QueryBuilder':
        self.store.set_limit(number)
        return self

    def offset(self, number: int) -> 'QueryBuilder':
        self.store.set_offset(number)
        return self

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def build_sql(self) -> str:
        """Assemble the SELECT statement from the clause store."""
        return build_sql(self.store)

    def nested_where_sql(self) -> str:
        """Return the expanded nesting template (empty when none is set)."""
        return resolve_nested_where(self.store)

    def to_sql(self) -> str:
        # raw() takes precedence over the clause store
        return self.query or self.build_sql()

    def clone(self) -> 'QueryBuilder':
        twin = super().clone()
        twin.store = self.store.clone()
        return twin

    def _without_page(self) -> 'QueryBuilder':
        counter = self.clone()
        counter.store.limit = None
        counter.store.offset = None
        return counter

    def _with_page(self, limit: int, offset: int) -> 'QueryBuilder':
        paged = self.clone()
        if paged.query:
            paged.query = paginated_sql_builder(paged.query, limit, offset)
        else:
            paged.store.set_limit(limit)
            paged.store.set_offset(offset)
        return paged
