"""
==============================
SQL Clause Assembly Utilities.
==============================

This module holds the clause-assembly engine behind the fluent builders.
Builder calls never touch a SQL string directly; they append fragments to a
ClauseStore, and build_sql() turns the store into one statement.

Building Blocks:
- ClauseStore: per-clause accumulator (select, from, where, raw where,
  group by, having, order by, nesting template, limit/offset)
- ColumnSpec: normalizes the str / list / mapping "columns" argument
- sanitize_value: numeric passthrough, quoting for everything else
- validate_nest_template: whitelist check for {{nestN}} templates
- resolve_nested_where: expands {{nestN}} tokens with labeled conditions
- build_sql: assembles the final statement from a ClauseStore

Helpers:
- pagination_builder: LIMIT and OFFSET for a page
- count_query_builder: wraps a SELECT into a COUNT(*) query

Usage:
    from sql.query_builder import ClauseStore, build_sql

    store = ClauseStore()
    store.add_select('testtable', ['id', 'title'])
    store.add_where('id', 1, label='nest1')
    store.add_where('title', "can't", connective='OR', label='nest1')
    store.add_where('age', 30, '>')
    store.set_nest_template('({{nest1}})')
    sql = build_sql(store)
"""

import copy
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from sqlalchemy.engine.default import DefaultDialect
from sqlalchemy.types import String

NEST_LABEL_MIN = 1
NEST_LABEL_MAX = 20

NEST_TEMPLATE_PATTERN = re.compile(
    r"(?:\{\{nest(?:[1-9]|1[0-9]|20)\}\}|AND|OR|[\s()])*"
)
NEST_TOKEN_PATTERN = re.compile(r"\{\{(nest(?:[1-9]|1[0-9]|20))\}\}")

# ASCII numbers only: optional sign, digits with an optional fraction,
# optional exponent, surrounding whitespace.
NUMERIC_PATTERN = re.compile(
    r"\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?\s*", re.ASCII
)

TRAILING_PAGINATION_PATTERN = re.compile(
    r"\s+(?:LIMIT\s+\d+(?:\s+OFFSET\s+\d+)?|OFFSET\s+\d+)\s*;?\s*$", re.IGNORECASE
)

Label = Union[int, str]
ConditionGroup = Dict[Label, List[Tuple[Optional[str], str]]]
Quoter = Callable[[str], str]
Columns = Union[str, List[str], Tuple[str, ...], Mapping[str, str]]


class QueryBuilderError(Exception):
    """Base exception for query construction errors."""
    pass


class InvalidNestingGrammar(QueryBuilderError):
    """Raised when a nesting template contains anything besides
    whitespace, parentheses, AND, OR and {{nest1}}..{{nest20}} tokens."""

    def __init__(self, template: str):
        self.template = template
        super().__init__(f"Invalid nesting template: {template!r}")


class Direction(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Union[str, "Direction"]) -> "Direction":
        """Parse a sort direction, case-insensitive."""
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Invalid sort direction: {value!r}") from None


_default_dialect = DefaultDialect()
_string_literal = String().literal_processor(dialect=_default_dialect)


def quote_literal(value: str) -> str:
    """
    Quote a string as a SQL literal using SQLAlchemy's String literal rules.

    Args:
        value: Raw string value

    Returns:
        Single-quoted literal with embedded quotes doubled
    """
    return _string_literal(value)


def is_numeric(value: Any) -> bool:
    """Check whether a value is a number or a numeric-looking string."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, float):
        return math.isfinite(value)
    return isinstance(value, str) and NUMERIC_PATTERN.fullmatch(value) is not None


def sanitize_value(value: Any, quote: Quoter = quote_literal) -> str:
    """
    Render a value for inline use in a condition.

    Numbers and numeric-looking strings pass through verbatim; everything
    else goes through the quote primitive.

    Args:
        value: Value to render
        quote: Quoting primitive (usually the executor's)

    Returns:
        SQL-safe literal text

    Example:
        >>> sanitize_value(30.5)
        '30.5'
        >>> sanitize_value('30.5 string')
        "'30.5 string'"
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if is_numeric(value):
        return str(value)
    return quote(str(value))


def validate_nest_template(template: str) -> bool:
    """Return True if the template only holds whitelisted nesting tokens."""
    return NEST_TEMPLATE_PATTERN.fullmatch(template) is not None


@dataclass(frozen=True)
class ColumnSpec:
    """
    Normalized form of a "columns" argument.

    Attributes:
        kind: 'single', 'list' or 'directed'
        columns: Column names or expressions, in caller order
        directions: Per-column direction for 'directed' specs
    """

    kind: str
    columns: Tuple[str, ...]
    directions: Tuple[Optional[Direction], ...] = ()

    @classmethod
    def of(cls, columns: Columns) -> "ColumnSpec":
        if isinstance(columns, str):
            return cls('single', (columns,))
        if isinstance(columns, Mapping):
            return cls(
                'directed',
                tuple(columns.keys()),
                tuple(Direction.parse(d) if d else None for d in columns.values())
            )
        if isinstance(columns, (list, tuple)):
            return cls('list', tuple(columns))
        raise TypeError(f"Unsupported column specification: {type(columns).__name__}")

    def render(self, direction: Optional[Union[str, Direction]] = None) -> List[str]:
        """
        Render one fragment per column.

        Args:
            direction: Direction applied to 'single' and 'list' columns

        Returns:
            List of "<column>" or "<column> <direction>" fragments
        """
        if self.kind == 'directed':
            return [
                f"{col} {d.value}" if d else col
                for col, d in zip(self.columns, self.directions)
            ]

        if direction is None:
            return list(self.columns)

        suffix = Direction.parse(direction).value
        return [f"{col} {suffix}" for col in self.columns]


def _implicit_labels(conditions: ConditionGroup) -> List[int]:
    return sorted(label for label in conditions if isinstance(label, int))


def _append_condition(conditions: ConditionGroup, text: str, label: Optional[str]) -> None:
    if label is None:
        conditions[len(_implicit_labels(conditions))] = [(None, text)]
    else:
        conditions.setdefault(label, []).append((label, text))


def _group(fragments: List[str]) -> str:
    return "(" + " ".join(fragments) + ")"


@dataclass
class ClauseStore:
    """
    Structured accumulator of query fragments prior to assembly.

    Implicit (unlabeled) conditions are keyed by sequential integers;
    labeled conditions are grouped under their label and only reach the
    output through the nesting template.
    """

    select_columns: List[str] = field(default_factory=list)
    from_sources: List[str] = field(default_factory=list)
    where_conditions: ConditionGroup = field(default_factory=dict)
    raw_where_conditions: ConditionGroup = field(default_factory=dict)
    group_by_columns: List[str] = field(default_factory=list)
    having_conditions: List[str] = field(default_factory=list)
    order_by_entries: List[str] = field(default_factory=list)
    nest_where_template: str = ""
    limit: Optional[int] = None
    offset: Optional[int] = None

    @property
    def is_where_nesting(self) -> bool:
        return self.nest_where_template != ""

    def clone(self) -> "ClauseStore":
        return copy.deepcopy(self)

    def add_select(self, table: str, columns: Columns = "*") -> None:
        """
        Add SELECT columns and the source table.

        A list replaces the current select list verbatim; a string is
        appended as one expression.
        """
        if isinstance(columns, (list, tuple)):
            self.select_columns = list(columns)
        else:
            self.select_columns.append(str(columns))

        self.from_sources.append(table)

    def add_from(self, source: str) -> None:
        self.from_sources.append(str(source))

    def add_join(self, join_type: str, table: str, condition: str) -> None:
        self.from_sources.append(f"{join_type.upper()} JOIN {table} ON {condition}")

    def add_where(
        self,
        field_name: str,
        value: Any,
        operator: str = "=",
        label: Optional[str] = None,
        connective: Optional[str] = None,
        quote: Quoter = quote_literal
    ) -> None:
        """
        Add a field/operator/value condition.

        Args:
            field_name: Column or expression on the left-hand side
            value: Compared value, sanitized before storage
            operator: Comparison operator
            label: Nesting label (e.g. 'nest1'); None for implicit conditions
            connective: Leading 'AND' / 'OR'; defaults to AND when the
                target group already has conditions, dropped when it has none
            quote: Quoting primitive for non-numeric values
        """
        sanitized = sanitize_value(value, quote)
        label = label.strip() if label is not None else None

        # The first condition of a group never carries a connective
        if not self._group_has_conditions(self.where_conditions, label):
            connective = None
        elif connective is None:
            connective = "AND"

        if connective:
            text = f" {connective.upper()} {field_name} {operator} {sanitized} "
        else:
            text = f" {field_name} {operator} {sanitized} "

        _append_condition(self.where_conditions, text, label)

    def add_raw_where(self, text: str, label: Optional[str] = None) -> None:
        label = label.strip() if label is not None else None
        _append_condition(self.raw_where_conditions, f" {text} ", label)

    def set_nest_template(self, template: str) -> None:
        """
        Set the nesting template.

        Raises:
            InvalidNestingGrammar: If the template fails the whitelist;
                the current template is kept
        """
        if not template:
            return
        if not validate_nest_template(template):
            raise InvalidNestingGrammar(template)
        self.nest_where_template = str(template)

    def add_group_by(self, columns: Columns) -> None:
        self.group_by_columns.extend(ColumnSpec.of(columns).render())

    def add_having(self, condition: str) -> None:
        self.having_conditions.append(str(condition))

    def add_order_by(
        self,
        columns: Columns,
        direction: Optional[Union[str, Direction]] = None
    ) -> None:
        spec = ColumnSpec.of(columns)
        if spec.kind == 'single' and direction is None:
            direction = Direction.ASC
        self.order_by_entries.extend(spec.render(direction))

    def set_limit(self, number: int) -> None:
        self.limit = int(number)

    def set_offset(self, number: int) -> None:
        self.offset = int(number)

    @staticmethod
    def _group_has_conditions(conditions: ConditionGroup, label: Optional[str]) -> bool:
        if label is None:
            return bool(_implicit_labels(conditions))
        return bool(conditions.get(label))


def _implicit_where_builder(conditions: ConditionGroup) -> str:
    fragments = [
        text
        for index in _implicit_labels(conditions)
        for _, text in conditions[index]
    ]
    return _group(fragments) if fragments else ""


def resolve_nested_where(store: ClauseStore) -> str:
    """
    Expand {{nestN}} tokens of the nesting template.

    Each token whose label holds conditions is replaced by the parenthesized,
    space-joined fragments (where conditions first, then raw ones) in
    insertion order. Tokens without conditions stay as they are. The
    template is scanned once, so substituted text is never expanded again.

    Args:
        store: ClauseStore to read

    Returns:
        Expanded template, or "" when no template is set
    """
    if not store.is_where_nesting:
        return ""

    def substitute(match: "re.Match") -> str:
        label = match.group(1)
        fragments = [text for _, text in store.where_conditions.get(label, [])]
        fragments += [text for _, text in store.raw_where_conditions.get(label, [])]
        return _group(fragments) if fragments else match.group(0)

    return NEST_TOKEN_PATTERN.sub(substitute, store.nest_where_template)


def where_clause_builder(store: ClauseStore) -> str:
    """
    Build the WHERE clause from nested, implicit and raw conditions.

    Returns:
        "WHERE (...)" with the present parts joined by AND, or ""
    """
    parts = [
        part for part in (
            resolve_nested_where(store),
            _implicit_where_builder(store.where_conditions),
            _implicit_where_builder(store.raw_where_conditions),
        )
        if part != ""
    ]

    if not parts:
        return ""

    return "WHERE (" + " AND ".join(parts) + ")"


def build_sql(store: ClauseStore) -> str:
    """
    Assemble the full statement from a ClauseStore.

    Missing clauses are omitted; nothing here raises for structural
    reasons. The result depends only on the store's current state.

    Args:
        store: ClauseStore to assemble

    Returns:
        SQL statement
    """
    clauses = []

    if store.select_columns:
        clauses.append("SELECT " + " , ".join(store.select_columns))

    if store.from_sources:
        clauses.append("FROM " + " ".join(store.from_sources))

    where_clause = where_clause_builder(store)
    if where_clause:
        clauses.append(where_clause)

    if store.group_by_columns:
        clauses.append("GROUP BY " + " ,".join(store.group_by_columns))

    if store.having_conditions:
        clauses.append("HAVING " + " AND ".join(store.having_conditions))

    if store.order_by_entries:
        clauses.append("ORDER BY " + " ,".join(store.order_by_entries))

    if store.limit is not None:
        clauses.append(f"LIMIT {store.limit}")

    if store.offset is not None:
        clauses.append(f"OFFSET {store.offset}")

    return " ".join(clauses)


def pagination_builder(page: int, page_size: int) -> Dict[str, int]:
    """
    Calculate LIMIT and OFFSET for pagination.

    Args:
        page: Page number (1-based)
        page_size: Number of records per page

    Returns:
        Dictionary with limit and offset values

    Raises:
        ValueError: If page or page_size is below 1
    """
    if page < 1:
        raise ValueError(f"Page number must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"Page size must be >= 1, got {page_size}")

    return {
        'limit': page_size,
        'offset': (page - 1) * page_size
    }


def strip_pagination(sql: str) -> str:
    """Remove a trailing LIMIT [OFFSET] or OFFSET clause and semicolon from a statement."""
    return TRAILING_PAGINATION_PATTERN.sub("", sql.strip()).rstrip(";").strip()


def paginated_sql_builder(sql: str, limit: int, offset: int) -> str:
    """Apply LIMIT and OFFSET to a statement, replacing any trailing pair."""
    return f"{strip_pagination(sql)} LIMIT {int(limit)} OFFSET {int(offset)}"


def count_query_builder(sql: str) -> str:
    """
    Turn a SELECT statement into one that counts its rows.

    A trailing LIMIT/OFFSET pair is removed first so the count covers the
    whole result set.

    Args:
        sql: SELECT statement

    Returns:
        SELECT COUNT(*) statement over the original query
    """
    return f"SELECT COUNT(*) AS total FROM ({strip_pagination(sql)}) AS counted_rows"
