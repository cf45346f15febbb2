"""
===========================================
Data Manipulation Language (DML) Utilities.
===========================================

This module builds INSERT, UPDATE, DELETE and TRUNCATE statements that use
named placeholders (:column). Values never appear inline; every builder
returns the SQL text together with the parameter map to bind.

Functions:
- insert_builder: INSERT INTO ... VALUES (:col, ...)
- update_builder: UPDATE ... SET col = :col WHERE ...
- delete_builder: DELETE FROM ... WHERE ..., with range conditions
- truncate_builder: TRUNCATE TABLE ...

Usage:
    from sql.dml import insert_builder, update_builder

    sql, params = insert_builder('users', {'name': 'Ann', 'age': 31})
    # INSERT INTO users (name, age) VALUES (:name, :age)

    sql, params = update_builder(
        'users',
        values={'status': 'inactive'},
        conditions={'status': 'active', 'last_login<=': '2024-01-01'}
    )
"""

from typing import Any, Dict, Mapping, Tuple

# Longest suffixes first so '>=' wins over '>'
CONDITION_OPERATORS = ('>=', '<=', '>', '<')

WHERE_PARAM_PREFIX = 'where_'

Statement = Tuple[str, Dict[str, Any]]


def _split_condition_key(key: str) -> Tuple[str, str]:
    """
    Split a condition key into column and operator.

    'age>=' -> ('age', '>='); 'age' -> ('age', '=')
    """
    stripped = key.strip()
    for op in CONDITION_OPERATORS:
        if stripped.endswith(op):
            return stripped[:-len(op)].strip(), op
    return stripped, '='


def _unique_param(name: str, params: Mapping[str, Any]) -> str:
    """Return name, or name_1, name_2, ... when it is already bound."""
    candidate, n = name, 0
    while candidate in params:
        n += 1
        candidate = f"{name}_{n}"
    return candidate


def _join_conditions(conditions: list, logical_operator: str) -> str:
    return f" {logical_operator.strip().upper()} ".join(conditions)


def insert_builder(table: str, values: Mapping[str, Any]) -> Statement:
    """
    Build an INSERT statement with named placeholders.

    Args:
        table: Target table
        values: Column name to value mapping

    Returns:
        Tuple of (SQL, parameters)

    Raises:
        ValueError: If no values are given
    """
    if not values:
        raise ValueError(f"No values given for INSERT INTO {table}")

    columns = list(values.keys())
    sql = "INSERT INTO {} ({}) VALUES ({})".format(
        table,
        ", ".join(columns),
        ", ".join(f":{col}" for col in columns)
    )
    return sql, dict(values)


def update_builder(
    table: str,
    values: Mapping[str, Any],
    conditions: Mapping[str, Any],
    logical_operator: str = "AND"
) -> Statement:
    """
    Build an UPDATE statement with named placeholders.

    Condition keys may end with >=, <=, > or < to choose the comparison.
    WHERE placeholders are prefixed with 'where_' so a column can appear in
    both SET and WHERE; repeated names get a numeric suffix, so
    {'age>=': 18, 'age<=': 30} binds :where_age and :where_age_1.

    Args:
        table: Target table
        values: Column name to new value mapping
        conditions: Condition key to value mapping
        logical_operator: Operator joining the conditions (AND, OR)

    Returns:
        Tuple of (SQL, parameters)

    Raises:
        ValueError: If values or conditions are empty
    """
    if not values:
        raise ValueError(f"No values given for UPDATE {table}")
    if not conditions:
        raise ValueError(f"UPDATE {table} requires at least one condition")

    set_part = ", ".join(f"{col} = :{col}" for col in values)
    params: Dict[str, Any] = dict(values)

    where_parts = []
    for key, value in conditions.items():
        column, op = _split_condition_key(key)
        param = _unique_param(f"{WHERE_PARAM_PREFIX}{column}", params)
        where_parts.append(f"{column} {op} :{param}")
        params[param] = value

    sql = "UPDATE {} SET {} WHERE {}".format(
        table,
        set_part,
        _join_conditions(where_parts, logical_operator)
    )
    return sql, params


def delete_builder(
    table: str,
    conditions: Mapping[str, Any],
    logical_operator: str = "AND"
) -> Statement:
    """
    Build a DELETE statement with named placeholders.

    A two-item list or tuple value is treated as an inclusive range:
    {'age': [18, 30]} -> age >= :age_min AND age <= :age_max

    Args:
        table: Target table
        conditions: Column name to value (or [min, max]) mapping
        logical_operator: Operator joining the conditions (AND, OR)

    Returns:
        Tuple of (SQL, parameters)

    Raises:
        ValueError: If no conditions are given or a range is malformed
    """
    if not conditions:
        raise ValueError(f"DELETE FROM {table} requires at least one condition")

    where_parts = []
    params: Dict[str, Any] = {}

    for column, value in conditions.items():
        if isinstance(value, (list, tuple)):
            if len(value) != 2:
                raise ValueError(
                    f"Range condition for '{column}' needs exactly two values, got {len(value)}"
                )
            low = _unique_param(f"{column}_min", params)
            params[low] = value[0]
            high = _unique_param(f"{column}_max", params)
            params[high] = value[1]
            where_parts.append(f"{column} >= :{low} AND {column} <= :{high}")
        else:
            param = _unique_param(column, params)
            where_parts.append(f"{column} = :{param}")
            params[param] = value

    sql = "DELETE FROM {} WHERE {}".format(
        table,
        _join_conditions(where_parts, logical_operator)
    )
    return sql, params


def truncate_builder(table: str) -> str:
    """Build a TRUNCATE TABLE statement."""
    return f"TRUNCATE TABLE {table}"
