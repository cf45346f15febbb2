"""
Shared pytest configuration and fixtures for all tests.

Key fixtures:
- fake_executor: in-memory stand-in for QueryExecutor that records statements.
- sqlite_executor: real QueryExecutor on a temporary SQLite file with a
  populated 'users' table.
"""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path to enable importing project modules
# This allows tests to import from 'core', 'sql', 'db', 'utils' without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from sql.query_builder import quote_literal  # noqa: E402
from utils.database_utils import StatementResult  # noqa: E402


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests - isolated function-level tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interactions")
    config.addinivalue_line("markers", "smoke: Smoke tests - basic functionality checks")
    config.addinivalue_line("markers", "edge_case: Edge case tests - boundary conditions")


class FakeExecutor:
    """QueryExecutor stand-in recording every statement it receives.

    Attributes:
        executed: (sql, parameters) tuples passed to execute()
        modified: (sql, parameters) tuples passed to modify()
        rows: Rows returned by execute(), or a callable (sql, params) -> rows
        total: Value returned for COUNT(*) queries
    """

    def __init__(self, rows=None, total=0):
        self.executed = []
        self.modified = []
        self.rows = rows if rows is not None else []
        self.total = total
        self.modify_result = StatementResult(rowcount=1, last_insert_id=42)

    def quote(self, value):
        return quote_literal(value)

    def execute(self, sql, parameters=None):
        self.executed.append((sql, parameters))
        if sql.startswith("SELECT COUNT(*)"):
            return [{'total': self.total}]
        if callable(self.rows):
            return self.rows(sql, parameters)
        return list(self.rows)

    def modify(self, sql, parameters=None):
        self.modified.append((sql, parameters))
        return self.modify_result


USERS = [
    {'name': 'Ann', 'age': 31},
    {'name': 'Bob', 'age': 25},
    {'name': 'can\'t "go"', 'age': 40},
    {'name': 'Dora', 'age': 30.5},
    {'name': 'a :b', 'age': 52},
]


@pytest.fixture
def fake_executor():
    """Provide a recording executor."""
    return FakeExecutor()


@pytest.fixture
def sqlite_executor(tmp_path):
    """Provide a QueryExecutor on a SQLite file with a populated users table."""
    from utils.database_utils import QueryExecutor

    executor = QueryExecutor.connect({
        'driver': 'sqlite',
        'database': str(tmp_path / 'builder.db')
    })
    executor.execute(
        "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT, age REAL)"
    )
    for user in USERS:
        executor.modify("INSERT INTO users (name, age) VALUES (:name, :age)", user)

    yield executor

    executor.dispose()
