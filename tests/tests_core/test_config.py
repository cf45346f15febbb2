"""
Test suite for core.config.

Tests cover:
- DatabaseConfig.get_connection_url for each driver
- DatabaseConfig.from_env defaults and overrides
- Config.database named connection lookup
- Boolean environment flags for logging and builder behavior
"""

import pytest

from core.config import (
    DEFAULT_PORTS,
    Config,
    ConfigurationError,
    DatabaseConfig,
    _env_bool,
)

DB_VARIABLES = (
    'DB_DRIVER', 'DB_HOST', 'DB_PORT', 'DB_USER', 'DB_PASSWORD', 'DB_DATABASE', 'DB_CHARSET',
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove default connection variables so defaults apply."""
    for name in DB_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================================
# UNIT TESTS - DatabaseConfig
# ============================================================================


@pytest.mark.unit
def test_mysql_url():
    """Test MySQL URLs use PyMySQL, the default port and a charset."""
    db = DatabaseConfig('mysql', 'db.local', None, 'root', 'p@ss', 'shop', 'utf8mb4')

    url = db.get_connection_url()

    assert url.drivername == 'mysql+pymysql'
    assert url.host == 'db.local'
    assert url.port == DEFAULT_PORTS['mysql']
    assert url.username == 'root'
    assert url.password == 'p@ss'
    assert url.database == 'shop'
    assert dict(url.query) == {'charset': 'utf8mb4'}


@pytest.mark.unit
def test_pgsql_url():
    """Test PostgreSQL URLs use psycopg2 and client_encoding."""
    db = DatabaseConfig('pgsql', 'pg.local', 6543, 'reader', '', 'shop')

    url = db.get_connection_url()

    assert url.drivername == 'postgresql+psycopg2'
    assert url.port == 6543
    assert url.password is None
    assert dict(url.query) == {'client_encoding': 'utf8'}


@pytest.mark.unit
def test_sqlite_url():
    """Test SQLite URLs only carry the database path."""
    url = DatabaseConfig('sqlite', '', None, '', '', '/tmp/app.db').get_connection_url()

    assert url.drivername == 'sqlite'
    assert url.database == '/tmp/app.db'
    assert url.host is None


@pytest.mark.unit
def test_unsupported_driver_url():
    """Test an unknown driver cannot produce a URL."""
    with pytest.raises(ConfigurationError, match="mssql"):
        DatabaseConfig('mssql', 'h', None, 'u', 'p', 'd').get_connection_url()


@pytest.mark.unit
def test_from_env_defaults(clean_env):
    """Test defaults when no DB_* variables are set."""
    db = DatabaseConfig.from_env('DB')

    assert db == DatabaseConfig('mysql', 'localhost', None, 'root', '', '', 'utf8')


@pytest.mark.unit
def test_from_env_overrides(clean_env):
    """Test DB_* variables are read and normalized."""
    clean_env.setenv('DB_DRIVER', ' PgSQL ')
    clean_env.setenv('DB_PORT', '5433')
    clean_env.setenv('DB_DATABASE', 'shop')

    db = DatabaseConfig.from_env('DB')

    assert db.driver == 'pgsql'
    assert db.port == 5433
    assert db.database == 'shop'


# ============================================================================
# UNIT TESTS - Config
# ============================================================================


@pytest.mark.unit
def test_named_connection(clean_env):
    """Test DB_<NAME>_* variables define a named connection."""
    clean_env.setenv('DB_REPORTING_DRIVER', 'sqlite')
    clean_env.setenv('DB_REPORTING_DATABASE', 'reports.db')

    db = Config().database('reporting')

    assert db.driver == 'sqlite'
    assert db.database == 'reports.db'


@pytest.mark.unit
@pytest.mark.parametrize("name", [None, 'default', 'DEFAULT'])
def test_default_connection(clean_env, name):
    """Test None and 'default' select the DB_* connection."""
    clean_env.setenv('DB_HOST', 'primary.local')
    cfg = Config()

    assert cfg.database(name) is cfg.db
    assert cfg.db.host == 'primary.local'


@pytest.mark.unit
def test_builder_and_logging_flags(monkeypatch):
    """Test builder and logging settings come from the environment."""
    monkeypatch.setenv('QB_STRICT_NESTING', 'false')
    monkeypatch.setenv('QB_LOG_SQL', 'yes')
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    monkeypatch.setenv('LOG_COLORS', '0')
    monkeypatch.delenv('LOG_FILE', raising=False)

    cfg = Config()

    assert cfg.builder.strict_nesting is False
    assert cfg.builder.log_sql is True
    assert cfg.logging.level == 'DEBUG'
    assert cfg.logging.use_colors is False
    assert cfg.logging.log_file is None


# ============================================================================
# EDGE CASE TESTS
# ============================================================================


@pytest.mark.edge_case
def test_unknown_named_connection(clean_env):
    """Test a connection without DB_<NAME>_* variables is rejected."""
    with pytest.raises(ConfigurationError, match="Invalid database configuration: archive"):
        Config().database('archive')


@pytest.mark.edge_case
@pytest.mark.parametrize("value, expected", [
    ('1', True), ('TRUE', True), (' on ', True), ('yes', True),
    ('0', False), ('false', False), ('off', False), ('', False),
])
def test_env_bool(monkeypatch, value, expected):
    """Test boolean flag parsing."""
    monkeypatch.setenv('QB_TEST_FLAG', value)

    assert _env_bool('QB_TEST_FLAG', not expected) is expected


@pytest.mark.edge_case
def test_env_bool_default(monkeypatch):
    """Test an unset flag falls back to the default."""
    monkeypatch.delenv('QB_TEST_FLAG', raising=False)

    assert _env_bool('QB_TEST_FLAG', True) is True
