"""
Test suite for core.logger.

Tests cover:
- shorten_sql whitespace collapsing and truncation
- ColoredFormatter coloring without mutating the shared record
- setup_logging console/file handler configuration
- get_logger level override
"""

import logging

import pytest

from core.logger import ColoredFormatter, get_logger, setup_logging, shorten_sql


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way it was after the test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


# ============================================================================
# UNIT TESTS
# ============================================================================


@pytest.mark.unit
def test_shorten_sql_collapses_whitespace():
    """Test multi-line SQL is logged on one line."""
    sql = """
        SELECT id,
               name
        FROM   users
    """

    assert shorten_sql(sql) == "SELECT id, name FROM users"


@pytest.mark.unit
def test_shorten_sql_truncates():
    """Test long statements are cut and marked."""
    assert shorten_sql("SELECT " + "x" * 50, max_length=10) == "SELECT xxx..."


@pytest.mark.unit
def test_colored_formatter_leaves_record_untouched():
    """Test coloring does not leak into other handlers of the same record."""
    formatter = ColoredFormatter('%(levelname)s %(message)s')
    record = logging.makeLogRecord({'levelname': 'ERROR', 'levelno': logging.ERROR, 'msg': 'boom'})

    output = formatter.format(record)

    assert output == f"{ColoredFormatter.COLORS['ERROR']}ERROR{ColoredFormatter.RESET} boom"
    assert record.levelname == 'ERROR'


@pytest.mark.unit
def test_get_logger_level_override():
    """Test get_logger applies an explicit level."""
    logger = get_logger('tests.logger_level', level='warning')

    assert logger.level == logging.WARNING


@pytest.mark.unit
def test_setup_logging_file_handler(tmp_path, restore_root_logger):
    """Test a log file is created in the given directory."""
    setup_logging(log_level='DEBUG', log_file='builder.log', log_dir=str(tmp_path / 'logs'),
                  console_output=False)

    root = restore_root_logger
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], logging.FileHandler)

    get_logger('tests.file').debug("Executing: SELECT 1")
    root.handlers[0].flush()

    content = (tmp_path / 'logs' / 'builder.log').read_text(encoding='utf-8')
    assert "tests.file - DEBUG - Executing: SELECT 1" in content


@pytest.mark.unit
@pytest.mark.parametrize("use_colors, formatter_class", [
    (True, ColoredFormatter),
    (False, logging.Formatter),
])
def test_setup_logging_console_colors(restore_root_logger, use_colors, formatter_class):
    """Test the console formatter follows use_colors."""
    setup_logging(log_level='INFO', use_colors=use_colors)

    handler = restore_root_logger.handlers[0]
    assert type(handler.formatter) is formatter_class
