"""
Tests for the logging system
"""

import logging

import pytest

from bifurcate.core.logging import LoggingManager, ROOT_LOGGER_NAME, get_logger


@pytest.fixture
def manager():
    manager = LoggingManager()
    yield manager
    manager.close()
    manager.logger.handlers.clear()


def test_setup_with_file(manager, tmp_path):
    log_file = tmp_path / "logs" / "bifurcate.log"

    manager.setup_logging(level="DEBUG", log_file=str(log_file), max_size="1MB", backup_count=2)
    manager.logger.info("hello file")
    manager.file_handler.flush()

    assert manager.is_configured()
    assert log_file.exists()
    assert "hello file" in log_file.read_text(encoding='utf-8')
    assert manager.file_handler.maxBytes == 1024 * 1024
    assert manager.file_handler.backupCount == 2
    assert len(manager.logger.handlers) == 2


def test_setup_console_only(manager):
    manager.setup_logging(level="WARNING", log_file=None)

    assert manager.file_handler is None
    assert manager.logger.handlers == [manager.console_handler]
    assert manager.logger.level == logging.WARNING


def test_setup_twice_does_not_duplicate_handlers(manager):
    manager.setup_logging(level="INFO", log_file=None)
    manager.setup_logging(level="INFO", log_file=None)
    assert len(manager.logger.handlers) == 1


@pytest.mark.parametrize("value,expected", [
    ("10KB", 10 * 1024),
    ("2mb", 2 * 1024 * 1024),
    ("1GB", 1024 ** 3),
    ("512", 512),
])
def test_parse_size(manager, value, expected):
    assert manager._parse_size(value) == expected


def test_logger_names():
    assert get_logger().name == ROOT_LOGGER_NAME
    assert get_logger("bifurcate.core.fetcher").name == "bifurcate.core.fetcher"
    assert get_logger("tests.helpers").name == "bifurcate.tests.helpers"


def test_summary_report(manager):
    report = manager.generate_summary_report({
        'site': "example.com",
        'generated_at': "2024-01-01T00:00:00.000Z",
        'duration': 1.5,
        'visited': 4,
        'fetched': 3,
        'recorded': 2,
        'skipped': 1,
        'page_types': {'homepage': 1, 'docs': 1},
    })

    assert "Site: example.com" in report
    assert "Duration: 1.50s" in report
    assert "  Pages Recorded: 2" in report
    assert "  homepage: 1" in report
    assert "  docs: 1" in report


def test_log_helpers_include_context(manager, caplog):
    manager.setup_logging(level="DEBUG", log_file=None)
    with caplog.at_level(logging.DEBUG, logger=ROOT_LOGGER_NAME):
        manager.log_warning("robots unreadable", {'url': "https://example.com/robots.txt"})
        manager.log_crawl_start("https://example.com/", 3)

    assert 'robots unreadable | Context: {"url": "https://example.com/robots.txt"}' in caplog.text
    assert "Starting crawl of https://example.com/ (depth limit 3)" in caplog.text
