# File: tests/test_logger.py
import logging

import pytest

from pricing_monitor.logger import configure, init_logging, logger


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    init_logging()


def test_configure_writes_log_file(tmp_path):
    log_file = tmp_path / "logs" / "monitor.log"
    configure(level="DEBUG", log_file=log_file, log_format="%(levelname)s %(message)s")
    logger.debug("Sitemap discovery started")
    for handler in logger.handlers:
        handler.flush()

    assert log_file.read_text(encoding="utf-8").strip() == "DEBUG Sitemap discovery started"
    assert len(logger.handlers) == 2
    assert not logger.propagate


def test_init_logging_replaces_handlers():
    init_logging(level="WARNING")
    init_logging(level="WARNING")
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert logging.getLogger("aiohttp.access").level >= logging.WARNING
