import logging

import pytest

from miniforum.core.config import settings
from miniforum.core.logging_config import init_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_defaults_come_from_settings(root_logger):
    init_logging()

    assert root_logger.level == logging.getLevelName(settings.log_level.upper())
    [handler] = root_logger.handlers
    assert f"| {settings.service_name} |" in handler.formatter._fmt


def test_explicit_level_and_quiet_libraries(root_logger):
    init_logging("forum-test", "debug")

    assert root_logger.level == logging.DEBUG
    assert "| forum-test |" in root_logger.handlers[0].formatter._fmt
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine.Engine").level == logging.WARNING
