import logging

import pytest

from jobfit.infrastructure.config.settings import set_config_for_testing
from jobfit.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, resolve_log_level, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(saved_level)


@pytest.mark.parametrize("value, expected", [
    (logging.DEBUG, logging.DEBUG),
    ("warning", logging.WARNING),
    (" Error ", logging.ERROR),
    ("chatty", logging.INFO),
    (None, logging.INFO),
])
def test_resolve_log_level(value, expected):
    assert resolve_log_level(value) == expected


def test_level_format_and_file_come_from_settings(tmp_path):
    log_file = tmp_path / "jobfit.log"
    set_config_for_testing({
        "logging.level": "debug",
        "logging.format": "%(levelname)s|%(message)s",
        "logging.file": str(log_file),
    })

    assert setup_logging() == logging.DEBUG

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert logging.getLogger("openai").level == logging.WARNING

    logging.getLogger("jobfit.test").info("written to the file")
    for handler in root.handlers:
        handler.flush()
    assert "INFO|written to the file" in log_file.read_text(encoding="utf-8")


def test_explicit_arguments_override_settings():
    set_config_for_testing({"logging.level": "debug", "logging.file": None})

    assert setup_logging(log_level="error") == logging.ERROR

    (handler,) = logging.getLogger().handlers
    assert handler.level == logging.ERROR
    assert handler.formatter._fmt == DEFAULT_LOG_FORMAT


def test_unopenable_log_file_keeps_console_handler(tmp_path):
    setup_logging(log_level=logging.INFO, log_file=str(tmp_path / "missing" / "jobfit.log"))
    assert len(logging.getLogger().handlers) == 1
