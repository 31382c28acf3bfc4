import logging

import pytest

from signalwatch.infrastructure.logging.logger_service import ConsoleLoggerService, FileLoggerService


@pytest.fixture
def file_logger(tmp_path):
    service = FileLoggerService(level=logging.DEBUG, name="signalwatch-file-test", log_dir=str(tmp_path / "logs"))
    yield service
    for handler in list(service.logger.handlers):
        service.logger.removeHandler(handler)
        handler.close()


def read_log(service):
    for handler in service.logger.handlers:
        handler.flush()
    with open(service.log_file, encoding="utf-8") as f:
        return f.read()


def test_file_logger_writes_dated_file_with_context(file_logger, tmp_path):
    file_logger.warning("Webhook rejected notification", status=429)

    assert file_logger.log_file.startswith(str(tmp_path / "logs"))
    assert "signalwatch-file-test_" in file_logger.log_file
    content = read_log(file_logger)
    assert "WARNING" in content
    assert "Webhook rejected notification [status=429]" in content


def test_file_logger_respects_level(file_logger):
    file_logger.set_level(logging.ERROR)

    file_logger.info("Scored label candidates")
    file_logger.error("Preprocessing failed")

    content = read_log(file_logger)
    assert "Scored label candidates" not in content
    assert "Preprocessing failed" in content


def test_context_is_rendered_as_key_value_pairs():
    service = ConsoleLoggerService(name="signalwatch-format-test")

    assert service._format_extra({"rule": "Sell", "score": 0.9}) == "[rule=Sell score=0.9]"
    assert service._format_extra({}) == ""
