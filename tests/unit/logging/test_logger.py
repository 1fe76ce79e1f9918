import logging

from keel.logging import LoggingSettings, LogLevel, configure_logging, get_logger


def keel_handlers(logger):
    return [h for h in logger.handlers if getattr(h, "_keel_handler", False)]


def test_configure_logging_is_idempotent():
    settings = LoggingSettings(level="DEBUG")
    logger = configure_logging(settings)
    configure_logging(settings)

    assert logger.name == "keel"
    assert logger.level == logging.DEBUG
    assert len(keel_handlers(logger)) == 1


def test_configure_logging_without_handlers():
    logger = configure_logging(LoggingSettings(console_enabled=False))
    assert keel_handlers(logger) == []


def test_configure_logging_writes_json_to_file(tmp_path):
    path = tmp_path / "keel.log"
    configure_logging(
        LoggingSettings(
            console_enabled=False,
            file_enabled=True,
            file_path=str(path),
            json_format=True,
        )
    )

    get_logger("keel.injection.test").warning("Could not resolve %s", "Dependency")

    content = path.read_text()
    assert '"message": "Could not resolve Dependency"' in content
    assert '"logger": "keel.injection.test"' in content


def test_keel_loggers_propagate(caplog):
    configure_logging(LoggingSettings(console_enabled=False))
    with caplog.at_level(logging.INFO, logger="keel"):
        get_logger("keel.test").info("hello")
    assert "hello" in caplog.text


def test_get_logger_level_override():
    logger = get_logger("keel.test.level", LogLevel.ERROR)
    assert logger.level == logging.ERROR
    logger.setLevel(logging.NOTSET)
