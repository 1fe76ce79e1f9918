import logging

import pytest

from keel.logging.config import LoggingSettings
from keel.errors import KeelError
from keel.logging.level import InvalidLogLevelError, LogLevel


@pytest.mark.parametrize(
    "env,expected",
    [
        ({}, LoggingSettings()),
        ({"LEVEL": "debug"}, LoggingSettings(level="DEBUG")),
        ({"JSON_FORMAT": "true"}, LoggingSettings(json_format=True)),
        ({"INCLUDE_TIMESTAMP": "false"}, LoggingSettings(include_timestamp=False)),
        ({"INCLUDE_LEVEL": "false"}, LoggingSettings(include_level=False)),
        ({"CONSOLE_ENABLED": "false"}, LoggingSettings(console_enabled=False)),
        (
            {"FILE_ENABLED": "true", "FILE_PATH": "/tmp/keel.log"},
            LoggingSettings(file_enabled=True, file_path="/tmp/keel.log"),
        ),
    ],
)
def test_logging_settings_env(monkeypatch, env, expected):
    for k, v in env.items():
        monkeypatch.setenv(f"KEEL_LOGGING_{k}", v)
    settings = LoggingSettings.load()
    for field in LoggingSettings.model_fields:
        assert getattr(settings, field) == getattr(expected, field)


def test_logging_settings_type_validation():
    with pytest.raises(ValueError):
        LoggingSettings.model_validate({"json_format": "notabool"})
    with pytest.raises(ValueError):
        LoggingSettings.model_validate({"level": "LOUD"})


def test_logging_settings_accepts_log_level():
    assert LoggingSettings(level=LogLevel.ERROR).level == "ERROR"


def test_log_level_conversion():
    assert LogLevel.from_string("warning") is LogLevel.WARNING
    assert LogLevel.DEBUG.to_stdlib_level() == logging.DEBUG
    assert LogLevel.CRITICAL.to_stdlib_level() == logging.CRITICAL
    with pytest.raises(ValueError):
        LogLevel.from_string("verbose")


def test_logging_settings_accept_stdlib_level_numbers():
    assert LoggingSettings.model_validate({"level": logging.DEBUG}).level == "DEBUG"
    with pytest.raises(ValueError):
        LoggingSettings.model_validate({"level": 15})
    with pytest.raises(ValueError):
        LoggingSettings.model_validate({"level": True})


def test_invalid_log_level_is_a_keel_error():
    with pytest.raises(InvalidLogLevelError) as exc:
        LogLevel.from_string("verbose")

    err = exc.value
    assert isinstance(err, KeelError)
    assert isinstance(err, ValueError)
    assert err.value == "verbose"
    assert err.code.code == "LOGGING_INVALID_LEVEL"
    assert err.category.name == "LOGGING"
    assert "WARNING" in err.message


def test_warn_is_accepted_for_warning():
    assert LogLevel.from_string(" warn ") is LogLevel.WARNING
    assert LogLevel.parse(logging.ERROR) is LogLevel.ERROR
    assert LogLevel.parse(LogLevel.INFO) is LogLevel.INFO
