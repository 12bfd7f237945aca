"""
Tests for configuration settings.
"""
import logging

import pytest
from pydantic import ValidationError

from pubsub_streams.config import Settings, configure_logging


def test_defaults(monkeypatch):
    monkeypatch.delenv("PUBSUB_STREAMS_STREAM_MAX_QUEUE_SIZE", raising=False)
    monkeypatch.delenv("PUBSUB_STREAMS_LOG_LEVEL", raising=False)

    settings = Settings(_env_file=None)

    assert settings.stream_max_queue_size == 64
    assert settings.single_result_timeout is None
    assert settings.log_level == "WARNING"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PUBSUB_STREAMS_STREAM_MAX_QUEUE_SIZE", "8")
    monkeypatch.setenv("PUBSUB_STREAMS_SINGLE_RESULT_TIMEOUT", "2.5")

    settings = Settings(_env_file=None)

    assert settings.stream_max_queue_size == 8
    assert settings.single_result_timeout == 2.5


def test_queue_size_must_be_positive(monkeypatch):
    monkeypatch.setenv("PUBSUB_STREAMS_STREAM_MAX_QUEUE_SIZE", "0")

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_configure_logging():
    package_logger = logging.getLogger("pubsub_streams")
    previous = package_logger.level

    try:
        configure_logging("debug")
        assert package_logger.level == logging.DEBUG
    finally:
        package_logger.setLevel(previous)
