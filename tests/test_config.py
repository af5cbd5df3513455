import logging

import pytest

from gemini_compat.config import DEFAULT_URI_BASE, Config, setup_logging
from gemini_compat.errors import ConfigurationError


def test_defaults():
    config = Config(api_key="secret-key-123")
    assert config.uri_base == DEFAULT_URI_BASE
    assert config.max_retries == 0
    assert config.request_timeout == (5, 300)
    assert "secret-key-123" not in repr(config)


def test_missing_key():
    with pytest.raises(ConfigurationError) as exc:
        Config.from_env()
    assert exc.value.code == "missing_api_key"


def test_from_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    monkeypatch.setenv("GEMINI_API_BASE", "https://proxy.test/v1beta/")
    monkeypatch.setenv("GEMINI_TIMEOUT", "10,60")
    monkeypatch.setenv("GEMINI_MAX_RETRIES", "2")
    monkeypatch.setenv("GEMINI_LOG_ERRORS", "true")
    config = Config.from_env(max_retries=5)
    assert config.api_key == "env-key"
    assert config.uri_base == "https://proxy.test/v1beta"
    assert config.request_timeout == (10.0, 60.0)
    assert config.max_retries == 5
    assert config.log_errors is True


def test_single_timeout_value_is_read_timeout(monkeypatch):
    monkeypatch.setenv("GEMINI_TIMEOUT", "30")
    assert Config.from_env(api_key="k").request_timeout == (5, 30.0)


def test_setup_logging(monkeypatch):
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    try:
        setup_logging()
        assert root.level == logging.DEBUG
        assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)
        setup_logging("WARNING")
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


@pytest.mark.parametrize("name,value", [
    ("GEMINI_TIMEOUT", "soon"),
    ("GEMINI_TIMEOUT", "1,2,3"),
    ("GEMINI_MAX_RETRIES", "many"),
])
def test_malformed_env_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError) as exc:
        Config.from_env(api_key="k")
    assert exc.value.code == "invalid_config"
