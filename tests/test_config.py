import logging

import pytest

from meetingbot.config import Config
from meetingbot.errors import ConfigurationError


def test_from_env_defaults():
    config = Config.from_env({"VEXA_API_KEY": "k", "SUPABASE_URL": ""})
    assert config.vexa_api_key == "k"
    assert config.supabase_url is None
    assert config.vexa_api_url == "https://gateway.dev.vexa.ai"
    assert config.bot_name == "EllenaTranscriber"
    assert config.embedding_model == "models/embedding-001"


def test_from_env_overrides():
    config = Config.from_env(
        {"VEXA_API_URL": "https://gw.example/", "VEXA_TIMEOUT": "5", "BOT_NAME": "Notes", "MEETINGS_TABLE": "calls"}
    )
    assert config.vexa_api_url == "https://gw.example"
    assert config.vexa_timeout == 5.0
    assert config.bot_name == "Notes"
    assert config.meetings_table == "calls"


def test_require_lists_missing_variables():
    config = Config(gemini_api_key="g")
    config.require("gemini_api_key")
    with pytest.raises(ConfigurationError) as excinfo:
        config.require("gemini_api_key", "supabase_url", "supabase_service_role_key")
    assert excinfo.value.details == {"missing": ["SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY"]}


def test_log_status_never_logs_values(caplog):
    caplog.set_level(logging.INFO, logger="meetingbot.config")
    Config(vexa_api_key="secret-value").log_status()
    assert "VEXA_API_KEY: Loaded" in caplog.text
    assert "GEMINI_API_KEY: Missing" in caplog.text
    assert "secret-value" not in caplog.text


def test_from_env_invalid_timeout_falls_back(caplog):
    caplog.set_level(logging.WARNING, logger="meetingbot.config")
    assert Config.from_env({"VEXA_TIMEOUT": "thirty"}).vexa_timeout == 30.0
    assert Config.from_env({"VEXA_TIMEOUT": "-1"}).vexa_timeout == 30.0
    assert "VEXA_TIMEOUT" in caplog.text


def test_from_env_log_level():
    assert Config.from_env({}).log_level == logging.INFO
    assert Config.from_env({"LOG_LEVEL": "debug"}).log_level == logging.DEBUG
    assert Config.from_env({"LOG_LEVEL": "chatty"}).log_level == logging.INFO
