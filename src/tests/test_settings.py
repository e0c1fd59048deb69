import json

import pytest
from pydantic import ValidationError

from subdb.exceptions import SettingsError
from subdb.settings import (
    DEFAULT_BASE_URL,
    SubDBSettings,
    check_environment,
    load_settings,
)
from subdb.utils import get_version


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for field in SubDBSettings.model_fields:
        monkeypatch.delenv(f"SUBDB_{field}".upper(), raising=False)


def test_defaults():
    settings = SubDBSettings()

    assert settings.base_url == DEFAULT_BASE_URL
    assert settings.client_version == get_version()
    assert settings.retries == 2
    assert settings.enable_network_tracing is False
    assert settings.user_agent == (
        f"SubDB/1.0 (subdb-python/{get_version()}; https://github.com/subdb/subdb-python)"
    )


def test_user_agent():
    settings = SubDBSettings(
        client_name="Player", client_version="2.0", client_url="http://player.example"
    )

    assert settings.user_agent == "SubDB/1.0 (Player/2.0; http://player.example)"


@pytest.mark.parametrize(
    "overrides",
    [
        {"base_url": "ftp://thesubdb.com"},
        {"base_url": 42},
        {"client_name": "  "},
        {"client_version": ""},
        {"timeout": 0},
        {"retries": -1},
        {"log_level": "verbose"},
    ],
)
def test_invalid_values(overrides):
    with pytest.raises(ValidationError):
        SubDBSettings(**overrides)


def test_log_level_is_normalized():
    assert SubDBSettings(log_level=" debug ").log_level == "DEBUG"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SUBDB_CLIENT_NAME", "EnvPlayer")
    monkeypatch.setenv("SUBDB_RETRIES", "5")
    monkeypatch.setenv("SUBDB_TIMEOUT", "12.5")
    monkeypatch.setenv("SUBDB_ENABLE_NETWORK_TRACING", "true")
    monkeypatch.setenv("SUBDB_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.client_name == "EnvPlayer"
    assert settings.retries == 5
    assert settings.timeout == 12.5
    assert settings.enable_network_tracing is True
    assert settings.log_level == "DEBUG"


def test_settings_file(tmp_path, monkeypatch):
    settings_file = tmp_path / "subdb.json"
    settings_file.write_text(
        json.dumps({"base_url": "http://sandbox.thesubdb.com/", "client_name": "FilePlayer"})
    )
    monkeypatch.setenv("SUBDB_CLIENT_NAME", "EnvPlayer")

    settings = load_settings(settings_file)

    assert settings.base_url == "http://sandbox.thesubdb.com/"
    # environment wins over the file
    assert settings.client_name == "EnvPlayer"


def test_invalid_environment_value(monkeypatch):
    monkeypatch.setenv("SUBDB_BASE_URL", "not-a-url")

    with pytest.raises(SettingsError) as exc_info:
        load_settings()

    assert "base_url" in str(exc_info.value)


def test_uncoercible_environment_value(monkeypatch):
    monkeypatch.setenv("SUBDB_RETRIES", "many")

    with pytest.raises(SettingsError):
        load_settings()


def test_missing_settings_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.json")


def test_broken_settings_file(tmp_path):
    settings_file = tmp_path / "subdb.json"
    settings_file.write_text("{not json")

    with pytest.raises(json.JSONDecodeError):
        load_settings(settings_file)


def test_check_environment(monkeypatch):
    monkeypatch.setenv("APP_FLAG", "1")
    monkeypatch.setenv("APP_ITEMS", '["a", "b"]')
    monkeypatch.setenv("APP_NAME", "")

    checked = check_environment({"flag": False, "items": [], "name": "x"}, "APP")

    assert checked == {"flag": True, "items": ["a", "b"], "name": "x"}
