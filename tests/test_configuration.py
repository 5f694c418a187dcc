"""Tests for layered configuration loading."""

import pytest

from notepolish.configuration import clear_settings_cache, get_settings, require_credentials
from notepolish.errors import ConfigurationError


def test_defaults_without_sources(tmp_path):
    settings = get_settings(tmp_path)
    assert settings.LLM_PROVIDER == "openai"
    assert settings.target_languages().codes == ("en", "hi", "ur")
    assert settings.NOTEPOLISH_REQUEST_TIMEOUT == 30.0


def test_environment_overrides_dotenv_and_yaml(tmp_path, monkeypatch):
    (tmp_path / "notepolish.yaml").write_text(
        "NOTEPOLISH_TARGET_LANGUAGES: en\nNOTEPOLISH_MODEL: from-yaml\n", encoding="utf-8"
    )
    (tmp_path / ".env").write_text(
        "NOTEPOLISH_MODEL=from-dotenv\nLLM_PROVIDER=Azure-OpenAI\n", encoding="utf-8"
    )
    monkeypatch.setenv("NOTEPOLISH_REQUEST_TIMEOUT", "12.5")

    settings = get_settings(tmp_path)
    assert settings.NOTEPOLISH_MODEL == "from-dotenv"
    assert settings.LLM_PROVIDER == "azure_openai"
    assert settings.target_languages().codes == ("en",)
    assert settings.NOTEPOLISH_REQUEST_TIMEOUT == 12.5


def test_invalid_values_are_reported(tmp_path, monkeypatch):
    monkeypatch.setenv("NOTEPOLISH_REQUEST_TIMEOUT", "0")
    monkeypatch.setenv("NOTEPOLISH_TARGET_LANGUAGES", "en,en")
    with pytest.raises(ConfigurationError) as excinfo:
        get_settings(tmp_path)
    message = str(excinfo.value)
    assert "NOTEPOLISH_REQUEST_TIMEOUT" in message
    assert "NOTEPOLISH_TARGET_LANGUAGES" in message


def test_yaml_must_be_a_mapping(tmp_path):
    (tmp_path / "config.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        get_settings(tmp_path)


def test_missing_credentials(tmp_path, monkeypatch):
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        require_credentials(get_settings(tmp_path))

    monkeypatch.setenv("LLM_PROVIDER", "azure_openai")
    monkeypatch.setenv("AZURE_OPENAI_API_KEY", "secret")
    clear_settings_cache()
    with pytest.raises(ConfigurationError, match="AZURE_OPENAI_ENDPOINT"):
        require_credentials(get_settings(tmp_path))
