"""
Unit tests for settings loading and startup validation.
"""

import pytest

from app.core.config import get_settings
from app.core.errors import ConfigurationError
from app.main import create_app


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run without credentials in the environment or a .env file."""
    monkeypatch.chdir(tmp_path)
    for name in ("DEEPSEEK_API_KEY", "TAVILY_API_KEY", "SEARCH_ENABLED", "ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_missing_credentials_raise_configuration_error(clean_env):
    with pytest.raises(ConfigurationError) as excinfo:
        get_settings()

    assert "DEEPSEEK_API_KEY" in str(excinfo.value)
    assert "TAVILY_API_KEY" in str(excinfo.value)


def test_blank_credential_is_rejected(clean_env):
    clean_env.setenv("DEEPSEEK_API_KEY", "sk-test")
    clean_env.setenv("TAVILY_API_KEY", "")

    with pytest.raises(ConfigurationError) as excinfo:
        get_settings()

    assert "TAVILY_API_KEY" in str(excinfo.value)
    assert "DEEPSEEK_API_KEY" not in str(excinfo.value)


def test_app_refuses_to_start_without_credentials(clean_env):
    with pytest.raises(ConfigurationError):
        create_app()


def test_settings_from_environment(clean_env):
    clean_env.setenv("DEEPSEEK_API_KEY", "sk-test")
    clean_env.setenv("TAVILY_API_KEY", "tvly-test")
    clean_env.setenv("SEARCH_ENABLED", "false")
    clean_env.setenv("ALLOWED_ORIGINS", "http://localhost:3000, https://chat.example.com")

    settings = get_settings()

    assert settings.deepseek_model == "deepseek-reasoner"
    assert settings.search_enabled is False
    assert settings.cors_origins == ["http://localhost:3000", "https://chat.example.com"]


def test_settings_from_env_file(clean_env, tmp_path):
    (tmp_path / ".env").write_text(
        "DEEPSEEK_API_KEY=sk-file\nTAVILY_API_KEY=tvly-file\n", encoding="utf-8"
    )

    settings = get_settings()

    assert settings.deepseek_api_key == "sk-file"
    assert settings.tavily_api_key == "tvly-file"


def test_whitespace_credential_is_rejected(clean_env):
    clean_env.setenv("DEEPSEEK_API_KEY", "   ")
    clean_env.setenv("TAVILY_API_KEY", "tvly-test")

    with pytest.raises(ConfigurationError) as excinfo:
        get_settings()

    assert "DEEPSEEK_API_KEY" in str(excinfo.value)


def test_credentials_are_stripped(clean_env):
    clean_env.setenv("DEEPSEEK_API_KEY", " sk-test\n")
    clean_env.setenv("TAVILY_API_KEY", "tvly-test")

    assert get_settings().deepseek_api_key == "sk-test"
