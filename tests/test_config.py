"""
Unit tests for configuration management.
"""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from recipe_engine.config.settings import (
    AGENT_ENV_PREFIX,
    ConfigManager,
    Settings,
    get_settings,
)

CONFIG_ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_TEMPERATURE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "TEST_AUTOMATION_BASE_URL",
    "TEST_AUTOMATION_HEADLESS",
    "TEST_AUTOMATION_SLOW_MO",
    "TEST_AUTOMATION_TIMEOUT",
    "TEST_AUTOMATION_RECORD_VIDEO",
    "TEST_AUTOMATION_SCREENSHOTS",
] + [
    f"{prefix}_{suffix}"
    for prefix in AGENT_ENV_PREFIX.values()
    for suffix in ("MODEL", "TEMPERATURE", "REASONING_LEVEL")
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings(self):
        """Test default settings values."""
        settings = Settings()

        assert settings.openai_model == "gpt-4o"
        assert settings.base_url is None
        assert settings.record_video is True
        assert settings.take_screenshots is True
        assert settings.browser_headless is True
        assert settings.browser_slow_mo == 100
        assert settings.browser_timeout == 30000
        assert settings.browser_viewport_width == 1280
        assert settings.browser_viewport_height == 720
        assert settings.results_dir == Path("test-results")
        assert settings.log_level == "INFO"

    def test_settings_from_env(self):
        """Test loading run options from TEST_AUTOMATION_* variables."""
        with patch.dict(os.environ, {
            "OPENAI_API_KEY": "test-key-123",
            "TEST_AUTOMATION_BASE_URL": "https://staging.example.com",
            "TEST_AUTOMATION_HEADLESS": "false",
            "TEST_AUTOMATION_SLOW_MO": "0",
            "TEST_AUTOMATION_TIMEOUT": "45000",
            "TEST_AUTOMATION_RECORD_VIDEO": "false",
            "TEST_AUTOMATION_SCREENSHOTS": "false",
            "LOG_LEVEL": "DEBUG",
        }):
            settings = Settings()

            assert settings.openai_api_key == "test-key-123"
            assert settings.base_url == "https://staging.example.com"
            assert settings.browser_headless is False
            assert settings.browser_slow_mo == 0
            assert settings.browser_timeout == 45000
            assert settings.record_video is False
            assert settings.take_screenshots is False
            assert settings.log_level == "DEBUG"

    def test_init_by_field_name(self):
        settings = Settings(browser_headless=False, record_video=False)
        assert settings.browser_headless is False
        assert settings.record_video is False

    def test_blank_base_url_is_none(self):
        assert Settings(base_url="   ").base_url is None

    def test_log_level_validation(self):
        """Test log level validation."""
        settings = Settings(log_level="debug")
        assert settings.log_level == "DEBUG"

        with pytest.raises(ValueError, match="Invalid log level"):
            Settings(log_level="INVALID")

    def test_log_format_validation(self):
        """Test log format validation."""
        assert Settings(log_format="json").log_format == "json"
        assert Settings(log_format="text").log_format == "text"

        with pytest.raises(ValueError, match="Invalid log format"):
            Settings(log_format="xml")

    def test_numeric_validation(self):
        """Test numeric field validation."""
        with pytest.raises(ValueError):
            Settings(openai_temperature=3.0)

        with pytest.raises(ValueError):
            Settings(browser_slow_mo=-1)

        with pytest.raises(ValueError):
            Settings(browser_viewport_width=100)

    def test_create_directories(self, tmp_path):
        """Test directory creation."""
        settings = Settings(results_dir=tmp_path / "runs")
        assert not (tmp_path / "runs").exists()

        settings.create_directories()

        assert (tmp_path / "runs").exists()


class TestAgentModels:
    """Tests for per-oracle model configuration."""

    def test_defaults(self):
        settings = Settings()
        translator = settings.get_agent_model_config("step_translator")
        verifier = settings.get_agent_model_config("outcome_verifier")

        assert translator.model == "gpt-4o"
        assert translator.temperature == 0.3
        assert verifier.temperature == 0.2

    def test_agent_specific_overrides(self):
        with patch.dict(os.environ, {
            "RECIPE_STEP_TRANSLATOR_MODEL": "gpt-4.1",
            "RECIPE_STEP_TRANSLATOR_TEMPERATURE": "0.1",
            "RECIPE_OUTCOME_VERIFIER_REASONING_LEVEL": "HIGH",
        }):
            settings = Settings()

        assert settings.get_agent_model_config("step_translator").model == "gpt-4.1"
        assert settings.get_agent_model_config("step_translator").temperature == 0.1
        assert settings.get_agent_model_config("outcome_verifier").reasoning_level == "high"
        assert settings.get_agent_model_config("outcome_verifier").model == "gpt-4o"

    def test_openai_model_applies_to_all_agents(self):
        with patch.dict(os.environ, {"OPENAI_MODEL": "gpt-4o-mini"}):
            settings = Settings()

        assert settings.get_agent_model_config("step_translator").model == "gpt-4o-mini"
        assert settings.get_agent_model_config("outcome_verifier").model == "gpt-4o-mini"

    def test_invalid_temperature_override(self):
        with patch.dict(os.environ, {"RECIPE_OUTCOME_VERIFIER_TEMPERATURE": "warm"}):
            with pytest.raises(ValueError, match="Invalid temperature"):
                Settings()

    def test_unknown_agent_falls_back_to_openai_defaults(self):
        settings = Settings(openai_model="gpt-4o-mini", openai_temperature=0.5)
        config = settings.get_agent_model_config("something_else")
        assert config.model == "gpt-4o-mini"
        assert config.temperature == 0.5


class TestExecutionOptions:
    """Tests for building run options from settings."""

    def test_from_settings(self, tmp_path):
        settings = Settings(
            browser_headless=False,
            browser_slow_mo=250,
            action_timeout_ms=5000,
            results_dir=tmp_path,
        )
        options = settings.execution_options()

        assert options.headless is False
        assert options.slow_mo == 250
        assert options.action_timeout == 5000
        assert options.results_root == tmp_path
        assert options.visible_text_limit == 2000

    def test_overrides_ignore_none(self):
        settings = Settings(record_video=True, browser_timeout=30000)
        options = settings.execution_options(record_video=False, timeout=None)

        assert options.record_video is False
        assert options.timeout == 30000


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_get_existing_key(self):
        config = ConfigManager(Settings(browser_slow_mo=70))

        assert config.get("browser_slow_mo") == 70
        assert config.get("browser_headless") is True

    def test_get_missing_key(self):
        config = ConfigManager(Settings())

        assert config.get("non_existent_key") is None
        assert config.get("non_existent_key", "default") == "default"

    def test_get_required(self):
        config = ConfigManager(Settings(openai_model="gpt-4"))

        assert config.get_required("openai_model") == "gpt-4"
        with pytest.raises(KeyError, match="Required configuration key not found"):
            config.get_required("non_existent_key")

    def test_get_all(self):
        config = ConfigManager(Settings(log_level="DEBUG"))

        all_config = config.get_all()

        assert all_config["log_level"] == "DEBUG"
        assert "browser_timeout" in all_config
        assert "agent_models" in all_config


class TestGetSettings:
    """Tests for get_settings function."""

    @patch("recipe_engine.config.settings.load_dotenv")
    @patch("recipe_engine.config.settings.Path")
    def test_get_settings_loads_env(self, mock_path_class, mock_load_dotenv, tmp_path, monkeypatch):
        """Test that get_settings loads .env file."""
        monkeypatch.chdir(tmp_path)
        mock_path_instance = MagicMock()
        mock_path_instance.exists.return_value = True
        mock_path_class.return_value = mock_path_instance

        get_settings.cache_clear()
        try:
            get_settings()
            mock_load_dotenv.assert_called_once_with(mock_path_instance)
        finally:
            get_settings.cache_clear()

    def test_get_settings_cached(self, tmp_path, monkeypatch):
        """Test that get_settings returns cached instance."""
        monkeypatch.chdir(tmp_path)
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
            assert (tmp_path / "test-results").exists()
        finally:
            get_settings.cache_clear()
