"""Configuration management for the recipe execution engine."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from recipe_engine.core.interfaces import ConfigProvider
from recipe_engine.core.types import ExecutionOptions


AGENT_ENV_PREFIX: Dict[str, str] = {
    "step_translator": "RECIPE_STEP_TRANSLATOR",
    "outcome_verifier": "RECIPE_OUTCOME_VERIFIER",
}


class AgentModelConfig(BaseModel):
    """Per-oracle model configuration."""

    model: str
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    reasoning_level: str = Field(default="medium")

    @field_validator("reasoning_level")
    @classmethod
    def validate_reasoning_level(cls, value: str) -> str:
        """Ensure reasoning level is valid."""
        allowed = {"low", "medium", "high"}
        if value not in allowed:
            raise ValueError(
                f"Invalid reasoning level: {value}. Allowed values: {sorted(allowed)}"
            )
        return value


DEFAULT_AGENT_MODELS: Dict[str, AgentModelConfig] = {
    "step_translator": AgentModelConfig(
        model="gpt-4o",
        temperature=0.3,
        reasoning_level="low",
    ),
    "outcome_verifier": AgentModelConfig(
        model="gpt-4o",
        temperature=0.2,
        reasoning_level="low",
    ),
}


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o", description="Default OpenAI model")
    openai_temperature: float = Field(
        default=0.3, ge=0.0, le=2.0, description="Default temperature"
    )
    openai_max_retries: int = Field(
        default=3, ge=1, description="Maximum API retry attempts"
    )
    openai_request_timeout_seconds: int = Field(
        default=120,
        ge=10,
        description="Request timeout for OpenAI API calls in seconds",
    )
    agent_models: Dict[str, AgentModelConfig] = Field(
        default_factory=dict,
        description="Per-oracle OpenAI model configuration",
    )

    # Target application
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the application under test",
        validation_alias=AliasChoices("TEST_AUTOMATION_BASE_URL", "base_url"),
    )

    # Run options
    record_video: bool = Field(
        default=True,
        description="Record one continuous video per run",
        validation_alias=AliasChoices("TEST_AUTOMATION_RECORD_VIDEO", "record_video"),
    )
    take_screenshots: bool = Field(
        default=True,
        description="Capture a full-page screenshot per scenario",
        validation_alias=AliasChoices("TEST_AUTOMATION_SCREENSHOTS", "take_screenshots"),
    )
    browser_headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
        validation_alias=AliasChoices("TEST_AUTOMATION_HEADLESS", "browser_headless"),
    )
    browser_slow_mo: int = Field(
        default=100,
        ge=0,
        description="Delay inserted between browser operations (ms)",
        validation_alias=AliasChoices("TEST_AUTOMATION_SLOW_MO", "browser_slow_mo"),
    )
    browser_timeout: int = Field(
        default=30000,
        ge=1000,
        description="Default page timeout (ms)",
        validation_alias=AliasChoices("TEST_AUTOMATION_TIMEOUT", "browser_timeout"),
    )
    browser_viewport_width: int = Field(
        default=1280, ge=320, description="Browser viewport and video width"
    )
    browser_viewport_height: int = Field(
        default=720, ge=240, description="Browser viewport and video height"
    )
    action_timeout_ms: int = Field(
        default=10000, ge=100, description="Default element wait per action (ms)"
    )
    default_wait_ms: int = Field(
        default=2000, ge=0, description="Fixed duration of a bare wait action (ms)"
    )
    inter_scenario_delay_ms: int = Field(
        default=1000, ge=0, description="Pause between scenarios (ms)"
    )
    visible_text_limit: int = Field(
        default=2000, ge=100, description="Visible text characters sent for verification"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json or text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # Storage Configuration
    results_dir: Path = Field(
        default=Path("test-results"), description="Root directory for run artifacts"
    )

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @field_validator("base_url")
    def strip_base_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def populate_agent_models(self) -> "Settings":
        """Populate oracle model configurations from defaults and environment."""
        env = os.environ

        configured_models: Dict[str, AgentModelConfig] = {}
        openai_model_env_set = "OPENAI_MODEL" in env
        openai_temperature_env_set = "OPENAI_TEMPERATURE" in env

        existing_models = self.agent_models.copy()

        for agent_name, prefix in AGENT_ENV_PREFIX.items():
            base_config = existing_models.get(agent_name, DEFAULT_AGENT_MODELS[agent_name])
            config_payload = base_config.model_dump()

            model_override = env.get(f"{prefix}_MODEL")
            if model_override:
                config_payload["model"] = model_override
            elif openai_model_env_set:
                config_payload["model"] = self.openai_model

            temperature_override = env.get(f"{prefix}_TEMPERATURE")
            if temperature_override:
                try:
                    config_payload["temperature"] = float(temperature_override)
                except ValueError as exc:
                    raise ValueError(
                        f"Invalid temperature for {agent_name}: {temperature_override}"
                    ) from exc
            elif openai_temperature_env_set:
                config_payload["temperature"] = self.openai_temperature

            reasoning_override = env.get(f"{prefix}_REASONING_LEVEL")
            if reasoning_override:
                config_payload["reasoning_level"] = reasoning_override.lower()

            configured_models[agent_name] = AgentModelConfig(**config_payload)

        for agent_name, config in existing_models.items():
            if agent_name not in configured_models:
                configured_models[agent_name] = config

        self.agent_models = configured_models
        return self

    def get_agent_model_config(self, agent_name: str) -> AgentModelConfig:
        """Return oracle-specific model configuration."""
        if agent_name in self.agent_models:
            return self.agent_models[agent_name]

        return AgentModelConfig(
            model=self.openai_model,
            temperature=self.openai_temperature,
        )

    def execution_options(self, **overrides: Any) -> ExecutionOptions:
        """Build run options from settings, applying non-None overrides."""
        values: Dict[str, Any] = {
            "record_video": self.record_video,
            "take_screenshots": self.take_screenshots,
            "headless": self.browser_headless,
            "slow_mo": self.browser_slow_mo,
            "timeout": self.browser_timeout,
            "viewport_width": self.browser_viewport_width,
            "viewport_height": self.browser_viewport_height,
            "action_timeout": self.action_timeout_ms,
            "default_wait": self.default_wait_ms,
            "inter_scenario_delay": self.inter_scenario_delay_ms,
            "visible_text_limit": self.visible_text_limit,
            "results_root": self.results_dir,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return ExecutionOptions(**values)

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.results_dir.mkdir(parents=True, exist_ok=True)


class ConfigManager(ConfigProvider):
    """Configuration manager implementation."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize config manager.

        Args:
            settings: Optional settings instance
        """
        self.settings = settings or get_settings()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        try:
            return getattr(self.settings, key)
        except AttributeError:
            return default

    def get_required(self, key: str) -> Any:
        """Get required configuration value."""
        try:
            return getattr(self.settings, key)
        except AttributeError:
            raise KeyError(f"Required configuration key not found: {key}")

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self.settings.model_dump()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    settings = Settings()
    settings.create_directories()
    return settings
