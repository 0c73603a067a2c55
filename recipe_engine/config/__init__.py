"""
Configuration module exports.
"""

from recipe_engine.config.settings import (
    AgentModelConfig,
    ConfigManager,
    Settings,
    get_settings,
)

__all__ = [
    "AgentModelConfig",
    "Settings",
    "ConfigManager",
    "get_settings",
]
