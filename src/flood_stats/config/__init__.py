"""Hydra schema and validated engine settings."""

from flood_stats.config.schema import AppConfig, EngineConfig, register_configs
from flood_stats.config.settings import (
    EngineSettings,
    GroupingField,
    ModelDefinition,
    ScenarioSettings,
    default_settings,
    settings_from_mapping,
)

__all__ = [
    "AppConfig",
    "EngineConfig",
    "EngineSettings",
    "GroupingField",
    "ModelDefinition",
    "ScenarioSettings",
    "default_settings",
    "register_configs",
    "settings_from_mapping",
]
