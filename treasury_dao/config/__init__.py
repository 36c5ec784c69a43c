"""
Treasury DAO Configuration

Loads the deployment / scenario TOML file.
Environment variables override TOML values.
"""

from .loader import (
    DAOConfig,
    GovernorSectionConfig,
    LoggingSectionConfig,
    ScenarioStep,
    TokenSectionConfig,
    TreasurySectionConfig,
    load_config,
)

__all__ = [
    "DAOConfig",
    "GovernorSectionConfig",
    "LoggingSectionConfig",
    "ScenarioStep",
    "TokenSectionConfig",
    "TreasurySectionConfig",
    "load_config",
]
