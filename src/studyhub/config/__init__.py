"""Configuration package for Study Hub."""

from studyhub.config.app_config import (
    AccountsConfig,
    AppConfig,
    LLMSettings,
    RemoteConfig,
    StorageConfig,
    ViewerConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AccountsConfig",
    "AppConfig",
    "LLMSettings",
    "RemoteConfig",
    "StorageConfig",
    "ViewerConfig",
    "clear_config_cache",
    "load_app_config",
]
