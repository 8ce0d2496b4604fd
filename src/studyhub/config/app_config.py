"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults when the file does not exist.

Usage:
    from studyhub.config.app_config import load_app_config

    config = load_app_config()
    timeout = config.remote.timeout_seconds
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")


@dataclass
class LLMSettings:
    """Settings for the generative-AI text service."""

    provider: str = "openai"
    base_url: str | None = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.5
    max_tokens: int = 4096
    timeout: int = 120
    api_key_env: str | None = "OPENAI_API_KEY"

    def get_api_key(self) -> str | None:
        """Get API key from environment variable."""
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        return None


@dataclass
class RemoteConfig:
    """Coordinates of the remote mirror project."""

    url: str | None = None
    key_env: str = "STUDYHUB_REMOTE_KEY"
    bucket: str = "materials"
    timeout_seconds: float = 15.0

    def get_key(self) -> str | None:
        """Get the mirror API key from environment variable."""
        return os.environ.get(self.key_env)

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.get_key())


@dataclass
class StorageConfig:
    """Local store location and key namespace."""

    state_dir: str = "data/state"
    key_prefix: str = "study_hub"


@dataclass
class ViewerConfig:
    """Document viewer tuning."""

    extraction_yield_every: int = 3
    render_scale: float = 1.5


@dataclass
class AccountsConfig:
    """Account defaults."""

    admin_emails: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    """Application-wide configuration."""

    llm: LLMSettings = field(default_factory=LLMSettings)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    viewer: ViewerConfig = field(default_factory=ViewerConfig)
    accounts: AccountsConfig = field(default_factory=AccountsConfig)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "llm": {
            "provider": "openai",
            "base_url": None,
            "model": "gpt-4o-mini",
            "temperature": 0.5,
            "max_tokens": 4096,
            "timeout": 120,
            "api_key_env": "OPENAI_API_KEY",
        },
        "remote": {
            "url": None,
            "key_env": "STUDYHUB_REMOTE_KEY",
            "bucket": "materials",
            "timeout_seconds": 15.0,
        },
        "storage": {
            "state_dir": "data/state",
            "key_prefix": "study_hub",
        },
        "viewer": {
            "extraction_yield_every": 3,
            "render_scale": 1.5,
        },
        "accounts": {
            "admin_emails": [],
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    def section(name: str) -> dict[str, Any]:
        merged = dict(defaults[name])
        merged.update(data.get(name) or {})
        return merged

    llm = section("llm")
    remote = section("remote")
    storage = section("storage")
    viewer = section("viewer")
    accounts = section("accounts")

    yield_every = int(viewer["extraction_yield_every"])
    if yield_every < 1:
        logger.warning("invalid_extraction_yield_every", value=yield_every)
        yield_every = 1

    return AppConfig(
        llm=LLMSettings(
            provider=llm["provider"],
            base_url=llm["base_url"],
            model=llm["model"],
            temperature=float(llm["temperature"]),
            max_tokens=int(llm["max_tokens"]),
            timeout=int(llm["timeout"]),
            api_key_env=llm["api_key_env"],
        ),
        remote=RemoteConfig(
            url=remote["url"],
            key_env=remote["key_env"],
            bucket=remote["bucket"],
            timeout_seconds=float(remote["timeout_seconds"]),
        ),
        storage=StorageConfig(
            state_dir=storage["state_dir"],
            key_prefix=storage["key_prefix"],
        ),
        viewer=ViewerConfig(
            extraction_yield_every=yield_every,
            render_scale=float(viewer["render_scale"]),
        ),
        accounts=AccountsConfig(
            admin_emails=[e.lower() for e in accounts["admin_emails"] or []],
        ),
    )


def load_app_config(
    config_path: Path | None = None, force_reload: bool = False
) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        config_path: Explicit YAML file. Defaults to CONFIG_FILE.
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload and config_path is None:
        return _cached_config

    path = config_path or CONFIG_FILE
    data: dict[str, Any]

    if path.exists():
        logger.debug("loading_app_config", source=str(path))
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = {}

    config = _parse_config(data)
    if config_path is None:
        _cached_config = config
    return config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
