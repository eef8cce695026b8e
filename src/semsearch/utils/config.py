"""Configuration management for semsearch."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .logging import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "SEMSEARCH_CONFIG"
API_URL_ENV_VAR = "SEMSEARCH_API_URL"


class Config:
    """Configuration manager for semsearch."""

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """Initialize configuration.

        Args:
            config_dict: Configuration dictionary. If None, uses defaults.
        """
        self._config = config_dict or self._get_default_config()

    @staticmethod
    def _get_default_config() -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "backend": {
                "base_url": "http://localhost:8000/api",
                "timeout": 30.0,  # seconds
                "environment": "development",
            },
            "ranking": {
                "min_similarity": 0.2,
                "min_rerank": 0.003,
                # Display caps per search mode
                "max_results": {
                    "text": 5,
                    "semantic": 5,
                    "image": 12,
                    "hybrid": 5,
                },
                "fetch_limit": 20,  # Candidates requested from the backend
            },
            "hybrid": {
                "weights": {"text": 0.7, "image": 0.3},
                "strategy": "client",  # client | server
                "post_fusion": "combined",  # combined | per_axis | none
                "min_fused_score": 0.0,
                "prefilter": True,
                "fusion_key": "uid",  # uid | modality
            },
            "reindex": {
                "poll_interval": 2.0,  # seconds
                "batch_size": 50,
                "environment": None,
            },
            "cms": {
                "app_url": "https://eu-app.contentstack.com",
                "branch": "main",
            },
            "api": {
                "host": "0.0.0.0",
                "port": 8080,
                "max_sessions": 1000,  # Least recently used sessions are evicted
            },
            "logging": {
                "level": "INFO",
                "file": None,
            },
        }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> Config:
        """Load a YAML file on top of the built-in defaults.

        Sections missing from the file keep their default values; nested
        sections are merged key by key.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file does not hold a mapping at the top level

        Example:
            >>> config = Config.from_yaml("config.yml")
            >>> config.get("backend.base_url")
            'https://search.example.com/api'
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.is_file():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        logger.info(f"Loading config from {yaml_path}")
        overrides = yaml.safe_load(yaml_path.read_text()) or {}
        if not isinstance(overrides, dict):
            raise ValueError(
                f"{yaml_path} must contain a mapping, got {type(overrides).__name__}"
            )
        return cls(_deep_merge(cls._get_default_config(), overrides))

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a value by dotted key, e.g. ``"ranking.max_results.image"``.

        Returns ``default`` as soon as a path segment is missing or the
        value at that point is not a section.
        """
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Assign a value by dotted key, creating missing sections.

        Raises:
            ValueError: If a parent segment already holds a non-section value
        """
        *parents, leaf = key.split(".")
        node = self._config
        for part in parents:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                raise ValueError(f"Cannot set '{key}': '{part}' is not a section")
        node[leaf] = value

    def to_dict(self) -> Dict[str, Any]:
        """Deep copy of the configuration tree."""
        return copy.deepcopy(self._config)

    def save(self, yaml_path: str | Path) -> None:
        """Write the configuration to ``yaml_path``, creating parent directories."""
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)
        yaml_path.write_text(yaml.safe_dump(self._config, sort_keys=False))
        logger.info(f"Saved config to {yaml_path}")

    def __repr__(self) -> str:
        return f"Config(sections={sorted(self._config)})"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` updated with ``override``; neither input is modified."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _apply_env_overrides(config: Config) -> Config:
    api_url = os.getenv(API_URL_ENV_VAR)
    if api_url:
        config.set("backend.base_url", api_url)
    return config


# Global config instance
_global_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance.

    If not set, tries to load from config.yml in current directory,
    otherwise uses defaults.

    Returns:
        Global Config instance
    """
    global _global_config
    if _global_config is None:
        # Priority: SEMSEARCH_CONFIG env var > ./config.yml > defaults
        env_path = os.getenv(CONFIG_ENV_VAR)
        if env_path:
            path = Path(env_path)
            if path.exists():
                try:
                    logger.info(f"Loading config from {CONFIG_ENV_VAR}: {path}")
                    _global_config = _apply_env_overrides(Config.from_yaml(path))
                    return _global_config
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(
                        f"Failed to load config from {CONFIG_ENV_VAR} ({path}): {e}; falling back"
                    )
            else:
                logger.warning(
                    f"{CONFIG_ENV_VAR} set to {path} but file does not exist; falling back"
                )

        # Try local config.yml
        config_path = Path("config.yml")
        if config_path.exists():
            try:
                _global_config = Config.from_yaml(config_path)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config.yml: {e}, using defaults")
                _global_config = Config()
        else:
            _global_config = Config()
        _apply_env_overrides(_global_config)
    return _global_config


def set_config(config: Optional[Config]) -> None:
    """Set global configuration instance.

    Args:
        config: Config instance to set as global, or None to force a reload
    """
    global _global_config
    _global_config = config


def load_config(yaml_path: str | Path) -> Config:
    """Load configuration from YAML and set as global.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        Loaded Config instance
    """
    config = _apply_env_overrides(Config.from_yaml(yaml_path))
    set_config(config)
    return config
