"""
Configuration management utilities for intent-router.
"""
import os
from pathlib import Path
from typing import Any, Optional, cast

from omegaconf import DictConfig, OmegaConf

from ..types.types import ConfigurationError
from .schema import IntentRouterConfig
from .validation import merge_with_env_vars, validate_router_config

CONFIG_DIR_ENV = "INTENT_ROUTER_CONFIG_DIR"


def default_config_dir() -> Path:
    """Repository-level ``config/`` directory."""
    return Path(__file__).parent.parent.parent / "config"


def load_config(config_dir: Optional[Path] = None) -> DictConfig:
    """
    Build the merged, validated, read-only configuration.

    Merge order: schema defaults, ``config.yaml``, ``router/default.yaml``
    (when present), then ``INTENT_ROUTER_*`` environment variables.

    Args:
        config_dir: Directory holding ``config.yaml``; defaults to the
            ``INTENT_ROUTER_CONFIG_DIR`` override or the repository config dir

    Returns:
        Read-only DictConfig backed by :class:`IntentRouterConfig`
    """
    if config_dir is None:
        override = os.environ.get(CONFIG_DIR_ENV)
        config_dir = Path(override) if override else default_config_dir()

    try:
        configs_to_merge = [OmegaConf.structured(IntentRouterConfig)]

        base_file = config_dir / "config.yaml"
        if base_file.exists():
            configs_to_merge.append(OmegaConf.load(base_file))

        component_file = config_dir / "router" / "default.yaml"
        if component_file.exists():
            configs_to_merge.append(OmegaConf.create({"router": OmegaConf.load(component_file)}))

        merged_config = cast(DictConfig, OmegaConf.merge(*configs_to_merge))
        merged_config = merge_with_env_vars(merged_config)

        validate_router_config(merged_config.router)

        OmegaConf.set_readonly(merged_config, True)
        return merged_config

    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to initialize configuration: {e!s}", cause=e)


class ConfigManager:
    """Central configuration manager for intent-router with lazy loading."""

    _instance: Optional["ConfigManager"] = None
    _config: Optional[DictConfig] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config(self) -> DictConfig:
        """Get the full configuration (lazy loaded)."""
        if self._config is None:
            type(self)._config = load_config()
        return cast(DictConfig, self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by key.

        Args:
            key: Dot-notation path to config value
            default: Default value if key doesn't exist

        Returns:
            Configuration value
        """
        return OmegaConf.select(self.config, key, default=default)

    def settings(self) -> IntentRouterConfig:
        """Typed snapshot of the configuration."""
        return cast(IntentRouterConfig, OmegaConf.to_object(self.config))

    @classmethod
    def reset(cls) -> None:
        """Drop the cached configuration so the next access reloads it."""
        cls._config = None

    @staticmethod
    def get_instance() -> "ConfigManager":
        """Get the singleton instance of ConfigManager."""
        return ConfigManager()
