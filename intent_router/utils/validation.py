"""
Configuration validation utilities.

This module merges environment variables into a structured configuration and
checks the cross-field invariants that a per-field type check cannot express.
"""
import os
from typing import Any, cast

from omegaconf import DictConfig, OmegaConf

from ..types.types import ConfigurationError
from .schema import RouterConfig

ENV_PREFIX = "INTENT_ROUTER"

# Environment variables under the prefix that are not configuration paths
_RESERVED_ENV_KEYS = {f"{ENV_PREFIX}_CONFIG_DIR"}

_MISSING = object()


def merge_with_env_vars(config: DictConfig, prefix: str = ENV_PREFIX) -> DictConfig:
    """
    Merge configuration with environment variables.

    Environment variables override config values using the format:
    {PREFIX}_{SECTION}__{KEY}={VALUE}

    Example:
        INTENT_ROUTER_ROUTER__HIGH_THRESHOLD=0.8

    Values are passed through as strings; the structured schema converts them
    to the annotated field type.

    Args:
        config: Base configuration
        prefix: Environment variable prefix

    Returns:
        Updated configuration
    """
    try:
        env_vars = {
            k: v
            for k, v in os.environ.items()
            if k.startswith(f"{prefix}_") and k not in _RESERVED_ENV_KEYS
        }

        for env_key, env_value in env_vars.items():
            # Convert env var name to config path
            config_path = env_key[len(prefix) + 1 :].lower().replace("__", ".")

            if OmegaConf.select(config, config_path, default=_MISSING) is _MISSING:
                continue

            OmegaConf.update(config, config_path, env_value)

        return config

    except Exception as e:
        raise ConfigurationError(f"Failed to merge environment variables: {e!s}", cause=e)


def validate_router_config(router: Any) -> None:
    """
    Check threshold ordering and search bounds.

    Args:
        router: A RouterConfig instance or its DictConfig node

    Raises:
        ConfigurationError: If the tiers overlap or bounds are invalid
    """
    cfg = cast(RouterConfig, router)

    for name in ("high_threshold", "medium_threshold", "minimum_threshold", "noise_floor"):
        value = getattr(cfg, name)
        if not -1.0 <= value <= 1.0:
            raise ConfigurationError(
                f"router.{name} must be within [-1, 1], got {value}",
                context={"field": name, "value": value},
            )

    if not cfg.minimum_threshold <= cfg.medium_threshold <= cfg.high_threshold:
        raise ConfigurationError(
            "Router thresholds must satisfy minimum <= medium <= high "
            f"(got {cfg.minimum_threshold}, {cfg.medium_threshold}, {cfg.high_threshold})"
        )

    if cfg.top_k < 1:
        raise ConfigurationError("router.top_k must be at least 1")

    if cfg.verification_candidates < 1:
        raise ConfigurationError("router.verification_candidates must be at least 1")

    for name in ("fallback_score", "low_fallback_score"):
        value = getattr(cfg, name)
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"router.{name} must be within [0, 1], got {value}")

    for name in ("embed_timeout", "classify_timeout"):
        value = getattr(cfg, name)
        if value <= 0:
            raise ConfigurationError(f"router.{name} must be positive, got {value}")
