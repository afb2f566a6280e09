# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Router configuration.

This module contains default values and configuration loading for ranking
preferences, quota reservation, error handling and history retention.
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional

from .errors import ConfigurationError
from .types import DEFAULT_QUOTA_WINDOW

lib_logger = logging.getLogger("provider_router")


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_RESERVE_FRACTION = 0.1
DEFAULT_MAX_CONSECUTIVE_ERRORS = 3
DEFAULT_RATE_LIMIT_COOLDOWN = 60.0
DEFAULT_HISTORY_SIZE = 1000


# =============================================================================
# ROUTER CONFIG
# =============================================================================


@dataclass
class RouterConfig:
    """
    Complete configuration for a SmartRouter instance.

    Invalid values fail fast in ``validate`` (called by the router on
    construction), never at routing time.
    """

    # Ranking preferences
    prefer_free: bool = False
    prefer_fast: bool = False
    prefer_cheap: bool = False

    # Providers slower than this (rolling average, seconds) are inadmissible
    max_latency: Optional[float] = None

    # Whether callers should walk the ranked list on failure (route_many)
    fallback_enabled: bool = True

    # Share of a rare-capability holder's daily requests kept for rare traffic
    reserve_fraction: float = DEFAULT_RESERVE_FRACTION

    # Failure handling
    max_consecutive_errors: int = DEFAULT_MAX_CONSECUTIVE_ERRORS
    error_cooldown: Optional[float] = None  # None = manual reset only
    rate_limit_cooldown: float = DEFAULT_RATE_LIMIT_COOLDOWN

    # History / quota window
    history_size: int = DEFAULT_HISTORY_SIZE
    quota_window: int = DEFAULT_QUOTA_WINDOW

    # JSON failure log, None disables it
    failure_log_dir: Optional[str] = None

    def validate(self) -> "RouterConfig":
        if not 0.0 <= self.reserve_fraction < 1.0:
            raise ConfigurationError(
                f"reserve_fraction must be in [0, 1), got {self.reserve_fraction}"
            )
        if self.max_consecutive_errors < 0:
            raise ConfigurationError(
                f"max_consecutive_errors must be >= 0, got {self.max_consecutive_errors}"
            )
        if self.error_cooldown is not None and self.error_cooldown < 0:
            raise ConfigurationError(
                f"error_cooldown must be >= 0, got {self.error_cooldown}"
            )
        if self.rate_limit_cooldown < 0:
            raise ConfigurationError(
                f"rate_limit_cooldown must be >= 0, got {self.rate_limit_cooldown}"
            )
        if self.max_latency is not None and self.max_latency <= 0:
            raise ConfigurationError(
                f"max_latency must be positive, got {self.max_latency}"
            )
        if self.history_size <= 0:
            raise ConfigurationError(
                f"history_size must be positive, got {self.history_size}"
            )
        if self.quota_window <= 0:
            raise ConfigurationError(
                f"quota_window must be positive, got {self.quota_window}"
            )
        return self


# =============================================================================
# CONFIG LOADER
# =============================================================================


def _parse_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _optional_float(value: str) -> Optional[float]:
    if value.lower() in ("", "none", "off"):
        return None
    return float(value)


_ENV_FIELDS = {
    "ROUTER_PREFER_FREE": ("prefer_free", _parse_bool),
    "ROUTER_PREFER_FAST": ("prefer_fast", _parse_bool),
    "ROUTER_PREFER_CHEAP": ("prefer_cheap", _parse_bool),
    "ROUTER_FALLBACK_ENABLED": ("fallback_enabled", _parse_bool),
    "ROUTER_MAX_LATENCY": ("max_latency", _optional_float),
    "ROUTER_RESERVE_FRACTION": ("reserve_fraction", float),
    "ROUTER_MAX_CONSECUTIVE_ERRORS": ("max_consecutive_errors", int),
    "ROUTER_ERROR_COOLDOWN": ("error_cooldown", _optional_float),
    "ROUTER_RATE_LIMIT_COOLDOWN": ("rate_limit_cooldown", float),
    "ROUTER_HISTORY_SIZE": ("history_size", int),
    "ROUTER_QUOTA_WINDOW": ("quota_window", int),
    "ROUTER_FAILURE_LOG_DIR": ("failure_log_dir", str),
}


def load_router_config(
    base: Optional[RouterConfig] = None,
    env: Optional[Mapping[str, str]] = None,
) -> RouterConfig:
    """
    Load router configuration.

    Merges:
    1. System defaults (or ``base``)
    2. Environment variables (always win)

    Unparsable values are ignored with a warning; out-of-range values raise
    ConfigurationError.

    Args:
        base: Starting configuration
        env: Mapping to read instead of os.environ

    Returns:
        Validated configuration
    """
    env = os.environ if env is None else env
    overrides = {}

    for env_key, (field_name, parser) in _ENV_FIELDS.items():
        raw = env.get(env_key)
        if raw is None:
            continue
        convert: Callable[[str], object] = parser
        try:
            overrides[field_name] = convert(raw.strip())
        except ValueError:
            lib_logger.warning(f"Ignoring invalid value for {env_key}: {raw!r}")

    config = replace(base or RouterConfig(), **overrides)
    return config.validate()
