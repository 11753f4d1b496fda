# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

# src/limits_monitor/config.py
"""
Configuration snapshot and the store that owns it.

A Configuration is immutable. Any change, whether an operator edit or a
rotated OAuth token, produces a new snapshot that replaces the old one.
Readers grab the current reference without locking and keep using it for
the whole resolution, so they never see a half-applied change.
"""

import dataclasses
import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .cache import DEFAULT_TTL_SECONDS, TTLCache
from .errors import ConfigurationError, mask_credential
from .utils.resilient_io import safe_write_json

lib_logger = logging.getLogger("limits_monitor")

CLAUDE_MODES = ("push", "pull")
SETTINGS_FILE_NAME = "settings.json"

# Setting name -> environment variable
ENV_SETTINGS = {
    "augment_enabled": "AUGMENT_ENABLED",
    "augment_access_token": "AUGMENT_ACCESS_TOKEN",
    "zai_enabled": "ZAI_ENABLED",
    "zai_api_key": "ZAI_API_KEY",
    "openai_enabled": "OPENAI_ENABLED",
    "openai_admin_key": "OPENAI_ADMIN_KEY",
    "openai_monthly_budget": "OPENAI_MONTHLY_BUDGET",
    "openai_credit_balance": "OPENAI_CREDIT_BALANCE",
    "claude_enabled": "CLAUDE_ENABLED",
    "claude_mode": "CLAUDE_MODE",
    "claude_access_token": "CLAUDE_ACCESS_TOKEN",
    "claude_refresh_token": "CLAUDE_REFRESH_TOKEN",
    "cache_ttl_seconds": "CACHE_TTL_SECONDS",
    "allowed_user_ids": "ALLOWED_USER_IDS",
    "allowed_team_ids": "ALLOWED_TEAM_IDS",
}


# =============================================================================
# VALUE PARSERS
# =============================================================================


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def _parse_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_optional_float(name: str, value: Any) -> Optional[float]:
    """Strict float parse; empty means unset, garbage is a configuration error."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        raise ConfigurationError(
            f"Invalid value for '{name}': {text!r} is not a number"
        )


def parse_ttl_seconds(value: Any) -> int:
    """
    Parse the cache TTL override.

    Empty or missing means the default. Anything else must be a positive
    whole number of seconds.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_TTL_SECONDS
    if isinstance(value, int):
        seconds = value
    else:
        text = str(value).strip()
        if not text:
            return DEFAULT_TTL_SECONDS
        try:
            seconds = int(text)
        except ValueError:
            raise ConfigurationError(
                f"Invalid value for 'cache_ttl_seconds': {text!r} is not a whole number of seconds"
            )
    if seconds <= 0:
        raise ConfigurationError(
            f"Invalid value for 'cache_ttl_seconds': {seconds} must be greater than zero"
        )
    return seconds


def _parse_id_list(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = str(value).split(",")
    return tuple(item.strip() for item in items if item.strip())


# =============================================================================
# CONFIGURATION SNAPSHOT
# =============================================================================


@dataclass(frozen=True)
class Configuration:
    """Enablement flags, credentials and overrides for every provider."""

    augment_enabled: bool = False
    augment_access_token: str = ""
    zai_enabled: bool = False
    zai_api_key: str = ""
    openai_enabled: bool = False
    openai_admin_key: str = ""
    openai_monthly_budget: Optional[float] = None
    openai_credit_balance: Optional[float] = None
    claude_enabled: bool = False
    claude_mode: str = "push"
    claude_access_token: str = ""
    claude_refresh_token: str = ""
    cache_ttl_seconds: int = DEFAULT_TTL_SECONDS
    allowed_user_ids: Tuple[str, ...] = ()
    allowed_team_ids: Tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "Configuration":
        """
        Build a snapshot from the host's structured settings object.

        Args:
            settings: snake_case keys; flags may be booleans or strings,
                numeric overrides arrive as strings

        Raises:
            ConfigurationError: if a numeric override or the Claude mode is malformed
        """
        claude_mode = _parse_str(settings.get("claude_mode")).lower() or "push"
        if claude_mode not in CLAUDE_MODES:
            raise ConfigurationError(
                f"Invalid value for 'claude_mode': {claude_mode!r} (expected one of {', '.join(CLAUDE_MODES)})"
            )

        return cls(
            augment_enabled=_parse_bool(settings.get("augment_enabled")),
            augment_access_token=_parse_str(settings.get("augment_access_token")),
            zai_enabled=_parse_bool(settings.get("zai_enabled")),
            zai_api_key=_parse_str(settings.get("zai_api_key")),
            openai_enabled=_parse_bool(settings.get("openai_enabled")),
            openai_admin_key=_parse_str(settings.get("openai_admin_key")),
            openai_monthly_budget=_parse_optional_float(
                "openai_monthly_budget", settings.get("openai_monthly_budget")
            ),
            openai_credit_balance=_parse_optional_float(
                "openai_credit_balance", settings.get("openai_credit_balance")
            ),
            claude_enabled=_parse_bool(settings.get("claude_enabled")),
            claude_mode=claude_mode,
            claude_access_token=_parse_str(settings.get("claude_access_token")),
            claude_refresh_token=_parse_str(settings.get("claude_refresh_token")),
            cache_ttl_seconds=parse_ttl_seconds(settings.get("cache_ttl_seconds")),
            allowed_user_ids=_parse_id_list(settings.get("allowed_user_ids")),
            allowed_team_ids=_parse_id_list(settings.get("allowed_team_ids")),
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Configuration":
        return cls.from_settings(settings_from_env(env))

    def with_claude_tokens(self, access_token: str, refresh_token: Optional[str]) -> "Configuration":
        """Return a copy carrying a rotated OAuth pair."""
        return dataclasses.replace(
            self,
            claude_access_token=access_token,
            claude_refresh_token=refresh_token or self.claude_refresh_token,
        )

    def describe(self) -> Dict[str, str]:
        """Per-provider one-line summary with masked credentials, for startup logs."""
        def cred(enabled: bool, value: str) -> str:
            if not enabled:
                return "disabled"
            return f"enabled ({mask_credential(value)})" if value else "enabled (no credential)"

        claude = cred(self.claude_enabled, self.claude_access_token)
        if self.claude_enabled and self.claude_mode == "push":
            claude = "enabled (push)"
        return {
            "augment": cred(self.augment_enabled, self.augment_access_token),
            "zai": cred(self.zai_enabled, self.zai_api_key),
            "openai": cred(self.openai_enabled, self.openai_admin_key),
            "claude": claude,
        }


def settings_from_env(env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect settings from environment variables (only those that are set)."""
    env = os.environ if env is None else env
    return {name: env[var] for name, var in ENV_SETTINGS.items() if var in env}


# =============================================================================
# CONFIGURATION STORE
# =============================================================================


class ConfigStore:
    """
    Holds the current Configuration and applies replacements.

    Args:
        config: Initial snapshot
        cache: Shared cache, cleared whenever the configuration changes
        settings_path: Optional JSON file whose keys overlay the environment;
            rotated OAuth tokens are persisted here
        env: Environment mapping used by reload() (default: os.environ)
    """

    def __init__(
        self,
        config: Configuration,
        cache: TTLCache,
        settings_path: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self._config = config
        self._cache = cache
        self._settings_path = Path(settings_path) if settings_path else None
        self._env = env
        self._write_lock = threading.Lock()
        cache.set_ttl(config.cache_ttl_seconds)

    @classmethod
    def load(
        cls,
        cache: TTLCache,
        settings_path: Optional[Union[str, Path]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "ConfigStore":
        """Build a store from environment + settings file."""
        config = _load_configuration(settings_path, env)
        return cls(config, cache, settings_path=settings_path, env=env)

    @property
    def settings_path(self) -> Optional[Path]:
        return self._settings_path

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def get(self) -> Configuration:
        return self._config

    def replace(self, config: Configuration) -> None:
        """Swap in a new snapshot and invalidate the whole cache."""
        with self._write_lock:
            self._config = config
            self._cache.set_ttl(config.cache_ttl_seconds)
            self._cache.clear()
        lib_logger.info("Configuration replaced; status cache cleared.")

    def reload(self) -> Configuration:
        """
        Re-read environment + settings file and replace the snapshot.

        Raises:
            ConfigurationError: the new settings are invalid; the current
                snapshot stays in place
        """
        config = _load_configuration(self._settings_path, self._env)
        self.replace(config)
        return config

    def update_claude_tokens(self, access_token: str, refresh_token: Optional[str]) -> Configuration:
        """
        Store a rotated Claude OAuth pair.

        The snapshot is swapped but the cache is kept: a new token is not a
        configuration change. The pair is also written to the settings file
        when one is configured.
        """
        with self._write_lock:
            updated = self._config.with_claude_tokens(access_token, refresh_token)
            self._config = updated
            if self._settings_path:
                self._persist_tokens(updated)
        lib_logger.info(
            f"Claude OAuth tokens rotated (access={mask_credential(access_token)})."
        )
        return updated

    def _persist_tokens(self, config: Configuration) -> None:
        try:
            settings = _read_settings_file(self._settings_path) or {}
        except ConfigurationError as e:
            lib_logger.error(
                f"{e.message}; not overwriting it. Rotated Claude tokens are kept "
                "in memory only and will be lost on restart."
            )
            return
        settings["claude_access_token"] = config.claude_access_token
        settings["claude_refresh_token"] = config.claude_refresh_token
        if not safe_write_json(
            self._settings_path, settings, lib_logger, secure_permissions=True
        ):
            lib_logger.error(
                f"Rotated Claude tokens could not be persisted to '{self._settings_path.name}'; "
                "they will be lost on restart."
            )


def _read_settings_file(path: Union[str, Path]) -> Optional[Dict[str, Any]]:
    """
    Read the settings file, or None if it does not exist.

    Raises:
        ConfigurationError: the file exists but is unreadable, is not valid
            JSON, or its top level is not an object
    """
    path = Path(path)
    if not path.is_file():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Invalid settings file '{path}': {e}")
    if not isinstance(settings, dict):
        raise ConfigurationError(
            f"Invalid settings file '{path}': top level is not an object"
        )
    return settings


def _load_configuration(
    settings_path: Optional[Union[str, Path]],
    env: Optional[Mapping[str, str]],
) -> Configuration:
    settings: Dict[str, Any] = dict(settings_from_env(env))
    if settings_path:
        settings.update(_read_settings_file(settings_path) or {})
    return Configuration.from_settings(settings)
