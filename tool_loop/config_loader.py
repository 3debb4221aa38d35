"""
Configuration loader for tool-loop.

Loads configuration from YAML files with support for
environment variable interpolation.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from .exceptions import ConfigError
from .models import (
    AppConfig,
    LangfuseSettings,
    LoggingSettings,
    LoopSettings,
    OracleBackend,
    OracleSettings,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")

# Regex for environment variable interpolation: ${VAR} or ${VAR:-default}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")

# Singleton cache for app config
_app_config: Optional[AppConfig] = None


def resolve_env_vars(value: str) -> str:
    """
    Resolve environment variable references in a string.

    Supports ${VAR} and ${VAR:-default} syntax.
    """

    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, value)


def _substitute_env_vars_recursive(data: Any) -> Any:
    """Recursively substitute environment variables in a data structure."""
    if isinstance(data, dict):
        return {k: _substitute_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    return data


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _parse_oracle_settings(data: dict) -> OracleSettings:
    """Parse oracle settings from dict."""
    backend_str = data.get("backend", "mock")
    try:
        backend = OracleBackend(backend_str)
    except ValueError:
        raise ConfigError(f"Unknown oracle backend: {backend_str}")

    return OracleSettings(
        backend=backend,
        base_url=data.get("base_url", ""),
        model=data.get("model", "llama3.1"),
        temperature=float(data.get("temperature", 0.2)),
        timeout=int(data.get("timeout", 120)),
        api_key=data.get("api_key", "") or "",
    )


def _parse_loop_settings(data: dict) -> LoopSettings:
    """Parse loop budgets from dict."""
    return LoopSettings(
        max_steps=int(data.get("max_steps", 6)),
        context_window=int(data.get("context_window", 20)),
        max_tool_retries=int(data.get("max_tool_retries", 1)),
    )


def _parse_logging_settings(data: dict) -> LoggingSettings:
    """Parse logging configuration from dict."""
    return LoggingSettings(level=str(data.get("level", "INFO")).upper())


def _parse_langfuse_settings(data: dict) -> LangfuseSettings:
    """Parse Langfuse configuration from dict."""
    return LangfuseSettings(
        enabled=_as_bool(data.get("enabled", False)),
        public_key=data.get("public_key", ""),
        secret_key=data.get("secret_key", ""),
        host=data.get("host", "https://cloud.langfuse.com"),
        debug=_as_bool(data.get("debug", False)),
    )


def validate_app_config(app_config: AppConfig) -> list[str]:
    """
    Validate an application configuration.

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    loop = app_config.loop
    if loop.max_steps < 1:
        errors.append("loop.max_steps must be at least 1")
    if loop.context_window < 1:
        errors.append("loop.context_window must be at least 1")
    if loop.max_tool_retries < 0:
        errors.append("loop.max_tool_retries must not be negative")

    oracle = app_config.oracle
    if oracle.backend is not OracleBackend.MOCK and not oracle.model:
        errors.append(f"oracle.model is required for backend '{oracle.backend.value}'")
    if oracle.backend is OracleBackend.OPENAI_COMPATIBLE and not oracle.base_url:
        errors.append("oracle.base_url is required for backend 'openai_compatible'")
    if oracle.timeout <= 0:
        errors.append("oracle.timeout must be positive")

    if app_config.logging.level not in logging.getLevelNamesMapping():
        errors.append(f"logging.level '{app_config.logging.level}' is not a logging level")

    return errors


def load_app_config(path: Optional[str] = None, reload: bool = False) -> AppConfig:
    """
    Load application configuration from a YAML file.

    Uses a singleton pattern - subsequent calls return the cached config
    unless reload=True is specified.

    Args:
        path: Path to the YAML configuration file. If None, uses
              TOOL_LOOP_CONFIG env var or ./config.yaml.
        reload: If True, force reload from disk instead of using cache.

    Returns:
        AppConfig with all configuration loaded

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ConfigError: If the config is invalid
    """
    global _app_config

    if _app_config is not None and not reload:
        return _app_config

    if path is None:
        path = os.environ.get("TOOL_LOOP_CONFIG", str(DEFAULT_CONFIG_PATH))

    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    logger.info("Loading configuration from %s", config_path)

    with open(config_path, "r") as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Configuration file {config_path} is not valid YAML: {e}") from e

    if raw_config is None:
        raise ConfigError(f"Configuration file {config_path} is empty")
    if not isinstance(raw_config, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping")

    raw_config = _substitute_env_vars_recursive(raw_config)

    try:
        app_config = AppConfig(
            version=str(raw_config.get("version", "1.0")),
            oracle=_parse_oracle_settings(raw_config.get("oracle") or {}),
            loop=_parse_loop_settings(raw_config.get("loop") or {}),
            logging=_parse_logging_settings(raw_config.get("logging") or {}),
            langfuse=_parse_langfuse_settings(raw_config.get("langfuse") or {}),
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    errors = validate_app_config(app_config)
    if errors:
        raise ConfigError("; ".join(errors))

    _app_config = app_config

    logger.debug(
        "Configuration loaded: version=%s, backend=%s",
        app_config.version,
        app_config.oracle.backend.value,
    )

    return app_config


def reset_config_cache() -> None:
    """Reset the configuration cache, forcing a reload on next access."""
    global _app_config
    _app_config = None
    logger.debug("Configuration cache reset")
