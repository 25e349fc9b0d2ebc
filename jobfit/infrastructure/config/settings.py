"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (``~/.jobfit/config.yaml``).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".jobfit"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"

DEFAULTS: Dict[str, Any] = {
    "cache.default_ttl_seconds": 60 * 60,
    "cache.sweep_interval_seconds": 10 * 60,
    "cache.max_entries": None,
    "retry.max_attempts": 3,
    "retry.base_delay_seconds": 2.0,
    "retry.max_delay_seconds": 30.0,
    "monitor.max_error_log_size": 50,
    "ai.default_provider": "openai",
    "ai.openai.default_model": "gpt-4o-mini",
    "ai.groq.default_model": "llama-3.3-70b-versatile",
    "ai.temperature": 0.7,
    "ai.max_tokens": 2000,
    "ai.request_timeout_seconds": 60.0,
    "logging.level": "INFO",
    "logging.file": None,
    "logging.format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# --- Module Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


def _flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML sections into dotted keys ({'cache': {'ttl': 1}} -> 'cache.ttl')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def _env_name(key: str) -> str:
    return key.upper().replace(".", "_")


def _coerce(value: str) -> Any:
    """Converts common env-var spellings to bool/int/float/None."""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in ("none", "null", ""):
        return None
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def load_configuration(
    config_file: Path = DEFAULT_CONFIG_FILE,
    env_file: Optional[Path] = None,
    force: bool = False,
) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides (see ``set_config_for_testing``)
    2. Environment Variables
    3. .env file
    4. YAML configuration file
    5. Built-in defaults

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        force: Reload even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not force:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority after defaults)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    # 3. Environment variables are consulted lazily in get_config
    _loaded = True
    logger.info("Configuration loading process completed.")


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by key.

    Args:
        key: Dotted configuration key (env var: upper-cased, dots -> underscores).
        default: Returned when the key is unset everywhere, including DEFAULTS.

    Returns:
        The configuration value.
    """
    if key in _test_config:
        return _test_config[key]

    env_key = _env_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    if default is None and key in DEFAULTS:
        return DEFAULTS[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_openai_api_key() -> Optional[str]:
    key = get_config('OPENAI_API_KEY') or get_config('openai.api_key')
    return str(key) if key is not None else None

def get_groq_api_key() -> Optional[str]:
    key = get_config('GROQ_API_KEY') or get_config('groq.api_key')
    return str(key) if key is not None else None

def get_default_provider() -> str:
    """Gets the default AI provider ('openai' or 'groq')."""
    return str(get_config('ai.default_provider')).lower()

def get_default_model(provider: Optional[str] = None) -> Optional[str]:
    """Gets the default model for a given provider."""
    selected_provider = provider or get_default_provider()
    model = get_config(f'ai.{selected_provider}.default_model')
    return str(model) if model is not None else None

def get_float(key: str) -> float:
    return float(get_config(key))

def get_int(key: str) -> int:
    return int(get_config(key))

def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")

def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
