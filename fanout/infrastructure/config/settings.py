"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (~/.fanout/config.yaml).
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from dotenv import load_dotenv

from fanout.domain.models.common import (
    DEFAULT_BASE_DELAY, DEFAULT_CONCURRENCY_LIMIT, DEFAULT_MAX_RETRIES,
    DispatchSettings, SimulationSettings,
)
from fanout.domain.models.errors import ConfigurationError

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".fanout"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "FANOUT_"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def _flatten(mapping: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ('dispatch.max_retries')."""
    flat: Dict[str, Any] = {}
    for key, value in mapping.items():
        full_key = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{full_key}."))
        else:
            flat[full_key] = value
    return flat


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False): # override=False: ENV VARS take precedence
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.debug("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load starts fresh."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _coerce(value: str) -> Any:
    """Converts common string forms from the environment."""
    lowered = value.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    if lowered in ('', 'none', 'null'):
        return None
    try:
        if '.' in value or 'e' in lowered:
            return float(value)
        return int(value)
    except ValueError:
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (key in upper case)
    3. YAML config
    4. Default value

    Args:
        key: The configuration key
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper()
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    return default


def _lookup(env_key: str, yaml_key: str, default: Any) -> Any:
    """Checks the FANOUT_* environment key first, then the dotted YAML key."""
    value = get_config(env_key)
    if value is None:
        value = get_config(yaml_key)
    return default if value is None else value


def _convert(value: Any, cast: Callable[[Any], Any], key: str) -> Any:
    """Casts a configured value, reporting malformed input as a ConfigurationError."""
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_dispatch_settings() -> DispatchSettings:
    """Effective dispatcher settings. Ranges are validated by the dispatcher.

    Raises:
        ConfigurationError: If a numeric value cannot be parsed.
    """
    def seconds(name: str, key: str, default: Optional[float]) -> Optional[float]:
        return _convert(_lookup(f'{ENV_PREFIX}{name}', key, default), float, key)

    # Integer settings are type-checked by the dispatcher
    return DispatchSettings(
        concurrency_limit=_lookup(f'{ENV_PREFIX}CONCURRENCY_LIMIT', 'dispatch.concurrency_limit', DEFAULT_CONCURRENCY_LIMIT),
        max_retries=_lookup(f'{ENV_PREFIX}MAX_RETRIES', 'dispatch.max_retries', DEFAULT_MAX_RETRIES),
        base_delay=seconds('BASE_DELAY', 'dispatch.base_delay', DEFAULT_BASE_DELAY),
        max_delay=seconds('MAX_DELAY', 'dispatch.max_delay', None),
    )


def get_simulation_settings() -> SimulationSettings:
    """Failure and latency profile for the simulated operation.

    Raises:
        ConfigurationError: If a numeric value cannot be parsed.
    """
    defaults = SimulationSettings()

    def number(name: str, default: Any, cast: Callable[[Any], Any] = float) -> Any:
        key = f'simulation.{name}'
        return _convert(_lookup(f'{ENV_PREFIX}SIMULATION_{name.upper()}', key, default), cast, key)

    return SimulationSettings(
        transient_rate=number('transient_rate', defaults.transient_rate),
        permanent_rate=number('permanent_rate', defaults.permanent_rate),
        min_latency=number('min_latency', defaults.min_latency),
        max_latency=number('max_latency', defaults.max_latency),
        seed=number('seed', defaults.seed, int),
    )


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
