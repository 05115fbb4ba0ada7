"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (~/.pdfcheck/config.yaml).
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".pdfcheck"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "PDFCHECK_"

DEFAULT_ANALYZER_COMMAND = "gemini"
DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_HISTORY_MAX_ENTRIES = 50
DEFAULT_WATCH_INTERVAL = 2.0

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables (PDFCHECK_<KEY>)
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

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
                _config.update(yaml_config)
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
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    _loaded = True
    logger.debug("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded configuration so the next load_configuration re-reads it."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _env_key(key: str) -> str:
    return ENV_PREFIX + key.upper().replace('.', '_')


def _coerce(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def _lookup(config: Dict[str, Any], key: str) -> Any:
    """Finds ``key`` as a flat key first, then as a dotted path into nested mappings."""
    if key in config:
        return config[key]
    node: Any = config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (PDFCHECK_ANALYZER_MODEL for 'analyzer.model')
    3. YAML config (flat 'analyzer.model' or nested analyzer: {model: ...})
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = _env_key(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    value = _lookup(_config, key)
    if value is not None:
        return value

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value for the current process."""
    logger.debug(f"Setting config: {key} = {value}")
    _config[key] = value
    os.environ[_env_key(key)] = str(value)


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    try:
        cwd = Path.cwd()
        for path in [cwd] + list(cwd.parents):
            env_path = path / ENV_FILE_NAME
            if env_path.is_file():
                return env_path
    except OSError as e:
        logger.warning(f"Error searching for .env file: {e}")
    return None


# --- Convenience Functions ---

def get_analyzer_command() -> str:
    return str(get_config('analyzer.command', DEFAULT_ANALYZER_COMMAND))


def get_model() -> str:
    """Gets the analyzer model name."""
    return str(get_config('analyzer.model', DEFAULT_MODEL))


def get_analyzer_timeout() -> Optional[float]:
    """Optional subprocess timeout; None means wait until the analyzer exits."""
    timeout = get_config('analyzer.timeout_seconds')
    if timeout in (None, '', 0):
        return None
    return float(timeout)


def get_history_dir() -> Path:
    configured = get_config('history.dir')
    return Path(configured).expanduser() if configured else DEFAULT_CONFIG_DIR / "history"


def get_history_max_entries() -> int:
    return int(get_config('history.max_entries', DEFAULT_HISTORY_MAX_ENTRIES))


def get_watch_interval() -> float:
    """Seconds between two scans of a watched folder."""
    return float(get_config('watch.interval_seconds', DEFAULT_WATCH_INTERVAL))


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
