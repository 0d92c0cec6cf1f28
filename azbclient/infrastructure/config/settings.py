"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
YAML configuration file (~/.azbclient/config.yaml). Resilience constants are
resolved into a frozen ClientSettings object by `load_client_settings`.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Dict

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".azbclient"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_STORAGE_DIR = DEFAULT_CONFIG_DIR / "storage"
DEFAULT_API_BASE_URL = "http://localhost:4000/api"
ENV_FILE_NAME = ".env"

# --- Global Configuration Store ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


@dataclass(frozen=True)
class ClientSettings:
    """Resolved constants for the request orchestrator and its collaborators."""
    api_base_url: str = DEFAULT_API_BASE_URL
    max_retries: int = 2
    default_timeout_seconds: float = 60.0
    otp_timeout_seconds: float = 120.0
    health_ttl_seconds: float = 30.0
    health_timeout_seconds: float = 5.0
    wake_max_attempts: int = 2
    wake_base_delay_seconds: float = 1.5
    retry_base_delay_seconds: float = 2.0
    preflight_retry_delay_seconds: float = 2.0
    token_skew_seconds: float = 300.0

    @property
    def health_url(self) -> str:
        """Liveness URL: the API base with its trailing '/api' segment removed."""
        base = self.api_base_url.rstrip("/")
        if base.endswith("/api"):
            base = base[: -len("/api")]
        return f"{base}/health"


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ('api.base_url')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat

def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides
    2. Environment Variables
    3. .env file
    4. YAML configuration file
    5. Defaults supplied by the caller

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
                logger.warning(f"YAML config file {config_file} did not contain a mapping.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (override=False: real environment variables win)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    _loaded = True
    logger.debug("Configuration loading process completed.")

def reset_configuration() -> None:
    """Forgets loaded configuration so the next load re-reads the sources."""
    global _config, _loaded
    _config = {}
    _loaded = False

def _coerce_env_value(value: str) -> Any:
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        return float(value) if '.' in value else int(value)
    except ValueError:
        return value

def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Dotted keys map to upper-case environment variables with dots replaced
    by underscores ('api.base_url' -> API_BASE_URL).

    Args:
        key: The configuration key
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    env_key = key.upper().replace('.', '_')
    if env_key in os.environ:
        return _coerce_env_value(os.environ[env_key])

    if key in _config:
        return _config[key]

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

def get_api_base_url() -> str:
    """Base URL of the backend API, including its '/api' prefix."""
    url = get_config('AZB_API_BASE_URL') or get_config('api.base_url', DEFAULT_API_BASE_URL)
    return str(url)

def get_storage_dir() -> Path:
    """Directory of the persistent storage area for session state."""
    directory = get_config('AZB_STORAGE_DIR') or get_config('storage.dir')
    return Path(str(directory)).expanduser() if directory else DEFAULT_STORAGE_DIR

def load_client_settings() -> ClientSettings:
    """Builds ClientSettings from configuration, falling back to the defaults."""
    defaults = ClientSettings()
    settings = ClientSettings(
        api_base_url=get_api_base_url(),
        max_retries=int(get_config('resilience.max_retries', defaults.max_retries)),
        default_timeout_seconds=float(get_config('resilience.default_timeout_seconds', defaults.default_timeout_seconds)),
        otp_timeout_seconds=float(get_config('resilience.otp_timeout_seconds', defaults.otp_timeout_seconds)),
        health_ttl_seconds=float(get_config('health.ttl_seconds', defaults.health_ttl_seconds)),
        health_timeout_seconds=float(get_config('health.timeout_seconds', defaults.health_timeout_seconds)),
        wake_max_attempts=int(get_config('health.wake_max_attempts', defaults.wake_max_attempts)),
        wake_base_delay_seconds=float(get_config('health.wake_base_delay_seconds', defaults.wake_base_delay_seconds)),
        retry_base_delay_seconds=float(get_config('resilience.retry_base_delay_seconds', defaults.retry_base_delay_seconds)),
        preflight_retry_delay_seconds=float(get_config('resilience.preflight_retry_delay_seconds', defaults.preflight_retry_delay_seconds)),
        token_skew_seconds=float(get_config('auth.token_skew_seconds', defaults.token_skew_seconds)),
    )
    logger.debug(f"Client settings resolved: {settings}")
    return settings

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
