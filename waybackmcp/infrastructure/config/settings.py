"""Provides loading and access to configuration settings.

Supports loading from .env files, environment variables, and a YAML
configuration file (~/.wayback/config.yaml). Keys are dotted paths such as
'fetch.backend'; the matching environment variable is WAYBACK_FETCH_BACKEND.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from waybackmcp import DEFAULT_USER_AGENT
from waybackmcp.domain.models.fetch import (
    DEFAULT_CACHE_DIR,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_MAX_CACHE_SIZE,
    FetchConfig,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".wayback"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "WAYBACK_"

DEFAULTS: Dict[str, Any] = {
    "logging.level": "WARNING",
    "logging.format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    "logging.file": None,
    "rate_limit.max_requests": 15,
    "rate_limit.window_seconds": 60,
    "fetch.backend": "built-in",
    "fetch.cache_ttl": DEFAULT_CACHE_TTL_SECONDS,
    "fetch.cache_dir": DEFAULT_CACHE_DIR,
    "fetch.max_cache_size": DEFAULT_MAX_CACHE_SIZE,
    "fetch.user_agent": DEFAULT_USER_AGENT,
    "fetch.timeout": 30,
    "save.timeout": 60,
}


def env_var_name(key: str) -> str:
    """'fetch.cache_ttl' -> 'WAYBACK_FETCH_CACHE_TTL'."""
    return ENV_PREFIX + key.upper().replace(".", "_")


def _coerce(value: str) -> Any:
    """Converts common string forms from the environment to Python values."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


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


class Settings:
    """Layered configuration.

    Priority (highest first):
    1. Explicit overrides (command-line flags, tests)
    2. Environment variables (including those loaded from .env)
    3. YAML config file
    4. Built-in defaults
    """

    def __init__(self, config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None):
        self.config_file = Path(config_file)
        self.env_file = env_file
        self._config: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = {}
        self._loaded = False

    def load(self) -> "Settings":
        """Loads the YAML file and the .env file. Calling it again is a no-op."""
        if self._loaded:
            logger.debug("Configuration already loaded.")
            return self

        # 1. YAML file (lowest priority)
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    yaml_config = yaml.safe_load(f)
                if isinstance(yaml_config, dict):
                    self._config = yaml_config
                    logger.info(f"Loaded configuration from YAML: {self.config_file}")
                elif yaml_config is not None:
                    logger.warning(f"YAML config file {self.config_file} did not contain a mapping.")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Failed to load or parse YAML config {self.config_file}: {e}")
        else:
            logger.debug(f"YAML config file not found: {self.config_file}")

        # 2. .env file; override=False so real environment variables win
        dotenv_path = self.env_file or find_dotenv_path()
        if dotenv_path:
            if load_dotenv(dotenv_path=dotenv_path, override=False):
                logger.info(f"Loaded environment variables from: {dotenv_path}")
        else:
            logger.debug("No .env file found at or above the current directory.")

        self._loaded = True
        return self

    def _from_yaml(self, key: str) -> Any:
        node: Any = self._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def get(self, key: str, default: Any = None) -> Any:
        """Gets a configuration value by dotted key.

        Args:
            key: The configuration key, e.g. 'rate_limit.max_requests'.
            default: Returned when no layer defines the key; falls back to
                the built-in default for known keys.
        """
        if key in self._overrides:
            return self._overrides[key]

        env_key = env_var_name(key)
        if env_key in os.environ:
            return _coerce(os.environ[env_key])

        value = self._from_yaml(key)
        if value is not None:
            return value

        if default is not None:
            return default
        return DEFAULTS.get(key)

    def override(self, values: Dict[str, Any]) -> None:
        """Overrides configuration values (command-line flags, tests)."""
        self._overrides.update(values)
        logger.debug(f"Configuration overrides: {values}")

    def clear_overrides(self) -> None:
        self._overrides = {}

    # --- Convenience accessors ---

    def fetch_config(self) -> FetchConfig:
        """Builds the initial FetchConfig.

        Raises:
            pydantic.ValidationError: if the configured values are invalid.
        """
        return FetchConfig(
            backend=self.get("fetch.backend"),
            cache_ttl=self.get("fetch.cache_ttl"),
            cache_dir=str(Path(str(self.get("fetch.cache_dir"))).expanduser()),
            max_cache_size=self.get("fetch.max_cache_size"),
            user_agent=self.get("fetch.user_agent"),
        )


def load_settings(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> Settings:
    """Creates and loads a Settings instance."""
    return Settings(config_file=config_file, env_file=env_file).load()
