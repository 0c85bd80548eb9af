"""
================================================================================
Configuration Loader
================================================================================

Environment-driven configuration for the DEX Manager automation harness.

Features:
    - `.env` loading (python-dotenv) for local runs
    - YAML defaults for non-secret values (timeouts, paths, logging)
    - Environment variable override (ACTION_TIMEOUT overrides action_timeout)
    - Fail-fast validation of required variables
    - Per-environment overrides (BASE_URL_STAGING, ...)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger


PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "config.yaml"
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"

REQUIRED_VARIABLES = ("BASE_URL", "USER_EMAIL", "USER_PASSWORD")

# Built-in defaults; config/config.yaml and the environment override them.
DEFAULTS: Dict[str, Any] = {
    "test_timeout": 120000,
    "action_timeout": 30000,
    "navigation_timeout": 60000,
    "test_files_path": "./test-files",
    "screenshots_path": "./screenshots",
    "downloads_path": "./downloads",
    "headless": True,
    "slow_mo": 0,
    "report_path": "./reports",
    "trace_path": "./trace",
    "auth_state_path": "./auth/storage_state.json",
}


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


def validate_environment(environ: Optional[Mapping[str, str]] = None) -> None:
    """
    Validate that every required environment variable is present.

    Args:
        environ: Mapping to check (defaults to ``os.environ``)

    Raises:
        ConfigurationError: Listing all missing variable names
    """
    environ = os.environ if environ is None else environ
    missing = [key for key in REQUIRED_VARIABLES if not environ.get(key)]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}. "
            f"Copy .env.example to .env and fill in the values."
        )


def convert_env_value(env_key: str, value: str, reference: Any) -> Any:
    """
    Convert an environment string to the type of the reference value.

    Raises:
        ConfigurationError: When a numeric variable cannot be parsed
    """
    if reference is None:
        return value

    if isinstance(reference, bool):
        return value.strip().lower() in ("true", "1", "yes", "on")
    if isinstance(reference, int):
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(
                f"Invalid numeric value for {env_key}: {value}"
            ) from None
    if isinstance(reference, float):
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(
                f"Invalid numeric value for {env_key}: {value}"
            ) from None
    if isinstance(reference, Path):
        return Path(value)

    return value


class ConfigLoader:
    """
    Configuration loader with YAML and environment variable support.

    Configuration hierarchy (highest to lowest priority):
        1. Environment variables (ACTION_TIMEOUT)
        2. YAML configuration file (action_timeout)
        3. Default values

    Usage:
        >>> config = ConfigLoader()
        >>> config.get("action_timeout", 30000)
        15000  # From ACTION_TIMEOUT
    """

    _instance: Optional["ConfigLoader"] = None
    _config: Dict[str, Any] = {}

    def __new__(
        cls,
        config_path: Optional[Path] = None,
        env_file: Optional[Path] = None,
    ) -> "ConfigLoader":
        """Singleton - configuration is loaded once per process."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(
        self,
        config_path: Optional[Path] = None,
        env_file: Optional[Path] = None,
    ) -> None:
        """
        Initialize configuration loader.

        Args:
            config_path: YAML file with defaults (DEFAULT_CONFIG_PATH if omitted)
            env_file: `.env` file to load (DEFAULT_ENV_FILE if omitted)
        """
        if getattr(self, "_initialized", False):
            return

        self._config_path = Path(config_path or DEFAULT_CONFIG_PATH)
        self._env_file = Path(env_file or DEFAULT_ENV_FILE)
        self._load_env_file()
        self._load_config()
        self._initialized = True

    def _load_env_file(self) -> None:
        """Load `.env` without overriding variables already set by CI."""
        if self._env_file.exists():
            load_dotenv(self._env_file, override=False)
            logger.debug(f"Loaded environment file: {self._env_file}")

    def _load_config(self) -> None:
        """Load defaults from the YAML file."""
        if not self._config_path.exists():
            logger.debug(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            self._config = {}
            return

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
            logger.debug(f"Loaded configuration from: {self._config_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        Args:
            key: Key path (e.g., "action_timeout", "logging.level")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        env_key = key.upper().replace(".", "_")
        env_value = os.environ.get(env_key)
        if env_value is not None and env_value != "":
            return self._convert_type(env_key, env_value, default)

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get an entire YAML section (empty dict if absent)."""
        return self._config.get(section, {}) or {}

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()
        logger.info(f"Configuration reloaded from: {self._config_path}")

    def _convert_type(self, env_key: str, value: str, reference: Any) -> Any:
        return convert_env_value(env_key, value, reference)

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (tests)."""
        cls._instance = None
        cls._config = {}


@dataclass(frozen=True)
class Settings:
    """Typed view over the harness configuration."""

    base_url: str
    user_email: str
    user_password: str
    test_timeout: int = DEFAULTS["test_timeout"]
    action_timeout: int = DEFAULTS["action_timeout"]
    navigation_timeout: int = DEFAULTS["navigation_timeout"]
    test_files_path: Path = Path(DEFAULTS["test_files_path"])
    screenshots_path: Path = Path(DEFAULTS["screenshots_path"])
    downloads_path: Path = Path(DEFAULTS["downloads_path"])
    headless: bool = DEFAULTS["headless"]
    slow_mo: int = DEFAULTS["slow_mo"]
    report_path: Path = Path(DEFAULTS["report_path"])
    trace_path: Path = Path(DEFAULTS["trace_path"])
    auth_state_path: Path = Path(DEFAULTS["auth_state_path"])

    @property
    def missing_credentials(self) -> List[str]:
        """Names of required variables that resolved to empty values."""
        values = {
            "BASE_URL": self.base_url,
            "USER_EMAIL": self.user_email,
            "USER_PASSWORD": self.user_password,
        }
        return [name for name, value in values.items() if not value]

    def for_environment(
        self,
        environment: Optional[str],
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Return settings overridden by `<VARIABLE>_<ENVIRONMENT>` variables.

        Args:
            environment: Environment name (e.g. "staging"); "default" or
                None returns this instance unchanged
            environ: Mapping to read overrides from (defaults to os.environ)
        """
        if not environment or environment == "default":
            return self

        environ = os.environ if environ is None else environ
        suffix = f"_{environment.upper()}"
        overrides: Dict[str, Any] = {}
        for f in fields(self):
            raw = environ.get(f"{f.name.upper()}{suffix}")
            if raw is None:
                continue
            overrides[f.name] = convert_env_value(
                f"{f.name.upper()}{suffix}", raw, getattr(self, f.name)
            )

        return replace(self, **overrides) if overrides else self

    def ensure_directories(self) -> List[Path]:
        """Create the test-files, screenshots and downloads directories."""
        created = []
        for directory in (self.test_files_path, self.screenshots_path, self.downloads_path):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created directory: {directory.resolve()}")
                created.append(directory)
        return created


def load_settings(loader: Optional[ConfigLoader] = None) -> Settings:
    """
    Build `Settings` from the configuration hierarchy.

    Required variables are not validated here; call `validate_environment()`
    where a missing credential must abort the run.
    """
    loader = loader or ConfigLoader()
    values: Dict[str, Any] = {
        "base_url": loader.get("base_url", ""),
        "user_email": loader.get("user_email", ""),
        "user_password": loader.get("user_password", ""),
    }
    for key, default in DEFAULTS.items():
        values[key] = loader.get(key, default)

    for key in (
        "test_files_path",
        "screenshots_path",
        "downloads_path",
        "report_path",
        "trace_path",
        "auth_state_path",
    ):
        values[key] = Path(values[key])

    return Settings(**values)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Process-wide cached settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop cached settings and the loader singleton (tests)."""
    global _settings
    _settings = None
    ConfigLoader.reset()


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "REQUIRED_VARIABLES",
    "convert_env_value",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "validate_environment",
]
