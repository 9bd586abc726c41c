"""Configuration loader for windowsync hosts."""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from windowsync.models.config import AppConfig, SyncConfig

log = structlog.stdlib.get_logger()

DEFAULT_CONFIG_DIR = Path(__file__).parent.parent.parent / "config"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


class ConfigLoader:
    """Loads and validates configuration from YAML files and environment variables."""

    def __init__(self, config_dir: Path | str | None = None) -> None:
        """
        Initialize the ConfigLoader.

        Args:
            config_dir: Directory holding ``<env>.yaml`` files. Defaults to the
                repository's ``config`` directory.
        """
        self.config_dir = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR
        self.env_var_pattern = re.compile(r"\$\{([^}]+)\}")

    def load_config(self, config_path: Optional[str] = None) -> AppConfig:
        """Load configuration from a YAML file with environment variable overrides.

        Args:
            config_path: Path to the configuration YAML file. If None, the file is
                chosen from WINDOWSYNC_ENV, falling back to default.yaml

        Returns:
            AppConfig: Validated application configuration

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if config_path is None:
            config_path = self._get_default_config_path()

        log.info("loading_configuration", config_path=config_path)

        config_dict = self._load_yaml_file(config_path)
        config_dict = self._substitute_env_vars(config_dict)

        try:
            app_config = AppConfig(**config_dict)
            log.info("configuration_loaded_successfully")
            return app_config
        except ValidationError as e:
            log.error("configuration_validation_failed", error=str(e))
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def load_sync_config(self, config_path: Optional[str] = None) -> SyncConfig:
        """Load only the engine section of the configuration."""
        return self.load_config(config_path).sync

    def _get_default_config_path(self) -> str:
        env = os.getenv("WINDOWSYNC_ENV", "default")
        config_file = self.config_dir / f"{env}.yaml"

        if not config_file.exists():
            config_file = self.config_dir / "default.yaml"

        if not config_file.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_file}. "
                f"Please create config/default.yaml or set WINDOWSYNC_ENV to a valid environment."
            )

        return str(config_file)

    def _load_yaml_file(self, config_path: str) -> Dict[str, Any]:
        """Load a YAML configuration file.

        Args:
            config_path: Path to the YAML file

        Returns:
            Dict containing the configuration

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(config_path, "r") as f:
                config_dict = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML file {config_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Failed to load configuration file {config_path}: {e}") from e

        if config_dict is None:
            raise ConfigurationError(f"Configuration file is empty: {config_path}")
        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping at the top level: {config_path}"
            )

        log.debug("yaml_file_loaded", config_path=config_path)
        return config_dict

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute ``${VAR_NAME}`` references in configuration values."""
        if isinstance(config, dict):
            return {key: self._substitute_env_vars(value) for key, value in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            return self._substitute_env_var_in_string(config)
        else:
            return config

    def _substitute_env_var_in_string(self, value: str) -> str:
        """Substitute environment variables in a string.

        Args:
            value: String that may contain ${VAR_NAME} patterns

        Returns:
            String with environment variables substituted

        Raises:
            ConfigurationError: If a referenced environment variable is not set
        """
        for var_name in self.env_var_pattern.findall(value):
            env_value = os.getenv(var_name)
            if env_value is None:
                raise ConfigurationError(
                    f"Required environment variable not set: {var_name}. "
                    f"Please set {var_name} in your environment or .env file."
                )
            value = value.replace(f"${{{var_name}}}", env_value)

        return value

    def validate_config(self, config: AppConfig) -> list[str]:
        """Check configuration for settings that are valid but likely unintended.

        Args:
            config: Application configuration to validate

        Returns:
            List of warning messages (empty if no warnings)
        """
        warnings = []

        if config.sync.max_range_length is None:
            warnings.append(
                "sync.max_range_length is unset; clients may request arbitrarily large windows"
            )

        if not config.sync.clear_evicted_rows:
            warnings.append(
                "sync.clear_evicted_rows is disabled; evicted rows stay rendered on the client"
            )

        if config.logging.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            warnings.append(f"logging.log_level '{config.logging.log_level}' is not a known level")

        if warnings:
            log.warning("configuration_validation_warnings", warnings=warnings)

        return warnings
