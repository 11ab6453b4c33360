"""
Configuration Manager

Handles hierarchical configuration loading and validation with support for
explicit overrides → environment variables → config files → defaults.
"""

import os
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union, List
from pydantic import ValidationError

from elcache.core.config.models import CacheConfig
from elcache.core.exceptions import ConfigurationError, ErrorCode


class ConfigManager:
    """
    Manages cache configuration with hierarchical loading and validation.

    Configuration sources in order of precedence:
    1. Explicit overrides, e.g. CLI options (highest priority)
    2. Environment variables
    3. Configuration files
    4. Default values (lowest priority)
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Optional path to configuration file
        """
        self.config_file = Path(config_file) if config_file else None
        self._config: Optional[CacheConfig] = None
        self._config_paths = self._get_default_config_paths()

    def _get_default_config_paths(self) -> List[Path]:
        """Get default configuration file search paths."""
        search_paths = [
            Path.cwd() / "elcache.yaml",
            Path.cwd() / "elcache.yml",
            Path.cwd() / ".elcache.yaml",
            Path.home() / ".config" / "elcache" / "config.yaml",
        ]

        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        if xdg_config:
            search_paths.append(Path(xdg_config) / "elcache" / "config.yaml")

        return search_paths

    def load_config(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        env_prefix: str = "ELCACHE_"
    ) -> CacheConfig:
        """
        Load and validate configuration from all sources.

        Args:
            overrides: Explicit values, None entries are ignored
            env_prefix: Prefix for environment variables

        Returns:
            Validated CacheConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_data = {}

        file_config = self._load_config_file()
        if file_config:
            config_data.update(file_config)

        config_data.update(self._load_env_config(env_prefix))

        if overrides:
            config_data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            self._config = CacheConfig(**config_data)
            return self._config
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}", cause=e)

    def _load_config_file(self) -> Optional[Dict[str, Any]]:
        """Load configuration from file."""
        config_file = self.config_file

        if config_file is not None and not config_file.exists():
            raise ConfigurationError(
                f"Config file not found: {config_file}",
                error_code=ErrorCode.CONFIG_FILE_NOT_FOUND
            )

        if not config_file:
            for path in self._config_paths:
                if path.exists() and path.is_file():
                    config_file = path
                    break

        if not config_file:
            return None

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.suffix.lower() == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f) or {}
        except (IOError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Failed to load config file {config_file}: {e}",
                error_code=ErrorCode.CONFIG_INVALID_FORMAT,
                cause=e
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {config_file} must contain a mapping",
                error_code=ErrorCode.CONFIG_INVALID_FORMAT
            )

        # A file may nest the options under a top-level "cache" section
        if isinstance(data.get('cache'), dict):
            data = data['cache']

        return data

    def _load_env_config(self, prefix: str) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        env_config = {}

        env_mappings = {
            f"{prefix}PATH": ("path", str),
            f"{prefix}CONTEXT": ("context", str),
            f"{prefix}TTL": ("ttl", int),
            f"{prefix}MAX_BUFFER": ("max_buffer", self._parse_optional_int),
            f"{prefix}PURGE_ON_INIT": ("purge_on_init", self._parse_bool),
            f"{prefix}LOG_LEVEL": ("log_level", str),
        }

        for env_var, (key, parser) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                try:
                    env_config[key] = parser(value)
                except (ValueError, TypeError) as e:
                    raise ConfigurationError(
                        f"Invalid value for {env_var}: {value} ({e})",
                        config_key=key,
                        config_value=value
                    )

        return env_config

    @staticmethod
    def _parse_bool(value: Union[str, bool]) -> bool:
        """Parse boolean value from string."""
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in {'true', '1', 'yes', 'on', 'enabled'}
        return bool(value)

    @staticmethod
    def _parse_optional_int(value: str) -> Optional[int]:
        """Parse an integer where 'none', 'off' or '' mean no value."""
        if value.strip().lower() in {'', 'none', 'off', 'unlimited'}:
            return None
        return int(value)

    def create_example_config(self, output_file: Path) -> None:
        """
        Write the default configuration as YAML.

        Args:
            output_file: Path to write configuration file
        """
        config_dict = CacheConfig().model_dump(mode='json')

        with open(output_file, 'w', encoding='utf-8') as f:
            yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    @property
    def config(self) -> Optional[CacheConfig]:
        """Get the loaded configuration."""
        return self._config
