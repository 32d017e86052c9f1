"""
Configuration loading and management.

Reads the per-project JSON config, applies environment overrides and caches
the result per project path.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..models.config import ScanConfig
from .defaults import (
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    ENV_VAR_MAPPING,
    LIST_FIELDS,
    STRING_FIELDS,
    get_default_scan_config,
)

logger = logging.getLogger(__name__)


class ConfigurationLoader:
    """Load and manage project scan configurations"""

    def __init__(self, strict: bool = False):
        """
        Args:
            strict: Raise ConfigurationError for an unreadable or invalid
                config file instead of falling back to defaults
        """
        self.strict = strict
        self.config_cache: Dict[str, ScanConfig] = {}

    @staticmethod
    def get_config_file(project_path: Union[str, Path]) -> Path:
        return Path(project_path) / CONFIG_DIR_NAME / CONFIG_FILE_NAME

    def load_config(
        self,
        project_path: Union[str, Path],
        overrides: Optional[Dict[str, Any]] = None
    ) -> ScanConfig:
        """Load the project's configuration, falling back to defaults"""
        project_path = Path(project_path).resolve()

        cache_key = str(project_path)
        if cache_key in self.config_cache and not overrides:
            return self.config_cache[cache_key]

        config_data = get_default_scan_config()

        config_file = self.get_config_file(project_path)
        if config_file.exists():
            config_data.update(self._read_config_file(config_file))

        config_data = self._apply_env_overrides(config_data)

        if overrides:
            config_data.update({k: v for k, v in overrides.items() if v is not None})

        try:
            config = ScanConfig(**config_data)
        except ValidationError as e:
            if self.strict:
                raise ConfigurationError(f"Invalid configuration for {project_path}: {e}") from e
            logger.error(f"Invalid configuration for {project_path}, using defaults: {e}")
            config = ScanConfig()

        if not overrides:
            self.config_cache[cache_key] = config
        return config

    def _read_config_file(self, config_file: Path) -> Dict[str, Any]:
        """Load an existing configuration file"""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value must be an object")
            return data

        except (OSError, json.JSONDecodeError, ValueError) as e:
            if self.strict:
                raise ConfigurationError(f"Failed to load config from {config_file}: {e}") from e
            logger.error(f"Failed to load config from {config_file}: {e}")
            return {}

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration"""
        for env_var, field_name in ENV_VAR_MAPPING.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                config_data[field_name] = self._convert_env_value(field_name, env_value)
        return config_data

    def _convert_env_value(self, field_name: str, value: str) -> Any:
        """Convert environment variable string to appropriate type"""
        if field_name in LIST_FIELDS:
            return [item.strip() for item in value.split(',') if item.strip()]
        if field_name in STRING_FIELDS:
            return value

        # Boolean conversion
        if value.lower() in ('true', 'yes', '1', 'on'):
            return True
        elif value.lower() in ('false', 'no', '0', 'off'):
            return False

        # Numeric conversion
        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        # Return as string
        return value

    def save_config(self, project_path: Union[str, Path], config: ScanConfig) -> bool:
        """Save project configuration to disk"""
        project_path = Path(project_path).resolve()
        config_file = self.get_config_file(project_path)

        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w', encoding='utf-8') as f:
                json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

            logger.info(f"Saved configuration to {config_file}")
            self.config_cache[str(project_path)] = config
            return True

        except OSError as e:
            logger.error(f"Failed to save config for {project_path}: {e}")
            return False

    def clear_cache(self) -> None:
        """Clear configuration cache"""
        self.config_cache.clear()
        logger.info("Configuration cache cleared")
