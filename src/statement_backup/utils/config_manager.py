"""Configuration management for statement backups."""

import json
import os
import yaml
from typing import Dict, Any, Optional
import logging

from ..models.core import BackupConfig


logger = logging.getLogger(__name__)

_STRING_KEYS = ['backup_directory', 'data_directory', 'backup_suffix',
                'recovered_file_name', 'log_directory']
_BOOL_KEYS = ['warn_on_dropped_rows']


class ConfigManager:
    """Manages loading and validation of backup configuration"""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager

        Args:
            config_path: Path to configuration file. If None, searches for default locations.
        """
        self.config_path = config_path
        self._config_cache: Optional[BackupConfig] = None

    def load_config(self, force_reload: bool = False) -> BackupConfig:
        """Load backup configuration from file or return default

        Args:
            force_reload: Force reload from file even if cached

        Returns:
            BackupConfig instance with loaded or default configuration
        """
        if self._config_cache is not None and not force_reload:
            return self._config_cache

        config_data = self._load_config_file()
        defaults = BackupConfig()

        self._config_cache = BackupConfig(
            backup_directory=config_data.get('backup_directory', defaults.backup_directory),
            data_directory=config_data.get('data_directory', defaults.data_directory),
            backup_suffix=config_data.get('backup_suffix', defaults.backup_suffix),
            recovered_file_name=config_data.get('recovered_file_name', defaults.recovered_file_name),
            log_directory=config_data.get('log_directory', defaults.log_directory),
            warn_on_dropped_rows=config_data.get('warn_on_dropped_rows', defaults.warn_on_dropped_rows),
        )

        logger.info(f"Configuration loaded successfully from {self.config_path or 'defaults'}")
        return self._config_cache

    def _load_config_file(self) -> Dict[str, Any]:
        """Load configuration from file

        Returns:
            Dictionary with configuration data or empty dict if no file found or invalid
        """
        config_file = self._find_config_file()

        if not config_file or not os.path.exists(config_file):
            logger.info("No configuration file found, using defaults")
            return {}

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                if config_file.endswith('.json'):
                    data = json.load(f)
                elif config_file.endswith(('.yml', '.yaml')):
                    data = yaml.safe_load(f)
                else:
                    logger.warning(f"Unsupported config file format: {config_file}")
                    return {}

            self._validate_config_data(data)
            logger.info(f"Configuration loaded from {config_file}")
            return data

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Error reading configuration file {config_file}: {e}")
            return {}

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations

        Returns:
            Path to configuration file or None if not found
        """
        if self.config_path:
            return self.config_path

        search_paths = [
            'backup_config.json',
            'backup_config.yml',
            'backup_config.yaml',
            'config/backup_config.json',
            'config/backup_config.yml',
            'config/backup_config.yaml',
            os.path.expanduser('~/.statement_backup/config.json'),
            os.path.expanduser('~/.statement_backup/config.yml'),
        ]

        for path in search_paths:
            if os.path.exists(path):
                return path

        return None

    def _validate_config_data(self, data: Any) -> None:
        """Validate configuration data structure

        Raises:
            ValueError: If configuration data is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        for key in _STRING_KEYS:
            if key in data:
                if not isinstance(data[key], str):
                    raise ValueError(f"{key} must be a string")
                if not data[key].strip():
                    raise ValueError(f"{key} cannot be empty")

        for key in _BOOL_KEYS:
            if key in data and not isinstance(data[key], bool):
                raise ValueError(f"{key} must be a boolean")

        suffix = data.get('backup_suffix')
        if suffix is not None and not suffix.lower().endswith('.sql'):
            raise ValueError("backup_suffix must end with .sql")

    def save_config_template(self, output_path: str) -> None:
        """Generate and save a configuration file template

        Args:
            output_path: Path where to save the template
        """
        defaults = BackupConfig()
        template = {
            "backup_directory": defaults.backup_directory,
            "data_directory": defaults.data_directory,
            "backup_suffix": defaults.backup_suffix,
            "recovered_file_name": defaults.recovered_file_name,
            "log_directory": defaults.log_directory,
            "warn_on_dropped_rows": defaults.warn_on_dropped_rows,
        }

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            if output_path.endswith(('.yml', '.yaml')):
                yaml.dump(template, f, default_flow_style=False, indent=2)
            else:
                json.dump(template, f, indent=2)

        logger.info(f"Configuration template saved to {output_path}")

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Update configuration with new values"""
        if self._config_cache is None:
            self.load_config()

        for key, value in updates.items():
            if hasattr(self._config_cache, key):
                setattr(self._config_cache, key, value)
                logger.debug(f"Updated configuration: {key} = {value}")
            else:
                logger.warning(f"Unknown configuration key: {key}")

