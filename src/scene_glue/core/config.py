import os
import yaml
import json
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError


class ConfigManager:
    """Manages configuration for scene-glue"""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self._get_default_config_path()
        self._config = self._load_config()

    def _get_default_config_path(self) -> Path:
        """Get default configuration path"""
        # Check environment variable first
        if env_path := os.getenv("SCENE_GLUE_CONFIG"):
            return Path(env_path)

        # Check common locations
        locations = [
            Path.cwd() / "scene-glue.yaml",
            Path.cwd() / ".scene-glue" / "config.yaml",
            Path.home() / ".scene-glue" / "config.yaml",
        ]

        for location in locations:
            if location.exists():
                return location

        # Return default location
        return Path.home() / ".scene-glue" / "config.yaml"

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file, layered over the defaults"""
        defaults = self._get_default_config()
        if not self.config_path.exists():
            return defaults

        with open(self.config_path, 'r') as f:
            if self.config_path.suffix in ('.yaml', '.yml'):
                loaded = yaml.safe_load(f)
            elif self.config_path.suffix == '.json':
                loaded = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported config format: {self.config_path.suffix}")

        if loaded is None:
            return defaults
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {self.config_path}")

        return self._merge(defaults, loaded)

    @classmethod
    def _merge(cls, base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = cls._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration"""
        return {
            "general": {
                "log_level": "INFO",
            },
            "glue": {
                "default_paths": ["steps"],
            },
            "runner": {
                "tags": None,
            },
            "snippets": {
                "decorator": "step",
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation"""
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

