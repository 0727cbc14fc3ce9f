"""
Configuration management for release behaviour and logging.
"""
import os
import json
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from copy import deepcopy
from utils.logging_config import get_logger, LoggerFactory
from utils.exceptions import ConfigurationError, resolve_exception_type

logger = get_logger(__name__)

DEFAULT_MESSAGE = "Closing resources failed"

DEFAULTS: Dict[str, Any] = {
    'release': {
        'default_message': DEFAULT_MESSAGE,
        'fatal_exceptions': ['builtins.MemoryError'],
        'log_failures': True,
    },
    'logging': {
        'log_level': 'INFO',
        'log_dir': 'logs',
        'enable_console': True,
        'enable_file': False,
        'enable_structured': False,
    },
}

# key -> expected type(s) for validated settings
_RELEASE_TYPES = {
    'default_message': str,
    'fatal_exceptions': list,
    'log_failures': bool,
}


class Config:
    """Configuration container with dot notation access."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data = data or {}

    def __getattr__(self, key: str) -> Any:
        """Get config value using dot notation."""
        if key.startswith('_'):
            return object.__getattribute__(self, key)

        if key not in self._data:
            raise AttributeError(f"Config has no attribute '{key}'")

        value = self._data[key]
        if isinstance(value, dict):
            return Config(value)
        return value

    def __getitem__(self, key: str) -> Any:
        """Get config value using bracket notation."""
        return self._data[key]

    def __setitem__(self, key: str, value: Any):
        """Set config value using bracket notation."""
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def get(self, key: str, default: Any = None) -> Any:
        """Get config value with default, ``key`` may be dotted."""
        try:
            value = self._data
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any):
        """Set config value using dot notation."""
        keys = key.split('.')
        data = self._data
        for k in keys[:-1]:
            if not isinstance(data.get(k), dict):
                data[k] = {}
            data = data[k]
        data[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return deepcopy(self._data)

    def update(self, other: Dict[str, Any]):
        """Update configuration with another dict."""
        self._deep_update(self._data, other)

    @staticmethod
    def _deep_update(base: Dict, update: Dict):
        """Recursively update nested dictionaries."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                Config._deep_update(base[key], value)
            else:
                base[key] = deepcopy(value)


_MISSING = object()


class ConfigManager:
    """
    Configuration loaded from defaults, files, the environment and dicts.

    Later sources override earlier ones key by key. Release settings are
    type-checked whenever a source is loaded.
    """

    def __init__(self, defaults: Optional[Dict[str, Any]] = None):
        self._defaults = deepcopy(DEFAULTS if defaults is None else defaults)
        self._config = Config(deepcopy(self._defaults))
        self.logger = get_logger(self.__class__.__name__)

    def load_from_file(self, filepath: str):
        """
        Load configuration from file (JSON or YAML).

        Args:
            filepath: Path to configuration file
        """
        path = Path(filepath)

        if not path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {filepath}",
                details={'filepath': str(path)}
            )

        if path.suffix not in ('.yaml', '.yml', '.json'):
            raise ConfigurationError(
                f"Unsupported file format: {path.suffix}",
                details={'filepath': str(path)}
            )

        try:
            with open(path, 'r') as f:
                if path.suffix == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Failed to load configuration from {filepath}: {e}",
                details={'filepath': str(path), 'error': str(e)}
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {filepath}",
                details={'filepath': str(path), 'actual_type': type(data).__name__}
            )

        self._apply(data)
        self.logger.info(f"Loaded configuration from {filepath}")

    def load_from_env(self, prefix: str = "CLOSEABLES_"):
        """
        Load configuration from environment variables.

        Nested keys are separated by a double underscore, e.g.
        ``CLOSEABLES_RELEASE__DEFAULT_MESSAGE`` sets ``release.default_message``.

        Args:
            prefix: Prefix for environment variables
        """
        env_config = Config()

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue

            config_key = key[len(prefix):].lower().replace('__', '.')
            if not config_key:
                continue

            # Try to parse as JSON for complex types
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            env_config.set(config_key, parsed_value)

        data = env_config.to_dict()
        self._apply(data)
        self.logger.info(f"Loaded {len(data)} configuration sections from environment")

    def load_from_dict(self, data: Dict[str, Any]):
        """
        Load configuration from dictionary.

        Args:
            data: Configuration dictionary
        """
        self._apply(data)
        self.logger.debug("Loaded configuration from dictionary")

    def save_to_file(self, filepath: str, format: str = 'yaml'):
        """
        Save configuration to file.

        Args:
            filepath: Path to save configuration
            format: File format ('yaml' or 'json')
        """
        if format not in ('yaml', 'json'):
            raise ConfigurationError(f"Unsupported format: {format}")

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, 'w') as f:
                if format == 'yaml':
                    yaml.safe_dump(self._config.to_dict(), f, default_flow_style=False)
                else:
                    json.dump(self._config.to_dict(), f, indent=2)
        except OSError as e:
            raise ConfigurationError(
                f"Failed to save configuration to {filepath}: {e}",
                details={'filepath': str(path), 'error': str(e)}
            ) from e

        self.logger.info(f"Saved configuration to {filepath}")

    def _apply(self, data: Dict[str, Any]):
        candidate = Config(self._config.to_dict())
        candidate.update(data)
        self._validate(candidate)
        self._config = candidate

    @staticmethod
    def _validate(config: Config):
        """Check the types of the release settings."""
        errors = []
        release = config.get('release', {})
        if not isinstance(release, dict):
            raise ConfigurationError(
                "Section 'release' must be a mapping",
                details={'actual_type': type(release).__name__}
            )

        for key, expected in _RELEASE_TYPES.items():
            if key in release and not isinstance(release[key], expected):
                errors.append(
                    f"release.{key}: expected {expected.__name__}, "
                    f"got {type(release[key]).__name__}"
                )

        fatal_exceptions = release.get('fatal_exceptions') or []
        if isinstance(fatal_exceptions, list):
            for name in fatal_exceptions:
                if not isinstance(name, str):
                    errors.append(f"release.fatal_exceptions: expected str entries, got {name!r}")
                    continue
                try:
                    resolve_exception_type(name)
                except ConfigurationError as e:
                    errors.append(f"release.fatal_exceptions: {e.message}")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed",
                details={'errors': errors}
            )

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any):
        """Set configuration value."""
        candidate = Config(self._config.to_dict())
        candidate.set(key, value)
        self._validate(candidate)
        self._config = candidate
        self.logger.debug(f"Set config: {key} = {value}")

    def get_config(self) -> Config:
        """Get the full configuration object."""
        return self._config

    def merge_configs(self, *configs: Dict[str, Any]):
        """Merge multiple configuration dictionaries."""
        for config in configs:
            self._apply(config)
        self.logger.info(f"Merged {len(configs)} configurations")

    def clear(self):
        """Reset configuration to the defaults."""
        self._config = Config(deepcopy(self._defaults))
        self.logger.info("Reset configuration to defaults")


# Global configuration manager instance
_global_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager instance."""
    global _global_config_manager
    if _global_config_manager is None:
        _global_config_manager = ConfigManager()
    return _global_config_manager


def reset_config():
    """Discard the global configuration manager."""
    global _global_config_manager
    _global_config_manager = None


def load_config(filepath: str):
    """Load configuration from file into global manager."""
    manager = get_config_manager()
    manager.load_from_file(filepath)


def get_config(key: str, default: Any = None) -> Any:
    """Get configuration value from global manager."""
    manager = get_config_manager()
    return manager.get(key, default)


def set_config(key: str, value: Any):
    """Set configuration value in global manager."""
    manager = get_config_manager()
    manager.set(key, value)


def configure_logging(manager: Optional[ConfigManager] = None):
    """(Re)configure logging from the ``logging`` section."""
    manager = manager or get_config_manager()
    settings = manager.get('logging', {}) or {}
    LoggerFactory.reset()
    LoggerFactory.configure(**settings)
