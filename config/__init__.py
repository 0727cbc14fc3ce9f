"""
Configuration management for closeables.
"""
from .config_manager import (
    Config,
    ConfigManager,
    DEFAULT_MESSAGE,
    DEFAULTS,
    get_config_manager,
    reset_config,
    load_config,
    get_config,
    set_config,
    configure_logging
)
from .presets import ConfigPresets

__all__ = [
    'Config',
    'ConfigManager',
    'DEFAULT_MESSAGE',
    'DEFAULTS',
    'get_config_manager',
    'reset_config',
    'load_config',
    'get_config',
    'set_config',
    'configure_logging',
    'ConfigPresets',
]
