"""
Predefined configuration presets for common use cases.
"""
from typing import Dict, Any


class ConfigPresets:
    """Collection of predefined configuration presets."""

    @staticmethod
    def default() -> Dict[str, Any]:
        """Console logging at INFO, memory exhaustion treated as fatal."""
        return {
            'release': {
                'default_message': 'Closing resources failed',
                'fatal_exceptions': ['builtins.MemoryError'],
                'log_failures': True
            },
            'logging': {
                'log_level': 'INFO',
                'enable_console': True,
                'enable_file': False
            }
        }

    @staticmethod
    def debug() -> Dict[str, Any]:
        """Verbose logging to console and rotating files."""
        return {
            'release': {
                'log_failures': True
            },
            'logging': {
                'log_level': 'DEBUG',
                'log_dir': 'logs/debug',
                'enable_console': True,
                'enable_file': True
            }
        }

    @staticmethod
    def quiet() -> Dict[str, Any]:
        """No per-failure warnings; errors only."""
        return {
            'release': {
                'log_failures': False
            },
            'logging': {
                'log_level': 'ERROR',
                'enable_console': True,
                'enable_file': False
            }
        }

    @staticmethod
    def get_preset(name: str) -> Dict[str, Any]:
        """Get preset by name."""
        presets = {
            'default': ConfigPresets.default,
            'debug': ConfigPresets.debug,
            'quiet': ConfigPresets.quiet,
        }

        if name not in presets:
            raise ValueError(f"Unknown preset: {name}. Available: {list(presets.keys())}")

        return presets[name]()
