"""
Utility modules for closeables.
"""
from .logging_config import get_logger, LoggerFactory, StructuredFormatter
from .exceptions import (
    CloseablesError,
    ConfigurationError,
    ResourceError,
    AggregateReleaseError,
    attach_suppressed,
    resolve_exception_type
)
from .message_format import FormattedMessage, array_format, format_message

__all__ = [
    'get_logger',
    'LoggerFactory',
    'StructuredFormatter',
    'CloseablesError',
    'ConfigurationError',
    'ResourceError',
    'AggregateReleaseError',
    'attach_suppressed',
    'resolve_exception_type',
    'FormattedMessage',
    'array_format',
    'format_message',
]
