"""
Custom exception hierarchy for closeables.
"""
import importlib
from typing import Any, Dict, List, Optional, Type


class CloseablesError(Exception):
    """Base exception for all closeables errors."""

    def __init__(
        self,
        message: Optional[str],
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details
        }


# Configuration Exceptions
class ConfigurationError(CloseablesError):
    """Raised when configuration is invalid."""
    pass


# Resource Exceptions
class ResourceError(CloseablesError):
    """Base exception for resource errors."""
    pass


class AggregateReleaseError(ResourceError):
    """
    Raised once per batch release when one or more resources failed to close.

    The individual failures are kept, in the order they happened, in
    ``errors``.
    """

    def __init__(self, message: Optional[str], error_code: Optional[str] = None):
        super().__init__(message, error_code=error_code, details={'failures': 0})
        self.errors: List[BaseException] = []

    @property
    def suppressed(self) -> List[BaseException]:
        """Alias for ``errors``."""
        return self.errors

    def add_suppressed(self, error: BaseException):
        """Record a release failure."""
        self.errors.append(error)
        self.details['failures'] = len(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['errors'] = [
            {'type': type(error).__name__, 'message': str(error)}
            for error in self.errors
        ]
        return data

    def __str__(self) -> str:
        label = self.message if self.message is not None else ''
        count = len(self.errors)
        suffix = f"{count} release failure{'s' if count != 1 else ''}"
        return f"{label} ({suffix})" if label else suffix


def attach_suppressed(error: BaseException, suppressed: BaseException):
    """
    Attach ``suppressed`` to ``error`` as accompanying context.

    The context slot is used when it is free so tracebacks show both errors;
    otherwise the suppressed error is recorded as a note.
    """
    if isinstance(error, AggregateReleaseError):
        error.add_suppressed(suppressed)
    elif error.__context__ is None and error is not suppressed:
        error.__context__ = suppressed
    else:
        error.add_note(
            f"Suppressed {type(suppressed).__name__}: {suppressed}"
        )


def resolve_exception_type(name: str) -> Type[BaseException]:
    """Import an exception class from a dotted name such as ``builtins.MemoryError``."""
    module_name, _, attr = name.rpartition('.')
    if not module_name:
        module_name = 'builtins'

    try:
        module = importlib.import_module(module_name)
        exc_type = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(
            f"Cannot resolve exception type: {name}",
            details={'name': name, 'error': str(e)}
        ) from e

    if not (isinstance(exc_type, type) and issubclass(exc_type, BaseException)):
        raise ConfigurationError(
            f"Not an exception type: {name}",
            details={'name': name}
        )
    return exc_type
