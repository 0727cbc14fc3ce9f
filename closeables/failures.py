"""
Classification of release failures into recoverable and fatal.
"""
from enum import Enum
from typing import Iterable, Optional, Tuple, Type
from config.config_manager import get_config
from utils.exceptions import resolve_exception_type


class FailureKind(Enum):
    """How a failed release affects the rest of the batch."""
    RECOVERABLE = 'recoverable'
    FATAL = 'fatal'


class FailureClassifier:
    """
    Tags release failures.

    Anything outside the ``Exception`` hierarchy (``KeyboardInterrupt``,
    ``SystemExit``, ``GeneratorExit``...) is fatal, as are instances of
    ``fatal_types``. Everything else is recoverable.
    """

    def __init__(self, fatal_types: Iterable[Type[BaseException]] = (MemoryError,)):
        self.fatal_types: Tuple[Type[BaseException], ...] = tuple(fatal_types)

    @classmethod
    def from_config(cls) -> 'FailureClassifier':
        """Build a classifier from ``release.fatal_exceptions``."""
        names = get_config('release.fatal_exceptions', ['builtins.MemoryError']) or []
        return cls(resolve_exception_type(name) for name in names)

    def classify(self, error: BaseException) -> FailureKind:
        if not isinstance(error, Exception):
            return FailureKind.FATAL
        if self.fatal_types and isinstance(error, self.fatal_types):
            return FailureKind.FATAL
        return FailureKind.RECOVERABLE

    def __repr__(self) -> str:
        names = ', '.join(t.__name__ for t in self.fatal_types)
        return f"{self.__class__.__name__}(fatal_types=({names}))"


def default_classifier(classifier: Optional[FailureClassifier] = None) -> FailureClassifier:
    """Return ``classifier`` or one built from configuration."""
    if classifier is not None:
        return classifier
    return FailureClassifier.from_config()
