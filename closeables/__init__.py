"""
Scoped resource tracking and best-effort batch release.
"""
from .resources import Releasable, CallbackResource, ContextResource
from .failures import FailureKind, FailureClassifier
from .release import close_all, close_resources
from .tracker import ResourceTracker
from utils.exceptions import AggregateReleaseError, resolve_exception_type

__all__ = [
    'Releasable',
    'CallbackResource',
    'ContextResource',
    'FailureKind',
    'FailureClassifier',
    'resolve_exception_type',
    'close_all',
    'close_resources',
    'ResourceTracker',
    'AggregateReleaseError',
]
