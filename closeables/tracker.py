"""
Tracking of resources acquired within one scope.
"""
from collections import deque
from typing import Any, Callable, ContextManager, Deque, Optional, Tuple, TypeVar
from infrastructure.observability import ReleaseMetrics
from utils.logging_config import get_logger
from .failures import FailureClassifier
from .release import close_all
from .resources import CallbackResource, ContextResource, Releasable, describe

T = TypeVar('T')


class ResourceTracker:
    """
    Closes the resources acquired in a scope, last acquired first.

    Use it as a context manager around the code acquiring resources::

        with ResourceTracker("opening {}", path) as tracker:
            src = tracker.add(open(path))
            dst = tracker.add(open(target, 'w'))
            ...

    Failures while closing do not stop the remaining resources from being
    closed; they are reported together as one ``AggregateReleaseError``.

    Resources meant to outlive the scope are kept open by calling
    :meth:`protect` before the scope ends. :meth:`expose` hands them back to
    the tracker so the next :meth:`close` releases them.
    """

    def __init__(
        self,
        message_pattern: Optional[str] = None,
        *args: Any,
        classifier: Optional[FailureClassifier] = None,
        metrics: Optional[ReleaseMetrics] = None
    ):
        """
        Args:
            message_pattern: ``{}``-style label for the aggregate error
            *args: Positional arguments for ``message_pattern``
            classifier: Decides which failures abort the release
            metrics: Optional release metrics collector
        """
        self._entries: Deque[Releasable] = deque()
        self.message_pattern = message_pattern
        self.args = args
        self.classifier = classifier
        self.metrics = metrics
        self._protected = False
        self.logger = get_logger(self.__class__.__name__)

    @classmethod
    def of(
        cls,
        resource: Releasable,
        *,
        classifier: Optional[FailureClassifier] = None,
        metrics: Optional[ReleaseMetrics] = None
    ) -> 'ResourceTracker':
        """Create a tracker already tracking ``resource``."""
        tracker = cls(classifier=classifier, metrics=metrics)
        tracker.add(resource)
        return tracker

    def add(self, resource: T) -> T:
        """Track ``resource``; it will be closed before everything added earlier."""
        self._entries.appendleft(resource)
        self.logger.debug(f"Tracking {describe(resource)} ({len(self._entries)} pending)")
        return resource

    def callback(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> CallbackResource:
        """Track a call to ``func(*args, **kwargs)`` as a resource."""
        return self.add(CallbackResource(func, *args, **kwargs))

    def enter_context(self, context_manager: ContextManager[T]) -> T:
        """Enter ``context_manager`` and track its exit."""
        result = type(context_manager).__enter__(context_manager)
        self.add(ContextResource(context_manager))
        return result

    def protect(self):
        """Keep the tracked resources open on :meth:`close` until :meth:`expose`."""
        self._protected = True
        self.logger.debug(f"Protected {len(self._entries)} resources")

    def expose(self):
        """Let the next :meth:`close` release the tracked resources again."""
        self._protected = False
        self.logger.debug(f"Exposed {len(self._entries)} resources")

    @property
    def is_protected(self) -> bool:
        return self._protected

    @property
    def resources(self) -> Tuple[Releasable, ...]:
        """Pending resources in release order."""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def close(self):
        """
        Close all tracked resources unless they are protected.

        The tracker is emptied whatever the outcome, so a failed close is not
        retried by a later call.

        Raises:
            AggregateReleaseError: one or more resources failed to close
            BaseException: a fatal failure interrupted the release
        """
        if self._protected:
            self.logger.debug(f"Skipping close of {len(self._entries)} protected resources")
            return

        pending = tuple(self._entries)
        try:
            close_all(
                pending,
                self.message_pattern,
                *self.args,
                classifier=self.classifier,
                metrics=self.metrics
            )
        finally:
            self._entries.clear()

    def __enter__(self) -> 'ResourceTracker':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        state = 'protected' if self._protected else 'exposed'
        return f"{self.__class__.__name__}({len(self._entries)} pending, {state})"
