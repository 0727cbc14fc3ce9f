"""
Best-effort release of a sequence of resources.

Every resource gets a release attempt. Recoverable failures are collected into
a single :class:`AggregateReleaseError` raised after the last attempt; a fatal
failure stops the batch at once and propagates as-is, carrying the partial
aggregate (if any) as its context.
"""
from typing import Any, Iterable, Optional, Sequence
from config.config_manager import DEFAULT_MESSAGE, get_config
from infrastructure.observability import ReleaseMetrics, Timer
from utils.exceptions import AggregateReleaseError, ConfigurationError, attach_suppressed
from utils.logging_config import get_logger
from utils.message_format import format_message
from .failures import FailureClassifier, FailureKind, default_classifier
from .resources import Releasable, describe

logger = get_logger(__name__)


def _new_aggregate(message_pattern: Optional[str], args: Sequence[Any]) -> AggregateReleaseError:
    if message_pattern is None:
        message = get_config('release.default_message', DEFAULT_MESSAGE)
    else:
        message = format_message(message_pattern, *args)
    return AggregateReleaseError(message)


def _resolve_classifier(classifier: Optional[FailureClassifier]) -> FailureClassifier:
    try:
        return default_classifier(classifier)
    except ConfigurationError as e:
        logger.error(f"Invalid release.fatal_exceptions, using built-in fatal types: {e.message}")
        return FailureClassifier()


def close_all(
    resources: Iterable[Releasable],
    message_pattern: Optional[str] = None,
    *args: Any,
    classifier: Optional[FailureClassifier] = None,
    metrics: Optional[ReleaseMetrics] = None
):
    """
    Close every resource in iteration order.

    Args:
        resources: Resources to close, in the order they should be closed
        message_pattern: ``{}``-style label for the aggregate error; the
            configured default label is used when None
        *args: Positional arguments for ``message_pattern``
        classifier: Decides which failures abort the batch
        metrics: Optional collector for attempt/failure/outcome counts

    Raises:
        AggregateReleaseError: one or more resources failed recoverably
        BaseException: the first fatal failure, unwrapped
    """
    classifier = _resolve_classifier(classifier)
    log_failures = get_config('release.log_failures', True)
    aggregate: Optional[AggregateReleaseError] = None

    with Timer(metrics):
        for resource in resources:
            logger.debug(f"Releasing {describe(resource)}")
            if metrics:
                metrics.inc_releases()

            try:
                resource.close()
            except BaseException as error:
                kind = classifier.classify(error)
                if metrics:
                    metrics.inc_failures(kind.value)

                if kind is FailureKind.FATAL:
                    logger.error(
                        f"Fatal {type(error).__name__} while releasing {describe(resource)}, "
                        f"abandoning remaining resources"
                    )
                    if aggregate is not None:
                        attach_suppressed(error, aggregate)
                    if metrics:
                        metrics.inc_batches('fatal')
                    raise

                if aggregate is None:
                    aggregate = _new_aggregate(message_pattern, args)
                aggregate.add_suppressed(error)

                if log_failures:
                    logger.warning(
                        f"Failed to release {describe(resource)}: "
                        f"{type(error).__name__}: {error}",
                        extra={'extra_fields': {
                            'resource': describe(resource),
                            'error_type': type(error).__name__,
                            'failure_index': len(aggregate.errors),
                        }}
                    )

    if aggregate is not None:
        if metrics:
            metrics.inc_batches('aggregate')
        raise aggregate

    if metrics:
        metrics.inc_batches('ok')


def close_resources(
    *resources: Releasable,
    message: Optional[str] = None,
    classifier: Optional[FailureClassifier] = None,
    metrics: Optional[ReleaseMetrics] = None
):
    """Close ``resources`` in argument order, labelling failures with ``message``."""
    close_all(resources, message, classifier=classifier, metrics=metrics)
