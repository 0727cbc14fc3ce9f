"""Release metrics on top of prometheus_client."""
from __future__ import annotations
import time
from typing import Dict, Any, Optional

from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest


OUTCOMES = ('ok', 'aggregate', 'fatal')
FAILURE_KINDS = ('recoverable', 'fatal')


class ReleaseMetrics:
    """
    Counters for release attempts, failures and batch outcomes.

    Each instance owns its own registry so several collectors can coexist
    in one process.
    """
    def __init__(self, namespace: str = 'closeables', registry: Optional[CollectorRegistry] = None):
        self.namespace = namespace
        self.registry = registry or CollectorRegistry()
        self._init_prometheus_metrics()

    def _init_prometheus_metrics(self):
        """Initialize Prometheus metrics."""
        # Counters
        self.releases = Counter(
            f'{self.namespace}_releases',
            'Total number of release attempts',
            registry=self.registry
        )

        self.release_failures = Counter(
            f'{self.namespace}_release_failures',
            'Total number of failed release attempts',
            ['kind'],
            registry=self.registry
        )

        self.batches = Counter(
            f'{self.namespace}_batches',
            'Total number of batch releases by outcome',
            ['outcome'],
            registry=self.registry
        )

        # Histograms
        self.batch_duration = Histogram(
            f'{self.namespace}_batch_duration_seconds',
            'Batch release duration in seconds',
            registry=self.registry
        )

    def inc_releases(self, amount: float = 1.0):
        """Increment release attempts counter."""
        self.releases.inc(amount)

    def inc_failures(self, kind: str, amount: float = 1.0):
        """Increment failures counter for ``kind``."""
        self.release_failures.labels(kind=kind).inc(amount)

    def inc_batches(self, outcome: str):
        """Record a finished batch."""
        self.batches.labels(outcome=outcome).inc()

    def observe_batch_duration(self, duration: float):
        """Record batch duration."""
        self.batch_duration.observe(duration)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format."""
        return generate_latest(self.registry).decode('utf-8')

    def _sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        value = self.registry.get_sample_value(f'{self.namespace}_{name}', labels or {})
        return value or 0.0

    def get_stats(self) -> Dict[str, Any]:
        """Get metrics as dictionary."""
        stats: Dict[str, Any] = {
            'releases': self._sample('releases_total'),
            'batch_duration_count': self._sample('batch_duration_seconds_count'),
            'batch_duration_sum': self._sample('batch_duration_seconds_sum'),
        }
        for kind in FAILURE_KINDS:
            stats[f'failures_{kind}'] = self._sample('release_failures_total', {'kind': kind})
        for outcome in OUTCOMES:
            stats[f'batches_{outcome}'] = self._sample('batches_total', {'outcome': outcome})
        return stats


class Timer:
    """Context manager for timing code blocks."""
    def __init__(self, metrics_collector: Optional[ReleaseMetrics] = None):
        self.metrics_collector = metrics_collector
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.time() - self.start_time

        if self.metrics_collector:
            self.metrics_collector.observe_batch_duration(self.duration)
