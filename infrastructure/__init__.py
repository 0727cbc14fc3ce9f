from .observability import ReleaseMetrics, Timer

__all__ = [
    'ReleaseMetrics',
    'Timer'
]
