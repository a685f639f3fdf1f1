"""
Performance Module
==================

Responsibility:
- Metric catalogue with optimisation direction.
- PerformanceRecord for one evaluated grid point.
- Deterministic total order (metric, then X, then Y).
- Memoizing cache keyed by (fidelity, point).
"""

from .performance import (
    Metric,
    PerformanceComparator,
    PerformanceRecord,
    REGRESSION_ONLY_METRICS,
    is_uniform,
    sort_performances,
)
from .performance_cache import PerformanceCache

__all__ = [
    'Metric',
    'PerformanceCache',
    'PerformanceComparator',
    'PerformanceRecord',
    'REGRESSION_ONLY_METRICS',
    'is_uniform',
    'sort_performances',
]
