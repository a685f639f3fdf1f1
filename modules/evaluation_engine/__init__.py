"""
Evaluation Engine Module
========================

Responsibility:
- Evaluator interface consumed by the worker pool.
- Cross-validated scoring of one candidate at a given fold count.
- Pooled regression / classification metrics (NaN when not applicable).
"""

from .evaluation_engine import CrossValidationEvaluator, Evaluator

__all__ = ['CrossValidationEvaluator', 'Evaluator']
