"""
Worker Pool Module
==================

Responsibility:
- Bounded concurrent evaluation of the points of one search pass.
- Per-task isolation: each task clones its own candidate.
- Batch collection of outcomes, counters and the first failure.
"""

from .worker_pool import BatchResult, EvaluationTask, TaskOutcome, WorkerPool

__all__ = ['BatchResult', 'EvaluationTask', 'TaskOutcome', 'WorkerPool']
