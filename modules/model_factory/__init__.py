"""
Model Factory Module
====================

Responsibility:
- Resolve a configured model name to a scikit-learn estimator.
- Filter constructor parameters the estimator does not accept.
"""

from .model_factory import ModelFactory

__all__ = ['ModelFactory']
