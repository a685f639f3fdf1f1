"""
Training Engine Module
======================

Responsibility:
- Fits the candidate chosen by the grid search on the full dataset.
- Persists the trained estimator (.pkl) and training metadata (.json).
"""

from .training_engine import TrainingEngine

__all__ = ['TrainingEngine']
