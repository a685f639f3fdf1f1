"""
Data Manager Module
===================

Responsibility:
- Load the search dataset (CSV / Parquet / Excel).
- Remove rows with missing targets and detect the task type.
- Produce the stratified subsample for the low-fidelity pass.
"""

from .data_manager import DataManager, Dataset

__all__ = ['DataManager', 'Dataset']
