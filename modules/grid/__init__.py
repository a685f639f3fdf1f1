"""
Grid Module
===========

Responsibility:
- Discretized 2D coordinate space (min, max, step per axis).
- Tolerance-safe point equality and nearest-index lookup.
- Border detection, 3x3 sub-gridding and outward extension.
"""

from .grid import Grid, GridIndex, GridPoint, values_equal

__all__ = ['Grid', 'GridIndex', 'GridPoint', 'values_equal']
