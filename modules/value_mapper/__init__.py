"""
Value Mapper Module
===================

Responsibility:
- Compile the X/Y axis expressions once per search.
- Map a grid coordinate to the actual hyperparameter value.
- Degrade to NaN (with a warning) when an expression cannot be evaluated.
"""

from .value_mapper import AxisMapping, CompiledExpression, ValueMapper

__all__ = ['AxisMapping', 'CompiledExpression', 'ValueMapper']
