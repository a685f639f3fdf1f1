"""
Reporting Module.

Responsible for per-pass metric tables, gnuplot exports, heatmaps
and the search summary.
"""

from .performance_table import PerformanceTable
from .reporting_engine import ReportingEngine

__all__ = [
    'PerformanceTable',
    'ReportingEngine'
]
