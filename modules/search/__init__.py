"""
Search Module
=============

Responsibility:
- SearchController: the initial-pass / refine / extend state machine.
- GridSearchEngine: builds the search from the configuration, runs it and
  trains the final candidate.
"""

from .search_controller import PassResult, SearchController, SearchOutcome, SearchState, StopReason
from .grid_search_engine import GridSearchEngine, SearchResult

__all__ = [
    'GridSearchEngine',
    'PassResult',
    'SearchController',
    'SearchOutcome',
    'SearchResult',
    'SearchState',
    'StopReason',
]
