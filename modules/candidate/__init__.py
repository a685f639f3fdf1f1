"""
Candidate Module
================

Responsibility:
- Typed parameter kinds (float, integer, boolean) resolved once per search.
- Configurable candidate wrapper around a scikit-learn estimator.
- Clone-then-mutate materialization of one grid point's candidate.
"""

from .candidate_builder import CandidateBuilder, ConfigurableCandidate, ParameterKind, ParameterSpec

__all__ = ['CandidateBuilder', 'ConfigurableCandidate', 'ParameterKind', 'ParameterSpec']
