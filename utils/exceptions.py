"""
Custom exception hierarchy for the adaptive grid search.
"""

class GridSearchException(Exception):
    """Base exception for all system errors."""
    pass

class ConfigurationError(GridSearchException):
    """Configuration validation failed (grid bounds, expressions, parameter paths)."""
    pass

class DataValidationError(GridSearchException):
    """Data validation failed."""
    pass

class EvaluationError(GridSearchException):
    """Evaluation of a grid point failed, aborting the search."""

    def __init__(self, message: str, point=None):
        super().__init__(message)
        self.point = point

class GridStateError(GridSearchException):
    """Internal invariant violated (fully cached pass, grid that did not grow)."""
    pass

class ModelTrainingError(GridSearchException):
    """Final model training failed."""
    pass
