"""
Pooled cross-validation metrics.

Relative errors (RAE, RRSE) are percentages against the prior predictor of
each training fold: the mean target for regression, the class frequencies
for classification.
"""

import math
import numpy as np
from typing import Callable, Dict

from sklearn.metrics import cohen_kappa_score, roc_auc_score


def _safe(compute: Callable[[], float]) -> float:
    """Evaluate one metric; anything not computable becomes NaN."""
    try:
        with np.errstate(divide='raise', invalid='raise'):
            value = float(compute())
    except (ValueError, ZeroDivisionError, FloatingPointError, TypeError):
        return math.nan
    return value


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        raise ZeroDivisionError("relative error against a perfect prior")
    return numerator / denominator


def correlation_coefficient(actual: np.ndarray, predicted: np.ndarray) -> float:
    actual_c = actual - actual.mean()
    predicted_c = predicted - predicted.mean()
    denominator = math.sqrt(float(np.sum(actual_c ** 2)) * float(np.sum(predicted_c ** 2)))
    return _ratio(float(np.sum(actual_c * predicted_c)), denominator)


def regression_metrics(actual: np.ndarray, predicted: np.ndarray, prior: np.ndarray) -> Dict[str, float]:
    """Metrics for a numeric target. Class-based metrics are NaN."""
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    prior = np.asarray(prior, dtype=float)
    error = predicted - actual
    prior_error = prior - actual

    return {
        'cc': _safe(lambda: correlation_coefficient(actual, predicted)),
        'mae': _safe(lambda: np.mean(np.abs(error))),
        'rmse': _safe(lambda: math.sqrt(np.mean(error ** 2))),
        'rae': _safe(lambda: 100.0 * _ratio(np.sum(np.abs(error)), np.sum(np.abs(prior_error)))),
        'rrse': _safe(lambda: 100.0 * math.sqrt(_ratio(np.sum(error ** 2), np.sum(prior_error ** 2)))),
        'acc': math.nan,
        'kappa': math.nan,
        'wauc': math.nan,
    }


def classification_metrics(actual: np.ndarray, predicted: np.ndarray, probabilities: np.ndarray,
                           prior: np.ndarray, classes: np.ndarray) -> Dict[str, float]:
    """
    Metrics for a nominal target.

    Error metrics are computed on class-probability vectors against the
    one-hot truth. The correlation coefficient is not defined (NaN).
    """
    actual = np.asarray(actual)
    predicted = np.asarray(predicted)
    n_classes = len(classes)
    truth = (actual[:, None] == classes[None, :]).astype(float)
    error = probabilities - truth
    prior_error = prior - truth

    return {
        'cc': math.nan,
        'mae': _safe(lambda: np.mean(np.sum(np.abs(error), axis=1) / n_classes)),
        'rmse': _safe(lambda: math.sqrt(np.mean(np.sum(error ** 2, axis=1) / n_classes))),
        'rae': _safe(lambda: 100.0 * _ratio(np.sum(np.abs(error)), np.sum(np.abs(prior_error)))),
        'rrse': _safe(lambda: 100.0 * math.sqrt(_ratio(np.sum(error ** 2), np.sum(prior_error ** 2)))),
        'acc': _safe(lambda: 100.0 * np.mean(predicted == actual)),
        'kappa': _safe(lambda: cohen_kappa_score(actual, predicted)),
        'wauc': _safe(lambda: weighted_auc(actual, probabilities, classes)),
    }


def weighted_auc(actual: np.ndarray, probabilities: np.ndarray, classes: np.ndarray) -> float:
    """One-vs-rest ROC AUC averaged with class-frequency weights."""
    if len(classes) == 2:
        # both one-vs-rest curves are mirror images, the weighted mean equals either
        return roc_auc_score(actual == classes[1], probabilities[:, 1])
    return roc_auc_score(actual, probabilities, multi_class='ovr', average='weighted', labels=classes)
