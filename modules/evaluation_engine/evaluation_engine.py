import abc
import logging
import numpy as np
from typing import Any, Dict, List, Optional

from joblib import Parallel, delayed
from sklearn.base import clone
from sklearn.model_selection import KFold, StratifiedKFold

from modules.data_manager import Dataset
from modules.evaluation_engine.metrics import classification_metrics, regression_metrics


class Evaluator(abc.ABC):
    """
    Scores one configured candidate at a given fidelity.

    Implementations must be deterministic for a fixed seed and fold count
    and raise on failure; the search treats any exception as a failed point.
    """

    @abc.abstractmethod
    def evaluate(self, candidate: Any, dataset: Dataset, folds: int, seed: int) -> Dict[str, float]:
        """
        Returns:
            Metric values keyed by metric name ('cc', 'rmse', ...).
        """
        raise NotImplementedError("Subclasses must implement evaluate.")


class CrossValidationEvaluator(Evaluator):
    """
    K-fold cross-validation with pooled out-of-fold predictions.

    Classification uses stratified folds when the class counts allow it
    and falls back to plain K-fold otherwise. Folds may run in parallel
    through joblib (``execution.n_jobs``).
    """

    def __init__(self, config: dict, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.n_jobs = config.get('execution', {}).get('n_jobs', 1)

    def evaluate(self, candidate: Any, dataset: Dataset, folds: int, seed: int) -> Dict[str, float]:
        estimator = getattr(candidate, 'estimator', candidate)
        X, y = dataset.X, dataset.y
        classes = np.unique(y.to_numpy()) if dataset.is_classification else None

        splits = self._make_splits(dataset, folds, seed)

        fold_results = Parallel(n_jobs=self.n_jobs)(
            delayed(_run_single_fold)(estimator, X, y, train_idx, test_idx, classes)
            for train_idx, test_idx in splits
        )

        return self._aggregate(fold_results, y.to_numpy(), classes)

    def _make_splits(self, dataset: Dataset, folds: int, seed: int) -> List:
        X, y = dataset.X, dataset.y
        if dataset.is_classification:
            try:
                cv = StratifiedKFold(n_splits=folds, shuffle=True, random_state=seed)
                return list(cv.split(X, y))
            except ValueError as e:
                self.logger.debug(f"Stratified {folds}-fold CV not possible ({e}); using KFold.")
        cv = KFold(n_splits=folds, shuffle=True, random_state=seed)
        return list(cv.split(X))

    @staticmethod
    def _aggregate(fold_results: List[Dict[str, Any]], y: np.ndarray,
                   classes: Optional[np.ndarray]) -> Dict[str, float]:
        index = np.concatenate([f['index'] for f in fold_results])
        actual = y[index]
        predicted = np.concatenate([f['predicted'] for f in fold_results])

        if classes is None:
            prior = np.concatenate([np.full(len(f['index']), f['prior']) for f in fold_results])
            return regression_metrics(actual, predicted, prior)

        probabilities = np.vstack([f['probabilities'] for f in fold_results])
        prior = np.vstack([np.tile(f['prior'], (len(f['index']), 1)) for f in fold_results])
        return classification_metrics(actual, predicted, probabilities, prior, classes)


def _run_single_fold(estimator, X, y, train_idx, test_idx, classes) -> Dict[str, Any]:
    """Fit a fresh clone on one fold and collect its out-of-fold predictions."""
    X_train, X_test = X.iloc[train_idx], X.iloc[test_idx]
    y_train = y.iloc[train_idx]

    model = clone(estimator)
    model.fit(X_train, y_train)
    predicted = np.asarray(model.predict(X_test))

    result = {'index': test_idx, 'predicted': predicted}
    if classes is None:
        result['prior'] = float(np.mean(y_train.to_numpy(dtype=float)))
        return result

    # prior: class frequencies of the training fold
    counts = np.array([np.sum(y_train.to_numpy() == c) for c in classes], dtype=float)
    result['prior'] = counts / counts.sum()

    probabilities = np.zeros((len(test_idx), len(classes)))
    if hasattr(model, 'predict_proba'):
        fold_proba = model.predict_proba(X_test)
        columns = np.searchsorted(classes, model.classes_)
        probabilities[:, columns] = fold_proba
    else:
        probabilities[np.arange(len(test_idx)), np.searchsorted(classes, predicted)] = 1.0
    result['probabilities'] = probabilities
    return result
