import logging
import math
import numpy as np
import pandas as pd
import pytest
from unittest.mock import MagicMock

from sklearn.datasets import make_classification, make_regression
from sklearn.dummy import DummyRegressor
from sklearn.linear_model import LinearRegression
from sklearn.neighbors import KNeighborsClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from modules.candidate import ConfigurableCandidate
from modules.data_manager import Dataset
from modules.evaluation_engine import CrossValidationEvaluator, Evaluator
from utils import constants


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def evaluator(mock_logger):
    return CrossValidationEvaluator({'execution': {'n_jobs': 1}}, mock_logger)


@pytest.fixture
def regression_dataset():
    X, y = make_regression(n_samples=60, n_features=3, noise=0.1, random_state=0)
    return Dataset(pd.DataFrame(X, columns=['a', 'b', 'c']), pd.Series(y), constants.TASK_REGRESSION, "reg")


@pytest.fixture
def classification_dataset():
    X, y = make_classification(n_samples=80, n_features=4, n_informative=3, n_redundant=0,
                               n_classes=3, n_clusters_per_class=1, random_state=0)
    labels = np.array(['red', 'green', 'blue'])[y]
    return Dataset(pd.DataFrame(X), pd.Series(labels), constants.TASK_CLASSIFICATION, "clf")


def test_evaluator_is_abstract():
    with pytest.raises(TypeError):
        Evaluator()


def test_regression_metrics(evaluator, regression_dataset):
    scores = evaluator.evaluate(ConfigurableCandidate(LinearRegression()), regression_dataset, 5, seed=1)

    assert scores['cc'] > 0.99
    assert scores['rmse'] < 1.0
    assert 0 <= scores['rae'] < 5.0
    assert 0 <= scores['rrse'] < 5.0
    assert math.isnan(scores['acc'])
    assert math.isnan(scores['kappa'])
    assert math.isnan(scores['wauc'])


def test_prior_predictor_scores_about_one_hundred_percent(evaluator, regression_dataset):
    scores = evaluator.evaluate(DummyRegressor(strategy='mean'), regression_dataset, 4, seed=1)
    assert scores['rae'] == pytest.approx(100.0)
    assert scores['rrse'] == pytest.approx(100.0)


def test_classification_metrics_with_probabilities(evaluator, classification_dataset):
    scores = evaluator.evaluate(ConfigurableCandidate(KNeighborsClassifier(n_neighbors=5)),
                                classification_dataset, 4, seed=1)

    assert 50.0 < scores['acc'] <= 100.0
    assert 0.0 < scores['kappa'] <= 1.0
    assert 0.5 < scores['wauc'] <= 1.0
    assert 0.0 <= scores['mae'] <= 1.0
    assert scores['rrse'] < 100.0
    assert math.isnan(scores['cc'])


def test_classifier_without_probabilities(evaluator, classification_dataset):
    scores = evaluator.evaluate(SVC(probability=False), classification_dataset, 3, seed=1)
    assert not math.isnan(scores['acc'])
    assert not math.isnan(scores['rmse'])


def test_same_seed_same_scores(evaluator, classification_dataset):
    candidate = DecisionTreeClassifier(random_state=0)
    first = evaluator.evaluate(candidate, classification_dataset, 2, seed=7)
    second = evaluator.evaluate(candidate, classification_dataset, 2, seed=7)
    assert first == second


def test_stratification_falls_back_to_kfold(evaluator, mock_logger):
    X = pd.DataFrame({'f': np.arange(12, dtype=float)})
    y = pd.Series(['a'] * 11 + ['b'])
    dataset = Dataset(X, y, constants.TASK_CLASSIFICATION, "rare")

    splits = evaluator._make_splits(dataset, 12, seed=1)

    assert len(splits) == 12
    mock_logger.debug.assert_called()


def test_fit_failure_propagates(evaluator, regression_dataset):
    broken = SVC(C=-1.0)
    with pytest.raises(Exception):
        evaluator.evaluate(broken, regression_dataset, 2, seed=1)


def test_parallel_folds(mock_logger, regression_dataset):
    parallel = CrossValidationEvaluator({'execution': {'n_jobs': 2}}, mock_logger)
    serial = CrossValidationEvaluator({'execution': {'n_jobs': 1}}, mock_logger)
    assert parallel.evaluate(LinearRegression(), regression_dataset, 3, 1) == \
        pytest.approx(serial.evaluate(LinearRegression(), regression_dataset, 3, 1), nan_ok=True)
