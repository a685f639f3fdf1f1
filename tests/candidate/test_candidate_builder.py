import logging
import pytest
from unittest.mock import MagicMock

from sklearn.gaussian_process import GaussianProcessRegressor
from sklearn.gaussian_process.kernels import RBF
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from modules.candidate import CandidateBuilder, ConfigurableCandidate, ParameterKind, ParameterSpec
from utils.exceptions import ConfigurationError


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


def test_kind_aliases_and_inference():
    assert ParameterKind.from_name("double") is ParameterKind.FLOAT
    assert ParameterKind.from_name("INT") is ParameterKind.INTEGER
    assert ParameterKind.infer(True) is ParameterKind.BOOLEAN
    assert ParameterKind.infer(3) is ParameterKind.INTEGER
    assert ParameterKind.infer("scale") is ParameterKind.FLOAT
    with pytest.raises(ConfigurationError):
        ParameterKind.from_name("string")


def test_coercion():
    assert ParameterKind.INTEGER.coerce(3.9) == 3
    assert ParameterKind.INTEGER.coerce(-3.9) == -3
    assert ParameterKind.BOOLEAN.coerce(0.0) is False
    assert ParameterKind.BOOLEAN.coerce(2.0) is True
    assert isinstance(ParameterKind.FLOAT.coerce(1), float)


def test_dotted_path_normalized():
    assert ParameterSpec.normalize_path("kernel.length_scale") == "kernel__length_scale"


def test_build_sets_both_parameters_on_a_clone(mock_logger):
    template = ConfigurableCandidate(SVC(C=1.0, gamma='scale'))
    builder = CandidateBuilder(template, "C", "gamma", logger=mock_logger)

    candidate = builder.build(100.0, 0.01)

    assert candidate.estimator.C == 100.0
    assert candidate.estimator.gamma == 0.01
    assert candidate.estimator is not template.estimator
    assert template.estimator.C == 1.0
    assert template.estimator.gamma == 'scale'


def test_nested_parameter_path(mock_logger):
    template = ConfigurableCandidate(GaussianProcessRegressor(kernel=RBF(length_scale=1.0)))
    builder = CandidateBuilder(template, "kernel.length_scale", "alpha", logger=mock_logger)

    candidate = builder.build(0.5, 1e-3)

    assert candidate.get_parameter("kernel__length_scale") == 0.5
    assert candidate.estimator.alpha == 1e-3


def test_integer_kind_inferred_from_template(mock_logger):
    template = ConfigurableCandidate(DecisionTreeClassifier(max_depth=3, min_samples_split=2))
    builder = CandidateBuilder(template, "max_depth", "min_samples_split", logger=mock_logger)

    assert builder.x_spec.kind is ParameterKind.INTEGER
    candidate = builder.build(5.7, 4.2)
    assert candidate.estimator.max_depth == 5
    assert candidate.estimator.min_samples_split == 4


def test_configured_kind_overrides_inference(mock_logger):
    template = ConfigurableCandidate(DecisionTreeClassifier(max_depth=None))
    builder = CandidateBuilder(template, "max_depth", "min_samples_leaf",
                               x_kind="integer", logger=mock_logger)
    assert builder.x_spec.kind is ParameterKind.INTEGER


def test_unknown_property_rejected(mock_logger):
    template = ConfigurableCandidate(SVC())
    with pytest.raises(ConfigurationError, match="not a parameter of SVC"):
        CandidateBuilder(template, "C", "no_such_param", logger=mock_logger)
