import inspect
from typing import Dict, Any, List

from sklearn.base import is_classifier
from sklearn.ensemble import (
    ExtraTreesClassifier,
    ExtraTreesRegressor,
    GradientBoostingClassifier,
    GradientBoostingRegressor,
    RandomForestClassifier,
    RandomForestRegressor,
)
from sklearn.gaussian_process import GaussianProcessRegressor
from sklearn.gaussian_process.kernels import RBF, WhiteKernel
from sklearn.kernel_ridge import KernelRidge
from sklearn.linear_model import ElasticNet, Lasso, LogisticRegression, Ridge
from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor
from sklearn.neural_network import MLPClassifier, MLPRegressor
from sklearn.svm import SVC, SVR, NuSVR
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from utils.exceptions import ConfigurationError


class ModelFactory:
    """
    Factory for the estimators a grid search can tune.
    Splits the catalogue by task so the evaluator knows which metrics apply.
    """

    CLASSIFIERS = {
        # Kernel machines (the classic C / gamma search)
        'SVC': SVC,
        'LogisticRegression': LogisticRegression,

        # Ensembles (Trees)
        'RandomForestClassifier': RandomForestClassifier,
        'ExtraTreesClassifier': ExtraTreesClassifier,
        'GradientBoostingClassifier': GradientBoostingClassifier,
        'DecisionTreeClassifier': DecisionTreeClassifier,

        # Nearest Neighbors / Neural Networks
        'KNeighborsClassifier': KNeighborsClassifier,
        'MLPClassifier': MLPClassifier,
    }

    REGRESSORS = {
        # Kernel machines
        'SVR': SVR,
        'NuSVR': NuSVR,
        'KernelRidge': KernelRidge,
        'GaussianProcessRegressor': GaussianProcessRegressor,

        # Linear
        'Ridge': Ridge,
        'Lasso': Lasso,
        'ElasticNet': ElasticNet,

        # Ensembles (Trees)
        'RandomForestRegressor': RandomForestRegressor,
        'ExtraTreesRegressor': ExtraTreesRegressor,
        'GradientBoostingRegressor': GradientBoostingRegressor,
        'DecisionTreeRegressor': DecisionTreeRegressor,

        # Nearest Neighbors / Neural Networks
        'KNeighborsRegressor': KNeighborsRegressor,
        'MLPRegressor': MLPRegressor,
    }

    @classmethod
    def create(cls, model_name: str, params: Dict[str, Any] = None) -> Any:
        """
        Create and return an (unfitted) estimator.

        Raises:
            ConfigurationError: If the model name is unknown.
        """
        if params is None:
            params = {}

        if model_name in cls.CLASSIFIERS:
            model_class = cls.CLASSIFIERS[model_name]
        elif model_name in cls.REGRESSORS:
            model_class = cls.REGRESSORS[model_name]
        else:
            raise ConfigurationError(
                f"Unknown model name: {model_name}. Available: {cls.get_available_models()}"
            )

        valid_params = cls._filter_params(model_class, params)
        if model_class is GaussianProcessRegressor and 'kernel' not in valid_params:
            # default kernel exposes kernel__k1__length_scale / kernel__k2__noise_level
            valid_params['kernel'] = RBF() + WhiteKernel()
        return model_class(**valid_params)

    @classmethod
    def get_available_models(cls) -> List[str]:
        """Return list of all supported model names."""
        return list(cls.CLASSIFIERS.keys()) + list(cls.REGRESSORS.keys())

    @staticmethod
    def is_classifier(estimator: Any) -> bool:
        return is_classifier(estimator)

    @staticmethod
    def _filter_params(model_class, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove parameters from `params` that are not accepted by `model_class` constructor.
        """
        sig = inspect.signature(model_class.__init__)

        valid_keys = [
            p.name for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        ]

        # Always allow **kwargs if the model supports it
        has_kwargs = any(p.kind == p.VAR_KEYWORD for p in sig.parameters.values())

        if has_kwargs:
            return dict(params)

        return {k: v for k, v in params.items() if k in valid_keys}
