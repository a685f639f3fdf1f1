import logging
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from sklearn.base import clone

from utils.exceptions import ConfigurationError


class ParameterKind(Enum):
    """The value kinds a tuned parameter can take."""
    FLOAT = "float"
    INTEGER = "integer"
    BOOLEAN = "boolean"

    @classmethod
    def from_name(cls, name: str) -> "ParameterKind":
        aliases = {'float': cls.FLOAT, 'double': cls.FLOAT, 'int': cls.INTEGER,
                   'integer': cls.INTEGER, 'long': cls.INTEGER, 'bool': cls.BOOLEAN,
                   'boolean': cls.BOOLEAN}
        try:
            return aliases[str(name).lower()]
        except KeyError:
            raise ConfigurationError(f"Unknown parameter type '{name}'. Use float, integer or boolean.")

    @classmethod
    def infer(cls, current: Any) -> "ParameterKind":
        """Derive the kind from a parameter's current value (bool before int)."""
        if isinstance(current, bool):
            return cls.BOOLEAN
        if isinstance(current, numbers.Integral):
            return cls.INTEGER
        return cls.FLOAT

    def coerce(self, value: float) -> Union[float, int, bool]:
        if self is ParameterKind.INTEGER:
            return int(value)
        if self is ParameterKind.BOOLEAN:
            return value != 0
        return float(value)


@dataclass(frozen=True)
class ParameterSpec:
    """
    A tunable parameter of the base estimator.

    ``path`` accepts the dotted form (``kernel.gamma``) and is stored in the
    scikit-learn nested form (``kernel__gamma``).
    """
    path: str
    kind: ParameterKind

    @staticmethod
    def normalize_path(path: str) -> str:
        return path.strip().replace('.', '__')


class ConfigurableCandidate:
    """
    A model candidate whose parameters can be set by path.

    Wraps any estimator exposing ``get_params``/``set_params``.
    """

    def __init__(self, estimator: Any):
        self.estimator = estimator

    def clone(self) -> "ConfigurableCandidate":
        """Unfitted deep copy with identical parameters."""
        return ConfigurableCandidate(clone(self.estimator))

    def has_parameter(self, path: str) -> bool:
        return path in self.estimator.get_params(deep=True)

    def get_parameter(self, path: str) -> Any:
        return self.estimator.get_params(deep=True)[path]

    def set_parameter(self, spec: ParameterSpec, value: float) -> "ConfigurableCandidate":
        self.estimator.set_params(**{spec.path: spec.kind.coerce(value)})
        return self

    def fit(self, X, y) -> "ConfigurableCandidate":
        self.estimator.fit(X, y)
        return self

    def predict(self, X):
        return self.estimator.predict(X)

    def __repr__(self) -> str:
        return f"ConfigurableCandidate({self.estimator!r})"


class CandidateBuilder:
    """
    Builds per-point candidates from a read-only template.

    Both parameter paths are checked against the template once; the kind of
    each parameter comes from the configuration or, when absent, from the
    template's current value.
    """

    def __init__(self, template: ConfigurableCandidate, x_path: str, y_path: str,
                 x_kind: Optional[str] = None, y_kind: Optional[str] = None,
                 logger: Optional[logging.Logger] = None):
        self.template = template
        self.logger = logger or logging.getLogger(__name__)
        self.x_spec = self._resolve(x_path, x_kind, "X")
        self.y_spec = self._resolve(y_path, y_kind, "Y")

    def _resolve(self, path: str, kind: Optional[str], axis: str) -> ParameterSpec:
        normalized = ParameterSpec.normalize_path(path)
        if not normalized or not self.template.has_parameter(normalized):
            raise ConfigurationError(
                f"{axis} property '{path}' is not a parameter of "
                f"{type(self.template.estimator).__name__}"
            )
        if kind is not None:
            resolved = ParameterKind.from_name(kind)
        else:
            resolved = ParameterKind.infer(self.template.get_parameter(normalized))
        self.logger.debug(f"{axis} property '{normalized}' resolved as {resolved.value}")
        return ParameterSpec(normalized, resolved)

    def build(self, x_value: float, y_value: float) -> ConfigurableCandidate:
        """Clone the template and set both tuned parameters."""
        candidate = self.template.clone()
        candidate.set_parameter(self.x_spec, x_value)
        candidate.set_parameter(self.y_spec, y_value)
        return candidate
