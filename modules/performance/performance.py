import functools
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping

from modules.grid import GridPoint
from utils.exceptions import ConfigurationError


class Metric(Enum):
    """
    Scoring metrics a search can optimise.

    Each member carries its short tag, a readable description and whether
    larger values are better.
    """
    CC = ("CC", "Correlation coefficient", True)
    RMSE = ("RMSE", "Root mean squared error", False)
    RRSE = ("RRSE", "Root relative squared error", False)
    MAE = ("MAE", "Mean absolute error", False)
    RAE = ("RAE", "Relative absolute error", False)
    COMBINED = ("COMB", "Combined = (1-abs(CC)) + RRSE + RAE", False)
    ACC = ("ACC", "Accuracy", True)
    KAPPA = ("KAP", "Kappa", True)
    WAUC = ("WAUC", "Weighted AUC", True)

    def __init__(self, tag: str, description: str, higher_is_better: bool):
        self.tag = tag
        self.description = description
        self.higher_is_better = higher_is_better

    @property
    def key(self) -> str:
        """Name used in metric dictionaries (e.g. 'rmse')."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "Metric":
        """Resolve a metric from its enum name or short tag (case-insensitive)."""
        wanted = str(name).strip().upper()
        for metric in cls:
            if wanted in (metric.name, metric.tag):
                return metric
        valid = [m.name for m in cls]
        raise ConfigurationError(f"Unknown evaluation metric '{name}'. Available: {valid}")


# Metrics reported by an evaluator; COMBINED is always derived.
MEASURED_METRICS = [m for m in Metric if m is not Metric.COMBINED]

# Undefined (always NaN) on classification tasks.
REGRESSION_ONLY_METRICS = frozenset({Metric.CC, Metric.COMBINED})


@dataclass(frozen=True)
class PerformanceRecord:
    """Scores of one evaluated grid point. Missing metrics are NaN."""
    point: GridPoint
    cc: float = math.nan
    rmse: float = math.nan
    rrse: float = math.nan
    mae: float = math.nan
    rae: float = math.nan
    acc: float = math.nan
    wauc: float = math.nan
    kappa: float = math.nan

    @classmethod
    def from_metrics(cls, point: GridPoint, metrics: Mapping[str, float]) -> "PerformanceRecord":
        values = {}
        for metric in MEASURED_METRICS:
            raw = metrics.get(metric.key, math.nan)
            try:
                values[metric.key] = float(raw)
            except (TypeError, ValueError):
                values[metric.key] = math.nan
        return cls(point=point, **values)

    @property
    def combined(self) -> float:
        return (1 - abs(self.cc)) + self.rrse + self.rae

    def get(self, metric: Metric) -> float:
        if metric is Metric.COMBINED:
            return self.combined
        return getattr(self, metric.key)

    def as_dict(self) -> Dict[str, float]:
        row = {'x': self.point.x, 'y': self.point.y}
        for metric in Metric:
            row[metric.key] = self.get(metric)
        return row

    def describe(self, metric: Metric) -> str:
        return f"Performance ({self.point}): {self.get(metric)} ({metric.tag})"

    def __str__(self) -> str:
        scores = ", ".join(f"{self.get(m)} ({m.tag})" for m in Metric)
        return f"Performance ({self.point}): {scores}"


class PerformanceComparator:
    """
    Total order over records for one metric, best compares greatest.

    NaN scores rank below every number for either direction. Values are
    compared numerically; equal scores (both NaN included) fall back to the
    X coordinate, then the Y coordinate. For lower-is-better metrics the
    result is inverted, except for the NaN ranking.
    """

    def __init__(self, metric: Metric):
        self.metric = metric

    def __call__(self, first: PerformanceRecord, second: PerformanceRecord) -> int:
        return self.compare(first, second)

    def compare(self, first: PerformanceRecord, second: PerformanceRecord) -> int:
        p1 = first.get(self.metric)
        p2 = second.get(self.metric)

        nan1, nan2 = math.isnan(p1), math.isnan(p2)
        if nan1 != nan2:
            return -1 if nan1 else 1

        if p1 < p2:
            result = -1
        elif p1 > p2:
            result = 1
        elif first.point.x < second.point.x:
            result = -1
        elif first.point.x > second.point.x:
            result = 1
        elif first.point.y < second.point.y:
            result = -1
        elif first.point.y > second.point.y:
            result = 1
        else:
            result = 0

        if not self.metric.higher_is_better:
            result = -result
        return result

    def __eq__(self, other) -> bool:
        return isinstance(other, PerformanceComparator) and other.metric is self.metric

    def __hash__(self) -> int:
        return hash(self.metric)


def sort_performances(records: Iterable[PerformanceRecord], metric: Metric) -> List[PerformanceRecord]:
    """Sort ascending under the comparator; the best record ends up last."""
    return sorted(records, key=functools.cmp_to_key(PerformanceComparator(metric)))


def is_uniform(records: List[PerformanceRecord], metric: Metric) -> bool:
    """True when every record has the same score (NaN scores are never equal)."""
    if not records:
        return False
    first = records[0].get(metric)
    return all(r.get(metric) == first for r in records[1:])
