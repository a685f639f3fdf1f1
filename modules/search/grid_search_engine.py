import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from modules.candidate import CandidateBuilder, ConfigurableCandidate
from modules.data_manager import DataManager, Dataset
from modules.evaluation_engine import CrossValidationEvaluator, Evaluator
from modules.grid import Grid, GridPoint
from modules.model_factory import ModelFactory
from modules.performance import Metric, PerformanceCache, PerformanceRecord, REGRESSION_ONLY_METRICS
from modules.search.search_controller import PassResult, SearchController
from modules.training_engine import TrainingEngine
from modules.value_mapper import AxisMapping, ValueMapper
from utils import constants
from utils.error_handling import handle_engine_errors
from utils.exceptions import ConfigurationError


@dataclass
class SearchResult:
    """Outcome of a full grid search, including the trained final candidate."""
    best_point: GridPoint
    values: Tuple[float, float]
    best_record: PerformanceRecord
    grid_extensions: int
    iterations: int
    uniform_performance: bool
    stop_reason: str
    final_grid: Grid
    final_candidate: Optional[ConfigurableCandidate] = None
    passes: List[PassResult] = field(default_factory=list)

    MEASURES = ('measureX', 'measureY', 'measureGridExtensionsPerformed')

    def get_measure(self, name: str) -> float:
        """Additional measures: best X/Y parameter value and extensions performed."""
        if name == 'measureX':
            return self.values[0]
        if name == 'measureY':
            return self.values[1]
        if name == 'measureGridExtensionsPerformed':
            return float(self.grid_extensions)
        raise ValueError(f"Measure '{name}' not supported! Available: {list(self.MEASURES)}")

    def summary(self) -> Dict[str, Any]:
        return {
            'best_point': {'x': self.best_point.x, 'y': self.best_point.y},
            'best_values': {'x': self.values[0], 'y': self.values[1]},
            'best_performance': self.best_record.as_dict(),
            'grid_extensions': self.grid_extensions,
            'iterations': self.iterations,
            'uniform_performance': self.uniform_performance,
            'stop_reason': self.stop_reason,
            'passes': len(self.passes),
            'final_grid': str(self.final_grid),
        }


class GridSearchEngine:
    """
    Builds an adaptive grid search from the configuration and runs it.

    The ``search`` section describes both axes (parameter path, grid bounds
    and the expression mapping a grid coordinate to a parameter value), the
    optimised metric and the refinement policy. After the search, the best
    point is mapped to parameter values and the resulting candidate is
    trained on the full dataset.
    """

    def __init__(self, config: dict, logger: logging.Logger, evaluator: Optional[Evaluator] = None,
                 template: Optional[Any] = None):
        self.config = config
        self.logger = logger
        self.search_cfg = config.get('search', {})
        self.metric = Metric.from_name(self.search_cfg.get('evaluation', 'CC'))
        self.x_cfg = self.search_cfg.get('x', {})
        self.y_cfg = self.search_cfg.get('y', {})

        if template is None:
            model_cfg = config.get('model', {})
            template = ModelFactory.create(model_cfg.get('name'), model_cfg.get('params', {}))
        self.template = template if isinstance(template, ConfigurableCandidate) else ConfigurableCandidate(template)

        self.grid = self.build_grid()
        self.mapper = ValueMapper(self._axis_mapping(self.x_cfg), self._axis_mapping(self.y_cfg), logger)
        self.builder = CandidateBuilder(
            self.template,
            self.x_cfg.get('property', 'C'),
            self.y_cfg.get('property', 'gamma'),
            x_kind=self.x_cfg.get('type'),
            y_kind=self.y_cfg.get('type'),
            logger=logger,
        )
        self.evaluator = evaluator or CrossValidationEvaluator(config, logger)
        self.cache = PerformanceCache()

    def build_grid(self) -> Grid:
        """Grid from the configured axis bounds, labelled for the logs."""
        return Grid(
            self._axis_value(self.x_cfg, 'min', -3), self._axis_value(self.x_cfg, 'max', 3),
            self._axis_value(self.x_cfg, 'step', 1),
            self._axis_value(self.y_cfg, 'min', -3), self._axis_value(self.y_cfg, 'max', 3),
            self._axis_value(self.y_cfg, 'step', 1),
            label_x=self._axis_label(self.x_cfg, 'C'),
            label_y=self._axis_label(self.y_cfg, 'gamma'),
        )

    def _axis_label(self, axis_cfg: Dict[str, Any], default_property: str) -> str:
        return (
            f"{type(self.template.estimator).__name__}, property "
            f"{axis_cfg.get('property', default_property)}, "
            f"expr. {axis_cfg.get('expression', constants.DEFAULT_EXPRESSION)}, "
            f"base {axis_cfg.get('base', constants.DEFAULT_BASE):g}"
        )

    @staticmethod
    def _axis_value(axis_cfg: Dict[str, Any], key: str, default: float) -> float:
        value = axis_cfg.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Axis setting '{key}' must be numeric, got {value!r}") from e

    def _axis_mapping(self, axis_cfg: Dict[str, Any]) -> AxisMapping:
        return AxisMapping(
            base=self._axis_value(axis_cfg, 'base', constants.DEFAULT_BASE),
            start=self._axis_value(axis_cfg, 'min', -3),
            end=self._axis_value(axis_cfg, 'max', 3),
            step=self._axis_value(axis_cfg, 'step', 1),
            expression=axis_cfg.get('expression', constants.DEFAULT_EXPRESSION),
        )

    def build_controller(self) -> SearchController:
        execution_cfg = self.config.get('execution', {})
        return SearchController(
            grid=self.grid,
            mapper=self.mapper,
            builder=self.builder,
            evaluator=self.evaluator,
            metric=self.metric,
            cache=self.cache,
            traversal=self.search_cfg.get('traversal', constants.TRAVERSAL_BY_COLUMN),
            grid_is_extendable=self.search_cfg.get('grid_is_extendable', False),
            max_grid_extensions=self.search_cfg.get('max_grid_extensions', constants.DEFAULT_MAX_GRID_EXTENSIONS),
            initial_folds=self.search_cfg.get('initial_folds', constants.INITIAL_FOLDS),
            refine_folds=self.search_cfg.get('refine_folds', constants.REFINE_FOLDS),
            num_slots=execution_cfg.get('num_slots', constants.DEFAULT_NUM_SLOTS),
            seed=self.search_cfg.get('seed', constants.DEFAULT_SEED),
            logger=self.logger,
        )

    @handle_engine_errors("Grid Search")
    def execute(self, dataset: Dataset, run_id: str = "", train_final: bool = True) -> SearchResult:
        """
        Run the search on ``dataset`` and train the winning candidate.

        Args:
            dataset: Full dataset (rows with a missing target already removed).
            run_id: Run identifier, recorded with the trained model.
            train_final: Whether to fit the final candidate.

        Returns:
            SearchResult.
        """
        if dataset.is_classification and self.metric in REGRESSION_ONLY_METRICS:
            raise ConfigurationError(
                f"Metric {self.metric.name} is undefined for classification data '{dataset.name}'; "
                "use ACC, KAPPA or WAUC."
            )

        seed = self.search_cfg.get('seed', constants.DEFAULT_SEED)
        percent = self.search_cfg.get('sample_size_percent', constants.DEFAULT_SAMPLE_SIZE_PERCENT)
        sample = DataManager(self.config, self.logger).subsample(dataset, percent, seed)

        self.logger.info(
            f"Grid search on '{dataset.name}' ({len(dataset)} rows, task={dataset.task}), "
            f"optimising {self.metric.description}:\n{self.grid}"
        )
        self.cache = PerformanceCache()
        controller = self.build_controller()
        outcome = controller.find_best(dataset, sample)

        values = self.mapper.map_point(outcome.best_point)
        if any(math.isnan(v) for v in values):
            raise ConfigurationError(f"Best point {outcome.best_point} maps to invalid values {values}")
        self.logger.info(
            f"Best point {outcome.best_point}: {self.builder.x_spec.path}={values[0]}, "
            f"{self.builder.y_spec.path}={values[1]}"
        )

        candidate = self.builder.build(*values)
        if train_final:
            parameters = {self.builder.x_spec.path: values[0], self.builder.y_spec.path: values[1]}
            candidate = TrainingEngine(self.config, self.logger).execute(candidate, dataset, parameters, run_id)

        return SearchResult(
            best_point=outcome.best_point,
            values=values,
            best_record=outcome.best_record,
            grid_extensions=outcome.grid_extensions,
            iterations=outcome.iterations,
            uniform_performance=outcome.uniform_performance,
            stop_reason=outcome.stop_reason,
            final_grid=outcome.grid,
            final_candidate=candidate,
            passes=outcome.passes,
        )
