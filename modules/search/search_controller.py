import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from modules.grid import Grid, GridPoint
from modules.performance import (Metric, PerformanceCache, PerformanceRecord, is_uniform,
                                 sort_performances)
from modules.reporting_engine.performance_table import PerformanceTable
from modules.worker_pool import EvaluationTask, WorkerPool
from utils import constants
from utils.exceptions import EvaluationError, GridStateError


class SearchState(Enum):
    INITIAL_PASS = "initial pass"
    REFINE = "refine"
    EXTEND_GRID = "extend grid"
    DONE = "done"


class StopReason:
    UNIFORM = "uniform performance"
    NO_IMPROVEMENT = "no better point found"
    BORDER_NOT_EXTENDABLE = "best point on border, grid not extendable"
    EXTENSION_BUDGET = "maximum number of grid extensions reached"


@dataclass
class PassResult:
    """One evaluated grid pass; ``records`` are sorted with the best last."""
    number: int
    grid: Grid
    folds: int
    records: List[PerformanceRecord]
    evaluated: int
    cached: int
    uniform: bool

    @property
    def best(self) -> PerformanceRecord:
        return self.records[-1]


@dataclass
class SearchOutcome:
    best_point: GridPoint
    best_record: PerformanceRecord
    grid: Grid
    grid_extensions: int
    iterations: int
    uniform_performance: bool
    stop_reason: str
    passes: List[PassResult] = field(default_factory=list)


class SearchController:
    """
    Hill-climbing search over a two-dimensional grid.

    The initial pass scores every grid point at low fidelity on a sample.
    Each refinement re-centres a 3x3 neighbourhood on the current best
    point and scores it at high fidelity on the full data, extending the
    grid first when the best point sits on its border. The search stops on
    uniform performance, when the best point no longer moves, or when a
    border point can no longer be extended.
    """

    def __init__(self, grid: Grid, mapper, builder, evaluator, metric: Metric,
                 cache: Optional[PerformanceCache] = None,
                 traversal: str = constants.TRAVERSAL_BY_COLUMN,
                 grid_is_extendable: bool = False,
                 max_grid_extensions: int = constants.DEFAULT_MAX_GRID_EXTENSIONS,
                 initial_folds: int = constants.INITIAL_FOLDS,
                 refine_folds: int = constants.REFINE_FOLDS,
                 num_slots: int = constants.DEFAULT_NUM_SLOTS,
                 seed: int = constants.DEFAULT_SEED,
                 logger: Optional[logging.Logger] = None):
        self.grid = grid
        self.mapper = mapper
        self.builder = builder
        self.evaluator = evaluator
        self.metric = metric
        self.cache = cache if cache is not None else PerformanceCache()
        self.traversal = traversal
        self.grid_is_extendable = grid_is_extendable
        self.max_grid_extensions = max_grid_extensions
        self.initial_folds = initial_folds
        self.refine_folds = refine_folds
        self.num_slots = num_slots
        self.seed = seed
        self.logger = logger or logging.getLogger(__name__)

        self.state = SearchState.INITIAL_PASS
        self.stop_reason: Optional[str] = None
        self.grid_extensions = 0
        self.iterations = 0
        self.uniform_performance = False
        self.passes: List[PassResult] = []

    def find_best(self, dataset, sample=None) -> SearchOutcome:
        """
        Run the search to completion.

        Args:
            dataset: Full dataset, used by the refinement passes.
            sample: Subsample for the initial pass (defaults to ``dataset``).

        Returns:
            SearchOutcome with the best grid point and the search counters.

        Raises:
            EvaluationError: If any point of a pass failed to evaluate.
            GridStateError: If a pass was served entirely from the cache.
        """
        self.state = SearchState.INITIAL_PASS
        self.stop_reason = None
        self.grid_extensions = 0
        self.iterations = 0
        self.uniform_performance = False
        self.passes = []

        self.logger.info("=== Initial grid - Start ===")
        on_sample = sample is not None and sample is not dataset
        current = self._determine_best_in_grid(self.grid, sample if on_sample else dataset,
                                               self.initial_folds, on_sample)
        self.logger.info(f"Result of initial pass: {current.best.describe(self.metric)}")
        self.logger.info("=== Initial grid - End ===")

        best = current.best
        if current.uniform:
            self._finish(StopReason.UNIFORM)

        while self.state is not SearchState.DONE:
            self.state = SearchState.REFINE
            previous = best.point
            center = self.grid.nearest_index(previous)

            if self.grid.is_on_border(center):
                self.logger.info(f"Best point {previous} is on the border of the grid.")
                if not self.grid_is_extendable:
                    self._finish(StopReason.BORDER_NOT_EXTENDABLE)
                    break
                if self.grid_extensions >= self.max_grid_extensions:
                    self.logger.info("Maximum number of extensions reached!")
                    self._finish(StopReason.EXTENSION_BUDGET)
                    break
                self.state = SearchState.EXTEND_GRID
                self.grid = self.grid.extend(previous)
                self.grid_extensions += 1
                center = self.grid.nearest_index(previous)
                self.logger.info(
                    f"Extending grid ({self.grid_extensions}/{self.max_grid_extensions}):\n{self.grid}"
                )
                self.state = SearchState.REFINE

            self.iterations += 1
            neighbourhood = self.grid.subgrid(center.y + 1, center.x - 1, center.y - 1, center.x + 1)
            current = self._determine_best_in_grid(neighbourhood, dataset, self.refine_folds)
            best = current.best
            self.logger.info(f"Result of iteration {self.iterations}: {best.describe(self.metric)}")

            if current.uniform:
                self._finish(StopReason.UNIFORM)
            elif best.point == previous:
                self._finish(StopReason.NO_IMPROVEMENT)

        self.logger.info(f"Final result: {best.point} ({self.stop_reason})")
        return SearchOutcome(
            best_point=best.point,
            best_record=best,
            grid=self.grid,
            grid_extensions=self.grid_extensions,
            iterations=self.iterations,
            uniform_performance=self.uniform_performance,
            stop_reason=self.stop_reason,
            passes=list(self.passes),
        )

    def _finish(self, reason: str) -> None:
        if reason == StopReason.UNIFORM:
            self.uniform_performance = True
        self.stop_reason = reason
        self.state = SearchState.DONE

    def _determine_best_in_grid(self, grid: Grid, dataset, folds: int, on_sample: bool = False) -> PassResult:
        """
        Evaluate every point of ``grid`` at ``folds``, reusing cached scores.

        Scores are cached per fidelity: the fold count and whether they were
        computed on the subsample or the full dataset.
        """
        fidelity = (folds, on_sample)
        self.logger.info(f"Determining best pair with {folds}-fold CV in Grid:\n{grid}")

        records: List[PerformanceRecord] = []
        tasks: List[EvaluationTask] = []
        for point in grid.points(self.traversal):
            cached = self.cache.lookup(fidelity, point)
            if cached is not None:
                records.append(cached)
                self.logger.info(f"{cached.describe(self.metric)}: cached=true")
            else:
                self.logger.debug(f"{point}: cached=false")
                tasks.append(EvaluationTask(point, folds, dataset, self.builder, self.mapper,
                                            self.evaluator, self.seed))

        if not tasks:
            raise GridStateError("All points were already cached - abnormal state!")

        with WorkerPool(self.num_slots, self.logger) as pool:
            batch = pool.run_all(tasks)

        if batch.first_failure is not None:
            failure = batch.first_failure
            raise EvaluationError(
                f"Search stopped: {batch.failed} of {len(tasks)} evaluation(s) failed, "
                f"first at {failure.point}: {failure.error}",
                point=failure.point,
            ) from failure.error

        for record in batch.records:
            self.cache.store(fidelity, record)
            records.append(record)

        ordered = sort_performances(records, self.metric)
        result = PassResult(
            number=len(self.passes) + 1,
            grid=grid,
            folds=folds,
            records=ordered,
            evaluated=len(tasks),
            cached=len(records) - len(tasks),
            uniform=is_uniform(ordered, self.metric),
        )
        self.passes.append(result)

        table = PerformanceTable(grid, ordered, self.metric)
        self.logger.info(f"{table}")
        self.logger.debug(table.to_gnuplot())
        return result
