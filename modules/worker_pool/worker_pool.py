import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from modules.grid import GridPoint
from modules.performance import PerformanceRecord
from utils.exceptions import GridStateError


@dataclass
class TaskOutcome:
    """Result of one evaluation task: a record, or the point plus its error."""
    point: GridPoint
    record: Optional[PerformanceRecord] = None
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class BatchResult:
    outcomes: List[TaskOutcome] = field(default_factory=list)
    completed: int = 0
    failed: int = 0
    first_failure: Optional[TaskOutcome] = None

    @property
    def records(self) -> List[PerformanceRecord]:
        return [o.record for o in self.outcomes if not o.failed]


class EvaluationTask:
    """
    Evaluates one grid point at a given fold count.

    The point is mapped to parameter values, a fresh candidate is cloned
    from the builder's template, and the evaluator scores it. Exceptions
    are captured in the returned outcome rather than raised, so the pool
    can keep draining the rest of the pass.
    """

    def __init__(self, point: GridPoint, folds: int, dataset, builder, mapper, evaluator, seed: int):
        self.point = point
        self.folds = folds
        self.dataset = dataset
        self.builder = builder
        self.mapper = mapper
        self.evaluator = evaluator
        self.seed = seed

    def __call__(self) -> TaskOutcome:
        try:
            x_value, y_value = self.mapper.map_point(self.point)
            candidate = self.builder.build(x_value, y_value)
            metrics = self.evaluator.evaluate(candidate, self.dataset, self.folds, self.seed)
            return TaskOutcome(self.point, record=PerformanceRecord.from_metrics(self.point, metrics))
        except Exception as e:
            return TaskOutcome(self.point, error=e)

    def __repr__(self) -> str:
        return f"EvaluationTask(point={self.point}, folds={self.folds})"


class WorkerPool:
    """
    Bounded thread pool for one search pass.

    Started before a pass and stopped after it. ``run_all`` blocks until
    every submitted task has finished.
    """

    def __init__(self, num_slots: int = 1, logger: Optional[logging.Logger] = None):
        if num_slots < 1:
            raise ValueError(f"num_slots must be >= 1, got {num_slots}")
        self.num_slots = num_slots
        self.logger = logger or logging.getLogger(__name__)
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> None:
        if self._executor is not None:
            raise GridStateError("Worker pool already started.")
        self._executor = ThreadPoolExecutor(max_workers=self.num_slots, thread_name_prefix="grid-worker")
        self.logger.debug(f"Worker pool started with {self.num_slots} slot(s).")

    def stop(self) -> None:
        if self._executor is None:
            return
        self._executor.shutdown(wait=True)
        self._executor = None
        self.logger.debug("Worker pool stopped.")

    def __enter__(self) -> "WorkerPool":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def submit(self, task: Callable[[], Any]) -> Future:
        if self._executor is None:
            raise GridStateError("Worker pool is not running; call start() first.")
        return self._executor.submit(task)

    def run_all(self, tasks: List[Callable[[], TaskOutcome]]) -> BatchResult:
        """
        Submit all tasks and wait for each of them in submission order.

        Returns:
            BatchResult with every outcome, the completed/failed counts and
            the first failure in submission order.
        """
        futures = [self.submit(task) for task in tasks]
        total = len(futures)
        result = BatchResult()

        for future in futures:
            outcome = future.result()
            result.outcomes.append(outcome)
            if outcome.failed:
                result.failed += 1
                if result.first_failure is None:
                    result.first_failure = outcome
                self.logger.error(f"Evaluation of {outcome.point} failed: {outcome.error}")
            else:
                result.completed += 1
                self.logger.debug(f"Evaluated {outcome.record}")
            self.logger.info(
                f"Progress: completed={result.completed}, failed={result.failed}, "
                f"overall={result.completed + result.failed}/{total}"
            )

        return result
