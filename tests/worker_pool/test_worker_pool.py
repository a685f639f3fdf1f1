import logging
import threading
import pytest
from unittest.mock import MagicMock

from modules.grid import GridPoint
from modules.worker_pool import EvaluationTask, TaskOutcome, WorkerPool
from modules.performance import PerformanceRecord
from utils.exceptions import GridStateError


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


def ok(point, cc=0.5):
    return lambda: TaskOutcome(point, record=PerformanceRecord.from_metrics(point, {'cc': cc}))


def failing(point):
    return lambda: TaskOutcome(point, error=RuntimeError(f"boom at {point}"))


def test_pool_must_be_started(mock_logger):
    pool = WorkerPool(1, mock_logger)
    with pytest.raises(GridStateError):
        pool.submit(lambda: None)


def test_invalid_slot_count(mock_logger):
    with pytest.raises(ValueError):
        WorkerPool(0, mock_logger)


def test_context_manager_starts_and_stops(mock_logger):
    pool = WorkerPool(2, mock_logger)
    with pool:
        assert pool.running
    assert not pool.running
    pool.start()
    with pytest.raises(GridStateError):
        pool.start()
    pool.stop()


def test_run_all_collects_in_submission_order(mock_logger):
    points = [GridPoint(i, 0) for i in range(6)]
    with WorkerPool(3, mock_logger) as pool:
        batch = pool.run_all([ok(p) for p in points])

    assert batch.completed == 6
    assert batch.failed == 0
    assert batch.first_failure is None
    assert [o.point for o in batch.outcomes] == points
    assert len(batch.records) == 6


def test_failures_counted_and_first_kept(mock_logger):
    tasks = [ok(GridPoint(0, 0)), failing(GridPoint(1, 0)), ok(GridPoint(2, 0)), failing(GridPoint(3, 0))]
    with WorkerPool(2, mock_logger) as pool:
        batch = pool.run_all(tasks)

    assert batch.completed == 2
    assert batch.failed == 2
    assert batch.first_failure.point == GridPoint(1, 0)
    assert len(batch.outcomes) == 4
    mock_logger.error.assert_called()


def test_concurrency_bounded_by_slots(mock_logger):
    lock = threading.Lock()
    active = {'now': 0, 'peak': 0}
    barrier = threading.Barrier(2, timeout=5)

    def task(point):
        def run():
            with lock:
                active['now'] += 1
                active['peak'] = max(active['peak'], active['now'])
            barrier.wait()
            with lock:
                active['now'] -= 1
            return TaskOutcome(point, record=PerformanceRecord.from_metrics(point, {}))
        return run

    with WorkerPool(2, mock_logger) as pool:
        batch = pool.run_all([task(GridPoint(i, 0)) for i in range(4)])

    assert batch.completed == 4
    assert active['peak'] == 2


def test_progress_logged(mock_logger):
    with WorkerPool(1, mock_logger) as pool:
        pool.run_all([ok(GridPoint(0, 0))])
    messages = [c.args[0] for c in mock_logger.info.call_args_list]
    assert any("Progress: completed=1, failed=0, overall=1/1" in m for m in messages)


# --- EvaluationTask ---

def test_evaluation_task_maps_builds_and_scores():
    mapper = MagicMock()
    mapper.map_point.return_value = (10.0, 0.1)
    builder = MagicMock()
    evaluator = MagicMock()
    evaluator.evaluate.return_value = {'cc': 0.7, 'rmse': 0.2}
    point = GridPoint(1, -1)

    outcome = EvaluationTask(point, 10, "dataset", builder, mapper, evaluator, seed=3)()

    builder.build.assert_called_once_with(10.0, 0.1)
    evaluator.evaluate.assert_called_once_with(builder.build.return_value, "dataset", 10, 3)
    assert not outcome.failed
    assert outcome.record.point == point
    assert outcome.record.cc == 0.7


def test_evaluation_task_captures_errors():
    evaluator = MagicMock()
    evaluator.evaluate.side_effect = ValueError("bad fit")
    mapper = MagicMock()
    mapper.map_point.return_value = (1.0, 1.0)

    outcome = EvaluationTask(GridPoint(0, 0), 2, None, MagicMock(), mapper, evaluator, seed=1)()

    assert outcome.failed
    assert isinstance(outcome.error, ValueError)
    assert outcome.record is None
