import math
import pytest

from modules.grid import Grid, GridPoint
from modules.performance import Metric, PerformanceRecord
from modules.reporting_engine import PerformanceTable


@pytest.fixture
def table():
    grid = Grid(-1, 1, 1, -1, 1, 1, label_x="SVC, property C", label_y="SVC, property gamma")
    records = [
        PerformanceRecord(GridPoint(0.0, 0.0), cc=0.9),
        PerformanceRecord(GridPoint(1.0, 1.0), cc=0.5),
        PerformanceRecord(GridPoint(-1.0, -1.0), cc=0.1),
    ]
    return PerformanceTable(grid, records, Metric.CC, "iris", "C", "gamma")


def test_layout(table):
    frame = table.table
    assert frame.shape == (3, 3)
    assert list(frame.columns) == [-1.0, 0.0, 1.0]
    # top row first
    assert list(frame.index) == [1.0, 0.0, -1.0]
    assert frame.loc[1.0, 1.0] == 0.5
    assert frame.loc[0.0, 0.0] == 0.9
    assert frame.loc[-1.0, -1.0] == 0.1
    assert math.isnan(frame.loc[1.0, -1.0])


def test_extremes(table):
    assert table.minimum == 0.1
    assert table.maximum == 0.9


def test_extremes_without_scores():
    grid = Grid(0, 1, 1, 0, 1, 1)
    empty = PerformanceTable(grid, [PerformanceRecord(GridPoint(0.0, 0.0))], Metric.ACC)
    assert math.isnan(empty.minimum)
    assert math.isnan(empty.maximum)
    assert "set zrange [nan:nan]" in empty.to_gnuplot()


def test_to_string(table):
    text = str(table)
    lines = text.splitlines()
    assert lines[0] == "Table (Correlation coefficient) - X: SVC, property C, Y: SVC, property gamma:"
    assert len(lines) == 4
    assert lines[2] == "nan,0.9,nan"


def test_gnuplot(table):
    script = table.to_gnuplot()
    assert "# begin 'gridsearch.data'" in script
    assert "0.0\t0.0\t0.9" in script
    assert "set style data lines" in script
    assert "set xlabel 'x (C)'" in script
    assert "set dgrid3d 3,3,1" in script
    assert script.endswith("# end 'gridsearch.plot'")


def test_long_frame(table):
    frame = table.to_long_frame()
    assert len(frame) == 3
    assert {'x', 'y', 'cc', 'combined'} <= set(frame.columns)
