import math
import numpy as np
import pandas as pd
from typing import List

from modules.grid import Grid
from modules.performance import Metric, PerformanceRecord


class PerformanceTable:
    """
    The records of one pass aligned on a grid for a single metric.

    Rows run from the top of the Y axis down, columns from the left of the
    X axis; cells without a record are NaN.
    """

    def __init__(self, grid: Grid, records: List[PerformanceRecord], metric: Metric,
                 title: str = "dataset", x_property: str = "x", y_property: str = "y"):
        self.grid = grid
        self.records = list(records)
        self.metric = metric
        self.title = title
        self.x_property = x_property
        self.y_property = y_property
        self.table = self._generate()

    def _generate(self) -> pd.DataFrame:
        values = np.full((self.grid.height, self.grid.width), np.nan)
        for record in self.records:
            index = self.grid.nearest_index(record.point)
            values[self.grid.height - index.y - 1, index.x] = record.get(self.metric)

        columns = [self.grid.value_at(xi, 0).x for xi in range(self.grid.width)]
        rows = [self.grid.value_at(0, yi).y for yi in reversed(range(self.grid.height))]
        return pd.DataFrame(values, index=pd.Index(rows, name='y'), columns=pd.Index(columns, name='x'))

    @property
    def minimum(self) -> float:
        scores = [r.get(self.metric) for r in self.records if not math.isnan(r.get(self.metric))]
        return min(scores) if scores else math.nan

    @property
    def maximum(self) -> float:
        scores = [r.get(self.metric) for r in self.records if not math.isnan(r.get(self.metric))]
        return max(scores) if scores else math.nan

    def to_long_frame(self) -> pd.DataFrame:
        """One row per record with every metric."""
        return pd.DataFrame([r.as_dict() for r in self.records])

    def to_string(self) -> str:
        header = (
            f"Table ({self.metric.description}) - X: {self.grid.label_x}, Y: {self.grid.label_y}:\n"
        )
        lines = [",".join(str(v) for v in row) for row in self.table.to_numpy()]
        return header + "\n".join(lines)

    def to_gnuplot(self) -> str:
        """Gnuplot data block followed by a plot script for this metric."""
        readable = self.metric.description
        lines = ["# begin 'gridsearch.data'", f"# {readable}"]
        for record in self.records:
            lines.append(f"{record.point.x}\t{record.point.y}\t{record.get(self.metric)}")
        lines.append("# end 'gridsearch.data'")
        lines.append("")

        low, high = self.minimum, self.maximum
        margin = (high - low) * 0.1 if not math.isnan(low) else 0.0
        lines += [
            "# begin 'gridsearch.plot'",
            f"# {readable}",
            "set style data lines",
            "set contour base",
            "set surface",
            f"set title '{self.title}'",
            f"set xrange [{self.grid.min_x}:{self.grid.max_x}]",
            f"set xlabel 'x ({self.x_property})'",
            f"set yrange [{self.grid.min_y}:{self.grid.max_y}]",
            f"set ylabel 'y ({self.y_property})'",
            f"set zrange [{low - margin}:{high + margin}]",
            f"set zlabel 'z - {readable}'",
            f"set dgrid3d {self.grid.height},{self.grid.width},1",
            "show contour",
            "splot 'gridsearch.data'",
            "pause -1",
            "# end 'gridsearch.plot'",
        ]
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()
