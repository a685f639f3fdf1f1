import math
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Union

from utils.constants import SMALL, TRAVERSAL_BY_COLUMN, TRAVERSAL_BY_ROW
from utils.exceptions import ConfigurationError, GridStateError


def values_equal(a: float, b: float) -> bool:
    """Tolerance-aware equality used for every grid coordinate comparison."""
    return a == b or abs(a - b) < SMALL


def _smaller(a: float, b: float) -> bool:
    """True if a is smaller than b by more than the tolerance."""
    return b - a > SMALL


def _smaller_or_equal(a: float, b: float) -> bool:
    return a - b < SMALL or a <= b


def _greater_or_equal(a: float, b: float) -> bool:
    return b - a < SMALL or a >= b


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True, eq=False)
class GridPoint:
    """
    One candidate setting in grid-coordinate space (before value mapping).

    Equality is tolerance based. The hash quantizes both coordinates to the
    tolerance, so equal points computed along different arithmetic paths
    share a bucket in the common case.
    """
    x: float
    y: float

    def __eq__(self, other) -> bool:
        if not isinstance(other, GridPoint):
            return NotImplemented
        return values_equal(self.x, other.x) and values_equal(self.y, other.y)

    def __hash__(self) -> int:
        return hash(self.quantized())

    def quantized(self):
        return (round(self.x / SMALL), round(self.y / SMALL))

    def __str__(self) -> str:
        return f"[{self.x}, {self.y}]"


class GridIndex(NamedTuple):
    """Integer location of a point on the grid (column, row)."""
    x: int
    y: int


class Grid:
    """
    Immutable 2D lattice of parameter coordinates.

    Each axis is described by min, max, step and a display label. The axis
    must be evenly divisible by its step; extension and sub-gridding always
    return new instances.
    """

    def __init__(self, min_x: float, max_x: float, step_x: float,
                 min_y: float, max_y: float, step_y: float,
                 label_x: str = "", label_y: str = ""):
        self.min_x = float(min_x)
        self.max_x = float(max_x)
        self.step_x = float(step_x)
        self.label_x = label_x
        self.min_y = float(min_y)
        self.max_y = float(max_y)
        self.step_y = float(step_y)
        self.label_y = label_y

        # is min < max?
        if self.min_x >= self.max_x:
            raise ConfigurationError("XMin must be smaller than XMax!")
        if self.min_y >= self.max_y:
            raise ConfigurationError("YMin must be smaller than YMax!")

        # steps positive?
        if self.step_x <= 0:
            raise ConfigurationError("XStep must be a positive number!")
        if self.step_y <= 0:
            raise ConfigurationError("YStep must be a positive number!")

        self._width = _round_half_up((self.max_x - self.min_x) / self.step_x) + 1
        self._height = _round_half_up((self.max_y - self.min_y) / self.step_y) + 1

        # check borders
        calculated_max_x = self.min_x + (self._width - 1) * self.step_x
        if not values_equal(calculated_max_x, self.max_x):
            raise ConfigurationError(
                f"X axis doesn't match! Provided max: {self.max_x}, "
                f"calculated max via min and step size: {calculated_max_x}"
            )
        calculated_max_y = self.min_y + (self._height - 1) * self.step_y
        if not values_equal(calculated_max_y, self.max_y):
            raise ConfigurationError(
                f"Y axis doesn't match! Provided max: {self.max_y}, "
                f"calculated max via min and step size: {calculated_max_y}"
            )

    @property
    def width(self) -> int:
        """Number of points along the X axis."""
        return self._width

    @property
    def height(self) -> int:
        """Number of points along the Y axis."""
        return self._height

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (
            self.width == other.width and self.height == other.height
            and values_equal(self.min_x, other.min_x)
            and values_equal(self.min_y, other.min_y)
            and values_equal(self.step_x, other.step_x)
            and values_equal(self.step_y, other.step_y)
            and self.label_x == other.label_x
            and self.label_y == other.label_y
        )

    __hash__ = None

    def value_at(self, xi: int, yi: int) -> GridPoint:
        """
        Return the grid coordinates at the given index.

        Raises:
            ValueError: If the index lies outside the grid.
        """
        if not 0 <= xi < self.width:
            raise ValueError(f"Index out of scope on X axis ({xi} not in [0, {self.width}))!")
        if not 0 <= yi < self.height:
            raise ValueError(f"Index out of scope on Y axis ({yi} not in [0, {self.height}))!")
        return GridPoint(self.min_x + self.step_x * xi, self.min_y + self.step_y * yi)

    def nearest_index(self, point: GridPoint) -> GridIndex:
        """
        Locate the closest grid index, independently per axis.

        Each axis is scanned from index 0 and an index only replaces the
        current best when it is closer by more than the tolerance, so exact
        ties resolve to the lower index.
        """
        return GridIndex(
            self._nearest_on_axis(point.x, self.min_x, self.step_x, self.width),
            self._nearest_on_axis(point.y, self.min_y, self.step_y, self.height),
        )

    @staticmethod
    def _nearest_on_axis(value: float, minimum: float, step: float, count: int) -> int:
        best_index = 0
        best_distance = math.inf
        for i in range(count):
            distance = abs(value - (minimum + step * i))
            if _smaller(distance, best_distance):
                best_distance = distance
                best_index = i
        return best_index

    def is_on_border(self, location: Union[GridIndex, GridPoint]) -> bool:
        """Whether an index (or the index nearest to a point) touches the grid edge."""
        if isinstance(location, GridPoint):
            location = self.nearest_index(location)
        return (
            location.x == 0 or location.x == self.width - 1
            or location.y == 0 or location.y == self.height - 1
        )

    def subgrid(self, top: int, left: int, bottom: int, right: int) -> "Grid":
        """
        Narrow the grid to the index rectangle [left..right] x [bottom..top].

        Steps and labels are kept; only the bounds change.
        """
        return Grid(
            self.value_at(left, top).x, self.value_at(right, top).x, self.step_x,
            self.value_at(left, bottom).y, self.value_at(left, top).y, self.step_y,
            label_x=self.label_x, label_y=self.label_y,
        )

    def extend(self, point: GridPoint) -> "Grid":
        """
        Grow the bounds outward so that the given point becomes interior.

        Every side the point lies on or beyond is moved by whole steps: the
        rounded distance plus one extra step. Sides the point is strictly
        inside of stay unchanged.

        Raises:
            GridStateError: If the resulting grid is identical to this one.
        """
        min_x, max_x = self.min_x, self.max_x
        min_y, max_y = self.min_y, self.max_y

        # left
        if _smaller_or_equal(point.x, self.min_x):
            min_x = self.min_x - self.step_x * self._steps_beyond(self.min_x - point.x, self.step_x)
        # right
        if _greater_or_equal(point.x, self.max_x):
            max_x = self.max_x + self.step_x * self._steps_beyond(point.x - self.max_x, self.step_x)
        # bottom
        if _smaller_or_equal(point.y, self.min_y):
            min_y = self.min_y - self.step_y * self._steps_beyond(self.min_y - point.y, self.step_y)
        # top
        if _greater_or_equal(point.y, self.max_y):
            max_y = self.max_y + self.step_y * self._steps_beyond(point.y - self.max_y, self.step_y)

        result = Grid(min_x, max_x, self.step_x, min_y, max_y, self.step_y,
                      label_x=self.label_x, label_y=self.label_y)

        # did the grid really extend?
        if result == self:
            raise GridStateError(f"Grid extension failed for point {point}!")

        return result

    @staticmethod
    def _steps_beyond(distance: float, step: float) -> int:
        return _round_half_up(max(distance, 0.0) / step) + 1

    def row(self, yi: int) -> List[GridPoint]:
        """All points of row yi, left to right."""
        return [self.value_at(xi, yi) for xi in range(self.width)]

    def column(self, xi: int) -> List[GridPoint]:
        """All points of column xi, bottom to top."""
        return [self.value_at(xi, yi) for yi in range(self.height)]

    def points(self, traversal: str = TRAVERSAL_BY_COLUMN) -> Iterator[GridPoint]:
        """Iterate over every point, column by column or row by row."""
        if traversal == TRAVERSAL_BY_ROW:
            for yi in range(self.height):
                yield from self.row(yi)
        elif traversal == TRAVERSAL_BY_COLUMN:
            for xi in range(self.width):
                yield from self.column(xi)
        else:
            raise ConfigurationError(f"Unknown traversal '{traversal}'")

    def __len__(self) -> int:
        return self.width * self.height

    def __str__(self) -> str:
        result = f"X: {self.min_x} - {self.max_x}, Step {self.step_x}"
        if self.label_x:
            result += f" ({self.label_x})"
        result += "\n"
        result += f"Y: {self.min_y} - {self.max_y}, Step {self.step_y}"
        if self.label_y:
            result += f" ({self.label_y})"
        result += "\n"
        result += f"Dimensions (Rows x Columns): {self.height} x {self.width}"
        return result

    def __repr__(self) -> str:
        return (f"Grid(x=[{self.min_x}, {self.max_x}] step {self.step_x}, "
                f"y=[{self.min_y}, {self.max_y}] step {self.step_y})")
