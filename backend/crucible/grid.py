"""
Cost Grid Primitives

Square grid of non-negative integer costs with:
- (row, col) addressing, row 0 at the top
- Four compass directions with an opposite relation
- Bounds-checked single-step moves
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple
from enum import IntEnum


class InvalidGridError(ValueError):
    """Grid rejected before search (empty, ragged, non-square or negative)."""


# Costs are stored as int64
MAX_COST = int(np.iinfo(np.int64).max)


# =============================================================================
# DIRECTIONS
# =============================================================================

class Direction(IntEnum):
    """4 compass directions on the grid"""
    UP = 0     # row - 1
    DOWN = 1   # row + 1
    LEFT = 2   # col - 1
    RIGHT = 3  # col + 1

    @property
    def opposite(self) -> 'Direction':
        return _OPPOSITES[self]

    @property
    def vector(self) -> Tuple[int, int]:
        return DIRECTION_VECTORS[self]


# Direction vectors for each direction (row_delta, col_delta)
DIRECTION_VECTORS = {
    Direction.UP:    (-1, 0),
    Direction.DOWN:  (1, 0),
    Direction.LEFT:  (0, -1),
    Direction.RIGHT: (0, 1),
}

_OPPOSITES = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class Point(NamedTuple):
    """Grid coordinate (row, col), 0-indexed"""
    row: int
    col: int

    def step(self, direction: Direction) -> 'Point':
        """One step in `direction`. The result may lie outside any grid."""
        d_row, d_col = DIRECTION_VECTORS[direction]
        return Point(self.row + d_row, self.col + d_col)


# =============================================================================
# GRID
# =============================================================================

@dataclass(frozen=True, eq=False)
class Grid:
    """
    Immutable N x N grid of cell costs.

    The cost of a cell is paid when a path *enters* it, so the origin's
    own cost is never counted.

    Cells are stored as a read-only int64 array so that one grid can be
    shared across independent searches.
    """
    cells: np.ndarray = field(repr=False)

    def __post_init__(self):
        cells = self.cells
        if not isinstance(cells, np.ndarray):
            raise InvalidGridError("Grid cells must be a numpy array")
        if cells.ndim != 2 or cells.size == 0:
            raise InvalidGridError(f"Grid must be a non-empty 2D array, got shape {cells.shape}")
        rows, cols = cells.shape
        if rows != cols:
            raise InvalidGridError(f"Grid must be square, got {rows}x{cols}")
        if not np.issubdtype(cells.dtype, np.integer):
            raise InvalidGridError(f"Grid costs must be integers, got dtype {cells.dtype}")
        if np.any(cells < 0):
            row, col = np.argwhere(cells < 0)[0]
            raise InvalidGridError(f"Negative cost {cells[row, col]} at ({row}, {col})")
        if cells.max() > MAX_COST:
            row, col = np.argwhere(cells > MAX_COST)[0]
            raise InvalidGridError(f"Cost {cells[row, col]} at ({row}, {col}) exceeds {MAX_COST}")

        frozen = cells.astype(np.int64, copy=True)
        frozen.setflags(write=False)
        object.__setattr__(self, 'cells', frozen)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> 'Grid':
        """Build a grid from a list of equal-length rows."""
        rows = [list(row) for row in rows]
        if not rows or not rows[0]:
            raise InvalidGridError("Grid is empty")
        width = len(rows[0])
        for i, row in enumerate(rows):
            if len(row) != width:
                raise InvalidGridError(f"Row {i} has {len(row)} cells, expected {width}")
            for j, value in enumerate(row):
                # bool is an int subclass but never a cost
                if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                    raise InvalidGridError(f"Non-integer cost {value!r} at ({i}, {j})")
                if value < 0:
                    raise InvalidGridError(f"Negative cost {value} at ({i}, {j})")
                if value > MAX_COST:
                    raise InvalidGridError(f"Cost {value} at ({i}, {j}) exceeds {MAX_COST}")
        return cls(np.array(rows, dtype=np.int64))

    @classmethod
    def parse(cls, text: str) -> 'Grid':
        """
        Parse puzzle text: one row per line, one decimal digit per cell.

        Blank lines and surrounding whitespace are ignored.
        """
        rows: List[List[int]] = []
        for line_no, line in enumerate(_non_blank(text.splitlines()), start=1):
            if not (line.isascii() and line.isdigit()):
                raise InvalidGridError(f"Line {line_no} contains non-digit characters: {line!r}")
            rows.append([int(c) for c in line])
        return cls.from_rows(rows)

    # === Geometry ===

    @property
    def size(self) -> int:
        return int(self.cells.shape[0])

    @property
    def shape(self) -> Tuple[int, int]:
        rows, cols = self.cells.shape
        return (int(rows), int(cols))

    @property
    def origin(self) -> Point:
        """Top-left corner"""
        return Point(0, 0)

    @property
    def destination(self) -> Point:
        """Bottom-right corner"""
        return Point(self.size - 1, self.size - 1)

    def in_bounds(self, point: Point) -> bool:
        row, col = point
        return 0 <= row < self.size and 0 <= col < self.size

    def get(self, point: Point) -> Optional[int]:
        """Cost of the cell at `point`, or None outside the grid."""
        if not self.in_bounds(point):
            return None
        return int(self.cells[point[0], point[1]])

    def cost_of(self, point: Point) -> int:
        cost = self.get(point)
        if cost is None:
            raise IndexError(f"Point {tuple(point)} is outside the {self.size}x{self.size} grid")
        return cost

    def move(self, point: Point, direction: Direction) -> Optional[Point]:
        """Step one cell in `direction`, or None at the grid edge."""
        moved = Point(*point).step(direction)
        if not self.in_bounds(moved):
            return None
        return moved

    def rows(self) -> List[List[int]]:
        return self.cells.tolist()

    def __len__(self) -> int:
        return self.size


def _non_blank(lines: Iterable[str]) -> Iterable[str]:
    for line in lines:
        line = line.strip()
        if line:
            yield line
