# maze.py

from enum import IntEnum
from typing import NamedTuple

import numpy as np

from config import (
    FALLBACK_START_CELL,
    FREE_CHAR,
    START_CELL,
    WALL_CHAR,
    ConfigurationError,
    coords_to_state,
    state_to_coords,
)


class Heading(IntEnum):
    """Compass headings laid out so that opposite headings differ by XOR 2."""

    EAST = 0
    NORTH = 1
    WEST = 2
    SOUTH = 3
    NONE = 4 # No legal move; never stored in an observation

    @property
    def opposite(self):
        return Heading(self ^ 2)

    @property
    def delta(self):
        return _HEADING_DELTAS[self]


# The four real headings, in sensor order
HEADINGS = (Heading.EAST, Heading.NORTH, Heading.WEST, Heading.SOUTH)

# x grows eastwards, y grows southwards
_HEADING_DELTAS = {
    Heading.EAST: (1, 0),
    Heading.NORTH: (0, -1),
    Heading.WEST: (-1, 0),
    Heading.SOUTH: (0, 1),
    Heading.NONE: (0, 0),
}


class Cell(NamedTuple):
    x: int
    y: int


class Maze:
    """Static passability lookup over a rectangular grid."""

    def __init__(self, walls):
        walls = np.asarray(walls, dtype=bool)
        if walls.ndim != 2 or walls.size == 0:
            raise ConfigurationError(f"Maze must be a non-empty 2-D grid, got shape {walls.shape}")
        self._walls = walls.copy()
        self._walls.setflags(write=False)
        self.height, self.width = walls.shape
        self.num_states = self.width * self.height

    @classmethod
    def from_layout(cls, rows):
        """Parse a character grid ('#' = wall, ' ' = free)."""
        rows = list(rows)
        if not rows:
            raise ConfigurationError("Maze layout has no rows")
        width = len(rows[0])
        walls = []
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ConfigurationError(
                    f"Maze row {y} has width {len(row)}, expected {width}"
                )
            bad = set(row) - {WALL_CHAR, FREE_CHAR}
            if bad:
                raise ConfigurationError(f"Maze row {y} has unknown characters {sorted(bad)}")
            walls.append([char == WALL_CHAR for char in row])
        return cls(walls)

    # --- Lookups ---

    def is_in_bounds(self, cell):
        x, y = cell
        return 0 <= x < self.width and 0 <= y < self.height

    def is_wall(self, cell):
        if not self.is_in_bounds(cell):
            raise ConfigurationError(f"Cell {tuple(cell)} is outside the {self.width}x{self.height} maze")
        x, y = cell
        return bool(self._walls[y, x])

    def is_free(self, cell):
        return self.is_in_bounds(cell) and not self.is_wall(cell)

    def index(self, cell):
        if not self.is_in_bounds(cell):
            raise ConfigurationError(f"Cell {tuple(cell)} is outside the {self.width}x{self.height} maze")
        x, y = cell
        return coords_to_state(x, y, self.width)

    def cell_at(self, index):
        if not 0 <= index < self.num_states:
            raise ConfigurationError(f"State index {index} is outside the maze")
        return Cell(*state_to_coords(index, self.width))

    def neighbor(self, cell, heading):
        dx, dy = Heading(heading).delta
        return Cell(cell[0] + dx, cell[1] + dy)

    def free_cells(self):
        return [Cell(int(x), int(y)) for y, x in zip(*np.nonzero(~self._walls))]

    def wall_mask(self):
        """Flattened (row-major) wall flags, matching the belief layout."""
        return self._walls.reshape(-1).copy()

    # --- Validation ---

    def validate(self):
        """Reject mazes the filter cannot run on."""
        free = self.free_cells()
        if not free:
            raise ConfigurationError("Maze has no free cells")
        for cell in free:
            if not any(self.is_free(self.neighbor(cell, h)) for h in HEADINGS):
                raise ConfigurationError(f"Free cell {tuple(cell)} has no legal moves")
        return self

    def start_cell(self, preferred=START_CELL, fallback=FALLBACK_START_CELL):
        if self.is_free(preferred):
            return Cell(*preferred)
        if self.is_free(fallback):
            return Cell(*fallback)
        raise ConfigurationError(
            f"Neither start cell {tuple(preferred)} nor fallback {tuple(fallback)} is free"
        )
