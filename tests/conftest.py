"""Shared fixtures for the localization tests."""

from __future__ import annotations

import pytest

from config import MAP_LAYOUT
from maze import Maze

# 5x4 maze whose cell (1, 1) has four free neighbours
OPEN_LAYOUT = (
    "     ",
    "     ",
    "  #  ",
    "     ",
)

# A single free cell boxed in by walls
BOXED_LAYOUT = (
    "###",
    "# #",
    "###",
)


class ScriptedRng:
    """Stand-in generator returning a fixed list of 32-bit draws."""

    def __init__(self, draws: list[int]) -> None:
        self.draws = list(draws)
        self.calls = 0

    def next_u32(self) -> int:
        self.calls += 1
        return self.draws.pop(0)

    def next_float(self) -> float:
        return self.next_u32() / 2**32


@pytest.fixture
def reference_maze() -> Maze:
    return Maze.from_layout(MAP_LAYOUT)


@pytest.fixture
def open_maze() -> Maze:
    return Maze.from_layout(OPEN_LAYOUT)


@pytest.fixture
def boxed_maze() -> Maze:
    return Maze.from_layout(BOXED_LAYOUT)


@pytest.fixture
def scripted_rng() -> type[ScriptedRng]:
    return ScriptedRng
