"""Tests for the motion model and the simulated robot."""

from __future__ import annotations

from collections import Counter

import pytest

from config import ConfigurationError
from maze import HEADINGS, Cell, Heading, Maze
from prng import JsfRandom
from robot_sim import Robot, choose_move, legal_moves
from sensor_model import Observation

E, N, W, S = Heading.EAST, Heading.NORTH, Heading.WEST, Heading.SOUTH

# Chi-square critical value, 2 degrees of freedom, alpha = 0.001
CHI2_CRITICAL_DF2 = 13.816


class TestLegalMoves:
    def test_reference_cells(self, reference_maze: Maze) -> None:
        assert legal_moves(reference_maze, (1, 1)) == [E, S]
        assert legal_moves(reference_maze, (1, 3)) == [E, N, S]
        assert legal_moves(reference_maze, (5, 3)) == [E, W, S]

    def test_open_cell(self, open_maze: Maze) -> None:
        assert legal_moves(open_maze, (1, 1)) == list(HEADINGS)

    def test_grid_edge(self, open_maze: Maze) -> None:
        assert legal_moves(open_maze, (0, 0)) == [E, S]

    def test_boxed_cell(self, boxed_maze: Maze) -> None:
        assert legal_moves(boxed_maze, (1, 1)) == []


class TestChooseMove:
    def test_no_moves(self, boxed_maze: Maze, scripted_rng) -> None:
        rng = scripted_rng([])
        assert choose_move(boxed_maze, (1, 1), rng) is Heading.NONE
        assert rng.calls == 0

    def test_single_move_draws_nothing(self, scripted_rng) -> None:
        maze = Maze.from_layout(["####", "#  #", "####"])
        rng = scripted_rng([])
        assert choose_move(maze, (1, 1), rng) is E
        assert rng.calls == 0

    def test_two_moves_use_one_bit(self, reference_maze: Maze, scripted_rng) -> None:
        assert choose_move(reference_maze, (1, 1), scripted_rng([0b10])) is E
        assert choose_move(reference_maze, (1, 1), scripted_rng([0b11])) is S

    def test_four_moves_use_two_bits(self, open_maze: Maze, scripted_rng) -> None:
        for draw, expected in [(4, E), (5, N), (0xFFFFFFFE, W), (0xFFFFFFFF, S)]:
            assert choose_move(open_maze, (1, 1), scripted_rng([draw])) is expected

    def test_three_moves_reject_out_of_range(self, reference_maze: Maze, scripted_rng) -> None:
        rng = scripted_rng([3, 0xFFFFFFFF, 6])
        assert choose_move(reference_maze, (1, 3), rng) is S
        assert rng.calls == 3

    def test_three_moves_uniform(self, reference_maze: Maze) -> None:
        rng = JsfRandom(0xC0FFEE)
        samples = 100_000
        counts = Counter(choose_move(reference_maze, (1, 3), rng) for _ in range(samples))
        assert set(counts) == {E, N, S}
        expected = samples / 3
        chi2 = sum((counts[h] - expected) ** 2 / expected for h in (E, N, S))
        assert chi2 < CHI2_CRITICAL_DF2


class TestRobot:
    def test_reference_trace(self, reference_maze: Maze) -> None:
        robot = Robot(reference_maze, reference_maze.start_cell(), JsfRandom(0xDEADBEEF))
        steps = [robot.step() for _ in range(8)]

        assert [s.heading for s in steps] == [E, W, E, W, S, N, S, S]
        assert [s.cell for s in steps] == [
            Cell(2, 1), Cell(1, 1), Cell(2, 1), Cell(1, 1),
            Cell(1, 2), Cell(1, 1), Cell(1, 2), Cell(1, 3),
        ]
        assert [s.observation for s in steps[:5]] == [
            Observation((True, False, False, False), E),
            Observation((True, False, False, True), W),
            Observation((True, False, True, False), E),
            Observation((True, False, True, True), W),
            Observation((False, True, False, False), S),
        ]
        # Compass reading knocked sideways at step 7
        assert steps[6].true_observation.heading is S
        assert steps[6].observation.heading is W

    def test_true_observation_matches_cell(self, reference_maze: Maze) -> None:
        robot = Robot(reference_maze, (1, 1), JsfRandom(3))
        for _ in range(50):
            step = robot.step()
            assert reference_maze.is_free(step.cell)
            assert step.true_observation.heading is step.heading
            assert list(step.true_observation.sensor) == [
                reference_maze.is_free(reference_maze.neighbor(step.cell, d)) for d in HEADINGS
            ]
            assert robot.state_index == reference_maze.index(step.cell)

    def test_cannot_start_on_wall(self, reference_maze: Maze) -> None:
        with pytest.raises(ConfigurationError):
            Robot(reference_maze, (0, 0), JsfRandom(1))

    def test_dead_end_is_fatal(self, boxed_maze: Maze) -> None:
        robot = Robot(boxed_maze, (1, 1), JsfRandom(1))
        with pytest.raises(ConfigurationError, match="no legal moves"):
            robot.step()
