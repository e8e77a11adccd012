## robot_sim.py

import logging
from dataclasses import dataclass

from config import ConfigurationError, NoiseModel
from maze import HEADINGS, Cell, Heading
from sensor_model import Observation, perturb, true_observation

logger = logging.getLogger(__name__)


def legal_moves(maze, cell):
    """Headings whose neighbour is inside the maze and not a wall, in HEADINGS order."""
    return [d for d in HEADINGS if maze.is_free(maze.neighbor(cell, d))]


def choose_move(maze, cell, rng):
    """Pick a legal heading uniformly at random, or Heading.NONE if there is none."""
    moves = legal_moves(maze, cell)
    if not moves:
        return Heading.NONE
    if len(moves) == 1:
        return moves[0]

    # Two random bits per draw
    rdir = rng.next_u32() & 0x3
    if len(moves) == 2:
        return moves[rdir & 0x1]
    if len(moves) == 4:
        return moves[rdir]
    # Three moves: reject the fourth value instead of folding it back (modulo bias)
    while rdir >= len(moves):
        rdir = rng.next_u32() & 0x3
    return moves[rdir]


@dataclass(frozen=True)
class RobotStep:
    heading: Heading
    cell: Cell
    true_observation: Observation
    observation: Observation


class Robot:
    def __init__(self, maze, cell, rng, noise=None):
        if not maze.is_free(cell):
            raise ConfigurationError(f"Robot cannot start on {tuple(cell)}: not a free cell")
        self.maze = maze
        self.cell = Cell(*cell)
        self.rng = rng
        self.noise = noise or NoiseModel()
        self.state_index = maze.index(self.cell)

    def move(self):
        """Simulates one step of the random walk and returns the heading taken."""
        heading = choose_move(self.maze, self.cell, self.rng)
        if heading == Heading.NONE:
            raise ConfigurationError(f"Free cell {tuple(self.cell)} has no legal moves")
        self.cell = self.maze.neighbor(self.cell, heading)
        self.state_index = self.maze.index(self.cell)
        return heading

    def sense(self, heading):
        """Returns the true and the noisy observation at the current cell."""
        real = true_observation(self.maze, self.cell, heading)
        return real, perturb(real, self.rng, self.noise)

    def step(self):
        heading = self.move()
        real, observed = self.sense(heading)
        return RobotStep(heading, self.cell, real, observed)
