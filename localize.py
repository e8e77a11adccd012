#!/usr/bin/env python3
# localize.py

"""
Robot localization runner.

Walks a simulated robot randomly through the maze, feeds its noisy
observations to one HMM localizer per arithmetic and reports, step by step,
whether the true cell is among the most probable ones.
"""

import argparse
import logging
import sys
from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from config import TRACE_FILE, ConfigurationError, SimulationConfig
from hmm_logic import HMM_Localizer
from log_utils import setup_logger
from maze import Maze
from prng import JsfRandom
from probability import get_arithmetic
from robot_sim import Robot
from trace_log import TraceWriter

logger = logging.getLogger(__name__)


@dataclass
class StepRecord:
    step: int
    robot_step: object
    beliefs: dict
    max_cells: dict
    hits: dict

    @property
    def heading(self):
        return self.robot_step.heading

    @property
    def cell(self):
        return self.robot_step.cell


@dataclass
class SimulationResult:
    start: tuple
    records: list = field(default_factory=list)
    hits: dict = field(default_factory=dict)
    # Largest per-cell |fixed - float| seen, when both arithmetics run
    max_divergence: float = None

    @property
    def headings(self):
        return [record.heading for record in self.records]


def _trace_paths(trace_path, names):
    if trace_path is None:
        return {}
    trace_path = Path(trace_path)
    if len(names) == 1:
        return {names[0]: trace_path}
    return {name: trace_path.with_name(f"{trace_path.stem}_{name}{trace_path.suffix}") for name in names}


def run_simulation(config=None, trace_path=None):
    """Run `config.num_steps` steps and return every step's outputs."""
    config = config or SimulationConfig()
    maze = Maze.from_layout(config.layout).validate()
    start = maze.start_cell(config.start, config.fallback_start)
    robot = Robot(maze, start, JsfRandom(config.seed), config.noise)

    names = list(dict.fromkeys(config.arithmetics))
    localizers = {
        name: HMM_Localizer(maze, config.noise, get_arithmetic(name)) for name in names
    }

    result = SimulationResult(start=start, hits={name: 0 for name in names})
    logger.info(
        "Starting at %s, %d free cells, seed 0x%08X, arithmetic: %s",
        tuple(start), len(maze.free_cells()), config.seed, ", ".join(names),
    )
    logger.info("initial probability: %.12f", 1.0 / len(maze.free_cells()))

    with ExitStack() as stack:
        writers = {
            name: stack.enter_context(TraceWriter(path, maze, config.seed, localizers[name].arithmetic))
            for name, path in _trace_paths(trace_path, names).items()
        }
        for step in range(1, config.num_steps + 1):
            robot_step = robot.step()
            logger.info("movement %d: %s -> %s", step, robot_step.heading.name, tuple(robot_step.cell))

            beliefs, max_cells, hits = {}, {}, {}
            for name, localizer in localizers.items():
                belief = localizer.filter(robot_step.observation)
                beliefs[name] = belief
                max_cells[name] = localizer.max_cells(belief)
                hits[name] = localizer.is_hit(robot_step.cell, belief)
                result.hits[name] += hits[name]

                top = float(localizer.probabilities(belief).max())
                logger.info(
                    "[%s] max probability %.12f in %d locations", name, top, len(max_cells[name])
                )
                if not hits[name]:
                    logger.warning("[%s] localization miss at step %d", name, step)
                if name in writers:
                    writers[name].record(step, robot_step, belief, max_cells[name], hits[name])

            if "fixed" in localizers and "float" in localizers:
                divergence = float(np.max(np.abs(
                    localizers["fixed"].probabilities(beliefs["fixed"])
                    - localizers["float"].probabilities(beliefs["float"])
                )))
                result.max_divergence = max(result.max_divergence or 0.0, divergence)

            result.records.append(StepRecord(step, robot_step, beliefs, max_cells, hits))

    for name in names:
        logger.info("[%s] %d/%d steps localized", name, result.hits[name], config.num_steps)
    if result.max_divergence is not None:
        logger.info("max fixed/float divergence: %.3e", result.max_divergence)
    return result


def build_parser():
    parser = argparse.ArgumentParser(
        description="Localize a randomly walking robot in a grid maze with an HMM filter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python localize.py
  python localize.py --seed 42 --steps 20 --arithmetic both --trace robot.json
  python localize.py --config run.toml --log-level DEBUG
""",
    )
    parser.add_argument("--config", type=Path, default=None, help="JSON or TOML parameter file")
    parser.add_argument("--seed", type=lambda s: int(s, 0), default=None, help="32-bit PRNG seed (default: 0xDEADBEEF)")
    parser.add_argument("--steps", type=int, default=None, help="Number of simulated steps (default: 100)")
    parser.add_argument(
        "--arithmetic",
        choices=["fixed", "float", "both"],
        default=None,
        help="Probability representation of the filter (default: both)",
    )
    parser.add_argument("--trace", type=Path, default=None, help=f"Write a JSON trace (e.g. {TRACE_FILE})")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also log to this file")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logger(log_file=args.log_file, level=args.log_level)

    try:
        config = SimulationConfig.from_file(args.config) if args.config else SimulationConfig()
        arithmetics = None
        if args.arithmetic:
            arithmetics = ("fixed", "float") if args.arithmetic == "both" else (args.arithmetic,)
        config = config.replace(seed=args.seed, num_steps=args.steps, arithmetics=arithmetics)
        run_simulation(config, trace_path=args.trace)
    except ConfigurationError as e:
        logger.error("Configuration error: %s", e)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
