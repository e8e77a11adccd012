# trace_log.py

# JSON trace of a run: the map once, then one record per step.
# Probabilities are written as raw Q32 integers for every arithmetic,
# so fixed-point and floating-point traces can be diffed directly.

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class TraceWriter:
    def __init__(self, path, maze, seed, arithmetic):
        self.path = Path(path)
        self.arithmetic = arithmetic
        self.document = {
            "width": maze.width,
            "height": maze.height,
            "map": [int(w) for w in maze.wall_mask()],
            "seed": seed,
            "arithmetic": arithmetic.name,
            "data": [],
        }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def record(self, step, robot_step, belief, max_cells, hit):
        probability = [int(p) for p in self.arithmetic.to_q32(belief)]
        self.document["data"].append({
            "step": step,
            "heading": robot_step.heading.name,
            "location": [robot_step.cell.x, robot_step.cell.y],
            "obs_real": robot_step.true_observation.to_dict(),
            "obs_observed": robot_step.observation.to_dict(),
            "probability": probability,
            "max_probability": max(probability),
            "max_locations": [[c.x, c.y] for c in max_cells],
            "hit": hit,
        })

    def close(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(self.document, fh)
        logger.info("Wrote %d steps to %s", len(self.document["data"]), self.path)
