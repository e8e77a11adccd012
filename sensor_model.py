# sensor_model.py

import logging
from dataclasses import dataclass

from config import ConfigurationError, NoiseModel
from maze import HEADINGS, Heading
from probability import FloatArithmetic

logger = logging.getLogger(__name__)

_DEFAULT_NOISE = NoiseModel()
_FLOAT = FloatArithmetic()


@dataclass(frozen=True)
class Observation:
    """Wall detectors (True = no wall) in EAST, NORTH, WEST, SOUTH order plus a compass heading."""

    sensor: tuple
    heading: Heading

    def __post_init__(self):
        sensor = tuple(bool(s) for s in self.sensor)
        if len(sensor) != len(HEADINGS):
            raise ConfigurationError(f"Observation needs {len(HEADINGS)} sensor readings, got {len(sensor)}")
        heading = Heading(self.heading)
        if heading == Heading.NONE:
            raise ConfigurationError("Observation heading must be a real direction")
        object.__setattr__(self, "sensor", sensor)
        object.__setattr__(self, "heading", heading)

    def to_dict(self):
        return {"sensor": [int(s) for s in self.sensor], "direction": int(self.heading)}


def true_observation(maze, cell, heading):
    """Noise-free reading at `cell` after moving in `heading`."""
    sensor = tuple(maze.is_free(maze.neighbor(cell, d)) for d in HEADINGS)
    return Observation(sensor, heading)


def perturb(observation, rng, noise=_DEFAULT_NOISE):
    """
    Apply sensor noise. Draw order is fixed: one draw for the heading,
    then one per sensor bit in HEADINGS order.
    """
    heading = observation.heading
    draw = rng.next_u32()
    u = draw / 2**32
    if u < noise.dir_noise_chance:
        if u < noise.dir_back_chance:
            logger.debug("perturbing direction backwards")
            heading = heading.opposite
        else:
            logger.debug("perturbing direction sideways")
            heading = Heading(heading ^ 1)
            if draw & 1:
                heading = heading.opposite

    sensor = list(observation.sensor)
    for d in HEADINGS:
        if rng.next_float() < noise.sensor_noise_chance:
            logger.debug("perturbing sensor %s", d.name)
            sensor[d] = not sensor[d]

    return Observation(tuple(sensor), heading)


def observation_likelihood(candidate, observed, noise=_DEFAULT_NOISE, arithmetic=_FLOAT, terms=None):
    """P(observed | true observation is `candidate`), in the arithmetic's representation."""
    if terms is None:
        terms = arithmetic.likelihood_terms(noise)

    turn = candidate.heading ^ observed.heading
    if turn == 0:
        likelihood = terms["same_heading"]
    elif turn == 2:
        likelihood = terms["back_heading"]
    else:
        likelihood = terms["side_heading"]

    for expected, seen in zip(candidate.sensor, observed.sensor):
        factor = terms["sensor_match"] if expected == seen else terms["sensor_mismatch"]
        likelihood = arithmetic.mul(likelihood, factor)
    return likelihood
