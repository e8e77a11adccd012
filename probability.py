# probability.py

"""
Probability arithmetic used by the belief filter.

Two interchangeable backends implement the same small interface:

- FloatArithmetic: IEEE doubles in [0, 1].
- FixedArithmetic: Q32 fixed point, i.e. an unsigned 32-bit value v stands for
  v / 2**32 in [0, 1). Products are formed in a 64-bit intermediate and
  rescaled, sums saturate at Q32_MAX instead of wrapping.

Scalars are plain Python floats / ints; belief arrays are numpy arrays
(float64 / uint32).
"""

import logging

import numpy as np

from config import ConfigurationError, InvariantViolation

logger = logging.getLogger(__name__)

Q32_ONE = 1 << 32 # 1.0, one past the representable range
Q32_MAX = Q32_ONE - 1


# --- Q32 primitives ---

def to_q32(value):
    """Convert a probability in [0, 1] to Q32, truncating and saturating at Q32_MAX."""
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"probability out of range: {value!r}")
    return min(int(value * Q32_ONE), Q32_MAX)

def from_q32(value):
    return value / Q32_ONE

def q32_mul(a, b):
    # 32x32 -> 64 bit product, rescaled by 2**32
    return (int(a) * int(b)) >> 32

def q32_add_sat(a, b):
    total = int(a) + int(b)
    return Q32_MAX if total > Q32_MAX else total

def q32_div(value, total):
    """value / total in Q32, where value <= total is a widened (64-bit) sum."""
    value, total = int(value), int(total)
    if total <= 0:
        raise InvariantViolation("Q32 division by a zero total")
    if value == total:
        # 1.0 is not representable
        return Q32_MAX
    return (value << 32) // total


# --- Backends ---

class Arithmetic:
    """Interface shared by the numeric backends of the belief filter."""

    name = None
    dtype = None
    zero = None

    def likelihood_terms(self, noise):
        """Encoded factors of the observation likelihood for a noise model."""
        raise NotImplementedError

    def mul(self, a, b):
        raise NotImplementedError

    def transfer(self, mass, likelihood, num_moves):
        """mass * likelihood / num_moves."""
        raise NotImplementedError

    def add(self, a, b):
        """Saturating addition."""
        raise NotImplementedError

    def uniform(self, free_mask):
        raise NotImplementedError

    def normalize(self, values):
        raise NotImplementedError

    def to_float(self, values):
        raise NotImplementedError

    def to_q32(self, values):
        raise NotImplementedError

    def asarray(self, values):
        return np.asarray(values, dtype=self.dtype)

    def __repr__(self):
        return f"{type(self).__name__}()"


class FloatArithmetic(Arithmetic):
    name = "float"
    dtype = np.float64
    zero = 0.0

    def likelihood_terms(self, noise):
        return {
            "sensor_match": 1.0 - noise.sensor_noise_chance,
            "sensor_mismatch": noise.sensor_noise_chance,
            "same_heading": 1.0 - noise.dir_noise_chance,
            "back_heading": noise.dir_back_chance,
            "side_heading": noise.dir_side_chance,
        }

    def mul(self, a, b):
        return float(a) * float(b)

    def transfer(self, mass, likelihood, num_moves):
        return float(likelihood) * float(mass) / num_moves

    def add(self, a, b):
        return min(float(a) + float(b), 1.0)

    def uniform(self, free_mask):
        free_mask = np.asarray(free_mask, dtype=bool)
        num_free = int(free_mask.sum())
        if num_free == 0:
            raise ConfigurationError("Cannot build a uniform belief without free cells")
        belief = np.zeros(free_mask.shape, dtype=self.dtype)
        belief[free_mask] = 1.0 / num_free
        return belief

    def normalize(self, values):
        values = self.asarray(values)
        total = float(values.sum())
        logger.debug("sum prob: %.12f", total)
        if not np.isfinite(total) or total <= 0.0:
            raise InvariantViolation(f"Cannot normalize a belief with total mass {total!r}")
        return values / total

    def to_float(self, values):
        return self.asarray(values).copy()

    def to_q32(self, values):
        scaled = np.floor(self.asarray(values) * Q32_ONE)
        return np.minimum(scaled, Q32_MAX).astype(np.uint64)


class FixedArithmetic(Arithmetic):
    name = "fixed"
    dtype = np.uint32
    zero = 0

    def likelihood_terms(self, noise):
        sensor_noise = to_q32(noise.sensor_noise_chance)
        dir_noise = to_q32(noise.dir_noise_chance)
        dir_back = to_q32(noise.dir_back_chance)
        return {
            "sensor_match": min(Q32_ONE - sensor_noise, Q32_MAX),
            "sensor_mismatch": sensor_noise,
            "same_heading": min(Q32_ONE - dir_noise, Q32_MAX),
            "back_heading": dir_back,
            # Subtract first, then halve: one constant for both perpendicular headings
            "side_heading": (dir_noise - dir_back) >> 1,
        }

    def mul(self, a, b):
        return q32_mul(a, b)

    def transfer(self, mass, likelihood, num_moves):
        # Divide the 64-bit product before rescaling to keep the low bits
        return ((int(likelihood) * int(mass)) // num_moves) >> 32

    def add(self, a, b):
        return q32_add_sat(a, b)

    def uniform(self, free_mask):
        free_mask = np.asarray(free_mask, dtype=bool)
        num_free = int(free_mask.sum())
        if num_free == 0:
            raise ConfigurationError("Cannot build a uniform belief without free cells")
        belief = np.zeros(free_mask.shape, dtype=self.dtype)
        belief[free_mask] = Q32_ONE // num_free if num_free > 1 else Q32_MAX
        return belief

    def normalize(self, values):
        wide = np.asarray(values, dtype=np.uint64)
        if wide.size and int(wide.max()) > Q32_MAX:
            raise InvariantViolation("Q32 belief entry exceeds the representable range")
        total = sum(int(v) for v in wide)
        logger.debug("sum prob: %d", total)
        if total == 0:
            raise InvariantViolation("Cannot normalize a belief with zero total mass")
        return self.asarray([q32_div(v, total) for v in wide])

    def to_float(self, values):
        return from_q32(np.asarray(values, dtype=np.float64))

    def to_q32(self, values):
        return np.asarray(values, dtype=np.uint64)


ARITHMETICS = {
    FloatArithmetic.name: FloatArithmetic,
    FixedArithmetic.name: FixedArithmetic,
}


def get_arithmetic(name):
    try:
        return ARITHMETICS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown arithmetic {name!r}, expected one of {sorted(ARITHMETICS)}"
        ) from None
