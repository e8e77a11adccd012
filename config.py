# config.py

import json
import tomllib
from dataclasses import dataclass, field, replace as _replace
from pathlib import Path

# --- Map Setup ---
MAP_WIDTH = 20 # Number of tiles wide (20x8 grid)
MAP_HEIGHT = 8
NUM_STATES = MAP_WIDTH * MAP_HEIGHT

# Map definition (20x8 grid)
# '#' = Wall, ' ' = Open
# The robot and the HMM only move in open spaces.
MAP_LAYOUT = (
    "####################",
    "#                  #",
    "# #### ###   ##### #",
    "#        #         #",
    "#              #####",
    "###    ###   #     #",
    "#                  #",
    "####################",
)

WALL_CHAR = "#"
FREE_CHAR = " "

# The robot starts in the top-left corner, or at (1, 1) if that corner is a wall.
START_CELL = (0, 0)
FALLBACK_START_CELL = (1, 1)

# --- Noise Model ---
# P(compass reports a different heading than the one moved in)
DIR_NOISE_CHANCE = 0.0625
# P(compass reports the opposite heading), part of DIR_NOISE_CHANCE
DIR_BACK_CHANCE = 0.00390625
# P(a single wall detector is inverted)
SENSOR_NOISE_CHANCE = 0.125

# --- Simulation ---
SEED = 0xDEADBEEF
NUM_STEPS = 100
ARITHMETICS = ("fixed", "float")

# --- Output ---
TRACE_FILE = "robot.json"
LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ConfigurationError(ValueError):
    """Raised for malformed mazes, parameters or lookups outside the grid."""


class InvariantViolation(RuntimeError):
    """Raised when the filter reaches a state a well-formed maze cannot produce."""


# State representation: Convert (x, y) to a single index (0 to NUM_STATES - 1)
def coords_to_state(x, y, width=MAP_WIDTH):
    return x + y * width

def state_to_coords(state, width=MAP_WIDTH):
    x = state % width
    y = state // width
    return x, y


def _check_chance(name, value):
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be within [0, 1], got {value!r}")


@dataclass(frozen=True)
class NoiseModel:
    """The four constants shared by observation sampling and scoring."""

    dir_noise_chance: float = DIR_NOISE_CHANCE
    dir_back_chance: float = DIR_BACK_CHANCE
    sensor_noise_chance: float = SENSOR_NOISE_CHANCE

    def __post_init__(self):
        _check_chance("dir_noise_chance", self.dir_noise_chance)
        _check_chance("dir_back_chance", self.dir_back_chance)
        _check_chance("sensor_noise_chance", self.sensor_noise_chance)
        if self.dir_back_chance > self.dir_noise_chance:
            raise ConfigurationError(
                "dir_back_chance cannot exceed dir_noise_chance "
                f"({self.dir_back_chance!r} > {self.dir_noise_chance!r})"
            )

    @property
    def dir_side_chance(self):
        """Probability of reporting one particular perpendicular heading."""
        return (self.dir_noise_chance - self.dir_back_chance) / 2.0


@dataclass(frozen=True)
class SimulationConfig:
    layout: tuple = MAP_LAYOUT
    seed: int = SEED
    num_steps: int = NUM_STEPS
    start: tuple = START_CELL
    fallback_start: tuple = FALLBACK_START_CELL
    arithmetics: tuple = ARITHMETICS
    noise: NoiseModel = field(default_factory=NoiseModel)

    def __post_init__(self):
        if not 0 <= self.seed <= 0xFFFFFFFF:
            raise ConfigurationError(f"seed must be a 32-bit unsigned integer, got {self.seed!r}")
        if self.num_steps < 0:
            raise ConfigurationError(f"num_steps must be non-negative, got {self.num_steps!r}")
        if not self.arithmetics:
            raise ConfigurationError("at least one arithmetic must be selected")

    def replace(self, **overrides):
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return _replace(self, **changes)

    @classmethod
    def from_dict(cls, data):
        data = dict(data)
        noise = dict(data.pop("noise", {}))
        unknown_noise = set(noise) - set(NoiseModel.__dataclass_fields__)
        if unknown_noise:
            raise ConfigurationError(f"Unknown noise keys: {sorted(unknown_noise)}")
        noise = NoiseModel(**noise)
        for key in ("layout", "start", "fallback_start", "arithmetics"):
            if key in data:
                data[key] = tuple(data[key])
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(noise=noise, **data)

    @classmethod
    def from_file(cls, path):
        """Load simulation parameters from a JSON or TOML file."""
        path = Path(path)
        suffix = path.suffix.lower()
        raw = path.read_bytes().decode("utf-8")
        if suffix in {".json", ""}:
            return cls.from_dict(json.loads(raw))
        if suffix in {".toml", ".tml"}:
            return cls.from_dict(tomllib.loads(raw))
        raise ConfigurationError(f"Unsupported configuration file format: {suffix}")
