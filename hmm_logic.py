# hmm_logic.py

import logging

import numpy as np

from config import InvariantViolation, NoiseModel
from probability import FixedArithmetic
from robot_sim import legal_moves
from sensor_model import observation_likelihood, true_observation

logger = logging.getLogger(__name__)


class HMM_Localizer:
    def __init__(self, maze, noise=None, arithmetic=None):
        self.maze = maze.validate()
        self.noise = noise or NoiseModel()
        self.arithmetic = arithmetic or FixedArithmetic()
        self.terms = self.arithmetic.likelihood_terms(self.noise)
        # Transition model and candidate sensor readings are static, so they are pre-calculated
        self.transitions, self.candidates = self._calculate_transition_model()
        self.belief = self._initialize_prior()

    def _initialize_prior(self):
        """Sets a uniform prior probability over all non-wall cells."""
        return self.arithmetic.uniform(~self.maze.wall_mask())

    def _calculate_transition_model(self):
        """
        Lists, for every free cell, the (destination, heading) pairs of its
        legal moves. Each move is taken with probability 1 / len(moves).
        Also records the true observation of every (destination, heading)
        pair, which is what the sensor would read after that move.
        """
        transitions = []
        candidates = {}
        for cell in self.maze.free_cells():
            moves = []
            for heading in legal_moves(self.maze, cell):
                dest = self.maze.neighbor(cell, heading)
                dest_state = self.maze.index(dest)
                moves.append((dest_state, heading))
                if (dest_state, heading) not in candidates:
                    candidates[dest_state, heading] = true_observation(self.maze, dest, heading)
            transitions.append((self.maze.index(cell), tuple(moves)))
        return transitions, candidates

    def _emission_weights(self, observation):
        """P(observation | robot just moved into `dest` via `heading`) for every candidate."""
        return {
            key: observation_likelihood(
                candidate, observation, self.noise, self.arithmetic, terms=self.terms
            )
            for key, candidate in self.candidates.items()
        }

    def update(self, prior, observation):
        """
        Performs one HMM forward-algorithm step and returns the posterior.

        The robot's move and the sensor reading are coupled (the compass
        reports the heading just taken), so prediction and update are done in
        one pass: every legal move out of a source cell carries
        prior[source] * P(obs | dest, heading) / len(moves) into dest.
        The accumulated mass is then renormalized.
        """
        ar = self.arithmetic
        weights = self._emission_weights(observation)
        posterior = [ar.zero] * self.maze.num_states

        for source, moves in self.transitions:
            mass = prior[source]
            if not mass:
                continue
            if not moves:
                raise InvariantViolation(
                    f"Cell {tuple(self.maze.cell_at(source))} holds probability mass but has no legal moves"
                )
            for dest, heading in moves:
                share = ar.transfer(mass, weights[dest, heading], len(moves))
                posterior[dest] = ar.add(posterior[dest], share)

        return ar.normalize(posterior)

    def filter(self, observation):
        """Replaces the held belief with its posterior for `observation`."""
        self.belief = self.update(self.belief, observation)
        return self.belief

    # --- Diagnostics ---

    def probabilities(self, belief=None):
        """Belief as floats in [0, 1], whatever the representation."""
        return self.arithmetic.to_float(self.belief if belief is None else belief)

    def max_cells(self, belief=None):
        """All cells attaining the maximum probability."""
        belief = np.asarray(self.belief if belief is None else belief)
        best = belief.max()
        return [self.maze.cell_at(int(i)) for i in np.flatnonzero(belief == best)]

    def is_hit(self, cell, belief=None):
        """True if `cell` is among the most probable cells."""
        return tuple(cell) in {tuple(c) for c in self.max_cells(belief)}
