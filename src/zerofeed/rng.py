"""
Deterministic RNG utilities.

All randomness MUST flow through these helpers and explicit PRNGKey passing.
Keys are pure functions of the seed and a counter, so the same seed
reproduces the same permutations and draws across processes.
"""

from __future__ import annotations

from dataclasses import dataclass

import jax

from zerofeed.types import PassIndex, PRNGKey, Step

# Disjoint fold-in domains so step, pass and move keys never collide.
_STEP_DOMAIN = 0
_PASS_DOMAIN = 1
_MOVE_DOMAIN = 2


@dataclass(frozen=True, slots=True)
class RngStream:
    """A deterministic RNG stream derived from a base key.

    Calling methods returns new keys without mutating state.
    """

    base_key: PRNGKey

    @staticmethod
    def from_seed(seed: int) -> RngStream:
        """Build a stream from an integer seed."""
        return RngStream(base_key=jax.random.PRNGKey(seed))

    def _domain(self, domain: int) -> PRNGKey:
        return jax.random.fold_in(self.base_key, domain)

    def key_for_step(self, step: Step) -> PRNGKey:
        """Derive a deterministic key for a given global training step.

        Args:
            step: Global training step counter.

        Returns:
            A PRNGKey derived via fold_in.
        """
        return jax.random.fold_in(self._domain(_STEP_DOMAIN), int(step))

    def key_for_pass(self, index: PassIndex) -> PRNGKey:
        """Derive the key that draws the permutation of one data pass.

        Args:
            index: Zero-based pass counter.

        Returns:
            A PRNGKey derived via fold_in.
        """
        return jax.random.fold_in(self._domain(_PASS_DOMAIN), int(index))

    def key_for_move(self, game: int, move: int) -> PRNGKey:
        """Derive the key used to sample one self-play move.

        Args:
            game: Game counter.
            move: Move number within the game.

        Returns:
            A PRNGKey derived via two fold_ins.
        """
        game_key = jax.random.fold_in(self._domain(_MOVE_DOMAIN), game)
        return jax.random.fold_in(game_key, move)
