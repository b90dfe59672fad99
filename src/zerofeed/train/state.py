"""
Training state (step, params, optimizer state).

Use dataclass(frozen=True) and return new instances to keep functional style.
"""

from __future__ import annotations

from dataclasses import dataclass

import jax
import optax
from flax import nnx

from zerofeed.types import Step


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, slots=True)
class TrainState:
    """Immutable training state."""

    step: Step
    params: nnx.State
    opt_state: optax.OptState

    def tree_flatten(
        self,
    ) -> tuple[tuple[nnx.State, optax.OptState], int]:
        """Flatten TrainState for JAX pytree registration.

        Returns:
            Tuple of children and integer step as aux data.
        """
        return (self.params, self.opt_state), int(self.step)

    @classmethod
    def tree_unflatten(
        cls,
        aux_data: int,
        children: tuple[nnx.State, optax.OptState],
    ) -> TrainState:
        """Reconstruct TrainState from pytree children.

        Raises:
            TypeError: If aux_data is not an int.
        """
        if not isinstance(aux_data, int):
            raise TypeError("Invalid step type in TrainState pytree.")
        params, opt_state = children
        return cls(step=Step(aux_data), params=params, opt_state=opt_state)
