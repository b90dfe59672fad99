"""Test doubles shared across test modules."""

from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np
from numpy.typing import ArrayLike

from zerofeed.types import Array


class FixedNetwork:
    """Network that returns the same policy and value for every board."""

    def __init__(self, policy: ArrayLike, value: float = 0.0) -> None:
        """Store the policy row every forward pass returns.

        Args:
            policy: (num_actions,) weights over the full action space.
            value: Value returned for every board.
        """
        self._policy = jnp.asarray(policy, dtype=jnp.float32)
        self._value = value
        self.test_mode = False
        self.calls = 0

    def forward(self, boards: Array) -> tuple[Array, Array]:
        # Count forward passes to check batching behavior.
        self.calls += 1
        batch = boards.shape[0]
        policy = jnp.broadcast_to(self._policy, (batch, self._policy.shape[0]))
        value = jnp.full((batch,), self._value, dtype=jnp.float32)
        return policy, value

    def params(self) -> list[Array]:
        return [self._policy]

    def regularized_params(self) -> list[Array]:
        return []

    def copy(self) -> FixedNetwork:
        return FixedNetwork(self._policy, self._value)

    def to_gpu(self) -> FixedNetwork:
        return self

    def to_cpu(self) -> FixedNetwork:
        return self

    def on_gpu(self) -> bool:
        return False

    def set_test_mode(self, mode: bool = True) -> None:
        self.test_mode = mode

    def convert_input(self, x: ArrayLike) -> Array:
        return jnp.asarray(x, dtype=jnp.float32)

    def convert_output(self, x: Array) -> np.ndarray:
        return np.asarray(jax.device_get(x))
