"""
NNX building blocks.

Hard requirements:
- Use flax.nnx ONLY (no flax.linen)
- Fully typed
- No dropout (determinism)
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from flax import nnx

from zerofeed.types import Array


class RMSNorm(nnx.Module):
    """RMSNorm layer."""

    def __init__(self, width: int, *, rngs: nnx.Rngs) -> None:
        """Initialize RMSNorm scale parameters.

        Args:
            width: Feature size.
            rngs: NNX RNGs (unused, required by API).
        """
        del rngs
        self.scale = nnx.Param(jnp.ones((width,), dtype=jnp.float32))
        self._eps = 1e-6

    def __call__(self, x: Array) -> Array:
        mean_sq = jnp.mean(jnp.square(x), axis=-1, keepdims=True)
        return x / jnp.sqrt(mean_sq + self._eps) * self.scale[...]


class ResidualMlpBlock(nnx.Module):
    """Pre-norm residual MLP block."""

    def __init__(self, width: int, mlp_ratio: int, *, rngs: nnx.Rngs) -> None:
        """Initialize the norm and the expand/project pair.

        Args:
            width: Hidden size carried by the residual path.
            mlp_ratio: Expansion ratio for the inner layer.
            rngs: NNX RNGs used for parameter init.
        """
        self.norm = RMSNorm(width, rngs=rngs)
        self.fc1 = nnx.Linear(width, width * mlp_ratio, rngs=rngs)
        self.fc2 = nnx.Linear(width * mlp_ratio, width, rngs=rngs)

    def __call__(self, x: Array) -> Array:
        return x + self.fc2(jax.nn.gelu(self.fc1(self.norm(x))))
