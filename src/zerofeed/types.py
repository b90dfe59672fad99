"""
Core type aliases and small immutable dataclasses.

Hard requirements:
- No Any
- Prefer explicit type aliases, frozen dataclasses, and protocols.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

import jax
import numpy as np

# Canonical array types used across modules.
type Array = jax.Array
type HostArray = np.ndarray
# PRNGKey is a JAX uint32[2] array by convention.
type PRNGKey = jax.Array

# Strongly-typed integer wrappers for counters.
Step = NewType("Step", int)
PassIndex = NewType("PassIndex", int)


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, slots=True)
class PolicyValue:
    """Raw model output.

    Attributes:
        policy_logits: Unnormalized logits for all actions.
        value: Scalar value estimate per sample.
    """

    policy_logits: Array  # (B, num_actions)
    value: Array  # (B,)

    def tree_flatten(self) -> tuple[tuple[Array, Array], None]:
        return (self.policy_logits, self.value), None

    @classmethod
    def tree_unflatten(
        cls, aux_data: None, children: tuple[Array, Array]
    ) -> PolicyValue:
        del aux_data
        policy_logits, value = children
        return cls(policy_logits=policy_logits, value=value)
