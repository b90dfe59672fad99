"""
Masked policy evaluation.

Networks may put weight on invalid actions. Evaluation zeroes that weight,
renormalizes what is left over the legal actions and reports the discarded
mass, which training penalizes as a separate loss term.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import jax
import jax.numpy as jnp
import numpy as np
from numpy.typing import ArrayLike

from zerofeed.arrays import from_singleton, superpose, to_singleton
from zerofeed.network.base import (
    Network,
    convert_input_tuple,
    convert_output_tuple,
)
from zerofeed.types import Array, HostArray


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, slots=True)
class Evaluation:
    """Masked network output for a batch.

    Shapes:
        policy: (B, num_actions) -- sums to ~1 over legal actions, or all
            zero when the network put no weight on any legal action
        value: (B,)
        invalid_mass: (B,) -- raw weight put on illegal actions
    """

    policy: Array
    value: Array
    invalid_mass: Array

    def tree_flatten(self) -> tuple[tuple[Array, Array, Array], None]:
        return (self.policy, self.value, self.invalid_mass), None

    @classmethod
    def tree_unflatten(
        cls, aux_data: None, children: tuple[Array, Array, Array]
    ) -> Evaluation:
        del aux_data
        policy, value, invalid_mass = children
        return cls(policy=policy, value=value, invalid_mass=invalid_mass)


def mask_policy(policy_raw: Array, actions_mask: Array) -> tuple[Array, Array]:
    """Zero invalid actions and renormalize over the valid ones.

    Args:
        policy_raw: (B, num_actions) weights summing to 1 per row.
        actions_mask: (B, num_actions) with 1 for legal actions.

    Returns:
        `(policy, invalid_mass)` with shapes (B, num_actions) and (B,).
    """
    masked = policy_raw * actions_mask.astype(policy_raw.dtype)
    valid_mass = jnp.sum(masked, axis=-1, keepdims=True)
    # eps keeps rows with no valid mass at exactly zero instead of NaN.
    policy = masked / (valid_mass + jnp.finfo(masked.dtype).eps)
    invalid_mass = 1 - valid_mass.squeeze(-1)
    return policy, invalid_mass


def evaluate(
    network: Network, boards: Array, actions_mask: Array
) -> Evaluation:
    """Evaluate a batch of boards, putting zero weight on invalid actions.

    Args:
        network: Any `Network` implementation.
        boards: Board batch with a leading batch axis.
        actions_mask: Binary (B, num_actions) matrix, 1 = legal.

    Returns:
        Evaluation with the renormalized policy, the value estimate and
        the per-sample invalid mass.
    """
    policy_raw, value = network.forward(boards)
    policy, invalid_mass = mask_policy(policy_raw, actions_mask)
    return Evaluation(policy=policy, value=value, invalid_mass=invalid_mass)


def evaluate_single(
    network: Network, board: ArrayLike, actions_mask: ArrayLike
) -> tuple[HostArray, float]:
    """Evaluate one board for move selection.

    Returns:
        Probabilities over the legal actions only (in action order) and
        the scalar value estimate.
    """
    legal = np.asarray(actions_mask).astype(bool)
    inputs = convert_input_tuple(
        network,
        (to_singleton(board), to_singleton(legal.astype(np.float32))),
    )
    result = evaluate(network, inputs[0], inputs[1])
    policy, value = convert_output_tuple(network, (result.policy, result.value))
    return from_singleton(policy)[legal], float(from_singleton(value))


def evaluate_batch(
    network: Network,
    boards: Sequence[ArrayLike],
    actions_masks: Sequence[ArrayLike],
) -> list[tuple[HostArray, float]]:
    """Evaluate several boards in a single forward pass.

    Returns:
        One `(legal_probs, value)` pair per board, as in `evaluate_single`.
    """
    legal = superpose(actions_masks).astype(bool)
    inputs = convert_input_tuple(
        network, (superpose(boards), legal.astype(np.float32))
    )
    result = evaluate(network, inputs[0], inputs[1])
    policy, value = convert_output_tuple(network, (result.policy, result.value))
    return [
        (policy[i][legal[i]], float(value[i])) for i in range(legal.shape[0])
    ]
