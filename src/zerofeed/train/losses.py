"""
Loss functions for policy/value training.

The total loss decomposes as `total = policy + value + l2 + invalid`, where
`invalid` penalizes the weight the network puts on illegal actions.
"""

from __future__ import annotations

from dataclasses import dataclass

import jax
import jax.numpy as jnp

from zerofeed.types import Array


@dataclass(frozen=True, slots=True)
class LossConfig:
    """Loss weights and regularization strengths."""

    value_loss_weight: float
    weight_decay: float
    invalid_actions_penalty: float


@jax.tree_util.register_pytree_node_class
@dataclass(frozen=True, slots=True)
class Losses:
    """Computed losses and per-batch policy statistics."""

    total: Array
    policy: Array
    value: Array
    l2: Array
    invalid: Array
    invalid_mass: Array
    entropy: Array

    def tree_flatten(self) -> tuple[tuple[Array, ...], None]:
        return (
            (
                self.total,
                self.policy,
                self.value,
                self.l2,
                self.invalid,
                self.invalid_mass,
                self.entropy,
            ),
            None,
        )

    @classmethod
    def tree_unflatten(
        cls, aux_data: None, children: tuple[Array, ...]
    ) -> Losses:
        del aux_data
        total, policy, value, l2, invalid, invalid_mass, entropy = children
        return cls(
            total=total,
            policy=policy,
            value=value,
            l2=l2,
            invalid=invalid,
            invalid_mass=invalid_mass,
            entropy=entropy,
        )


def compute_losses(
    *,
    policy: Array,
    value_pred: Array,
    invalid_mass: Array,
    policy_targets: Array,
    value_targets: Array,
    params_l2: Array,
    cfg: LossConfig,
) -> Losses:
    """Compute the loss decomposition for one minibatch.

    Args:
        policy: (B, A) renormalized policy over legal actions
        value_pred: (B,)
        invalid_mass: (B,) weight put on illegal actions
        policy_targets: (B, A)
        value_targets: (B,)
        params_l2: scalar sum of squares of the regularized params
        cfg: LossConfig

    Returns:
        Losses struct.
    """
    eps = jnp.finfo(policy.dtype).eps
    log_policy = jnp.log(policy + eps)
    policy_loss = jnp.mean(-jnp.sum(policy_targets * log_policy, axis=-1))
    value_loss = jnp.mean(jnp.square(value_pred - value_targets))
    l2 = cfg.weight_decay * params_l2
    mean_invalid = jnp.mean(invalid_mass)
    invalid = cfg.invalid_actions_penalty * mean_invalid
    entropy = jnp.mean(-jnp.sum(policy * log_policy, axis=-1))

    total = policy_loss + cfg.value_loss_weight * value_loss + l2 + invalid
    return Losses(
        total=total,
        policy=policy_loss,
        value=value_loss,
        l2=l2,
        invalid=invalid,
        invalid_mass=mean_invalid,
        entropy=entropy,
    )
