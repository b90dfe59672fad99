"""
Core training loop pieces.

Design:
- the parameter update is jitted once per (graphdef, optimizer, loss config)
- minibatches come from a RandomBatchStream as
  (boards, actions_mask, policy_targets, value_targets)
- the step counter lives on the host, outside the jitted update
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import jax
import jax.numpy as jnp
import optax
from flax import nnx

from zerofeed.network.evaluate import mask_policy
from zerofeed.network.nnx_backend import apply_policy_value
from zerofeed.train.losses import LossConfig, Losses, compute_losses
from zerofeed.train.state import TrainState
from zerofeed.types import Array, Step

type Batch = tuple[Array, Array, Array, Array]
type TrainStepFn = Callable[[TrainState, Batch], tuple[TrainState, Losses]]


@dataclass(frozen=True, slots=True)
class TrainConfig:
    """Training loop settings."""

    total_steps: int


def regularized_l2(params: nnx.State) -> Array:
    """Sum of squares of the weight matrices (biases and scales excluded)."""
    leaves = jax.tree_util.tree_leaves(params)
    terms = [
        jnp.sum(jnp.square(x))
        for x in leaves
        if isinstance(x, jax.Array) and x.ndim >= 2
    ]
    if not terms:
        return jnp.array(0.0, dtype=jnp.float32)
    return jnp.sum(jnp.stack(terms))


def batch_losses(
    graphdef: nnx.GraphDef[nnx.Module],
    params: nnx.State,
    batch: Batch,
    loss_cfg: LossConfig,
) -> Losses:
    """Evaluate the masked network on a minibatch and decompose the loss."""
    boards, actions_mask, policy_targets, value_targets = batch
    policy_raw, value = apply_policy_value(graphdef, params, boards)
    policy, invalid_mass = mask_policy(policy_raw, actions_mask)
    return compute_losses(
        policy=policy,
        value_pred=value,
        invalid_mass=invalid_mass,
        policy_targets=policy_targets,
        value_targets=value_targets,
        params_l2=regularized_l2(params),
        cfg=loss_cfg,
    )


def make_train_step(
    graphdef: nnx.GraphDef[nnx.Module],
    tx: optax.GradientTransformation,
    loss_cfg: LossConfig,
) -> TrainStepFn:
    """Build a single-device optimization step.

    Args:
        graphdef: Graph definition of the split NNX model.
        tx: Optax transformation whose state lives in TrainState.
        loss_cfg: Loss weights.

    Returns:
        `train_step(state, batch) -> (new_state, losses)`.
    """

    def loss_fn(params: nnx.State, batch: Batch) -> tuple[Array, Losses]:
        losses = batch_losses(graphdef, params, batch, loss_cfg)
        return losses.total, losses

    @jax.jit
    def update(
        params: nnx.State, opt_state: optax.OptState, batch: Batch
    ) -> tuple[nnx.State, optax.OptState, Losses]:
        (_, losses), grads = jax.value_and_grad(loss_fn, has_aux=True)(
            params, batch
        )
        updates, opt_state = tx.update(grads, opt_state, params)
        params = optax.apply_updates(params, updates)
        return params, opt_state, losses

    def train_step(
        state: TrainState, batch: Batch
    ) -> tuple[TrainState, Losses]:
        params, opt_state, losses = update(state.params, state.opt_state, batch)
        new_state = TrainState(
            step=Step(int(state.step) + 1),
            params=params,
            opt_state=opt_state,
        )
        return new_state, losses

    return train_step
