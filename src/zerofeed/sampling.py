"""
Probability vector repair and categorical sampling for move selection.

Vectors coming out of the network or out of search drift away from summing
to one; they are repaired before every draw.
"""

from __future__ import annotations

from typing import Final

import jax
import jax.numpy as jnp
import numpy as np
from numpy.typing import ArrayLike

from zerofeed.errors import EmptyInputError
from zerofeed.network.base import Network
from zerofeed.network.evaluate import evaluate_single
from zerofeed.types import HostArray, PRNGKey

# Relative tolerance on the sum, sqrt(eps) of the canonical float32 type.
SUM_RTOL: Final[float] = float(np.sqrt(np.finfo(np.float32).eps))


def fix_probvec(pi: ArrayLike) -> HostArray:
    """Repair a weight vector so that it is a float32 distribution.

    - sum within tolerance of 1: returned unchanged
    - sum exactly 0: uniform distribution over the same support
    - otherwise: divided by its sum

    Raises:
        EmptyInputError: If `pi` is empty.
    """
    probs = np.array(pi, dtype=np.float32).reshape(-1)
    if probs.size == 0:
        raise EmptyInputError("cannot repair an empty probability vector")
    # Sum in float64 so large finite weights cannot overflow to inf.
    total = float(np.sum(probs, dtype=np.float64))
    if np.isclose(total, 1.0, rtol=SUM_RTOL, atol=0.0):
        return probs
    if total == 0.0:
        return np.full(probs.shape, 1.0 / probs.size, dtype=np.float32)
    return (probs.astype(np.float64) / total).astype(np.float32)


def rand_categorical(rng_key: PRNGKey, pi: ArrayLike) -> int:
    """Draw an index in [0, len(pi)) proportionally to the repaired `pi`."""
    probs = fix_probvec(pi)
    draw = jax.random.choice(rng_key, probs.size, p=jnp.asarray(probs))
    return int(jax.device_get(draw))


def apply_temperature(pi: ArrayLike, temperature: float) -> HostArray:
    """Sharpen (tau < 1) or flatten (tau > 1) a distribution.

    A zero temperature puts all the mass on the most likely action.
    """
    if temperature < 0:
        raise ValueError(f"temperature must be >= 0, got {temperature}")
    probs = fix_probvec(pi)
    if temperature == 0:
        onehot = np.zeros_like(probs)
        onehot[int(np.argmax(probs))] = 1.0
        return onehot
    if temperature == 1:
        return probs
    return fix_probvec(np.power(probs, 1.0 / temperature))


def sample_action(
    network: Network,
    board: ArrayLike,
    actions_mask: ArrayLike,
    *,
    rng_key: PRNGKey,
    temperature: float = 1.0,
) -> int:
    """Pick a self-play action from the masked network policy.

    Args:
        network: Network to evaluate.
        board: A single board encoding (no batch axis).
        actions_mask: Binary vector over the full action space.
        rng_key: Key for the categorical draw.
        temperature: Move selection temperature.

    Returns:
        Index of the chosen action in the full action space.

    Raises:
        EmptyInputError: If no action is legal.
    """
    legal_actions = np.flatnonzero(np.asarray(actions_mask).astype(bool))
    if legal_actions.size == 0:
        raise EmptyInputError("no legal action to sample")
    legal_probs, _ = evaluate_single(network, board, actions_mask)
    probs = apply_temperature(legal_probs, temperature)
    return int(legal_actions[rand_categorical(rng_key, probs)])
