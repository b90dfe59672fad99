"""Tests for the NNX network backend and derived helpers."""

from __future__ import annotations

import chex
import jax.numpy as jnp
from flax import nnx

from zerofeed.network.base import (
    Network,
    copy_network,
    mean_weight,
    num_parameters,
    num_regularized_parameters,
)
from zerofeed.network.evaluate import evaluate
from zerofeed.network.mlp import MlpConfig, MlpPolicyValueNet
from zerofeed.network.nnx_backend import NnxNetwork

_CFG = MlpConfig(board_size=6, num_actions=4, width=8, depth=2, mlp_ratio=2)


def _network(seed: int = 0) -> NnxNetwork:
    return NnxNetwork(MlpPolicyValueNet(_CFG, rngs=nnx.Rngs(seed)))


def test_mlp_shapes() -> None:
    """MlpPolicyValueNet flattens boards and emits logits and values."""
    model = MlpPolicyValueNet(_CFG, rngs=nnx.Rngs(0))
    out = model(jnp.zeros((3, 2, 3), dtype=jnp.float32))
    assert out.policy_logits.shape == (3, 4)
    assert out.value.shape == (3,)
    assert jnp.all(jnp.abs(out.value) <= 1.0)


def test_forward_returns_distribution() -> None:
    """forward turns logits into rows that sum to one."""
    network = _network()
    policy, value = network.forward(jnp.ones((5, 6), dtype=jnp.float32))
    assert policy.shape == (5, 4)
    assert value.shape == (5,)
    chex.assert_trees_all_close(
        jnp.sum(policy, axis=-1), jnp.ones(5), atol=1e-6
    )


def test_nnx_network_satisfies_protocol() -> None:
    """NnxNetwork implements the Network capability set."""
    assert isinstance(_network(), Network)


def test_parameter_counts() -> None:
    """Regularized parameters are the weight matrices only."""
    network = _network()
    total = num_parameters(network)
    regularized = num_regularized_parameters(network)
    # embed 6x8, two blocks of 8x16 + 16x8, policy 8x4, value 8x1.
    assert regularized == 6 * 8 + 2 * (8 * 16 + 16 * 8) + 8 * 4 + 8
    assert total > regularized
    assert mean_weight(network) > 0.0


def test_copy_is_independent() -> None:
    """Copies carry the same weights but do not alias the module."""
    network = _network()
    copied = network.copy()
    assert copied.model is not network.model
    boards = jnp.ones((2, 6), dtype=jnp.float32)
    chex.assert_trees_all_close(
        network.forward(boards), copied.forward(boards)
    )


def test_copy_network_sets_mode_and_device() -> None:
    """copy_network applies the requested mode on CPU."""
    network = _network()
    copied = copy_network(network, on_gpu=False, test_mode=True)
    assert copied.test_mode
    assert not network.test_mode
    assert not copied.on_gpu()
    assert network.to_cpu() is network


def test_convert_roundtrip() -> None:
    """convert_input yields float32 arrays and convert_output numpy."""
    network = _network()
    x = network.convert_input([[1, 2, 3, 4, 5, 6]])
    assert x.dtype == jnp.float32
    out = network.convert_output(evaluate(network, x, jnp.ones((1, 4))).value)
    assert out.shape == (1,)
