"""
Network backend for Flax NNX modules.

The wrapped module maps boards to `PolicyValue(policy_logits, value)`;
`forward` turns logits into a distribution over the full action space.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
import numpy as np
from flax import nnx
from numpy.typing import ArrayLike

from zerofeed.types import Array, PolicyValue


def apply_policy_value(
    graphdef: nnx.GraphDef[nnx.Module], params: nnx.State, boards: Array
) -> tuple[Array, Array]:
    """Apply a split NNX module with explicit parameters.

    Args:
        graphdef: Split NNX graph definition.
        params: Parameter/state pytree.
        boards: Board batch.

    Returns:
        `(P, V)` with P the softmax policy over all actions.
    """
    output: PolicyValue = nnx.merge(graphdef, params)(boards)
    return jax.nn.softmax(output.policy_logits, axis=-1), output.value


def _array_leaves(state: nnx.State) -> list[Array]:
    leaves = jax.tree_util.tree_leaves(state)
    return [x for x in leaves if isinstance(x, jax.Array)]


def _gpu_device() -> jax.Device | None:
    try:
        return jax.devices("gpu")[0]
    except RuntimeError:
        return None


class NnxNetwork:
    """Adapter exposing an NNX module through the `Network` contract."""

    def __init__(self, model: nnx.Module) -> None:
        self._model = model
        self._test_mode = False

    @property
    def model(self) -> nnx.Module:
        return self._model

    @property
    def test_mode(self) -> bool:
        return self._test_mode

    def forward(self, boards: Array) -> tuple[Array, Array]:
        output: PolicyValue = self._model(boards)
        return jax.nn.softmax(output.policy_logits, axis=-1), output.value

    def params(self) -> list[Array]:
        return _array_leaves(nnx.state(self._model, nnx.Param))

    def regularized_params(self) -> list[Array]:
        # Weight matrices only; biases and norm scales are 1-D.
        return [p for p in self.params() if p.ndim >= 2]

    def copy(self) -> NnxNetwork:
        copied = NnxNetwork(nnx.clone(self._model))
        copied.set_test_mode(self._test_mode)
        return copied

    def to_gpu(self) -> NnxNetwork:
        device = _gpu_device()
        if device is None:
            return self
        return self._moved_to(device)

    def to_cpu(self) -> NnxNetwork:
        if not self.on_gpu():
            return self
        return self._moved_to(jax.devices("cpu")[0])

    def on_gpu(self) -> bool:
        return any(
            device.platform == "gpu"
            for leaf in self.params()
            for device in leaf.devices()
        )

    def set_test_mode(self, mode: bool = True) -> None:
        if mode:
            self._model.eval()
        else:
            self._model.train()
        self._test_mode = mode

    def convert_input(self, x: ArrayLike) -> Array:
        target = _gpu_device() if self.on_gpu() else None
        arr = jnp.asarray(x, dtype=jnp.float32)
        return jax.device_put(arr, target) if target is not None else arr

    def convert_output(self, x: Array) -> np.ndarray:
        return np.asarray(jax.device_get(x))

    def _moved_to(self, device: jax.Device) -> NnxNetwork:
        graphdef, state = nnx.split(self._model)
        moved = NnxNetwork(nnx.merge(graphdef, jax.device_put(state, device)))
        moved.set_test_mode(self._test_mode)
        return moved
