"""
A generic, framework-agnostic network contract.

Any backend exposing this capability set can be evaluated through
`zerofeed.network.evaluate`.
"""

from __future__ import annotations

from typing import Protocol, Self, runtime_checkable

import jax
import jax.numpy as jnp
import numpy as np
from numpy.typing import ArrayLike

from zerofeed.types import Array


@runtime_checkable
class Network(Protocol):
    """Capability set every network backend implements."""

    def forward(self, boards: Array) -> tuple[Array, Array]:
        """Compute the forward pass on a batch of boards.

        Args:
            boards: Float32 tensor whose leading axis is the batch axis.

        Returns:
            `(P, V)` where `P` is `(batch_size, num_actions)` and is allowed
            to put weight on invalid actions, and `V` is `(batch_size,)`.
        """
        ...

    def params(self) -> list[Array]:
        """Return all trainable parameter arrays."""
        ...

    def regularized_params(self) -> list[Array]:
        """Return the parameters subject to L2 regularization."""
        ...

    def copy(self) -> Self:
        """Return an independent copy of the network."""
        ...

    def to_gpu(self) -> Self:
        """Return a copy on GPU if one is available, else `self`."""
        ...

    def to_cpu(self) -> Self:
        """Return a copy on CPU, or `self` if already there."""
        ...

    def on_gpu(self) -> bool:
        ...

    def set_test_mode(self, mode: bool = True) -> None:
        """Switch between test (inference) and training behavior."""
        ...

    def convert_input(self, x: ArrayLike) -> Array:
        """Convert a host array into the network's input format."""
        ...

    def convert_output(self, x: Array) -> np.ndarray:
        """Convert a network output into a host numpy array."""
        ...


def convert_input_tuple(
    network: Network, inputs: tuple[ArrayLike, ...]
) -> tuple[Array, ...]:
    return tuple(network.convert_input(x) for x in inputs)


def convert_output_tuple(
    network: Network, outputs: tuple[Array, ...]
) -> tuple[np.ndarray, ...]:
    return tuple(network.convert_output(x) for x in outputs)


def num_parameters(network: Network) -> int:
    """Return the total number of trainable parameters."""
    return sum(int(p.size) for p in network.params())


def num_regularized_parameters(network: Network) -> int:
    """Return the total number of regularized parameters."""
    return sum(int(p.size) for p in network.regularized_params())


def mean_weight(network: Network) -> float:
    """Return the mean absolute value of the regularized parameters."""
    count = num_regularized_parameters(network)
    if count == 0:
        return 0.0
    total = sum(jnp.sum(jnp.abs(p)) for p in network.regularized_params())
    return float(jax.device_get(total)) / count


def copy_network[N: Network](
    network: N, *, on_gpu: bool, test_mode: bool
) -> N:
    """Copy a network, moving it to the requested device and mode."""
    copied = network.copy()
    copied = copied.to_gpu() if on_gpu else copied.to_cpu()
    copied.set_test_mode(test_mode)
    return copied
