"""
Minibatch partitioning over aligned sample collections.

Design constraint:
- The batch axis is the leading axis of every collection
- One permutation per pass, shared by all collections of a tuple
- Host-side numpy slicing; device conversion is left to the caller
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence

import jax
import numpy as np
from numpy.typing import ArrayLike

from zerofeed.errors import EmptyInputError, ShapeMismatchError
from zerofeed.types import PRNGKey


def batch_ranges(
    n: int, batch_size: int, *, partial: bool = False
) -> list[range]:
    """Split `n` sample indices into contiguous ranges of `batch_size`.

    Args:
        n: Number of samples along the batch axis.
        batch_size: Size of every full range (>= 1).
        partial: Keep a trailing undersized range for the remainder.

    Returns:
        Ascending, non-overlapping index ranges.

    Raises:
        ValueError: If batch_size < 1 or n < 0.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if n < 0:
        raise ValueError(f"sample count must be >= 0, got {n}")
    num_full = n // batch_size
    ranges = [
        range(batch_size * i, batch_size * (i + 1)) for i in range(num_full)
    ]
    if partial and n % batch_size > 0:
        # Remainder that does not fill a whole batch.
        ranges.append(range(batch_size * num_full, n))
    return ranges


def batches(
    x: ArrayLike, batch_size: int, *, partial: bool = False
) -> list[np.ndarray]:
    """Partition an array along its leading axis into materialized batches.

    Args:
        x: Array whose first axis indexes samples.
        batch_size: Number of samples per full batch.
        partial: Keep the trailing undersized batch.

    Returns:
        List of array copies, one per batch.
    """
    arr = np.asarray(x)
    # Copy each slice so no batch aliases the source buffer.
    return [
        arr[r.start : r.stop].copy()
        for r in batch_ranges(arr.shape[0], batch_size, partial=partial)
    ]


def batch_axis_length(data: Sequence[ArrayLike]) -> int:
    """Return the shared batch-axis length of aligned collections.

    Raises:
        EmptyInputError: If `data` is empty or the collections hold no
            samples.
        ShapeMismatchError: If the collections disagree on their length.
    """
    if len(data) == 0:
        raise EmptyInputError("at least one sample collection is required")
    lengths = [np.shape(x)[0] if np.ndim(x) > 0 else 0 for x in data]
    if any(length != lengths[0] for length in lengths):
        raise ShapeMismatchError(
            f"collections disagree on batch-axis length: {lengths}"
        )
    if lengths[0] == 0:
        raise EmptyInputError("sample collections are empty")
    return int(lengths[0])


def random_batches[T](
    convert: Callable[[np.ndarray], T],
    data: Sequence[ArrayLike],
    batch_size: int,
    *,
    rng_key: PRNGKey,
    partial: bool = False,
) -> Iterator[tuple[T, ...]]:
    """Produce one shuffled pass of aligned minibatches.

    Validation and the permutation happen eagerly; `convert` is applied
    lazily, once per collection per batch, as the result is consumed.

    Args:
        convert: Per-batch conversion (e.g. `jnp.asarray` for device
            transfer). Exceptions propagate to the caller.
        data: Aligned collections sharing their leading-axis length.
        batch_size: Number of samples per full batch.
        rng_key: Key that draws this pass's permutation.
        partial: Keep the trailing undersized batch.

    Returns:
        Iterator of tuples holding one converted batch per collection,
        in input order.
    """
    n = batch_axis_length(data)
    perm = np.asarray(jax.device_get(jax.random.permutation(rng_key, n)))
    # Apply the same permutation to every collection before partitioning.
    per_collection = [
        batches(
            np.take(np.asarray(x), perm, axis=0), batch_size, partial=partial
        )
        for x in data
    ]
    return (
        tuple(convert(b) for b in group) for group in zip(*per_collection)
    )
