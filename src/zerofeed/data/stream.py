"""
Infinite stream of random minibatches.

The stream is an explicit state machine: the iterator over the current
pass plus everything needed to draw the next one. Callers never observe
pass boundaries.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence

import numpy as np
from numpy.typing import ArrayLike

from zerofeed.data.batching import (
    batch_axis_length,
    batch_ranges,
    random_batches,
)
from zerofeed.rng import RngStream
from zerofeed.types import PassIndex


class RandomBatchStream[T]:
    """Stateful, forward-only, never-exhausted sequence of minibatches."""

    def __init__(
        self,
        convert: Callable[[np.ndarray], T],
        data: Sequence[ArrayLike],
        batch_size: int,
        *,
        rng: RngStream,
        partial: bool = False,
    ) -> None:
        """Validate the collections and prepare the first pass lazily.

        Args:
            convert: Per-batch conversion applied to each collection.
            data: Aligned collections sharing their leading-axis length.
            batch_size: Number of samples per full batch.
            rng: Stream whose per-pass keys draw each permutation.
            partial: Keep trailing undersized batches. Forced on when
                there are fewer samples than `batch_size`.

        Raises:
            EmptyInputError: If there is nothing to batch.
            ShapeMismatchError: If the collections are not aligned.
        """
        self._num_samples = batch_axis_length(data)
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._convert = convert
        self._data = tuple(data)
        self._batch_size = batch_size
        # Without this a small dataset would yield no batch at all.
        self._partial = partial or self._num_samples < batch_size
        self._rng = rng
        self._passes_started = 0
        self._current: Iterator[tuple[T, ...]] | None = None

    @property
    def num_samples(self) -> int:
        return self._num_samples

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def partial(self) -> bool:
        return self._partial

    @property
    def batches_per_pass(self) -> int:
        """Number of batches every pass yields."""
        return len(
            batch_ranges(
                self._num_samples, self._batch_size, partial=self._partial
            )
        )

    @property
    def passes_started(self) -> int:
        """Number of shuffled passes drawn so far."""
        return self._passes_started

    def __iter__(self) -> RandomBatchStream[T]:
        return self

    def __next__(self) -> tuple[T, ...]:
        while True:
            if self._current is None:
                self._current = self._start_pass()
            try:
                return next(self._current)
            except StopIteration:
                # Pass exhausted; the next loop iteration reshuffles.
                self._current = None

    def _start_pass(self) -> Iterator[tuple[T, ...]]:
        key = self._rng.key_for_pass(PassIndex(self._passes_started))
        self._passes_started += 1
        return random_batches(
            self._convert,
            self._data,
            self._batch_size,
            rng_key=key,
            partial=self._partial,
        )


def random_batches_stream[T](
    convert: Callable[[np.ndarray], T],
    data: Sequence[ArrayLike],
    batch_size: int,
    *,
    rng: RngStream,
) -> RandomBatchStream[T]:
    """Build an infinite stream that drops remainders unless starved."""
    return RandomBatchStream(convert, data, batch_size, rng=rng)
