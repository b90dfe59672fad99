"""
Small host-side array helpers shared by batching and evaluation.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
from numpy.typing import ArrayLike

from zerofeed.errors import EmptyInputError
from zerofeed.types import HostArray


def superpose(arrays: Iterable[ArrayLike]) -> HostArray:
    """Stack same-shaped arrays along a new leading batch axis.

    Args:
        arrays: Non-empty iterable of arrays (or nested sequences).

    Returns:
        Array of shape (len(arrays), *shape).

    Raises:
        EmptyInputError: If no array is given.
    """
    items = [np.asarray(a) for a in arrays]
    if not items:
        raise EmptyInputError("superpose needs at least one array")
    return np.stack(items, axis=0)


def to_singleton(x: ArrayLike) -> HostArray:
    """Add a leading batch axis of size one."""
    return np.asarray(x)[None, ...]


def from_singleton(x: ArrayLike) -> HostArray:
    """Drop a leading batch axis of size one."""
    arr = np.asarray(x)
    if arr.ndim == 0 or arr.shape[0] != 1:
        raise ValueError(f"expected a leading axis of size 1, got {arr.shape}")
    return arr[0]
