"""
Exponential moving average for diagnostic curves.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def momentum_smoothing(
    x: Sequence[float] | np.ndarray, mu: float
) -> Sequence[float] | np.ndarray:
    """Smooth `x` with y[i] = mu * x[i] + (1 - mu) * y[i - 1], y[0] = x[0].

    Args:
        x: Values to smooth.
        mu: Weight of the newest value, in (0, 1].

    Returns:
        A float array of the same length, or `x` itself when empty.

    Raises:
        ValueError: If mu is outside (0, 1].
    """
    if not 0.0 < mu <= 1.0:
        raise ValueError(f"mu must be in (0, 1], got {mu}")
    if len(x) == 0:
        return x
    values = np.asarray(x, dtype=np.float64)
    smoothed = np.empty_like(values)
    v = values[0]
    for i, xi in enumerate(values):
        v = mu * xi + (1.0 - mu) * v
        smoothed[i] = v
    return smoothed
