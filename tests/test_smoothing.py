"""Tests for momentum smoothing of diagnostic curves."""

from __future__ import annotations

import numpy as np
import pytest

from zerofeed.smoothing import momentum_smoothing


def test_momentum_smoothing_boundaries() -> None:
    """Empty input is returned as is; one value is left unchanged."""
    empty: list[float] = []
    assert momentum_smoothing(empty, 0.3) is empty
    for mu in (0.01, 0.5, 1.0):
        np.testing.assert_array_equal(momentum_smoothing([5], mu), [5.0])


def test_momentum_smoothing_recurrence() -> None:
    """y[i] = mu * x[i] + (1 - mu) * y[i - 1]."""
    smoothed = momentum_smoothing([1.0, 2.0, 3.0], 0.5)
    np.testing.assert_allclose(smoothed, [1.0, 1.5, 2.25])
    assert len(smoothed) == 3


def test_momentum_smoothing_unit_momentum_is_identity() -> None:
    """mu = 1 keeps the raw curve."""
    values = np.array([3.0, -1.0, 4.0, 1.5])
    np.testing.assert_allclose(momentum_smoothing(values, 1.0), values)


def test_momentum_smoothing_rejects_bad_momentum() -> None:
    """mu must lie in (0, 1]."""
    for mu in (0.0, -0.5, 1.5):
        with pytest.raises(ValueError, match="mu"):
            _ = momentum_smoothing([1.0], mu)
