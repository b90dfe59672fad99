"""
Structural errors raised by the batching and sampling pipeline.

Numeric degeneracies (all-zero masks, all-zero probability vectors) are
repaired where they occur and never raised.
"""

from __future__ import annotations


class ShapeMismatchError(ValueError):
    """Aligned collections disagree on their batch-axis length."""


class EmptyInputError(ValueError):
    """A collection tuple, collection or probability vector is empty."""
