"""
Aligned training samples and their .npz storage.

Shapes (leading axis is the batch axis):
    boards: (N, *board_shape)
    actions_mask: (N, num_actions)  -- 1 for legal actions
    policy_targets: (N, num_actions)
    value_targets: (N,)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import numpy as np

from zerofeed.data.batching import batch_axis_length
from zerofeed.errors import ShapeMismatchError

_FIELDS = ("boards", "actions_mask", "policy_targets", "value_targets")


@dataclass(frozen=True, slots=True)
class SampleSet:
    """Host-side aligned sample collections."""

    boards: np.ndarray
    actions_mask: np.ndarray
    policy_targets: np.ndarray
    value_targets: np.ndarray

    def __post_init__(self) -> None:
        # Fail fast on misaligned or empty collections.
        batch_axis_length(self.as_tuple())
        if self.actions_mask.shape != self.policy_targets.shape:
            raise ShapeMismatchError(
                "actions_mask and policy_targets shapes differ: "
                f"{self.actions_mask.shape} vs {self.policy_targets.shape}"
            )
        if self.value_targets.ndim != 1:
            raise ShapeMismatchError("value_targets must be one-dimensional")

    @property
    def num_samples(self) -> int:
        return int(self.boards.shape[0])

    @property
    def num_actions(self) -> int:
        return int(self.actions_mask.shape[-1])

    @property
    def board_shape(self) -> tuple[int, ...]:
        return tuple(int(d) for d in self.boards.shape[1:])

    def as_tuple(
        self,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """Return the collections in stream order."""
        return (
            self.boards,
            self.actions_mask,
            self.policy_targets,
            self.value_targets,
        )


def load_samples(path: Path) -> SampleSet:
    """Load a SampleSet from an .npz archive.

    Raises:
        FileNotFoundError: If path does not exist.
        ValueError: If a required array is missing.
    """
    with np.load(path) as archive:
        missing = [name for name in _FIELDS if name not in archive.files]
        if missing:
            raise ValueError(f"Missing sample arrays: {', '.join(missing)}")
        return SampleSet(
            boards=archive["boards"].astype(np.float32),
            actions_mask=archive["actions_mask"].astype(np.float32),
            policy_targets=archive["policy_targets"].astype(np.float32),
            value_targets=archive["value_targets"].astype(np.float32),
        )


def save_samples(path: Path, samples: SampleSet) -> None:
    """Write a SampleSet as an uncompressed .npz archive."""
    np.savez(
        path,
        boards=samples.boards,
        actions_mask=samples.actions_mask,
        policy_targets=samples.policy_targets,
        value_targets=samples.value_targets,
    )
