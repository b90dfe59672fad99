"""
TOML metrics snapshots and loss curves.

All metrics artifacts are TOML and stored under runs/<run_id>/.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from zerofeed.paths import RunPaths
from zerofeed.smoothing import momentum_smoothing
from zerofeed.toml_io import TomlValue, save_toml
from zerofeed.train.losses import Losses


@dataclass(frozen=True, slots=True)
class Metrics:
    """A metrics bundle suitable for TOML serialization."""

    step: int
    loss_total: float
    loss_policy: float
    loss_value: float
    loss_l2: float
    loss_invalid: float
    invalid_mass: float
    entropy_mean: float
    passes_started: int

    @staticmethod
    def from_losses(step: int, losses: Losses, passes_started: int) -> Metrics:
        """Build metrics from host-side (float) losses."""
        return Metrics(
            step=step,
            loss_total=float(losses.total),
            loss_policy=float(losses.policy),
            loss_value=float(losses.value),
            loss_l2=float(losses.l2),
            loss_invalid=float(losses.invalid),
            invalid_mass=float(losses.invalid_mass),
            entropy_mean=float(losses.entropy),
            passes_started=passes_started,
        )


def write_metrics_snapshot(paths: RunPaths, metrics: Metrics) -> None:
    """Write a metrics snapshot TOML file named by step."""
    # Zero-padded filenames keep lexicographic order.
    path = paths.metrics_dir / f"step_{metrics.step:010d}.toml"
    data: dict[str, TomlValue] = {
        "step": metrics.step,
        "loss_total": metrics.loss_total,
        "loss_policy": metrics.loss_policy,
        "loss_value": metrics.loss_value,
        "loss_l2": metrics.loss_l2,
        "loss_invalid": metrics.loss_invalid,
        "invalid_mass": metrics.invalid_mass,
        "entropy_mean": metrics.entropy_mean,
        "passes_started": metrics.passes_started,
    }
    save_toml(path, data)


def write_loss_curve(
    paths: RunPaths, losses: Sequence[float], momentum: float
) -> None:
    """Write per-step losses and their momentum-smoothed curve."""
    smoothed = momentum_smoothing(list(losses), momentum)
    data: dict[str, TomlValue] = {
        "momentum": momentum,
        "loss": [float(x) for x in losses],
        "smoothed": [float(x) for x in smoothed],
    }
    save_toml(paths.loss_curve_toml, data)
