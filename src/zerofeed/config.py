"""
Typed run configuration parsed from TOML.

Tables:
- [run]: name, seed, log_every_steps, max_runtime_minutes, smoothing
- [data]: path, batch_size, partial (optional)
- [model]: width, depth, mlp_ratio
- [train]: total_steps
- [optim]: kind, learning_rate, plus kind-specific optional keys
- [loss]: value_loss_weight, weight_decay, invalid_actions_penalty
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from zerofeed.toml_io import TomlValue
from zerofeed.train.learner import TrainConfig
from zerofeed.train.losses import LossConfig
from zerofeed.train.optimizer import OptimConfig

type TomlTable = dict[str, TomlValue]


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Run-level configuration.

    Attributes:
        name: Run name used in artifact paths.
        seed: Base RNG seed.
        log_every_steps: Metrics logging cadence.
        max_runtime_minutes: Hard wall-clock limit in minutes.
        smoothing: Momentum of the smoothed loss curve, in (0, 1].
    """

    name: str
    seed: int
    log_every_steps: int
    max_runtime_minutes: int
    smoothing: float


@dataclass(frozen=True, slots=True)
class DataConfig:
    """Where samples live and how they are batched."""

    path: Path
    batch_size: int
    partial: bool


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Trunk dimensions; input and action sizes come from the data."""

    width: int
    depth: int
    mlp_ratio: int


def _get_int(table: TomlTable, key: str) -> int:
    """Fetch a required integer from a TOML table.

    Raises:
        ValueError: If the key is missing or not an int.
    """
    value = table.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"Missing int key: {key}")
    return value


def _get_float(table: TomlTable, key: str) -> float:
    """Fetch a required float (ints are coerced).

    Raises:
        ValueError: If the key is missing or not a number.
    """
    value = table.get(key)
    if isinstance(value, bool):
        raise ValueError(f"Missing float key: {key}")
    if isinstance(value, int):
        return float(value)
    if not isinstance(value, float):
        raise ValueError(f"Missing float key: {key}")
    return value


def _get_str(table: TomlTable, key: str) -> str:
    value = table.get(key)
    if not isinstance(value, str):
        raise ValueError(f"Missing string key: {key}")
    return value


def _get_bool_optional(table: TomlTable, key: str, default: bool) -> bool:
    value = table.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Invalid bool key: {key}")
    return value


def _get_int_optional(table: TomlTable, key: str, default: int) -> int:
    return default if key not in table else _get_int(table, key)


def _get_float_optional(table: TomlTable, key: str, default: float) -> float:
    return default if key not in table else _get_float(table, key)


def _get_table(data: TomlTable, key: str) -> TomlTable:
    """Fetch a required TOML table.

    Raises:
        ValueError: If the key is missing or not a table.
    """
    value = data.get(key)
    if not isinstance(value, dict):
        raise ValueError(f"Missing TOML table: {key}")
    return value


def parse_run_config(config: TomlTable) -> RunConfig:
    table = _get_table(config, "run")
    smoothing = _get_float_optional(table, "smoothing", 0.1)
    if not 0.0 < smoothing <= 1.0:
        raise ValueError("run.smoothing must be in (0, 1]")
    return RunConfig(
        name=_get_str(table, "name"),
        seed=_get_int(table, "seed"),
        log_every_steps=_get_int(table, "log_every_steps"),
        max_runtime_minutes=_get_int(table, "max_runtime_minutes"),
        smoothing=smoothing,
    )


def parse_data_config(config: TomlTable) -> DataConfig:
    table = _get_table(config, "data")
    batch_size = _get_int(table, "batch_size")
    if batch_size < 1:
        raise ValueError("data.batch_size must be >= 1")
    return DataConfig(
        path=Path(_get_str(table, "path")),
        batch_size=batch_size,
        partial=_get_bool_optional(table, "partial", False),
    )


def parse_model_config(config: TomlTable) -> ModelConfig:
    table = _get_table(config, "model")
    return ModelConfig(
        width=_get_int(table, "width"),
        depth=_get_int(table, "depth"),
        mlp_ratio=_get_int(table, "mlp_ratio"),
    )


def parse_train_config(config: TomlTable) -> TrainConfig:
    table = _get_table(config, "train")
    return TrainConfig(total_steps=_get_int(table, "total_steps"))


def parse_optim_config(config: TomlTable, total_steps: int) -> OptimConfig:
    """Parse [optim]; schedules span the configured number of steps."""
    table = _get_table(config, "optim")
    return OptimConfig(
        kind=_get_str(table, "kind"),
        learning_rate=_get_float(table, "learning_rate"),
        total_steps=total_steps,
        warmup_steps=_get_int_optional(table, "warmup_steps", 0),
        grad_clip_norm=_get_float_optional(table, "grad_clip_norm", 1.0),
        weight_decay=_get_float_optional(table, "weight_decay", 0.0),
        momentum=_get_float_optional(table, "momentum", 0.9),
        lr_low=_get_float_optional(table, "lr_low", 0.0),
        momentum_low=_get_float_optional(table, "momentum_low", 0.85),
        momentum_high=_get_float_optional(table, "momentum_high", 0.95),
    )


def parse_loss_config(config: TomlTable) -> LossConfig:
    table = _get_table(config, "loss")
    return LossConfig(
        value_loss_weight=_get_float(table, "value_loss_weight"),
        weight_decay=_get_float(table, "weight_decay"),
        invalid_actions_penalty=_get_float(table, "invalid_actions_penalty"),
    )
