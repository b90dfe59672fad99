"""
Optax optimizer and LR schedule creation.

Supported kinds:
- adamw: warmup + cosine decay, global-norm clipping
- adam: constant learning rate
- nesterov: SGD with constant learning rate and Nesterov momentum
- cyclic_nesterov: SGD whose learning rate goes low -> high -> low over
  `total_steps` while Nesterov momentum goes high -> low -> high
"""

from __future__ import annotations

from dataclasses import dataclass

import optax

OPTIMIZER_KINDS = ("adamw", "adam", "nesterov", "cyclic_nesterov")


@dataclass(frozen=True, slots=True)
class OptimConfig:
    """Optimizer hyperparameters."""

    kind: str
    learning_rate: float
    total_steps: int
    warmup_steps: int = 0
    grad_clip_norm: float = 1.0
    weight_decay: float = 0.0
    momentum: float = 0.9
    lr_low: float = 0.0
    momentum_low: float = 0.85
    momentum_high: float = 0.95


def _cycle(start: float, peak: float, total_steps: int) -> optax.Schedule:
    """Linear ramp from `start` to `peak` and back over `total_steps`."""
    half = max(total_steps // 2, 1)
    return optax.join_schedules(
        [
            optax.linear_schedule(start, peak, half),
            optax.linear_schedule(peak, start, max(total_steps - half, 1)),
        ],
        boundaries=[half],
    )


def make_optimizer(
    cfg: OptimConfig,
) -> tuple[optax.GradientTransformation, optax.Schedule]:
    """Create (optimizer, learning-rate schedule) tuple.

    Raises:
        ValueError: If `cfg.kind` is not a supported optimizer.
    """
    if cfg.kind == "adamw":
        schedule = optax.warmup_cosine_decay_schedule(
            init_value=0.0,
            peak_value=cfg.learning_rate,
            warmup_steps=cfg.warmup_steps,
            decay_steps=cfg.total_steps,
            end_value=0.0,
        )
        tx = optax.chain(
            optax.clip_by_global_norm(cfg.grad_clip_norm),
            optax.adamw(schedule, weight_decay=cfg.weight_decay),
        )
        return tx, schedule

    if cfg.kind == "adam":
        schedule = optax.constant_schedule(cfg.learning_rate)
        return optax.adam(schedule), schedule

    if cfg.kind == "nesterov":
        schedule = optax.constant_schedule(cfg.learning_rate)
        tx = optax.sgd(schedule, momentum=cfg.momentum, nesterov=True)
        return tx, schedule

    if cfg.kind == "cyclic_nesterov":
        schedule = _cycle(cfg.lr_low, cfg.learning_rate, cfg.total_steps)
        # Momentum moves opposite to the learning rate.
        momentum = _cycle(cfg.momentum_high, cfg.momentum_low, cfg.total_steps)
        tx = optax.inject_hyperparams(optax.sgd)(
            learning_rate=schedule, momentum=momentum, nesterov=True
        )
        return tx, schedule

    raise ValueError(
        f"Unknown optimizer kind: {cfg.kind} (expected one of "
        f"{', '.join(OPTIMIZER_KINDS)})"
    )
