"""Tests for optimizer construction."""

from __future__ import annotations

import jax.numpy as jnp
import optax
import pytest

from zerofeed.train.optimizer import (
    OPTIMIZER_KINDS,
    OptimConfig,
    make_optimizer,
)


@pytest.mark.parametrize("kind", OPTIMIZER_KINDS)
def test_make_optimizer_updates_params(kind: str) -> None:
    """Every optimizer kind produces a usable transformation."""
    cfg = OptimConfig(
        kind=kind, learning_rate=0.1, total_steps=10, warmup_steps=2
    )
    tx, schedule = make_optimizer(cfg)
    params = {"w": jnp.ones((2, 2))}
    opt_state = tx.init(params)
    grads = {"w": jnp.ones((2, 2))}
    # Step past warmup so the learning rate is non-zero.
    for _ in range(3):
        updates, opt_state = tx.update(grads, opt_state, params)
        params = optax.apply_updates(params, updates)
    assert jnp.all(params["w"] < 1.0)
    assert float(schedule(3)) > 0.0


def test_cyclic_schedule_shape() -> None:
    """The cyclic learning rate goes low, high, then low again."""
    cfg = OptimConfig(
        kind="cyclic_nesterov", learning_rate=0.5, total_steps=10, lr_low=0.1
    )
    _, schedule = make_optimizer(cfg)
    assert float(schedule(0)) == pytest.approx(0.1)
    assert float(schedule(5)) == pytest.approx(0.5)
    assert float(schedule(10)) == pytest.approx(0.1)
    assert float(schedule(2)) < float(schedule(4))


def test_nesterov_uses_constant_rate_and_momentum() -> None:
    """Nesterov SGD keeps its learning rate and carries momentum."""
    cfg = OptimConfig(
        kind="nesterov", learning_rate=0.1, total_steps=10, momentum=0.5
    )
    tx, schedule = make_optimizer(cfg)
    assert float(schedule(0)) == pytest.approx(0.1)
    assert float(schedule(9)) == pytest.approx(0.1)

    params = {"w": jnp.zeros(())}
    opt_state = tx.init(params)
    grads = {"w": jnp.ones(())}
    first, opt_state = tx.update(grads, opt_state, params)
    second, _ = tx.update(grads, opt_state, params)
    # Nesterov step: -lr * (g + momentum * trace), trace = g then g + m g.
    assert float(first["w"]) == pytest.approx(-0.1 * 1.5)
    assert float(second["w"]) == pytest.approx(-0.1 * (1.0 + 0.5 * 1.5))


def test_make_optimizer_rejects_unknown_kind() -> None:
    """Unknown optimizer kinds are reported."""
    with pytest.raises(ValueError, match="Unknown optimizer kind"):
        _ = make_optimizer(
            OptimConfig(kind="rmsprop", learning_rate=0.1, total_steps=1)
        )
