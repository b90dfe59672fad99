"""
Command-line entrypoints.

Commands:
- train: stream shuffled minibatches from a sample set into the learner
"""

from __future__ import annotations

import argparse
import math
import platform
import time
from datetime import UTC, datetime
from pathlib import Path

import jax
import jax.numpy as jnp
from flax import nnx

from zerofeed.config import (
    parse_data_config,
    parse_loss_config,
    parse_model_config,
    parse_optim_config,
    parse_run_config,
    parse_train_config,
)
from zerofeed.data.samples import load_samples
from zerofeed.data.stream import RandomBatchStream
from zerofeed.network.mlp import MlpConfig, MlpPolicyValueNet
from zerofeed.paths import RunPaths
from zerofeed.rng import RngStream
from zerofeed.toml_io import TomlValue, load_toml, save_toml
from zerofeed.train.learner import make_train_step
from zerofeed.train.logging import (
    Metrics,
    write_loss_curve,
    write_metrics_snapshot,
)
from zerofeed.train.optimizer import make_optimizer
from zerofeed.train.state import TrainState
from zerofeed.types import Step


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="zerofeed")
    subparsers = parser.add_subparsers(dest="command", required=True)

    train_parser = subparsers.add_parser("train", help="Run training loop")
    train_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to TOML config",
    )
    return parser


def _append_event(paths: RunPaths, event: dict[str, TomlValue]) -> None:
    """Append a run event to events.toml with stable numbering."""
    # Reload existing events to keep numbering monotonic.
    data = load_toml(paths.events_toml) if paths.events_toml.exists() else {}
    idx = 0
    for key in data:
        if key.startswith("event_"):
            try:
                idx = max(idx, int(key.split("_", 1)[1]))
            except ValueError:
                continue
    data[f"event_{idx + 1:04d}"] = event
    save_toml(paths.events_toml, data)


def _git_sha() -> str:
    """Resolve the current git SHA, or "unknown" outside a checkout."""
    head_path = Path(".git") / "HEAD"
    if not head_path.exists():
        return "unknown"
    head = head_path.read_text(encoding="utf-8").strip()
    if head.startswith("ref: "):
        ref_path = Path(".git") / head.split(" ", 1)[1]
        if ref_path.exists():
            return ref_path.read_text(encoding="utf-8").strip()
        return "unknown"
    return head


def _run_id(run_name: str) -> str:
    stamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{run_name}"


def _write_start_event(paths: RunPaths, run_id: str, run_name: str) -> None:
    event: dict[str, TomlValue] = {
        "event": "start",
        "run_id": run_id,
        "run_name": run_name,
        "started_utc": datetime.now(UTC).isoformat(),
        "git_sha": _git_sha(),
        "host": platform.node(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "jax_backend": jax.default_backend(),
    }
    _append_event(paths, event)


def _write_stop_event(
    paths: RunPaths, run_id: str, run_name: str, reason: str, steps: int
) -> None:
    """Write a run stop event.

    Args:
        paths: RunPaths for the current run.
        run_id: Generated run identifier.
        run_name: Run name from config.
        reason: Stop reason label ("complete" or "time").
        steps: Number of optimization steps performed.
    """
    event: dict[str, TomlValue] = {
        "event": "stop",
        "run_id": run_id,
        "run_name": run_name,
        "stopped_utc": datetime.now(UTC).isoformat(),
        "reason": reason,
        "steps": steps,
    }
    _append_event(paths, event)


def _train(config: dict[str, TomlValue], paths: RunPaths, run_id: str) -> None:
    """Run the training loop over an infinite stream of minibatches.

    Args:
        config: Loaded TOML configuration.
        paths: RunPaths for artifact output.
        run_id: Generated run identifier.
    """
    run_cfg = parse_run_config(config)
    data_cfg = parse_data_config(config)
    model_cfg = parse_model_config(config)
    train_cfg = parse_train_config(config)
    optim_cfg = parse_optim_config(config, train_cfg.total_steps)
    loss_cfg = parse_loss_config(config)

    # Input and action sizes are dictated by the samples.
    samples = load_samples(data_cfg.path)
    model = MlpPolicyValueNet(
        MlpConfig(
            board_size=math.prod(samples.board_shape),
            num_actions=samples.num_actions,
            width=model_cfg.width,
            depth=model_cfg.depth,
            mlp_ratio=model_cfg.mlp_ratio,
        ),
        rngs=nnx.Rngs(run_cfg.seed),
    )
    graphdef, params = nnx.split(model)
    tx, _ = make_optimizer(optim_cfg)
    state = TrainState(step=Step(0), params=params, opt_state=tx.init(params))
    train_step = make_train_step(graphdef, tx, loss_cfg)

    # jnp.asarray moves each host batch to the default device.
    stream = RandomBatchStream(
        jnp.asarray,
        samples.as_tuple(),
        data_cfg.batch_size,
        rng=RngStream.from_seed(run_cfg.seed),
        partial=data_cfg.partial,
    )

    total_losses: list[float] = []
    reason = "complete"
    start_time = time.monotonic()
    for step in range(train_cfg.total_steps):
        # Enforce wall-clock timeout.
        elapsed_minutes = (time.monotonic() - start_time) / 60.0
        if elapsed_minutes >= run_cfg.max_runtime_minutes:
            reason = "time"
            break

        state, losses = train_step(state, next(stream))
        losses_host = jax.tree_util.tree_map(
            lambda x: float(jax.device_get(x)), losses
        )
        total_losses.append(losses_host.total)

        if (step + 1) % run_cfg.log_every_steps == 0:
            write_metrics_snapshot(
                paths,
                Metrics.from_losses(
                    step + 1, losses_host, stream.passes_started
                ),
            )

    write_loss_curve(paths, total_losses, run_cfg.smoothing)
    _write_stop_event(paths, run_id, run_cfg.name, reason, int(state.step))


def main(argv: list[str] | None = None) -> int:
    """Main entrypoint.

    Returns:
        Process exit code (0 for success).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_toml(args.config)
    run_cfg = parse_run_config(config)
    run_id = _run_id(run_cfg.name)
    # Create run directories and persist config.
    paths = RunPaths.create(run_id)
    save_toml(paths.config_toml, config)
    _write_start_event(paths, run_id, run_cfg.name)
    _train(config, paths, run_id)
    return 0
