"""CLI entrypoint and helper tests."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from zerofeed.cli import (
    _append_event,
    _git_sha,
    _run_id,
    _write_start_event,
    _write_stop_event,
    build_parser,
    main,
)
from zerofeed.data.samples import SampleSet, save_samples
from zerofeed.paths import RunPaths
from zerofeed.toml_io import TomlValue, load_toml, save_toml


def _write_samples(path: Path, n: int = 10) -> None:
    """Write a tiny random sample set."""
    rng = np.random.default_rng(0)
    mask = (rng.uniform(size=(n, 5)) < 0.6).astype(np.float32)
    mask[:, 0] = 1.0
    policy = mask / mask.sum(axis=1, keepdims=True)
    save_samples(
        path,
        SampleSet(
            boards=rng.normal(size=(n, 3, 3)).astype(np.float32),
            actions_mask=mask,
            policy_targets=policy.astype(np.float32),
            value_targets=rng.uniform(-1, 1, size=(n,)).astype(np.float32),
        ),
    )


def _minimal_train_config(max_runtime_minutes: int) -> dict[str, TomlValue]:
    """Return a minimal config dict for fast training tests."""
    return {
        "run": {
            "name": "demo",
            "seed": 0,
            "log_every_steps": 2,
            "max_runtime_minutes": max_runtime_minutes,
            "smoothing": 0.5,
        },
        "data": {"path": "samples.npz", "batch_size": 4},
        "model": {"width": 8, "depth": 1, "mlp_ratio": 2},
        "train": {"total_steps": 4},
        "optim": {"kind": "adam", "learning_rate": 0.01},
        "loss": {
            "value_loss_weight": 1.0,
            "weight_decay": 1e-4,
            "invalid_actions_penalty": 1.0,
        },
    }


def _single_run(tmp_path: Path) -> Path:
    runs = list((tmp_path / "runs").iterdir())
    assert len(runs) == 1
    return runs[0]


def test_build_parser_train_args() -> None:
    """Parser recognizes train command and config path."""
    parser = build_parser()
    args = parser.parse_args(["train", "--config", "config/default.toml"])
    assert args.command == "train"
    assert isinstance(args.config, Path)


def test_main_train_writes_artifacts(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Train command writes expected run artifacts."""
    monkeypatch.chdir(tmp_path)
    _write_samples(tmp_path / "samples.npz")
    config_path = tmp_path / "config.toml"
    save_toml(config_path, _minimal_train_config(60))

    assert main(["train", "--config", str(config_path)]) == 0

    run_dir = _single_run(tmp_path)
    assert (run_dir / "config.toml").exists()
    assert (run_dir / "metrics" / "step_0000000002.toml").exists()
    assert (run_dir / "metrics" / "step_0000000004.toml").exists()

    curve = load_toml(run_dir / "loss_curve.toml")
    assert isinstance(curve["loss"], list)
    assert len(curve["loss"]) == 4

    events = load_toml(run_dir / "events.toml")
    stop = events["event_0002"]
    assert isinstance(stop, dict)
    assert stop["reason"] == "complete"
    assert stop["steps"] == 4

    # Ten samples in batches of four: two full batches per pass.
    snapshot = load_toml(run_dir / "metrics" / "step_0000000004.toml")
    assert snapshot["passes_started"] == 2


def test_main_train_stops_on_time_limit(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A zero runtime budget stops before the first step."""
    monkeypatch.chdir(tmp_path)
    _write_samples(tmp_path / "samples.npz")
    config_path = tmp_path / "config.toml"
    save_toml(config_path, _minimal_train_config(0))

    assert main(["train", "--config", str(config_path)]) == 0

    events = load_toml(_single_run(tmp_path) / "events.toml")
    stop = events["event_0002"]
    assert isinstance(stop, dict)
    assert stop["reason"] == "time"
    assert stop["steps"] == 0


def test_main_missing_run_table(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Missing run table raises ValueError."""
    monkeypatch.chdir(tmp_path)
    config_path = tmp_path / "config.toml"
    save_toml(config_path, {"data": {"path": "samples.npz"}})
    with pytest.raises(ValueError, match="Missing TOML table"):
        _ = main(["train", "--config", str(config_path)])


def test_append_event_and_git_sha(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Event appending and git SHA resolution behave correctly."""
    monkeypatch.chdir(tmp_path)
    paths = RunPaths.create("run")
    # Seed events to validate index incrementing.
    save_toml(
        paths.events_toml, {"event_bad": {"event": "x"}, "event_0002": {}}
    )
    _append_event(paths, {"event": "start"})
    assert "event_0003" in load_toml(paths.events_toml)

    # No .git directory yields unknown.
    assert _git_sha() == "unknown"
    git_dir = tmp_path / ".git" / "refs" / "heads"
    git_dir.mkdir(parents=True)
    (tmp_path / ".git" / "HEAD").write_text(
        "ref: refs/heads/main\n", encoding="utf-8"
    )
    (git_dir / "main").write_text("abc123\n", encoding="utf-8")
    assert _git_sha() == "abc123"

    # Detached HEAD stores the SHA directly.
    (tmp_path / ".git" / "HEAD").write_text("def456\n", encoding="utf-8")
    assert _git_sha() == "def456"


def test_start_and_stop_events(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Start/stop events are numbered in order."""
    monkeypatch.chdir(tmp_path)
    paths = RunPaths.create("run")
    run_id = _run_id("demo")
    assert run_id.endswith("_demo")
    _write_start_event(paths, run_id, "demo")
    _write_stop_event(paths, run_id, "demo", "complete", 3)
    events = load_toml(paths.events_toml)
    start = events["event_0001"]
    stop = events["event_0002"]
    assert isinstance(start, dict)
    assert isinstance(stop, dict)
    assert start["event"] == "start"
    assert stop["steps"] == 3


def test_main_rejects_bad_smoothing_before_training(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """An invalid smoothing momentum fails before any run is created."""
    monkeypatch.chdir(tmp_path)
    _write_samples(tmp_path / "samples.npz")
    config = _minimal_train_config(60)
    run_table = config["run"]
    assert isinstance(run_table, dict)
    run_table["smoothing"] = 0.0
    config_path = tmp_path / "config.toml"
    save_toml(config_path, config)

    with pytest.raises(ValueError, match="smoothing"):
        _ = main(["train", "--config", str(config_path)])
    assert not (tmp_path / "runs").exists()
