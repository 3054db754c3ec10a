"""Tests for the cron launcher's exit-code handling."""

import importlib.util
from pathlib import Path

import pytest

LAUNCHER = Path(__file__).parents[2] / "scripts" / "daily_launcher.py"


@pytest.fixture
def launcher(tmp_path, monkeypatch):
    spec = importlib.util.spec_from_file_location("daily_launcher", LAUNCHER)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    config = tmp_path / "paperwatch.yaml"
    config.write_text("sources: []\n")
    monkeypatch.setattr(module, "CONFIG_FILE", config)
    monkeypatch.setattr(module, "LOG_DIR", tmp_path / "logs")
    return module


def _fake_cli(launcher, monkeypatch, run_code):
    calls = []

    def run_cli(args, log_file):
        calls.append(args[0])
        return run_code if args[0] == "run" else 0

    monkeypatch.setattr(launcher, "run_cli", run_cli)
    return calls


def test_success_runs_notify(launcher, monkeypatch):
    calls = _fake_cli(launcher, monkeypatch, 0)

    assert launcher.main() == 0
    assert calls == ["run", "notify"]


def test_no_data_is_not_a_failure(launcher, monkeypatch):
    calls = _fake_cli(launcher, monkeypatch, launcher.EXIT_NO_DATA)

    assert launcher.main() == 0
    assert calls == ["run"]


def test_usage_error_is_a_failure(launcher, monkeypatch):
    calls = _fake_cli(launcher, monkeypatch, 2)

    assert launcher.main() == 2
    assert calls == ["run"]


def test_missing_config(launcher, monkeypatch, tmp_path):
    monkeypatch.setattr(launcher, "CONFIG_FILE", tmp_path / "absent.yaml")
    calls = _fake_cli(launcher, monkeypatch, 0)

    assert launcher.main() == 2
    assert calls == []
