from pathlib import Path

import pytest
import yaml

from paperwatch.services.config_manager import ConfigManager, ConfigValidationError

SAMPLE_CONFIG = Path(__file__).parents[2] / "config" / "paperwatch.yaml"


@pytest.fixture
def valid_config_file(tmp_path):
    config_content = {
        "catalog_path": str(tmp_path / "data" / "catalog.csv"),
        "retention_days": 90,
        "metrics_path": "${PAPERWATCH_TEST_METRICS}",
        "sources": [
            {"name": "openalex", "path": "openalex.csv", "preset": "openalex"},
            {"name": "nber", "path": "nber.tsv", "delimiter": "\t", "preset": "nber"},
        ],
        "notification": {"command": "${PAPERWATCH_TEST_COMMAND}"},
    }
    config_file = tmp_path / "paperwatch.yaml"
    with open(config_file, "w") as f:
        yaml.dump(config_content, f)
    return config_file


def test_load_valid_config(valid_config_file, monkeypatch):
    monkeypatch.delenv("PAPERWATCH_TEST_METRICS", raising=False)
    monkeypatch.setenv("PAPERWATCH_TEST_COMMAND", "send-digest --to team")

    manager = ConfigManager(config_path=str(valid_config_file))
    config = manager.load_config()

    assert config.retention_days == 90
    assert [s.name for s in config.sources] == ["openalex", "nber"]
    assert config.sources[1].delimiter == "\t"
    assert config.notification.command == ["send-digest", "--to", "team"]
    # Unset variables stay placeholders and are treated as unset
    assert config.metrics_path is None


def test_env_substitution(valid_config_file, monkeypatch, tmp_path):
    metrics = str(tmp_path / "paperwatch.prom")
    monkeypatch.setenv("PAPERWATCH_TEST_METRICS", metrics)

    config = ConfigManager(config_path=str(valid_config_file)).load_config()

    assert config.metrics_path == metrics


def test_config_is_cached(valid_config_file):
    manager = ConfigManager(config_path=str(valid_config_file))

    assert manager.load_config() is manager.load_config()


def test_load_missing_config():
    manager = ConfigManager(config_path="nonexistent.yaml")
    with pytest.raises(FileNotFoundError):
        manager.load_config()


def test_invalid_yaml(tmp_path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("sources: [unclosed\n")

    with pytest.raises(ConfigValidationError, match="Failed to parse YAML"):
        ConfigManager(config_path=str(config_file)).load_config()


def test_non_mapping_root(tmp_path):
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n")

    with pytest.raises(ConfigValidationError, match="must be a mapping"):
        ConfigManager(config_path=str(config_file)).load_config()


def test_empty_file_uses_defaults(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    config = ConfigManager(config_path=str(config_file)).load_config()

    assert config.retention_days == 365
    assert config.sources == []


def test_validation_error(tmp_path):
    config_file = tmp_path / "invalid.yaml"
    config_file.write_text(
        "sources:\n  - name: arxiv\n    path: arxiv.csv\n    preset: arxiv\n"
    )

    with pytest.raises(ConfigValidationError, match="Invalid configuration"):
        ConfigManager(config_path=str(config_file)).load_config()


def test_sample_config_is_valid():
    config = ConfigManager(config_path=SAMPLE_CONFIG).load_config()

    assert {s.name for s in config.sources} == {"openalex", "nber", "iza"}
