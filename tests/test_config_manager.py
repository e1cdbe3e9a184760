from pathlib import Path

import pytest
import yaml

from clip_core.config_manager import AppConfig, ConfigManager


@pytest.fixture
def mock_config_file(tmp_path):
    """Creates a temporary config file."""
    config_data = {
        "paths": {
            "base_dir": str(tmp_path),
            "log_dir": str(tmp_path / "logs"),
        },
        "completion": {
            "base_url": "https://llm.example.com",
            "model_name": "test-model",
            "api_key": "pk-test",
            "max_requests": 5,
        },
        "transcription": {
            "relay_url": "http://localhost:8000/api/proxy",
            "interval_ms": 1000,
        },
        "analysis": {
            "max_clips": 3
        },
    }

    config_path = tmp_path / "test_settings.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)

    return str(config_path)


def test_config_load_valid(mock_config_file):
    """Test loading a valid configuration file."""
    manager = ConfigManager(config_path=mock_config_file)
    assert isinstance(manager.config, AppConfig)
    assert manager.completion.model_name == "test-model"
    assert manager.completion.max_requests == 5
    assert manager.transcription.relay_url == "http://localhost:8000/api/proxy"
    assert manager.transcription.interval_ms == 1000
    assert manager.analysis.max_clips == 3


def test_config_file_not_found():
    """Test that missing config file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        ConfigManager(config_path="non_existent.yaml")


def test_default_values(tmp_path):
    """Empty or missing sections fall back to defaults."""
    config_path = tmp_path / "minimal.yaml"
    config_path.write_text("paths:\ncompletion: {}\n")

    manager = ConfigManager(config_path=str(config_path))
    assert manager.paths.base_dir == "."
    assert manager.completion.max_requests == 20
    assert manager.completion.window_ms == 60_000
    assert manager.completion.timeout_seconds == 30.0
    assert manager.transcription.max_attempts == 60
    assert manager.transcription.interval_ms == 5000
    assert manager.analysis.max_clips == 10
    assert manager.analysis.temperature == 0.3


def test_api_keys_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("PERPLEXITY_API_KEY", "pk-env")
    monkeypatch.setenv("ASSEMBLYAI_API_KEY", "aai-env")
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("")

    manager = ConfigManager(config_path=str(config_path))
    assert manager.completion.api_key == "pk-env"
    assert manager.transcription.api_key == "aai-env"


def test_shipped_settings_file_is_valid():
    manager = ConfigManager(config_path=str(Path(__file__).parent.parent / "config" / "settings.yaml"))
    assert manager.completion.base_url == "https://api.perplexity.ai"
    assert manager.transcription.relay_url is None
