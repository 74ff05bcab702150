"""Test configuration settings."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from broker_import.config.settings import PipelineSettings, Settings, StoreConfig, get_settings


ENV_VARS = [
    "BROKER_SOURCE_DIR",
    "BROKER_FILE_PATTERNS",
    "BROKER_BATCH_SIZE",
    "BROKER_MAX_RETRIES",
    "BROKER_SKIP_EXISTING",
    "BROKER_VALIDATION_STRICT",
    "BROKER_STORE_BACKEND",
    "BROKER_STORE_PATH",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run every test without inherited configuration."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


def test_default_settings():
    """Test default settings initialization."""
    settings = Settings()

    assert settings.pipeline.source_directory == "data/forex-brokers"
    assert settings.pipeline.file_patterns == ["*.html", "*.js"]
    assert settings.pipeline.batch_size == 10
    assert settings.pipeline.max_retries == 3
    assert settings.pipeline.skip_existing is True
    assert settings.pipeline.validation_strict is False

    assert settings.store.backend == "json"
    assert settings.store.path == "data/brokers.json"

    assert settings.app.log_level == "INFO"


def test_env_settings(monkeypatch):
    """Test settings from environment variables (when no YAML config exists)."""
    monkeypatch.setenv("BROKER_SOURCE_DIR", "/srv/scrapes")
    monkeypatch.setenv("BROKER_FILE_PATTERNS", "*-review.html, bundle-*.js ,")
    monkeypatch.setenv("BROKER_BATCH_SIZE", "25")
    monkeypatch.setenv("BROKER_SKIP_EXISTING", "false")
    monkeypatch.setenv("BROKER_STORE_BACKEND", "MEMORY")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    with patch.object(Settings, '_load_yaml_config', return_value=None):
        settings = Settings.load_config()

    assert settings.pipeline.source_directory == "/srv/scrapes"
    assert settings.pipeline.file_patterns == ["*-review.html", "bundle-*.js"]
    assert settings.pipeline.batch_size == 25
    assert settings.pipeline.skip_existing is False
    assert settings.store.backend == "memory"
    assert settings.app.log_level == "DEBUG"


def test_yaml_settings(tmp_path):
    """Test settings from YAML file."""
    (tmp_path / "broker_import.yaml").write_text(
        "pipeline:\n"
        "  batch_size: 4\n"
        "  file_patterns: ['*.htm']\n"
        "store:\n"
        "  path: out/brokers.json\n"
        "app:\n"
        "  log_level: WARNING\n"
    )

    settings = Settings.load_config()

    assert settings.pipeline.batch_size == 4
    assert settings.pipeline.file_patterns == ["*.htm"]
    assert settings.pipeline.max_retries == 3
    assert settings.store.path == "out/brokers.json"
    assert settings.app.log_level == "WARNING"


def test_precedence(tmp_path, monkeypatch):
    """YAML overrides the environment and explicit overrides win over both."""
    monkeypatch.setenv("BROKER_BATCH_SIZE", "5")
    monkeypatch.setenv("BROKER_MAX_RETRIES", "7")
    (tmp_path / "config.yaml").write_text("pipeline:\n  batch_size: 20\n")

    settings = get_settings({"pipeline": {"source_directory": "cli/dir"}})

    assert settings.pipeline.batch_size == 20
    assert settings.pipeline.max_retries == 7
    assert settings.pipeline.source_directory == "cli/dir"


def test_invalid_yaml(tmp_path):
    """Test that a broken YAML file is reported as a configuration error."""
    (tmp_path / "broker_import.yaml").write_text("pipeline: [unclosed\n")

    with pytest.raises(ValueError, match="Error parsing YAML config file"):
        Settings.load_config()


@pytest.mark.parametrize("values", [
    {"batch_size": 0},
    {"max_retries": -1},
    {"file_patterns": " , "},
    {"file_patterns": []},
])
def test_invalid_pipeline_settings(values):
    with pytest.raises(ValidationError):
        PipelineSettings(**values)


def test_invalid_store_backend():
    with pytest.raises(ValidationError):
        StoreConfig(backend="postgres")


def test_invalid_log_level():
    with pytest.raises(ValidationError):
        Settings(app={"log_level": "VERBOSE"})


def test_to_pipeline_config():
    settings = Settings(pipeline={"file_patterns": "*.html", "batch_size": 2, "validation_strict": True})

    config = settings.to_pipeline_config()

    assert config.file_patterns == ("*.html",)
    assert config.batch_size == 2
    assert config.validation_strict is True
    assert config.enable_logging is True
