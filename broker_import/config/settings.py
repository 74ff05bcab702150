"""Configuration management for broker-import."""

import os
from pathlib import Path
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv
import yaml

from broker_import.models.pipeline import DEFAULT_FILE_PATTERNS, PipelineConfig


class PipelineSettings(BaseModel):
    """Import pipeline configuration."""
    source_directory: str = Field(default="data/forex-brokers")
    file_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_FILE_PATTERNS))
    batch_size: int = Field(default=10, gt=0)
    max_retries: int = Field(default=3, ge=0)
    enable_logging: bool = Field(default=True)
    skip_existing: bool = Field(default=True)
    validation_strict: bool = Field(default=False)
    retry_backoff: float = Field(default=0.5, ge=0)

    @field_validator('file_patterns', mode='before')
    @classmethod
    def split_patterns(cls, v):
        """Accept a comma separated string as well as a list."""
        if isinstance(v, str):
            v = [p.strip() for p in v.split(",")]
        return v

    @field_validator('file_patterns')
    @classmethod
    def validate_patterns(cls, v):
        """Drop blank patterns and require at least one."""
        patterns = [p for p in v if p.strip()]
        if not patterns:
            raise ValueError("At least one file pattern is required")
        return patterns


class StoreConfig(BaseModel):
    """Broker store configuration."""
    backend: str = Field(default="json")
    path: str = Field(default="data/brokers.json")

    @field_validator('backend')
    @classmethod
    def validate_backend(cls, v):
        """Validate store backend."""
        valid_backends = ["json", "memory"]
        if v.lower() not in valid_backends:
            raise ValueError(f"Store backend must be one of {valid_backends}")
        return v.lower()


class AppConfig(BaseModel):
    """Application configuration."""
    log_level: str = Field(default="INFO")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class Settings(BaseModel):
    """Main configuration class."""
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    store: StoreConfig = Field(default_factory=StoreConfig)
    app: AppConfig = Field(default_factory=AppConfig)

    @classmethod
    def load_config(cls, config_overrides: Optional[Dict[str, Any]] = None) -> "Settings":
        """
        Load configuration from multiple sources with proper precedence:
        1. Command-line arguments (highest priority)
        2. YAML configuration file
        3. Environment variables
        4. .env file values
        5. Default values (lowest priority)
        """
        # .env never overrides variables already set in the environment
        load_dotenv()

        config_data = {}

        env_config = cls._load_env_config()
        config_data = cls._merge_config(config_data, env_config)

        yaml_config = cls._load_yaml_config()
        if yaml_config:
            config_data = cls._merge_config(config_data, yaml_config)

        if config_overrides:
            config_data = cls._merge_config(config_data, config_overrides)

        return cls(**config_data)

    @classmethod
    def _load_yaml_config(cls) -> Optional[Dict[str, Any]]:
        """Load configuration from the first YAML file found."""
        config_paths = [
            Path("./broker_import.yaml"),
            Path("./config.yaml"),
            Path.home() / ".broker_import.yaml"
        ]

        for config_path in config_paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r') as f:
                        return yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ValueError(f"Error parsing YAML config file {config_path}: {e}")
                except OSError as e:
                    raise ValueError(f"Error reading config file {config_path}: {e}")

        return None

    @classmethod
    def _load_env_config(cls) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config = {}

        # Pipeline configuration
        pipeline_env = {
            "BROKER_SOURCE_DIR": "source_directory",
            "BROKER_FILE_PATTERNS": "file_patterns",
            "BROKER_BATCH_SIZE": "batch_size",
            "BROKER_MAX_RETRIES": "max_retries",
            "BROKER_SKIP_EXISTING": "skip_existing",
            "BROKER_VALIDATION_STRICT": "validation_strict",
        }
        pipeline_config = {
            key: os.getenv(var) for var, key in pipeline_env.items() if os.getenv(var)
        }
        if pipeline_config:
            config["pipeline"] = pipeline_config

        # Store configuration
        store_config = {}
        if os.getenv("BROKER_STORE_BACKEND"):
            store_config["backend"] = os.getenv("BROKER_STORE_BACKEND")
        if os.getenv("BROKER_STORE_PATH"):
            store_config["path"] = os.getenv("BROKER_STORE_PATH")
        if store_config:
            config["store"] = store_config

        # App configuration
        app_config = {}
        if os.getenv("LOG_LEVEL"):
            app_config["log_level"] = os.getenv("LOG_LEVEL")
        if app_config:
            config["app"] = app_config

        return config

    @classmethod
    def _merge_config(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def to_pipeline_config(self) -> PipelineConfig:
        """Freeze the pipeline section into the configuration a pipeline runs with."""
        return PipelineConfig.from_overrides(**self.pipeline.model_dump())


def get_settings(config_overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """Get application settings with optional overrides."""
    return Settings.load_config(config_overrides)
