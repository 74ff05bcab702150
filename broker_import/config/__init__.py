"""Configuration for broker-import."""

from broker_import.config.settings import (
    AppConfig,
    PipelineSettings,
    Settings,
    StoreConfig,
    get_settings,
)

__all__ = ["AppConfig", "PipelineSettings", "Settings", "StoreConfig", "get_settings"]
