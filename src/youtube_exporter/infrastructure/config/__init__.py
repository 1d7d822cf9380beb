"""Configuration providers and models."""

from youtube_exporter.infrastructure.config.models import AppConfig, LoggingConfig
from youtube_exporter.infrastructure.config.yaml_provider import YamlConfigurationProvider

__all__ = [
    "AppConfig",
    "LoggingConfig",
    "YamlConfigurationProvider",
]
