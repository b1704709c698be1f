"""Configuration module for the HEC exporter."""

from .logger_config import setup_logging
from .settings import DEFAULT_MAX_CONTENT_LENGTH, ExporterConfig, create_config, load_config

__all__ = ["ExporterConfig", "DEFAULT_MAX_CONTENT_LENGTH", "create_config", "load_config", "setup_logging"]
