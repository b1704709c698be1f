"""Configuration management for the HEC exporter.

This module provides the exporter configuration with environment variable
overrides and validation.
"""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass, field
from typing import Dict, Optional

from loguru import logger

DEFAULT_MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2 MiB, HEC default request cap

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ExporterConfig:
    """Complete HEC exporter configuration."""

    # Endpoint settings
    endpoint: str = "http://localhost:8088/services/collector"
    token: str = ""  # HEC token, sent as "Authorization: Splunk <token>"
    headers: Dict[str, str] = field(default_factory=dict)  # Extra static headers

    # Payload settings
    disable_compression: bool = False
    compression_level: int = 6
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH  # 0 = unlimited

    # HTTP settings
    timeout_seconds: float = 10.0

    # Pipeline settings
    chunk_queue_size: int = 1  # Chunks buffered between producer and sender
    max_idle_compressors: int = 8

    # Event defaults applied by the built-in converters
    source: str = "otel"
    sourcetype: str = "otel"
    index: str = ""
    host: str = field(default_factory=socket.gethostname)

    def __post_init__(self):
        """Apply environment variable overrides."""
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply configuration overrides from environment variables."""
        if endpoint := os.getenv("HEC_ENDPOINT"):
            self.endpoint = endpoint

        if token := os.getenv("HEC_TOKEN"):
            self.token = token

        if disable_compression := os.getenv("HEC_DISABLE_COMPRESSION"):
            value = disable_compression.strip().lower()
            if value in _TRUE_VALUES:
                self.disable_compression = True
            elif value in _FALSE_VALUES:
                self.disable_compression = False
            else:
                logger.warning(f"Invalid compression flag: {disable_compression}")

        if max_content_length := os.getenv("HEC_MAX_CONTENT_LENGTH"):
            try:
                self.max_content_length = int(max_content_length)
            except ValueError:
                logger.warning(f"Invalid max content length: {max_content_length}")

        if timeout := os.getenv("HEC_TIMEOUT"):
            try:
                self.timeout_seconds = float(timeout)
            except ValueError:
                logger.warning(f"Invalid timeout: {timeout}")

        if index := os.getenv("HEC_INDEX"):
            self.index = index

    def build_headers(self) -> Dict[str, str]:
        """Build the static headers sent with every request."""
        headers = {
            "Connection": "keep-alive",
            "Content-Type": "application/json",
            "User-Agent": "hec-exporter/1.0.0",
        }
        if self.token:
            headers["Authorization"] = f"Splunk {self.token}"
        headers.update(self.headers)
        return headers

    def validate(self) -> tuple[bool, list[str]]:
        """Validate the configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        if not self.endpoint:
            errors.append("Endpoint is required")
        elif not self.endpoint.startswith(("http://", "https://")):
            errors.append("Endpoint must be an http(s) URL")

        if not self.token and "Authorization" not in self.headers:
            errors.append("HEC token is required")

        if self.max_content_length < 0:
            errors.append("Max content length must not be negative")

        if self.timeout_seconds <= 0:
            errors.append("Timeout must be positive")

        if not 0 <= self.compression_level <= 9:
            errors.append("Compression level must be between 0 and 9")

        if self.chunk_queue_size <= 0:
            errors.append("Chunk queue size must be positive")

        return len(errors) == 0, errors


def create_config(endpoint: str, token: str, **overrides) -> ExporterConfig:
    """Create an exporter configuration for an endpoint and token.

    Args:
        endpoint: Full HEC collector URL
        token: HEC token
        **overrides: Any other ExporterConfig field

    Returns:
        Configured ExporterConfig instance
    """
    config = ExporterConfig(**overrides)
    config.endpoint = endpoint
    config.token = token
    return config


def load_config(endpoint: Optional[str] = None, token: Optional[str] = None) -> ExporterConfig:
    """Load configuration from the environment with optional overrides."""
    config = ExporterConfig()

    if endpoint:
        config.endpoint = endpoint

    if token:
        config.token = token

    is_valid, errors = config.validate()
    if not is_valid:
        for error in errors:
            logger.warning(f"Configuration problem: {error}")

    return config
