"""HTTP transport module for posting bodies to the HEC endpoint."""

from .hec_transport import HecTransport, status_text

__all__ = ["HecTransport", "status_text"]
