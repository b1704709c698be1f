"""Push orchestration for metrics, traces and logs."""

from .hec_client import HecClient, PushResult, create_default_client

__all__ = ["HecClient", "PushResult", "create_default_client"]
