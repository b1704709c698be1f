"""Record to HEC event conversion."""

from .defaults import BatchConverter, LogConverter, make_batch_converter, make_log_converter, record_to_event

__all__ = ["BatchConverter", "LogConverter", "make_batch_converter", "make_log_converter", "record_to_event"]
