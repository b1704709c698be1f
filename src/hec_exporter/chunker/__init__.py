"""Chunked streaming of log batches."""

from .log_chunker import Chunk, LogChunkProducer, iter_chunks

__all__ = ["Chunk", "LogChunkProducer", "iter_chunks"]
