"""Batch processors."""

from .asyncio_processor import process_batch, process_batch_async

__all__ = [
    "process_batch",
    "process_batch_async",
]
