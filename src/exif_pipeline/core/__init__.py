"""Core utilities and shared components for the EXIF pipeline."""

from .logging_config import (
    get_logger,
    set_debug,
    setup_logger,
)
from .exceptions import (
    ExifPipelineError,
    ItemProcessingError,
    StorageUnavailable,
    ToolExecutionFailed,
    ToolTimeout,
    UnsupportedOperation,
    ValidationError,
    annotate_item_error,
)
from .models import (
    SUPPORTED_EXTENSIONS,
    BinaryAttachment,
    Item,
    MetadataTag,
    Operation,
    OperationOptions,
    ProcessingConfig,
)

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "BinaryAttachment",
    "Item",
    "MetadataTag",
    "Operation",
    "OperationOptions",
    "ProcessingConfig",
    "setup_logger",
    "get_logger",
    "set_debug",
    "ExifPipelineError",
    "ItemProcessingError",
    "StorageUnavailable",
    "ToolExecutionFailed",
    "ToolTimeout",
    "UnsupportedOperation",
    "ValidationError",
    "annotate_item_error",
]
