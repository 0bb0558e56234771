"""Custom exceptions for the EXIF pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional


class ExifPipelineError(Exception):
    """Base exception for all EXIF pipeline errors.

    ``context`` is a mutable mapping so that callers further up the stack can
    attach details (such as the failing item index) without wrapping the error.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    @property
    def item_index(self) -> Optional[int]:
        return self.context.get("item_index")


class StorageUnavailable(ExifPipelineError):
    """Error raised when the working directory cannot be created or used."""


class ValidationError(ExifPipelineError):
    """Error raised for invalid item data or operation parameters."""


class ToolExecutionFailed(ExifPipelineError):
    """Error raised when the external metadata tool reports a failure."""


class ToolTimeout(ToolExecutionFailed):
    """Error raised when the external metadata tool does not answer in time."""


class UnsupportedOperation(ExifPipelineError):
    """Error raised for operations rejected by policy."""


class ItemProcessingError(ExifPipelineError):
    """Error raised when processing a single item fails unexpectedly."""


def annotate_item_error(exc: BaseException, item_index: int) -> ExifPipelineError:
    """Attach ``item_index`` to ``exc``, merging into an existing context.

    Pipeline errors are updated in place and returned as-is. Any other
    exception is wrapped in an ``ItemProcessingError`` chained to the original.
    """
    if isinstance(exc, ExifPipelineError):
        exc.context["item_index"] = item_index
        return exc

    wrapped = ItemProcessingError(str(exc) or type(exc).__name__, {"item_index": item_index})
    wrapped.__cause__ = exc
    return wrapped
