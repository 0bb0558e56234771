"""Protocol definitions for dependency injection and testability."""

from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Sequence


class MetadataToolProtocol(Protocol):
    """Protocol for the external metadata tool.

    Every operation works on a file path and may suspend the caller until the
    external process answers.
    """

    async def read_metadata(self, path: Path, raw: bool = False) -> Dict[str, Any]:
        """Read all metadata of a file."""
        ...

    async def write_tag(self, path: Path, name: str, value: Any) -> Dict[str, Any]:
        """Write a single tag in place."""
        ...

    async def delete_all_tags(
        self, path: Path, retain: Optional[Sequence[str]] = None
    ) -> Dict[str, Any]:
        """Delete every tag except the retained ones."""
        ...

    async def rewrite_all_tags(self, path: Path, destination: Path) -> None:
        """Rebuild all metadata structures into ``destination``."""
        ...

    async def custom_command(self, path: Path, args: Sequence[str]) -> Dict[str, Any]:
        """Run a read-only argument list against a file."""
        ...

    async def __aenter__(self) -> "MetadataToolProtocol":
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...
