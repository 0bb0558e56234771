"""Fake implementations for testing purposes."""

import io
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from PIL import Image

from ..core.exceptions import ToolExecutionFailed, UnsupportedOperation
from ..core.models import BinaryAttachment, Item, mime_type_for
from ..core.storage import ORIGINAL_SUFFIX

# Pillow has no HEIC/HEIF encoder; those extensions get JPEG bytes, which is
# enough for anything that does not decode the image.
PIL_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "bmp": "BMP",
    "tiff": "TIFF",
    "webp": "WEBP",
    "heic": "JPEG",
    "heif": "JPEG",
}

WRITE_OK = {"created": 0, "updated": 1, "unchanged": 0, "warnings": []}


class FakeMetadataTool:
    """In-memory stand-in for the ExifTool adapter.

    It mimics the file side effects of ExifTool: writes and deletes keep an
    ``_original`` backup and change the file content, repairs create the
    destination file. Every call is recorded in ``calls``.
    """

    def __init__(self, metadata: Optional[Dict[str, Any]] = None):
        self.metadata: Dict[str, Any] = dict(
            metadata or {"EXIF:Make": "FakeCam", "EXIF:Model": "X100", "IPTC:Keywords": ["a"]}
        )
        self.calls: List[Dict[str, Any]] = []
        self.written_tags: Dict[str, Any] = {}
        self.custom_result: Optional[Dict[str, Any]] = {"EXIF:Make": "FakeCam"}
        self.started = False
        self.closed = False
        self.should_fail = False
        self.failure_message = "Simulated ExifTool failure"
        self.fail_operations: Optional[Sequence[str]] = None

    def set_failure_mode(
        self,
        should_fail: bool,
        message: str = "Simulated ExifTool failure",
        operations: Optional[Sequence[str]] = None,
    ) -> None:
        """Configure failure mode, optionally limited to some operation names."""
        self.should_fail = should_fail
        self.failure_message = message
        self.fail_operations = operations

    def _record(self, operation: str, path: Path, **kwargs: Any) -> None:
        self.calls.append(
            {"operation": operation, "path": Path(path), "timestamp": time.time(), **kwargs}
        )
        if self.should_fail and (
            self.fail_operations is None or operation in self.fail_operations
        ):
            raise ToolExecutionFailed(self.failure_message, {"operation": operation})

    @staticmethod
    def _modify(path: Path, marker: bytes) -> None:
        path = Path(path)
        backup = path.with_name(path.name + ORIGINAL_SUFFIX)
        if not backup.exists():
            backup.write_bytes(path.read_bytes())
        path.write_bytes(path.read_bytes() + marker)

    def calls_for(self, operation: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if call["operation"] == operation]

    async def __aenter__(self) -> "FakeMetadataTool":
        self.started = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.closed = True

    async def read_metadata(self, path: Path, raw: bool = False) -> Dict[str, Any]:
        self._record("read_metadata", path, raw=raw)
        size = Path(path).stat().st_size
        if raw:
            flat = {name.split(":")[-1]: value for name, value in self.metadata.items()}
            return {"SourceFile": str(path), "FileSize": f"{size} bytes", **flat}
        return {"File:FileSize": size, **self.metadata}

    async def write_tag(self, path: Path, name: str, value: Any) -> Dict[str, Any]:
        self._record("write_tag", path, name=name, value=value)
        self._modify(path, f"<write:{name}>".encode())
        self.written_tags[name] = value
        return dict(WRITE_OK)

    async def delete_all_tags(
        self, path: Path, retain: Optional[Sequence[str]] = None
    ) -> Dict[str, Any]:
        self._record("delete_all_tags", path, retain=retain)
        self._modify(path, b"<delete>")
        return dict(WRITE_OK)

    async def rewrite_all_tags(self, path: Path, destination: Path) -> None:
        self._record("rewrite_all_tags", path, destination=Path(destination))
        Path(destination).write_bytes(Path(path).read_bytes() + b"<repair>")

    async def custom_command(self, path: Path, args: Sequence[str]) -> Dict[str, Any]:
        self._record("custom_command", path, args=list(args))
        if any("=" in arg for arg in args):
            raise UnsupportedOperation("Write custom commands are not supported.")
        return self.custom_result


class FakeLogger:
    """Fake logger for testing with support for LogContext."""

    def __init__(self, name: str = "test_logger"):
        self.name = name
        self.logs: List[Dict[str, Any]] = []

    def _log(
        self, level: str, message: str, context: Any = None, **kwargs: Any
    ) -> None:
        """Internal logging method with context support."""
        log_entry = {
            "level": level,
            "message": message,
            "timestamp": time.time(),
            **kwargs,
        }

        if context is not None:
            if hasattr(context, "correlation_id"):
                log_entry["correlation_id"] = context.correlation_id
            if hasattr(context, "operation"):
                log_entry["operation"] = context.operation
            if hasattr(context, "component"):
                log_entry["component"] = context.component
            if hasattr(context, "metadata"):
                log_entry.update(context.metadata)

        self.logs.append(log_entry)

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        self._log("DEBUG", message, context, **kwargs)

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        self._log("INFO", message, context, **kwargs)

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        self._log("WARNING", message, context, **kwargs)

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        self._log("ERROR", message, context, **kwargs)

    def get_logs(self, level: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get logged messages, optionally filtered by level."""
        if level:
            return [log for log in self.logs if log["level"] == level]
        return self.logs.copy()

    def clear_logs(self) -> None:
        """Clear all logged messages."""
        self.logs.clear()


def create_test_image(
    extension: str = "jpg", width: int = 64, height: int = 48
) -> bytes:
    """Create a small test image in memory, encoded for ``extension``."""
    image = Image.new("RGB", (width, height), color="red")
    for x in range(0, width, 16):
        for y in range(0, height, 16):
            image.putpixel((x, y), (0, 0, 255))

    img_bytes = io.BytesIO()
    image.save(img_bytes, format=PIL_FORMATS[extension.lower()])
    return img_bytes.getvalue()


def make_item(
    extension: str = "jpg",
    property_name: str = "data",
    data: Optional[bytes] = None,
    json_data: Optional[Dict[str, Any]] = None,
) -> Item:
    """Create an item carrying a test image under ``property_name``."""
    if data is None:
        data = create_test_image(extension)
    return Item(
        json=dict(json_data or {"name": f"photo.{extension}"}),
        binary={
            property_name: BinaryAttachment(
                data=data,
                file_extension=extension,
                file_name=f"photo.{extension}",
                mime_type=mime_type_for(extension),
            )
        },
    )
