"""Shared data models for the EXIF pipeline."""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SUPPORTED_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "png", "heic", "heif", "tiff", "gif", "bmp", "webp"}
)

_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "heic": "image/heic",
    "heif": "image/heif",
    "tiff": "image/tiff",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
}


def default_storage_path() -> Path:
    env_path = os.getenv("EXIF_PIPELINE_STORAGE_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".exif-pipeline" / "storage"


def default_tool_timeout() -> Optional[float]:
    raw = os.getenv("EXIFTOOL_TIMEOUT", "30")
    if raw.strip().lower() in ("", "none", "0"):
        return None
    return float(raw)


def mime_type_for(extension: str) -> str:
    return _MIME_TYPES.get(extension.lower(), "application/octet-stream")


class Operation(str, Enum):
    """Operation modes supported by the dispatcher."""

    READ = "read"
    WRITE = "write"
    REPAIR = "repair"
    DELETE = "delete"
    CUSTOM_CMD = "customCmd"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OperationOptions(_CamelModel):
    """Optional switches shared by the operation modes."""

    read_raw: bool = False
    parse_input_fields: bool = True


class MetadataTag(_CamelModel):
    """A single name/value pair to write. ``None`` clears the tag."""

    name: str
    value: Any = None


class ProcessingConfig(_CamelModel):
    """Configuration for one batch invocation."""

    operation: Operation = Operation.READ
    data_property_name: str = "data"
    output_property_name: str = "exifData"
    custom_cmd: str = ""
    keep_tags: str = ""
    exif_metadata: List[MetadataTag] = Field(default_factory=list)
    options: OperationOptions = Field(default_factory=OperationOptions)
    continue_on_fail: bool = False
    storage_path: Path = Field(default_factory=default_storage_path)
    settle_delay: float = Field(default=0.5, ge=0)
    tool_timeout: Optional[float] = Field(default_factory=default_tool_timeout, gt=0)
    exiftool_path: Optional[str] = Field(
        default_factory=lambda: os.getenv("EXIFTOOL_PATH") or None
    )
    debug: bool = False


class BinaryAttachment(BaseModel):
    """Raw file content attached to an item."""

    data: bytes = b""
    file_extension: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path) -> "BinaryAttachment":
        path = Path(path)
        extension = path.suffix.lstrip(".").lower() or None
        return cls(
            data=path.read_bytes(),
            file_extension=extension,
            file_name=path.name,
            mime_type=mime_type_for(extension) if extension else None,
        )


class Item(BaseModel):
    """One element of the batch.

    ``error`` and ``paired_item`` are only set on failed-item records produced
    under the continue-on-failure policy.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    json_data: Dict[str, Any] = Field(default_factory=dict, alias="json")
    binary: Dict[str, BinaryAttachment] = Field(default_factory=dict)
    error: Optional[Exception] = None
    paired_item: Optional[int] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
