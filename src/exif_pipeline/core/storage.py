"""Working directory management and staging paths for temporary files."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .exceptions import StorageUnavailable
from .logging_config import get_logger

TMP_SUFFIX = "_exiftool_tmp"
PROCESSED_SUFFIX = "_processed"
ORIGINAL_SUFFIX = "_original"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]")


def ensure_storage_path(storage_path: Path) -> Path:
    """
    Make sure the working directory exists, creating it with its parents.

    Args:
        storage_path: Directory used for staged files.

    Returns:
        The directory path.

    Raises:
        StorageUnavailable: If the path cannot be created or is not a directory.
    """
    storage_path = Path(storage_path)
    logger = get_logger("storage")

    if storage_path.is_dir():
        return storage_path

    try:
        storage_path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageUnavailable(
            f"Failed to create storage path ({storage_path}). You might need to "
            f"create this directory manually: {exc}",
            {"storage_path": str(storage_path)},
        ) from exc

    if not storage_path.is_dir():
        raise StorageUnavailable(
            f"Storage path ({storage_path}) is not a directory",
            {"storage_path": str(storage_path)},
        )

    logger.info(f"Created storage path ({storage_path})")
    return storage_path


def sanitize_field_name(field_name: str) -> str:
    """Strip everything except ASCII letters and digits."""
    return _UNSAFE_CHARS.sub("", field_name)


@dataclass(frozen=True)
class StagedPaths:
    """The staged file of one item and its tool-managed siblings."""

    staged: Path

    @property
    def tmp(self) -> Path:
        return self.staged.with_name(self.staged.name + TMP_SUFFIX)

    @property
    def processed(self) -> Path:
        return self.staged.with_name(self.staged.name + PROCESSED_SUFFIX)

    @property
    def original(self) -> Path:
        return self.staged.with_name(self.staged.name + ORIGINAL_SUFFIX)

    def output_path(self) -> Path:
        """The processed sibling wins over the staged file when it exists."""
        if self.processed.exists():
            return self.processed
        return self.staged

    def clear_stale(self) -> List[Path]:
        """Remove leftovers of a previous, possibly crashed, run at this path."""
        removed = []
        for path in (self.tmp, self.processed):
            if path.exists():
                path.unlink()
                removed.append(path)
        return removed

    def remove_all(self) -> List[Path]:
        """Remove the staged file, the processed sibling and the backup."""
        removed = []
        for path in (self.staged, self.processed, self.original):
            if path.exists():
                path.unlink()
                removed.append(path)
        return removed


class StagingPathAllocator:
    """Derive deterministic staging paths inside one working directory."""

    def __init__(self, storage_path: Path):
        self._storage_path = Path(storage_path)

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def allocate(self, field_name: str, extension: Optional[str]) -> StagedPaths:
        clean_name = sanitize_field_name(field_name)
        return StagedPaths(self._storage_path / f"{clean_name}.{extension}")
