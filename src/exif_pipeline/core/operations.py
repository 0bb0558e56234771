"""Operation dispatcher mapping the five modes onto the metadata tool."""

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from .exceptions import UnsupportedOperation, ValidationError
from .models import MetadataTag, Operation, ProcessingConfig
from .protocols import LoggerProtocol, MetadataToolProtocol
from .storage import StagedPaths

# Tag families whose values are lists. Matched against every ``:`` separated
# component of a tag name so group prefixes such as ``IPTC:Keywords`` work.
LIST_VALUED_TAGS = frozenset({"Keywords", "Subject", "HierarchicalSubject"})


def is_list_valued_tag(name: str) -> bool:
    return any(part.strip() in LIST_VALUED_TAGS for part in name.split(":"))


def split_list_value(value: str) -> List[str]:
    """Split a comma separated value into list elements.

    Unlike a plain ``value.split(",")``, surrounding whitespace is trimmed and
    empty parts are dropped, so ``"a, ,b"`` gives ``["a", "b"]``.
    """
    return [part.strip() for part in value.split(",") if part.strip()]


def prepare_tags(tags: Sequence[MetadataTag], parse_input_fields: bool) -> List[MetadataTag]:
    """Return the tags to write, splitting comma separated list values if enabled."""
    prepared = []
    for tag in tags:
        value = tag.value
        if parse_input_fields and isinstance(value, str) and is_list_valued_tag(tag.name):
            value = split_list_value(value)
        prepared.append(MetadataTag(name=tag.name, value=value))
    return prepared


def parse_keep_tags(keep_tags: str) -> Optional[List[str]]:
    """Parse a comma separated retain list. ``None`` means keep nothing."""
    if not keep_tags or not keep_tags.strip():
        return None
    names = [name.strip() for name in keep_tags.split(",") if name.strip()]
    return list(dict.fromkeys(names)) or None


def split_custom_command(custom_cmd: str) -> List[str]:
    """Split a custom command into tokens, rejecting write-style commands."""
    if "=" in custom_cmd:
        raise UnsupportedOperation(
            "Write custom commands are not supported. Use the write operation instead.",
            {"custom_cmd": custom_cmd},
        )
    return custom_cmd.split()


class OperationDispatcher:
    """Run the configured operation against a staged file."""

    def __init__(
        self,
        tool: MetadataToolProtocol,
        config: ProcessingConfig,
        logger: LoggerProtocol,
    ):
        self._tool = tool
        self._config = config
        self._logger = logger
        self._handlers = {
            Operation.READ: self._read,
            Operation.WRITE: self._write,
            Operation.DELETE: self._delete,
            Operation.REPAIR: self._repair,
            Operation.CUSTOM_CMD: self._custom_command,
        }

    async def dispatch(self, paths: StagedPaths) -> Any:
        """Run the handler for the configured operation and return its payload."""
        handler = self._handlers.get(self._config.operation)
        if handler is None:
            raise UnsupportedOperation(f"Unknown operation: {self._config.operation}")
        return await handler(paths)

    async def _read(self, paths: StagedPaths) -> Dict[str, Any]:
        return await self._tool.read_metadata(
            paths.staged, raw=self._config.options.read_raw
        )

    async def _write(self, paths: StagedPaths) -> List[Dict[str, Any]]:
        if not self._config.exif_metadata:
            raise ValidationError(
                "No metadata values provided. Please provide at least one metadata value."
            )

        if paths.tmp.exists():
            self._logger.warning(
                f"ExifTool temporary file {paths.tmp.name} still exists, "
                "a previous write may not have finished"
            )

        tags = prepare_tags(
            self._config.exif_metadata, self._config.options.parse_input_fields
        )

        # One call per tag so each tag's outcome is attributable. Calls never
        # overlap because ExifTool locks the file through its _exiftool_tmp copy.
        results = []
        for tag in tags:
            result = await self._tool.write_tag(paths.staged, tag.name, tag.value)
            results.append({**result, "tag": tag.name})
            self._logger.debug(f"Wrote tag {tag.name}")
            if self._config.settle_delay:
                await asyncio.sleep(self._config.settle_delay)
        return results

    async def _delete(self, paths: StagedPaths) -> Dict[str, Any]:
        retain = parse_keep_tags(self._config.keep_tags)
        return await self._tool.delete_all_tags(paths.staged, retain)

    async def _repair(self, paths: StagedPaths) -> Dict[str, Any]:
        await self._tool.rewrite_all_tags(paths.staged, paths.processed)
        return {"success": True}

    async def _custom_command(self, paths: StagedPaths) -> Dict[str, Any]:
        args = split_custom_command(self._config.custom_cmd)
        result = await self._tool.custom_command(paths.staged, args)
        return result or {}
