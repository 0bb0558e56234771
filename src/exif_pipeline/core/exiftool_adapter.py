"""Asynchronous adapter around a long-lived ExifTool process."""

import asyncio
import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from exiftool import ExifToolHelper
from exiftool.exceptions import ExifToolException, ExifToolExecuteError

from .exceptions import ToolExecutionFailed, ToolTimeout, UnsupportedOperation, ValidationError
from .logging_config import get_logger

_TAG_SAFE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_:-]*$")
_WRITE_COUNT_PATTERN = re.compile(r"(\d+) image files? (created|updated|unchanged)")

# Arguments used by the normalized read: group-prefixed keys, numeric values
# and structured lists.
NORMALIZED_READ_ARGS = ("-G", "-n", "-struct")

# Seconds terminate() waits for a clean shutdown before killing the process.
TERMINATE_TIMEOUT = 1


def is_safe_tag_name(name: str) -> bool:
    """Return True if ``name`` can be passed as ``-TAG`` without ambiguity."""
    if not name or not isinstance(name, str):
        return False
    return bool(_TAG_SAFE_PATTERN.match(name.strip()))


def contains_assignment(args: Sequence[str]) -> bool:
    return any("=" in arg for arg in args)


def has_line_break(text: str) -> bool:
    return "\n" in text or "\r" in text


def escape_value(value: str) -> str:
    """C-style escape for values sent together with ``-ec``."""
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        value = int(value)
    return str(value)


def tag_assignment_args(name: str, value: Any, escape: bool = False) -> List[str]:
    """Build the ``-TAG=VALUE`` arguments for one tag.

    Lists produce one assignment per element; ``None`` clears the tag.
    With ``escape`` the values are C-style escaped and must be sent with
    ``-ec``.
    """
    if value is None:
        return [f"-{name}="]
    values = value if isinstance(value, (list, tuple)) else [value]
    formatted = [_format_value(item) for item in values]
    if escape:
        formatted = [escape_value(item) for item in formatted]
    return [f"-{name}={item}" for item in formatted]


def write_tag_args(name: str, value: Any) -> List[str]:
    """Arguments for writing one tag.

    ExifTool reads one argument per line in ``-stay_open`` mode, so values
    with line breaks are escaped and ``-ec`` is prepended to decode them.
    """
    values = value if isinstance(value, (list, tuple)) else [value]
    if any(item is not None and has_line_break(_format_value(item)) for item in values):
        return ["-ec"] + tag_assignment_args(name, value, escape=True)
    return tag_assignment_args(name, value)


def parse_write_result(stdout: str, stderr: str = "") -> Dict[str, Any]:
    """Turn ExifTool's summary lines into a write result mapping."""
    result: Dict[str, Any] = {"created": 0, "updated": 0, "unchanged": 0}
    for count, kind in _WRITE_COUNT_PATTERN.findall(stdout or ""):
        result[kind] += int(count)
    result["warnings"] = [
        line.strip() for line in (stderr or "").splitlines() if line.strip().startswith("Warning")
    ]
    return result


class ExifToolAdapter:
    """
    Wraps ``exiftool.ExifToolHelper`` behind an async interface.

    The helper keeps one ExifTool process running in ``-stay_open`` mode.
    Calls are executed in a worker thread so the event loop is never blocked,
    and each call is bounded by ``timeout`` seconds (``None`` disables it).
    Process lifecycle is managed with ``async with``; the adapter never retries.
    """

    def __init__(self, executable: Optional[str] = None, timeout: Optional[float] = 30.0):
        kwargs: Dict[str, Any] = {"common_args": []}
        if executable:
            kwargs["executable"] = executable
        self._helper = ExifToolHelper(**kwargs)
        self._timeout = timeout
        self._logger = get_logger("exiftool-adapter")

    @property
    def running(self) -> bool:
        return self._helper.running

    async def start(self) -> None:
        if not self._helper.running:
            try:
                await asyncio.to_thread(self._helper.run)
            except (ExifToolException, OSError) as exc:
                raise ToolExecutionFailed(f"Failed to start ExifTool: {exc}") from exc
            self._logger.debug("ExifTool process started")

    async def close(self) -> None:
        if self._helper.running:
            await asyncio.to_thread(self._helper.terminate)
            self._logger.debug("ExifTool process terminated")

    async def __aenter__(self) -> "ExifToolAdapter":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _terminate_hung_process(self) -> None:
        # Runs in a worker thread: the call still waiting on the process holds
        # its pipes, and terminate() falls back to kill() after the bound.
        try:
            await asyncio.to_thread(self._helper.terminate, timeout=TERMINATE_TIMEOUT)
        except (ExifToolException, OSError) as exc:
            self._logger.warning(f"Failed to terminate ExifTool: {exc}")

    async def _execute(self, *params: str) -> str:
        broken = [param for param in params if has_line_break(param)]
        if broken:
            raise ValidationError(
                "ExifTool arguments cannot contain line breaks", {"args": broken}
            )

        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._helper.execute, *params), self._timeout
            )
        except asyncio.TimeoutError as exc:
            self._logger.error(f"ExifTool did not answer within {self._timeout}s, terminating")
            await self._terminate_hung_process()
            raise ToolTimeout(
                f"ExifTool timed out after {self._timeout}s", {"args": list(params)}
            ) from exc
        except ExifToolExecuteError as exc:
            message = (exc.stderr or exc.stdout or str(exc)).strip()
            raise ToolExecutionFailed(
                message, {"args": list(params), "returncode": exc.returncode}
            ) from exc
        except (ExifToolException, OSError) as exc:
            raise ToolExecutionFailed(str(exc), {"args": list(params)}) from exc

    async def _execute_json(self, *params: str) -> Dict[str, Any]:
        output = await self._execute("-j", *params)
        if not output or not output.strip():
            return {}
        try:
            parsed = json.loads(output)
        except json.JSONDecodeError as exc:
            raise ToolExecutionFailed(f"ExifTool returned invalid JSON: {exc}") from exc
        if isinstance(parsed, list):
            return parsed[0] if parsed else {}
        return parsed

    async def _execute_write(self, *params: str) -> Dict[str, Any]:
        stdout = await self._execute(*params)
        return parse_write_result(stdout, self._helper.last_stderr)

    async def read_metadata(self, path: Path, raw: bool = False) -> Dict[str, Any]:
        if raw:
            return await self._execute_json(str(path))
        data = await self._execute_json(*NORMALIZED_READ_ARGS, str(path))
        data.pop("SourceFile", None)
        return data

    async def write_tag(self, path: Path, name: str, value: Any) -> Dict[str, Any]:
        if not is_safe_tag_name(name):
            raise ValidationError(f"Invalid tag name: {name!r}", {"tag": name})
        return await self._execute_write(*write_tag_args(name.strip(), value), str(path))

    async def delete_all_tags(
        self, path: Path, retain: Optional[Sequence[str]] = None
    ) -> Dict[str, Any]:
        params = ["-all="]
        if retain:
            invalid = [tag for tag in retain if not is_safe_tag_name(tag)]
            if invalid:
                raise ValidationError("Invalid tag names to keep", {"tags": invalid})
            params += ["-tagsFromFile", "@"] + [f"-{tag}" for tag in retain]
        return await self._execute_write(*params, str(path))

    async def rewrite_all_tags(self, path: Path, destination: Path) -> None:
        await self._execute(
            "-all=",
            "-tagsFromFile",
            "@",
            "-all:all",
            "-unsafe",
            "-icc_profile",
            "-o",
            str(destination),
            str(path),
        )

    async def custom_command(self, path: Path, args: Sequence[str]) -> Dict[str, Any]:
        if contains_assignment(args):
            raise UnsupportedOperation(
                "Write custom commands are not supported. Use the write operation instead."
            )
        return await self._execute_json(*args, str(path))
