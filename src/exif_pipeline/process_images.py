#!/usr/bin/env python3
"""
EXIF Metadata Processor CLI

Stages image files → Runs an ExifTool operation → Writes results and processed files
Supports the read, write, delete, repair and customCmd operations
"""

import sys
import json
import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pydantic

from .core import (
    BinaryAttachment,
    ExifPipelineError,
    Item,
    MetadataTag,
    Operation,
    OperationOptions,
    ProcessingConfig,
    get_logger,
    set_debug,
)
from .processors import process_batch


def add_process_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the arguments of the process command on ``parser``."""
    parser.add_argument("files", nargs="+", type=Path, help="Image files to process")
    parser.add_argument(
        "--operation",
        type=str,
        default=Operation.READ.value,
        choices=[op.value for op in Operation],
        help="Operation to run on every file (default: read)",
    )
    parser.add_argument(
        "--tag",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Tag to write (write operation, repeatable). An empty value clears the tag",
    )
    parser.add_argument(
        "--keep-tags", default="", help="Comma separated tags to keep (delete operation)"
    )
    parser.add_argument(
        "--custom-cmd", default="", help="Read-only ExifTool arguments (customCmd operation)"
    )
    parser.add_argument(
        "--read-raw", action="store_true", help="Return the tool output untransformed"
    )
    parser.add_argument(
        "--no-parse-input-fields",
        dest="parse_input_fields",
        action="store_false",
        help="Do not split comma separated values of list tags such as Keywords",
    )
    parser.add_argument(
        "--continue-on-fail",
        action="store_true",
        help="Record failed files instead of aborting the batch",
    )
    parser.add_argument("--storage-path", type=Path, default=None, help="Working directory")
    parser.add_argument(
        "--output-dir", type=Path, default=None, help="Directory for processed files"
    )
    parser.add_argument(
        "--output-json", type=Path, default=None, help="Write results here instead of stdout"
    )
    parser.add_argument(
        "--settle-delay", type=float, default=0.5, help="Seconds to wait after each tag write"
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Seconds to wait for each ExifTool call"
    )
    parser.add_argument("--exiftool", default=None, help="Path to the exiftool executable")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the EXIF processor.

    Returns:
        An `argparse.Namespace` object containing the parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Run ExifTool operations on a batch of image files"
    )
    add_process_arguments(parser)
    return parser.parse_args(argv)


def parse_tag(raw: str) -> MetadataTag:
    """Parse ``NAME=VALUE``; ``NAME=`` clears the tag."""
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise ValueError(f"Invalid tag {raw!r}, expected NAME=VALUE")
    return MetadataTag(name=name.strip(), value=value if value else None)


def build_config(args: argparse.Namespace) -> ProcessingConfig:
    """Translate parsed arguments into a ProcessingConfig."""
    overrides: Dict[str, Any] = {}
    if args.storage_path is not None:
        overrides["storage_path"] = args.storage_path
    if args.timeout is not None:
        overrides["tool_timeout"] = args.timeout
    if args.exiftool:
        overrides["exiftool_path"] = args.exiftool

    return ProcessingConfig(
        operation=Operation(args.operation),
        custom_cmd=args.custom_cmd,
        keep_tags=args.keep_tags,
        exif_metadata=[parse_tag(raw) for raw in args.tag],
        options=OperationOptions(
            read_raw=args.read_raw, parse_input_fields=args.parse_input_fields
        ),
        continue_on_fail=args.continue_on_fail,
        settle_delay=args.settle_delay,
        debug=args.debug,
        **overrides,
    )


def build_items(files: Sequence[Path], config: ProcessingConfig) -> List[Item]:
    """Create one item per file with the file content under the data property."""
    return [
        Item(
            json={"fileName": path.name},
            binary={config.data_property_name: BinaryAttachment.from_path(path)},
        )
        for path in files
    ]


def write_outputs(
    items: Sequence[Item],
    config: ProcessingConfig,
    output_json: Optional[Path],
    output_dir: Optional[Path],
) -> None:
    """Write the result mappings as JSON and processed files to ``output_dir``."""
    records = []
    for item in items:
        record = dict(item.json_data)
        if item.failed:
            record["error"] = str(item.error)
            record["pairedItem"] = item.paired_item
        records.append(record)

        attachment = item.binary.get(config.data_property_name)
        if output_dir is not None and attachment is not None and not item.failed:
            output_dir.mkdir(parents=True, exist_ok=True)
            file_name = item.json_data.get("fileName") or attachment.file_name
            (output_dir / file_name).write_bytes(attachment.data)

    payload = json.dumps(records, indent=2, default=str)
    if output_json is not None:
        output_json.write_text(payload + "\n", encoding="utf-8")
    else:
        print(payload)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Main entry point for the EXIF processing script.

    Parses arguments, builds the configuration and items, runs the batch and
    writes the results. Exits with status 1 when the batch fails.
    """
    logger = get_logger("processor")
    try:
        args = parse_args(argv)
        config = build_config(args)

        if config.debug:
            set_debug()

        items = build_items(args.files, config)
        logger.info(f"Processing {len(items)} file(s) with operation '{config.operation.value}'")

        results = process_batch(items, config)
        write_outputs(results, config, args.output_json, args.output_dir)

    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user.")
    except (ValueError, pydantic.ValidationError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except ExifPipelineError as e:
        logger.error(f"Processing failed: {e} {e.context}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Processing failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
