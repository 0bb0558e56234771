"""Main module for the EXIF pipeline CLI."""

import sys
import argparse
from typing import List, Optional, Sequence

from . import __version__
from .process_images import add_process_arguments, main as process_images_main


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Entry point for the unified command-line interface of the EXIF pipeline.

    The "process" command forwards its arguments to `process_images.main`,
    "version" prints version information.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="exif-pipeline",
        description="EXIF Pipeline - read, write, delete and repair image metadata with ExifTool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Read metadata of two images
  exif-pipeline process a.jpg b.png

  # Write keywords and a caption, keep processed files
  exif-pipeline process a.jpg --operation write \\
                        --tag "Keywords=sea,sun" --tag "Caption-Abstract=Beach" \\
                        --output-dir out/

  # Show version
  exif-pipeline version
        """,
    )

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    process_parser: argparse.ArgumentParser = subparsers.add_parser(
        "process", help="Run an ExifTool operation on image files"
    )
    add_process_arguments(process_parser)

    subparsers.add_parser("version", help="Show version information")

    raw_args: List[str] = list(sys.argv[1:] if argv is None else argv)
    args: argparse.Namespace = parser.parse_args(raw_args)

    if args.command == "process":
        # Validation already happened above; process_images parses the same
        # arguments again without the subcommand name.
        process_images_main(raw_args[1:])

    elif args.command == "version":
        print("EXIF Pipeline CLI")
        print(f"Version {__version__}")
        print("Image metadata processing with ExifTool")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
