"""Batch image metadata processing with ExifTool."""

__version__ = "0.1.0"
