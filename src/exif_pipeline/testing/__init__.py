"""Testing utilities and fakes for the EXIF pipeline."""

from .fakes import (
    FakeLogger,
    FakeMetadataTool,
    create_test_image,
    make_item,
)

__all__ = [
    "FakeLogger",
    "FakeMetadataTool",
    "create_test_image",
    "make_item",
]
