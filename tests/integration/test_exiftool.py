"""Integration tests against a real exiftool installation."""

import shutil

import pytest

from exif_pipeline.core.models import MetadataTag, Operation, ProcessingConfig
from exif_pipeline.processors import process_batch
from exif_pipeline.testing.fakes import make_item

pytestmark = pytest.mark.skipif(
    shutil.which("exiftool") is None, reason="exiftool is not installed"
)


def _config(tmp_path, **kwargs):
    return ProcessingConfig(storage_path=tmp_path, settle_delay=0, tool_timeout=30, **kwargs)


class TestExifToolIntegration:
    """End-to-end runs with the ExifTool adapter."""

    def test_write_then_read(self, tmp_path):
        """Test written tags are returned by a following read."""
        written = process_batch(
            [make_item("jpg")],
            _config(
                tmp_path,
                operation=Operation.WRITE,
                exif_metadata=[
                    MetadataTag(name="Artist", value="Jane Doe"),
                    MetadataTag(name="IPTC:Keywords", value="sea, sun"),
                ],
            ),
        )

        results = written[0].json_data["exifData"]
        assert [result["tag"] for result in results] == ["Artist", "IPTC:Keywords"]
        assert all(result["updated"] == 1 for result in results)

        read = process_batch(written, _config(tmp_path, operation=Operation.READ))

        metadata = read[0].json_data["exifData"]
        assert metadata["EXIF:Artist"] == "Jane Doe"
        assert metadata["IPTC:Keywords"] == ["sea", "sun"]
        assert list(tmp_path.iterdir()) == []

    def test_delete_all(self, tmp_path):
        """Test delete removes previously written tags."""
        written = process_batch(
            [make_item("jpg")],
            _config(
                tmp_path,
                operation=Operation.WRITE,
                exif_metadata=[MetadataTag(name="Artist", value="Jane")],
            ),
        )
        cleaned = process_batch(written, _config(tmp_path, operation=Operation.DELETE))
        read = process_batch(cleaned, _config(tmp_path, operation=Operation.READ))

        assert "EXIF:Artist" not in read[0].json_data["exifData"]

    def test_repair_png(self, tmp_path):
        """Test repair produces a processed file for a png."""
        output = process_batch([make_item("png")], _config(tmp_path, operation=Operation.REPAIR))

        assert output[0].json_data["exifData"] == {"success": True}
        assert output[0].binary["data"].data[:8] == b"\x89PNG\r\n\x1a\n"
        assert list(tmp_path.iterdir()) == []

    def test_custom_command(self, tmp_path):
        """Test a read-only custom command returns JSON metadata."""
        output = process_batch(
            [make_item("jpg")],
            _config(tmp_path, operation=Operation.CUSTOM_CMD, custom_cmd="-File:FileType"),
        )

        assert output[0].json_data["exifData"]["FileType"] == "JPEG"
