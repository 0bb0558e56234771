"""Tests for the asyncio batch processor."""

import asyncio
from unittest.mock import patch

import pytest

from exif_pipeline.core.exceptions import ToolExecutionFailed
from exif_pipeline.core.models import Operation, ProcessingConfig
from exif_pipeline.processors import process_batch, process_batch_async
from exif_pipeline.testing.fakes import FakeLogger, FakeMetadataTool, make_item


class TestAsyncioProcessor:
    """Tests for process_batch and process_batch_async."""

    def test_default_tool_comes_from_factory(self, tmp_path):
        """Test an ExifTool adapter is created when no tool is given."""
        tool = FakeMetadataTool()
        config = ProcessingConfig(storage_path=tmp_path)

        with patch(
            "exif_pipeline.processors.asyncio_processor.ExifToolFactory.create_tool",
            return_value=tool,
        ) as create_tool:
            output = process_batch([make_item("jpg")], config)

        create_tool.assert_called_once_with(config)
        assert output[0].json_data["exifData"]["EXIF:Model"] == "X100"
        assert tool.closed

    def test_tool_closed_after_failure(self, tmp_path):
        """Test the tool is shut down when the batch aborts."""
        tool = FakeMetadataTool()
        tool.set_failure_mode(True)
        config = ProcessingConfig(storage_path=tmp_path, operation=Operation.DELETE)

        with pytest.raises(ToolExecutionFailed):
            process_batch([make_item("jpg")], config, tool=tool)

        assert tool.closed
        assert list(tmp_path.iterdir()) == []

    def test_async_entry_point_uses_logger(self, tmp_path):
        """Test the async entry point logs through the given logger."""
        logger = FakeLogger()
        config = ProcessingConfig(storage_path=tmp_path)

        asyncio.run(
            process_batch_async([make_item("png")], config, tool=FakeMetadataTool(), logger=logger)
        )

        assert any(log["message"] == "Processed item" for log in logger.get_logs("INFO"))
