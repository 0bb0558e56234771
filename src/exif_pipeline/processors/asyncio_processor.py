"""AsyncIO processor implementation - runs a batch against one ExifTool process."""

import asyncio
from typing import List, Optional, Sequence

from ..core import Item, ProcessingConfig
from ..core.factories import ExifToolFactory, ProcessingPipelineFactory
from ..core.protocols import LoggerProtocol, MetadataToolProtocol


async def process_batch_async(
    items: Sequence[Item],
    config: ProcessingConfig,
    tool: Optional[MetadataToolProtocol] = None,
    logger: Optional[LoggerProtocol] = None,
) -> List[Item]:
    """Process a batch while the metadata tool is running.

    The tool is started before the first item and shut down after the last
    one, whether the batch succeeded or not.
    """
    if tool is None:
        tool = ExifToolFactory.create_tool(config)

    runner = ProcessingPipelineFactory.create_pipeline(config, tool=tool, logger=logger)
    async with tool:
        return await runner.run(items)


def process_batch(
    items: Sequence[Item],
    config: ProcessingConfig,
    tool: Optional[MetadataToolProtocol] = None,
) -> List[Item]:
    """
    Process a batch of items using asyncio.

    This is the synchronous wrapper that runs the async function.

    Args:
        items: Items carrying the binary property to process
        config: Processing configuration
        tool: Metadata tool to use (defaults to an ExifTool adapter)

    Returns:
        The output collection, one entry per input item
    """
    return asyncio.run(process_batch_async(items, config, tool))
