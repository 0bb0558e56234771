"""Factory classes for creating configured service instances."""

import logging
from typing import Any, Dict, Optional

from .exiftool_adapter import ExifToolAdapter
from .logging_config import get_logger
from .models import ProcessingConfig
from .observability import LogContext, MetricsCollector
from .operations import OperationDispatcher
from .protocols import LoggerProtocol, MetadataToolProtocol
from .services import ItemProcessingService, SerialBatchRunner
from .storage import StagingPathAllocator


class LoggerAdapter:
    """Adapter to make standard logger compatible with LoggerProtocol."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @staticmethod
    def _format(message: str, context: Optional[LogContext], extra: Dict[str, Any]) -> str:
        parts = [message]
        if context is not None:
            parts.append(context.render())
        parts.extend(f"{key}={value}" for key, value in extra.items())
        return " | ".join(parts)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        """Log debug message."""
        self._logger.debug(self._format(message, context, kwargs))

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        """Log info message."""
        self._logger.info(self._format(message, context, kwargs))

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        """Log warning message."""
        self._logger.warning(self._format(message, context, kwargs))

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs: Any) -> None:
        """Log error message."""
        self._logger.error(self._format(message, context, kwargs))


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str, level: Optional[str] = None) -> LoggerProtocol:
        """Create a configured logger instance."""
        logger = get_logger(name)
        if level:
            logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        return LoggerAdapter(logger)


class ExifToolFactory:
    """Factory for creating metadata tool instances."""

    @staticmethod
    def create_tool(config: ProcessingConfig) -> MetadataToolProtocol:
        """Create an ExifTool adapter using the configured executable and timeout."""
        return ExifToolAdapter(executable=config.exiftool_path, timeout=config.tool_timeout)


class ProcessingPipelineFactory:
    """Factory for creating the complete processing pipeline."""

    @staticmethod
    def create_pipeline(
        config: ProcessingConfig,
        tool: Optional[MetadataToolProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
    ) -> SerialBatchRunner:
        """Create a fully configured batch runner."""

        if tool is None:
            tool = ExifToolFactory.create_tool(config)

        if logger is None:
            logger = LoggerFactory.create_logger(
                "pipeline", level="DEBUG" if config.debug else None
            )

        if metrics_collector is None:
            metrics_collector = MetricsCollector()

        allocator = StagingPathAllocator(config.storage_path)
        dispatcher = OperationDispatcher(tool, config, logger)
        item_service = ItemProcessingService(allocator, dispatcher, config, logger)

        return SerialBatchRunner(
            item_service=item_service,
            config=config,
            logger=logger,
            metrics_collector=metrics_collector,
        )
