"""Item lifecycle and batch services for the EXIF pipeline."""

import copy
import time
from typing import List, Optional, Sequence

from .error_handling import BatchOperationContextManager
from .exceptions import StorageUnavailable, ValidationError, annotate_item_error
from .models import (
    SUPPORTED_EXTENSIONS,
    BinaryAttachment,
    Item,
    ProcessingConfig,
    mime_type_for,
)
from .observability import LogContext, MetricsCollector, PerformanceMetrics
from .operations import OperationDispatcher
from .protocols import LoggerProtocol
from .storage import StagedPaths, StagingPathAllocator, ensure_storage_path


def _normalize_extension(extension: Optional[str]) -> str:
    return (extension or "").strip().lstrip(".").lower()


class ItemProcessingService:
    """Stage one item, run the operation on it and clean up afterwards."""

    def __init__(
        self,
        allocator: StagingPathAllocator,
        dispatcher: OperationDispatcher,
        config: ProcessingConfig,
        logger: LoggerProtocol,
    ):
        self._allocator = allocator
        self._dispatcher = dispatcher
        self._config = config
        self._logger = logger

    def _validated_attachment(self, item: Item) -> BinaryAttachment:
        name = self._config.data_property_name
        attachment = item.binary.get(name)
        if attachment is None:
            raise ValidationError(
                f"Item has no binary property '{name}'", {"property": name}
            )
        if not attachment.data:
            raise ValidationError("No file data provided", {"property": name})

        extension = _normalize_extension(attachment.file_extension)
        if extension not in SUPPORTED_EXTENSIONS:
            raise ValidationError(
                f"File extension {attachment.file_extension} is not supported",
                {"extension": attachment.file_extension},
            )
        return attachment

    async def process_item(self, item: Item, index: int = 0) -> Item:
        """
        Run stage -> dispatch -> repack -> cleanup for a single item.

        The item is mutated in place: the operation result is stored under the
        output property and the binary property is replaced with the file the
        tool left behind.

        Raises:
            ExifPipelineError: On validation or tool failures. Staged files are
                removed before the error propagates.
        """
        name = self._config.data_property_name
        log_context = LogContext(
            correlation_id=f"item_{index}_{int(time.time() * 1000)}",
            operation="process_item",
            component="item_processing_service",
        ).with_metadata(item_index=index, mode=self._config.operation.value)

        try:
            attachment = self._validated_attachment(item)
            extension = _normalize_extension(attachment.file_extension)

            paths = self._allocator.allocate(name, extension)
            for stale in paths.clear_stale():
                self._logger.warning(f"Removed stale file {stale.name}", log_context)

            self._logger.debug(
                "Staging file", log_context.with_operation("stage"), path=str(paths.staged)
            )
            paths.staged.write_bytes(attachment.data)
            if not paths.staged.read_bytes():
                raise ValidationError("Failed to write binary data to temporary file")

            self._logger.debug("Dispatching operation", log_context.with_operation("dispatch"))
            result = await self._dispatcher.dispatch(paths)
            item.json_data[self._config.output_property_name] = result

            output_path = paths.output_path()
            item.binary[name] = BinaryAttachment(
                data=output_path.read_bytes(),
                file_extension=attachment.file_extension,
                file_name=attachment.file_name or paths.staged.name,
                mime_type=attachment.mime_type or mime_type_for(extension),
            )

            paths.remove_all()
        except BaseException:
            self._cleanup_after_failure(item, log_context)
            raise

        self._logger.info("Processed item", log_context)
        return item

    def _cleanup_after_failure(self, item: Item, log_context: LogContext) -> None:
        # Paths are derived again from the item since the failure may have
        # happened before they were allocated.
        try:
            attachment = item.binary.get(self._config.data_property_name)
            if attachment is None or not attachment.data:
                return
            paths: StagedPaths = self._allocator.allocate(
                self._config.data_property_name,
                _normalize_extension(attachment.file_extension),
            )
            removed = paths.remove_all()
            if removed:
                self._logger.debug(
                    f"Removed {len(removed)} temporary file(s) after failure", log_context
                )
        except Exception as cleanup_error:
            self._logger.error(
                f"Failed to clean up temporary files: {cleanup_error}",
                log_context.with_operation("cleanup"),
            )


class SerialBatchRunner:
    """Process items one after another under the continue-on-failure policy."""

    def __init__(
        self,
        item_service: ItemProcessingService,
        config: ProcessingConfig,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._item_service = item_service
        self._config = config
        self._logger = logger
        self._metrics_collector = metrics_collector

    def _record(self, start_time: float, success: bool, index: int, error: str = "") -> None:
        if self._metrics_collector is None:
            return
        self._metrics_collector.record_metric(
            PerformanceMetrics(
                operation="process_item",
                start_time=start_time,
                end_time=time.time(),
                success=success,
                error_message=error or None,
                metadata={"item_index": index},
            )
        )

    async def run(self, items: Sequence[Item]) -> List[Item]:
        """
        Process all items in order and return the output collection.

        Failed items are replaced by failed-item records when
        ``continue_on_fail`` is set; otherwise the first failure is re-raised
        with its ``item_index`` context filled in.

        Raises:
            StorageUnavailable: If the working directory cannot be prepared.
            ExifPipelineError: For the first failing item when not continuing.
        """
        ensure_storage_path(self._config.storage_path)

        output: List[Item] = []
        operation_name = f"EXIF {self._config.operation.value} batch"

        with BatchOperationContextManager(operation_name) as batch_context:
            for index, item in enumerate(items):
                input_json = copy.deepcopy(item.json_data)
                start_time = time.time()

                try:
                    processed = await self._item_service.process_item(item, index)
                except StorageUnavailable:
                    raise
                except Exception as exc:
                    self._record(start_time, False, index, str(exc))
                    error = annotate_item_error(exc, index)

                    if not self._config.continue_on_fail:
                        if error is exc:
                            raise
                        raise error from exc

                    batch_context.add_error(error, index)
                    output.append(Item(json=input_json, error=error, paired_item=index))
                    continue

                self._record(start_time, True, index)
                output.append(processed)

        if self._metrics_collector is not None:
            summary = self._metrics_collector.get_summary("process_item")
            if summary:
                self._logger.info(
                    f"Processed {summary['successful_operations']}/"
                    f"{summary['total_operations']} items in "
                    f"{summary['total_duration']:.2f}s",
                    avg_item_seconds=round(summary["avg_duration"], 3),
                    max_item_seconds=round(summary["max_duration"], 3),
                )

        return output
