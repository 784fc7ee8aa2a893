"""
Per-file processing: parse, emit segments, then retire the file.

The file only reaches its terminal state after every segment has been
handed to the sender. A failure while parsing or emitting propagates to
the worker pool, which logs it; the file keeps its name and stays eligible
for a later pass.
"""

import time

from loguru import logger

from app.models.schemas import FileSourceConfig, FileTask
from domains.file_ingest.processors.emitter import EmitResult, SegmentEmitter
from domains.file_ingest.processors.lifecycle import FileLifecycle
from domains.file_ingest.processors.parsers import parse_file


class FileTaskRunner:
    """Runs one FileTask end to end inside a worker pool slot."""

    def __init__(self, source: FileSourceConfig, emitter: SegmentEmitter, lifecycle: FileLifecycle):
        self.source = source
        self.emitter = emitter
        self.lifecycle = lifecycle

    def __call__(self, task: FileTask) -> EmitResult:
        return self.run(task)

    def run(self, task: FileTask) -> EmitResult:
        """
        Process one file.

        Args:
            task: The file to process

        Returns:
            Segment and record totals

        Raises:
            ParseError: the file could not be read
            TaskInterruptedError: the pool shut down mid-file
        """
        started = time.monotonic()
        logger.info(f"Start executing #{task.submitted_at} {task.path}")

        records = parse_file(task.path, self.source)
        result = self.emitter.emit(task.path, records, self.source.max_lines_in_event)

        try:
            self.lifecycle.complete(task)
        except OSError as e:
            logger.error(f"Post-processing of {task.path} failed, file left in place: {e}")

        logger.success(
            f"Processed {task.path}: {result.records} records in {result.segments} segments "
            f"({time.monotonic() - started:.2f}s)"
        )
        return result
