"""
File ingestion pipeline orchestrator.

Owns one watched folder end to end: filter, worker pool, task runner,
folder watcher and startup recovery scan, all built from a single
PipelineConfig and started/stopped together.
"""

import itertools
import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from loguru import logger
from pydantic import ValidationError
from watchdog.observers import Observer

from app.models.schemas import FileTask, PipelineConfig
from app.utils.helpers import normalise_path
from app.utils.sender import SegmentSender
from domains.file_ingest.collectors.pool import WorkerPool
from domains.file_ingest.collectors.recovery import RecoveryScanner
from domains.file_ingest.collectors.watcher import FolderWatcher
from domains.file_ingest.errors import ConfigurationError
from domains.file_ingest.processors.emitter import SegmentEmitter
from domains.file_ingest.processors.filter import FileNameFilter
from domains.file_ingest.processors.lifecycle import FileLifecycle
from domains.file_ingest.processors.runner import FileTaskRunner


def load_config(document: Mapping[str, Any]) -> PipelineConfig:
    """
    Validate a configuration document.

    Raises:
        ConfigurationError: the document is missing or invalid
    """
    try:
        return PipelineConfig.from_document(document)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid file ingestion configuration: {e}") from e


def load_config_file(path: Path) -> PipelineConfig:
    """Read and validate a JSON configuration document."""
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e

    if not isinstance(document, dict):
        raise ConfigurationError(f"Configuration {path} must be a JSON object")
    return load_config(document)


class FileIngestPipeline:
    """Watches a folder and turns every matching file into segment events."""

    def __init__(
        self,
        config: PipelineConfig,
        sender: Optional[SegmentSender] = None,
        observer_factory: Callable[[], Observer] = Observer,
        event_queue_size: int = None,
        poll_interval: float = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Validated pipeline configuration
            sender: Event delivery; None buffers events in ``segments``
            observer_factory: Builds the watchdog observer
            event_queue_size: Watcher notification buffer size
            poll_interval: Watcher stop-flag check interval

        Raises:
            ConfigurationError: the watched folder does not exist
        """
        self.config = config
        source = config.source

        self.folder = normalise_path(source.file_folder_path)
        if not self.folder.is_dir():
            raise ConfigurationError(f"Folder {self.folder} does not exist or is not a directory")

        self.stop_event = threading.Event()
        self._sequence = itertools.count()

        self.filter = FileNameFilter(source.file_extension, source.file_prefix)
        self.lifecycle = FileLifecycle(self.filter, config.processing)
        self.emitter = SegmentEmitter(
            sender,
            wait_between_tx=source.wait_between_tx / 1000.0,
            stop_event=self.stop_event,
        )
        self.runner = FileTaskRunner(source, self.emitter, self.lifecycle)
        self.pool = WorkerPool.from_config(self.runner, config.pool, stop_event=self.stop_event)

        self.watcher = FolderWatcher(
            self.folder,
            self.filter,
            self.submit_file,
            event_queue_size=event_queue_size,
            poll_interval=poll_interval,
            observer_factory=observer_factory,
        )
        self.scanner = RecoveryScanner(self.folder, self.filter, self.submit_file)

        logger.info(f"File ingestion pipeline initialized for {self.folder} ({source.file_type.value})")

    @classmethod
    def from_document(cls, document: Mapping[str, Any], **kwargs) -> "FileIngestPipeline":
        return cls(load_config(document), **kwargs)

    @classmethod
    def from_file(cls, path: Path, **kwargs) -> "FileIngestPipeline":
        return cls(load_config_file(path), **kwargs)

    @property
    def segments(self) -> List[Dict[str, Any]]:
        """Events buffered locally when no sender is configured."""
        return self.emitter.segments

    def submit_file(self, path: str) -> bool:
        """Wrap ``path`` in a FileTask and hand it to the worker pool."""
        task = FileTask(path=path, submitted_at=next(self._sequence))
        return self.pool.submit(task)

    def start(self):
        """Start the pool, subscribe to the folder, then recover existing files."""
        self.pool.start()
        self.watcher.start()

        if self.config.processing.process_existing_files:
            self.scanner.scan()

        logger.success(f"File ingestion pipeline started on {self.folder}")

    def stop(self, wait: bool = True):
        """Stop watching, then shut the worker pool down."""
        logger.info(f"Stopping file ingestion pipeline on {self.folder}...")
        self.watcher.stop()
        self.pool.stop(wait=wait)
        logger.info("File ingestion pipeline stopped")

    def __enter__(self) -> "FileIngestPipeline":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
