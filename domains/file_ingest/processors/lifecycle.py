"""
File lifecycle in the watched folder.

A file is pending while its name passes the filter. Once processed it is
either deleted or renamed so that its extension no longer matches, which
makes it terminal: neither the watcher nor a restart scan will pick it up
again.
"""

import os
from pathlib import Path
from typing import Optional

from loguru import logger

from app.models.schemas import FileState, FileTask, ProcessingOptions
from domains.file_ingest.processors.filter import FileNameFilter


class FileLifecycle:
    """Classifies file names and moves processed files to their terminal state."""

    def __init__(self, file_filter: FileNameFilter, options: ProcessingOptions):
        self.filter = file_filter
        self.delete_after_processing = options.delete_after_processing
        self.extension_after_processing = options.extension_after_processing or ""

    def state_of(self, file_name: str) -> FileState:
        """Derive the lifecycle state of ``file_name`` from its name alone."""
        if self.filter.accept("", file_name):
            return FileState.PENDING

        after = self.extension_after_processing.lower()
        if after and file_name.lower().endswith(after):
            return FileState.TERMINAL

        return FileState.IGNORED

    def terminal_path(self, path: str) -> Optional[Path]:
        """
        Name a processed file gets, or None when it is deleted or left alone.

        The trailing extension is replaced as it appears on disk, whatever
        its case.
        """
        if self.delete_after_processing or not self.extension_after_processing:
            return None

        source = Path(path)
        stem = source.name[: len(source.name) - len(self.filter.extension)]
        return source.with_name(stem + self.extension_after_processing)

    def complete(self, task: FileTask) -> None:
        """
        Delete or rename the file of a fully processed task.

        Raises:
            OSError: the file could not be deleted or renamed
        """
        source = Path(task.path)

        if self.delete_after_processing:
            source.unlink()
            task.state = FileState.TERMINAL
            logger.info(f"File {source} deleted")
            return

        target = self.terminal_path(task.path)
        if target is None:
            logger.warning(f"No post-processing configured, {source} left in place")
            return

        if target.exists():
            logger.warning(f"Replacing existing {target} with processed {source}")

        os.replace(source, target)
        task.state = FileState.TERMINAL
        logger.info(f"File {source} renamed to {target}")
