"""
Startup scan for files that arrived while the pipeline was down.

Such files never produce a creation event, so they are listed once and
submitted the same way the watcher submits new files.
"""

import os
from pathlib import Path
from typing import Callable

from loguru import logger

from domains.file_ingest.processors.filter import FileNameFilter


class RecoveryScanner:
    """Submits every matching file already present in the folder."""

    def __init__(self, folder: Path, file_filter: FileNameFilter, submit: Callable[[str], bool]):
        self.folder = folder
        self.filter = file_filter
        self.submit = submit

    def scan(self) -> int:
        """
        List the folder and submit matching files in listing order.

        Returns:
            Number of files submitted
        """
        logger.info(f"Start working on existing files in folder {self.folder}")

        submitted = 0
        accepted = 0
        for name in os.listdir(self.folder):
            if not self.filter.accept(self.folder, name):
                continue

            path = self.folder / name
            if not path.is_file():
                continue

            submitted += 1
            if self.submit(str(path)):
                accepted += 1

        logger.info(f"Existing files in {self.folder}: {submitted} submitted, {accepted} accepted")
        return submitted
