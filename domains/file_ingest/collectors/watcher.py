"""
Folder watcher feeding newly created files to the worker pool.

Uses the watchdog library for file system notifications. The watchdog
handler only buffers events; a dedicated loop blocks until events arrive,
drains everything pending as one batch and submits the matching files.
"""

import os
import queue
import threading
from pathlib import Path
from typing import Callable, List, Optional

from loguru import logger
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from app.utils.config import get_settings
from domains.file_ingest.processors.filter import FileNameFilter


class QueueingEventHandler(FileSystemEventHandler):
    """Watchdog handler that hands every event to a bounded queue."""

    def __init__(self, events: "queue.Queue[FileSystemEvent]"):
        super().__init__()
        self.events = events
        self.overflows = 0

    def on_any_event(self, event: FileSystemEvent) -> None:
        try:
            self.events.put_nowait(event)
        except queue.Full:
            # Notification overflow: the loop is not keeping up.
            self.overflows += 1
            logger.error(f"Notification overflow, dropped {event.event_type} {event.src_path}")


class FolderWatcher:
    """Watches one folder (non-recursive) and submits created files."""

    def __init__(
        self,
        folder: Path,
        file_filter: FileNameFilter,
        submit: Callable[[str], bool],
        event_queue_size: int = None,
        poll_interval: float = None,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        """
        Initialize folder watcher.

        Args:
            folder: Directory to watch
            file_filter: Decides which file names are submitted
            submit: Called with the absolute path of each matching file
            event_queue_size: Capacity of the notification buffer
            poll_interval: Seconds between stop-flag checks while idle
            observer_factory: Builds the watchdog observer
        """
        settings = get_settings()
        self.folder = folder
        self.filter = file_filter
        self.submit = submit
        self.poll_interval = poll_interval or settings.watcher_poll_interval
        self.observer_factory = observer_factory

        self.events: "queue.Queue[FileSystemEvent]" = queue.Queue(
            maxsize=event_queue_size or settings.event_queue_size
        )
        self.event_handler = QueueingEventHandler(self.events)

        self._observer = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Subscribe to the folder and start the watcher loop."""
        if self.is_running:
            return

        self._stop.clear()
        self._observer = self.observer_factory()
        self._observer.schedule(self.event_handler, str(self.folder), recursive=False)
        self._observer.daemon = True
        self._observer.start()
        logger.info(f"Subscribed to {self.folder}")

        self._thread = threading.Thread(target=self.run, name="file-ingest-watcher", daemon=True)
        self._thread.start()

    def run(self):
        """Watcher loop: wait for a batch, handle it, repeat until stopped."""
        logger.info(f"Watching {self.folder} for {self.filter}")

        while not self._stop.is_set():
            batch = self.next_batch()
            if batch:
                self.process_batch(batch)

        logger.info("Watcher loop exited")

    def next_batch(self) -> List[FileSystemEvent]:
        """Block up to one poll interval for an event, then drain the queue."""
        try:
            batch = [self.events.get(timeout=self.poll_interval)]
        except queue.Empty:
            return []

        while True:
            try:
                batch.append(self.events.get_nowait())
            except queue.Empty:
                return batch

    def process_batch(self, batch: List[FileSystemEvent]) -> int:
        """
        Handle a batch of events; a bad event never stops the batch.

        Returns:
            Number of files submitted
        """
        submitted = 0
        for event in batch:
            try:
                if self.handle_event(event):
                    submitted += 1
            except Exception as e:
                logger.error(f"Skipping malformed event {event!r}: {e}")
        return submitted

    def handle_event(self, event: FileSystemEvent) -> bool:
        """
        Submit the file behind a creation event if its name matches.

        Files moved into the folder count as created under their new name.
        Modifications are logged and ignored.

        Returns:
            True if the file was submitted and accepted
        """
        if event.is_directory:
            return False

        if event.event_type == EVENT_TYPE_CREATED:
            raw_path = event.src_path
        elif event.event_type == EVENT_TYPE_MOVED:
            raw_path = event.dest_path
        elif event.event_type == EVENT_TYPE_MODIFIED:
            logger.debug(f"Ignored path modified: {event.src_path}")
            return False
        else:
            return False

        path = Path(os.fsdecode(raw_path))
        logger.info(f"New path created: {path.name}")

        if not self.filter.accept(self.folder, path.name):
            logger.debug(f"Ignored {path.name}: does not match {self.filter}")
            return False

        return self.submit(str(path))

    def stop(self, timeout: float = None):
        """Stop the loop after the current batch and release the subscription."""
        self._stop.set()

        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
            logger.info(f"Unsubscribed from {self.folder}")
