"""Segment emitter: batches parsed records into bounded events."""

import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from app.models.schemas import Segment
from app.utils.sender import SegmentSender
from domains.file_ingest.errors import TaskInterruptedError


@dataclass(slots=True)
class EmitResult:
    """Totals for one emitted file."""

    segments: int
    records: int


class SegmentEmitter:
    """
    Hands batches of at most ``max_lines_in_event`` records to a sender.

    Segment numbers start at 0 for every file and grow by one per emitted
    event. Without a sender, events are kept in ``segments``.
    """

    def __init__(
        self,
        sender: Optional[SegmentSender] = None,
        wait_between_tx: float = 0.0,
        stop_event: Optional[threading.Event] = None,
    ):
        """
        Initialize segment emitter.

        Args:
            sender: Delivery capability; None buffers events locally
            wait_between_tx: Seconds to pause after each full segment
            stop_event: Set when the owning pool shuts down
        """
        self.sender = sender
        self.wait_between_tx = wait_between_tx
        self.stop_event = stop_event or threading.Event()
        self._lock = threading.Lock()
        self.segments: List[Dict[str, Any]] = []

    def _send(self, segment: Segment) -> None:
        event = segment.as_event()
        if self.sender is not None:
            self.sender.send(event)
        else:
            with self._lock:
                self.segments.append(event)

    def _check_stopped(self, file_path: str) -> None:
        if self.stop_event.is_set():
            raise TaskInterruptedError(f"Processing of {file_path} interrupted by shutdown")

    def emit(self, file_path: str, records: Iterable[Dict[str, str]], max_lines_in_event: int) -> EmitResult:
        """
        Emit ``records`` of ``file_path`` as consecutive segments.

        Args:
            file_path: File the records came from (sent as ``file``)
            records: Field maps in file order
            max_lines_in_event: Upper bound of lines per segment

        Returns:
            Number of segments and records emitted
        """
        if max_lines_in_event < 1:
            raise ValueError("max_lines_in_event must be positive")

        segment_index = 0
        record_count = 0
        batch: List[Dict[str, str]] = []

        for record in records:
            batch.append(record)
            record_count += 1

            if len(batch) >= max_lines_in_event:
                self._check_stopped(file_path)
                logger.info(
                    f"TX segment {segment_index} size {len(batch)} "
                    f"total records {record_count} ({file_path})"
                )
                self._send(Segment(file=file_path, segment=segment_index, lines=batch))
                batch = []
                segment_index += 1

                if self.wait_between_tx > 0:
                    self.stop_event.wait(self.wait_between_tx)

        if batch:
            self._check_stopped(file_path)
            logger.info(
                f"TX last segment {segment_index} size {len(batch)} "
                f"total records {record_count} ({file_path})"
            )
            self._send(Segment(file=file_path, segment=segment_index, lines=batch))
            segment_index += 1

        return EmitResult(segments=segment_index, records=record_count)
