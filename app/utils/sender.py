"""
Event delivery for emitted segments.

Provides:
- The ``send(event)`` capability the segment emitter hands events to
- An in-memory sender for runs without a live transport
- An HTTP sender (fire-and-forget, failures are logged and dropped)
"""

import threading
from typing import Any, Dict, List, Optional, Protocol

import httpx
from loguru import logger

from app.utils.config import get_settings


class SegmentSender(Protocol):
    """Anything that can deliver one segment event."""

    def send(self, event: Dict[str, Any]) -> None:
        ...


class BufferedSender:
    """Collects events in memory instead of delivering them."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: List[Dict[str, Any]] = []

    def send(self, event: Dict[str, Any]) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[Dict[str, Any]]:
        """Snapshot of the events received so far."""
        with self._lock:
            return list(self._events)

    def for_file(self, path: str) -> List[Dict[str, Any]]:
        """Events emitted for one file, in emission order."""
        return [event for event in self.events if event["file"] == path]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class HttpSender:
    """Posts each event as JSON to a remote endpoint."""

    def __init__(self, url: str = None, timeout: float = None, client: Optional[httpx.Client] = None):
        """
        Initialize HTTP sender.

        Args:
            url: Endpoint receiving the events (defaults to settings.sender_url)
            timeout: Request timeout in seconds
            client: Preconfigured httpx client (tests, custom transports)
        """
        settings = get_settings()
        self.url = url or settings.sender_url
        if not self.url:
            raise ValueError("HttpSender requires a target URL")

        self._client = client or httpx.Client(timeout=timeout or settings.sender_timeout)

    def send(self, event: Dict[str, Any]) -> None:
        """Deliver one event; delivery is not confirmed or retried."""
        try:
            response = self._client.post(self.url, json=event)
            response.raise_for_status()
            logger.debug(f"Delivered segment {event.get('segment')} of {event.get('file')}")

        except httpx.HTTPError as e:
            logger.warning(
                f"Failed to deliver segment {event.get('segment')} of {event.get('file')}: {e}"
            )

    def close(self):
        """Close the underlying HTTP client."""
        self._client.close()
