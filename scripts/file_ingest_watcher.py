#!/usr/bin/env python3
"""Watch a folder and stream every new data file as segment events.

This module exposes a CLI entrypoint around ``FileIngestPipeline``. The
pipeline configuration is a JSON document with a ``fileConfig`` section
(folder, naming, parsing) and an ``options`` section (pool sizing, startup
recovery, post-processing)::

    {
      "fileConfig": {
        "fileFolderPath": "/data/incoming",
        "filePrefix": "eje",
        "fileExtension": "csv",
        "maxLinesInEvent": 200,
        "schema": {"field0": "value", "field1": "YScale", "field2": "flag"}
      },
      "options": {
        "maxActiveTasks": 2,
        "maxQueuedTasks": 4,
        "processExistingFiles": true,
        "extensionAfterProcessing": "csv.done",
        "deleteAfterProcessing": false
      }
    }
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from app.utils.config import get_settings
from app.utils.sender import HttpSender
from domains.file_ingest.collectors.pipeline import FileIngestPipeline, load_config_file
from domains.file_ingest.errors import ConfigurationError

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str) -> None:
    """Send all log records to stdout in the project format."""
    logger.remove()
    logger.add(sys.stdout, format=LOG_FORMAT, level=level.upper())


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Watch a folder and emit the records of new files as segment events.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=settings.ingest_config_file,
        help=f"Pipeline configuration JSON (default: {settings.ingest_config_file}).",
    )
    parser.add_argument(
        "--sender-url",
        default=settings.sender_url,
        help="HTTP endpoint receiving events (required unless SENDER_URL is set).",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level}).",
    )
    parser.add_argument(
        "--process-existing",
        action="store_true",
        help="Process files already in the folder at startup, regardless of the configuration.",
    )

    return parser.parse_args(argv)


def serve(pipeline: FileIngestPipeline, sender: HttpSender, stop_event: threading.Event) -> None:
    """Run ``pipeline`` until ``stop_event`` is set, then release the sender."""
    pipeline.start()
    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    finally:
        pipeline.stop()
        sender.close()


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    configure_logging(args.log_level)

    if not args.sender_url:
        logger.error("No sender URL configured, pass --sender-url or set SENDER_URL")
        return 1

    sender = HttpSender(args.sender_url)
    try:
        config = load_config_file(args.config)
        if args.process_existing:
            config.processing.process_existing_files = True
        pipeline = FileIngestPipeline(config, sender=sender)

    except ConfigurationError as e:
        logger.error(str(e))
        sender.close()
        return 1

    logger.info(f"Delivering events to {args.sender_url}")
    stop_event = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    serve(pipeline, sender, stop_event)

    logger.info("File ingestion watcher stopped.")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
