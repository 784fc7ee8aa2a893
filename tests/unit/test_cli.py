import json
import threading

import pytest

pytest.importorskip("watchdog", reason="watchdog dependency is required for CLI tests")

from app.utils.config import Settings
from scripts import file_ingest_watcher
from scripts.file_ingest_watcher import main, parse_args, serve

URL = "http://collector.local/events"


def test_parse_args_overrides(tmp_path):
    args = parse_args(
        ["--config", str(tmp_path / "c.json"), "--sender-url", "http://x/events", "--process-existing"]
    )

    assert args.config == tmp_path / "c.json"
    assert args.sender_url == "http://x/events"
    assert args.process_existing is True


def test_main_fails_on_missing_config(tmp_path):
    assert main(["--config", str(tmp_path / "missing.json"), "--sender-url", URL, "--log-level", "ERROR"]) == 1


def test_main_fails_on_invalid_config(tmp_path):
    path = tmp_path / "ingest.json"
    path.write_text(json.dumps({"fileConfig": {"fileFolderPath": str(tmp_path)}}))

    assert main(["--config", str(path), "--sender-url", URL, "--log-level", "ERROR"]) == 1


def test_main_requires_sender_url(tmp_path, make_document, monkeypatch):
    monkeypatch.setattr(file_ingest_watcher, "get_settings", lambda: Settings(sender_url=None))
    path = tmp_path / "ingest.json"
    path.write_text(json.dumps(make_document()))

    assert main(["--config", str(path), "--log-level", "ERROR"]) == 1


class RecordingPipeline:
    def __init__(self):
        self.calls = []

    def start(self):
        self.calls.append("start")

    def stop(self):
        self.calls.append("stop")


class RecordingSender:
    def __init__(self, calls):
        self.calls = calls

    def close(self):
        self.calls.append("close")


def test_serve_stops_pipeline_then_closes_sender():
    pipeline = RecordingPipeline()
    stop_event = threading.Event()
    stop_event.set()

    serve(pipeline, RecordingSender(pipeline.calls), stop_event)

    assert pipeline.calls == ["start", "stop", "close"]


def test_serve_closes_sender_when_interrupted():
    pipeline = RecordingPipeline()

    class Interrupted(threading.Event):
        def is_set(self):
            raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        serve(pipeline, RecordingSender(pipeline.calls), Interrupted())

    assert pipeline.calls == ["start", "stop", "close"]
