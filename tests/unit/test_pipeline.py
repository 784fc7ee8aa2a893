import pytest

from app.utils.sender import BufferedSender
from domains.file_ingest.collectors.pipeline import FileIngestPipeline
from domains.file_ingest.errors import ConfigurationError


class NullObserver:
    daemon = False

    def schedule(self, handler, path, recursive=False):
        pass

    def start(self):
        pass

    def stop(self):
        pass

    def join(self, timeout=None):
        pass


def make_pipeline(document, **kwargs):
    kwargs.setdefault("observer_factory", NullObserver)
    kwargs.setdefault("poll_interval", 0.01)
    return FileIngestPipeline.from_document(document, **kwargs)


def test_missing_folder_is_a_configuration_error(tmp_path, make_document):
    document = make_document()
    document["fileConfig"]["fileFolderPath"] = str(tmp_path / "missing")

    with pytest.raises(ConfigurationError):
        make_pipeline(document)


def test_existing_files_processed_at_startup(tmp_path, make_document, wait_for):
    for i in range(3):
        (tmp_path / f"in_{i}.csv").write_text("a,b\nc,d\ne,f\n")
    (tmp_path / "notes.txt").write_text("ignored")

    sender = BufferedSender()
    pipeline = make_pipeline(make_document({"processExistingFiles": True}), sender=sender)

    with pipeline:
        assert wait_for(lambda: pipeline.pool.stats().completed == 3)

    names = sorted(p.name for p in tmp_path.iterdir())
    assert names == ["in_0.csv.done", "in_1.csv.done", "in_2.csv.done", "notes.txt"]
    assert len(sender.events) == 6
    for i in range(3):
        path = str(tmp_path / f"in_{i}.csv")
        assert [e["segment"] for e in sender.for_file(path)] == [0, 1]


def test_existing_files_left_alone_without_recovery(tmp_path, make_document):
    (tmp_path / "in_0.csv").write_text("a,b\n")
    pipeline = make_pipeline(make_document())

    with pipeline:
        assert pipeline.pool.wait_until_idle(5)

    assert (tmp_path / "in_0.csv").exists()
    assert pipeline.segments == []


def test_segments_buffered_without_sender(tmp_path, make_document, wait_for):
    (tmp_path / "in_0.csv").write_text("1\n2\n3\n4\n5\n")
    pipeline = make_pipeline(make_document({"processExistingFiles": True}))

    with pipeline:
        assert wait_for(lambda: pipeline.pool.stats().completed == 1)

    assert [len(e["lines"]) for e in pipeline.segments] == [2, 2, 1]


def test_wait_between_tx_converted_to_seconds(tmp_path, make_document):
    pipeline = make_pipeline(make_document(waitBetweenTx=250))

    assert pipeline.emitter.wait_between_tx == pytest.approx(0.25)
    assert pipeline.emitter.stop_event is pipeline.pool.stop_event
