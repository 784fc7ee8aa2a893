import json

import pytest

from app.models.schemas import FileType, PipelineConfig
from domains.file_ingest.collectors.pipeline import load_config, load_config_file
from domains.file_ingest.errors import ConfigurationError
from domains.file_ingest.processors.parsers import split_line

FIXED_SCHEMA = {
    "code": {"offset": 0, "length": 3},
    "rev": {"offset": "3", "length": "7", "reversed": True},
}


def test_defaults(make_document):
    config = load_config(make_document())

    assert config.source.file_extension == ".csv"
    assert config.source.file_prefix == ""
    assert config.source.file_type is FileType.DELIMITED
    assert config.source.delimiter == ","
    assert config.source.wait_between_tx == 0
    assert config.pool.max_active_tasks == 5
    assert config.pool.max_queued_tasks == 10
    assert config.processing.process_existing_files is False
    assert config.processing.delete_after_processing is False
    assert config.processing.extension_after_processing == ".csv.done"


def test_options_are_split_between_pool_and_processing(make_document):
    config = load_config(
        make_document(
            {
                "maxActiveTasks": 2,
                "maxQueuedTasks": 0,
                "processExistingFiles": True,
                "extensionAfterProcessing": "processed",
            }
        )
    )

    assert (config.pool.max_active_tasks, config.pool.max_queued_tasks) == (2, 0)
    assert config.processing.process_existing_files is True
    assert config.processing.extension_after_processing == ".processed"


def test_missing_max_lines_is_a_configuration_error(tmp_path):
    document = {"fileConfig": {"fileFolderPath": str(tmp_path)}}

    with pytest.raises(ConfigurationError):
        load_config(document)


def test_missing_file_config_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        load_config({"options": {}})


@pytest.mark.parametrize(
    "file_config",
    [
        {"maxLinesInEvent": 0},
        {"delimiter": ""},
        {"fileExtension": ""},
        {"encoding": "no-such-codec"},
        {"schema": {"field0": "name", "field1": "name"}},
        {"schema": {"field0": "field1"}},
        {"schema": {"field2": "field0", "field1": "id"}},
        {"fileType": "fixed"},
        {"fileType": "fixed", "schema": {"code": {"offset": -1, "length": 3}}},
        {"fileType": "fixed", "schema": {"code": {"offset": 0, "length": 0}}},
        {"fileType": "fixed", "schema": {"code": {"offset": 0, "length": 3, "charset": "bogus"}}},
        {"fileType": "fixed", "schema": FIXED_SCHEMA, "fixedRecordSize": 8},
    ],
)
def test_invalid_file_config(make_document, file_config):
    with pytest.raises(ConfigurationError):
        load_config(make_document(**file_config))


def test_invalid_pool_size(make_document):
    with pytest.raises(ConfigurationError):
        load_config(make_document({"maxActiveTasks": 0}))


def test_fixed_record_size_is_widest_field_plus_terminator(make_document):
    config = load_config(make_document(fileType="fixed", schema=FIXED_SCHEMA))

    assert config.source.record_size == 11
    assert config.source.fixed_fields["rev"].offset == 3
    assert config.source.fixed_fields["rev"].reversed is True
    assert config.source.field_names == {}


def test_fixed_record_size_override(make_document):
    config = load_config(make_document(fileType="fixed", schema=FIXED_SCHEMA, fixedRecordSize=10))

    assert config.source.record_size == 10


def test_delimited_schema_names(make_document):
    config = load_config(make_document(schema={"field0": "value", "field2": "flag"}))

    assert config.source.field_names == {"field0": "value", "field2": "flag"}
    assert config.source.fixed_fields == {}


def test_null_schema_entries_keep_default_names(make_document):
    config = load_config(make_document(schema={"field0": "id", "field1": None, "field2": None}))

    assert config.source.field_names == {"field0": "id"}
    assert split_line("7,x,y", ",", config.source.field_names) == {"id": "7", "field1": "x", "field2": "y"}


def test_schema_may_reuse_default_names_that_are_overridden(make_document):
    config = load_config(make_document(schema={"field0": "field1", "field1": "other", "field2": "field2"}))

    assert split_line("a,b,c", ",", config.source.field_names) == {"field1": "a", "other": "b", "field2": "c"}


def test_processed_extension_must_not_match_filter(make_document):
    with pytest.raises(ConfigurationError):
        load_config(make_document({"extensionAfterProcessing": "done.csv"}))

    config = load_config(make_document({"extensionAfterProcessing": "done.csv", "deleteAfterProcessing": True}))
    assert config.processing.delete_after_processing is True


def test_snake_case_names_are_accepted(tmp_path):
    config = PipelineConfig.model_validate(
        {
            "source": {"file_folder_path": str(tmp_path), "max_lines_in_event": 3, "file_extension": "dat"},
            "processing": {"delete_after_processing": True},
        }
    )

    assert config.source.max_lines_in_event == 3
    assert config.processing.extension_after_processing == ".dat.done"


def test_load_config_file(tmp_path, make_document):
    path = tmp_path / "ingest.json"
    path.write_text(json.dumps(make_document(filePrefix="eje")))

    assert load_config_file(path).source.file_prefix == "eje"


def test_load_config_file_errors(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config_file(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_config_file(broken)

    listing = tmp_path / "list.json"
    listing.write_text("[]")
    with pytest.raises(ConfigurationError):
        load_config_file(listing)
