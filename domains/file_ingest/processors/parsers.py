"""
Record parsers turning one file into an ordered sequence of field maps.

Two layouts are supported:
- Delimited text: one record per line, tokens named ``field0``, ``field1``...
  unless the schema overrides the name.
- Fixed-width binary: consecutive records of a constant byte length, each
  field cut out of the record by offset and length.

Parsers are generators so large files stream through the segment emitter
without being held in memory. Any I/O or decoding failure is raised as
ParseError and aborts the whole file.
"""

from typing import Dict, Iterator, Mapping, Optional

from loguru import logger

from app.models.schemas import FileSourceConfig, FileType, FixedFieldDescriptor
from app.utils.helpers import platform_encoding, trim_value
from domains.file_ingest.errors import ParseError

FieldMap = Dict[str, str]


def resolve_field_name(index: int, schema: Optional[Mapping[str, str]]) -> str:
    """
    Name of the field at ``index``.

    Args:
        index: Field index within the line
        schema: Overrides keyed by the default name (``{"field0": "value"}``)

    Returns:
        The override when present, otherwise ``field<index>``
    """
    field = f"field{index}"
    if schema and schema.get(field) is not None:
        return schema[field]
    return field


def split_line(
    line: str,
    delimiter: str,
    schema: Optional[Mapping[str, str]] = None,
    process_null_values: bool = False,
) -> FieldMap:
    """
    Map the tokens of one line to field names.

    Empty tokens never produce a value. With ``process_null_values`` they
    still consume a field index, so later tokens keep the name matching
    their position; without it later tokens shift into the earlier names.
    """
    values: FieldMap = {}
    field_index = 0

    for token in line.split(delimiter):
        if token:
            values[resolve_field_name(field_index, schema)] = token
            field_index += 1
        elif process_null_values:
            field_index += 1

    return values


def parse_delimited(
    file_path: str,
    delimiter: str = ",",
    schema: Optional[Mapping[str, str]] = None,
    process_null_values: bool = False,
    skip_first_line: bool = False,
    encoding: Optional[str] = None,
) -> Iterator[FieldMap]:
    """
    Yield one field map per line of a delimited text file.

    Args:
        file_path: File to read
        delimiter: Literal token separator
        schema: Field name overrides
        process_null_values: Whether empty tokens advance the field index
        skip_first_line: Discard the first line of the file (header)
        encoding: Text encoding, platform default when unset

    Yields:
        Field maps in file order
    """
    try:
        with open(file_path, "r", encoding=platform_encoding(encoding), errors="replace") as handle:
            for line_number, line in enumerate(handle):
                if skip_first_line and line_number == 0:
                    continue
                yield split_line(line.rstrip("\r\n"), delimiter, schema, process_null_values)

    except OSError as e:
        raise ParseError(file_path, e) from e


def extract_field(record: bytes, descriptor: FixedFieldDescriptor) -> str:
    """Decode, trim and optionally reverse one field of a fixed-width record."""
    raw = record[descriptor.offset:descriptor.end]
    value = trim_value(raw.decode(platform_encoding(descriptor.charset), errors="replace"))
    if descriptor.reversed:
        value = value[::-1]
    return value


def parse_fixed(
    file_path: str,
    schema: Mapping[str, FixedFieldDescriptor],
    record_size: int,
) -> Iterator[FieldMap]:
    """
    Yield one field map per fixed-size record of a binary file.

    A trailing chunk shorter than ``record_size`` is not a record and is
    ignored.
    """
    try:
        with open(file_path, "rb") as handle:
            while True:
                record = handle.read(record_size)
                if len(record) < record_size:
                    if record:
                        logger.debug(
                            f"Ignoring {len(record)} trailing bytes of {file_path} "
                            f"(record size {record_size})"
                        )
                    break

                yield {name: extract_field(record, descriptor) for name, descriptor in schema.items()}

    except OSError as e:
        raise ParseError(file_path, e) from e


def parse_file(file_path: str, source: FileSourceConfig) -> Iterator[FieldMap]:
    """Parse ``file_path`` with the variant selected by ``source.file_type``."""
    if source.file_type is FileType.FIXED:
        return parse_fixed(file_path, source.fixed_fields, source.record_size)

    return parse_delimited(
        file_path,
        delimiter=source.delimiter,
        schema=source.field_names,
        process_null_values=source.process_null_values,
        skip_first_line=source.skip_first_line,
        encoding=source.encoding,
    )
