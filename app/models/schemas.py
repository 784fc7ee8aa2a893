"""
Pydantic models for the file ingestion pipeline.

Shared data models across the application: the pipeline configuration
document, emitted segments and the per-file task record.
"""

import codecs
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.helpers import normalise_extension

_DEFAULT_FIELD_NAME = re.compile(r"field(0|[1-9][0-9]*)")


def check_encoding(value: Optional[str]) -> Optional[str]:
    """Reject codec names Python does not know."""
    if value is not None:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"unknown charset '{value}'")
    return value

# =====================================================
# Configuration Models
# =====================================================

class FileType(str, Enum):
    """Record layout of the watched files."""
    DELIMITED = "delimited"
    FIXED = "fixed"


class FixedFieldDescriptor(BaseModel):
    """Byte range of one named field inside a fixed-width record."""
    offset: int = Field(ge=0)
    length: int = Field(gt=0)
    charset: Optional[str] = None  # platform default when unset
    reversed: bool = False

    @field_validator("charset")
    @classmethod
    def _known_charset(cls, value: Optional[str]) -> Optional[str]:
        return check_encoding(value)

    @property
    def end(self) -> int:
        return self.offset + self.length


class FileSourceConfig(BaseModel):
    """Where files come from and how their records are parsed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    file_folder_path: Path = Field(alias="fileFolderPath")
    file_prefix: str = Field(default="", alias="filePrefix")
    file_extension: str = Field(default="csv", alias="fileExtension")
    file_type: FileType = Field(default=FileType.DELIMITED, alias="fileType")
    max_lines_in_event: int = Field(alias="maxLinesInEvent", ge=1)

    # Delimited variant
    delimiter: str = Field(default=",", min_length=1)
    process_null_values: bool = Field(default=False, alias="processNullValues")
    skip_first_line: bool = Field(default=False, alias="skipFirstLine")
    encoding: Optional[str] = None

    # Field names (delimited) or field descriptors (fixed)
    schema_map: Dict[str, Any] = Field(default_factory=dict, alias="schema")

    # Fixed variant
    fixed_record_size: Optional[int] = Field(default=None, alias="fixedRecordSize", ge=1)

    # Delay between segment emissions, milliseconds
    wait_between_tx: int = Field(default=0, alias="waitBetweenTx", ge=0)

    @field_validator("file_extension")
    @classmethod
    def _dot_extension(cls, value: str) -> str:
        if not value or value == ".":
            raise ValueError("fileExtension must not be empty")
        return normalise_extension(value)

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: Optional[str]) -> Optional[str]:
        return check_encoding(value)

    @field_validator("schema_map", mode="before")
    @classmethod
    def _null_schema(cls, value: Any) -> Any:
        return {} if value is None else value

    @model_validator(mode="after")
    def _build_schema(self) -> "FileSourceConfig":
        if self.file_type is FileType.FIXED:
            if not self.schema_map:
                raise ValueError("fixed-width files require a schema of field descriptors")
            self.schema_map = {
                name: FixedFieldDescriptor.model_validate(descriptor)
                for name, descriptor in self.schema_map.items()
            }
            record_size = self.record_size
            for name, descriptor in self.schema_map.items():
                if descriptor.end > record_size:
                    raise ValueError(
                        f"field '{name}' ends at byte {descriptor.end}, "
                        f"beyond the record size {record_size}"
                    )
        else:
            # A null override keeps the default fieldN name.
            names = {key: str(value) for key, value in self.schema_map.items() if value is not None}
            if len(set(names.values())) != len(names):
                raise ValueError("schema field names must be unique")
            for key, value in names.items():
                if (
                    value != key
                    and _DEFAULT_FIELD_NAME.fullmatch(key)
                    and _DEFAULT_FIELD_NAME.fullmatch(value)
                    and value not in names
                ):
                    raise ValueError(
                        f"schema maps '{key}' to '{value}', the default name of another column"
                    )
            self.schema_map = names
        return self

    @property
    def field_names(self) -> Dict[str, str]:
        """Delimited name overrides, ``{"field0": "value", ...}``."""
        if self.file_type is FileType.FIXED:
            return {}
        return self.schema_map

    @property
    def fixed_fields(self) -> Dict[str, FixedFieldDescriptor]:
        """Fixed-width field descriptors keyed by field name."""
        if self.file_type is not FileType.FIXED:
            return {}
        return self.schema_map

    @property
    def record_size(self) -> int:
        """Fixed record length: explicit override or widest field plus terminator."""
        if self.fixed_record_size is not None:
            return self.fixed_record_size
        return max((d.end for d in self.fixed_fields.values()), default=0) + 1


class PoolConfiguration(BaseModel):
    """Worker pool sizing."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_active_tasks: int = Field(default=5, alias="maxActiveTasks", ge=1)
    max_queued_tasks: int = Field(default=10, alias="maxQueuedTasks", ge=0)


class ProcessingOptions(BaseModel):
    """Startup recovery and post-processing policy."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    process_existing_files: bool = Field(default=False, alias="processExistingFiles")
    extension_after_processing: Optional[str] = Field(default=None, alias="extensionAfterProcessing")
    delete_after_processing: bool = Field(default=False, alias="deleteAfterProcessing")


class PipelineConfig(BaseModel):
    """Complete configuration of one pipeline instance."""

    model_config = ConfigDict(populate_by_name=True)

    source: FileSourceConfig = Field(alias="fileConfig")
    pool: PoolConfiguration = Field(default_factory=PoolConfiguration)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)

    @model_validator(mode="after")
    def _resolve_processing(self) -> "PipelineConfig":
        extension = self.source.file_extension
        after = self.processing.extension_after_processing
        if after is None:
            after = extension + ".done"
        elif after:
            after = normalise_extension(after)
        self.processing.extension_after_processing = after

        if (
            after
            and not self.processing.delete_after_processing
            and after.lower().endswith(extension.lower())
        ):
            raise ValueError(
                f"extensionAfterProcessing '{after}' still matches '{extension}'; "
                "processed files would be picked up again"
            )
        return self

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "PipelineConfig":
        """
        Build from a configuration document.

        The document carries a ``fileConfig`` section and an ``options``
        section; pool sizing and processing policy are both read from
        ``options``.
        """
        options = document.get("options") or {}
        return cls.model_validate(
            {
                "fileConfig": document.get("fileConfig"),
                "pool": options,
                "processing": options,
            }
        )


# =====================================================
# Processing Models
# =====================================================

class Segment(BaseModel):
    """One bounded batch of parsed records, emitted as a single event."""
    file: str
    segment: int = Field(ge=0)
    lines: List[Dict[str, str]] = []

    def as_event(self) -> Dict[str, Any]:
        """Wire payload handed to the sender."""
        return self.model_dump()


class FileState(str, Enum):
    """Lifecycle of a file in the watched folder, derived from its name."""
    PENDING = "pending"  # passes the filter, not processed yet
    TERMINAL = "terminal"  # renamed with the after-processing extension, or deleted
    IGNORED = "ignored"


@dataclass(slots=True)
class FileTask:
    """One file's end-to-end processing unit."""

    path: str
    submitted_at: int
    state: FileState = FileState.PENDING

    @property
    def name(self) -> str:
        return Path(self.path).name
