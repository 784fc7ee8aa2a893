"""
Error taxonomy for file ingestion.

Configuration errors abort pipeline setup. Everything else is contained at
the file task or submission boundary and only surfaces through logs.
"""


class IngestError(Exception):
    """Base class for file ingestion errors."""


class ConfigurationError(IngestError):
    """Invalid or incomplete pipeline configuration."""


class ParseError(IngestError):
    """A file could not be read or decoded."""

    def __init__(self, path: str, cause: Exception):
        super().__init__(f"Failed to parse {path}: {cause}")
        self.path = path
        self.cause = cause


class TaskRejectedError(IngestError):
    """The worker pool refused a task (backlog full or pool stopped)."""


class TaskInterruptedError(IngestError):
    """A running task was interrupted by pool shutdown."""
