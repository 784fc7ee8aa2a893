"""File name filter deciding which files in the watched folder are processed."""

from pathlib import Path
from typing import Union

from app.utils.helpers import normalise_extension


class FileNameFilter:
    """
    Accepts names that start with a prefix and end with an extension.

    Both checks ignore case. The extension gets a leading dot when it is
    configured without one.
    """

    def __init__(self, extension: str, prefix: str = ""):
        self.extension = normalise_extension(extension)
        self.prefix = prefix or ""
        self._extension_lower = self.extension.lower()
        self._prefix_lower = self.prefix.lower()

    def accept(self, directory: Union[str, Path], file_name: str) -> bool:
        """Return True if ``file_name`` inside ``directory`` should be processed."""
        lowercase_name = file_name.lower()
        return (
            lowercase_name.endswith(self._extension_lower)
            and lowercase_name.startswith(self._prefix_lower)
        )

    def __call__(self, directory: Union[str, Path], file_name: str) -> bool:
        return self.accept(directory, file_name)

    def __repr__(self) -> str:
        return f"FileNameFilter(prefix={self.prefix!r}, extension={self.extension!r})"
