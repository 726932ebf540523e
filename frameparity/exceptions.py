"""Module for custom exceptions.

:py:class:`ComparisonError` is the base class for everything that aborts a file comparison.
Value mismatches are not exceptions: they are returned as :py:class:`frameparity.result.ValueMismatch` records.
"""
from pathlib import Path

from frameparity.types import FileIdentifier


class ComparisonError(Exception):
    """Comparing a file could not be completed."""

    def __init__(self, message: str, file_id: FileIdentifier | None = None):
        super().__init__(message)
        self.file_id = file_id


class SchemaMismatch(ComparisonError):
    """Reconciled reference columns do not match the target columns.

    Column count, names or order differ. Fatal for the file.
    """


class RowCountMismatch(ComparisonError):
    """Reference and target disagree on the number of rows.

    Fatal for the file, raised before any value is compared.
    """


class ValueMismatchError(ComparisonError):
    """Raised by :py:func:`frameparity.comparator.assert_frame_equivalent` when chunks failed."""

    def __init__(self, message: str, file_id: FileIdentifier | None = None, failures: list | None = None):
        super().__init__(message, file_id)
        self.failures = failures or []


class UnsupportedFileFormat(ComparisonError):
    """We do not have a reference reader for this file."""


class TargetLoadError(ComparisonError):
    """The ingestion pipeline under test failed to produce a frame for the file."""


class BrokenData(ComparisonError):
    """Raised when the reference reader cannot open a file for some reason."""

    def __init__(self, msg: str, path: Path):
        super().__init__(msg, file_id=path.name)
        self.path = path
