"""Comparison outcomes.

Value mismatches are plain records returned by the comparison rules.
The walker collects them per chunk and the orchestrator returns them
as a :py:class:`ComparisonResult`, one per file.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from frameparity.column_type import ColumnType
from frameparity.reference import Chunk
from frameparity.types import FileIdentifier, RowIndex


@dataclass(frozen=True, slots=True)
class ValueMismatch:
    """A reference value the target does not agree with."""

    file_id: FileIdentifier

    #: `None` if the chunk failed before any column was compared
    column: Optional[str]

    column_type: Optional[ColumnType]

    #: Row index in the target frame
    row: RowIndex

    #: Reference value, after conversion to what the target should hold
    expected: Any

    #: Target value
    actual: Any

    #: Human readable explanation
    reason: str

    def __str__(self) -> str:
        return f"{self.file_id}: column {self.column} row {self.row}: {self.reason} (expected {self.expected!r}, got {self.actual!r})"


@dataclass(frozen=True, slots=True)
class ChunkFailure:
    """A chunk whose comparison stopped at a mismatch.

    Rows of the chunk after the mismatch were not compared.
    """

    chunk: Chunk

    mismatch: ValueMismatch

    def __str__(self) -> str:
        return f"chunk #{self.chunk.index}: {self.mismatch}"


@dataclass
class ComparisonResult:
    """Outcome of comparing one file."""

    file_id: FileIdentifier

    #: Columns checked value by value
    compared_columns: List[str] = field(default_factory=list)

    #: Columns present on both sides, but without a comparison rule
    skipped_columns: List[str] = field(default_factory=list)

    row_count: int = 0

    chunk_count: int = 0

    failures: List[ChunkFailure] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        """Number of failed chunks. Zero means the file passed."""
        return len(self.failures)

    @property
    def passed(self) -> bool:
        return self.failed_count == 0

    def get_mismatches(self) -> List[ValueMismatch]:
        return [f.mismatch for f in self.failures]


@dataclass
class ComparisonReport:
    """Outcome of comparing many files."""

    #: Files that could be compared
    results: Dict[FileIdentifier, ComparisonResult] = field(default_factory=dict)

    #: Files aborted before all chunks were compared.
    #:
    #: Usually a :py:class:`frameparity.exceptions.ComparisonError`.
    errors: Dict[FileIdentifier, Exception] = field(default_factory=dict)

    #: Every file that did not pass
    failed_files: Set[FileIdentifier] = field(default_factory=set)

    def add_result(self, result: ComparisonResult):
        self.results[result.file_id] = result
        if not result.passed:
            self.failed_files.add(result.file_id)

    def add_error(self, file_id: FileIdentifier, error: Exception):
        self.errors[file_id] = error
        self.failed_files.add(file_id)

    def merge(self, other: "ComparisonReport"):
        """Combine reports of files compared in parallel."""
        self.results.update(other.results)
        self.errors.update(other.errors)
        self.failed_files |= other.failed_files

    def get_file_count(self) -> int:
        return len(self.results) + len(self.errors)

    def get_failed_chunk_count(self) -> int:
        return sum(r.failed_count for r in self.results.values())

    @property
    def passed(self) -> bool:
        return len(self.failed_files) == 0
