"""Generic units used in the comparison data models.

Types aliases are used to give human-readable meaning for various arguments and return values.
"""
from typing import TypeAlias


#: Identifies the compared file in results and failure reports.
#:
#: Usually a path relative to the test data folder.
#:
FileIdentifier: TypeAlias = str

#: Row index into the target frame.
#:
#: Batch-local row indices are translated to these
#: using the global row cursor.
#:
RowIndex: TypeAlias = int

#: Milliseconds since 1.1.1970 UTC
EpochMillis: TypeAlias = int

#: Days since 1.1.1970, as the reference readers store dates
DayCount: TypeAlias = int

#: Raw type name as reported by the reference reader.
#:
#: E.g. `int`, `decimal(10,2)`, `varchar(20)`, `array<int>`.
#:
DeclaredTypeName: TypeAlias = str

#: One bool per reference field, plus a leading sentinel at index 0.
#:
#: Tells the reference reader which columns to materialise.
#:
InclusionMask: TypeAlias = tuple[bool, ...]
