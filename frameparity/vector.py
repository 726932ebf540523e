"""Column vectors of a reference reader row batch.

A batch holds one vector per projected column. Each vector carries
its own null bitmap. Values at null rows are undefined and must not be read.

Vectors are materialised from :py:mod:`pyarrow` arrays with :py:func:`vector_from_arrow`.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

import numpy as np
import pyarrow as pa
import pyarrow.compute as pc

from frameparity.column_type import ColumnType, TypeFamily
from frameparity.timestamp import timestamp_to_millis


@dataclass(slots=True)
class ColumnVector:
    """One column's values within a batch."""

    #: True for rows that are null in the reference
    is_null: np.ndarray

    def __len__(self) -> int:
        return len(self.is_null)


@dataclass(slots=True)
class LongVector(ColumnVector):
    """Integers, booleans, timestamps (epoch milliseconds) and dates (day counts)."""

    values: np.ndarray


@dataclass(slots=True)
class DoubleVector(ColumnVector):
    values: np.ndarray


@dataclass(slots=True)
class BytesVector(ColumnVector):
    """Strings and binary stored as byte ranges in a shared buffer."""

    #: Concatenated value bytes of the batch
    data: bytes

    #: Start offset of each row in :py:attr:`data`
    start: np.ndarray

    #: Length of each row in bytes
    length: np.ndarray

    def get_bytes(self, row: int) -> bytes:
        start = int(self.start[row])
        return self.data[start:start + int(self.length[row])]


@dataclass(slots=True)
class RepeatingBytesVector(ColumnVector):
    """Every row of the batch shares the same value.

    Only the representative value is stored.
    """

    value: bytes

    def get_bytes(self, row: int) -> bytes:
        return self.value


@dataclass(slots=True)
class DecimalVector(ColumnVector):
    values: List[Optional[Decimal]]


@dataclass(slots=True)
class RowBatch:
    """A bounded window of rows from one chunk."""

    #: Number of rows in this batch
    count: int

    #: One vector per projected column, in the reconciled column order
    vectors: List[Optional[ColumnVector]]


def _null_bitmap(arr: pa.Array) -> np.ndarray:
    return arr.is_null().to_numpy(zero_copy_only=False).astype(bool)


def _long_vector(arr: pa.Array, column_type: ColumnType) -> LongVector:
    is_null = _null_bitmap(arr)
    if column_type == ColumnType.timestamp:
        unit = arr.type.unit
        values = arr.cast(pa.int64()).fill_null(0).to_numpy(zero_copy_only=False)
        return LongVector(is_null=is_null, values=timestamp_to_millis(values, unit))
    if column_type == ColumnType.date:
        if pa.types.is_date64(arr.type):
            arr = arr.cast(pa.date32())
        arr = arr.cast(pa.int32())
    elif pa.types.is_boolean(arr.type):
        arr = arr.cast(pa.int8())
    values = arr.fill_null(0).to_numpy(zero_copy_only=False).astype(np.int64)
    return LongVector(is_null=is_null, values=values)


def _double_vector(arr: pa.Array) -> DoubleVector:
    is_null = _null_bitmap(arr)
    values = arr.cast(pa.float64()).fill_null(0.0).to_numpy(zero_copy_only=False)
    return DoubleVector(is_null=is_null, values=values)


def _is_repeating(arr: pa.Array) -> bool:
    """Single distinct value without nulls."""
    if len(arr) < 2 or arr.null_count > 0:
        return False
    return pc.count_distinct(arr).as_py() == 1


def _bytes_vector(arr: pa.Array, column_type: ColumnType) -> ColumnVector:
    if pa.types.is_dictionary(arr.type):
        arr = arr.dictionary_decode()

    if column_type == ColumnType.binary:
        arr = arr.cast(pa.large_binary())
    else:
        arr = arr.cast(pa.large_string())

    is_null = _null_bitmap(arr)

    if _is_repeating(arr):
        value = arr[0].as_py()
        if isinstance(value, str):
            value = value.encode("utf-8")
        return RepeatingBytesVector(is_null=is_null, value=value)

    buffers = arr.buffers()
    offsets = np.frombuffer(buffers[1], dtype=np.int64)[arr.offset:arr.offset + len(arr) + 1]
    # Copy only the bytes of this window, the buffer may be shared with a whole stripe
    first = int(offsets[0])
    size = int(offsets[-1]) - first
    data = buffers[2].slice(first, size).to_pybytes() if buffers[2] is not None and size > 0 else b""
    return BytesVector(
        is_null=is_null,
        data=data,
        start=offsets[:-1] - first,
        length=np.diff(offsets),
    )


def _decimal_vector(arr: pa.Array) -> DecimalVector:
    return DecimalVector(is_null=_null_bitmap(arr), values=arr.to_pylist())


def vector_from_arrow(arr: pa.Array, column_type: Optional[ColumnType]) -> Optional[ColumnVector]:
    """Materialise the reference storage of one column.

    :param arr:
        A column of a :py:class:`pyarrow.RecordBatch`

    :param column_type:
        How the column is compared

    :return:
        `None` for columns without a comparison rule
    """
    if isinstance(arr, pa.ChunkedArray):
        arr = arr.combine_chunks()

    if column_type is None:
        return None

    match column_type.get_family():
        case TypeFamily.integer | TypeFamily.timestamp | TypeFamily.date:
            return _long_vector(arr, column_type)
        case TypeFamily.floating:
            return _double_vector(arr)
        case TypeFamily.string | TypeFamily.binary:
            return _bytes_vector(arr, column_type)
        case TypeFamily.decimal:
            return _decimal_vector(arr)
        case _:
            raise AssertionError(f"Unknown type family: {column_type}")


def batch_from_arrow(record_batch: pa.RecordBatch, types: List[Optional[ColumnType]]) -> RowBatch:
    """Convert a projected record batch to column vectors.

    :param types:
        Comparison type for each column of the batch, in the batch column order
    """
    assert record_batch.num_columns == len(types), f"Batch has {record_batch.num_columns} columns, expected {len(types)}"
    vectors = [vector_from_arrow(record_batch.column(idx), t) for idx, t in enumerate(types)]
    return RowBatch(count=record_batch.num_rows, vectors=vectors)
