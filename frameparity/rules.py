"""Per-type equivalence rules between reference vectors and target columns.

Every rule walks the rows of one column vector of one batch.
Batch row `r` maps to the target row `cursor + r`.

- A row that is null in the reference must be null in the target,
  no value is compared for it

- Integers must match exactly

- Floats and decimals must be within :py:attr:`ComparisonConfig.float_tolerance`

- Strings must match byte for byte

- Timestamps and dates must be within :py:attr:`ComparisonConfig.timestamp_tolerance_ms`

- Binary columns are not verified

A rule stops at the first disagreeing row and returns it as :py:class:`ValueMismatch`.
"""
import functools
import math
from dataclasses import dataclass
from typing import Optional

from frameparity.column_type import ColumnType, TypeFamily
from frameparity.config import ComparisonConfig
from frameparity.result import ValueMismatch
from frameparity.target import TargetColumn
from frameparity.timestamp import correct_timestamp
from frameparity.types import FileIdentifier, RowIndex
from frameparity.vector import BytesVector, ColumnVector, DecimalVector, DoubleVector, LongVector, RepeatingBytesVector


@dataclass(frozen=True, slots=True)
class ColumnContext:
    """What a rule needs to know besides the values."""

    file_id: FileIdentifier

    column: str

    column_type: Optional[ColumnType]

    config: ComparisonConfig

    def mismatch(self, row: RowIndex, expected, actual, reason: str) -> ValueMismatch:
        return ValueMismatch(
            file_id=self.file_id,
            column=self.column,
            column_type=self.column_type,
            row=row,
            expected=expected,
            actual=actual,
            reason=reason,
        )


@functools.lru_cache(maxsize=16384)
def _corrected_date(days: int, timezone: str) -> int:
    return correct_timestamp(days, timezone)


def doubles_equal(expected: float, actual: float, tolerance: float) -> bool:
    """Absolute tolerance compare, where NaN equals NaN and infinities must match exactly."""
    if expected == actual:
        return True
    if math.isnan(expected) and math.isnan(actual):
        return True
    return abs(expected - actual) <= tolerance


def _target_value(ctx: ColumnContext, target: TargetColumn, row: RowIndex):
    """Read a target value with the accessor of the column type."""
    match ctx.column_type.get_family():
        case TypeFamily.integer | TypeFamily.timestamp | TypeFamily.date:
            return target.get_long(row)
        case TypeFamily.floating | TypeFamily.decimal:
            return target.get_double(row)
        case _:
            return target.get_string(row)


def _check_null(ctx: ColumnContext, target: TargetColumn, row: RowIndex) -> Optional[ValueMismatch]:
    if target.is_null(row):
        return None
    return ctx.mismatch(row, None, _target_value(ctx, target, row), "Null in reference, but not in target")


def compare_long_column(vector: LongVector, row_count: int, target: TargetColumn, cursor: RowIndex, ctx: ColumnContext) -> Optional[ValueMismatch]:
    """Exact match for boolean and integer columns."""
    skip_null_target = ctx.config.skip_null_target_integers
    for r in range(row_count):
        row = cursor + r
        if vector.is_null[r]:
            if (mismatch := _check_null(ctx, target, row)):
                return mismatch
            continue

        expected = int(vector.values[r])
        if target.is_null(row):
            if skip_null_target:
                continue
            return ctx.mismatch(row, expected, None, "Null in target, but not in reference")

        actual = target.get_long(row)
        if actual != expected:
            return ctx.mismatch(row, expected, actual, "Integer elements should equal")
    return None


def compare_double_column(vector: DoubleVector, row_count: int, target: TargetColumn, cursor: RowIndex, ctx: ColumnContext) -> Optional[ValueMismatch]:
    tolerance = ctx.config.float_tolerance
    for r in range(row_count):
        row = cursor + r
        if vector.is_null[r]:
            if (mismatch := _check_null(ctx, target, row)):
                return mismatch
            continue

        expected = float(vector.values[r])
        actual = target.get_double(row)
        if not doubles_equal(expected, actual, tolerance):
            return ctx.mismatch(row, expected, actual, f"Numerical elements should equal within {tolerance}")
    return None


def compare_decimal_column(vector: DecimalVector, row_count: int, target: TargetColumn, cursor: RowIndex, ctx: ColumnContext) -> Optional[ValueMismatch]:
    """Decimals are compared as doubles parsed from their string form."""
    tolerance = ctx.config.float_tolerance
    for r in range(row_count):
        row = cursor + r
        if vector.is_null[r]:
            if (mismatch := _check_null(ctx, target, row)):
                return mismatch
            continue

        expected = float(str(vector.values[r]))
        actual = target.get_double(row)
        if not doubles_equal(expected, actual, tolerance):
            return ctx.mismatch(row, expected, actual, f"Decimal elements should equal within {tolerance}")
    return None


def compare_string_column(vector: BytesVector | RepeatingBytesVector, row_count: int, target: TargetColumn, cursor: RowIndex, ctx: ColumnContext) -> Optional[ValueMismatch]:
    """Byte equality of UTF-8 encoded values.

    A repeating vector is decoded once and its value used for all rows.
    """
    repeating = isinstance(vector, RepeatingBytesVector)
    for r in range(row_count):
        row = cursor + r
        if vector.is_null[r]:
            if (mismatch := _check_null(ctx, target, row)):
                return mismatch
            continue

        expected = vector.get_bytes(r)
        if target.is_null(row):
            return ctx.mismatch(row, expected.decode("utf-8", errors="replace"), None, "Null in target, but not in reference")

        actual = target.get_string(row)
        if actual.encode("utf-8") != expected:
            return ctx.mismatch(
                row,
                expected.decode("utf-8", errors="replace"),
                actual,
                f"isRepeating = {repeating} String/char elements should equal",
            )
    return None


def compare_time_column(vector: LongVector, row_count: int, target: TargetColumn, cursor: RowIndex, ctx: ColumnContext) -> Optional[ValueMismatch]:
    """Timestamps (epoch milliseconds) and dates (day counts) against target epoch milliseconds."""
    tolerance = ctx.config.timestamp_tolerance_ms
    timezone = ctx.config.reference_timezone
    is_date = ctx.column_type == ColumnType.date
    for r in range(row_count):
        row = cursor + r
        if vector.is_null[r]:
            if (mismatch := _check_null(ctx, target, row)):
                return mismatch
            continue

        raw = int(vector.values[r])
        expected = _corrected_date(raw, timezone) if is_date else raw
        if target.is_null(row):
            return ctx.mismatch(row, expected, None, "Null in target, but not in reference")

        actual = target.get_long(row)
        if abs(actual - expected) > tolerance:
            return ctx.mismatch(row, expected, actual, f"Time elements should equal within {tolerance} ms")
    return None


def compare_column(
    vector: Optional[ColumnVector],
    row_count: int,
    target: TargetColumn,
    cursor: RowIndex,
    ctx: ColumnContext,
) -> Optional[ValueMismatch]:
    """Check one column of one batch with the rule of its type.

    :param vector:
        Reference storage of the column for this batch

    :param row_count:
        Rows in the batch

    :param target:
        The same column in the target frame

    :param cursor:
        Target row of the first batch row

    :return:
        The first disagreeing row, or `None` if all rows agree
        or the column type has no rule
    """
    column_type = ctx.column_type
    if column_type is None or vector is None:
        return None

    assert len(vector) >= row_count, f"Vector of {len(vector)} rows, batch has {row_count}"

    match column_type.get_family():
        case TypeFamily.integer:
            return compare_long_column(vector, row_count, target, cursor, ctx)
        case TypeFamily.floating:
            return compare_double_column(vector, row_count, target, cursor, ctx)
        case TypeFamily.string:
            return compare_string_column(vector, row_count, target, cursor, ctx)
        case TypeFamily.decimal:
            return compare_decimal_column(vector, row_count, target, cursor, ctx)
        case TypeFamily.timestamp | TypeFamily.date:
            return compare_time_column(vector, row_count, target, cursor, ctx)
        case TypeFamily.binary:
            # Binary values are not retrievable from the target in a comparable form
            return None
        case _:
            raise AssertionError(f"No rule for {column_type}")
