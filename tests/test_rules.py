"""Per-type comparison rules."""
from decimal import Decimal

import numpy as np
import pandas as pd
import pytest

from frameparity.column_type import ColumnType
from frameparity.config import ComparisonConfig
from frameparity.rules import ColumnContext, compare_column, doubles_equal
from frameparity.target import PandasTargetColumn
from frameparity.vector import BytesVector, DecimalVector, DoubleVector, LongVector, RepeatingBytesVector


def ctx(column_type: ColumnType, **config_kwargs) -> ColumnContext:
    return ColumnContext(file_id="test.orc", column="col", column_type=column_type, config=ComparisonConfig(**config_kwargs))


def nulls(*flags) -> np.ndarray:
    return np.array(flags, dtype=bool)


def target(values, dtype=None) -> PandasTargetColumn:
    return PandasTargetColumn(pd.Series(values, dtype=dtype))


def bytes_vector(values: list) -> BytesVector:
    encoded = [(v or "").encode("utf-8") for v in values]
    lengths = np.array([len(e) for e in encoded], dtype=np.int64)
    starts = np.concatenate([[0], np.cumsum(lengths)[:-1]]).astype(np.int64)
    return BytesVector(is_null=nulls(*[v is None for v in values]), data=b"".join(encoded), start=starts, length=lengths)


def test_long_exact_match():
    vector = LongVector(is_null=nulls(False, True, False), values=np.array([2**62, 0, -5], dtype=np.int64))
    assert compare_column(vector, 3, target([2**62, None, -5], "Int64"), 0, ctx(ColumnType.bigint)) is None


def test_long_mismatch_reports_global_row():
    vector = LongVector(is_null=nulls(False, False), values=np.array([1, 2], dtype=np.int64))
    column = target([0, 0, 0, 1, 3], "Int64")
    mismatch = compare_column(vector, 2, column, 3, ctx(ColumnType.int))
    assert mismatch.row == 4
    assert mismatch.expected == 2
    assert mismatch.actual == 3
    assert mismatch.column == "col"
    assert mismatch.file_id == "test.orc"


def test_long_off_by_one_is_not_tolerated():
    vector = LongVector(is_null=nulls(False), values=np.array([2**53 + 1], dtype=np.int64))
    mismatch = compare_column(vector, 1, target([2**53], "Int64"), 0, ctx(ColumnType.bigint))
    assert mismatch is not None


def test_reference_null_requires_target_null():
    vector = LongVector(is_null=nulls(True), values=np.array([0], dtype=np.int64))
    mismatch = compare_column(vector, 1, target([7], "Int64"), 0, ctx(ColumnType.int))
    assert mismatch.reason == "Null in reference, but not in target"


def test_target_null_integer_fails_by_default():
    vector = LongVector(is_null=nulls(False), values=np.array([7], dtype=np.int64))
    mismatch = compare_column(vector, 1, target([None], "Int64"), 0, ctx(ColumnType.int))
    assert mismatch.reason == "Null in target, but not in reference"


def test_target_null_integer_legacy_skip():
    """The lenient mode skips the row but keeps rows aligned."""
    vector = LongVector(is_null=nulls(False, False), values=np.array([7, 8], dtype=np.int64))
    c = ctx(ColumnType.int, skip_null_target_integers=True)
    assert compare_column(vector, 2, target([None, 8], "Int64"), 0, c) is None
    assert compare_column(vector, 2, target([None, 9], "Int64"), 0, c).row == 1


def test_boolean():
    vector = LongVector(is_null=nulls(False, False, True), values=np.array([1, 0, 0], dtype=np.int64))
    assert compare_column(vector, 3, target([True, False, None], "boolean"), 0, ctx(ColumnType.boolean)) is None


def test_double_tolerance():
    vector = DoubleVector(is_null=nulls(False, False), values=np.array([1.0, 2.0]))
    assert compare_column(vector, 2, target([1.0 + 1e-10, 2.0]), 0, ctx(ColumnType.double)) is None
    assert compare_column(vector, 2, target([1.0, 2.0 + 1e-6]), 0, ctx(ColumnType.double)).row == 1


def test_double_target_null_fails():
    vector = DoubleVector(is_null=nulls(False), values=np.array([1.0]))
    assert compare_column(vector, 1, target([None], "float64"), 0, ctx(ColumnType.double)) is not None


def test_doubles_equal_special_values():
    assert doubles_equal(float("inf"), float("inf"), 1e-9)
    assert not doubles_equal(float("inf"), float("-inf"), 1e-9)
    assert doubles_equal(float("nan"), float("nan"), 1e-9)
    assert not doubles_equal(1.0, float("nan"), 1e-9)


def test_decimal_as_double():
    vector = DecimalVector(is_null=nulls(False, True, False), values=[Decimal("12.34"), None, Decimal("-0.01")])
    assert compare_column(vector, 3, target([12.34, None, -0.01]), 0, ctx(ColumnType.decimal)) is None
    mismatch = compare_column(vector, 3, target([12.34, None, -0.02]), 0, ctx(ColumnType.decimal))
    assert mismatch.row == 2
    assert mismatch.expected == pytest.approx(-0.01)


def test_string_bytes():
    """Batch rows map to target rows starting at the cursor."""
    vector = bytes_vector(["abc", None, "", "ääkkönen"])
    column = target(["x"] * 10 + ["abc", None, "", "ääkkönen"])
    assert compare_column(vector, 4, column, 10, ctx(ColumnType.string)) is None

    column = target(["x"] * 10 + ["abc", None, "", "ääkkö"])
    assert compare_column(vector, 4, column, 10, ctx(ColumnType.string)).row == 13


def test_string_mismatch():
    vector = bytes_vector(["abc", "def"])
    mismatch = compare_column(vector, 2, target(["abc", "deF"]), 0, ctx(ColumnType.varchar))
    assert mismatch.row == 1
    assert mismatch.expected == "def"
    assert mismatch.actual == "deF"


def test_string_target_null_fails():
    vector = bytes_vector(["abc"])
    assert compare_column(vector, 1, target([None], "object"), 0, ctx(ColumnType.string)) is not None


def test_repeating_string_vector():
    """All rows of a repeating vector share the first value."""
    count = 10_000
    vector = RepeatingBytesVector(is_null=np.zeros(count, dtype=bool), value=b"CA")
    assert compare_column(vector, count, target(["CA"] * count), 0, ctx(ColumnType.string)) is None

    values = ["CA"] * count
    values[9_999] = "NY"
    mismatch = compare_column(vector, count, target(values), 0, ctx(ColumnType.string))
    assert mismatch.row == 9_999
    assert "isRepeating = True" in mismatch.reason


def test_binary_is_not_verified():
    vector = bytes_vector(["abc"])
    assert compare_column(vector, 1, target([b"xyz"]), 0, ctx(ColumnType.binary)) is None


def test_column_without_rule_passes():
    vector = LongVector(is_null=nulls(False), values=np.array([1], dtype=np.int64))
    assert compare_column(vector, 1, target([2]), 0, ctx(None)) is None


def test_timestamp_within_margin():
    ms = pd.Timestamp("2020-01-01 12:30").value // 1_000_000
    vector = LongVector(is_null=nulls(False, False, True), values=np.array([ms, ms, 0], dtype=np.int64))
    column = target([pd.Timestamp("2020-01-01 12:30:00.999"), pd.Timestamp("2020-01-01 12:29:59.001"), None])
    assert compare_column(vector, 3, column, 0, ctx(ColumnType.timestamp)) is None


def test_timestamp_outside_margin():
    ms = pd.Timestamp("2020-01-01 12:30").value // 1_000_000
    vector = LongVector(is_null=nulls(False), values=np.array([ms], dtype=np.int64))
    column = target([pd.Timestamp("2020-01-01 12:30:01.001")])
    mismatch = compare_column(vector, 1, column, 0, ctx(ColumnType.timestamp))
    assert mismatch.expected == ms
    assert mismatch.actual - mismatch.expected == 1001


def test_date_against_midnight_utc():
    days = 18_447  # 2020-07-04
    vector = LongVector(is_null=nulls(False), values=np.array([days], dtype=np.int64))
    assert compare_column(vector, 1, target([pd.Timestamp("2020-07-04")]), 0, ctx(ColumnType.date)) is None
    assert compare_column(vector, 1, target([pd.Timestamp("2020-07-05")]), 0, ctx(ColumnType.date)) is not None


def test_date_against_local_midnight():
    """Target pipeline materialises dates at Los Angeles midnight."""
    days = 18_447
    vector = LongVector(is_null=nulls(False), values=np.array([days], dtype=np.int64))
    local_midnight = pd.Timestamp("2020-07-04", tz="America/Los_Angeles")
    c = ctx(ColumnType.date, reference_timezone="America/Los_Angeles")
    assert compare_column(vector, 1, target([local_midnight]), 0, c) is None


def test_reference_null_reports_typed_target_value():
    """The unexpected target value is read with the accessor of the column type."""
    vector = DoubleVector(is_null=nulls(True), values=np.array([0.0]))
    mismatch = compare_column(vector, 1, target([2.5], "float64"), 0, ctx(ColumnType.double))
    assert mismatch.actual == 2.5
    assert isinstance(mismatch.actual, float)

    vector = LongVector(is_null=nulls(True), values=np.array([0], dtype=np.int64))
    mismatch = compare_column(vector, 1, target([7], "Int64"), 0, ctx(ColumnType.int))
    assert mismatch.actual == 7
