"""Target frames: the in-memory output of the ingestion pipeline under test.

The comparison only needs random access to single values,
so any frame implementation can be adapted by implementing
:py:class:`TargetFrame` and :py:class:`TargetColumn`.
"""
import abc
import datetime
import math
from typing import List

import numpy as np
import pandas as pd

from frameparity.types import RowIndex


class TargetColumn(abc.ABC):
    """Per-row accessors of one target column."""

    @abc.abstractmethod
    def is_null(self, row: RowIndex) -> bool:
        pass

    @abc.abstractmethod
    def get_long(self, row: RowIndex) -> int:
        """Integer value.

        Booleans read as 0 and 1, dates and timestamps as epoch milliseconds.
        """

    @abc.abstractmethod
    def get_double(self, row: RowIndex) -> float:
        """Floating point value, NaN for nulls."""

    @abc.abstractmethod
    def get_string(self, row: RowIndex) -> str:
        pass


class TargetFrame(abc.ABC):
    """Ingested frame with named, ordered columns."""

    @abc.abstractmethod
    def get_column_names(self) -> List[str]:
        pass

    @abc.abstractmethod
    def get_row_count(self) -> int:
        pass

    @abc.abstractmethod
    def get_column(self, name: str) -> TargetColumn:
        pass


def _to_epoch_millis(value) -> int:
    # pandas keeps the resolution of the column, so do not go through nanoseconds
    if isinstance(value, datetime.date):
        value = pd.Timestamp(value).asm8
    if isinstance(value, np.datetime64):
        return int(value.astype("datetime64[ms]").astype(np.int64))
    raise AssertionError(f"Not a datetime: {value.__class__.__name__}={value}")


class PandasTargetColumn(TargetColumn):
    """Wrap a :py:class:`pandas.Series`.

    Values are accessed by position, the index of the series is ignored.
    """

    def __init__(self, series: pd.Series):
        assert isinstance(series, pd.Series), f"Expected pd.Series, got {series.__class__}"
        self.name = series.name
        self.nulls = series.isna().to_numpy(dtype=bool)
        # Boxed values, so that datetimes come out as pd.Timestamp
        # and nullable integers keep their exact value
        self.values = series.to_numpy(dtype=object)

    def __repr__(self) -> str:
        return f"<PandasTargetColumn {self.name}, {len(self.values)} rows>"

    def is_null(self, row: RowIndex) -> bool:
        return bool(self.nulls[row])

    def get_long(self, row: RowIndex) -> int:
        value = self.values[row]
        if isinstance(value, (pd.Timestamp, np.datetime64, datetime.date)):
            return _to_epoch_millis(value)
        return int(value)

    def get_double(self, row: RowIndex) -> float:
        if self.nulls[row]:
            return math.nan
        return float(self.values[row])

    def get_string(self, row: RowIndex) -> str:
        value = self.values[row]
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)


class PandasTargetFrame(TargetFrame):
    """Wrap a :py:class:`pandas.DataFrame` produced by the ingestion pipeline."""

    def __init__(self, df: pd.DataFrame):
        assert isinstance(df, pd.DataFrame), f"Expected pd.DataFrame, got {df.__class__}"
        assert df.columns.is_unique, f"Duplicate column names: {list(df.columns)}"
        self.df = df
        self.columns = {}

    def get_column_names(self) -> List[str]:
        return [str(c) for c in self.df.columns]

    def get_row_count(self) -> int:
        return len(self.df)

    def get_column(self, name: str) -> PandasTargetColumn:
        column = self.columns.get(name)
        if column is None:
            column = self.columns[name] = PandasTargetColumn(self.df[name])
        return column
