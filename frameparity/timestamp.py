"""Date and timestamp normalisation for comparing against the target frame.

Reference readers store dates as day counts since the epoch
and timestamps as integers in the unit of the column.
The target frame exposes both as milliseconds.
"""
import numpy as np
import pandas as pd

from frameparity.types import DayCount, EpochMillis


#: Milliseconds in a day
DAY_TO_MS = 24 * 3600 * 1000

#: The reference format anchors a date 8 hours past its midnight
ADD_OFFSET = 8 * 3600 * 1000

#: One hour in milliseconds, used to fold a date back to midnight
HOUR_OFFSET = 3600 * 1000

MILLIS_PER_SECOND = 1000

MICROS_PER_MILLI = 1000

NANOS_PER_MILLI = 1_000_000


def correct_timestamp(days_since_epoch: DayCount, timezone: str = "UTC") -> EpochMillis:
    """Convert a day count to the milliseconds at the midnight of that day.

    The day count is anchored at :py:data:`ADD_OFFSET` and then folded back to the hour 0
    of the same calendar day in `timezone`. Daylight saving transitions and other calendar
    quirks thus do not shift the result away from midnight.

    :param days_since_epoch:
        Date as the reference reader stores it

    :param timezone:
        The calendar where the midnight is taken.
        Must match how the target pipeline materialises dates.

    :return:
        Epoch milliseconds
    """
    timestamp = days_since_epoch * DAY_TO_MS + ADD_OFFSET
    hour = pd.Timestamp(timestamp, unit="ms", tz="UTC").tz_convert(timezone).hour
    if hour == 0:
        return timestamp
    return timestamp - hour * HOUR_OFFSET


def timestamp_to_millis(values: np.ndarray, unit: str) -> np.ndarray:
    """Convert epoch values stored in a pyarrow timestamp unit to epoch milliseconds.

    Integer arithmetic only, so that dates far outside the nanosecond range survive.
    Finer units are truncated toward zero, also for timestamps before the epoch.

    :param values:
        Epoch values as int64

    :param unit:
        `s`, `ms`, `us` or `ns`
    """
    values = np.asarray(values, dtype=np.int64)
    match unit:
        case "s":
            return values * MILLIS_PER_SECOND
        case "ms":
            return values
        case "us":
            divisor = MICROS_PER_MILLI
        case "ns":
            divisor = NANOS_PER_MILLI
        case _:
            raise AssertionError(f"Unknown timestamp unit: {unit}")
    return np.where(values < 0, -(-values // divisor), values // divisor)
