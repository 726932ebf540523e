"""Test fixtures."""
import datetime
import logging
import sys
from decimal import Decimal

import pyarrow as pa
import pytest


@pytest.fixture(scope="session")
def logger(request) -> logging.Logger:
    """Initialize stdout logger using colored output."""

    logger = logging.getLogger()

    # pytest --log-level option
    log_level = request.config.getoption("--log-level")

    # Set log format to dislay the logger name to hunt down verbose logging modules
    fmt = "%(name)-25s %(levelname)-8s %(message)s"

    # Use colored logging output for console
    try:
        import coloredlogs
        coloredlogs.install(level=log_level, fmt=fmt, logger=logger)
    except ImportError:
        logging.basicConfig(stream=sys.stdout, level=log_level)

    return logger


@pytest.fixture()
def sample_table() -> pa.Table:
    """A table covering all compared types, with nulls.

    Timestamps are in milliseconds, so that they survive round trips through all formats.
    """
    return pa.table({
        "flag": pa.array([True, False, None, True], type=pa.bool_()),
        "tiny": pa.array([1, -2, 3, None], type=pa.int8()),
        "small": pa.array([300, None, -300, 7], type=pa.int16()),
        "id": pa.array([1, 2, 3, 4], type=pa.int32()),
        "big": pa.array([2**40, -(2**40), None, 0], type=pa.int64()),
        "ratio": pa.array([0.5, None, -1.25, 3.0], type=pa.float32()),
        "price": pa.array([1.1, 2.2, None, 1e300], type=pa.float64()),
        "name": pa.array(["alice", None, "", "ööö"], type=pa.string()),
        "amount": pa.array([Decimal("12.34"), None, Decimal("-0.01"), Decimal("99999.99")], type=pa.decimal128(7, 2)),
        "created_at": pa.array(
            [datetime.datetime(2020, 1, 1, 12, 30), None, datetime.datetime(1969, 12, 31, 23, 59, 59), datetime.datetime(2038, 1, 19, 3, 14, 7)],
            type=pa.timestamp("ms"),
        ),
        "birthday": pa.array(
            [datetime.date(1999, 12, 31), datetime.date(1970, 1, 1), None, datetime.date(2021, 7, 4)],
            type=pa.date32(),
        ),
    })

