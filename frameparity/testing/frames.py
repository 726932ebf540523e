"""Build target frames from pyarrow tables.

Used for unit testing
"""
import pandas as pd
import pyarrow as pa

from frameparity.target import PandasTargetFrame


#: Keep integer columns with nulls as exact nullable integers instead of floats
NULLABLE_TYPES = {
    pa.int8(): pd.Int8Dtype(),
    pa.int16(): pd.Int16Dtype(),
    pa.int32(): pd.Int32Dtype(),
    pa.int64(): pd.Int64Dtype(),
    pa.bool_(): pd.BooleanDtype(),
}


def arrow_to_target_df(table: pa.Table) -> pd.DataFrame:
    """What a well behaved ingestion pipeline makes of a table.

    - Nullable integers keep exact values

    - Dates become midnight UTC datetimes
    """
    return table.to_pandas(types_mapper=NULLABLE_TYPES.get, date_as_object=False)


def arrow_to_target_frame(table: pa.Table) -> PandasTargetFrame:
    return PandasTargetFrame(arrow_to_target_df(table))
