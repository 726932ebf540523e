"""Reference readers for columnar files.

The reference reader is the trusted side of the comparison.
It exposes the file as ordered chunks (ORC stripes, Parquet row groups),
each streamed as fixed capacity row batches of column vectors.

Both shipped readers are backed by :term:`Pyarrow`.
"""
import abc
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import pyarrow as pa

from frameparity.exceptions import BrokenData
from frameparity.schema import ReconciledSchema
from frameparity.types import DeclaredTypeName
from frameparity.vector import RowBatch, batch_from_arrow


logger = logging.getLogger(__name__)


#: Maximum rows in a batch, same as the default ORC vectorised row batch
DEFAULT_BATCH_SIZE = 1024


@dataclass(frozen=True, slots=True)
class Chunk:
    """Independently readable unit of a columnar file.

    An ORC stripe or a Parquet row group.
    """

    #: Position of the chunk in the file
    index: int

    #: Rows stored in this chunk
    row_count: int

    #: Where the chunk starts in the file.
    #:
    #: `None` if the reader does not expose it.
    byte_offset: Optional[int] = None

    #: Stored size of the chunk in bytes.
    #:
    #: `None` if the reader does not expose it.
    byte_length: Optional[int] = None


class BatchStream(abc.ABC):
    """Row batches of one chunk.

    Use as a context manager to guarantee the stream is released.
    """

    @abc.abstractmethod
    def next_batch(self) -> Optional[RowBatch]:
        """Get the next batch, or `None` when the chunk is exhausted."""

    def close(self):
        pass

    def __enter__(self) -> "BatchStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self) -> Iterator[RowBatch]:
        while (batch := self.next_batch()) is not None:
            yield batch


class ReferenceReader(abc.ABC):
    """Trusted reader of a columnar file."""

    @abc.abstractmethod
    def get_fields(self) -> List[Tuple[str, DeclaredTypeName]]:
        """Ordered top level fields as (name, type name)."""

    @abc.abstractmethod
    def get_chunks(self) -> List[Chunk]:
        """Chunks in file order."""

    @abc.abstractmethod
    def get_row_count(self) -> int:
        """Total number of rows in the file."""

    @abc.abstractmethod
    def open_batches(self, chunk: Chunk, schema: ReconciledSchema) -> BatchStream:
        """Stream the rows of a chunk.

        :param schema:
            Only columns set in :py:attr:`ReconciledSchema.include` are materialised,
            in the order of :py:attr:`ReconciledSchema.names`.
        """

    def close(self):
        pass

    def __enter__(self) -> "ReferenceReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ArrowBatchStream(BatchStream):
    """Slice pyarrow record batches to row batches of a fixed maximum capacity."""

    def __init__(self, record_batches: Iterator[pa.RecordBatch], schema: ReconciledSchema, batch_size: int = DEFAULT_BATCH_SIZE):
        assert batch_size > 0
        self.record_batches = record_batches
        self.schema = schema
        self.batch_size = batch_size
        self.pending: Optional[pa.RecordBatch] = None
        self.closed = False

    def next_batch(self) -> Optional[RowBatch]:
        assert not self.closed, "Stream already closed"

        while self.pending is None or self.pending.num_rows == 0:
            self.pending = next(self.record_batches, None)
            if self.pending is None:
                return None

        window = self.pending.slice(0, self.batch_size)
        self.pending = self.pending.slice(window.num_rows)
        return batch_from_arrow(window, list(self.schema.types))

    def close(self):
        self.closed = True
        self.pending = None


def arrow_type_name(data_type: pa.DataType) -> DeclaredTypeName:
    """Describe a pyarrow type the way Hive names ORC types.

    Unsigned integers and other types ORC does not have keep their pyarrow names.
    """
    if pa.types.is_boolean(data_type):
        return "boolean"
    if pa.types.is_int8(data_type):
        return "tinyint"
    if pa.types.is_int16(data_type):
        return "smallint"
    if pa.types.is_int32(data_type):
        return "int"
    if pa.types.is_int64(data_type):
        return "bigint"
    if pa.types.is_float32(data_type):
        return "float"
    if pa.types.is_float64(data_type):
        return "double"
    if pa.types.is_string(data_type) or pa.types.is_large_string(data_type) or str(data_type) == "string_view":
        return "string"
    if pa.types.is_binary(data_type) or pa.types.is_large_binary(data_type) or str(data_type) == "binary_view":
        return "binary"
    if pa.types.is_timestamp(data_type):
        return "timestamp"
    if pa.types.is_date(data_type):
        return "date"
    if pa.types.is_decimal(data_type):
        return f"decimal({data_type.precision},{data_type.scale})"
    if pa.types.is_dictionary(data_type):
        return arrow_type_name(data_type.value_type)
    if pa.types.is_list(data_type) or pa.types.is_large_list(data_type):
        return f"array<{arrow_type_name(data_type.value_type)}>"
    if pa.types.is_map(data_type):
        return f"map<{arrow_type_name(data_type.key_type)},{arrow_type_name(data_type.item_type)}>"
    if pa.types.is_struct(data_type):
        members = ",".join(f"{data_type.field(i).name}:{arrow_type_name(data_type.field(i).type)}" for i in range(data_type.num_fields))
        return f"struct<{members}>"
    return str(data_type)


def projected_column_names(schema: pa.Schema, reconciled: ReconciledSchema) -> List[str]:
    """Map the inclusion mask back to file column names."""
    assert len(reconciled.include) == len(schema) + 1, f"Inclusion mask {reconciled.include} does not match {len(schema)} fields"
    names = [schema.field(idx - 1).name for idx, included in enumerate(reconciled.include) if idx > 0 and included]
    assert tuple(names) == reconciled.names, f"Inclusion mask selects {names}, expected {reconciled.names}"
    return names


class OrcReferenceReader(ReferenceReader):
    """Read ORC files with :py:class:`pyarrow.orc.ORCFile`.

    Each stripe is a chunk.
    pyarrow reads a stripe into memory as a whole,
    the stream then slices it to row batches.
    Stripe byte ranges are not exposed by pyarrow.
    """

    def __init__(self, path: Path, batch_size: int = DEFAULT_BATCH_SIZE):
        from pyarrow import orc

        assert isinstance(path, Path), f"Expected path: {path}"
        self.path = path
        self.batch_size = batch_size
        f = path.as_posix()
        logger.info("Reading ORC %s", f)
        try:
            self.orc_file = orc.ORCFile(f)
        except (pa.ArrowException, OSError) as e:
            raise BrokenData(f"Could not read ORC file: {f}", path=path) from e
        self._chunks: Optional[List[Chunk]] = None

    def get_fields(self) -> List[Tuple[str, DeclaredTypeName]]:
        return [(field.name, arrow_type_name(field.type)) for field in self.orc_file.schema]

    def get_chunks(self) -> List[Chunk]:
        if self._chunks is None:
            schema = self.orc_file.schema
            # Stripe row counts are only available by reading a stripe, keep it to a single column
            columns = [schema.field(0).name] if len(schema) > 0 else None
            self._chunks = [
                Chunk(index=idx, row_count=self.orc_file.read_stripe(idx, columns=columns).num_rows)
                for idx in range(self.orc_file.nstripes)
            ]
        return self._chunks

    def get_row_count(self) -> int:
        return self.orc_file.nrows

    def open_batches(self, chunk: Chunk, schema: ReconciledSchema) -> BatchStream:
        names = projected_column_names(self.orc_file.schema, schema)
        stripe = self.orc_file.read_stripe(chunk.index, columns=names)
        return ArrowBatchStream(iter([stripe]), schema, self.batch_size)


class ParquetReferenceReader(ReferenceReader):
    """Read Parquet files with :py:class:`pyarrow.parquet.ParquetFile`.

    Each row group is a chunk.
    """

    def __init__(self, path: Path, batch_size: int = DEFAULT_BATCH_SIZE):
        from pyarrow import parquet as pq

        assert isinstance(path, Path), f"Expected path: {path}"
        self.path = path
        self.batch_size = batch_size
        f = path.as_posix()
        logger.info("Reading Parquet %s", f)
        try:
            self.parquet_file = pq.ParquetFile(f)
        except (pa.ArrowException, OSError) as e:
            raise BrokenData(f"Could not read Parquet file: {f}", path=path) from e

    def get_fields(self) -> List[Tuple[str, DeclaredTypeName]]:
        return [(field.name, arrow_type_name(field.type)) for field in self.parquet_file.schema_arrow]

    def get_chunks(self) -> List[Chunk]:
        metadata = self.parquet_file.metadata
        chunks = []
        for idx in range(metadata.num_row_groups):
            row_group = metadata.row_group(idx)
            offsets = []
            byte_length = 0
            for col_idx in range(row_group.num_columns):
                column = row_group.column(col_idx)
                offsets.append(column.data_page_offset)
                if column.has_dictionary_page and column.dictionary_page_offset is not None:
                    offsets.append(column.dictionary_page_offset)
                byte_length += column.total_compressed_size
            chunks.append(Chunk(
                index=idx,
                row_count=row_group.num_rows,
                byte_offset=min(offsets) if offsets else None,
                byte_length=byte_length,
            ))
        return chunks

    def get_row_count(self) -> int:
        return self.parquet_file.metadata.num_rows

    def open_batches(self, chunk: Chunk, schema: ReconciledSchema) -> BatchStream:
        names = projected_column_names(self.parquet_file.schema_arrow, schema)
        record_batches = self.parquet_file.iter_batches(
            batch_size=self.batch_size,
            row_groups=[chunk.index],
            columns=names,
            use_threads=False,
        )
        return ArrowBatchStream(record_batches, schema, self.batch_size)

    def close(self):
        self.parquet_file.close()
