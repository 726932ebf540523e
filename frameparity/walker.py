"""Walk the chunks of a reference file and compare them batch by batch.

The walk is strictly sequential. A single row cursor maps batch-local rows
to target frame rows across all chunks, so chunks cannot be reordered
or compared in parallel.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from frameparity.config import ComparisonConfig
from frameparity.exceptions import RowCountMismatch
from frameparity.reference import Chunk, ReferenceReader
from frameparity.result import ChunkFailure, ValueMismatch
from frameparity.rules import ColumnContext, compare_column
from frameparity.schema import ReconciledSchema
from frameparity.target import TargetFrame
from frameparity.types import FileIdentifier, RowIndex


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChunkResult:
    """Outcome of comparing one chunk."""

    chunk: Chunk

    #: Rows the batch stream delivered
    rows_read: int

    #: The mismatch that ended the chunk, if any
    mismatch: Optional[ValueMismatch] = None

    @property
    def failed(self) -> bool:
        return self.mismatch is not None


def compare_chunk(
    reader: ReferenceReader,
    chunk: Chunk,
    schema: ReconciledSchema,
    target: TargetFrame,
    contexts: List[ColumnContext],
    cursor: RowIndex,
    file_id: FileIdentifier,
) -> ChunkResult:
    """Compare all batches of a chunk.

    The first mismatch ends the chunk, remaining batches and columns are not compared.
    An error while reading or comparing the chunk is recorded as its mismatch,
    so that the walk can go on with the next chunk.
    The batch stream is closed in any case.

    :param contexts:
        One per reconciled column

    :param cursor:
        Target row of the first chunk row
    """
    rows_read = 0
    ctx = None

    try:
        target_columns = [target.get_column(name) for name in schema.names]
        with reader.open_batches(chunk, schema) as stream:
            while rows_read < chunk.row_count:
                batch = stream.next_batch()
                if batch is None:
                    break

                for vector, target_column, ctx in zip(batch.vectors, target_columns, contexts):
                    mismatch = compare_column(vector, batch.count, target_column, cursor + rows_read, ctx)
                    if mismatch is not None:
                        return ChunkResult(chunk=chunk, rows_read=rows_read + batch.count, mismatch=mismatch)
                ctx = None

                rows_read += batch.count
    except Exception as e:
        logger.exception("%s: chunk #%d could not be compared", file_id, chunk.index)
        mismatch = ValueMismatch(
            file_id=file_id,
            column=ctx.column if ctx else None,
            column_type=ctx.column_type if ctx else None,
            row=cursor + rows_read,
            expected=None,
            actual=None,
            reason=f"Chunk comparison failed: {e.__class__.__name__}: {e}",
        )
        return ChunkResult(chunk=chunk, rows_read=rows_read, mismatch=mismatch)

    return ChunkResult(chunk=chunk, rows_read=rows_read)


class StripeWalker:
    """Drive the comparison across all chunks of a reference file."""

    def __init__(self, file_id: FileIdentifier, reader: ReferenceReader, target: TargetFrame, schema: ReconciledSchema, config: ComparisonConfig):
        self.file_id = file_id
        self.reader = reader
        self.target = target
        self.schema = schema
        self.config = config
        self.contexts = [
            ColumnContext(file_id=file_id, column=name, column_type=column_type, config=config)
            for name, column_type in zip(schema.names, schema.types)
        ]

        #: Target row of the first row of the next chunk
        self.cursor: RowIndex = 0

    def walk(self, chunks: List[Chunk]) -> List[ChunkFailure]:
        """Compare every chunk, continuing past failed ones.

        :raise RowCountMismatch:
            If the file has no chunks but the target has rows,
            or a chunk streams a different number of rows than it declares

        :return:
            One failure per chunk that had a mismatch
        """
        failures = []

        if len(chunks) == 0:
            target_rows = self.target.get_row_count()
            if target_rows != 0:
                raise RowCountMismatch(
                    f"Reference file is empty. Target row number should be zero, got {target_rows}",
                    file_id=self.file_id,
                )
            return failures

        for chunk in chunks:
            result = compare_chunk(self.reader, chunk, self.schema, self.target, self.contexts, self.cursor, self.file_id)

            if result.failed:
                logger.warning("%s: chunk #%d failed: %s", self.file_id, chunk.index, result.mismatch)
                failures.append(ChunkFailure(chunk=chunk, mismatch=result.mismatch))
            elif result.rows_read != chunk.row_count:
                raise RowCountMismatch(
                    f"Chunk #{chunk.index} declares {chunk.row_count} rows, but {result.rows_read} rows were read",
                    file_id=self.file_id,
                )

            self.cursor += chunk.row_count

        return failures
