"""Compare a reference file against the frame the ingestion pipeline produced from it.

Example:

.. code-block:: python

    from pathlib import Path

    import pandas as pd

    from frameparity.comparator import FrameComparator
    from frameparity.reference import OrcReferenceReader
    from frameparity.target import PandasTargetFrame

    path = Path("data/prostate.orc")
    with OrcReferenceReader(path) as reader:
        result = FrameComparator().compare("prostate.orc", reader, PandasTargetFrame(my_ingest(path)))

    assert result.passed, f"Failed chunks: {result.failures}"

"""
import logging
from typing import Optional

from frameparity.column_type import ColumnType, TypeSupportFilter
from frameparity.config import ComparisonConfig
from frameparity.exceptions import RowCountMismatch, ValueMismatchError
from frameparity.reference import ReferenceReader
from frameparity.result import ComparisonResult
from frameparity.schema import ReconciledSchema, reconcile_schema
from frameparity.target import TargetFrame
from frameparity.types import FileIdentifier
from frameparity.walker import StripeWalker


logger = logging.getLogger(__name__)


class FrameComparator:
    """Check that a target frame holds the same data as the reference reader sees.

    - Column names and their order are compared

    - Row counts are compared

    - Each value is compared with the rule of its type,
      see :py:mod:`frameparity.rules`

    Schema and row count disagreements abort the comparison.
    Value mismatches are collected per chunk and the walk continues.
    """

    def __init__(self, config: Optional[ComparisonConfig] = None):
        self.config = config or ComparisonConfig()
        self.support = TypeSupportFilter(self.config.supported_types)

    def reconcile(self, file_id: FileIdentifier, reader: ReferenceReader, target: TargetFrame) -> ReconciledSchema:
        """Reconcile the reference schema and check it against the target.

        :raise SchemaMismatch:
            Target columns differ from the supported reference columns
        """
        schema = reconcile_schema(reader.get_fields(), self.support)
        schema.check_target(target.get_column_names(), file_id=file_id)
        return schema

    def check_row_counts(self, file_id: FileIdentifier, reader: ReferenceReader, target: TargetFrame):
        """Make sure the reference, its chunks and the target agree on the row count.

        :raise RowCountMismatch:
            On any disagreement
        """
        reference_rows = reader.get_row_count()
        target_rows = target.get_row_count()
        if reference_rows != target_rows:
            raise RowCountMismatch(
                f"Number of rows need to be the same: reference {reference_rows:,}, target {target_rows:,}",
                file_id=file_id,
            )

        chunk_rows = sum(c.row_count for c in reader.get_chunks())
        if chunk_rows != reference_rows:
            raise RowCountMismatch(
                f"Reference chunks hold {chunk_rows:,} rows, but the reference reports {reference_rows:,} rows",
                file_id=file_id,
            )

    def compare(self, file_id: FileIdentifier, reader: ReferenceReader, target: TargetFrame) -> ComparisonResult:
        """Compare one file.

        :param file_id:
            How the file is identified in the results

        :param reader:
            Opened reference reader

        :param target:
            The ingested frame

        :raise SchemaMismatch:
            Columns differ

        :raise RowCountMismatch:
            Row counts differ

        :return:
            Failed chunks, if any
        """
        assert isinstance(reader, ReferenceReader), f"Got {reader.__class__}"
        assert isinstance(target, TargetFrame), f"Got {target.__class__}"

        schema = self.reconcile(file_id, reader, target)
        self.check_row_counts(file_id, reader, target)

        chunks = reader.get_chunks()

        result = ComparisonResult(
            file_id=file_id,
            row_count=target.get_row_count(),
            chunk_count=len(chunks),
        )

        for field in schema.fields:
            if not field.supported:
                continue
            if field.column_type is None or field.column_type == ColumnType.binary:
                logger.warning(
                    "%s: column %s of type %s is materialised by the target but cannot be verified",
                    file_id,
                    field.name,
                    field.declared_type,
                )
                result.skipped_columns.append(field.name)
            else:
                result.compared_columns.append(field.name)

        if schema.get_column_count() == 0:
            logger.warning("%s: no supported columns, only row counts were compared", file_id)
            return result

        walker = StripeWalker(file_id, reader, target, schema, self.config)
        result.failures = walker.walk(chunks)

        logger.info(
            "%s: compared %d columns over %d rows in %d chunks, %d chunks failed",
            file_id,
            len(result.compared_columns),
            result.row_count,
            result.chunk_count,
            result.failed_count,
        )
        return result


def assert_frame_equivalent(
    file_id: FileIdentifier,
    reader: ReferenceReader,
    target: TargetFrame,
    config: Optional[ComparisonConfig] = None,
) -> ComparisonResult:
    """Compare and raise on any failed chunk.

    Handy in test suites.

    :raise ValueMismatchError:
        Some chunks failed, all failures are listed in the message
    """
    result = FrameComparator(config).compare(file_id, reader, target)
    if not result.passed:
        details = "\n".join(f"  {f}" for f in result.failures)
        raise ValueMismatchError(
            f"{file_id}: {result.failed_count} of {result.chunk_count} chunks failed:\n{details}",
            file_id=file_id,
            failures=result.failures,
        )
    return result
