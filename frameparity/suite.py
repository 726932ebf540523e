"""Compare a folder of columnar files against an ingestion pipeline."""
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import pandas as pd
from tqdm_loggable.auto import tqdm

from frameparity.comparator import FrameComparator
from frameparity.config import ComparisonConfig
from frameparity.exceptions import ComparisonError, TargetLoadError, UnsupportedFileFormat
from frameparity.reference import OrcReferenceReader, ParquetReferenceReader, ReferenceReader
from frameparity.result import ComparisonReport
from frameparity.target import PandasTargetFrame, TargetFrame
from frameparity.types import FileIdentifier


logger = logging.getLogger(__name__)


#: Ingestion pipeline under test: read a file to a frame
TargetLoader = Callable[[Path], pd.DataFrame | TargetFrame]

#: Open a trusted reader for a file
ReaderFactory = Callable[[Path, ComparisonConfig], ReferenceReader]


def open_reference_reader(path: Path, config: ComparisonConfig) -> ReferenceReader:
    """Pick the reference reader by the file suffix.

    :raise UnsupportedFileFormat:
        Not an ORC or Parquet file
    """
    suffix = path.suffix.lower()
    if suffix == ".orc":
        return OrcReferenceReader(path, batch_size=config.batch_size)
    elif suffix in (".parquet", ".pq"):
        return ParquetReferenceReader(path, batch_size=config.batch_size)
    raise UnsupportedFileFormat(f"No reference reader for {path}", file_id=path.name)


def load_target(path: Path, file_id: FileIdentifier, target_loader: TargetLoader) -> TargetFrame:
    """Run the ingestion pipeline under test for one file.

    :raise TargetLoadError:
        The pipeline raised
    """
    try:
        target = target_loader(path)
    except Exception as e:
        raise TargetLoadError(f"Target loader failed for {path}: {e}", file_id=file_id) from e

    if isinstance(target, pd.DataFrame):
        target = PandasTargetFrame(target)
    return target


def discover_files(folder: Path, pattern: str = "*.orc", recursive: bool = True) -> List[Path]:
    """Find test files, in a stable order."""
    assert folder.is_dir(), f"Not a folder: {folder}"
    paths = folder.rglob(pattern) if recursive else folder.glob(pattern)
    return sorted(p for p in paths if p.is_file())


def compare_files(
    paths: Iterable[Path],
    target_loader: TargetLoader,
    reader_factory: ReaderFactory = open_reference_reader,
    config: Optional[ComparisonConfig] = None,
    base_path: Optional[Path] = None,
    progress_bar_description: Optional[str] = None,
) -> ComparisonReport:
    """Compare each file with what the ingestion pipeline makes of it.

    An error fails only its own file, the run continues with the next file.
    Errors that are not :py:class:`ComparisonError` are logged with their traceback.

    :param paths:
        Files to compare

    :param target_loader:
        The ingestion pipeline under test

    :param reader_factory:
        Opens the trusted reader for a file

    :param base_path:
        If given, files are identified by their path relative to this folder.
        Otherwise the file name is used.

    :return:
        Per-file results and the set of failed files
    """
    config = config or ComparisonConfig()
    comparator = FrameComparator(config)
    report = ComparisonReport()
    paths = list(paths)

    if not progress_bar_description:
        progress_bar_description = "Comparing files"

    with tqdm(desc=progress_bar_description, total=len(paths)) as progress_bar:
        for path in paths:
            file_id = path.relative_to(base_path).as_posix() if base_path else path.name
            progress_bar.set_postfix({"File": file_id})

            try:
                target = load_target(path, file_id, target_loader)
                with reader_factory(path, config) as reader:
                    report.add_result(comparator.compare(file_id, reader, target))
            except ComparisonError as e:
                logger.error("%s: comparison aborted: %s", file_id, e)
                report.add_error(file_id, e)
            except Exception as e:
                logger.exception("%s: comparison aborted by an unexpected error", file_id)
                report.add_error(file_id, e)

            progress_bar.update(1)

    logger.info(
        "Compared %d files, %d failed, %d chunks had mismatches",
        report.get_file_count(),
        len(report.failed_files),
        report.get_failed_chunk_count(),
    )
    return report
