"""Comparing a folder of files."""
from pathlib import Path

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from frameparity.config import ComparisonConfig
from frameparity.exceptions import BrokenData, SchemaMismatch, TargetLoadError, UnsupportedFileFormat
from frameparity.suite import compare_files, discover_files, open_reference_reader


@pytest.fixture()
def data_folder(tmp_path) -> Path:
    good = pa.table({"id": pa.array([1, 2, 3], type=pa.int64()), "name": ["a", "b", "c"]})
    pq.write_table(good, tmp_path / "good.parquet")
    pq.write_table(good, tmp_path / "bad_values.parquet")
    pq.write_table(good, tmp_path / "bad_schema.parquet")
    (tmp_path / "nested").mkdir()
    pq.write_table(good, tmp_path / "nested" / "also_good.parquet")
    (tmp_path / "notes.txt").write_text("not data")
    return tmp_path


def buggy_pipeline(path: Path) -> pd.DataFrame:
    """Stand-in for an ingestion pipeline with bugs in some files."""
    df = pd.read_parquet(path)
    if path.name == "bad_values.parquet":
        df.loc[2, "name"] = "x"
    elif path.name == "bad_schema.parquet":
        df = df.rename(columns={"name": "label"})
    return df


def test_discover_files(data_folder):
    paths = discover_files(data_folder, "*.parquet")
    assert [p.relative_to(data_folder).as_posix() for p in paths] == [
        "bad_schema.parquet",
        "bad_values.parquet",
        "good.parquet",
        "nested/also_good.parquet",
    ]
    assert len(discover_files(data_folder, "*.parquet", recursive=False)) == 3


def test_compare_files(data_folder, logger):
    paths = discover_files(data_folder, "*.parquet")
    report = compare_files(paths, buggy_pipeline, base_path=data_folder)

    assert not report.passed
    assert report.get_file_count() == 4
    assert report.failed_files == {"bad_values.parquet", "bad_schema.parquet"}
    assert isinstance(report.errors["bad_schema.parquet"], SchemaMismatch)
    assert report.results["bad_values.parquet"].failed_count == 1
    assert report.results["nested/also_good.parquet"].passed
    assert report.get_failed_chunk_count() == 1


def test_merge_reports(data_folder):
    first = compare_files([data_folder / "good.parquet"], buggy_pipeline)
    second = compare_files([data_folder / "bad_values.parquet"], buggy_pipeline)
    first.merge(second)
    assert first.get_file_count() == 2
    assert first.failed_files == {"bad_values.parquet"}


def test_open_reference_reader_unknown_suffix(tmp_path):
    with pytest.raises(UnsupportedFileFormat):
        open_reference_reader(tmp_path / "data.csv", ComparisonConfig())


def test_broken_file_fails_only_that_file(data_folder):
    broken = data_folder / "broken.parquet"
    broken.write_bytes(b"PAR1 this is not a parquet file")

    def fixed_pipeline(path: Path) -> pd.DataFrame:
        return pd.DataFrame({"id": [1, 2, 3], "name": ["a", "b", "c"]})

    report = compare_files([broken, data_folder / "good.parquet"], fixed_pipeline)
    assert report.failed_files == {"broken.parquet"}
    assert isinstance(report.errors["broken.parquet"], BrokenData)
    assert report.results["good.parquet"].passed


def test_target_value_error_fails_only_its_chunk(data_folder):
    """A frame value the accessors cannot read is a chunk failure, later files are still compared."""

    def pipeline(path: Path) -> pd.DataFrame:
        df = pd.read_parquet(path)
        if path.name == "bad_values.parquet":
            df["id"] = df["id"].astype(object)
            df.loc[1, "id"] = "oops"
        return df

    paths = [data_folder / "bad_values.parquet", data_folder / "good.parquet"]
    report = compare_files(paths, pipeline)

    assert report.failed_files == {"bad_values.parquet"}
    assert report.results["bad_values.parquet"].failed_count == 1
    assert "ValueError" in report.results["bad_values.parquet"].failures[0].mismatch.reason
    assert report.results["good.parquet"].passed


def test_target_loader_error_fails_only_its_file(data_folder):

    def pipeline(path: Path) -> pd.DataFrame:
        if path.name == "bad_values.parquet":
            raise RuntimeError("Parser crashed")
        return pd.read_parquet(path)

    paths = [data_folder / "bad_values.parquet", data_folder / "good.parquet"]
    report = compare_files(paths, pipeline)

    assert report.failed_files == {"bad_values.parquet"}
    error = report.errors["bad_values.parquet"]
    assert isinstance(error, TargetLoadError)
    assert isinstance(error.__cause__, RuntimeError)
    assert report.results["good.parquet"].passed
