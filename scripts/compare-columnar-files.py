"""Compare a folder of ORC or Parquet files against the pandas readers.

- Every file is read by the pyarrow reference reader

- The same file is read with `pandas.read_orc` or `pandas.read_parquet`,
  standing in for the ingestion pipeline under test

- Values are compared column by column

Environment variables:

- `DATA_PATH`: folder of test files, defaults to the current directory

- `FILE_PATTERN`: glob of files to compare, defaults to `*.orc`

- `SETTINGS_FILE`: optional JSON file with a :py:class:`frameparity.config.ComparisonConfig`
"""
import logging
import os
import sys
from pathlib import Path

import pandas as pd

from frameparity.config import ComparisonConfig, load_configuration
from frameparity.suite import compare_files, discover_files

logging.basicConfig(
    level=logging.INFO,
    stream=sys.stdout,
)

data_path = Path(os.environ.get("DATA_PATH") or os.getcwd())
pattern = os.environ.get("FILE_PATTERN") or "*.orc"
settings_file = os.environ.get("SETTINGS_FILE")

config = None
if settings_file:
    config = load_configuration(Path(settings_file))
config = config or ComparisonConfig()


def read_with_pandas(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".orc":
        return pd.read_orc(path)
    return pd.read_parquet(path)


paths = discover_files(data_path, pattern)
print(f"Comparing {len(paths)} files in {data_path}")

report = compare_files(paths, read_with_pandas, config=config, base_path=data_path)

for file_id, error in sorted(report.errors.items()):
    print(f"ABORTED {file_id}: {error}")

for file_id, result in sorted(report.results.items()):
    if not result.passed:
        print(f"FAILED {file_id}: {result.failed_count} of {result.chunk_count} chunks")
        for failure in result.failures:
            print(f"    {failure}")

print(f"Files failed: {len(report.failed_files)} / {report.get_file_count()}")
sys.exit(0 if report.passed else 1)
