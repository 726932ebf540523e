"""Comparison configuration."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dataclasses_json import dataclass_json

from frameparity.column_type import DEFAULT_SUPPORTED_TYPES
from frameparity.reference import DEFAULT_BATCH_SIZE


logger = logging.getLogger(__name__)


@dataclass_json
@dataclass
class ComparisonConfig:
    """Tolerances and type support for comparing a file against its ingested frame."""

    #: Absolute tolerance for float, double and decimal columns
    float_tolerance: float = 1e-9

    #: Absolute tolerance in milliseconds for timestamp and date columns.
    #:
    #: Absorbs rounding differences between the reference and the target.
    timestamp_tolerance_ms: int = 1000

    #: Type names the target materialises as columns
    supported_types: List[str] = field(default_factory=lambda: list(DEFAULT_SUPPORTED_TYPES))

    #: Calendar where dates are folded to midnight.
    #:
    #: See :py:func:`frameparity.timestamp.correct_timestamp`.
    reference_timezone: str = "UTC"

    #: Maximum rows in a reference row batch
    batch_size: int = DEFAULT_BATCH_SIZE

    #: Do not fail integer rows that are null in the target only.
    #:
    #: Legacy leniency, off by default.
    skip_null_target_integers: bool = False


def load_configuration(path: Path) -> Optional[ComparisonConfig]:
    """Read a JSON settings file.

    :return:
        `None` if the file does not exist or is empty
    """
    assert isinstance(path, Path), f"Got {path.__class__}"
    if path.exists():
        data = path.read_text()
        if data:
            logger.info("Loading comparison configuration from %s", path)
            return ComparisonConfig.from_json(data)
    return None


def save_configuration(config: ComparisonConfig, path: Path):
    assert isinstance(config, ComparisonConfig)
    os.makedirs(path.parent, exist_ok=True)
    with open(path, "wt") as out:
        out.write(config.to_json(indent=2))
