"""Column types the target ingestion pipeline materialises.

The reference reader reports free-form type names like ``decimal(10,2)``
or ``array<int>``. They are normalised once, when the schema is reconciled,
to a closed :py:class:`ColumnType` enumeration. The comparison rules dispatch on
its :py:class:`TypeFamily`.
"""
import enum
import re
from typing import Iterable, Optional

from frameparity.types import DeclaredTypeName


class TypeFamily(enum.Enum):
    """Types sharing a comparison rule."""

    integer = "integer"
    floating = "floating"
    string = "string"
    binary = "binary"
    decimal = "decimal"
    timestamp = "timestamp"
    date = "date"


class ColumnType(enum.Enum):
    """Semantic column types with a defined comparison rule.

    Values are the normalised type names of the reference reader.
    """

    boolean = "boolean"
    tinyint = "tinyint"
    smallint = "smallint"
    int = "int"
    bigint = "bigint"
    float = "float"
    double = "double"
    string = "string"
    varchar = "varchar"
    char = "char"
    binary = "binary"
    timestamp = "timestamp"
    date = "date"
    decimal = "decimal"

    def get_family(self) -> TypeFamily:
        return _FAMILIES[self]

    def is_integer(self) -> bool:
        return self.get_family() == TypeFamily.integer


_FAMILIES = {
    ColumnType.boolean: TypeFamily.integer,
    ColumnType.tinyint: TypeFamily.integer,
    ColumnType.smallint: TypeFamily.integer,
    ColumnType.int: TypeFamily.integer,
    ColumnType.bigint: TypeFamily.integer,
    ColumnType.float: TypeFamily.floating,
    ColumnType.double: TypeFamily.floating,
    ColumnType.string: TypeFamily.string,
    ColumnType.varchar: TypeFamily.string,
    ColumnType.char: TypeFamily.string,
    ColumnType.binary: TypeFamily.binary,
    ColumnType.timestamp: TypeFamily.timestamp,
    ColumnType.date: TypeFamily.date,
    ColumnType.decimal: TypeFamily.decimal,
}


#: Type names the target ingestion pipeline materialises as columns.
#:
#: Columns of any other type are excluded on both sides.
#: Binary columns are materialised but not verified.
#:
DEFAULT_SUPPORTED_TYPES = (
    "boolean",
    "tinyint",
    "smallint",
    "int",
    "bigint",
    "float",
    "double",
    "string",
    "varchar",
    "char",
    "binary",
    "timestamp",
    "date",
    "decimal",
)

# char(10), varchar(255)
_SIZED_STRING = re.compile(r"^(var)?char\s*\(\s*\d+\s*\)$")


def normalise_type_name(declared_type: DeclaredTypeName) -> str:
    """Map a declared type name to the name used in the allow-list.

    - Lowercased

    - Any decimal flavour collapses to ``decimal``

    - Sized ``char(n)`` and ``varchar(n)`` lose their size
    """
    name = declared_type.strip().lower()
    if name.startswith("decimal"):
        return "decimal"
    if _SIZED_STRING.match(name):
        return name.split("(")[0].strip()
    return name


def resolve_column_type(type_name: str) -> Optional[ColumnType]:
    """Get the comparison type for a normalised name, or ``None`` if there is no rule for it."""
    try:
        return ColumnType(type_name)
    except ValueError:
        return None


class TypeSupportFilter:
    """Decide which reference columns the target is expected to have.

    The allow-list is the single source of truth
    and must mirror the capabilities of the ingestion pipeline under test.
    """

    def __init__(self, supported_types: Iterable[str] = DEFAULT_SUPPORTED_TYPES):
        self.supported_types = frozenset(normalise_type_name(t) for t in supported_types)
        assert self.supported_types, "Empty allow-list, nothing could be compared"

    def __repr__(self) -> str:
        return f"<TypeSupportFilter {sorted(self.supported_types)}>"

    def is_supported(self, declared_type: DeclaredTypeName) -> bool:
        return normalise_type_name(declared_type) in self.supported_types
