"""Reconcile the reference schema with the target frame columns.

Only the columns of a type the target supports take part in the comparison.
The result tells the reference reader which columns to materialise
and in which order the comparison rules are applied.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, List

from frameparity.column_type import ColumnType, TypeSupportFilter, normalise_type_name, resolve_column_type
from frameparity.exceptions import SchemaMismatch
from frameparity.types import DeclaredTypeName, InclusionMask, FileIdentifier


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SchemaField:
    """One reference reader field."""

    #: Column name
    name: str

    #: Type name as the reference reader reports it
    declared_type: DeclaredTypeName

    #: Normalised type name, see :py:func:`frameparity.column_type.normalise_type_name`
    type_name: str

    #: Comparison type.
    #:
    #: `None` if the target materialises the column, but we have no rule to check it.
    column_type: Optional[ColumnType]

    #: Is this column present in the target frame
    supported: bool


@dataclass(frozen=True, slots=True)
class ReconciledSchema:
    """Columns that are compared, in the order the target frame has them."""

    #: All reference fields, including unsupported ones
    fields: Tuple[SchemaField, ...]

    #: Supported column names in the reference order
    names: Tuple[str, ...]

    #: Comparison types of :py:attr:`names`
    types: Tuple[Optional[ColumnType], ...]

    #: Inclusion mask for the reference reader.
    #:
    #: Index 0 is a sentinel and never set, fields occupy 1..N.
    include: InclusionMask

    def get_column_count(self) -> int:
        return len(self.names)

    def get_unsupported_fields(self) -> List[SchemaField]:
        return [f for f in self.fields if not f.supported]

    def check_target(self, target_column_names: Iterable[str], file_id: FileIdentifier | None = None):
        """Make sure the target frame has exactly the reconciled columns.

        :raise SchemaMismatch:
            If column count, names or their order differ
        """
        target_names = tuple(target_column_names)

        if len(target_names) != len(self.names):
            raise SchemaMismatch(
                f"Number of columns need to be the same: reference has {len(self.names)} supported columns {list(self.names)}, "
                f"target has {len(target_names)} columns {list(target_names)}",
                file_id=file_id,
            )

        if target_names != self.names:
            raise SchemaMismatch(
                f"Column names need to be the same: reference {list(self.names)}, target {list(target_names)}",
                file_id=file_id,
            )


def create_schema_field(name: str, declared_type: DeclaredTypeName, support: TypeSupportFilter) -> SchemaField:
    type_name = normalise_type_name(declared_type)
    supported = support.is_supported(declared_type)
    return SchemaField(
        name=name,
        declared_type=declared_type,
        type_name=type_name,
        column_type=resolve_column_type(type_name) if supported else None,
        supported=supported,
    )


def reconcile_schema(
    reference_fields: Iterable[Tuple[str, DeclaredTypeName]],
    support: TypeSupportFilter | None = None,
) -> ReconciledSchema:
    """Build the list of comparable columns.

    Example:

    .. code-block:: python

        support = TypeSupportFilter(["int", "decimal"])
        schema = reconcile_schema([("a", "int"), ("b", "binary"), ("c", "decimal(10,2)")], support)
        assert schema.names == ("a", "c")
        assert schema.include == (False, True, False, True)

    :param reference_fields:
        Ordered (name, type name) pairs as the reference reader reports them

    :param support:
        The allow-list of the target. Default allow-list is used if not given.

    :return:
        Names, comparison types and the inclusion mask
    """

    if support is None:
        support = TypeSupportFilter()

    fields = tuple(create_schema_field(name, declared_type, support) for name, declared_type in reference_fields)

    include = [False] * (len(fields) + 1)
    names = []
    types = []
    for idx, field in enumerate(fields):
        if field.supported:
            include[idx + 1] = True
            names.append(field.name)
            types.append(field.column_type)
        else:
            logger.debug("Column %s of type %s is not materialised by the target, skipping", field.name, field.declared_type)

    return ReconciledSchema(
        fields=fields,
        names=tuple(names),
        types=tuple(types),
        include=tuple(include),
    )
