"""In-memory schema descriptor model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .errors import SchemaValidationError, UnsupportedSqlTypeError
from .naming import class_name_for_table, sanitize_field_name
from .types import JavaType, boxed, map_type


@dataclass(frozen=True, slots=True)
class NamingOptions:
    """Rules for deriving class names from table names."""

    key_suffix: str = "Key"
    value_suffix: str = ""
    single_key_as_scalar: bool = False


@dataclass(frozen=True, slots=True)
class Column:
    """Represents a database column as reported by the metadata source."""

    name: str
    sql_type: int
    nullable: bool = True
    primary_key: bool = False
    precision: int | None = None
    scale: int | None = None
    field_name: str = ""

    def __post_init__(self) -> None:
        if not self.field_name:
            object.__setattr__(self, "field_name", sanitize_field_name(self.name))

    def java_type(self, table: str | None = None) -> JavaType:
        """Resolve the Java type of this column."""
        return map_type(
            self.sql_type,
            self.nullable,
            self.precision,
            self.scale,
            table=table,
            column=self.name,
        )


@dataclass(frozen=True, slots=True)
class SchemaDescriptor:
    """A parsed table: its columns split into key and value parts."""

    table: str
    columns: tuple[Column, ...]
    key_columns: tuple[Column, ...]
    value_columns: tuple[Column, ...]
    key_class_name: str
    value_class_name: str
    schema: str | None = None
    is_view: bool = False
    key_is_scalar: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}" if self.schema else self.table

    @property
    def has_key_class(self) -> bool:
        """Whether the key is modeled as a generated class."""
        return bool(self.key_class_name) and not self.key_is_scalar


def _check_unique(table: str, columns: Sequence[Column]) -> None:
    seen: set[str] = set()
    fields: set[str] = set()
    for col in columns:
        if col.name in seen:
            raise SchemaValidationError(f"duplicate column in table '{table}'", field=col.name)
        if col.field_name in fields:
            raise SchemaValidationError(
                f"field name '{col.field_name}' clashes with another column in table '{table}'",
                field=col.name,
            )
        seen.add(col.name)
        fields.add(col.field_name)


def build_descriptor(
    table: str,
    columns: Sequence[Column],
    primary_key: Sequence[str] = (),
    *,
    schema: str | None = None,
    is_view: bool = False,
    naming: NamingOptions = NamingOptions(),
) -> SchemaDescriptor:
    """Build a descriptor from columns and primary-key column names.

    Key columns follow the primary-key ordinal order; value columns keep the
    table order. Key columns are always NOT NULL.

    Raises:
        SchemaValidationError: If the table has no columns, a column name is
            duplicated, or a primary-key column is not in the column list.
    """
    if not columns:
        raise SchemaValidationError(f"table '{table}' has no columns")

    _check_unique(table, columns)

    pk_names = list(dict.fromkeys(primary_key))

    by_name = {col.name: col for col in columns}
    missing = [name for name in pk_names if name not in by_name]
    if missing:
        raise SchemaValidationError(
            f"primary key column not found in table '{table}'",
            field=missing[0],
        )

    pk_set = set(pk_names)
    normalized = tuple(
        Column(
            name=col.name,
            sql_type=col.sql_type,
            nullable=col.nullable and col.name not in pk_set,
            primary_key=col.name in pk_set,
            precision=col.precision,
            scale=col.scale,
            field_name=col.field_name,
        )
        for col in columns
    )
    index = {col.name: col for col in normalized}
    key_columns = tuple(index[name] for name in pk_names)
    value_columns = tuple(col for col in normalized if col.name not in pk_set)

    key_is_scalar = naming.single_key_as_scalar and len(key_columns) == 1
    if key_is_scalar:
        try:
            key_class_name = boxed(key_columns[0].java_type(table)).name
        except UnsupportedSqlTypeError:
            # Left unresolved; generating this table reports the column
            key_class_name = ""
    elif key_columns:
        key_class_name = class_name_for_table(table, naming.key_suffix)
    else:
        key_class_name = ""

    value_class_name = class_name_for_table(table, naming.value_suffix) if value_columns else ""
    if value_class_name and value_class_name == key_class_name:
        raise SchemaValidationError(
            f"key and value class names are both '{key_class_name}' for table '{table}'",
        )

    return SchemaDescriptor(
        table=table,
        columns=normalized,
        key_columns=key_columns,
        value_columns=value_columns,
        key_class_name=key_class_name,
        value_class_name=value_class_name,
        schema=schema,
        is_view=is_view,
        key_is_scalar=key_is_scalar,
    )
