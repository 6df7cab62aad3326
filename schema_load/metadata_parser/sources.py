"""Metadata sources: a live SQLAlchemy connection or YAML schema files."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Iterator, Protocol, Sequence

from sqlalchemy import create_engine, inspect
from sqlalchemy import types as sqltypes
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..shared import (
    MetadataAccessError,
    SchemaCache,
    SchemaValidationError,
    SqlType,
    get_global_cache,
    parse_sql_type,
)

logger = logging.getLogger(__name__)

# Catalog schemas that never hold user tables
SYSTEM_SCHEMAS: Final[frozenset[str]] = frozenset({
    "information_schema",
    "pg_catalog",
    "pg_toast",
    "sys",
    "mysql",
    "performance_schema",
})

# Generic SQLAlchemy types, most specific first
_GENERIC_TYPES: Final[tuple[tuple[type, SqlType], ...]] = (
    (sqltypes.NullType, SqlType.NULL),
    (sqltypes.Boolean, SqlType.BOOLEAN),
    (sqltypes.SmallInteger, SqlType.SMALLINT),
    (sqltypes.BigInteger, SqlType.BIGINT),
    (sqltypes.Integer, SqlType.INTEGER),
    (sqltypes.Float, SqlType.FLOAT),
    (sqltypes.Numeric, SqlType.NUMERIC),
    (sqltypes.Text, SqlType.LONGVARCHAR),
    (sqltypes.String, SqlType.VARCHAR),
    (sqltypes.DateTime, SqlType.TIMESTAMP),
    (sqltypes.Date, SqlType.DATE),
    (sqltypes.Time, SqlType.TIME),
    (sqltypes.LargeBinary, SqlType.LONGVARBINARY),
)


@dataclass(frozen=True, slots=True)
class TableRef:
    """A table (or view) visible through a metadata source."""

    name: str
    schema: str | None = None
    is_view: bool = False

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """Raw column metadata in ordinal order."""

    name: str
    sql_type: int
    nullable: bool = True
    precision: int | None = None
    scale: int | None = None


class MetadataSource(Protocol):
    """Narrow capability interface over database metadata."""

    def list_tables(self) -> Sequence[TableRef]: ...

    def list_columns(self, table: TableRef) -> Sequence[ColumnInfo]: ...

    def list_primary_key_columns(self, table: TableRef) -> Sequence[str]: ...


def sql_type_for(type_: sqltypes.TypeEngine) -> int:
    """Translate a reflected SQLAlchemy type into a JDBC type code.

    Dialect types are matched by name first (``TINYINT``, ``DOUBLE``,
    ``DECIMAL``...), then by their generic base class. Anything else is
    reported as OTHER and fails when mapped.
    """
    visit_name = str(getattr(type_, "__visit_name__", "") or "")
    try:
        return parse_sql_type(visit_name)
    except KeyError:
        pass

    for generic, code in _GENERIC_TYPES:
        if isinstance(type_, generic):
            return int(code)
    return int(SqlType.OTHER)


def _type_size(type_: sqltypes.TypeEngine) -> tuple[int | None, int | None]:
    if isinstance(type_, sqltypes.Numeric):
        return type_.precision, getattr(type_, "scale", None)
    length = getattr(type_, "length", None)
    return (length if isinstance(length, int) else None), None


class SqlAlchemyMetadataSource:
    """Metadata source backed by ``sqlalchemy.inspect`` on a live connection."""

    def __init__(
        self,
        connection: Connection,
        schemas: Sequence[str] | None = None,
        include_views: bool = False,
    ) -> None:
        self._inspector = inspect(connection)
        self._schemas = schemas
        self._include_views = include_views

    @classmethod
    @contextmanager
    def connect(
        cls,
        target: str | Engine,
        *,
        schemas: Sequence[str] | None = None,
        include_views: bool = False,
    ) -> Iterator[SqlAlchemyMetadataSource]:
        """Open a connection for the duration of the block.

        The connection is closed on every exit path, and an engine created
        from a URL is disposed.

        Raises:
            MetadataAccessError: If the engine or connection cannot be created.
        """
        owns_engine = isinstance(target, str)
        try:
            engine = create_engine(target) if owns_engine else target
        except SQLAlchemyError as e:
            raise MetadataAccessError(f"Failed to connect: {e}") from e

        try:
            try:
                connection = engine.connect()
            except SQLAlchemyError as e:
                raise MetadataAccessError(f"Failed to connect: {e}") from e
            try:
                yield cls(connection, schemas=schemas, include_views=include_views)
            finally:
                connection.close()
        finally:
            if owns_engine:
                engine.dispose()

    def _iter_schemas(self) -> Iterator[str | None]:
        if self._schemas is None:
            yield None
            return
        for schema in self._schemas:
            if schema.lower() in SYSTEM_SCHEMAS:
                logger.debug("Skipping system schema %s", schema)
                continue
            yield schema

    def list_tables(self) -> list[TableRef]:
        tables: list[TableRef] = []
        for schema in self._iter_schemas():
            for name in self._inspector.get_table_names(schema=schema):
                tables.append(TableRef(name=name, schema=schema))
            if self._include_views:
                for name in self._inspector.get_view_names(schema=schema):
                    tables.append(TableRef(name=name, schema=schema, is_view=True))
        return tables

    def list_columns(self, table: TableRef) -> list[ColumnInfo]:
        columns: list[ColumnInfo] = []
        for col in self._inspector.get_columns(table.name, schema=table.schema):
            type_ = col["type"]
            precision, scale = _type_size(type_)
            code = sql_type_for(type_)
            if code == SqlType.OTHER:
                logger.warning(
                    "Column %s.%s has unrecognized type %s",
                    table.qualified_name,
                    col["name"],
                    type_,
                )
            columns.append(
                ColumnInfo(
                    name=col["name"],
                    sql_type=code,
                    nullable=bool(col.get("nullable", True)),
                    precision=precision,
                    scale=scale,
                )
            )
        return columns

    def list_primary_key_columns(self, table: TableRef) -> list[str]:
        if table.is_view:
            return []
        pk_constraint = self._inspector.get_pk_constraint(table.name, schema=table.schema)
        return list(pk_constraint.get("constrained_columns") or [])


def _determine_primary_keys(table: dict[str, Any]) -> list[str]:
    """Determine primary key columns from a table definition."""
    keys: list[str] = []
    raw_pk = table.get("primary_key")

    if isinstance(raw_pk, str):
        keys.append(raw_pk)
    elif isinstance(raw_pk, list):
        keys.extend(str(item) for item in raw_pk)

    # Fallback to column-level primary_key flags
    if not keys:
        keys = [str(col["name"]) for col in table.get("columns", []) if col.get("primary_key")]

    return keys


def _column_info(column: Any, table_name: str, schema_path: str) -> ColumnInfo:
    if not isinstance(column, dict) or "name" not in column:
        raise SchemaValidationError(
            f"column in table '{table_name}' must be a mapping with a 'name'",
            schema_path,
        )
    name = str(column["name"])
    raw_type = column.get("type")
    if raw_type is None:
        raise SchemaValidationError("column is missing required 'type'", schema_path, field=name)

    try:
        code = parse_sql_type(raw_type)
    except KeyError:
        logger.warning("Column %s.%s has unrecognized type %s", table_name, name, raw_type)
        code = int(SqlType.OTHER)

    return ColumnInfo(
        name=name,
        sql_type=code,
        nullable=bool(column.get("nullable", True)),
        precision=column.get("precision"),
        scale=column.get("scale"),
    )


class YamlMetadataSource:
    """Metadata source backed by YAML schema files.

    Each file holds a ``tables`` list; tables are reported in file order,
    then in list order.
    """

    def __init__(self, schema_paths: Sequence[Path], cache: SchemaCache | None = None) -> None:
        self._schema_paths = list(schema_paths)
        self._cache = cache if cache is not None else get_global_cache()
        self._tables: dict[TableRef, tuple[list[ColumnInfo], list[str]]] | None = None

    def _load(self) -> dict[TableRef, tuple[list[ColumnInfo], list[str]]]:
        if self._tables is not None:
            return self._tables

        tables: dict[TableRef, tuple[list[ColumnInfo], list[str]]] = {}
        for schema_path in self._schema_paths:
            path = str(schema_path)
            data = self._cache.get(schema_path)
            raw_tables = data.get("tables")
            if not isinstance(raw_tables, list):
                raise SchemaValidationError("schema must provide a 'tables' list", path)

            for table in raw_tables:
                if not isinstance(table, dict) or "name" not in table:
                    raise SchemaValidationError("table must be a mapping with a 'name'", path)
                table_name = str(table["name"])
                raw_columns = table.get("columns", [])
                if not isinstance(raw_columns, list):
                    raise SchemaValidationError(
                        f"table '{table_name}' must provide a 'columns' list", path
                    )
                ref = TableRef(
                    name=table_name,
                    schema=table.get("schema"),
                    is_view=bool(table.get("view", False)),
                )
                if ref in tables:
                    raise SchemaValidationError(f"duplicate table '{ref.qualified_name}'", path)
                columns = [_column_info(col, table_name, path) for col in raw_columns]
                tables[ref] = (columns, _determine_primary_keys(table))

        self._tables = tables
        return tables

    def list_tables(self) -> list[TableRef]:
        return list(self._load())

    def list_columns(self, table: TableRef) -> list[ColumnInfo]:
        return list(self._load()[table][0])

    def list_primary_key_columns(self, table: TableRef) -> list[str]:
        return list(self._load()[table][1])
