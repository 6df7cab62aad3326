"""
Metadata Parser - Builds schema descriptors from database metadata.

Tables are enumerated through a ``MetadataSource``; each one becomes a
``SchemaDescriptor`` with its columns split into key and value parts. A parse
is all-or-nothing: any failure discards the descriptors built so far.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy.engine import Engine

from ..shared import (
    Column,
    MetadataAccessError,
    NamingOptions,
    SchemaDescriptor,
    SchemaError,
    build_descriptor,
    collect_schema_paths,
    dump_schema,
    sql_type_name,
)
from .sources import (
    MetadataSource,
    SqlAlchemyMetadataSource,
    TableRef,
    YamlMetadataSource,
)

logger = logging.getLogger(__name__)


def _parse_table(
    source: MetadataSource,
    table: TableRef,
    naming: NamingOptions,
) -> SchemaDescriptor:
    try:
        infos = list(source.list_columns(table))
        primary_key = list(source.list_primary_key_columns(table))
    except SchemaError:
        raise
    except Exception as e:
        raise MetadataAccessError(str(e), table.qualified_name) from e

    columns = [
        Column(
            name=info.name,
            sql_type=info.sql_type,
            nullable=info.nullable,
            precision=info.precision,
            scale=info.scale,
        )
        for info in infos
    ]
    return build_descriptor(
        table.name,
        columns,
        primary_key,
        schema=table.schema,
        is_view=table.is_view,
        naming=naming,
    )


def parse(
    source: MetadataSource,
    *,
    naming: NamingOptions = NamingOptions(),
) -> list[SchemaDescriptor]:
    """Parse every table visible through a metadata source.

    Args:
        source: Metadata source to enumerate.
        naming: Class naming rules.

    Returns:
        Descriptors in table enumeration order.

    Raises:
        MetadataAccessError: If the source fails during enumeration.
        SchemaValidationError: If a table is invalid (e.g. has no columns).
    """
    try:
        tables = list(source.list_tables())
    except SchemaError:
        raise
    except Exception as e:
        raise MetadataAccessError(f"Failed to list tables: {e}") from e

    descriptors: list[SchemaDescriptor] = []
    for table in tables:
        descriptor = _parse_table(source, table, naming)
        logger.debug(
            "Parsed %s: %d key column(s), %d value column(s)",
            descriptor.qualified_name,
            len(descriptor.key_columns),
            len(descriptor.value_columns),
        )
        descriptors.append(descriptor)

    logger.info("Parsed %d table(s)", len(descriptors))
    return descriptors


def parse_database(
    target: str | Engine,
    *,
    schemas: Sequence[str] | None = None,
    include_views: bool = False,
    naming: NamingOptions = NamingOptions(),
) -> list[SchemaDescriptor]:
    """Connect to a database, parse its schema and release the connection."""
    with SqlAlchemyMetadataSource.connect(
        target, schemas=schemas, include_views=include_views
    ) as source:
        return parse(source, naming=naming)


def _dump_column(column: Column) -> dict[str, Any]:
    type_name = sql_type_name(column.sql_type)
    entry: dict[str, Any] = {
        "name": column.name,
        "type": type_name if type_name != "UNKNOWN" else column.sql_type,
        "nullable": column.nullable,
    }
    if column.precision is not None:
        entry["precision"] = column.precision
    if column.scale is not None:
        entry["scale"] = column.scale
    return entry


def dump_descriptors(descriptors: Sequence[SchemaDescriptor]) -> dict[str, Any]:
    """Serialize descriptors into the YAML schema layout.

    The result loads back through ``YamlMetadataSource`` into equal
    descriptors.
    """
    tables: list[dict[str, Any]] = []
    for descriptor in descriptors:
        entry: dict[str, Any] = {"name": descriptor.table}
        if descriptor.schema:
            entry["schema"] = descriptor.schema
        if descriptor.is_view:
            entry["view"] = True
        if descriptor.key_columns:
            entry["primary_key"] = [col.name for col in descriptor.key_columns]
        entry["columns"] = [_dump_column(col) for col in descriptor.columns]
        tables.append(entry)
    return {"tables": tables}


def load_descriptors(
    paths: Sequence[Path],
    *,
    url: str | None = None,
    schemas: Sequence[str] | None = None,
    include_views: bool = False,
    naming: NamingOptions = NamingOptions(),
) -> list[SchemaDescriptor]:
    """Parse descriptors from a database URL or from YAML schema files.

    Raises:
        SchemaError: If neither or both inputs are given, or parsing fails.
        FileNotFoundError: If a schema path doesn't exist.
    """
    if url and paths:
        raise SchemaError("Give either a database URL or schema files, not both")
    if url:
        return parse_database(url, schemas=schemas, include_views=include_views, naming=naming)

    schema_paths = collect_schema_paths(paths)
    if not schema_paths:
        raise SchemaError("No schema files found")
    return parse(YamlMetadataSource(schema_paths), naming=naming)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: dump a database schema as YAML."""
    parser = argparse.ArgumentParser(
        prog="schema-load inspect",
        description="Dump parsed database metadata in the YAML schema layout",
    )
    parser.add_argument(
        "paths",
        type=Path,
        nargs="*",
        help="Schema file(s) or directories containing schema YAML files",
    )
    parser.add_argument("--url", default=None, help="SQLAlchemy database URL to introspect")
    parser.add_argument(
        "--schema",
        dest="schemas",
        action="append",
        default=None,
        help="Database schema to introspect (repeatable, default schema if omitted)",
    )
    parser.add_argument("--include-views", action="store_true", help="Include views")
    parser.add_argument("-o", "--output", type=Path, default=None, help="Write YAML to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        descriptors = load_descriptors(
            args.paths,
            url=args.url,
            schemas=args.schemas,
            include_views=args.include_views,
        )
    except (SchemaError, FileNotFoundError) as e:
        raise SystemExit(f"Error: {e}") from e

    rendered = dump_schema(dump_descriptors(descriptors))
    if args.output is None:
        print(rendered, end="")
        return

    try:
        args.output.write_text(rendered, encoding="utf-8")
    except OSError as e:
        raise SystemExit(f"Error: Failed to write '{args.output}': {e}") from e
    print(f"Wrote {len(descriptors)} table(s) to {args.output}")


if __name__ == "__main__":
    main()
