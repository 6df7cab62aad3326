"""Metadata Parser - Builds schema descriptors from database metadata."""

from .main import (
    parse,
    parse_database,
    load_descriptors,
    dump_descriptors,
    main,
)
from .sources import (
    ColumnInfo,
    MetadataSource,
    SqlAlchemyMetadataSource,
    TableRef,
    YamlMetadataSource,
    sql_type_for,
)

__all__ = [
    "parse",
    "parse_database",
    "load_descriptors",
    "dump_descriptors",
    "main",
    "ColumnInfo",
    "MetadataSource",
    "SqlAlchemyMetadataSource",
    "TableRef",
    "YamlMetadataSource",
    "sql_type_for",
]
