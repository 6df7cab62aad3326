"""Shared utilities for schema loading and code generation."""

from .schema_loader import (
    SchemaCache,
    load_schema,
    load_config,
    dump_schema,
    collect_schema_paths,
    get_global_cache,
)
from .naming import (
    to_pascal_case,
    to_camel_case,
    sanitize_field_name,
    class_name_for_table,
    is_valid_package,
    package_to_path,
    JAVA_KEYWORDS,
    RESERVED_CLASS_NAMES,
)
from .errors import (
    SchemaError,
    SchemaValidationError,
    TypeMappingError,
    UnsupportedSqlTypeError,
    MetadataAccessError,
    FileWriteError,
    OverwriteAborted,
)
from .types import (
    SqlType,
    JavaKind,
    JavaType,
    map_type,
    boxed,
    parse_sql_type,
    sql_type_name,
)
from .model import (
    Column,
    NamingOptions,
    SchemaDescriptor,
    build_descriptor,
)

__all__ = [
    # Schema loading
    "SchemaCache",
    "load_schema",
    "load_config",
    "dump_schema",
    "collect_schema_paths",
    "get_global_cache",
    # Naming utilities
    "to_pascal_case",
    "to_camel_case",
    "sanitize_field_name",
    "class_name_for_table",
    "is_valid_package",
    "package_to_path",
    "JAVA_KEYWORDS",
    "RESERVED_CLASS_NAMES",
    # Errors
    "SchemaError",
    "SchemaValidationError",
    "TypeMappingError",
    "UnsupportedSqlTypeError",
    "MetadataAccessError",
    "FileWriteError",
    "OverwriteAborted",
    # Type mapping
    "SqlType",
    "JavaKind",
    "JavaType",
    "map_type",
    "boxed",
    "parse_sql_type",
    "sql_type_name",
    # Descriptor model
    "Column",
    "NamingOptions",
    "SchemaDescriptor",
    "build_descriptor",
]
