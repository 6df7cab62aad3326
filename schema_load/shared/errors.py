"""Custom exceptions for schema loading and POJO generation."""

from __future__ import annotations


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when a schema or table descriptor fails validation."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class TypeMappingError(SchemaError):
    """Raised when a type mapping is missing or invalid."""

    def __init__(
        self,
        type_name: str,
        context: str,
        schema_path: str | None = None,
    ) -> None:
        self.type_name = type_name
        super().__init__(f"No type mapping for '{type_name}' ({context})", schema_path)


class UnsupportedSqlTypeError(TypeMappingError):
    """Raised when a column's SQL type has no Java counterpart."""

    def __init__(
        self,
        sql_type: int,
        table: str | None = None,
        column: str | None = None,
    ) -> None:
        self.sql_type = sql_type
        self.table = table
        self.column = column
        # Late import keeps errors free of the type table.
        from .types import sql_type_name

        if table and column:
            context = f"column '{table}.{column}'"
        elif column:
            context = f"column '{column}'"
        else:
            context = "no column"
        super().__init__(f"{sql_type_name(sql_type)} [code {sql_type}]", context)


class MetadataAccessError(SchemaError):
    """Raised when the database fails during schema enumeration."""

    def __init__(self, message: str, table: str | None = None) -> None:
        self.table = table
        if table:
            message = f"Table '{table}': {message}"
        super().__init__(message)


class FileWriteError(SchemaError):
    """Raised when a generated file cannot be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to write '{path}': {reason}")


class OverwriteAborted(SchemaError):
    """Raised when the user cancels generation at an overwrite prompt.

    This is a clean early stop, not a failure: files written before the
    prompt stay on disk and nothing after it is touched.
    """

    def __init__(self, path: str | None = None) -> None:
        self.path = path
        message = "Generation cancelled by user"
        if path:
            message = f"{message} at '{path}'"
        super().__init__(message)
