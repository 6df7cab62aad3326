"""SQL type codes and their mapping to Java types."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Final

from .errors import UnsupportedSqlTypeError


class SqlType(enum.IntEnum):
    """JDBC type codes, numerically identical to ``java.sql.Types``."""

    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    LONGVARCHAR = -1
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    BINARY = -2
    VARBINARY = -3
    LONGVARBINARY = -4
    NULL = 0
    OTHER = 1111
    JAVA_OBJECT = 2000
    DISTINCT = 2001
    STRUCT = 2002
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005
    REF = 2006
    DATALINK = 70
    BOOLEAN = 16
    ROWID = -8
    NCHAR = -15
    NVARCHAR = -9
    LONGNVARCHAR = -16
    NCLOB = 2011
    SQLXML = 2009


class JavaKind(enum.Enum):
    """How a Java type takes part in equals/hashCode."""

    BOOLEAN = "boolean"
    INTEGRAL = "integral"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    ARRAY = "array"
    OBJECT = "object"


@dataclass(frozen=True, slots=True)
class JavaType:
    """Resolved Java type for a column."""

    name: str
    primitive: bool
    kind: JavaKind
    import_name: str | None = None

    @property
    def requires_import(self) -> bool:
        return self.import_name is not None


_BOOLEAN = (JavaType("boolean", True, JavaKind.BOOLEAN), JavaType("Boolean", False, JavaKind.OBJECT))
_BYTE = (JavaType("byte", True, JavaKind.INTEGRAL), JavaType("Byte", False, JavaKind.OBJECT))
_SHORT = (JavaType("short", True, JavaKind.INTEGRAL), JavaType("Short", False, JavaKind.OBJECT))
_INT = (JavaType("int", True, JavaKind.INTEGRAL), JavaType("Integer", False, JavaKind.OBJECT))
_LONG = (JavaType("long", True, JavaKind.LONG), JavaType("Long", False, JavaKind.OBJECT))
_FLOAT = (JavaType("float", True, JavaKind.FLOAT), JavaType("Float", False, JavaKind.OBJECT))
_DOUBLE = (JavaType("double", True, JavaKind.DOUBLE), JavaType("Double", False, JavaKind.OBJECT))

_BIG_DECIMAL = JavaType("BigDecimal", False, JavaKind.OBJECT, "java.math.BigDecimal")
_STRING = JavaType("String", False, JavaKind.OBJECT)
_DATE = JavaType("Date", False, JavaKind.OBJECT, "java.sql.Date")
_TIME = JavaType("Time", False, JavaKind.OBJECT, "java.sql.Time")
_TIMESTAMP = JavaType("Timestamp", False, JavaKind.OBJECT, "java.sql.Timestamp")
_BYTES = JavaType("byte[]", False, JavaKind.ARRAY, "java.util.Arrays")

# (not null, nullable) pairs for types with a primitive form
PRIMITIVE_TYPES: Final[dict[SqlType, tuple[JavaType, JavaType]]] = {
    SqlType.BIT: _BOOLEAN,
    SqlType.BOOLEAN: _BOOLEAN,
    SqlType.TINYINT: _BYTE,
    SqlType.SMALLINT: _SHORT,
    SqlType.INTEGER: _INT,
    SqlType.BIGINT: _LONG,
    SqlType.REAL: _FLOAT,
    SqlType.FLOAT: _DOUBLE,
    SqlType.DOUBLE: _DOUBLE,
}

OBJECT_TYPES: Final[dict[SqlType, JavaType]] = {
    SqlType.NUMERIC: _BIG_DECIMAL,
    SqlType.DECIMAL: _BIG_DECIMAL,
    SqlType.CHAR: _STRING,
    SqlType.VARCHAR: _STRING,
    SqlType.LONGVARCHAR: _STRING,
    SqlType.NCHAR: _STRING,
    SqlType.NVARCHAR: _STRING,
    SqlType.LONGNVARCHAR: _STRING,
    SqlType.CLOB: _STRING,
    SqlType.NCLOB: _STRING,
    SqlType.SQLXML: _STRING,
    SqlType.DATE: _DATE,
    SqlType.TIME: _TIME,
    SqlType.TIMESTAMP: _TIMESTAMP,
    SqlType.BINARY: _BYTES,
    SqlType.VARBINARY: _BYTES,
    SqlType.LONGVARBINARY: _BYTES,
    SqlType.BLOB: _BYTES,
}

_BOXED: Final[dict[str, JavaType]] = {
    not_null.name: nullable for not_null, nullable in PRIMITIVE_TYPES.values()
}

# Names accepted in schema files besides the SqlType member names
SQL_TYPE_ALIASES: Final[dict[str, SqlType]] = {
    "BOOL": SqlType.BOOLEAN,
    "INT": SqlType.INTEGER,
    "INT2": SqlType.SMALLINT,
    "INT4": SqlType.INTEGER,
    "INT8": SqlType.BIGINT,
    "FLOAT4": SqlType.REAL,
    "FLOAT8": SqlType.DOUBLE,
    "DOUBLE PRECISION": SqlType.DOUBLE,
    "DOUBLE_PRECISION": SqlType.DOUBLE,
    "DEC": SqlType.DECIMAL,
    "CHARACTER": SqlType.CHAR,
    "CHARACTER VARYING": SqlType.VARCHAR,
    "VARCHAR2": SqlType.VARCHAR,
    "NVARCHAR2": SqlType.NVARCHAR,
    "TEXT": SqlType.LONGVARCHAR,
    "DATETIME": SqlType.TIMESTAMP,
    "BYTEA": SqlType.VARBINARY,
}


def sql_type_name(code: int) -> str:
    """Return the JDBC name of a type code, or UNKNOWN."""
    try:
        return SqlType(code).name
    except ValueError:
        return "UNKNOWN"


def parse_sql_type(value: str | int) -> int:
    """Resolve a type name or numeric code to a type code.

    Unknown names raise ``KeyError``; unknown numeric codes are returned
    unchanged so that they fail later, at mapping time, with column context.
    """
    if isinstance(value, bool):
        raise KeyError(str(value))
    if isinstance(value, int):
        return value
    key = " ".join(str(value).strip().upper().split())
    if key in SqlType.__members__:
        return int(SqlType[key])
    if key in SQL_TYPE_ALIASES:
        return int(SQL_TYPE_ALIASES[key])
    raise KeyError(value)


def map_type(
    sql_type: int,
    nullable: bool,
    precision: int | None = None,
    scale: int | None = None,
    *,
    table: str | None = None,
    column: str | None = None,
) -> JavaType:
    """Map a SQL type to the Java type used for a field.

    Primitive types are only used for NOT NULL columns; a nullable column of
    an otherwise primitive type gets the boxed wrapper. Types with no
    primitive form (decimal, string, date/time, binary) ignore nullability.

    Args:
        sql_type: JDBC type code.
        nullable: Whether the column accepts NULL.
        precision: Declared size or precision, if known.
        scale: Declared scale, if known. Decimal types always map to
            ``BigDecimal`` whatever the scale.
        table: Table name for error messages.
        column: Column name for error messages.

    Returns:
        The resolved Java type.

    Raises:
        UnsupportedSqlTypeError: If the type has no Java mapping.
    """
    try:
        code = SqlType(sql_type)
    except ValueError:
        raise UnsupportedSqlTypeError(sql_type, table, column) from None

    # BIT(n) with n > 1 is a bit string, not a flag
    if code is SqlType.BIT and precision is not None and precision > 1:
        return _BYTES

    pair = PRIMITIVE_TYPES.get(code)
    if pair is not None:
        not_null, boxed_type = pair
        return boxed_type if nullable else not_null

    mapped = OBJECT_TYPES.get(code)
    if mapped is None:
        raise UnsupportedSqlTypeError(sql_type, table, column)
    return mapped


def boxed(java_type: JavaType) -> JavaType:
    """Return the wrapper type of a primitive, or the type itself."""
    return _BOXED.get(java_type.name, java_type)
